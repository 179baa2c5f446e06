from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from billing_core.core.domain.entities._base import EntityMixin

LOG_SENT = "sent"
LOG_SKIPPED = "skipped"
LOG_FAILED = "failed"


@dataclass(slots=True)
class NotificationLogEntity(EntityMixin):
    tenant_id: str
    schedule_id: int
    batch_id: str
    channel: str
    status: str
    customer_id: int | None = None
    destination: str | None = None
    reason: str | None = None
    payload: str | None = None
    id: int | None = None
    created_at: datetime | None = None
