from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from billing_core.core.domain.entities._base import EntityMixin


@dataclass(slots=True)
class NotificationTemplateEntity(EntityMixin):
    id: int
    tenant_id: str
    name: str
    channel: str
    subject: str | None = None
    html_body: str | None = None
    text_body: str | None = None
    is_default: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
