from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from billing_core.core.domain.entities._base import EntityMixin


@dataclass(slots=True)
class NotificationScheduleEntity(EntityMixin):
    id: int
    tenant_id: str
    frequency_minutes: int
    next_run_at: datetime
    last_run_at: datetime | None = None
    preferred_channel: str | None = None
    active: bool = True

    def seconds_remaining(self, now: datetime) -> int:
        return max(0, int((self.next_run_at - now).total_seconds()))

    def is_due(self, now: datetime) -> bool:
        return now >= self.next_run_at
