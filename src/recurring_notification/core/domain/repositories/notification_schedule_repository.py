from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from recurring_notification.core.domain.entities.notification_schedule_entity import NotificationScheduleEntity


class NotificationScheduleRepository(ABC):
    @abstractmethod
    def find_for_tenant(self, tenant_id: str) -> NotificationScheduleEntity | None:
        ...

    @abstractmethod
    def get_or_create(self, tenant_id: str, defaults: dict[str, Any]) -> tuple[NotificationScheduleEntity, bool]:
        """Cria o agendamento do tenant com `defaults` se ainda não existir."""
        ...

    @abstractmethod
    def update(self, schedule_id: int, **fields: Any) -> NotificationScheduleEntity:
        ...

    @abstractmethod
    def mark_run(self, schedule_id: int, last_run_at: datetime, next_run_at: datetime) -> NotificationScheduleEntity:
        ...

    @abstractmethod
    def atomic(self):
        ...
