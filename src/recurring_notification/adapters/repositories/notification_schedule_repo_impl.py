from __future__ import annotations

from datetime import datetime
from typing import Any

from django.db import transaction

from billing_core.adapters.context.tenant_context import tenant_db_alias
from billing_core.core.domain.events.exceptions import EntityNotFoundError
from plugins.django_interface.models import NotificationSchedule
from recurring_notification.core.domain.entities.notification_schedule_entity import NotificationScheduleEntity
from recurring_notification.core.domain.repositories.notification_schedule_repository import (
    NotificationScheduleRepository,
)


class NotificationScheduleRepoImpl(NotificationScheduleRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def _qs(self):
        return NotificationSchedule.objects.using(self.db)

    def atomic(self):
        return transaction.atomic(using=self.db)

    def find_for_tenant(self, tenant_id: str) -> NotificationScheduleEntity | None:
        model = self._qs().filter(tenant_id=tenant_id).first()
        return NotificationScheduleEntity.from_model(model) if model else None

    def get_or_create(self, tenant_id: str, defaults: dict[str, Any]) -> tuple[NotificationScheduleEntity, bool]:
        model, created = self._qs().get_or_create(tenant_id=tenant_id, defaults=defaults)
        return NotificationScheduleEntity.from_model(model), created

    def update(self, schedule_id: int, **fields: Any) -> NotificationScheduleEntity:
        model = self._qs().filter(pk=schedule_id).first()
        if model is None:
            raise EntityNotFoundError("NotificationSchedule", schedule_id)
        for name, value in fields.items():
            setattr(model, name, value)
        model.save(using=self.db, update_fields=[*fields.keys(), "updated_at"])
        return NotificationScheduleEntity.from_model(model)

    def mark_run(self, schedule_id: int, last_run_at: datetime, next_run_at: datetime) -> NotificationScheduleEntity:
        return self.update(schedule_id, last_run_at=last_run_at, next_run_at=next_run_at)
