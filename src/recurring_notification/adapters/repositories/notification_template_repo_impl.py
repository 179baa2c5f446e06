from __future__ import annotations

from typing import Any

from django.db import transaction

from billing_core.adapters.context.tenant_context import tenant_db_alias
from plugins.django_interface.models import NotificationTemplate
from recurring_notification.core.domain.entities.notification_template_entity import NotificationTemplateEntity
from recurring_notification.core.domain.repositories.notification_template_repository import (
    NotificationTemplateRepository,
)


class NotificationTemplateRepoImpl(NotificationTemplateRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def _qs(self, tenant_id: str):
        return NotificationTemplate.objects.using(self.db).filter(tenant_id=tenant_id)

    def list(self, tenant_id: str, channel: str | None = None) -> list[NotificationTemplateEntity]:
        qs = self._qs(tenant_id)
        if channel:
            qs = qs.filter(channel=channel)
        return [NotificationTemplateEntity.from_model(m) for m in qs.order_by("channel", "name")]

    def find_by_id(self, tenant_id: str, template_id: int) -> NotificationTemplateEntity | None:
        model = self._qs(tenant_id).filter(pk=template_id).first()
        return NotificationTemplateEntity.from_model(model) if model else None

    def find_default(self, tenant_id: str, channel: str) -> NotificationTemplateEntity | None:
        model = self._qs(tenant_id).filter(channel=channel, is_default=True).order_by("-updated_at").first()
        return NotificationTemplateEntity.from_model(model) if model else None

    def create(self, tenant_id: str, **fields: Any) -> NotificationTemplateEntity:
        with transaction.atomic(using=self.db):
            if fields.get("is_default"):
                self._qs(tenant_id).filter(channel=fields["channel"], is_default=True).update(is_default=False)
            model = NotificationTemplate.objects.using(self.db).create(tenant_id=tenant_id, **fields)
        return NotificationTemplateEntity.from_model(model)

    def update(self, tenant_id: str, template_id: int, **fields: Any) -> NotificationTemplateEntity | None:
        with transaction.atomic(using=self.db):
            model = self._qs(tenant_id).select_for_update().filter(pk=template_id).first()
            if model is None:
                return None
            for name, value in fields.items():
                setattr(model, name, value)
            if model.is_default:
                # só um default por canal
                self._qs(tenant_id).filter(channel=model.channel, is_default=True).exclude(
                    pk=model.pk
                ).update(is_default=False)
            model.save(using=self.db)
        return NotificationTemplateEntity.from_model(model)

    def delete(self, tenant_id: str, template_id: int) -> bool:
        deleted, _ = self._qs(tenant_id).filter(pk=template_id).delete()
        return bool(deleted)
