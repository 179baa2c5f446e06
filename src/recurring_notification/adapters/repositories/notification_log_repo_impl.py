from __future__ import annotations

from collections.abc import Sequence

from django.db.models import Q

from billing_core.adapters.context.tenant_context import tenant_db_alias
from plugins.django_interface.models import NotificationLog
from recurring_notification.core.domain.entities.notification_log_entity import (
    LOG_SENT,
    NotificationLogEntity,
)
from recurring_notification.core.domain.repositories.notification_log_repository import (
    NotificationLogRepository,
)
from recurring_notification.core.domain.services.flow_types import PERIODIC


def _flow_marker(flow_type: str) -> str:
    return f'"tipo": "{flow_type}"'


class NotificationLogRepoImpl(NotificationLogRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def _qs(self):
        return NotificationLog.objects.using(self.db)

    def bulk_create(self, logs: Sequence[NotificationLogEntity]) -> int:
        if not logs:
            return 0
        rows = [
            NotificationLog(
                tenant_id=log.tenant_id,
                schedule_id=log.schedule_id,
                customer_id=log.customer_id,
                batch_id=log.batch_id,
                channel=log.channel,
                destination=log.destination,
                status=log.status,
                reason=log.reason,
                payload=log.payload,
            )
            for log in logs
        ]
        return len(self._qs().bulk_create(rows))

    def list_recent(self, tenant_id: str, limit: int, flow_type: str | None = None) -> list[NotificationLogEntity]:
        qs = self._qs().filter(tenant_id=tenant_id)
        if flow_type == PERIODIC:
            # logs antigos sem payload pertencem ao fluxo periódico
            qs = qs.filter(Q(payload__contains=_flow_marker(flow_type)) | Q(payload__isnull=True))
        elif flow_type:
            qs = qs.filter(payload__contains=_flow_marker(flow_type))
        return [NotificationLogEntity.from_model(m) for m in qs.order_by("-created_at", "-pk")[:limit]]

    def sent_payloads(self, tenant_id: str, flow_type: str) -> list[str]:
        return list(
            self._qs()
            .filter(tenant_id=tenant_id, status=LOG_SENT, payload__contains=_flow_marker(flow_type))
            .values_list("payload", flat=True)
        )
