from abc import ABC, abstractmethod
from collections.abc import Sequence

from recurring_notification.core.domain.entities.notification_log_entity import NotificationLogEntity


class NotificationLogRepository(ABC):
    @abstractmethod
    def bulk_create(self, logs: Sequence[NotificationLogEntity]) -> int:
        """Um único INSERT para o lote; retorna a quantidade gravada."""
        ...

    @abstractmethod
    def list_recent(self, tenant_id: str, limit: int, flow_type: str | None = None) -> list[NotificationLogEntity]:
        """Mais recentes primeiro."""
        ...

    @abstractmethod
    def sent_payloads(self, tenant_id: str, flow_type: str) -> list[str]:
        """Payloads dos envios bem-sucedidos de um fluxo."""
        ...
