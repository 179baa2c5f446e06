from abc import ABC, abstractmethod
from typing import Any

from recurring_notification.core.domain.entities.notification_template_entity import NotificationTemplateEntity


class NotificationTemplateRepository(ABC):
    @abstractmethod
    def list(self, tenant_id: str, channel: str | None = None) -> list[NotificationTemplateEntity]:
        ...

    @abstractmethod
    def find_by_id(self, tenant_id: str, template_id: int) -> NotificationTemplateEntity | None:
        ...

    @abstractmethod
    def find_default(self, tenant_id: str, channel: str) -> NotificationTemplateEntity | None:
        ...

    @abstractmethod
    def create(self, tenant_id: str, **fields: Any) -> NotificationTemplateEntity:
        ...

    @abstractmethod
    def update(self, tenant_id: str, template_id: int, **fields: Any) -> NotificationTemplateEntity | None:
        ...

    @abstractmethod
    def delete(self, tenant_id: str, template_id: int) -> bool:
        ...
