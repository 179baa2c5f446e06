from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from billing_core.core.application.cqrs import PagedResult
from billing_core.core.domain.entities.customer_entity import CustomerEntity


class CustomerRepository(ABC):
    @abstractmethod
    def find_by_id(self, customer_id: int) -> CustomerEntity | None:
        ...

    @abstractmethod
    def find_by_id_for_update(self, customer_id: int) -> CustomerEntity | None:
        """Lê o titular com lock de linha; exige transação aberta."""
        ...

    @abstractmethod
    def set_asaas_customer_id(self, customer_id: int, asaas_customer_id: str) -> None:
        ...

    @abstractmethod
    def list_ids_after(self, cursor: int, limit: int) -> list[int]:
        """Paginação keyset: ids > cursor em ordem crescente."""
        ...

    @abstractmethod
    def plan_statuses(self, customer_ids: Sequence[int]) -> dict[int, str]:
        ...

    @abstractmethod
    def bulk_set_plan_status(self, customer_ids: Sequence[int], status: str) -> int:
        """Um único UPDATE para o conjunto; retorna linhas afetadas."""
        ...

    @abstractmethod
    def update_notification_preferences(
        self,
        customer_id: int,
        *,
        blocked: bool | None = None,
        channel: str | None = None,
    ) -> CustomerEntity | None:
        ...

    @abstractmethod
    def list(self, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[CustomerEntity]:
        ...

    @abstractmethod
    def atomic(self):
        """Context manager de transação no banco do tenant."""
        ...
