from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import date
from typing import Any

from billing_core.core.domain.entities.customer_entity import CustomerEntity
from billing_core.core.domain.entities.receivable_entity import ReceivableEntity


class ReceivableRepository(ABC):
    @abstractmethod
    def find_by_id(self, receivable_id: int) -> ReceivableEntity | None:
        ...

    @abstractmethod
    def find_by_id_for_update(self, receivable_id: int) -> ReceivableEntity | None:
        ...

    @abstractmethod
    def find_by_payment_id_for_update(self, asaas_payment_id: str) -> ReceivableEntity | None:
        ...

    @abstractmethod
    def find_by_subscription_id_for_update(self, asaas_subscription_id: str) -> ReceivableEntity | None:
        """Conta da assinatura: abertas antes das liquidadas, depois vencimento e id."""
        ...

    @abstractmethod
    def update(self, receivable_id: int, **fields: Any) -> ReceivableEntity:
        ...

    @abstractmethod
    def oldest_open_due_dates(self, customer_ids: Sequence[int]) -> dict[int, date]:
        """Menor vencimento entre as contas em aberto de cada titular."""
        ...

    @abstractmethod
    def list_open_with_customer(self) -> list[tuple[ReceivableEntity, CustomerEntity]]:
        """Contas em aberto com titular, ordenadas por vencimento."""
        ...

    @abstractmethod
    def atomic(self):
        ...
