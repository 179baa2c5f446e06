from abc import ABC, abstractmethod
from typing import Any


class PaymentRepository(ABC):
    @abstractmethod
    def upsert_by_provider_id(self, asaas_payment_id: str, *, customer_id: int, **fields: Any) -> bool:
        """
        Cria ou atualiza o pagamento identificado pelo id do provedor.
        Retorna True quando o registro foi criado.
        """
        ...

    @abstractmethod
    def create_manual(self, *, customer_id: int, **fields: Any) -> None:
        """Pagamento sem id de provedor (baixa manual)."""
        ...
