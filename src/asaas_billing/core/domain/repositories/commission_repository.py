from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class ReferralInfo:
    customer_id: int
    customer_name: str
    salesperson_id: int
    salesperson_name: str
    commission_value: Decimal


class CommissionRepository(ABC):
    @abstractmethod
    def find_referral(self, customer_id: int) -> ReferralInfo | None:
        """Vendedor que indicou o titular (None se não houver)."""
        ...

    @abstractmethod
    def exists_for_customer(self, customer_id: int) -> bool:
        ...

    @abstractmethod
    def create_with_payable(self, referral: ReferralInfo, generated_at: datetime) -> int:
        """Cria a conta a pagar e a comissão vinculada; retorna o id da comissão."""
        ...
