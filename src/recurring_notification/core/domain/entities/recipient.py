from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from recurring_notification.core.domain.services.channel_policy import EMAIL


@dataclass(slots=True)
class OpenItem:
    """Conta em aberto de um titular, como aparece no painel e no payload."""
    receivable_id: int
    description: str | None
    amount: Decimal
    due_date: date
    status: str
    days_overdue: int


@dataclass(slots=True)
class Recipient:
    """Titular agregado com todas as suas cobranças abertas elegíveis no fluxo."""
    customer_id: int
    name: str
    email: str | None
    phone: str | None
    blocked: bool
    channel: str
    items: list[OpenItem] = field(default_factory=list)

    @property
    def total_due(self) -> Decimal:
        return sum((i.amount for i in self.items), Decimal("0"))

    @property
    def nearest_due_date(self) -> date | None:
        return min((i.due_date for i in self.items), default=None)

    @property
    def item_count(self) -> int:
        return len(self.items)

    @property
    def destination(self) -> str | None:
        """Endereço no canal resolvido (e-mail ou telefone)."""
        return (self.email if self.channel == EMAIL else self.phone) or None

    @property
    def has_contact(self) -> bool:
        return bool(self.destination)
