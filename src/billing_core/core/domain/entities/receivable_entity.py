from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from billing_core.core.domain.entities._base import EntityMixin

STATUS_PENDING = "PENDING"
STATUS_OVERDUE = "OVERDUE"
STATUS_RECEIVED = "RECEIVED"
STATUS_CANCELED = "CANCELED"

OPEN_STATUSES = (STATUS_PENDING, STATUS_OVERDUE)


@dataclass(slots=True)
class ReceivableEntity(EntityMixin):
    id: int
    customer_id: int | None
    amount: Decimal
    due_date: date
    status: str = STATUS_PENDING
    description: str | None = None
    received_at: datetime | None = None
    asaas_payment_id: str | None = None
    asaas_subscription_id: str | None = None
    payment_method: str | None = None
    payment_url: str | None = None
    pix_qr_code: str | None = None
    pix_expiration: datetime | None = None

    @property
    def external_reference(self) -> str:
        """Referência estável usada para correlacionar a cobrança no provedor."""
        return f"conta-receber-{self.id}"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def days_overdue(self, today: date) -> int:
        return max(0, (today - self.due_date).days)

    def days_until_due(self, today: date) -> int:
        return (self.due_date - today).days
