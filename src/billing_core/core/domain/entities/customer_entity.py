from __future__ import annotations

from dataclasses import dataclass

from billing_core.core.domain.entities._base import EntityMixin

PLAN_ACTIVE = "ACTIVE"
PLAN_SUSPENDED = "SUSPENDED"
PLAN_CANCELED = "CANCELED"


@dataclass(slots=True)
class CustomerEntity(EntityMixin):
    id: int
    name: str
    email: str | None = None
    phone: str | None = None
    cpf: str | None = None
    postal_code: str | None = None
    street: str | None = None
    number: str | None = None
    complement: str | None = None
    district: str | None = None
    city: str | None = None
    state: str | None = None
    asaas_customer_id: str | None = None
    plan_status: str = PLAN_ACTIVE
    notifications_blocked: bool = False
    notification_channel: str | None = None
    salesperson_id: int | None = None

    @property
    def external_reference(self) -> str:
        return f"titular-{self.id}"

    @property
    def is_canceled(self) -> bool:
        return self.plan_status == PLAN_CANCELED
