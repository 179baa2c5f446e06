from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime
from pydantic import BaseModel

# ───────────────────────────────────────────────
# DTOs da API / webhooks do Asaas
# ───────────────────────────────────────────────

class AsaasBaseModel(BaseModel):
    model_config = {"extra": "allow", "populate_by_name": True}


class AsaasCustomerDTO(AsaasBaseModel):
    id: str
    name: str | None = None
    email: str | None = None
    cpfCnpj: str | None = None
    externalReference: str | None = None


class AsaasPaymentDTO(AsaasBaseModel):
    id: str | None = None
    customer: str | None = None
    status: str | None = None
    dueDate: str | None = None
    value: Decimal | None = None
    billingType: str | None = None
    invoiceUrl: str | None = None
    bankSlipUrl: str | None = None
    paymentLink: str | None = None
    pixQrCode: str | None = None
    pixExpirationDate: str | None = None
    subscription: str | None = None
    externalReference: str | None = None
    description: str | None = None

    def due_date_as_date(self) -> date | None:
        return parse_date(self.dueDate[:10]) if self.dueDate else None

    def pix_expiration_as_datetime(self) -> datetime | None:
        if not self.pixExpirationDate:
            return None
        value = parse_datetime(self.pixExpirationDate)
        if value is None:
            day = parse_date(self.pixExpirationDate[:10])
            if day is None:
                return None
            value = datetime.combine(day, datetime.max.time().replace(microsecond=0))
        if timezone.is_naive(value):
            value = timezone.make_aware(value)
        return value


class AsaasPaymentListDTO(AsaasBaseModel):
    data: list[AsaasPaymentDTO] = []
    totalCount: int | None = None
    hasMore: bool = False


class AsaasSubscriptionDTO(AsaasBaseModel):
    id: str | None = None
    customer: str | None = None
    status: str | None = None
    nextDueDate: str | None = None
    value: Decimal | None = None
    billingType: str | None = None
    cycle: str | None = None


class AsaasSubscriptionListDTO(AsaasBaseModel):
    data: list[AsaasSubscriptionDTO] = []
    totalCount: int | None = None
    hasMore: bool = False


class AsaasWebhookEventDTO(AsaasBaseModel):
    event: str
    dateCreated: str | None = None
    payment: AsaasPaymentDTO | None = None
    subscription: AsaasSubscriptionDTO | None = None

    @property
    def payment_id(self) -> str | None:
        return self.payment.id if self.payment else None

    @property
    def subscription_id(self) -> str | None:
        if self.payment and self.payment.subscription:
            return self.payment.subscription
        return self.subscription.id if self.subscription else None
