from __future__ import annotations

from typing import Any

from billing_core.adapters.context.tenant_context import tenant_db_alias
from asaas_billing.core.domain.repositories.payment_repository import PaymentRepository
from plugins.django_interface.models import Payment


class PaymentRepoImpl(PaymentRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def upsert_by_provider_id(self, asaas_payment_id: str, *, customer_id: int, **fields: Any) -> bool:
        _, created = Payment.objects.using(self.db).update_or_create(
            asaas_payment_id=asaas_payment_id,
            defaults=fields,
            create_defaults={**fields, "customer_id": customer_id},
        )
        return created

    def create_manual(self, *, customer_id: int, **fields: Any) -> None:
        Payment.objects.using(self.db).create(customer_id=customer_id, **fields)
