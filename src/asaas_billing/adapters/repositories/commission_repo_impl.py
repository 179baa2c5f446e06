from __future__ import annotations

from datetime import datetime

from billing_core.adapters.context.tenant_context import tenant_db_alias
from asaas_billing.core.domain.repositories.commission_repository import CommissionRepository, ReferralInfo
from plugins.django_interface.models import Commission, Customer, Payable


class CommissionRepoImpl(CommissionRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def find_referral(self, customer_id: int) -> ReferralInfo | None:
        customer = (
            Customer.objects.using(self.db)
            .select_related("salesperson")
            .filter(pk=customer_id)
            .first()
        )
        if customer is None or customer.salesperson is None:
            return None
        return ReferralInfo(
            customer_id=customer.pk,
            customer_name=customer.name,
            salesperson_id=customer.salesperson.pk,
            salesperson_name=customer.salesperson.name,
            commission_value=customer.salesperson.referral_commission_value,
        )

    def exists_for_customer(self, customer_id: int) -> bool:
        return Commission.objects.using(self.db).filter(customer_id=customer_id).exists()

    def create_with_payable(self, referral: ReferralInfo, generated_at: datetime) -> int:
        payable = Payable.objects.using(self.db).create(
            description=(
                f"Comissão de indicação do titular #{referral.customer_id} - {referral.customer_name}"
            ),
            amount=referral.commission_value,
            due_date=generated_at.date(),
            supplier=referral.salesperson_name,
            status=Payable.Status.PENDING,
        )
        commission = Commission.objects.using(self.db).create(
            salesperson_id=referral.salesperson_id,
            customer_id=referral.customer_id,
            amount=referral.commission_value,
            generated_at=generated_at,
            payment_status=Commission.PaymentStatus.PENDING,
            payable=payable,
        )
        return commission.pk
