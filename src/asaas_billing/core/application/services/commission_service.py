from __future__ import annotations

import structlog
from django.utils import timezone

from asaas_billing.core.domain.repositories.commission_repository import CommissionRepository

logger = structlog.get_logger(__name__)


class CommissionService:
    """
    Comissão de indicação gerada no máximo uma vez por titular, no primeiro
    recebimento. Deve ser chamada dentro da transação de quem aplica o
    recebimento: conta a pagar e comissão nascem juntas ou não nascem.
    """

    def __init__(self, tenant_id: str, repo: CommissionRepository) -> None:
        self.tenant_id = tenant_id
        self.repo = repo

    def generate_referral_commission_once(self, customer_id: int) -> int | None:
        referral = self.repo.find_referral(customer_id)
        if referral is None or (referral.commission_value or 0) <= 0:
            return None

        if self.repo.exists_for_customer(customer_id):
            return None

        commission_id = self.repo.create_with_payable(referral, generated_at=timezone.now())
        logger.info(
            "commission.generated",
            tenant_id=self.tenant_id,
            customer_id=customer_id,
            salesperson_id=referral.salesperson_id,
            commission_id=commission_id,
            amount=str(referral.commission_value),
        )
        return commission_id
