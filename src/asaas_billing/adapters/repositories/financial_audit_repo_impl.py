import json
from typing import Any

from django.core.serializers.json import DjangoJSONEncoder

from billing_core.adapters.context.tenant_context import tenant_db_alias
from asaas_billing.core.domain.repositories.financial_audit_repository import FinancialAuditRepository
from plugins.django_interface.models import FinancialAudit


class FinancialAuditRepoImpl(FinancialAuditRepository):
    def __init__(self, tenant_id: str) -> None:
        self.db = tenant_db_alias(tenant_id)

    def record(
        self,
        *,
        entity_type: str,
        entity_id: int,
        action: str,
        changes: dict[str, Any],
        performed_by: str | None,
    ) -> None:
        FinancialAudit.objects.using(self.db).create(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            # datas / Decimal → tipos JSON
            changes=json.loads(json.dumps(changes, cls=DjangoJSONEncoder)),
            performed_by=performed_by,
        )
