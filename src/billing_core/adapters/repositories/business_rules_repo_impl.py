from billing_core.adapters.context.tenant_context import tenant_db_alias
from billing_core.core.domain.entities.business_rules_entity import BusinessRulesEntity
from billing_core.core.domain.repositories.business_rules_repository import BusinessRulesRepository
from plugins.django_interface.models import BusinessRules


class BusinessRulesRepoImpl(BusinessRulesRepository):
    def get_for_tenant(self, tenant_id: str) -> BusinessRulesEntity:
        model = (
            BusinessRules.objects.using(tenant_db_alias(tenant_id))
            .filter(tenant_id=tenant_id)
            .first()
        )
        if model is None:
            return BusinessRulesEntity(tenant_id=tenant_id)
        return BusinessRulesEntity.from_model(model)
