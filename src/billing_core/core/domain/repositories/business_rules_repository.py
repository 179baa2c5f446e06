from abc import ABC, abstractmethod

from billing_core.core.domain.entities.business_rules_entity import BusinessRulesEntity


class BusinessRulesRepository(ABC):
    @abstractmethod
    def get_for_tenant(self, tenant_id: str) -> BusinessRulesEntity:
        """Retorna as regras do tenant; sem registro, devolve os defaults."""
        ...
