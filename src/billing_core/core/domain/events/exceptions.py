class BillingCoreError(Exception):
    """Classe base das exceções do núcleo de cobrança."""
    pass

class TenantNotResolvedError(BillingCoreError):
    """Requisição sem tenant identificável (header, query ou body)."""
    pass

class EntityNotFoundError(BillingCoreError):
    def __init__(self, entity: str, entity_id) -> None:
        super().__init__(f"{entity} {entity_id} não encontrado")
        self.entity = entity
        self.entity_id = entity_id
