from dataclasses import dataclass, field


@dataclass(frozen=True)
class ListCustomersQuery:
    tenant_id: str
    filtros: dict = field(default_factory=dict)
    page: int = 1
    page_size: int = 50

@dataclass(frozen=True)
class GetCustomerQuery:
    tenant_id: str
    customer_id: int
