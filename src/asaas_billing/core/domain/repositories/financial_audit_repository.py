from abc import ABC, abstractmethod
from typing import Any


class FinancialAuditRepository(ABC):
    @abstractmethod
    def record(
        self,
        *,
        entity_type: str,
        entity_id: int,
        action: str,
        changes: dict[str, Any],
        performed_by: str | None,
    ) -> None:
        ...
