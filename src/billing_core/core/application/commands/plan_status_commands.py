from __future__ import annotations

from dataclasses import dataclass

from billing_core.core.application.cqrs import CommandDTO


@dataclass(frozen=True)
class SyncPlanStatusCommand(CommandDTO):
    tenant_id: str
    customer_ids: tuple[int, ...]

@dataclass(frozen=True)
class SyncAllPlanStatusCommand(CommandDTO):
    tenant_id: str
    batch_size: int = 500
