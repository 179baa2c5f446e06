from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from billing_core.core.application.cqrs import CommandDTO


# ╭──────────────────────────────────────────────╮
# │ Webhook / reconsulta                         │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class ApplyWebhookCommand(CommandDTO):
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class RefreshPaymentStatusCommand(CommandDTO):
    tenant_id: str
    receivable_id: int


# ╭──────────────────────────────────────────────╮
# │ Vínculo com o provedor                       │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class EnsureCustomerCommand(CommandDTO):
    tenant_id: str
    customer_id: int

@dataclass(frozen=True)
class EnsurePaymentCommand(CommandDTO):
    tenant_id: str
    receivable_id: int
    billing_type: str = "PIX"
    force: bool = False

@dataclass(frozen=True)
class SyncReceivableUpdateCommand(CommandDTO):
    tenant_id: str
    receivable_id: int
    patch: dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class SyncReceivableDeletionCommand(CommandDTO):
    tenant_id: str
    receivable_id: int


# ╭──────────────────────────────────────────────╮
# │ Operações manuais                            │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class SettleReceivableCommand(CommandDTO):
    tenant_id: str
    receivable_id: int
    performed_by: str | None = None
    received_at: datetime | None = None

@dataclass(frozen=True)
class ChargebackReceivableCommand(CommandDTO):
    tenant_id: str
    receivable_id: int
    performed_by: str | None = None
