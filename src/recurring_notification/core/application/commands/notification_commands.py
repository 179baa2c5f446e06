from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from billing_core.core.application.cqrs import CommandDTO


# ╭──────────────────────────────────────────────╮
# │ Disparo / agendamento                        │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class DispatchDueNotificationsCommand(CommandDTO):
    tenant_id: str
    force: bool = False
    flow_type: str = "pendencia-periodica"

@dataclass(frozen=True)
class UpdateScheduleCommand(CommandDTO):
    tenant_id: str
    patch: dict[str, Any] = field(default_factory=dict)


# ╭──────────────────────────────────────────────╮
# │ Preferências do titular                      │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class UpdateCustomerBlockCommand(CommandDTO):
    tenant_id: str
    customer_id: int
    blocked: bool
    flow_type: str = "pendencia-periodica"

@dataclass(frozen=True)
class UpdateCustomerChannelCommand(CommandDTO):
    tenant_id: str
    customer_id: int
    channel: str
    flow_type: str = "pendencia-periodica"


# ╭──────────────────────────────────────────────╮
# │ Templates                                    │
# ╰──────────────────────────────────────────────╯
@dataclass(frozen=True)
class CreateTemplateCommand(CommandDTO):
    tenant_id: str
    payload: dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class UpdateTemplateCommand(CommandDTO):
    tenant_id: str
    template_id: int
    payload: dict[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class DeleteTemplateCommand(CommandDTO):
    tenant_id: str
    template_id: int
