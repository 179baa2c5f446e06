"""
Fluxos de notificação e a regra de elegibilidade de cada um.

Fora `pendencia-periodica`, cada fluxo avisa uma única vez por conta: a
referência `<fluxo>:<conta>` de um envio bem-sucedido exclui a conta das
rodadas seguintes.
"""
from __future__ import annotations

from datetime import date

from billing_core.core.domain.entities.business_rules_entity import BusinessRulesEntity
from billing_core.core.domain.entities.receivable_entity import ReceivableEntity

PERIODIC = "pendencia-periodica"
DUE_REMINDER = "aviso-vencimento"
OVERDUE_NOTICE = "aviso-pendencia"
PREVENTIVE_SUSPENSION = "suspensao-preventiva"
SUSPENSION = "suspensao"
POST_SUSPENSION = "pos-suspensao"

FLOW_TYPES = (
    PERIODIC,
    DUE_REMINDER,
    OVERDUE_NOTICE,
    PREVENTIVE_SUSPENSION,
    SUSPENSION,
    POST_SUSPENSION,
)

SUBJECTS = {
    PERIODIC: "Cobrança pendente",
    DUE_REMINDER: "Lembrete de vencimento",
    OVERDUE_NOTICE: "Aviso de pendência",
    PREVENTIVE_SUSPENSION: "Aviso de suspensão preventiva",
    SUSPENSION: "Aviso de suspensão",
    POST_SUSPENSION: "Plano suspenso: regularize para reativação",
}


def normalize_flow_type(value: str | None) -> str:
    if value in FLOW_TYPES:
        return value
    if value:
        raise ValueError(f"Tipo de fluxo desconhecido: {value}")
    return PERIODIC


def is_deduplicated(flow_type: str) -> bool:
    return flow_type != PERIODIC


def sent_reference(flow_type: str, receivable_id: int) -> str:
    return f"{flow_type}:{receivable_id}"


def is_eligible(flow_type: str, receivable: ReceivableEntity, rules: BusinessRulesEntity, today: date) -> bool:
    overdue = receivable.days_overdue(today)
    match flow_type:
        case "aviso-vencimento":
            return 0 <= receivable.days_until_due(today) <= rules.due_reminder_days
        case "aviso-pendencia":
            return overdue >= rules.overdue_reminder_days
        case "suspensao-preventiva":
            return overdue >= rules.preventive_suspension_days
        case "suspensao":
            return overdue >= rules.suspension_days
        case "pos-suspensao":
            return overdue >= rules.post_suspension_days
        case _:
            return overdue >= max(0, rules.overdue_reminder_days)
