"""
Tabelas fixas de tradução entre eventos/status do Asaas e o status local
da conta a receber.
"""
from __future__ import annotations

from typing import Any

from billing_core.core.domain.entities.receivable_entity import (
    STATUS_CANCELED,
    STATUS_OVERDUE,
    STATUS_PENDING,
    STATUS_RECEIVED,
)

EVENT_TO_STATUS: dict[str, str] = {
    "PAYMENT_RECEIVED": STATUS_RECEIVED,
    "PAYMENT_CONFIRMED": STATUS_RECEIVED,
    "PAYMENT_OVERDUE": STATUS_OVERDUE,
    "PAYMENT_DELETED": STATUS_CANCELED,
    "PAYMENT_REFUNDED": STATUS_CANCELED,
    "SUBSCRIPTION_DELETED": STATUS_CANCELED,
    "SUBSCRIPTION_CANCELLED": STATUS_CANCELED,
    "SUBSCRIPTION_CANCELED": STATUS_CANCELED,
    "PAYMENT_CREATED": STATUS_PENDING,
    "PAYMENT_UPDATED": STATUS_PENDING,
    "PAYMENT_PENDING": STATUS_PENDING,
}

PROVIDER_STATUS_TO_EVENT: dict[str, str] = {
    "RECEIVED": "PAYMENT_RECEIVED",
    "CONFIRMED": "PAYMENT_RECEIVED",
    "OVERDUE": "PAYMENT_OVERDUE",
    "REFUNDED": "PAYMENT_DELETED",
    "CANCELLED": "PAYMENT_DELETED",
    "CANCELED": "PAYMENT_DELETED",
    "DELETED": "PAYMENT_DELETED",
}


def status_for_event(event: str | None, current: str) -> str:
    """Evento desconhecido mantém o status atual."""
    return EVENT_TO_STATUS.get((event or "").upper(), current)


def event_for_provider_status(status: str | None) -> str:
    return PROVIDER_STATUS_TO_EVENT.get((status or "").upper(), "PAYMENT_CREATED")


def pick_payment_url(payment: Any) -> str | None:
    """invoiceUrl → bankSlipUrl → paymentLink (primeiro não vazio)."""
    if payment is None:
        return None
    for attr in ("invoiceUrl", "bankSlipUrl", "paymentLink"):
        value = getattr(payment, attr, None)
        if value:
            return value
    return None
