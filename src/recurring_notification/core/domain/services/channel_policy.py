"""
Canal de notificação: apenas e-mail e WhatsApp são canônicos.
Valor desconhecido cai em WhatsApp; na resolução por precedência ele
é ignorado e vale a próxima preferência.
"""
from __future__ import annotations

EMAIL = "email"
WHATSAPP = "whatsapp"
CHANNELS = (EMAIL, WHATSAPP)


def normalize_channel(value: str | None, default: str | None = None) -> str:
    raw = (value or default or WHATSAPP).strip().lower()
    return EMAIL if raw == EMAIL else WHATSAPP


def resolve_channel(
    customer_channel: str | None,
    schedule_channel: str | None,
    default_channel: str | None = None,
) -> str:
    """Preferência do titular → preferência do agendamento → default global."""
    for candidate in (customer_channel, schedule_channel, default_channel):
        raw = (candidate or "").strip().lower()
        if raw in CHANNELS:
            return raw
    return WHATSAPP
