from __future__ import annotations

import re
from dataclasses import dataclass

from decouple import config
from django.conf import settings

DEFAULT_BASE_URL = "https://sandbox.asaas.com/api/v3"


@dataclass(frozen=True)
class AsaasCredentials:
    tenant_id: str
    api_key: str | None
    webhook_secret: str | None
    base_url: str
    timeout: float
    max_retries: int
    retry_base_delay: float
    enabled: bool


def _tenant_suffix(tenant_id: str) -> str:
    return re.sub(r"[^A-Z0-9]", "_", tenant_id.upper())


def _tenant_value(name: str, tenant_id: str) -> str | None:
    """`<NAME>_<TENANT>` do ambiente/.env; None se ausente ou vazio."""
    value = config(f"{name}_{_tenant_suffix(tenant_id)}", default="")
    return value or None


def resolve_asaas_credentials(tenant_id: str) -> AsaasCredentials:
    """
    Resolve as credenciais do tenant sem nunca levantar exceção: sem chave
    de API (ou fora de ASAAS_ENABLED_TENANTS) a integração fica desabilitada.
    """
    api_key = (
        _tenant_value("ASAAS_API_KEY", tenant_id)
        or getattr(settings, "ASAAS_API_KEY", None)
        or getattr(settings, "ASAAS_TOKEN", None)
        or None
    )
    webhook_secret = (
        _tenant_value("ASAAS_WEBHOOK_SECRET", tenant_id)
        or getattr(settings, "ASAAS_WEBHOOK_SECRET", None)
        or None
    )
    base_url = (
        _tenant_value("ASAAS_BASE_URL", tenant_id)
        or getattr(settings, "ASAAS_BASE_URL", None)
        or DEFAULT_BASE_URL
    )

    enabled_tenants = [t.strip().lower() for t in getattr(settings, "ASAAS_ENABLED_TENANTS", []) if t.strip()]
    tenant_allowed = not enabled_tenants or tenant_id.lower() in enabled_tenants

    return AsaasCredentials(
        tenant_id=tenant_id,
        api_key=api_key,
        webhook_secret=webhook_secret,
        base_url=base_url.rstrip("/"),
        timeout=int(getattr(settings, "ASAAS_TIMEOUT_MS", 8000)) / 1000,
        max_retries=max(1, int(getattr(settings, "ASAAS_MAX_RETRIES", 3))),
        retry_base_delay=float(getattr(settings, "ASAAS_RETRY_BASE_DELAY", 0.5)),
        enabled=bool(api_key) and tenant_allowed,
    )
