import contextvars

from django.conf import settings

from billing_core.core.domain.events.exceptions import TenantNotResolvedError

_current_tenant = contextvars.ContextVar("current_tenant", default=None)


def set_current_tenant(tenant_id: str | None):
    """Guarda o tenant da requisição; devolve o token para reset."""
    return _current_tenant.set(tenant_id)


def get_current_tenant() -> str | None:
    return _current_tenant.get()


def require_current_tenant() -> str:
    tenant_id = _current_tenant.get()
    if not tenant_id:
        raise TenantNotResolvedError("Tenant não informado (header X-Tenant ou ?tenant=)")
    return tenant_id


def reset_tenant(token) -> None:
    _current_tenant.reset(token)


def normalize_tenant(raw) -> str | None:
    if raw is None:
        return None
    value = str(raw).strip().lower()
    return value or None


def tenant_db_alias(tenant_id: str) -> str:
    """Alias do banco do tenant (TENANT_DATABASES); `default` quando não mapeado."""
    aliases = getattr(settings, "TENANT_DATABASES", {}) or {}
    return aliases.get(tenant_id, "default")
