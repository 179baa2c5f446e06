import uuid

import structlog

from billing_core.adapters.context.tenant_context import normalize_tenant, reset_tenant, set_current_tenant

TENANT_HEADERS = ("HTTP_X_TENANT", "HTTP_X_ASAAS_TENANT")


def tenant_from_request(request) -> str | None:
    """Header `X-Tenant` / `X-Asaas-Tenant` ou `?tenant=`."""
    for header in TENANT_HEADERS:
        if value := normalize_tenant(request.META.get(header)):
            return value
    return normalize_tenant(request.GET.get("tenant"))


class TenantContextMiddleware:
    """
    Guarda o tenant da requisição numa context var e vincula `tenant_id` /
    `request_id` aos logs do structlog enquanto a requisição durar.
    Tenant ausente não é erro aqui: quem exige tenant é a view.
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        tenant_id = tenant_from_request(request)
        request_id = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        request.tenant_id = tenant_id

        token = set_current_tenant(tenant_id)
        structlog.contextvars.bind_contextvars(tenant_id=tenant_id, request_id=request_id)
        try:
            response = self.get_response(request)
        finally:
            structlog.contextvars.unbind_contextvars("tenant_id", "request_id")
            reset_tenant(token)
        response["X-Request-ID"] = request_id
        return response
