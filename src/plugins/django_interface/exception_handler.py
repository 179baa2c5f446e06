import re

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from asaas_billing.core.domain.events.exceptions import (
    AsaasAPIError,
    IntegrationNotConfiguredError,
    InvalidTransitionError,
    MissingCustomerError,
    ProviderRecordNotFoundError,
)
from billing_core.core.domain.events.exceptions import EntityNotFoundError, TenantNotResolvedError
from recurring_notification.core.domain.events.exceptions import RecipientNotFoundError, TemplateNotFoundError

logger = structlog.get_logger(__name__)

# ordem importa: subclasses antes das bases
DOMAIN_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (TenantNotResolvedError, status.HTTP_400_BAD_REQUEST),
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (RecipientNotFoundError, status.HTTP_404_NOT_FOUND),
    (TemplateNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProviderRecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (IntegrationNotConfiguredError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (MissingCustomerError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (AsaasAPIError, status.HTTP_502_BAD_GATEWAY),
)


def error_code(exc: Exception) -> str:
    """`ProviderRecordNotFoundError` → `provider_record_not_found`."""
    name = type(exc).__name__.removesuffix("Error")
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is not None:
        return response

    for exc_type, http_status in DOMAIN_STATUS:
        if isinstance(exc, exc_type):
            view = context.get("view")
            logger.warning(
                "api.domain_error",
                view=type(view).__name__ if view else None,
                code=error_code(exc),
                status=http_status,
                error=str(exc),
            )
            return Response({"detail": str(exc), "code": error_code(exc)}, status=http_status)
    return None
