# ╭────────────────────────────────────────────────────────────────────────────╮
# │  Cobrança Asaas                                                            │
# │                                                                            │
# │  • Webhook  → tenant + assinatura HMAC, sempre 200 depois de verificado    │
# │  • Manuais  → gerar cobrança, reconsultar, baixa e estorno                 │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

import json

import structlog
from pydantic import ValidationError
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from asaas_billing.adapters.api_clients.asaas_client import validate_webhook_signature
from asaas_billing.adapters.api_clients.asaas_credentials import resolve_asaas_credentials
from asaas_billing.adapters.config.composition_root import container as asaas_container
from asaas_billing.adapters.observability.metrics import ASAAS_WEBHOOKS
from asaas_billing.core.application.commands.billing_commands import (
    ApplyWebhookCommand,
    ChargebackReceivableCommand,
    EnsurePaymentCommand,
    RefreshPaymentStatusCommand,
    SettleReceivableCommand,
)
from billing_core.adapters.context.tenant_context import (
    normalize_tenant,
    require_current_tenant,
    reset_tenant,
    set_current_tenant,
)
from plugins.django_interface.request_middleware import tenant_from_request
from plugins.django_interface.serializers.billing_serializers import (
    EnsurePaymentInputSerializer,
    ReceivableSerializer,
    SettleInputSerializer,
)

logger = structlog.get_logger(__name__)

asaas_command_bus = asaas_container.command_bus()

SIGNATURE_HEADERS = (
    "HTTP_X_SIGNATURE",
    "HTTP_ASAAS_SIGNATURE",
    "HTTP_X_ASAAS_SIGNATURE",
    "HTTP_X_HUB_SIGNATURE",
)


def _performed_by(request) -> str | None:
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return None
    return user.get_username()


# ╭──────────────────────────────────────────────╮
# │                   WEBHOOK                    │
# ╰──────────────────────────────────────────────╯
class AsaasWebhookView(APIView):
    """
    Recebe eventos do Asaas.

    400 sem tenant (ou corpo inválido), 401 se a assinatura não confere ou
    o tenant não tem segredo configurado. Verificado, responde 200
    `{ok: true}` mesmo quando nenhuma conta local corresponde ao evento.
    """
    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        raw_body = request.body
        try:
            payload = json.loads(raw_body or b"{}")
        except ValueError:
            return Response({"detail": "JSON inválido"}, status=status.HTTP_400_BAD_REQUEST)
        if not isinstance(payload, dict):
            return Response({"detail": "JSON inválido"}, status=status.HTTP_400_BAD_REQUEST)

        tenant_id = tenant_from_request(request) or normalize_tenant(
            payload.get("tenant") or payload.get("tenantId")
        )
        if not tenant_id:
            logger.warning("asaas.webhook.no_tenant")
            return Response({"detail": "Tenant não informado"}, status=status.HTTP_400_BAD_REQUEST)

        signature = next((request.META[h] for h in SIGNATURE_HEADERS if request.META.get(h)), None)
        credentials = resolve_asaas_credentials(tenant_id)
        if not validate_webhook_signature(raw_body, signature, credentials.webhook_secret):
            logger.warning(
                "asaas.webhook.invalid_signature",
                tenant_id=tenant_id,
                has_signature=bool(signature),
                has_secret=bool(credentials.webhook_secret),
            )
            ASAAS_WEBHOOKS.labels(str(payload.get("event") or "unknown"), "rejected").inc()
            return Response({"detail": "Assinatura inválida"}, status=status.HTTP_401_UNAUTHORIZED)

        token = set_current_tenant(tenant_id)
        try:
            result = asaas_command_bus.dispatch(ApplyWebhookCommand(tenant_id=tenant_id, payload=payload))
        except ValidationError as exc:
            logger.warning("asaas.webhook.invalid_payload", tenant_id=tenant_id, error=str(exc))
            return Response({"detail": "Evento inválido"}, status=status.HTTP_400_BAD_REQUEST)
        finally:
            reset_tenant(token)

        logger.info(
            "asaas.webhook.received",
            tenant_id=tenant_id,
            webhook_event=payload.get("event"),
            matched=result.matched,
            status=result.status,
        )
        return Response({"ok": True}, status=status.HTTP_200_OK)


# ╭──────────────────────────────────────────────╮
# │              OPERAÇÕES MANUAIS               │
# ╰──────────────────────────────────────────────╯
class ReceivableBillingView(APIView):
    """Gera (ou regenera com `force`) a cobrança da conta no Asaas."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, receivable_id: int):
        tenant_id = require_current_tenant()
        params = EnsurePaymentInputSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        receivable = asaas_command_bus.dispatch(
            EnsurePaymentCommand(
                tenant_id=tenant_id,
                receivable_id=receivable_id,
                billing_type=params.validated_data["billing_type"],
                force=params.validated_data["force"],
            )
        )
        return Response(ReceivableSerializer(receivable).data, status=status.HTTP_200_OK)


class ReceivableRecheckView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, receivable_id: int):
        tenant_id = require_current_tenant()
        receivable = asaas_command_bus.dispatch(
            RefreshPaymentStatusCommand(tenant_id=tenant_id, receivable_id=receivable_id)
        )
        return Response(ReceivableSerializer(receivable).data, status=status.HTTP_200_OK)


class ReceivableSettleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, receivable_id: int):
        tenant_id = require_current_tenant()
        params = SettleInputSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        receivable = asaas_command_bus.dispatch(
            SettleReceivableCommand(
                tenant_id=tenant_id,
                receivable_id=receivable_id,
                performed_by=_performed_by(request),
                received_at=params.validated_data.get("received_at"),
            )
        )
        return Response(ReceivableSerializer(receivable).data, status=status.HTTP_200_OK)


class ReceivableChargebackView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, receivable_id: int):
        tenant_id = require_current_tenant()
        receivable = asaas_command_bus.dispatch(
            ChargebackReceivableCommand(
                tenant_id=tenant_id,
                receivable_id=receivable_id,
                performed_by=_performed_by(request),
            )
        )
        return Response(ReceivableSerializer(receivable).data, status=status.HTTP_200_OK)
