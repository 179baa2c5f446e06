# ╭────────────────────────────────────────────────────────────────────────────╮
# │  Notificação recorrente                                                    │
# │                                                                            │
# │  • Painel / disparo      → por tipo de fluxo (`?flow_type=`)               │
# │  • Preferências          → bloqueio e canal por titular                    │
# │  • Logs / templates      → histórico de envio e CRUD de templates          │
# ╰────────────────────────────────────────────────────────────────────────────╯
from __future__ import annotations

from rest_framework import permissions, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from billing_core.adapters.context.tenant_context import require_current_tenant
from plugins.django_interface.serializers.notification_serializers import (
    CustomerBlockSerializer,
    CustomerChannelSerializer,
    DashboardSerializer,
    DispatchInputSerializer,
    DispatchResultSerializer,
    NotificationLogSerializer,
    NotificationScheduleSerializer,
    NotificationTemplateSerializer,
    RecipientSerializer,
    ScheduleUpdateSerializer,
)
from recurring_notification.adapters.config.composition_root import (
    container as notification_container,
)
from recurring_notification.core.application.commands.notification_commands import (
    CreateTemplateCommand,
    DeleteTemplateCommand,
    DispatchDueNotificationsCommand,
    UpdateCustomerBlockCommand,
    UpdateCustomerChannelCommand,
    UpdateScheduleCommand,
    UpdateTemplateCommand,
)
from recurring_notification.core.application.queries.notification_queries import (
    GetDashboardQuery,
    ListNotificationLogsQuery,
    ListTemplatesQuery,
)
from recurring_notification.core.domain.services.flow_types import normalize_flow_type

# ───────────────────────────────  CQRS Buses  ────────────────────────────────
notification_command_bus = notification_container.command_bus()
notification_query_bus = notification_container.query_bus()


def _flow_type(request) -> str:
    try:
        return normalize_flow_type(request.query_params.get("flow_type"))
    except ValueError as exc:
        raise ValidationError({"flow_type": str(exc)}) from exc


# ╭──────────────────────────────────────────────╮
# │               PAINEL / DISPARO               │
# ╰──────────────────────────────────────────────╯
class NotificationDashboardView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        tenant_id = require_current_tenant()
        dashboard = notification_query_bus.dispatch(
            GetDashboardQuery(tenant_id=tenant_id, flow_type=_flow_type(request))
        )
        return Response(DashboardSerializer(dashboard).data)


class NotificationDispatchView(APIView):
    """Dispara o lote se o agendamento venceu (ou sempre, com `force`)."""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        tenant_id = require_current_tenant()
        params = DispatchInputSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        result = notification_command_bus.dispatch(
            DispatchDueNotificationsCommand(
                tenant_id=tenant_id,
                force=params.validated_data["force"],
                flow_type=params.validated_data["flow_type"],
            )
        )
        return Response(DispatchResultSerializer(result).data, status=status.HTTP_200_OK)


class NotificationScheduleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request):
        tenant_id = require_current_tenant()
        params = ScheduleUpdateSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        schedule = notification_command_bus.dispatch(
            UpdateScheduleCommand(tenant_id=tenant_id, patch=dict(params.validated_data))
        )
        return Response(NotificationScheduleSerializer(schedule).data)


# ╭──────────────────────────────────────────────╮
# │           PREFERÊNCIAS DO TITULAR            │
# ╰──────────────────────────────────────────────╯
class CustomerBlockView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, customer_id: int):
        tenant_id = require_current_tenant()
        params = CustomerBlockSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        recipient = notification_command_bus.dispatch(
            UpdateCustomerBlockCommand(
                tenant_id=tenant_id,
                customer_id=customer_id,
                blocked=params.validated_data["blocked"],
                flow_type=_flow_type(request),
            )
        )
        return Response(RecipientSerializer(recipient).data)


class CustomerChannelView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, customer_id: int):
        tenant_id = require_current_tenant()
        params = CustomerChannelSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        recipient = notification_command_bus.dispatch(
            UpdateCustomerChannelCommand(
                tenant_id=tenant_id,
                customer_id=customer_id,
                channel=params.validated_data["channel"],
                flow_type=_flow_type(request),
            )
        )
        return Response(RecipientSerializer(recipient).data)


# ╭──────────────────────────────────────────────╮
# │              LOGS / TEMPLATES                │
# ╰──────────────────────────────────────────────╯
class NotificationLogListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        tenant_id = require_current_tenant()
        try:
            limit = int(request.query_params.get("limit", 50))
        except ValueError as exc:
            raise ValidationError({"limit": "Informe um inteiro"}) from exc
        flow = request.query_params.get("flow_type")
        logs = notification_query_bus.dispatch(
            ListNotificationLogsQuery(
                tenant_id=tenant_id,
                limit=limit,
                flow_type=_flow_type(request) if flow else None,
            )
        )
        return Response(NotificationLogSerializer(logs, many=True).data)


class NotificationTemplateListView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        tenant_id = require_current_tenant()
        templates = notification_query_bus.dispatch(
            ListTemplatesQuery(tenant_id=tenant_id, channel=request.query_params.get("channel") or None)
        )
        return Response(NotificationTemplateSerializer(templates, many=True).data)

    def post(self, request):
        tenant_id = require_current_tenant()
        params = NotificationTemplateSerializer(data=request.data)
        params.is_valid(raise_exception=True)
        template = notification_command_bus.dispatch(
            CreateTemplateCommand(tenant_id=tenant_id, payload=dict(params.validated_data))
        )
        return Response(NotificationTemplateSerializer(template).data, status=status.HTTP_201_CREATED)


class NotificationTemplateDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def put(self, request, template_id: int):
        return self._update(request, template_id)

    def patch(self, request, template_id: int):
        return self._update(request, template_id)

    def delete(self, request, template_id: int):
        tenant_id = require_current_tenant()
        notification_command_bus.dispatch(DeleteTemplateCommand(tenant_id=tenant_id, template_id=template_id))
        return Response(status=status.HTTP_204_NO_CONTENT)

    def _update(self, request, template_id: int):
        tenant_id = require_current_tenant()
        params = NotificationTemplateSerializer(data=request.data, partial=True)
        params.is_valid(raise_exception=True)
        template = notification_command_bus.dispatch(
            UpdateTemplateCommand(tenant_id=tenant_id, template_id=template_id, payload=dict(params.validated_data))
        )
        return Response(NotificationTemplateSerializer(template).data)
