from django.conf import settings
from django.urls import path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

from .views.billing_views import (
    AsaasWebhookView,
    ReceivableBillingView,
    ReceivableChargebackView,
    ReceivableRecheckView,
    ReceivableSettleView,
)
from .views.customer_views import CustomerDetailView, CustomerListView
from .views.health_views import HealthCheckView
from .views.notification_views import (
    CustomerBlockView,
    CustomerChannelView,
    NotificationDashboardView,
    NotificationDispatchView,
    NotificationLogListView,
    NotificationScheduleView,
    NotificationTemplateDetailView,
    NotificationTemplateListView,
)

swagger_permissions = [permissions.IsAdminUser] if not settings.DEBUG else [permissions.AllowAny]

schema_view = get_schema_view(
    openapi.Info(
        title="Planvita Billing",
        default_version="v1",
        description="Cobrança Asaas, status de plano e notificação recorrente",
        contact=openapi.Contact(email="suporte@planvita.com.br"),
        license=openapi.License(name="BSD License"),
    ),
    public=settings.DEBUG,
    permission_classes=swagger_permissions,
)

urlpatterns = [
    path("healthz/", HealthCheckView.as_view(), name="healthz"),

    # Asaas
    path("asaas/webhook/", AsaasWebhookView.as_view(), name="asaas-webhook"),
    path("receivables/<int:receivable_id>/billing/",    ReceivableBillingView.as_view(),    name="receivable-billing"),
    path("receivables/<int:receivable_id>/recheck/",    ReceivableRecheckView.as_view(),    name="receivable-recheck"),
    path("receivables/<int:receivable_id>/settle/",     ReceivableSettleView.as_view(),     name="receivable-settle"),
    path("receivables/<int:receivable_id>/chargeback/", ReceivableChargebackView.as_view(), name="receivable-chargeback"),

    # Titulares
    path("customers/",                   CustomerListView.as_view(),   name="customer-list"),
    path("customers/<int:customer_id>/", CustomerDetailView.as_view(), name="customer-detail"),

    # Notificação recorrente
    path("notifications/recurring/dashboard/", NotificationDashboardView.as_view(), name="recurring-dashboard"),
    path("notifications/recurring/dispatch/",  NotificationDispatchView.as_view(),  name="recurring-dispatch"),
    path("notifications/recurring/schedule/",  NotificationScheduleView.as_view(),  name="recurring-schedule"),
    path("notifications/recurring/logs/",      NotificationLogListView.as_view(),   name="recurring-logs"),
    path(
        "notifications/recurring/customers/<int:customer_id>/block/",
        CustomerBlockView.as_view(),
        name="recurring-customer-block",
    ),
    path(
        "notifications/recurring/customers/<int:customer_id>/channel/",
        CustomerChannelView.as_view(),
        name="recurring-customer-channel",
    ),
    path("notifications/templates/",                   NotificationTemplateListView.as_view(),   name="template-list"),
    path("notifications/templates/<int:template_id>/", NotificationTemplateDetailView.as_view(), name="template-detail"),

    path("swagger/",     schema_view.with_ui("swagger", cache_timeout=0), name="swagger-ui"),
    path("swagger.json", schema_view.without_ui(cache_timeout=0),         name="swagger-json"),
    path("redoc/",       schema_view.with_ui("redoc",   cache_timeout=0), name="redoc-ui"),
]
