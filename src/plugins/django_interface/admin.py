"""
Admin site registry
-------------------
Registra os modelos de cobrança / notificação de forma dinâmica.
"""

import structlog
from django.contrib import admin as django_admin

from . import models

logger = structlog.get_logger(__name__)

# ╭──────────────────────────────────────────────╮
# │ Configuração de cada ModelAdmin             │
# ╰──────────────────────────────────────────────╯
MODEL_ADMIN_REGISTRY: dict[type[models.models.Model], dict] = {
    # 1. Titulares
    models.Salesperson: dict(
        list_display=("name", "email", "referral_commission_value"),
        search_fields=("name", "email"),
    ),
    models.Customer: dict(
        list_display=("id", "name", "plan_status", "asaas_customer_id", "notifications_blocked"),
        list_filter=("plan_status", "notifications_blocked"),
        search_fields=("name", "cpf", "email"),
    ),
    # 2. Financeiro
    models.Receivable: dict(
        list_display=("id", "customer", "amount", "due_date", "status", "asaas_payment_id"),
        list_filter=("status",),
        search_fields=("asaas_payment_id", "asaas_subscription_id"),
    ),
    models.Payable: dict(
        list_display=("description", "amount", "due_date", "status"),
        list_filter=("status",),
    ),
    models.Payment: dict(
        list_display=("customer", "amount", "paid_at", "asaas_payment_id"),
        search_fields=("asaas_payment_id",),
    ),
    models.Commission: dict(
        list_display=("customer", "salesperson", "amount", "payment_status"),
        list_filter=("payment_status",),
    ),
    models.FinancialAudit: dict(
        list_display=("entity_type", "entity_id", "action", "performed_by", "created_at"),
        list_filter=("entity_type", "action"),
    ),
    # 3. Regras / Notificações
    models.BusinessRules: dict(
        list_display=("tenant_id", "suspension_days", "overdue_notice_channel"),
    ),
    models.NotificationSchedule: dict(
        list_display=("tenant_id", "frequency_minutes", "next_run_at", "last_run_at", "active"),
        list_filter=("active",),
    ),
    models.NotificationLog: dict(
        list_display=("tenant_id", "batch_id", "channel", "status", "reason", "created_at"),
        list_filter=("tenant_id", "status", "channel"),
    ),
    models.NotificationTemplate: dict(
        list_display=("tenant_id", "name", "channel", "is_default"),
        list_filter=("tenant_id", "channel", "is_default"),
    ),
}

# ╭──────────────────────────────────────────────╮
# │ Registro dinâmico                           │
# ╰──────────────────────────────────────────────╯
for model, opts in MODEL_ADMIN_REGISTRY.items():
    admin_class = type(f"{model.__name__}Admin", (django_admin.ModelAdmin,), opts)
    django_admin.site.register(model, admin_class)
    logger.debug("Registered model in admin", model=model.__name__)
