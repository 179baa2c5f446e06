"""
Domínio → ORM

⚑ Titulares, contas a receber e vínculo com o Asaas (`asaas_*_id`)
⚑ Pagamentos / comissões idempotentes (UK por id do provedor e por titular)
⚑ Agenda, logs e templates da notificação recorrente (por tenant)

Cada tenant possui o próprio banco (alias em TENANT_DATABASES); as tabelas
de configuração carregam `tenant_id` mesmo assim.
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Index, UniqueConstraint


# ╭──────────────────────────────────────────────╮
# │ 1. Titulares / Vendedores                    │
# ╰──────────────────────────────────────────────╯
class Salesperson(models.Model):
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, null=True)
    referral_commission_value = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "salespeople"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class Customer(models.Model):
    class PlanStatus(models.TextChoices):
        ACTIVE = "ACTIVE", "Ativo"
        SUSPENDED = "SUSPENDED", "Suspenso"
        CANCELED = "CANCELED", "Cancelado"

    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True, null=True)
    phone = models.CharField(max_length=30, blank=True, null=True)
    cpf = models.CharField(max_length=14, blank=True, null=True)

    postal_code = models.CharField(max_length=9, blank=True, null=True)
    street = models.CharField(max_length=255, blank=True, null=True)
    number = models.CharField(max_length=20, blank=True, null=True)
    complement = models.CharField(max_length=255, blank=True, null=True)
    district = models.CharField(max_length=120, blank=True, null=True)
    city = models.CharField(max_length=120, blank=True, null=True)
    state = models.CharField(max_length=2, blank=True, null=True)

    asaas_customer_id = models.CharField(max_length=64, unique=True, blank=True, null=True)
    plan_status = models.CharField(
        max_length=20,
        choices=PlanStatus.choices,
        default=PlanStatus.ACTIVE,
        db_index=True,
    )
    notifications_blocked = models.BooleanField(default=False)
    notification_channel = models.CharField(max_length=20, blank=True, null=True)
    salesperson = models.ForeignKey(
        Salesperson,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="customers",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "customers"
        ordering = ["id"]

    def __str__(self) -> str:
        return f"{self.name} (#{self.pk})"


# ╭──────────────────────────────────────────────╮
# │ 2. Contas a receber / pagar                  │
# ╰──────────────────────────────────────────────╯
class Receivable(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        OVERDUE = "OVERDUE", "Vencido"
        RECEIVED = "RECEIVED", "Recebido"
        CANCELED = "CANCELED", "Cancelado"

    customer = models.ForeignKey(
        Customer,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="receivables",
    )
    description = models.CharField(max_length=255, blank=True, null=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    due_date = models.DateField(db_index=True)
    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True
    )
    received_at = models.DateTimeField(blank=True, null=True)

    asaas_payment_id = models.CharField(max_length=64, unique=True, blank=True, null=True)
    asaas_subscription_id = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    payment_method = models.CharField(max_length=30, blank=True, null=True)
    payment_url = models.URLField(max_length=500, blank=True, null=True)
    pix_qr_code = models.TextField(blank=True, null=True)
    pix_expiration = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "receivables"
        indexes = [
            Index(fields=["customer", "status"]),
        ]

    def __str__(self) -> str:
        return f"Receivable #{self.pk} {self.amount} ({self.status})"


class Payable(models.Model):
    class Status(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        PAID = "PAID", "Pago"
        CANCELED = "CANCELED", "Cancelado"

    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    due_date = models.DateField()
    supplier = models.CharField(max_length=255, blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    paid_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "payables"


# ╭──────────────────────────────────────────────╮
# │ 3. Pagamentos / Comissões                    │
# ╰──────────────────────────────────────────────╯
class Payment(models.Model):
    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name="payments")
    status = models.CharField(max_length=20)
    paid_at = models.DateTimeField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=30, blank=True, null=True)
    asaas_payment_id = models.CharField(max_length=64, unique=True, blank=True, null=True)
    asaas_subscription_id = models.CharField(max_length=64, blank=True, null=True)
    payment_url = models.URLField(max_length=500, blank=True, null=True)
    pix_qr_code = models.TextField(blank=True, null=True)
    pix_expiration = models.DateTimeField(blank=True, null=True)
    due_date = models.DateField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "payments"


class Commission(models.Model):
    class PaymentStatus(models.TextChoices):
        PENDING = "PENDING", "Pendente"
        PAID = "PAID", "Pago"

    salesperson = models.ForeignKey(
        Salesperson, on_delete=models.PROTECT, related_name="commissions"
    )
    # no máximo uma comissão de indicação por titular
    customer = models.OneToOneField(
        Customer, on_delete=models.CASCADE, related_name="commission"
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    generated_at = models.DateTimeField()
    payment_status = models.CharField(
        max_length=20, choices=PaymentStatus.choices, default=PaymentStatus.PENDING
    )
    payable = models.ForeignKey(
        Payable, on_delete=models.SET_NULL, blank=True, null=True, related_name="commissions"
    )

    class Meta:
        db_table = "commissions"


class FinancialAudit(models.Model):
    entity_type = models.CharField(max_length=40)
    entity_id = models.BigIntegerField()
    action = models.CharField(max_length=40)
    changes = models.JSONField(default=dict)
    performed_by = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "financial_audits"
        indexes = [Index(fields=["entity_type", "entity_id"])]


# ╭──────────────────────────────────────────────╮
# │ 4. Regras de negócio do tenant               │
# ╰──────────────────────────────────────────────╯
class BusinessRules(models.Model):
    tenant_id = models.CharField(max_length=64, unique=True)
    suspension_days = models.PositiveIntegerField(blank=True, null=True)
    due_reminder_days = models.PositiveIntegerField(blank=True, null=True)
    overdue_reminder_days = models.PositiveIntegerField(blank=True, null=True)
    overdue_repeat_days = models.PositiveIntegerField(blank=True, null=True)
    preventive_suspension_days = models.PositiveIntegerField(blank=True, null=True)
    post_suspension_days = models.PositiveIntegerField(blank=True, null=True)
    overdue_notice_channel = models.CharField(max_length=20, blank=True, null=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "business_rules"

    def __str__(self) -> str:
        return f"BusinessRules<{self.tenant_id}>"


# ╭──────────────────────────────────────────────╮
# │ 5. Notificação recorrente                    │
# ╰──────────────────────────────────────────────╯
class NotificationSchedule(models.Model):
    tenant_id = models.CharField(max_length=64, unique=True)
    frequency_minutes = models.PositiveIntegerField()
    next_run_at = models.DateTimeField()
    last_run_at = models.DateTimeField(blank=True, null=True)
    preferred_channel = models.CharField(max_length=20, blank=True, null=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "notification_schedules"


class NotificationLog(models.Model):
    class Status(models.TextChoices):
        SENT = "sent", "Enviado"
        SKIPPED = "skipped", "Ignorado"
        FAILED = "failed", "Falhou"

    tenant_id = models.CharField(max_length=64, db_index=True)
    schedule = models.ForeignKey(
        NotificationSchedule, on_delete=models.CASCADE, related_name="logs"
    )
    customer = models.ForeignKey(
        Customer, on_delete=models.SET_NULL, blank=True, null=True, related_name="notification_logs"
    )
    batch_id = models.CharField(max_length=80, db_index=True)
    channel = models.CharField(max_length=20)
    destination = models.CharField(max_length=255, blank=True, null=True)
    status = models.CharField(max_length=20, choices=Status.choices)
    reason = models.CharField(max_length=120, blank=True, null=True)
    payload = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "notification_logs"
        indexes = [Index(fields=["tenant_id", "status"])]


class NotificationTemplate(models.Model):
    tenant_id = models.CharField(max_length=64, db_index=True)
    name = models.CharField(max_length=120)
    channel = models.CharField(max_length=20)
    subject = models.CharField(max_length=255, blank=True, null=True)
    html_body = models.TextField(blank=True, null=True)
    text_body = models.TextField(blank=True, null=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "notification_templates"
        ordering = ["channel", "-created_at"]
        constraints = [
            UniqueConstraint(
                fields=["tenant_id", "channel", "name"],
                name="uq_notification_template_name",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} [{self.channel}]"
