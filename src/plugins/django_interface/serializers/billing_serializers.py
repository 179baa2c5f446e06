# =========================================================
# Serializers compatíveis com as *entities* (dataclasses),
# não com os modelos Django.
# =========================================================
from rest_framework import serializers


# ───────────────────────────────────────────────
# Titulares
# ───────────────────────────────────────────────
class CustomerSerializer(serializers.Serializer):
    id                    = serializers.IntegerField()
    name                  = serializers.CharField()
    email                 = serializers.CharField(allow_null=True)
    phone                 = serializers.CharField(allow_null=True)
    cpf                   = serializers.CharField(allow_null=True)
    city                  = serializers.CharField(allow_null=True)
    state                 = serializers.CharField(allow_null=True)
    asaas_customer_id     = serializers.CharField(allow_null=True)
    plan_status           = serializers.CharField()
    notifications_blocked = serializers.BooleanField()
    notification_channel  = serializers.CharField(allow_null=True)
    salesperson_id        = serializers.IntegerField(allow_null=True)


# ───────────────────────────────────────────────
# Contas a receber
# ───────────────────────────────────────────────
class ReceivableSerializer(serializers.Serializer):
    id                    = serializers.IntegerField()
    customer_id           = serializers.IntegerField(allow_null=True)
    description           = serializers.CharField(allow_null=True)
    amount                = serializers.DecimalField(max_digits=12, decimal_places=2)
    due_date              = serializers.DateField()
    status                = serializers.CharField()
    received_at           = serializers.DateTimeField(allow_null=True)
    asaas_payment_id      = serializers.CharField(allow_null=True)
    asaas_subscription_id = serializers.CharField(allow_null=True)
    payment_method        = serializers.CharField(allow_null=True)
    payment_url           = serializers.CharField(allow_null=True)
    pix_qr_code           = serializers.CharField(allow_null=True)
    pix_expiration        = serializers.DateTimeField(allow_null=True)


class EnsurePaymentInputSerializer(serializers.Serializer):
    billing_type = serializers.ChoiceField(choices=["PIX", "BOLETO", "CREDIT_CARD", "UNDEFINED"], default="PIX")
    force        = serializers.BooleanField(default=False)


class SettleInputSerializer(serializers.Serializer):
    received_at = serializers.DateTimeField(required=False, allow_null=True)
