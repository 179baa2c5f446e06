from rest_framework import serializers

from recurring_notification.core.domain.services.channel_policy import CHANNELS
from recurring_notification.core.domain.services.flow_types import FLOW_TYPES


# ───────────────────────────────────────────────
# Agendamento
# ───────────────────────────────────────────────
class NotificationScheduleSerializer(serializers.Serializer):
    id                = serializers.IntegerField()
    frequency_minutes = serializers.IntegerField()
    next_run_at       = serializers.DateTimeField()
    last_run_at       = serializers.DateTimeField(allow_null=True)
    preferred_channel = serializers.CharField(allow_null=True)
    active            = serializers.BooleanField()


class ScheduleUpdateSerializer(serializers.Serializer):
    frequency_minutes = serializers.IntegerField(required=False, min_value=1)
    next_run_at       = serializers.DateTimeField(required=False)
    preferred_channel = serializers.CharField(required=False)
    active            = serializers.BooleanField(required=False)


# ───────────────────────────────────────────────
# Destinatários / painel
# ───────────────────────────────────────────────
class OpenItemSerializer(serializers.Serializer):
    receivable_id = serializers.IntegerField()
    description   = serializers.CharField(allow_null=True)
    amount        = serializers.DecimalField(max_digits=12, decimal_places=2)
    due_date      = serializers.DateField()
    status        = serializers.CharField()
    days_overdue  = serializers.IntegerField()


class RecipientSerializer(serializers.Serializer):
    customer_id      = serializers.IntegerField()
    name             = serializers.CharField()
    email            = serializers.CharField(allow_null=True)
    phone            = serializers.CharField(allow_null=True)
    blocked          = serializers.BooleanField()
    channel          = serializers.CharField()
    has_contact      = serializers.BooleanField()
    total_due        = serializers.DecimalField(max_digits=14, decimal_places=2)
    nearest_due_date = serializers.DateField(allow_null=True)
    item_count       = serializers.IntegerField()
    items            = OpenItemSerializer(many=True)


class DashboardTotalsSerializer(serializers.Serializer):
    eligible   = serializers.IntegerField()
    blocked    = serializers.IntegerField()
    no_contact = serializers.IntegerField()
    open_items = serializers.IntegerField()


class DashboardSerializer(serializers.Serializer):
    schedule          = NotificationScheduleSerializer()
    seconds_remaining = serializers.IntegerField()
    preferred_channel = serializers.CharField()
    totals            = DashboardTotalsSerializer()
    recipients        = RecipientSerializer(many=True)


class DispatchInputSerializer(serializers.Serializer):
    force     = serializers.BooleanField(default=False)
    flow_type = serializers.ChoiceField(choices=FLOW_TYPES, default="pendencia-periodica")


class DispatchDetailSerializer(serializers.Serializer):
    customer_id = serializers.IntegerField()
    name        = serializers.CharField()
    status      = serializers.CharField()
    channel     = serializers.CharField()
    reason      = serializers.CharField(allow_null=True)


class DispatchResultSerializer(serializers.Serializer):
    sent     = serializers.IntegerField()
    skipped  = serializers.IntegerField()
    failed   = serializers.IntegerField()
    batch_id = serializers.CharField(allow_null=True)
    schedule = NotificationScheduleSerializer()
    details  = DispatchDetailSerializer(many=True)


class CustomerBlockSerializer(serializers.Serializer):
    blocked = serializers.BooleanField()


class CustomerChannelSerializer(serializers.Serializer):
    # canal desconhecido é aceito e normalizado para whatsapp
    channel = serializers.CharField()


# ───────────────────────────────────────────────
# Logs / templates
# ───────────────────────────────────────────────
class NotificationLogSerializer(serializers.Serializer):
    id          = serializers.IntegerField()
    schedule_id = serializers.IntegerField()
    customer_id = serializers.IntegerField(allow_null=True)
    batch_id    = serializers.CharField()
    channel     = serializers.CharField()
    destination = serializers.CharField(allow_null=True)
    status      = serializers.CharField()
    reason      = serializers.CharField(allow_null=True)
    payload     = serializers.CharField(allow_null=True)
    created_at  = serializers.DateTimeField()


class NotificationTemplateSerializer(serializers.Serializer):
    id         = serializers.IntegerField(read_only=True)
    name       = serializers.CharField(max_length=120)
    channel    = serializers.ChoiceField(choices=CHANNELS)
    subject    = serializers.CharField(required=False, allow_null=True, allow_blank=True, max_length=255)
    html_body  = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    text_body  = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    is_default = serializers.BooleanField(required=False, default=False)
    created_at = serializers.DateTimeField(read_only=True)
    updated_at = serializers.DateTimeField(read_only=True)
