from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from plugins.django_interface.models import NotificationLog, NotificationTemplate
from recurring_notification.adapters.api_clients.notification_api_client import (
    DispatchOutcome,
    NotificationApiClient,
)
from tests.helpers.factories import make_customer, make_receivable

TENANT = {"HTTP_X_TENANT": "lider"}


@patch.object(NotificationApiClient, "send", return_value=DispatchOutcome(success=True, status_code=200))
class RecurringNotificationApiTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.client.force_authenticate(get_user_model().objects.create_user("operador", password="x"))
        self.customer = make_customer()
        make_receivable(self.customer, days_overdue=4)

    def test_dashboard(self, send) -> None:
        resp = self.client.get(reverse("recurring-dashboard"), **TENANT)

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["totals"]["eligible"], 1)
        self.assertEqual(body["recipients"][0]["items"][0]["days_overdue"], 4)
        send.assert_not_called()

    def test_dashboard_rejects_unknown_flow(self, send) -> None:
        resp = self.client.get(reverse("recurring-dashboard"), {"flow_type": "nope"}, **TENANT)

        self.assertEqual(resp.status_code, 400)

    def test_dispatch_respects_schedule_unless_forced(self, send) -> None:
        idle = self.client.post(reverse("recurring-dispatch"), {}, format="json", **TENANT)
        forced = self.client.post(reverse("recurring-dispatch"), {"force": True}, format="json", **TENANT)

        self.assertEqual(idle.json()["sent"], 0)
        self.assertIsNone(idle.json()["batch_id"])
        self.assertEqual(forced.json()["sent"], 1)
        self.assertEqual(NotificationLog.objects.count(), 1)

    def test_schedule_patch(self, send) -> None:
        resp = self.client.patch(
            reverse("recurring-schedule"), {"frequency_minutes": 30, "active": False}, format="json", **TENANT
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["frequency_minutes"], 30)
        self.assertFalse(resp.json()["active"])

    def test_schedule_patch_rejects_zero_frequency(self, send) -> None:
        resp = self.client.patch(reverse("recurring-schedule"), {"frequency_minutes": 0}, format="json", **TENANT)

        self.assertEqual(resp.status_code, 400)

    def test_block_and_channel(self, send) -> None:
        block = self.client.patch(
            reverse("recurring-customer-block", args=[self.customer.pk]), {"blocked": True}, format="json", **TENANT
        )
        channel = self.client.patch(
            reverse("recurring-customer-channel", args=[self.customer.pk]), {"channel": "email"}, format="json", **TENANT
        )

        self.assertTrue(block.json()["blocked"])
        self.assertEqual(channel.json()["channel"], "email")
        self.assertEqual(channel.json()["item_count"], 1)

    def test_block_unknown_customer_is_404(self, send) -> None:
        resp = self.client.patch(
            reverse("recurring-customer-block", args=[999_999]), {"blocked": True}, format="json", **TENANT
        )

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "recipient_not_found")

    def test_logs(self, send) -> None:
        self.client.post(reverse("recurring-dispatch"), {"force": True}, format="json", **TENANT)

        resp = self.client.get(reverse("recurring-logs"), {"limit": 5}, **TENANT)
        bad = self.client.get(reverse("recurring-logs"), {"limit": "x"}, **TENANT)

        self.assertEqual(len(resp.json()), 1)
        self.assertEqual(resp.json()[0]["status"], "sent")
        self.assertEqual(bad.status_code, 400)

    def test_template_crud(self, send) -> None:
        created = self.client.post(
            reverse("template-list"),
            {"name": "padrão", "channel": "whatsapp", "text_body": "Oi {{ nomeCliente }}", "is_default": True},
            format="json",
            **TENANT,
        )
        self.assertEqual(created.status_code, 201)
        template_id = created.json()["id"]

        updated = self.client.patch(
            reverse("template-detail", args=[template_id]), {"text_body": "Olá"}, format="json", **TENANT
        )
        self.assertEqual(updated.json()["text_body"], "Olá")
        self.assertEqual(len(self.client.get(reverse("template-list"), {"channel": "whatsapp"}, **TENANT).json()), 1)

        deleted = self.client.delete(reverse("template-detail", args=[template_id]), **TENANT)
        self.assertEqual(deleted.status_code, 204)
        self.assertFalse(NotificationTemplate.objects.exists())

        missing = self.client.delete(reverse("template-detail", args=[template_id]), **TENANT)
        self.assertEqual(missing.status_code, 404)

    def test_template_rejects_unknown_channel(self, send) -> None:
        resp = self.client.post(
            reverse("template-list"), {"name": "x", "channel": "sms"}, format="json", **TENANT
        )

        self.assertEqual(resp.status_code, 400)
