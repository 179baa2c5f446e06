from unittest.mock import patch

from django.test import TestCase, override_settings

from planvita_api import tasks
from plugins.django_interface.models import Customer
from recurring_notification.adapters.api_clients.notification_api_client import (
    DispatchOutcome,
    NotificationApiClient,
)
from tests.helpers.factories import make_customer, make_receivable, set_rules


class PlanStatusTaskTests(TestCase):
    def test_sync_for_tenant(self) -> None:
        set_rules("lider", suspension_days=30)
        customer = make_customer()
        make_receivable(customer, days_overdue=31)

        result = tasks.sync_plan_status_for_tenant.apply(args=["lider"]).get()

        self.assertEqual(result["suspended"], 1)
        self.assertEqual(Customer.objects.get(pk=customer.pk).plan_status, "SUSPENDED")

    @override_settings(PLANVITA_TENANTS=["lider", "", "pax"])
    def test_fan_out_per_tenant(self) -> None:
        with patch.object(tasks.sync_plan_status_for_tenant, "delay") as delay:
            tasks.schedule_plan_status_sync.apply()

        self.assertEqual([c.args for c in delay.call_args_list], [("lider",), ("pax",)])


@patch.object(NotificationApiClient, "send", return_value=DispatchOutcome(success=True, status_code=200))
class RecurringNotificationTaskTests(TestCase):
    def test_not_due_sends_nothing(self, send) -> None:
        make_receivable(make_customer(), days_overdue=3)

        result = tasks.dispatch_recurring_notifications_for_tenant.apply(args=["lider"]).get()

        self.assertEqual(result, {"sent": 0, "skipped": 0, "failed": 0})
        send.assert_not_called()

    def test_fan_out_per_tenant(self, send) -> None:
        with patch.object(tasks.dispatch_recurring_notifications_for_tenant, "delay") as delay:
            tasks.schedule_recurring_notifications.apply()

        self.assertEqual([c.args for c in delay.call_args_list], [("lider",), ("pax",)])
