"""Notificação recorrente: agendamento, lote de envio, preferências e templates."""

import json
from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone

from plugins.django_interface.models import Customer, NotificationLog, NotificationTemplate
from recurring_notification.adapters.api_clients.notification_api_client import (
    DispatchOutcome,
    NotificationApiClient,
)
from recurring_notification.adapters.config.composition_root import setup_di_container_from_settings
from recurring_notification.core.domain.events.exceptions import RecipientNotFoundError, TemplateNotFoundError
from recurring_notification.core.domain.services.flow_types import OVERDUE_NOTICE
from tests.helpers.factories import make_customer, make_receivable, set_rules

OK = DispatchOutcome(success=True, status_code=200)


class SchedulerTestCase(TestCase):
    def setUp(self) -> None:
        self.container = setup_di_container_from_settings(settings)
        self.scheduler = self.container.notification_scheduler(tenant_id="lider")
        send_patcher = patch.object(NotificationApiClient, "send", return_value=OK)
        self.send = send_patcher.start()
        self.addCleanup(send_patcher.stop)


class ScheduleTests(SchedulerTestCase):
    def test_schedule_created_from_rules_without_immediate_run(self) -> None:
        set_rules("lider", overdue_repeat_days=3, overdue_notice_channel="email")

        schedule = self.scheduler.ensure_schedule()

        self.assertEqual(schedule.frequency_minutes, 3 * 24 * 60)
        self.assertEqual(schedule.preferred_channel, "email")
        self.assertIsNotNone(schedule.last_run_at)
        self.assertGreater(schedule.next_run_at, timezone.now())

    def test_schedule_is_single_per_tenant(self) -> None:
        first = self.scheduler.ensure_schedule()
        again = self.container.notification_scheduler(tenant_id="lider").ensure_schedule()

        self.assertEqual(first.id, again.id)

    def test_not_due_is_noop(self) -> None:
        make_receivable(make_customer(), days_overdue=5)

        result = self.scheduler.dispatch_due()

        self.assertEqual((result.sent, result.skipped, result.failed), (0, 0, 0))
        self.assertIsNone(result.batch_id)
        self.send.assert_not_called()
        self.assertFalse(NotificationLog.objects.exists())

    def test_inactive_schedule_only_runs_when_forced(self) -> None:
        make_receivable(make_customer(), days_overdue=5)
        self.scheduler.update_schedule(active=False, next_run_at=timezone.now() - timedelta(minutes=1))

        idle = self.scheduler.dispatch_due()
        forced = self.scheduler.dispatch_due(force=True)

        self.assertIsNone(idle.batch_id)
        self.assertEqual(forced.sent, 1)

    def test_update_schedule_recomputes_next_run_and_normalizes_channel(self) -> None:
        before = timezone.now()

        schedule = self.scheduler.update_schedule(frequency_minutes=60, preferred_channel="sms")

        self.assertEqual(schedule.frequency_minutes, 60)
        self.assertEqual(schedule.preferred_channel, "whatsapp")
        self.assertGreaterEqual(schedule.next_run_at, before + timedelta(minutes=60))


class DispatchTests(SchedulerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.maria = make_customer()
        self.late = make_receivable(self.maria, days_overdue=5, amount="1234.56")
        make_receivable(self.maria, days_overdue=2)

    def test_forced_run_writes_one_batch(self) -> None:
        blocked = make_customer("Bloqueado", notifications_blocked=True)
        make_receivable(blocked, days_overdue=3)
        no_contact = make_customer("Sem contato", email=None, phone=None)
        make_receivable(no_contact, days_overdue=3)
        on_time = make_customer("Em dia")
        make_receivable(on_time, days_overdue=0)

        result = self.scheduler.dispatch_due(force=True)

        self.assertEqual((result.sent, result.skipped, result.failed), (1, 2, 0))
        reasons = {d.name: d.reason for d in result.details}
        self.assertEqual(reasons, {"Maria Silva": None, "Bloqueado": "blocked", "Sem contato": "no_contact"})

        logs = NotificationLog.objects.all()
        self.assertEqual(logs.count(), 3)
        self.assertEqual({log.batch_id for log in logs}, {result.batch_id})

        channel, payload = self.send.call_args.args
        self.assertEqual(channel, "whatsapp")
        self.assertEqual(payload["to"], "(11) 98888-7777")
        self.assertEqual(payload["metadata"]["quantidadeCobrancas"], 2)
        self.assertIn("R$ 1.234,56", payload["message"])

    def test_run_advances_schedule(self) -> None:
        before = timezone.now()

        result = self.scheduler.dispatch_due(force=True)

        self.assertGreaterEqual(result.schedule.last_run_at, before)
        self.assertEqual(
            result.schedule.next_run_at,
            result.schedule.last_run_at + timedelta(minutes=result.schedule.frequency_minutes),
        )

    def test_items_sorted_by_due_date_in_log_payload(self) -> None:
        self.scheduler.dispatch_due(force=True)

        payload = json.loads(NotificationLog.objects.get().payload)
        self.assertEqual(payload["tipo"], "pendencia-periodica")
        self.assertEqual(payload["cobrancas"][0]["contaId"], self.late.pk)

    def test_provider_failure_is_counted(self) -> None:
        self.send.return_value = DispatchOutcome(success=False, status_code=500, error="http_500")

        result = self.scheduler.dispatch_due(force=True)

        self.assertEqual(result.failed, 1)
        log = NotificationLog.objects.get()
        self.assertEqual(log.status, "failed")
        self.assertEqual(log.reason, "http_500")
        self.assertEqual(json.loads(log.payload)["providerResponse"]["status"], 500)

    def test_customer_channel_beats_schedule_channel(self) -> None:
        Customer.objects.filter(pk=self.maria.pk).update(notification_channel="email")

        self.scheduler.dispatch_due(force=True)

        channel, payload = self.send.call_args.args
        self.assertEqual(channel, "email")
        self.assertEqual(payload["to"], "maria@example.com")
        self.assertEqual(payload["subject"], "Cobrança pendente")
        self.assertIn("<a href=", payload["html"])

    def test_email_channel_without_email_is_skipped(self) -> None:
        Customer.objects.filter(pk=self.maria.pk).update(notification_channel="email", email="")

        result = self.scheduler.dispatch_due(force=True)

        self.send.assert_not_called()
        self.assertEqual((result.sent, result.skipped), (0, 1))
        self.assertEqual(result.details[0].reason, "no_contact")
        self.assertEqual(NotificationLog.objects.get().reason, "no_contact")

    def test_unknown_customer_channel_falls_through_to_schedule(self) -> None:
        Customer.objects.filter(pk=self.maria.pk).update(notification_channel="sms")
        self.scheduler.update_schedule(preferred_channel="email")

        self.scheduler.dispatch_due(force=True)

        channel, payload = self.send.call_args.args
        self.assertEqual(channel, "email")
        self.assertEqual(payload["to"], "maria@example.com")

    def test_default_template_is_used(self) -> None:
        self.scheduler.create_template(
            name="curto", channel="whatsapp", text_body="Oi {{ nomeCliente }}: {{ valor }}", is_default=True
        )

        self.scheduler.dispatch_due(force=True)

        self.assertEqual(self.send.call_args.args[1]["message"], "Oi Maria Silva: R$ 1.234,56")

    def test_one_shot_flow_does_not_repeat(self) -> None:
        first = self.scheduler.dispatch_due(force=True, flow_type=OVERDUE_NOTICE)
        second = self.scheduler.dispatch_due(force=True, flow_type=OVERDUE_NOTICE)

        self.assertEqual(first.sent, 1)
        self.assertEqual(second.sent, 0)
        self.assertEqual(self.send.call_count, 1)

    def test_periodic_flow_repeats(self) -> None:
        self.scheduler.dispatch_due(force=True)
        self.scheduler.dispatch_due(force=True)

        self.assertEqual(self.send.call_count, 2)

    def test_failed_one_shot_is_retried_next_run(self) -> None:
        self.send.return_value = DispatchOutcome(success=False, status_code=503, error="http_503")
        self.scheduler.dispatch_due(force=True, flow_type=OVERDUE_NOTICE)
        self.send.return_value = OK

        result = self.scheduler.dispatch_due(force=True, flow_type=OVERDUE_NOTICE)

        self.assertEqual(result.sent, 1)

    def test_logs_are_capped_and_filtered(self) -> None:
        self.scheduler.dispatch_due(force=True)
        self.scheduler.dispatch_due(force=True, flow_type=OVERDUE_NOTICE)

        self.assertEqual(len(self.scheduler.get_logs(limit=1)), 1)
        self.assertEqual(len(self.scheduler.get_logs(limit=10_000)), 2)
        only = self.scheduler.get_logs(flow_type=OVERDUE_NOTICE)
        self.assertEqual(len(only), 1)
        self.assertIn('"tipo": "aviso-pendencia"', only[0].payload)

    def test_dashboard_totals(self) -> None:
        make_receivable(make_customer("Bloqueado", notifications_blocked=True), days_overdue=4)

        dashboard = self.scheduler.get_dashboard()

        self.assertEqual(dashboard.totals.eligible, 1)
        self.assertEqual(dashboard.totals.blocked, 1)
        self.assertEqual(dashboard.totals.open_items, 3)
        self.assertGreater(dashboard.seconds_remaining, 0)
        self.assertEqual(dashboard.preferred_channel, "whatsapp")

    def test_management_command(self) -> None:
        out = StringIO()

        call_command("dispatch_recurring_notifications", "--tenant", "LIDER", "--force", stdout=out)

        self.assertIn("[lider] enviados=1", out.getvalue())


class PreferenceTests(SchedulerTestCase):
    def test_block_customer(self) -> None:
        customer = make_customer()
        make_receivable(customer, days_overdue=3)

        recipient = self.scheduler.update_customer_block(customer.pk, True)

        self.assertTrue(recipient.blocked)
        self.assertEqual(recipient.item_count, 1)
        customer.refresh_from_db()
        self.assertTrue(customer.notifications_blocked)

    def test_customer_without_open_items_comes_back_empty(self) -> None:
        customer = make_customer()

        recipient = self.scheduler.update_customer_channel(customer.pk, "EMAIL")

        self.assertEqual(recipient.channel, "email")
        self.assertEqual(recipient.items, [])

    def test_unknown_customer(self) -> None:
        with self.assertRaises(RecipientNotFoundError):
            self.scheduler.update_customer_block(999_999, True)


class TemplateTests(SchedulerTestCase):
    def test_single_default_per_channel(self) -> None:
        first = self.scheduler.create_template(name="a", channel="whatsapp", text_body="A", is_default=True)
        second = self.scheduler.create_template(name="b", channel="whatsapp", text_body="B", is_default=True)
        self.scheduler.create_template(name="c", channel="email", subject="C", is_default=True)

        self.assertEqual(self.scheduler.get_default_template("whatsapp").id, second.id)
        self.assertFalse(NotificationTemplate.objects.get(pk=first.id).is_default)
        self.assertTrue(NotificationTemplate.objects.get(name="c").is_default)

        self.scheduler.update_template(first.id, is_default=True)
        self.assertEqual(self.scheduler.get_default_template("whatsapp").id, first.id)

    def test_list_by_channel(self) -> None:
        self.scheduler.create_template(name="a", channel="whatsapp", text_body="A")
        self.scheduler.create_template(name="b", channel="email", subject="B")

        self.assertEqual([t.name for t in self.scheduler.list_templates("email")], ["b"])
        self.assertEqual(len(self.scheduler.list_templates()), 2)

    def test_templates_are_per_tenant(self) -> None:
        template = self.scheduler.create_template(name="a", channel="whatsapp", text_body="A")
        other = self.container.notification_scheduler(tenant_id="pax")

        self.assertEqual(other.list_templates(), [])
        with self.assertRaises(TemplateNotFoundError):
            other.delete_template(template.id)

    def test_delete_missing(self) -> None:
        with self.assertRaises(TemplateNotFoundError):
            self.scheduler.delete_template(999_999)
