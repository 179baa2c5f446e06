"""Conciliação com o Asaas: webhook, cobrança sob demanda, reconsulta, baixa e estorno."""

from decimal import Decimal
from unittest.mock import patch

from django.conf import settings
from django.test import TestCase, override_settings

from asaas_billing.adapters.api_clients.asaas_client import AsaasClient
from asaas_billing.adapters.config.composition_root import setup_di_container_from_settings
from asaas_billing.core.application.dtos.asaas_dtos import (
    AsaasCustomerDTO,
    AsaasPaymentDTO,
    AsaasPaymentListDTO,
    AsaasWebhookEventDTO,
)
from asaas_billing.core.application.services.billing_reconciler import RESULT_IGNORED, RESULT_UNMATCHED
from asaas_billing.core.domain.events.exceptions import (
    AsaasAPIError,
    IntegrationNotConfiguredError,
    InvalidTransitionError,
    MissingCustomerError,
    ProviderRecordNotFoundError,
)
from plugins.django_interface.models import Commission, Customer, FinancialAudit, Payable, Payment, Receivable
from tests.helpers.factories import make_customer, make_receivable, make_salesperson, set_rules

TENANT = "lider"


def webhook(event: str, payment_id: str = "pay_1", **payment) -> AsaasWebhookEventDTO:
    return AsaasWebhookEventDTO.model_validate(
        {"event": event, "payment": {"id": payment_id, **payment}}
    )


class BillingReconcilerTestCase(TestCase):
    def setUp(self) -> None:
        self.container = setup_di_container_from_settings(settings)
        self.reconciler = self.container.billing_reconciler(tenant_id=TENANT)
        self.salesperson = make_salesperson(commission="50.00")
        self.customer = make_customer(salesperson=self.salesperson)
        self.receivable = make_receivable(self.customer, days_overdue=5, asaas_payment_id="pay_1")


class ApplyWebhookTests(BillingReconcilerTestCase):
    def test_received_creates_payment_and_commission_once(self) -> None:
        event = webhook("PAYMENT_RECEIVED", value="150.00", billingType="PIX")

        first = self.reconciler.apply_webhook(event)
        second = self.reconciler.apply_webhook(event)

        self.assertTrue(first.matched)
        self.assertTrue(first.transitioned)
        self.assertFalse(second.transitioned)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "RECEIVED")
        self.assertIsNotNone(self.receivable.received_at)
        self.assertEqual(Payment.objects.filter(asaas_payment_id="pay_1").count(), 1)
        self.assertEqual(Commission.objects.filter(customer=self.customer).count(), 1)
        self.assertEqual(Payable.objects.count(), 1)
        self.assertEqual(Commission.objects.get().amount, Decimal("50.00"))

    def test_commission_is_generated_only_on_first_payment(self) -> None:
        make_receivable(self.customer, days_overdue=1, asaas_payment_id="pay_2")

        self.reconciler.apply_webhook(webhook("PAYMENT_RECEIVED"))
        self.reconciler.apply_webhook(webhook("PAYMENT_CONFIRMED", payment_id="pay_2"))

        self.assertEqual(Payment.objects.count(), 2)
        self.assertEqual(Commission.objects.count(), 1)

    def test_no_commission_without_salesperson_value(self) -> None:
        Customer.objects.filter(pk=self.customer.pk).update(salesperson=None)

        self.reconciler.apply_webhook(webhook("PAYMENT_RECEIVED"))

        self.assertEqual(Payment.objects.count(), 1)
        self.assertFalse(Commission.objects.exists())

    def test_unknown_reference_is_unmatched(self) -> None:
        result = self.reconciler.apply_webhook(webhook("PAYMENT_RECEIVED", payment_id="pay_404"))

        self.assertFalse(result.matched)
        self.assertEqual(result.status, RESULT_UNMATCHED)
        self.assertFalse(Payment.objects.exists())

    def test_falls_back_to_subscription_id(self) -> None:
        other = make_receivable(self.customer, asaas_subscription_id="sub_9")

        result = self.reconciler.apply_webhook(
            webhook("PAYMENT_OVERDUE", payment_id="pay_new", subscription="sub_9")
        )

        other.refresh_from_db()
        self.assertEqual(result.receivable_id, other.pk)
        self.assertEqual(other.status, "OVERDUE")
        self.assertEqual(other.asaas_payment_id, "pay_new")

    def test_subscription_fallback_prefers_open_receivable(self) -> None:
        settled = make_receivable(
            self.customer, days_overdue=40, asaas_subscription_id="sub_9", asaas_payment_id="pay_old", status="RECEIVED"
        )
        current = make_receivable(self.customer, asaas_subscription_id="sub_9")

        result = self.reconciler.apply_webhook(
            webhook("PAYMENT_OVERDUE", payment_id="pay_new", subscription="sub_9")
        )

        settled.refresh_from_db()
        current.refresh_from_db()
        self.assertEqual(result.receivable_id, current.pk)
        self.assertEqual(current.asaas_payment_id, "pay_new")
        self.assertEqual(settled.asaas_payment_id, "pay_old")
        self.assertEqual(settled.status, "RECEIVED")

    def test_canceled_receivable_ignores_later_events(self) -> None:
        Receivable.objects.filter(pk=self.receivable.pk).update(status="CANCELED")

        result = self.reconciler.apply_webhook(webhook("PAYMENT_RECEIVED"))

        self.assertTrue(result.matched)
        self.assertEqual(result.status, "CANCELED")
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "CANCELED")
        self.assertFalse(Payment.objects.exists())

    def test_unknown_event_keeps_status_and_updates_fields(self) -> None:
        result = self.reconciler.apply_webhook(
            webhook("PAYMENT_BANK_SLIP_VIEWED", invoiceUrl="https://asaas.test/i/pay_1")
        )

        self.assertEqual(result.status, "PENDING")
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.payment_url, "https://asaas.test/i/pay_1")

    def test_refund_cancels_receivable(self) -> None:
        self.reconciler.apply_webhook(webhook("PAYMENT_REFUNDED"))

        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "CANCELED")

    def test_status_change_resyncs_plan_after_commit(self) -> None:
        set_rules(TENANT, suspension_days=90)
        Customer.objects.filter(pk=self.customer.pk).update(plan_status="SUSPENDED")

        with self.captureOnCommitCallbacks(execute=True):
            self.reconciler.apply_webhook(webhook("PAYMENT_RECEIVED"))

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.plan_status, "ACTIVE")

    @override_settings(ASAAS_API_KEY="", ASAAS_TOKEN="")
    def test_disabled_tenant_is_ignored(self) -> None:
        reconciler = self.container.billing_reconciler(tenant_id=TENANT)

        result = reconciler.apply_webhook(webhook("PAYMENT_RECEIVED"))

        self.assertEqual(result.status, RESULT_IGNORED)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "PENDING")


class EnsurePaymentTests(BillingReconcilerTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.unlinked = make_receivable(self.customer, days_overdue=-5, description=None)

    @patch.object(AsaasClient, "create_payment")
    @patch.object(AsaasClient, "create_customer")
    def test_creates_customer_and_payment_lazily(self, create_customer, create_payment) -> None:
        create_customer.return_value = AsaasCustomerDTO(id="cus_1")
        create_payment.return_value = AsaasPaymentDTO(
            id="pay_77",
            billingType="PIX",
            invoiceUrl="https://asaas.test/i/pay_77",
            pixQrCode="000201...",
        )

        updated = self.reconciler.ensure_payment(self.unlinked.pk)

        self.assertEqual(updated.asaas_payment_id, "pay_77")
        self.assertEqual(updated.payment_url, "https://asaas.test/i/pay_77")
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.asaas_customer_id, "cus_1")

        customer_payload = create_customer.call_args.args[0]
        self.assertEqual(customer_payload["cpfCnpj"], "12345678909")
        self.assertEqual(customer_payload["mobilePhone"], "11988887777")
        payment_payload = create_payment.call_args.args[0]
        self.assertEqual(payment_payload["customer"], "cus_1")
        self.assertEqual(payment_payload["billingType"], "PIX")
        self.assertEqual(payment_payload["value"], 150.0)
        self.assertEqual(payment_payload["description"], f"Conta Receber #{self.unlinked.pk}")

    @patch.object(AsaasClient, "create_payment")
    def test_linked_receivable_is_returned_untouched(self, create_payment) -> None:
        result = self.reconciler.ensure_payment(self.receivable.pk)

        self.assertEqual(result.asaas_payment_id, "pay_1")
        create_payment.assert_not_called()

    @patch.object(AsaasClient, "create_payment")
    def test_force_regenerates_payment(self, create_payment) -> None:
        Customer.objects.filter(pk=self.customer.pk).update(asaas_customer_id="cus_1")
        create_payment.return_value = AsaasPaymentDTO(id="pay_2", billingType="BOLETO")

        result = self.reconciler.ensure_payment(self.receivable.pk, billing_type="BOLETO", force=True)

        self.assertEqual(result.asaas_payment_id, "pay_2")
        self.assertEqual(result.payment_method, "BOLETO")

    def test_receivable_without_customer_raises(self) -> None:
        orphan = make_receivable(None)

        with self.assertRaises(MissingCustomerError):
            self.reconciler.ensure_payment(orphan.pk)

    @patch.object(AsaasClient, "create_payment")
    @patch.object(AsaasClient, "create_customer")
    def test_customer_creation_failure_skips_payment(self, create_customer, create_payment) -> None:
        create_customer.side_effect = AsaasAPIError(400, "invalid cpf", method="POST", path="/customers")

        result = self.reconciler.ensure_payment(self.unlinked.pk)

        self.assertIsNone(result.asaas_payment_id)
        create_payment.assert_not_called()


class RefreshPaymentStatusTests(BillingReconcilerTestCase):
    @patch.object(AsaasClient, "get_payment_by_id")
    def test_applies_provider_status(self, get_payment) -> None:
        get_payment.return_value = AsaasPaymentDTO(id="pay_1", status="CONFIRMED", value=Decimal("150.00"))

        result = self.reconciler.refresh_payment_status(self.receivable.pk)

        self.assertEqual(result.status, "RECEIVED")
        self.assertEqual(Payment.objects.count(), 1)

    @patch.object(AsaasClient, "list_payments")
    @patch.object(AsaasClient, "get_payment_by_id")
    def test_falls_back_to_listing(self, get_payment, list_payments) -> None:
        get_payment.side_effect = AsaasAPIError(404, "not found", method="GET", path="/payments/pay_1")
        list_payments.return_value = AsaasPaymentListDTO(
            data=[AsaasPaymentDTO(id="pay_9", status="OVERDUE", subscription="sub_1")]
        )

        result = self.reconciler.refresh_payment_status(self.receivable.pk)

        self.assertEqual(result.asaas_payment_id, "pay_9")
        self.assertEqual(result.asaas_subscription_id, "sub_1")
        self.assertEqual(result.status, "OVERDUE")
        self.assertEqual(list_payments.call_args.kwargs["limit"], 1)

    @patch.object(AsaasClient, "list_payments")
    @patch.object(AsaasClient, "get_payment_by_id")
    def test_nothing_found_raises(self, get_payment, list_payments) -> None:
        get_payment.side_effect = AsaasAPIError(404, "not found")
        list_payments.return_value = AsaasPaymentListDTO(data=[])

        with self.assertRaises(ProviderRecordNotFoundError):
            self.reconciler.refresh_payment_status(self.receivable.pk)

    @patch.object(AsaasClient, "list_payments")
    @patch.object(AsaasClient, "get_payment_by_id")
    def test_unlinked_receivable_is_found_by_external_reference(self, get_payment, list_payments) -> None:
        unlinked = make_receivable(self.customer)
        list_payments.return_value = AsaasPaymentListDTO(
            data=[AsaasPaymentDTO(id="pay_x", status="RECEIVED", value=Decimal("150.00"))]
        )

        result = self.reconciler.refresh_payment_status(unlinked.pk)

        get_payment.assert_not_called()
        self.assertEqual(list_payments.call_args.kwargs["externalReference"], f"conta-receber-{unlinked.pk}")
        self.assertIsNone(list_payments.call_args.kwargs["subscription"])
        self.assertEqual(result.asaas_payment_id, "pay_x")
        self.assertEqual(result.status, "RECEIVED")
        self.assertTrue(Payment.objects.filter(asaas_payment_id="pay_x").exists())

    @patch.object(AsaasClient, "list_payments")
    def test_unlinked_receivable_missing_at_provider(self, list_payments) -> None:
        unlinked = make_receivable(self.customer)
        list_payments.return_value = AsaasPaymentListDTO(data=[])

        with self.assertRaises(ProviderRecordNotFoundError):
            self.reconciler.refresh_payment_status(unlinked.pk)

    @override_settings(ASAAS_API_KEY="", ASAAS_TOKEN="")
    def test_disabled_tenant_raises(self) -> None:
        reconciler = self.container.billing_reconciler(tenant_id=TENANT)

        with self.assertRaises(IntegrationNotConfiguredError):
            reconciler.refresh_payment_status(self.receivable.pk)


class SettleAndChargebackTests(BillingReconcilerTestCase):
    def test_manual_settle_without_provider_creates_manual_payment(self) -> None:
        manual = make_receivable(self.customer)

        result = self.reconciler.settle(manual.pk, performed_by="operador")

        self.assertEqual(result.status, "RECEIVED")
        payment = Payment.objects.get()
        self.assertIsNone(payment.asaas_payment_id)
        self.assertEqual(payment.payment_method, "MANUAL")
        self.assertEqual(Commission.objects.count(), 1)
        audit = FinancialAudit.objects.get(action="settle")
        self.assertEqual(audit.performed_by, "operador")
        self.assertEqual(audit.changes["status"], ["PENDING", "RECEIVED"])

    def test_settle_is_idempotent(self) -> None:
        self.reconciler.settle(self.receivable.pk)
        self.reconciler.settle(self.receivable.pk)

        self.assertEqual(Payment.objects.count(), 1)
        self.assertEqual(FinancialAudit.objects.filter(action="settle").count(), 1)

    def test_chargeback_only_from_received(self) -> None:
        with self.assertRaises(InvalidTransitionError):
            self.reconciler.chargeback(self.receivable.pk)

        self.reconciler.settle(self.receivable.pk)
        result = self.reconciler.chargeback(self.receivable.pk, performed_by="operador")

        self.assertEqual(result.status, "CANCELED")
        self.assertIsNone(result.received_at)
        self.assertTrue(FinancialAudit.objects.filter(action="chargeback").exists())


class SyncOnWriteTests(BillingReconcilerTestCase):
    @patch.object(AsaasClient, "update_payment")
    def test_update_is_best_effort(self, update_payment) -> None:
        update_payment.side_effect = AsaasAPIError(500, "boom")

        self.assertFalse(self.reconciler.sync_payment_update(self.receivable.pk, {"value": 10}))

    @patch.object(AsaasClient, "delete_payment")
    def test_delete_only_for_linked(self, delete_payment) -> None:
        unlinked = make_receivable(self.customer)

        self.assertFalse(self.reconciler.sync_payment_deletion(unlinked.pk))
        self.assertTrue(self.reconciler.sync_payment_deletion(self.receivable.pk))
        delete_payment.assert_called_once_with("pay_1")
