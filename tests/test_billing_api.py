"""Camada HTTP: webhook do Asaas, ações sobre contas e leitura de titulares."""

import hashlib
import hmac
import json
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework.test import APIClient

from asaas_billing.adapters.api_clients.asaas_client import AsaasClient
from asaas_billing.core.application.dtos.asaas_dtos import AsaasPaymentDTO, AsaasPaymentListDTO
from plugins.django_interface.models import Customer, FinancialAudit, Payment, Receivable
from tests.helpers.factories import make_customer, make_receivable, set_rules

SECRET = "test-webhook-secret"


def signed(body: dict) -> tuple[str, str]:
    raw = json.dumps(body)
    return raw, hmac.new(SECRET.encode(), raw.encode(), hashlib.sha256).hexdigest()


class AsaasWebhookViewTests(TestCase):
    def setUp(self) -> None:
        self.client = APIClient()
        self.url = reverse("asaas-webhook")
        self.customer = make_customer()
        self.receivable = make_receivable(self.customer, asaas_payment_id="pay_1")
        self.body = {"event": "PAYMENT_RECEIVED", "payment": {"id": "pay_1", "value": 150.0}}

    def post(self, raw: str, **headers):
        return self.client.post(self.url, data=raw, content_type="application/json", **headers)

    def test_signed_event_is_applied(self) -> None:
        raw, signature = signed(self.body)

        resp = self.post(raw, HTTP_X_TENANT="lider", HTTP_X_SIGNATURE=signature)

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"ok": True})
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "RECEIVED")

    def test_duplicate_delivery_is_idempotent(self) -> None:
        raw, signature = signed(self.body)

        for _ in range(2):
            resp = self.post(raw, HTTP_X_TENANT="lider", HTTP_ASAAS_SIGNATURE=signature)
            self.assertEqual(resp.status_code, 200)

        self.assertEqual(Payment.objects.count(), 1)

    def test_tenant_from_body(self) -> None:
        raw, signature = signed({**self.body, "tenant": "LIDER"})

        resp = self.post(raw, HTTP_X_HUB_SIGNATURE=signature)

        self.assertEqual(resp.status_code, 200)

    def test_missing_tenant_is_400(self) -> None:
        raw, signature = signed(self.body)

        resp = self.post(raw, HTTP_X_SIGNATURE=signature)

        self.assertEqual(resp.status_code, 400)

    def test_invalid_signature_is_401(self) -> None:
        raw, _ = signed(self.body)

        resp = self.post(raw, HTTP_X_TENANT="lider", HTTP_X_SIGNATURE="deadbeef")

        self.assertEqual(resp.status_code, 401)
        self.receivable.refresh_from_db()
        self.assertEqual(self.receivable.status, "PENDING")

    def test_missing_signature_is_401(self) -> None:
        raw, _ = signed(self.body)

        self.assertEqual(self.post(raw, HTTP_X_TENANT="lider").status_code, 401)

    def test_unknown_payment_still_returns_200(self) -> None:
        raw, signature = signed({"event": "PAYMENT_RECEIVED", "payment": {"id": "pay_unknown"}})

        resp = self.post(raw, HTTP_X_TENANT="lider", HTTP_X_SIGNATURE=signature)

        self.assertEqual(resp.status_code, 200)

    def test_invalid_json_is_400(self) -> None:
        self.assertEqual(self.post("{not json", HTTP_X_TENANT="lider").status_code, 400)

    def test_event_without_name_is_400(self) -> None:
        raw, signature = signed({"payment": {"id": "pay_1"}})

        resp = self.post(raw, HTTP_X_TENANT="lider", HTTP_X_SIGNATURE=signature)

        self.assertEqual(resp.status_code, 400)


class ReceivableActionViewTests(TestCase):
    def setUp(self) -> None:
        self.user = get_user_model().objects.create_user("operador", password="x")
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.customer = make_customer()
        self.receivable = make_receivable(self.customer)

    def test_requires_authentication(self) -> None:
        anonymous = APIClient()

        resp = anonymous.post(reverse("receivable-settle", args=[self.receivable.pk]), HTTP_X_TENANT="lider")

        self.assertIn(resp.status_code, (401, 403))

    def test_missing_tenant_is_400(self) -> None:
        resp = self.client.post(reverse("receivable-settle", args=[self.receivable.pk]))

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "tenant_not_resolved")

    def test_settle_records_operator(self) -> None:
        resp = self.client.post(
            reverse("receivable-settle", args=[self.receivable.pk]), format="json", HTTP_X_TENANT="lider"
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "RECEIVED")
        self.assertEqual(FinancialAudit.objects.get().performed_by, "operador")

    def test_chargeback_of_pending_is_409(self) -> None:
        resp = self.client.post(
            reverse("receivable-chargeback", args=[self.receivable.pk]), HTTP_X_TENANT="lider"
        )

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "invalid_transition")

    @patch.object(AsaasClient, "list_payments")
    def test_recheck_of_unlinked_searches_by_external_reference(self, list_payments) -> None:
        list_payments.return_value = AsaasPaymentListDTO(
            data=[AsaasPaymentDTO(id="pay_7", status="RECEIVED", value="150.00")]
        )

        resp = self.client.post(reverse("receivable-recheck", args=[self.receivable.pk]), HTTP_X_TENANT="lider")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "RECEIVED")
        self.assertEqual(
            list_payments.call_args.kwargs["externalReference"], f"conta-receber-{self.receivable.pk}"
        )

    @patch.object(AsaasClient, "list_payments")
    def test_recheck_without_provider_record_is_404(self, list_payments) -> None:
        list_payments.return_value = AsaasPaymentListDTO(data=[])

        resp = self.client.post(reverse("receivable-recheck", args=[self.receivable.pk]), HTTP_X_TENANT="lider")

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "provider_record_not_found")

    def test_unknown_receivable_is_404(self) -> None:
        resp = self.client.post(reverse("receivable-settle", args=[999_999]), HTTP_X_TENANT="lider")

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "entity_not_found")

    @patch.object(AsaasClient, "create_payment")
    def test_billing_creates_payment(self, create_payment) -> None:
        Customer.objects.filter(pk=self.customer.pk).update(asaas_customer_id="cus_1")
        create_payment.return_value = AsaasPaymentDTO(id="pay_5", billingType="BOLETO", bankSlipUrl="https://asaas.test/b/5")

        resp = self.client.post(
            reverse("receivable-billing", args=[self.receivable.pk]),
            {"billing_type": "BOLETO"},
            format="json",
            HTTP_X_TENANT="lider",
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["asaas_payment_id"], "pay_5")
        self.assertEqual(resp.json()["payment_url"], "https://asaas.test/b/5")

    def test_billing_rejects_unknown_billing_type(self) -> None:
        resp = self.client.post(
            reverse("receivable-billing", args=[self.receivable.pk]),
            {"billing_type": "CHEQUE"},
            format="json",
            HTTP_X_TENANT="lider",
        )

        self.assertEqual(resp.status_code, 400)


class CustomerViewTests(TestCase):
    def setUp(self) -> None:
        self.user = get_user_model().objects.create_user("leitor", password="x")
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        set_rules("lider", suspension_days=90)

    def test_list_syncs_plan_status_before_reading(self) -> None:
        late = make_customer("Atrasado")
        make_receivable(late, days_overdue=120)
        make_customer("Em dia")

        resp = self.client.get(reverse("customer-list"), HTTP_X_TENANT="lider")

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total"], 2)
        statuses = {c["name"]: c["plan_status"] for c in body["results"]}
        self.assertEqual(statuses["Atrasado"], "SUSPENDED")
        self.assertEqual(statuses["Em dia"], "ACTIVE")

    def test_list_filters_and_paginates(self) -> None:
        for i in range(3):
            make_customer(f"Cliente {i}")

        resp = self.client.get(
            reverse("customer-list"), {"search": "Cliente", "page": 2, "page_size": 2}, HTTP_X_TENANT="lider"
        )

        body = resp.json()
        self.assertEqual(body["total"], 3)
        self.assertEqual(body["total_pages"], 2)
        self.assertEqual(len(body["results"]), 1)

    def test_detail_and_missing(self) -> None:
        customer = make_customer()

        ok = self.client.get(reverse("customer-detail", args=[customer.pk]), HTTP_X_TENANT="lider")
        missing = self.client.get(reverse("customer-detail", args=[999_999]), HTTP_X_TENANT="lider")

        self.assertEqual(ok.status_code, 200)
        self.assertEqual(ok.json()["id"], customer.pk)
        self.assertEqual(missing.status_code, 404)

    def test_tenant_from_query_param(self) -> None:
        resp = self.client.get(reverse("customer-list"), {"tenant": "lider"})

        self.assertEqual(resp.status_code, 200)
        self.assertIn("X-Request-ID", resp)
