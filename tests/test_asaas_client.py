"""Cliente HTTP do Asaas: autenticação, retentativas e assinatura do webhook."""

import hashlib
import hmac
from unittest.mock import patch

import httpx
from django.test import SimpleTestCase, override_settings

from asaas_billing.adapters.api_clients.asaas_client import AsaasClient, validate_webhook_signature
from asaas_billing.adapters.api_clients.asaas_credentials import AsaasCredentials, resolve_asaas_credentials
from asaas_billing.core.domain.events.exceptions import AsaasAPIError, IntegrationNotConfiguredError

REQUEST = "asaas_billing.adapters.api_clients.asaas_client.httpx.request"


def credentials(**overrides) -> AsaasCredentials:
    values = {
        "tenant_id": "lider",
        "api_key": "key-123",
        "webhook_secret": "s3cret",
        "base_url": "https://asaas.test/api/v3",
        "timeout": 1.0,
        "max_retries": 3,
        "retry_base_delay": 0,
        "enabled": True,
    }
    values.update(overrides)
    return AsaasCredentials(**values)


class AsaasClientTests(SimpleTestCase):
    @patch(REQUEST)
    def test_sends_access_token_and_parses_payment(self, request) -> None:
        request.return_value = httpx.Response(200, json={"id": "pay_1", "status": "PENDING", "value": 99.9})

        payment = AsaasClient(credentials()).get_payment_by_id("pay_1")

        self.assertEqual(payment.id, "pay_1")
        method, url = request.call_args.args
        self.assertEqual((method, url), ("GET", "https://asaas.test/api/v3/payments/pay_1"))
        self.assertEqual(request.call_args.kwargs["headers"]["access_token"], "key-123")
        self.assertEqual(request.call_args.kwargs["timeout"], 1.0)

    @patch(REQUEST)
    def test_retries_non_2xx_then_succeeds(self, request) -> None:
        request.side_effect = [
            httpx.Response(503, text="unavailable"),
            httpx.Response(429, text="slow down"),
            httpx.Response(200, json={"id": "cus_1"}),
        ]

        customer = AsaasClient(credentials()).create_customer({"name": "Maria", "email": None})

        self.assertEqual(customer.id, "cus_1")
        self.assertEqual(request.call_count, 3)
        # campos None não vão para o provedor
        self.assertEqual(request.call_args.kwargs["json"], {"name": "Maria"})

    @patch(REQUEST)
    def test_gives_up_after_max_retries(self, request) -> None:
        request.return_value = httpx.Response(400, text="invalid")

        with self.assertRaises(AsaasAPIError) as ctx:
            AsaasClient(credentials(max_retries=2)).create_payment({"value": 10})

        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(request.call_count, 2)

    @patch(REQUEST)
    def test_transport_error_is_wrapped(self, request) -> None:
        request.side_effect = httpx.ConnectTimeout("timeout")

        with self.assertRaises(AsaasAPIError) as ctx:
            AsaasClient(credentials(max_retries=1)).list_payments(subscription="sub_1")

        self.assertIsNone(ctx.exception.status_code)

    @patch(REQUEST)
    def test_disabled_client_never_calls_provider(self, request) -> None:
        with self.assertRaises(IntegrationNotConfiguredError):
            AsaasClient(credentials(enabled=False)).get_payment_by_id("pay_1")

        request.assert_not_called()

    @patch(REQUEST)
    def test_list_drops_empty_filters(self, request) -> None:
        request.return_value = httpx.Response(200, json={"data": [{"id": "pay_1"}], "totalCount": 1})

        listing = AsaasClient(credentials()).list_payments(subscription=None, externalReference="x", limit=1)

        self.assertEqual(listing.data[0].id, "pay_1")
        self.assertEqual(request.call_args.kwargs["params"], {"externalReference": "x", "limit": 1})


class CredentialResolutionTests(SimpleTestCase):
    @override_settings(ASAAS_API_KEY="", ASAAS_TOKEN="legacy-token")
    def test_legacy_token_is_accepted(self) -> None:
        creds = resolve_asaas_credentials("lider")

        self.assertTrue(creds.enabled)
        self.assertEqual(creds.api_key, "legacy-token")

    @override_settings(ASAAS_ENABLED_TENANTS=["pax"])
    def test_tenant_outside_allow_list_is_disabled(self) -> None:
        self.assertFalse(resolve_asaas_credentials("lider").enabled)
        self.assertTrue(resolve_asaas_credentials("pax").enabled)

    @override_settings(ASAAS_TIMEOUT_MS=2500, ASAAS_BASE_URL="https://asaas.test/api/v3/")
    def test_timeout_in_seconds_and_base_url_normalized(self) -> None:
        creds = resolve_asaas_credentials("lider")

        self.assertEqual(creds.timeout, 2.5)
        self.assertEqual(creds.base_url, "https://asaas.test/api/v3")


class WebhookSignatureTests(SimpleTestCase):
    body = b'{"event":"PAYMENT_RECEIVED","payment":{"id":"pay_1"}}'

    def sign(self, secret: str) -> str:
        return hmac.new(secret.encode(), self.body, hashlib.sha256).hexdigest()

    def test_valid_signature(self) -> None:
        self.assertTrue(validate_webhook_signature(self.body, self.sign("s3cret"), "s3cret"))

    def test_signature_is_case_insensitive(self) -> None:
        self.assertTrue(validate_webhook_signature(self.body, self.sign("s3cret").upper(), "s3cret"))

    def test_wrong_secret_or_missing_values(self) -> None:
        self.assertFalse(validate_webhook_signature(self.body, self.sign("other"), "s3cret"))
        self.assertFalse(validate_webhook_signature(self.body, None, "s3cret"))
        self.assertFalse(validate_webhook_signature(self.body, self.sign("s3cret"), None))
