from __future__ import annotations

import hashlib
import hmac
import time
from typing import Any

import backoff
import httpx
import structlog

from asaas_billing.adapters.api_clients.asaas_credentials import AsaasCredentials
from asaas_billing.adapters.observability.metrics import ASAAS_LATENCY, ASAAS_REQUESTS
from asaas_billing.core.application.dtos.asaas_dtos import (
    AsaasCustomerDTO,
    AsaasPaymentDTO,
    AsaasPaymentListDTO,
    AsaasSubscriptionDTO,
    AsaasSubscriptionListDTO,
)
from asaas_billing.core.domain.events.exceptions import AsaasAPIError, IntegrationNotConfiguredError

log = structlog.get_logger(__name__)


def validate_webhook_signature(raw_body: bytes | str, signature: str | None, secret: str | None) -> bool:
    """
    HMAC-SHA256 (hex) do corpo bruto comparado em tempo constante.
    Sem segredo ou sem assinatura → False, nunca exceção.
    """
    if not signature or not secret:
        return False
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    computed = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(computed, signature.strip().lower())


class AsaasClient:
    """
    Cliente HTTP do Asaas (um por tenant).

      • autenticação por header `access_token`
      • timeout por chamada
      • backoff exponencial (base × 2^(tentativa-1)) em QUALQUER falha,
        inclusive respostas não-2xx
    """

    def __init__(self, credentials: AsaasCredentials) -> None:
        self.credentials = credentials
        self.log = log.bind(tenant_id=credentials.tenant_id, component="AsaasClient")
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": "planvita-billing",
            "access_token": credentials.api_key or "",
        }
        self._request_with_retry = backoff.on_exception(
            backoff.expo,
            AsaasAPIError,
            max_tries=credentials.max_retries,
            factor=credentials.retry_base_delay,
            jitter=None,
            on_backoff=self._on_backoff,
        )(self._request_once)

    @property
    def enabled(self) -> bool:
        return self.credentials.enabled

    # ------------------------------------------------------------------
    # webhook
    # ------------------------------------------------------------------
    def validate_webhook_signature(self, raw_body: bytes | str, signature: str | None) -> bool:
        return validate_webhook_signature(raw_body, signature, self.credentials.webhook_secret)

    # ------------------------------------------------------------------
    # customers
    # ------------------------------------------------------------------
    def create_customer(self, payload: dict[str, Any]) -> AsaasCustomerDTO:
        data = self._request("POST", "/customers", json=payload)
        return AsaasCustomerDTO.model_validate(data)

    # ------------------------------------------------------------------
    # payments
    # ------------------------------------------------------------------
    def create_payment(self, payload: dict[str, Any]) -> AsaasPaymentDTO:
        return AsaasPaymentDTO.model_validate(self._request("POST", "/payments", json=payload))

    def update_payment(self, payment_id: str, patch: dict[str, Any]) -> AsaasPaymentDTO:
        return AsaasPaymentDTO.model_validate(
            self._request("PUT", f"/payments/{payment_id}", json=patch)
        )

    def delete_payment(self, payment_id: str) -> dict[str, Any]:
        return self._request("DELETE", f"/payments/{payment_id}") or {}

    def get_payment_by_id(self, payment_id: str) -> AsaasPaymentDTO:
        return AsaasPaymentDTO.model_validate(self._request("GET", f"/payments/{payment_id}"))

    def list_payments(self, **filters: Any) -> AsaasPaymentListDTO:
        data = self._request("GET", "/payments", params=filters)
        return AsaasPaymentListDTO.model_validate(data or {})

    # ------------------------------------------------------------------
    # subscriptions
    # ------------------------------------------------------------------
    def create_subscription(self, payload: dict[str, Any]) -> AsaasSubscriptionDTO:
        return AsaasSubscriptionDTO.model_validate(self._request("POST", "/subscriptions", json=payload))

    def update_subscription(self, subscription_id: str, patch: dict[str, Any]) -> AsaasSubscriptionDTO:
        return AsaasSubscriptionDTO.model_validate(
            self._request("PUT", f"/subscriptions/{subscription_id}", json=patch)
        )

    def list_subscriptions(self, **filters: Any) -> AsaasSubscriptionListDTO:
        data = self._request("GET", "/subscriptions", params=filters)
        return AsaasSubscriptionListDTO.model_validate(data or {})

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        if not self.enabled:
            raise IntegrationNotConfiguredError(
                f"Integração Asaas desabilitada para o tenant {self.credentials.tenant_id}"
            )
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        clean_json = {k: v for k, v in json.items() if v is not None} if json is not None else None
        try:
            return self._request_with_retry(method, path, json=clean_json, params=clean_params)
        except AsaasAPIError as exc:
            self.log.error(
                "asaas.request.failed",
                method=method,
                path=path,
                status_code=exc.status_code,
                attempts=self.credentials.max_retries,
            )
            raise

    def _request_once(self, method: str, path: str, *, json=None, params=None) -> Any:
        url = f"{self.credentials.base_url}{path}"
        start = time.perf_counter()
        self.log.debug("asaas.request", method=method, url=url)
        try:
            resp = httpx.request(
                method,
                url,
                json=json,
                params=params or None,
                headers=self._headers,
                timeout=self.credentials.timeout,
            )
        except httpx.HTTPError as exc:
            ASAAS_REQUESTS.labels(method, "transport_error").inc()
            raise AsaasAPIError(None, str(exc), method=method, path=path) from exc
        finally:
            ASAAS_LATENCY.labels(method).observe(time.perf_counter() - start)

        if resp.status_code >= 400:
            ASAAS_REQUESTS.labels(method, "http_error").inc()
            raise AsaasAPIError(resp.status_code, resp.text, method=method, path=path)

        ASAAS_REQUESTS.labels(method, "success").inc()
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return {"raw": resp.text}

    def _on_backoff(self, details: dict) -> None:
        exc = details.get("exception")
        self.log.warning(
            "asaas.request.retry",
            attempt=details.get("tries"),
            wait=round(details.get("wait") or 0, 3),
            status_code=getattr(exc, "status_code", None),
        )
