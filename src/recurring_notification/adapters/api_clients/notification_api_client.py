from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import requests
from django.conf import settings

from recurring_notification.adapters.api_clients.base_api_client import BaseAPIClient
from recurring_notification.adapters.observability.metrics import NOTIFICATION_API_LATENCY
from recurring_notification.core.domain.services.channel_policy import EMAIL, WHATSAPP

REASON_MISSING_TOKEN = "missing_provider_token"
REASON_REQUEST_ERROR = "request_error"


@dataclass(frozen=True)
class DispatchOutcome:
    success: bool
    skipped: bool = False
    status_code: int | None = None
    error: str | None = None


class NotificationApiClient(BaseAPIClient):
    """
    Cliente do serviço de notificações (e-mail / WhatsApp).

    `send` nunca levanta exceção: o resultado de cada envio vira
    DispatchOutcome para ser contado e gravado no log do lote.
    """

    PATHS = {
        EMAIL: "/notifications/email",
        WHATSAPP: "/notifications/whatsapp",
    }

    def __init__(
        self,
        *,
        base_url: str | None = None,
        tokens: dict[str, str | None] | None = None,
        timeout: float | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url or getattr(settings, "NOTIFICATION_API_BASE_URL", "http://localhost:8080"),
            timeout=timeout if timeout is not None else float(getattr(settings, "NOTIFICATION_TIMEOUT", 10)),
        )
        if tokens is None:
            tokens = {
                EMAIL: getattr(settings, "NOTIFICATION_EMAIL_TOKEN", None),
                WHATSAPP: getattr(settings, "NOTIFICATION_WHATSAPP_TOKEN", None),
            }
        self._tokens = tokens

    def _token_for(self, channel: str) -> str | None:
        """Token do próprio canal; na falta, o do outro canal."""
        other = WHATSAPP if channel == EMAIL else EMAIL
        return self._tokens.get(channel) or self._tokens.get(other) or None

    def send(self, channel: str, payload: dict[str, Any]) -> DispatchOutcome:
        token = self._token_for(channel)
        if not token:
            self.log.warning("notification.skipped.missing_token", channel=channel)
            return DispatchOutcome(success=False, skipped=True, error=REASON_MISSING_TOKEN)

        start = time.perf_counter()
        try:
            resp = self._post(
                self.PATHS.get(channel, "/notifications"),
                json=payload,
                headers={"Authorization": f"Bearer {token}"},
            )
        except requests.RequestException as exc:
            self.log.error("notification.request_error", channel=channel, error=str(exc))
            return DispatchOutcome(success=False, error=REASON_REQUEST_ERROR)
        finally:
            NOTIFICATION_API_LATENCY.labels(channel).observe(time.perf_counter() - start)

        if not resp.ok:
            self.log.error(
                "notification.http_error",
                channel=channel,
                status_code=resp.status_code,
                body=resp.text[:300],
            )
            return DispatchOutcome(success=False, status_code=resp.status_code, error=f"http_{resp.status_code}")

        return DispatchOutcome(success=True, status_code=resp.status_code)
