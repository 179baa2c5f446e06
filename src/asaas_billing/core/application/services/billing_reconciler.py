from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import partial
from typing import Any

import structlog
from django.db import transaction
from django.utils import timezone

from asaas_billing.adapters.api_clients.asaas_client import AsaasClient
from asaas_billing.adapters.observability.metrics import ASAAS_WEBHOOKS
from asaas_billing.core.application.dtos.asaas_dtos import (
    AsaasPaymentDTO,
    AsaasSubscriptionDTO,
    AsaasWebhookEventDTO,
)
from asaas_billing.core.application.services.commission_service import CommissionService
from asaas_billing.core.domain.events.exceptions import (
    AsaasAPIError,
    IntegrationNotConfiguredError,
    InvalidTransitionError,
    MissingCustomerError,
    ProviderRecordNotFoundError,
)
from asaas_billing.core.domain.repositories.financial_audit_repository import FinancialAuditRepository
from asaas_billing.core.domain.repositories.payment_repository import PaymentRepository
from asaas_billing.core.domain.services.status_mapping import (
    event_for_provider_status,
    pick_payment_url,
    status_for_event,
)
from billing_core.adapters.context.tenant_context import tenant_db_alias
from billing_core.core.domain.entities.customer_entity import CustomerEntity
from billing_core.core.domain.entities.receivable_entity import (
    STATUS_CANCELED,
    STATUS_RECEIVED,
    ReceivableEntity,
)
from billing_core.core.domain.events.events import ReceivableStatusChangedEvent
from billing_core.core.domain.events.exceptions import EntityNotFoundError
from billing_core.core.domain.repositories.customer_repository import CustomerRepository
from billing_core.core.domain.repositories.receivable_repository import ReceivableRepository
from billing_core.core.domain.services.event_dispatcher import EventDispatcher

log = structlog.get_logger(__name__)

DEFAULT_BILLING_TYPE = "PIX"

RESULT_IGNORED = "IGNORED"
RESULT_UNMATCHED = "UNMATCHED"


@dataclass(frozen=True)
class WebhookResult:
    receivable_id: int | None
    status: str
    matched: bool
    transitioned: bool = False


def _digits(text: str | None) -> str | None:
    if not text:
        return None
    only = "".join(ch for ch in text if ch.isdigit())
    return only or None


class BillingReconciler:
    """
    Mantém contas a receber, pagamentos e comissões coerentes com a visão
    do Asaas sobre cada cobrança.

      • criação preguiçosa de cliente/cobrança no provedor
      • webhook → status local (idempotente: upsert por payment id + checagem
        de comissão existente)
      • reconsulta ativa reaproveitando o mesmo caminho do webhook
      • baixa manual e estorno com trilha de auditoria

    Tenant sem credencial: operações viram no-op (exceto a reconsulta, que é
    ação do usuário e precisa de resposta explícita).
    """

    def __init__(
        self,
        tenant_id: str,
        client: AsaasClient,
        receivable_repo: ReceivableRepository,
        customer_repo: CustomerRepository,
        payment_repo: PaymentRepository,
        commission_service: CommissionService,
        audit_repo: FinancialAuditRepository,
        dispatcher: EventDispatcher,
    ) -> None:
        self.tenant_id = tenant_id
        self.client = client
        self.receivables = receivable_repo
        self.customers = customer_repo
        self.payments = payment_repo
        self.commissions = commission_service
        self.audit = audit_repo
        self.dispatcher = dispatcher
        self.log = log.bind(tenant_id=tenant_id)

    @property
    def enabled(self) -> bool:
        return self.client.enabled

    # ─────────────────────────── CUSTOMER ───────────────────────────
    def ensure_customer(self, customer_id: int) -> str | None:
        """
        Devolve o id do titular no Asaas, criando-o na primeira vez.
        Falha do provedor é logada e devolve None (não bloqueia o fluxo).
        """
        if not self.enabled:
            self.log.warning("asaas.disabled", operation="ensure_customer", customer_id=customer_id)
            return None

        customer = self.customers.find_by_id(customer_id)
        if customer is None:
            raise EntityNotFoundError("Customer", customer_id)
        if customer.asaas_customer_id:
            return customer.asaas_customer_id

        try:
            with self.customers.atomic():
                # relê com lock: outro worker pode ter criado enquanto isso
                locked = self.customers.find_by_id_for_update(customer_id)
                if locked is None:
                    raise EntityNotFoundError("Customer", customer_id)
                if locked.asaas_customer_id:
                    return locked.asaas_customer_id

                created = self.client.create_customer(self._customer_payload(locked))
                self.customers.set_asaas_customer_id(customer_id, created.id)
        except AsaasAPIError as exc:
            self.log.warning(
                "asaas.customer.create_failed",
                customer_id=customer_id,
                status_code=exc.status_code,
            )
            return None

        self.log.info("asaas.customer.created", customer_id=customer_id, asaas_customer_id=created.id)
        return created.id

    @staticmethod
    def _customer_payload(customer: CustomerEntity) -> dict[str, Any]:
        phone = _digits(customer.phone)
        return {
            "name": customer.name,
            "email": customer.email,
            "cpfCnpj": _digits(customer.cpf),
            "phone": phone,
            "mobilePhone": phone,
            "postalCode": _digits(customer.postal_code),
            "address": customer.street,
            "addressNumber": customer.number,
            "complement": customer.complement,
            "province": customer.district,
            "city": customer.city,
            "state": customer.state,
            "externalReference": customer.external_reference,
        }

    # ─────────────────────────── PAYMENT ────────────────────────────
    def ensure_payment(
        self,
        receivable_id: int,
        billing_type: str = DEFAULT_BILLING_TYPE,
        force: bool = False,
    ) -> ReceivableEntity:
        receivable = self._get_receivable(receivable_id)

        if not self.enabled:
            self.log.warning("asaas.disabled", operation="ensure_payment", receivable_id=receivable_id)
            return receivable
        if receivable.asaas_payment_id and not force:
            return receivable
        if receivable.customer_id is None:
            raise MissingCustomerError(f"Conta a receber {receivable_id} sem titular vinculado")

        asaas_customer_id = self.ensure_customer(receivable.customer_id)
        if not asaas_customer_id:
            self.log.warning("asaas.payment.skipped_no_customer", receivable_id=receivable_id)
            return receivable

        payload = {
            "customer": asaas_customer_id,
            "billingType": billing_type or DEFAULT_BILLING_TYPE,
            "value": float(receivable.amount),
            "dueDate": receivable.due_date.isoformat(),
            "description": receivable.description or f"Conta Receber #{receivable.id}",
            "externalReference": receivable.external_reference,
            "subscription": receivable.asaas_subscription_id,
        }
        payment = self.client.create_payment(payload)

        updated = self.receivables.update(
            receivable_id,
            asaas_payment_id=payment.id,
            asaas_subscription_id=payment.subscription or receivable.asaas_subscription_id,
            payment_url=pick_payment_url(payment) or receivable.payment_url,
            pix_qr_code=payment.pixQrCode or receivable.pix_qr_code,
            pix_expiration=payment.pix_expiration_as_datetime() or receivable.pix_expiration,
            payment_method=payment.billingType or billing_type,
            due_date=payment.due_date_as_date() or receivable.due_date,
        )
        self.log.info(
            "asaas.payment.created",
            receivable_id=receivable_id,
            asaas_payment_id=payment.id,
            billing_type=payload["billingType"],
            forced=force,
        )
        return updated

    # ─────────────────────────── WEBHOOK ────────────────────────────
    def apply_webhook(self, event: AsaasWebhookEventDTO) -> WebhookResult:
        """
        Aplica um evento do Asaas numa única transação (conta + pagamento +
        comissão). Referência desconhecida não é erro: volta UNMATCHED.
        """
        if not self.enabled:
            self.log.warning("asaas.webhook.ignored_disabled", webhook_event=event.event)
            ASAAS_WEBHOOKS.labels(event.event, "ignored").inc()
            return WebhookResult(receivable_id=None, status=RESULT_IGNORED, matched=False)

        payment_id = event.payment_id
        subscription_id = event.subscription_id

        with self.receivables.atomic():
            receivable = None
            if payment_id:
                receivable = self.receivables.find_by_payment_id_for_update(payment_id)
            if receivable is None and subscription_id:
                receivable = self.receivables.find_by_subscription_id_for_update(subscription_id)

            if receivable is None:
                self.log.warning(
                    "asaas.webhook.unmatched",
                    webhook_event=event.event,
                    payment_id=payment_id,
                    subscription_id=subscription_id,
                )
                ASAAS_WEBHOOKS.labels(event.event, "unmatched").inc()
                return WebhookResult(receivable_id=None, status=RESULT_UNMATCHED, matched=False)

            if receivable.status == STATUS_CANCELED:
                self.log.info(
                    "asaas.webhook.ignored_terminal",
                    receivable_id=receivable.id,
                    webhook_event=event.event,
                )
                ASAAS_WEBHOOKS.labels(event.event, "ignored_terminal").inc()
                return WebhookResult(receivable_id=receivable.id, status=receivable.status, matched=True)

            previous = receivable.status
            new_status = status_for_event(event.event, previous)
            entering_received = new_status == STATUS_RECEIVED and previous != STATUS_RECEIVED

            fields = self._fields_from_payment(receivable, event.payment, payment_id, subscription_id)
            fields["status"] = new_status
            if entering_received:
                fields["received_at"] = timezone.now()
            updated = self.receivables.update(receivable.id, **fields)

            if entering_received:
                self._record_payment(updated, payment_id, subscription_id)

            self.log.info(
                "asaas.webhook.applied",
                receivable_id=receivable.id,
                webhook_event=event.event,
                previous_status=previous,
                status=new_status,
                payment_id=payment_id,
                subscription_id=subscription_id,
            )
            self._publish_status_change(updated, previous)

        ASAAS_WEBHOOKS.labels(event.event, "applied").inc()
        return WebhookResult(
            receivable_id=receivable.id,
            status=new_status,
            matched=True,
            transitioned=new_status != previous,
        )

    @staticmethod
    def _fields_from_payment(
        receivable: ReceivableEntity,
        payment: AsaasPaymentDTO | None,
        payment_id: str | None,
        subscription_id: str | None,
    ) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "asaas_payment_id": payment_id or receivable.asaas_payment_id,
            "asaas_subscription_id": subscription_id or receivable.asaas_subscription_id,
        }
        if payment is None:
            return fields

        fields.update(
            amount=payment.value if payment.value is not None else receivable.amount,
            due_date=payment.due_date_as_date() or receivable.due_date,
            payment_url=pick_payment_url(payment) or receivable.payment_url,
            pix_qr_code=payment.pixQrCode or receivable.pix_qr_code,
            pix_expiration=payment.pix_expiration_as_datetime() or receivable.pix_expiration,
            payment_method=payment.billingType or receivable.payment_method or "ASAAS",
        )
        return fields

    def _record_payment(self, receivable: ReceivableEntity, payment_id: str | None, subscription_id: str | None) -> None:
        """Upsert do pagamento + comissão de primeira parcela (mesma transação)."""
        if receivable.customer_id is None:
            self.log.warning("asaas.payment.received_without_customer", receivable_id=receivable.id)
            return
        if not payment_id:
            return

        created = self.payments.upsert_by_provider_id(
            payment_id,
            customer_id=receivable.customer_id,
            status=STATUS_RECEIVED,
            paid_at=receivable.received_at or timezone.now(),
            amount=receivable.amount,
            payment_method=receivable.payment_method or "ASAAS",
            asaas_subscription_id=subscription_id,
            payment_url=receivable.payment_url,
            pix_qr_code=receivable.pix_qr_code,
            pix_expiration=receivable.pix_expiration,
            due_date=receivable.due_date,
        )
        self.log.debug("asaas.payment.upserted", payment_id=payment_id, created=created)
        self.commissions.generate_referral_commission_once(receivable.customer_id)

    def _publish_status_change(self, receivable: ReceivableEntity, previous: str) -> None:
        if receivable.status == previous:
            return
        evt = ReceivableStatusChangedEvent(
            tenant_id=self.tenant_id,
            receivable_id=receivable.id,
            customer_id=receivable.customer_id,
            previous_status=previous,
            new_status=receivable.status,
        )
        transaction.on_commit(partial(self.dispatcher.dispatch, evt), using=tenant_db_alias(self.tenant_id))

    # ─────────────────────────── RECHECK ────────────────────────────
    def refresh_payment_status(self, receivable_id: int) -> ReceivableEntity:
        """
        Reconsulta a cobrança no Asaas e aplica o resultado pelo mesmo
        caminho do webhook. Sem payment id (ou se a busca por id falha) a
        cobrança é procurada pela assinatura e pela referência externa, que
        existe mesmo para contas nunca vinculadas. Erros sobem para quem
        pediu a reconsulta.
        """
        if not self.enabled:
            raise IntegrationNotConfiguredError(
                f"Integração Asaas desabilitada para o tenant {self.tenant_id}"
            )

        receivable = self._get_receivable(receivable_id)

        payment: AsaasPaymentDTO | None = None
        if receivable.asaas_payment_id:
            try:
                payment = self.client.get_payment_by_id(receivable.asaas_payment_id)
            except AsaasAPIError as exc:
                self.log.warning(
                    "asaas.recheck.lookup_failed",
                    receivable_id=receivable_id,
                    payment_id=receivable.asaas_payment_id,
                    status_code=exc.status_code,
                )

        if payment is None or not payment.id:
            listing = self.client.list_payments(
                subscription=receivable.asaas_subscription_id,
                externalReference=receivable.external_reference,
                limit=1,
            )
            payment = listing.data[0] if listing.data else None

        if payment is None or not payment.id:
            self.log.warning(
                "asaas.recheck.not_found",
                receivable_id=receivable_id,
                payment_id=receivable.asaas_payment_id,
                subscription_id=receivable.asaas_subscription_id,
            )
            raise ProviderRecordNotFoundError("Nenhuma cobrança encontrada no Asaas para esta conta")

        subscription_id = payment.subscription or receivable.asaas_subscription_id
        with self.receivables.atomic():
            if payment.id != receivable.asaas_payment_id:
                self.receivables.update(
                    receivable_id,
                    asaas_payment_id=payment.id,
                    asaas_subscription_id=subscription_id,
                )
            result = self.apply_webhook(self._synthetic_event(payment, subscription_id))

        self.log.info(
            "asaas.recheck.applied",
            receivable_id=receivable_id,
            payment_id=payment.id,
            provider_status=payment.status,
            status=result.status,
        )
        return self._get_receivable(receivable_id)

    @staticmethod
    def _synthetic_event(payment: AsaasPaymentDTO, subscription_id: str | None) -> AsaasWebhookEventDTO:
        synthetic_payment = payment.model_copy(
            update={
                "invoiceUrl": pick_payment_url(payment),
                "pixQrCode": payment.pixQrCode or getattr(payment, "pixQrCodeId", None),
                "subscription": subscription_id,
            }
        )
        subscription = None
        if subscription_id:
            subscription = AsaasSubscriptionDTO(
                id=subscription_id,
                status=payment.status,
                value=payment.value,
                nextDueDate=getattr(payment, "nextDueDate", None),
            )
        return AsaasWebhookEventDTO(
            event=event_for_provider_status(payment.status),
            dateCreated=timezone.now().isoformat(),
            payment=synthetic_payment,
            subscription=subscription,
        )

    # ─────────────────────── SYNC-ON-WRITE ──────────────────────────
    def sync_payment_update(self, receivable_id: int, patch: dict[str, Any]) -> bool:
        """Repassa ao Asaas a edição local da conta. Melhor esforço."""
        receivable = self.receivables.find_by_id(receivable_id)
        if receivable is None or not receivable.asaas_payment_id or not self.enabled:
            return False
        try:
            self.client.update_payment(receivable.asaas_payment_id, patch)
        except AsaasAPIError as exc:
            self.log.warning(
                "asaas.payment.update_failed",
                receivable_id=receivable_id,
                payment_id=receivable.asaas_payment_id,
                status_code=exc.status_code,
            )
            return False
        return True

    def sync_payment_deletion(self, receivable_id: int) -> bool:
        """Remove a cobrança no Asaas quando a conta local é excluída. Melhor esforço."""
        receivable = self.receivables.find_by_id(receivable_id)
        if receivable is None or not receivable.asaas_payment_id or not self.enabled:
            return False
        try:
            self.client.delete_payment(receivable.asaas_payment_id)
        except AsaasAPIError as exc:
            self.log.warning(
                "asaas.payment.delete_failed",
                receivable_id=receivable_id,
                payment_id=receivable.asaas_payment_id,
                status_code=exc.status_code,
            )
            return False
        return True

    # ───────────────────── BAIXA / ESTORNO ──────────────────────────
    def settle(
        self,
        receivable_id: int,
        performed_by: str | None = None,
        received_at: datetime | None = None,
    ) -> ReceivableEntity:
        with self.receivables.atomic():
            receivable = self.receivables.find_by_id_for_update(receivable_id)
            if receivable is None:
                raise EntityNotFoundError("Receivable", receivable_id)
            if receivable.status == STATUS_RECEIVED:
                return receivable

            if receivable.asaas_payment_id:
                self.log.warning(
                    "receivable.settle.linked_to_provider",
                    receivable_id=receivable_id,
                    payment_id=receivable.asaas_payment_id,
                )

            previous = receivable.status
            when = received_at or timezone.now()
            updated = self.receivables.update(receivable_id, status=STATUS_RECEIVED, received_at=when)

            if updated.customer_id is not None:
                if updated.asaas_payment_id:
                    self._record_payment(updated, updated.asaas_payment_id, updated.asaas_subscription_id)
                else:
                    self.payments.create_manual(
                        customer_id=updated.customer_id,
                        status=STATUS_RECEIVED,
                        paid_at=when,
                        amount=updated.amount,
                        payment_method=updated.payment_method or "MANUAL",
                        due_date=updated.due_date,
                    )
                    self.commissions.generate_referral_commission_once(updated.customer_id)

            self.audit.record(
                entity_type="Receivable",
                entity_id=receivable_id,
                action="settle",
                changes={"status": [previous, STATUS_RECEIVED], "received_at": when},
                performed_by=performed_by,
            )
            self._publish_status_change(updated, previous)

        self.log.info("receivable.settled", receivable_id=receivable_id, previous_status=previous)
        return updated

    def chargeback(self, receivable_id: int, performed_by: str | None = None) -> ReceivableEntity:
        with self.receivables.atomic():
            receivable = self.receivables.find_by_id_for_update(receivable_id)
            if receivable is None:
                raise EntityNotFoundError("Receivable", receivable_id)
            if receivable.status != STATUS_RECEIVED:
                raise InvalidTransitionError(receivable_id, receivable.status, STATUS_CANCELED)

            if receivable.asaas_payment_id:
                self.log.warning(
                    "receivable.chargeback.linked_to_provider",
                    receivable_id=receivable_id,
                    payment_id=receivable.asaas_payment_id,
                )

            updated = self.receivables.update(receivable_id, status=STATUS_CANCELED, received_at=None)
            self.audit.record(
                entity_type="Receivable",
                entity_id=receivable_id,
                action="chargeback",
                changes={"status": [STATUS_RECEIVED, STATUS_CANCELED]},
                performed_by=performed_by,
            )
            self._publish_status_change(updated, STATUS_RECEIVED)

        self.log.info("receivable.charged_back", receivable_id=receivable_id)
        return updated

    # ------------------------------------------------------------------
    def _get_receivable(self, receivable_id: int) -> ReceivableEntity:
        receivable = self.receivables.find_by_id(receivable_id)
        if receivable is None:
            raise EntityNotFoundError("Receivable", receivable_id)
        return receivable
