from __future__ import annotations

from collections.abc import Callable

from asaas_billing.core.application.commands.billing_commands import (
    ApplyWebhookCommand,
    ChargebackReceivableCommand,
    EnsureCustomerCommand,
    EnsurePaymentCommand,
    RefreshPaymentStatusCommand,
    SettleReceivableCommand,
    SyncReceivableDeletionCommand,
    SyncReceivableUpdateCommand,
)
from asaas_billing.core.application.dtos.asaas_dtos import AsaasWebhookEventDTO
from asaas_billing.core.application.services.billing_reconciler import BillingReconciler, WebhookResult
from billing_core.core.application.cqrs import CommandHandler
from billing_core.core.domain.entities.receivable_entity import ReceivableEntity

ReconcilerFactory = Callable[..., BillingReconciler]


class _ReconcilerHandler:
    def __init__(self, reconciler_factory: ReconcilerFactory):
        self._factory = reconciler_factory

    def _reconciler(self, tenant_id: str) -> BillingReconciler:
        return self._factory(tenant_id=tenant_id)


class ApplyWebhookHandler(_ReconcilerHandler, CommandHandler[ApplyWebhookCommand]):
    def handle(self, cmd: ApplyWebhookCommand) -> WebhookResult:
        event = AsaasWebhookEventDTO.model_validate(cmd.payload)
        return self._reconciler(cmd.tenant_id).apply_webhook(event)


class RefreshPaymentStatusHandler(_ReconcilerHandler, CommandHandler[RefreshPaymentStatusCommand]):
    def handle(self, cmd: RefreshPaymentStatusCommand) -> ReceivableEntity:
        return self._reconciler(cmd.tenant_id).refresh_payment_status(cmd.receivable_id)


class EnsureCustomerHandler(_ReconcilerHandler, CommandHandler[EnsureCustomerCommand]):
    def handle(self, cmd: EnsureCustomerCommand) -> str | None:
        return self._reconciler(cmd.tenant_id).ensure_customer(cmd.customer_id)


class EnsurePaymentHandler(_ReconcilerHandler, CommandHandler[EnsurePaymentCommand]):
    def handle(self, cmd: EnsurePaymentCommand) -> ReceivableEntity:
        return self._reconciler(cmd.tenant_id).ensure_payment(
            cmd.receivable_id, billing_type=cmd.billing_type, force=cmd.force
        )


class SyncReceivableUpdateHandler(_ReconcilerHandler, CommandHandler[SyncReceivableUpdateCommand]):
    def handle(self, cmd: SyncReceivableUpdateCommand) -> bool:
        return self._reconciler(cmd.tenant_id).sync_payment_update(cmd.receivable_id, cmd.patch)


class SyncReceivableDeletionHandler(_ReconcilerHandler, CommandHandler[SyncReceivableDeletionCommand]):
    def handle(self, cmd: SyncReceivableDeletionCommand) -> bool:
        return self._reconciler(cmd.tenant_id).sync_payment_deletion(cmd.receivable_id)


class SettleReceivableHandler(_ReconcilerHandler, CommandHandler[SettleReceivableCommand]):
    def handle(self, cmd: SettleReceivableCommand) -> ReceivableEntity:
        return self._reconciler(cmd.tenant_id).settle(
            cmd.receivable_id, performed_by=cmd.performed_by, received_at=cmd.received_at
        )


class ChargebackReceivableHandler(_ReconcilerHandler, CommandHandler[ChargebackReceivableCommand]):
    def handle(self, cmd: ChargebackReceivableCommand) -> ReceivableEntity:
        return self._reconciler(cmd.tenant_id).chargeback(cmd.receivable_id, performed_by=cmd.performed_by)
