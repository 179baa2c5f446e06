from __future__ import annotations

from collections.abc import Callable

import structlog

from billing_core.core.application.commands.plan_status_commands import (
    SyncAllPlanStatusCommand,
    SyncPlanStatusCommand,
)
from billing_core.core.application.cqrs import CommandBus, CommandHandler
from billing_core.core.application.services.plan_status_service import (
    PlanStatusSynchronizer,
    PlanSyncResult,
)
from billing_core.core.domain.events.events import ReceivableStatusChangedEvent

logger = structlog.get_logger(__name__)

SynchronizerFactory = Callable[..., PlanStatusSynchronizer]


class SyncPlanStatusHandler(CommandHandler[SyncPlanStatusCommand]):
    def __init__(self, synchronizer_factory: SynchronizerFactory):
        self._factory = synchronizer_factory

    def handle(self, cmd: SyncPlanStatusCommand) -> PlanSyncResult:
        sync = self._factory(tenant_id=cmd.tenant_id)
        with sync.customers.atomic():
            return sync.sync_by_ids(cmd.customer_ids)


class SyncAllPlanStatusHandler(CommandHandler[SyncAllPlanStatusCommand]):
    def __init__(self, synchronizer_factory: SynchronizerFactory):
        self._factory = synchronizer_factory

    def handle(self, cmd: SyncAllPlanStatusCommand) -> PlanSyncResult:
        return self._factory(tenant_id=cmd.tenant_id).sync_all_in_batches(cmd.batch_size)


class ResyncPlanOnReceivableChange:
    """
    Listener de ReceivableStatusChangedEvent: mudança de status de conta
    recalcula o status do plano do titular.
    """

    def __init__(self, command_bus: CommandBus):
        self._bus = command_bus

    def __call__(self, event: ReceivableStatusChangedEvent) -> None:
        if event.customer_id is None:
            return
        logger.debug(
            "plan_status.resync_on_receivable",
            tenant_id=event.tenant_id,
            receivable_id=event.receivable_id,
            new_status=event.new_status,
        )
        self._bus.dispatch(
            SyncPlanStatusCommand(tenant_id=event.tenant_id, customer_ids=(event.customer_id,))
        )
