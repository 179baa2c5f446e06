from __future__ import annotations

import structlog
from celery import Task, shared_task
from django.conf import settings

from billing_core.adapters.config.composition_root import (
    setup_di_container_from_settings as setup_core_container,
)
from billing_core.core.application.commands.plan_status_commands import SyncAllPlanStatusCommand
from recurring_notification.adapters.config.composition_root import (
    setup_di_container_from_settings as setup_notification_container,
)
from recurring_notification.core.application.commands.notification_commands import (
    DispatchDueNotificationsCommand,
)

log = structlog.get_logger(__name__)

# ──────────────────────────────────────────────────────────────────────────
# Filas
# ──────────────────────────────────────────────────────────────────────────
QUEUE_SYNC  = "sync_process"
QUEUE_NOTIF = "notifications"


# ──────────────────────────────────────────────────────────────────────────
# Base Task com DLQ
# ──────────────────────────────────────────────────────────────────────────
class BaseTaskWithDLQ(Task):
    """
    Reenfileira na dead letter queue quando esgota as retentativas.
    Em 'task_always_eager' não há broker: só registra.
    """
    def on_failure(self, exc, task_id, args, kwargs, einfo):
        if getattr(self.app.conf, "task_always_eager", False):
            log.critical("task.failed_eager_mode", task=self.name, task_id=task_id, error=str(exc))
        else:
            log.critical("task.failed_dlq_redirect", task=self.name, task_id=task_id, error=str(exc))
            self.app.send_task(
                self.name,
                args=args,
                kwargs=kwargs,
                queue="dead_letter",
                routing_key="dead_letter",
            )
        super().on_failure(exc, task_id, args, kwargs, einfo)


def iter_tenants() -> list[str]:
    return [t for t in settings.PLANVITA_TENANTS if t]


# ──────────────────────────────────────────────────────────────────────────
# Notificação recorrente
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    base=BaseTaskWithDLQ, bind=True, max_retries=3, default_retry_delay=60,
    acks_late=True, queue=QUEUE_NOTIF
)
def dispatch_recurring_notifications_for_tenant(self, tenant_id: str, flow_type: str = "pendencia-periodica"):
    """
    [Granular] Dispara o lote do tenant. Sem `force`: a checagem de
    "ainda não venceu" torna execuções sobrepostas inofensivas.
    """
    try:
        bus = setup_notification_container(settings).command_bus()
        result = bus.dispatch(DispatchDueNotificationsCommand(tenant_id=tenant_id, flow_type=flow_type))
        log.info(
            "recurring.dispatch.ok",
            tenant_id=tenant_id,
            flow_type=flow_type,
            sent=result.sent,
            skipped=result.skipped,
            failed=result.failed,
        )
        return {"sent": result.sent, "skipped": result.skipped, "failed": result.failed}
    except Exception as exc:
        log.error("recurring.dispatch.error", tenant_id=tenant_id, error=str(exc))
        raise self.retry(exc=exc)  # noqa: B904

@shared_task(queue=QUEUE_NOTIF)
def schedule_recurring_notifications():
    """[Orquestração] Uma tarefa de disparo por tenant configurado."""
    tenants = iter_tenants()
    for tenant_id in tenants:
        dispatch_recurring_notifications_for_tenant.delay(tenant_id)
    log.info("recurring.dispatch.enqueued", total=len(tenants))


# ──────────────────────────────────────────────────────────────────────────
# Status de plano
# ──────────────────────────────────────────────────────────────────────────
@shared_task(
    base=BaseTaskWithDLQ, bind=True, max_retries=3, default_retry_delay=300,
    acks_late=True, queue=QUEUE_SYNC
)
def sync_plan_status_for_tenant(self, tenant_id: str, batch_size: int | None = None):
    batch_size = batch_size or settings.PLAN_STATUS_SYNC_BATCH_SIZE
    try:
        bus = setup_core_container(settings).command_bus()
        result = bus.dispatch(SyncAllPlanStatusCommand(tenant_id=tenant_id, batch_size=batch_size))
        log.info(
            "plan_status.sync.ok",
            tenant_id=tenant_id,
            processed=result.processed,
            suspended=result.suspended,
            activated=result.activated,
        )
        return {"processed": result.processed, "suspended": result.suspended, "activated": result.activated}
    except Exception as exc:
        log.error("plan_status.sync.error", tenant_id=tenant_id, error=str(exc))
        raise self.retry(exc=exc)  # noqa: B904

@shared_task(queue=QUEUE_SYNC)
def schedule_plan_status_sync():
    tenants = iter_tenants()
    for tenant_id in tenants:
        sync_plan_status_for_tenant.delay(tenant_id)
    log.info("plan_status.sync.enqueued", total=len(tenants))
