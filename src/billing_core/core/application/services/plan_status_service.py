from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

import structlog
from django.utils import timezone

from billing_core.adapters.observability.metrics import PLAN_STATUS_SYNC_DURATION, PLAN_STATUS_TRANSITIONS
from billing_core.core.domain.entities.customer_entity import PLAN_ACTIVE, PLAN_CANCELED, PLAN_SUSPENDED
from billing_core.core.domain.repositories.business_rules_repository import BusinessRulesRepository
from billing_core.core.domain.repositories.customer_repository import CustomerRepository
from billing_core.core.domain.repositories.receivable_repository import ReceivableRepository

logger = structlog.get_logger(__name__)

MIN_BATCH_SIZE = 50
MAX_BATCH_SIZE = 5000
DEFAULT_BATCH_SIZE = 500


@dataclass(frozen=True)
class PlanSyncResult:
    processed: int = 0
    suspended: int = 0
    activated: int = 0

    def __add__(self, other: PlanSyncResult) -> PlanSyncResult:
        return PlanSyncResult(
            processed=self.processed + other.processed,
            suspended=self.suspended + other.suspended,
            activated=self.activated + other.activated,
        )


def clamp_batch_size(batch_size: int | None) -> int:
    if not batch_size:
        return DEFAULT_BATCH_SIZE
    return max(MIN_BATCH_SIZE, min(MAX_BATCH_SIZE, int(batch_size)))


class PlanStatusSynchronizer:
    """
    Deriva ACTIVE/SUSPENDED de cada titular a partir das contas em aberto.

    SUSPENDED ⇔ maior atraso (hoje − vencimento, mínimo 0) ≥ `suspension_days`
    do tenant. Titulares CANCELED nunca são alterados. Só titulares cujo
    status muda entram nos UPDATEs em lote.
    """

    def __init__(
        self,
        tenant_id: str,
        customer_repo: CustomerRepository,
        receivable_repo: ReceivableRepository,
        rules_repo: BusinessRulesRepository,
    ) -> None:
        self.tenant_id = tenant_id
        self.customers = customer_repo
        self.receivables = receivable_repo
        self.rules = rules_repo
        self.log = logger.bind(tenant_id=tenant_id)

    # ------------------------------------------------------------------
    def sync_by_ids(self, customer_ids: Sequence[int], today: date | None = None) -> PlanSyncResult:
        ids = sorted({int(i) for i in customer_ids if i is not None})
        if not ids:
            return PlanSyncResult()

        today = today or timezone.localdate()
        threshold = self.rules.get_for_tenant(self.tenant_id).suspension_days

        current = self.customers.plan_statuses(ids)
        oldest_due = self.receivables.oldest_open_due_dates(ids)

        to_suspend: list[int] = []
        to_activate: list[int] = []
        for customer_id, status in current.items():
            if status == PLAN_CANCELED:
                continue
            due = oldest_due.get(customer_id)
            overdue_days = max(0, (today - due).days) if due else 0
            target = PLAN_SUSPENDED if overdue_days >= threshold else PLAN_ACTIVE
            if target == status:
                continue
            (to_suspend if target == PLAN_SUSPENDED else to_activate).append(customer_id)

        suspended = self.customers.bulk_set_plan_status(to_suspend, PLAN_SUSPENDED)
        activated = self.customers.bulk_set_plan_status(to_activate, PLAN_ACTIVE)

        if suspended:
            PLAN_STATUS_TRANSITIONS.labels(PLAN_SUSPENDED).inc(suspended)
        if activated:
            PLAN_STATUS_TRANSITIONS.labels(PLAN_ACTIVE).inc(activated)
        if suspended or activated:
            self.log.info(
                "plan_status.synced",
                threshold=threshold,
                suspended_ids=to_suspend,
                activated_ids=to_activate,
            )

        return PlanSyncResult(processed=len(current), suspended=suspended, activated=activated)

    # ------------------------------------------------------------------
    def sync_all_in_batches(self, batch_size: int | None = None, today: date | None = None) -> PlanSyncResult:
        size = clamp_batch_size(batch_size)
        today = today or timezone.localdate()
        total = PlanSyncResult()
        cursor = 0

        self.log.info("plan_status.sweep.start", batch_size=size)
        while True:
            ids = self.customers.list_ids_after(cursor, size)
            if not ids:
                break

            start = time.perf_counter()
            with self.customers.atomic():
                result = self.sync_by_ids(ids, today=today)
            PLAN_STATUS_SYNC_DURATION.observe(time.perf_counter() - start)

            total += result
            cursor = ids[-1]
            self.log.info(
                "plan_status.batch",
                cursor=cursor,
                processed=result.processed,
                suspended=result.suspended,
                activated=result.activated,
            )
            if len(ids) < size:
                break

        self.log.info(
            "plan_status.sweep.done",
            processed=total.processed,
            suspended=total.suspended,
            activated=total.activated,
        )
        return total
