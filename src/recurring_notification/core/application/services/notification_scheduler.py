from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

import structlog
from django.utils import timezone

from billing_core.core.domain.entities.business_rules_entity import BusinessRulesEntity
from billing_core.core.domain.entities.receivable_entity import ReceivableEntity
from billing_core.core.domain.repositories.business_rules_repository import BusinessRulesRepository
from billing_core.core.domain.repositories.customer_repository import CustomerRepository
from billing_core.core.domain.repositories.receivable_repository import ReceivableRepository
from recurring_notification.adapters.api_clients.notification_api_client import NotificationApiClient
from recurring_notification.adapters.observability.metrics import (
    NOTIFICATION_DISPATCH,
    NOTIFICATION_RUN_DURATION,
)
from recurring_notification.core.application.services.message_builder import MessageBuilder
from recurring_notification.core.domain.entities.notification_log_entity import (
    LOG_FAILED,
    LOG_SENT,
    LOG_SKIPPED,
    NotificationLogEntity,
)
from recurring_notification.core.domain.entities.notification_schedule_entity import NotificationScheduleEntity
from recurring_notification.core.domain.entities.notification_template_entity import NotificationTemplateEntity
from recurring_notification.core.domain.entities.recipient import OpenItem, Recipient
from recurring_notification.core.domain.events.exceptions import RecipientNotFoundError, TemplateNotFoundError
from recurring_notification.core.domain.repositories.notification_log_repository import NotificationLogRepository
from recurring_notification.core.domain.repositories.notification_schedule_repository import (
    NotificationScheduleRepository,
)
from recurring_notification.core.domain.repositories.notification_template_repository import (
    NotificationTemplateRepository,
)
from recurring_notification.core.domain.services.channel_policy import (
    CHANNELS,
    normalize_channel,
    resolve_channel,
)
from recurring_notification.core.domain.services.flow_types import (
    PERIODIC,
    is_deduplicated,
    is_eligible,
    normalize_flow_type,
    sent_reference,
)

log = structlog.get_logger(__name__)

MINUTES_PER_DAY = 24 * 60
DEFAULT_LOG_LIMIT = 50
MAX_LOG_LIMIT = 200

REASON_BLOCKED = "blocked"
REASON_NO_CONTACT = "no_contact"

SCHEDULE_FIELDS = ("frequency_minutes", "next_run_at", "preferred_channel", "active")
TEMPLATE_FIELDS = ("name", "channel", "subject", "html_body", "text_body", "is_default")


@dataclass(frozen=True)
class DispatchDetail:
    customer_id: int
    name: str
    status: str
    channel: str
    reason: str | None = None


@dataclass(frozen=True)
class DispatchResult:
    sent: int
    skipped: int
    failed: int
    batch_id: str | None
    schedule: NotificationScheduleEntity
    details: list[DispatchDetail] = field(default_factory=list)


@dataclass(frozen=True)
class DashboardTotals:
    eligible: int
    blocked: int
    no_contact: int
    open_items: int


@dataclass(frozen=True)
class Dashboard:
    schedule: NotificationScheduleEntity
    seconds_remaining: int
    preferred_channel: str
    totals: DashboardTotals
    recipients: list[Recipient]


class NotificationScheduler:
    """
    Notificação recorrente de cobranças em aberto de um tenant.

      • agregação por titular recalculada a cada chamada (sem cache)
      • um agendamento por tenant, criado sob demanda a partir das regras
      • cada rodada grava um lote de logs com o mesmo batch_id e avança o
        agendamento na mesma transação
    """

    def __init__(
        self,
        tenant_id: str,
        schedule_repo: NotificationScheduleRepository,
        log_repo: NotificationLogRepository,
        template_repo: NotificationTemplateRepository,
        receivable_repo: ReceivableRepository,
        customer_repo: CustomerRepository,
        rules_repo: BusinessRulesRepository,
        client: NotificationApiClient,
        message_builder: MessageBuilder,
        default_channel: str | None = None,
    ) -> None:
        self.tenant_id = tenant_id
        self.schedules = schedule_repo
        self.logs = log_repo
        self.templates = template_repo
        self.receivables = receivable_repo
        self.customers = customer_repo
        self.rules_repo = rules_repo
        self.client = client
        self.messages = message_builder
        self.default_channel = default_channel
        self.log = log.bind(tenant_id=tenant_id)
        self._rules: BusinessRulesEntity | None = None

    # ─────────────────────────── helpers ────────────────────────────
    @property
    def rules(self) -> BusinessRulesEntity:
        if self._rules is None:
            self._rules = self.rules_repo.get_for_tenant(self.tenant_id)
        return self._rules

    def ensure_schedule(self) -> NotificationScheduleEntity:
        existing = self.schedules.find_for_tenant(self.tenant_id)
        if existing is not None:
            return existing

        now = timezone.now()
        frequency = max(1, self.rules.overdue_repeat_days) * MINUTES_PER_DAY
        schedule, created = self.schedules.get_or_create(
            self.tenant_id,
            defaults={
                "frequency_minutes": frequency,
                "next_run_at": now + timedelta(minutes=frequency),
                "preferred_channel": normalize_channel(self.rules.overdue_notice_channel, self.default_channel),
                # last_run_at preenchido impede disparo imediato
                "last_run_at": now,
                "active": True,
            },
        )
        if created:
            self.log.info(
                "notification.schedule.created",
                schedule_id=schedule.id,
                frequency_minutes=frequency,
                next_run_at=schedule.next_run_at.isoformat(),
            )
        return schedule

    def _sent_references(self, flow_type: str) -> set[str]:
        refs: set[str] = set()
        for raw in self.logs.sent_payloads(self.tenant_id, flow_type):
            try:
                parsed = json.loads(raw or "{}")
            except ValueError:
                self.log.warning("notification.log.bad_payload", flow_type=flow_type)
                continue
            refs.update(str(r) for r in parsed.get("referencias") or [])
        return refs

    def _eligible_rows(self, flow_type: str):
        today = timezone.localdate()
        rows = [
            (rec, cust)
            for rec, cust in self.receivables.list_open_with_customer()
            if is_eligible(flow_type, rec, self.rules, today)
        ]
        if not is_deduplicated(flow_type):
            return rows
        already_sent = self._sent_references(flow_type)
        return [(rec, cust) for rec, cust in rows if sent_reference(flow_type, rec.id) not in already_sent]

    def build_recipients(self, flow_type: str, schedule: NotificationScheduleEntity) -> list[Recipient]:
        """Contas elegíveis agrupadas por titular, cobranças por vencimento."""
        today = timezone.localdate()
        grouped: dict[int, Recipient] = {}
        for rec, cust in self._eligible_rows(flow_type):
            recipient = grouped.get(cust.id)
            if recipient is None:
                recipient = grouped[cust.id] = Recipient(
                    customer_id=cust.id,
                    name=cust.name,
                    email=cust.email,
                    phone=cust.phone,
                    blocked=cust.notifications_blocked,
                    channel=resolve_channel(
                        cust.notification_channel, schedule.preferred_channel, self.default_channel
                    ),
                )
            recipient.items.append(self._open_item(rec, today))

        for recipient in grouped.values():
            recipient.items.sort(key=lambda i: (i.due_date, i.receivable_id))
        return list(grouped.values())

    @staticmethod
    def _open_item(rec: ReceivableEntity, today) -> OpenItem:
        return OpenItem(
            receivable_id=rec.id,
            description=rec.description,
            amount=rec.amount,
            due_date=rec.due_date,
            status=rec.status,
            days_overdue=rec.days_overdue(today),
        )

    # ─────────────────────────── painel ─────────────────────────────
    def get_dashboard(self, flow_type: str = PERIODIC) -> Dashboard:
        flow_type = normalize_flow_type(flow_type)
        schedule = self.ensure_schedule()
        recipients = self.build_recipients(flow_type, schedule)

        totals = DashboardTotals(
            eligible=sum(1 for r in recipients if not r.blocked and r.has_contact),
            blocked=sum(1 for r in recipients if r.blocked),
            no_contact=sum(1 for r in recipients if not r.has_contact),
            open_items=sum(r.item_count for r in recipients),
        )
        return Dashboard(
            schedule=schedule,
            seconds_remaining=schedule.seconds_remaining(timezone.now()),
            preferred_channel=resolve_channel(None, schedule.preferred_channel, self.default_channel),
            totals=totals,
            recipients=recipients,
        )

    # ─────────────────────────── disparo ────────────────────────────
    def dispatch_due(self, force: bool = False, flow_type: str = PERIODIC) -> DispatchResult:
        flow_type = normalize_flow_type(flow_type)
        schedule = self.ensure_schedule()
        now = timezone.now()

        if not force and not schedule.is_due(now):
            self.log.debug(
                "notification.dispatch.not_due",
                seconds_remaining=schedule.seconds_remaining(now),
            )
            return DispatchResult(sent=0, skipped=0, failed=0, batch_id=None, schedule=schedule)
        if not force and not schedule.active:
            self.log.warning("notification.dispatch.inactive_schedule", schedule_id=schedule.id)
            return DispatchResult(sent=0, skipped=0, failed=0, batch_id=None, schedule=schedule)

        start = time.perf_counter()
        recipients = self.build_recipients(flow_type, schedule)
        templates = {ch: self.templates.find_default(self.tenant_id, ch) for ch in CHANNELS}
        batch_id = f"{schedule.id}_{int(now.timestamp() * 1000)}"

        counts = {LOG_SENT: 0, LOG_SKIPPED: 0, LOG_FAILED: 0}
        details: list[DispatchDetail] = []
        entries: list[NotificationLogEntity] = []

        for recipient in recipients:
            status, reason, extra = self._dispatch_one(recipient, flow_type, templates.get(recipient.channel))
            counts[status] += 1
            NOTIFICATION_DISPATCH.labels(recipient.channel, status).inc()
            details.append(
                DispatchDetail(
                    customer_id=recipient.customer_id,
                    name=recipient.name,
                    status=status,
                    channel=recipient.channel,
                    reason=reason,
                )
            )
            entries.append(
                NotificationLogEntity(
                    tenant_id=self.tenant_id,
                    schedule_id=schedule.id,
                    customer_id=recipient.customer_id,
                    batch_id=batch_id,
                    channel=recipient.channel,
                    destination=recipient.destination or recipient.email or recipient.phone,
                    status=status,
                    reason=reason,
                    payload=self._log_payload(flow_type, recipient, extra),
                )
            )

        finished = timezone.now()
        with self.schedules.atomic():
            self.logs.bulk_create(entries)
            schedule = self.schedules.mark_run(
                schedule.id,
                last_run_at=finished,
                next_run_at=finished + timedelta(minutes=schedule.frequency_minutes),
            )

        NOTIFICATION_RUN_DURATION.labels(flow_type).observe(time.perf_counter() - start)
        self.log.info(
            "notification.dispatch.done",
            flow_type=flow_type,
            batch_id=batch_id,
            forced=force,
            sent=counts[LOG_SENT],
            skipped=counts[LOG_SKIPPED],
            failed=counts[LOG_FAILED],
        )
        return DispatchResult(
            sent=counts[LOG_SENT],
            skipped=counts[LOG_SKIPPED],
            failed=counts[LOG_FAILED],
            batch_id=batch_id,
            schedule=schedule,
            details=details,
        )

    def _dispatch_one(
        self,
        recipient: Recipient,
        flow_type: str,
        template: NotificationTemplateEntity | None,
    ) -> tuple[str, str | None, dict[str, Any] | None]:
        if recipient.blocked:
            return LOG_SKIPPED, REASON_BLOCKED, None
        if not recipient.has_contact:
            return LOG_SKIPPED, REASON_NO_CONTACT, None

        payload = self.messages.build(recipient, flow_type, template)
        outcome = self.client.send(recipient.channel, payload)
        provider = {"providerResponse": {"status": outcome.status_code, "error": outcome.error}}
        if outcome.success:
            return LOG_SENT, None, None
        if outcome.skipped:
            return LOG_SKIPPED, outcome.error, provider
        return LOG_FAILED, outcome.error, provider

    @staticmethod
    def _log_payload(flow_type: str, recipient: Recipient, extra: dict[str, Any] | None) -> str:
        data = {
            "tipo": flow_type,
            "referencias": [sent_reference(flow_type, i.receivable_id) for i in recipient.items],
            "customer_id": recipient.customer_id,
            "cobrancas": [
                {
                    "contaId": i.receivable_id,
                    "vencimento": i.due_date.isoformat(),
                    "valor": str(i.amount),
                    "status": i.status,
                }
                for i in recipient.items
            ],
            "channel": recipient.channel,
            **(extra or {}),
        }
        return json.dumps(data, ensure_ascii=False)

    # ─────────────────────────── mutações ───────────────────────────
    def update_schedule(self, **patch: Any) -> NotificationScheduleEntity:
        schedule = self.ensure_schedule()
        changes = {k: v for k, v in patch.items() if k in SCHEDULE_FIELDS and v is not None}
        if "preferred_channel" in changes:
            changes["preferred_channel"] = normalize_channel(changes["preferred_channel"])
        if "next_run_at" not in changes:
            frequency = changes.get("frequency_minutes", schedule.frequency_minutes)
            changes["next_run_at"] = timezone.now() + timedelta(minutes=frequency)

        updated = self.schedules.update(schedule.id, **changes)
        self.log.info("notification.schedule.updated", schedule_id=updated.id, fields=sorted(changes))
        return updated

    def update_customer_block(self, customer_id: int, blocked: bool, flow_type: str = PERIODIC) -> Recipient:
        self._require_customer(customer_id)
        self.customers.update_notification_preferences(customer_id, blocked=bool(blocked))
        self.log.info("notification.customer.block", customer_id=customer_id, blocked=bool(blocked))
        return self._recipient_for(customer_id, flow_type)

    def update_customer_channel(self, customer_id: int, channel: str | None, flow_type: str = PERIODIC) -> Recipient:
        self._require_customer(customer_id)
        normalized = normalize_channel(channel, self.default_channel)
        self.customers.update_notification_preferences(customer_id, channel=normalized)
        self.log.info("notification.customer.channel", customer_id=customer_id, channel=normalized)
        return self._recipient_for(customer_id, flow_type)

    def _require_customer(self, customer_id: int) -> None:
        if self.customers.find_by_id(customer_id) is None:
            raise RecipientNotFoundError(customer_id)

    def _recipient_for(self, customer_id: int, flow_type: str) -> Recipient:
        """Destinatário como aparece no painel; titular sem pendências vem sem cobranças."""
        schedule = self.ensure_schedule()
        for recipient in self.build_recipients(normalize_flow_type(flow_type), schedule):
            if recipient.customer_id == customer_id:
                return recipient
        customer = self.customers.find_by_id(customer_id)
        if customer is None:
            raise RecipientNotFoundError(customer_id)
        return Recipient(
            customer_id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            blocked=customer.notifications_blocked,
            channel=resolve_channel(
                customer.notification_channel, schedule.preferred_channel, self.default_channel
            ),
        )

    # ─────────────────────────── logs ───────────────────────────────
    def get_logs(self, limit: int = DEFAULT_LOG_LIMIT, flow_type: str | None = None) -> list[NotificationLogEntity]:
        limit = max(1, min(int(limit or DEFAULT_LOG_LIMIT), MAX_LOG_LIMIT))
        if flow_type:
            flow_type = normalize_flow_type(flow_type)
        return self.logs.list_recent(self.tenant_id, limit, flow_type)

    # ─────────────────────────── templates ──────────────────────────
    def list_templates(self, channel: str | None = None) -> list[NotificationTemplateEntity]:
        return self.templates.list(self.tenant_id, normalize_channel(channel) if channel else None)

    def get_default_template(self, channel: str) -> NotificationTemplateEntity | None:
        return self.templates.find_default(self.tenant_id, normalize_channel(channel))

    def create_template(self, **fields: Any) -> NotificationTemplateEntity:
        data = {k: v for k, v in fields.items() if k in TEMPLATE_FIELDS}
        data["channel"] = normalize_channel(data.get("channel"), self.default_channel)
        template = self.templates.create(self.tenant_id, **data)
        self.log.info("notification.template.created", template_id=template.id, channel=template.channel)
        return template

    def update_template(self, template_id: int, **fields: Any) -> NotificationTemplateEntity:
        data = {k: v for k, v in fields.items() if k in TEMPLATE_FIELDS}
        if "channel" in data:
            data["channel"] = normalize_channel(data["channel"])
        template = self.templates.update(self.tenant_id, template_id, **data)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def delete_template(self, template_id: int) -> None:
        if not self.templates.delete(self.tenant_id, template_id):
            raise TemplateNotFoundError(template_id)
        self.log.info("notification.template.deleted", template_id=template_id)
