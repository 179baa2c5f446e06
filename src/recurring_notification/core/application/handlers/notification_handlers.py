from __future__ import annotations

from collections.abc import Callable

from billing_core.core.application.cqrs import CommandHandler, QueryHandler
from recurring_notification.core.application.commands.notification_commands import (
    CreateTemplateCommand,
    DeleteTemplateCommand,
    DispatchDueNotificationsCommand,
    UpdateCustomerBlockCommand,
    UpdateCustomerChannelCommand,
    UpdateScheduleCommand,
    UpdateTemplateCommand,
)
from recurring_notification.core.application.queries.notification_queries import (
    GetDashboardQuery,
    GetDefaultTemplateQuery,
    ListNotificationLogsQuery,
    ListTemplatesQuery,
)
from recurring_notification.core.application.services.notification_scheduler import (
    Dashboard,
    DispatchResult,
    NotificationScheduler,
)
from recurring_notification.core.domain.entities.notification_log_entity import NotificationLogEntity
from recurring_notification.core.domain.entities.notification_schedule_entity import NotificationScheduleEntity
from recurring_notification.core.domain.entities.notification_template_entity import NotificationTemplateEntity
from recurring_notification.core.domain.entities.recipient import Recipient

SchedulerFactory = Callable[..., NotificationScheduler]


class _SchedulerHandler:
    def __init__(self, scheduler_factory: SchedulerFactory):
        self._factory = scheduler_factory

    def _scheduler(self, tenant_id: str) -> NotificationScheduler:
        return self._factory(tenant_id=tenant_id)


# ───────────────────────────────────────────────
# Commands
# ───────────────────────────────────────────────
class DispatchDueNotificationsHandler(_SchedulerHandler, CommandHandler[DispatchDueNotificationsCommand]):
    def handle(self, cmd: DispatchDueNotificationsCommand) -> DispatchResult:
        return self._scheduler(cmd.tenant_id).dispatch_due(force=cmd.force, flow_type=cmd.flow_type)


class UpdateScheduleHandler(_SchedulerHandler, CommandHandler[UpdateScheduleCommand]):
    def handle(self, cmd: UpdateScheduleCommand) -> NotificationScheduleEntity:
        return self._scheduler(cmd.tenant_id).update_schedule(**cmd.patch)


class UpdateCustomerBlockHandler(_SchedulerHandler, CommandHandler[UpdateCustomerBlockCommand]):
    def handle(self, cmd: UpdateCustomerBlockCommand) -> Recipient:
        return self._scheduler(cmd.tenant_id).update_customer_block(
            cmd.customer_id, cmd.blocked, flow_type=cmd.flow_type
        )


class UpdateCustomerChannelHandler(_SchedulerHandler, CommandHandler[UpdateCustomerChannelCommand]):
    def handle(self, cmd: UpdateCustomerChannelCommand) -> Recipient:
        return self._scheduler(cmd.tenant_id).update_customer_channel(
            cmd.customer_id, cmd.channel, flow_type=cmd.flow_type
        )


class CreateTemplateHandler(_SchedulerHandler, CommandHandler[CreateTemplateCommand]):
    def handle(self, cmd: CreateTemplateCommand) -> NotificationTemplateEntity:
        return self._scheduler(cmd.tenant_id).create_template(**cmd.payload)


class UpdateTemplateHandler(_SchedulerHandler, CommandHandler[UpdateTemplateCommand]):
    def handle(self, cmd: UpdateTemplateCommand) -> NotificationTemplateEntity:
        return self._scheduler(cmd.tenant_id).update_template(cmd.template_id, **cmd.payload)


class DeleteTemplateHandler(_SchedulerHandler, CommandHandler[DeleteTemplateCommand]):
    def handle(self, cmd: DeleteTemplateCommand) -> None:
        self._scheduler(cmd.tenant_id).delete_template(cmd.template_id)


# ───────────────────────────────────────────────
# Queries
# ───────────────────────────────────────────────
class GetDashboardHandler(_SchedulerHandler, QueryHandler[GetDashboardQuery, Dashboard]):
    def handle(self, query: GetDashboardQuery) -> Dashboard:
        return self._scheduler(query.tenant_id).get_dashboard(flow_type=query.flow_type)


class ListNotificationLogsHandler(
    _SchedulerHandler, QueryHandler[ListNotificationLogsQuery, list[NotificationLogEntity]]
):
    def handle(self, query: ListNotificationLogsQuery) -> list[NotificationLogEntity]:
        return self._scheduler(query.tenant_id).get_logs(limit=query.limit, flow_type=query.flow_type)


class ListTemplatesHandler(_SchedulerHandler, QueryHandler[ListTemplatesQuery, list[NotificationTemplateEntity]]):
    def handle(self, query: ListTemplatesQuery) -> list[NotificationTemplateEntity]:
        return self._scheduler(query.tenant_id).list_templates(channel=query.channel)


class GetDefaultTemplateHandler(
    _SchedulerHandler, QueryHandler[GetDefaultTemplateQuery, NotificationTemplateEntity | None]
):
    def handle(self, query: GetDefaultTemplateQuery) -> NotificationTemplateEntity | None:
        return self._scheduler(query.tenant_id).get_default_template(query.channel)
