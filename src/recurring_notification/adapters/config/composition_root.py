from dependency_injector import containers, providers

container = None


def setup_di_container_from_settings(settings):
    """Container da notificação recorrente (idempotente)."""
    global container  # noqa: PLW0603
    if container is not None:
        return container

    import structlog

    from billing_core.adapters.config.composition_root import (
        setup_di_container_from_settings as setup_core_container,
    )
    from billing_core.adapters.repositories.customer_repo_impl import CustomerRepoImpl
    from billing_core.adapters.repositories.receivable_repo_impl import ReceivableRepoImpl
    from billing_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from recurring_notification.adapters.api_clients.notification_api_client import NotificationApiClient
    from recurring_notification.adapters.repositories.notification_log_repo_impl import NotificationLogRepoImpl
    from recurring_notification.adapters.repositories.notification_schedule_repo_impl import (
        NotificationScheduleRepoImpl,
    )
    from recurring_notification.adapters.repositories.notification_template_repo_impl import (
        NotificationTemplateRepoImpl,
    )
    from recurring_notification.core.application.commands.notification_commands import (
        CreateTemplateCommand,
        DeleteTemplateCommand,
        DispatchDueNotificationsCommand,
        UpdateCustomerBlockCommand,
        UpdateCustomerChannelCommand,
        UpdateScheduleCommand,
        UpdateTemplateCommand,
    )
    from recurring_notification.core.application.handlers.notification_handlers import (
        CreateTemplateHandler,
        DeleteTemplateHandler,
        DispatchDueNotificationsHandler,
        GetDashboardHandler,
        GetDefaultTemplateHandler,
        ListNotificationLogsHandler,
        ListTemplatesHandler,
        UpdateCustomerBlockHandler,
        UpdateCustomerChannelHandler,
        UpdateScheduleHandler,
        UpdateTemplateHandler,
    )
    from recurring_notification.core.application.queries.notification_queries import (
        GetDashboardQuery,
        GetDefaultTemplateQuery,
        ListNotificationLogsQuery,
        ListTemplatesQuery,
    )
    from recurring_notification.core.application.services.formatter_service import FormatterService
    from recurring_notification.core.application.services.message_builder import MessageBuilder
    from recurring_notification.core.application.services.notification_scheduler import NotificationScheduler

    core = setup_core_container(settings)

    def build_notification_scheduler(tenant_id: str, client, rules_repo, formatter) -> NotificationScheduler:
        return NotificationScheduler(
            tenant_id=tenant_id,
            schedule_repo=NotificationScheduleRepoImpl(tenant_id),
            log_repo=NotificationLogRepoImpl(tenant_id),
            template_repo=NotificationTemplateRepoImpl(tenant_id),
            receivable_repo=ReceivableRepoImpl(tenant_id),
            customer_repo=CustomerRepoImpl(tenant_id),
            rules_repo=rules_repo,
            client=client,
            message_builder=MessageBuilder(tenant_id, formatter),
            default_channel=getattr(settings, "NOTIFICATION_DEFAULT_CHANNEL", None),
        )

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()
        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Object(core.event_dispatcher())

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus = providers.Singleton(QueryBusImpl)

        # Infra
        notification_client = providers.Singleton(NotificationApiClient)
        formatter = providers.Singleton(FormatterService)
        business_rules_repo = providers.Object(core.business_rules_repo())

        # Por tenant (chamado com tenant_id=...)
        notification_scheduler = providers.Factory(
            build_notification_scheduler,
            client=notification_client,
            rules_repo=business_rules_repo,
            formatter=formatter,
        )

        # Handlers
        dispatch_due_handler = providers.Factory(
            DispatchDueNotificationsHandler, scheduler_factory=notification_scheduler.provider
        )
        update_schedule_handler = providers.Factory(
            UpdateScheduleHandler, scheduler_factory=notification_scheduler.provider
        )
        update_customer_block_handler = providers.Factory(
            UpdateCustomerBlockHandler, scheduler_factory=notification_scheduler.provider
        )
        update_customer_channel_handler = providers.Factory(
            UpdateCustomerChannelHandler, scheduler_factory=notification_scheduler.provider
        )
        create_template_handler = providers.Factory(
            CreateTemplateHandler, scheduler_factory=notification_scheduler.provider
        )
        update_template_handler = providers.Factory(
            UpdateTemplateHandler, scheduler_factory=notification_scheduler.provider
        )
        delete_template_handler = providers.Factory(
            DeleteTemplateHandler, scheduler_factory=notification_scheduler.provider
        )
        get_dashboard_handler = providers.Factory(
            GetDashboardHandler, scheduler_factory=notification_scheduler.provider
        )
        list_logs_handler = providers.Factory(
            ListNotificationLogsHandler, scheduler_factory=notification_scheduler.provider
        )
        list_templates_handler = providers.Factory(
            ListTemplatesHandler, scheduler_factory=notification_scheduler.provider
        )
        get_default_template_handler = providers.Factory(
            GetDefaultTemplateHandler, scheduler_factory=notification_scheduler.provider
        )

        def init(self):
            bus = self.command_bus()
            bus.register(DispatchDueNotificationsCommand, self.dispatch_due_handler())
            bus.register(UpdateScheduleCommand, self.update_schedule_handler())
            bus.register(UpdateCustomerBlockCommand, self.update_customer_block_handler())
            bus.register(UpdateCustomerChannelCommand, self.update_customer_channel_handler())
            bus.register(CreateTemplateCommand, self.create_template_handler())
            bus.register(UpdateTemplateCommand, self.update_template_handler())
            bus.register(DeleteTemplateCommand, self.delete_template_handler())

            qb = self.query_bus()
            qb.register(GetDashboardQuery, self.get_dashboard_handler())
            qb.register(ListNotificationLogsQuery, self.list_logs_handler())
            qb.register(ListTemplatesQuery, self.list_templates_handler())
            qb.register(GetDefaultTemplateQuery, self.get_default_template_handler())

    container = Container()
    Container.init(container)
    return container
