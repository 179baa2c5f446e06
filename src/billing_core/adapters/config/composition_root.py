from dependency_injector import containers, providers

container = None


def setup_di_container_from_settings(settings):
    """Inicializa o container do núcleo de cobrança (idempotente)."""
    global container  # noqa: PLW0603
    if container is not None:
        return container

    import structlog

    from billing_core.adapters.repositories.business_rules_repo_impl import BusinessRulesRepoImpl
    from billing_core.adapters.repositories.customer_repo_impl import CustomerRepoImpl
    from billing_core.adapters.repositories.receivable_repo_impl import ReceivableRepoImpl
    from billing_core.core.application.commands.plan_status_commands import (
        SyncAllPlanStatusCommand,
        SyncPlanStatusCommand,
    )
    from billing_core.core.application.cqrs import CommandBusImpl, QueryBusImpl
    from billing_core.core.application.handlers.customer_handlers import (
        GetCustomerHandler,
        ListCustomersHandler,
    )
    from billing_core.core.application.handlers.plan_status_handlers import (
        ResyncPlanOnReceivableChange,
        SyncAllPlanStatusHandler,
        SyncPlanStatusHandler,
    )
    from billing_core.core.application.queries.customer_queries import GetCustomerQuery, ListCustomersQuery
    from billing_core.core.application.services.plan_status_service import PlanStatusSynchronizer
    from billing_core.core.domain.events.events import ReceivableStatusChangedEvent
    from billing_core.core.domain.services.event_dispatcher import EventDispatcher

    def build_plan_status_synchronizer(tenant_id: str, rules_repo) -> PlanStatusSynchronizer:
        return PlanStatusSynchronizer(
            tenant_id=tenant_id,
            customer_repo=CustomerRepoImpl(tenant_id),
            receivable_repo=ReceivableRepoImpl(tenant_id),
            rules_repo=rules_repo,
        )

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()
        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Singleton(EventDispatcher)

        # CQRS
        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)
        query_bus = providers.Singleton(QueryBusImpl)

        # Repositórios por tenant (chamados com tenant_id=...)
        customer_repo = providers.Factory(CustomerRepoImpl)
        receivable_repo = providers.Factory(ReceivableRepoImpl)
        business_rules_repo = providers.Singleton(BusinessRulesRepoImpl)

        # Serviços por tenant
        plan_status_synchronizer = providers.Factory(
            build_plan_status_synchronizer,
            rules_repo=business_rules_repo,
        )

        # Handlers
        sync_plan_status_handler = providers.Factory(
            SyncPlanStatusHandler,
            synchronizer_factory=plan_status_synchronizer.provider,
        )
        sync_all_plan_status_handler = providers.Factory(
            SyncAllPlanStatusHandler,
            synchronizer_factory=plan_status_synchronizer.provider,
        )
        list_customers_handler = providers.Factory(
            ListCustomersHandler,
            synchronizer_factory=plan_status_synchronizer.provider,
        )
        get_customer_handler = providers.Factory(
            GetCustomerHandler,
            synchronizer_factory=plan_status_synchronizer.provider,
        )
        resync_plan_listener = providers.Factory(ResyncPlanOnReceivableChange, command_bus=command_bus)

        def init(self):
            bus = self.command_bus()
            bus.register(SyncPlanStatusCommand, self.sync_plan_status_handler())
            bus.register(SyncAllPlanStatusCommand, self.sync_all_plan_status_handler())

            qb = self.query_bus()
            qb.register(ListCustomersQuery, self.list_customers_handler())
            qb.register(GetCustomerQuery, self.get_customer_handler())

            self.event_dispatcher().subscribe(ReceivableStatusChangedEvent, self.resync_plan_listener())

    container = Container()
    Container.init(container)
    return container
