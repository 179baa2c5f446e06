from dependency_injector import containers, providers

container = None


def setup_di_container_from_settings(settings):
    """
    Container da integração Asaas. Reaproveita o EventDispatcher do núcleo
    de cobrança para que mudanças de status cheguem ao sincronizador de plano.
    """
    global container  # noqa: PLW0603
    if container is not None:
        return container

    import structlog

    from asaas_billing.adapters.api_clients.asaas_client import AsaasClient
    from asaas_billing.adapters.api_clients.asaas_credentials import resolve_asaas_credentials
    from asaas_billing.adapters.repositories.commission_repo_impl import CommissionRepoImpl
    from asaas_billing.adapters.repositories.financial_audit_repo_impl import FinancialAuditRepoImpl
    from asaas_billing.adapters.repositories.payment_repo_impl import PaymentRepoImpl
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
    from asaas_billing.core.application.handlers.billing_handlers import (
        ApplyWebhookHandler,
        ChargebackReceivableHandler,
        EnsureCustomerHandler,
        EnsurePaymentHandler,
        RefreshPaymentStatusHandler,
        SettleReceivableHandler,
        SyncReceivableDeletionHandler,
        SyncReceivableUpdateHandler,
    )
    from asaas_billing.core.application.services.billing_reconciler import BillingReconciler
    from asaas_billing.core.application.services.commission_service import CommissionService
    from billing_core.adapters.config.composition_root import (
        setup_di_container_from_settings as setup_core_container,
    )
    from billing_core.adapters.repositories.customer_repo_impl import CustomerRepoImpl
    from billing_core.adapters.repositories.receivable_repo_impl import ReceivableRepoImpl
    from billing_core.core.application.cqrs import CommandBusImpl

    core = setup_core_container(settings)

    def build_asaas_client(tenant_id: str) -> AsaasClient:
        return AsaasClient(resolve_asaas_credentials(tenant_id))

    def build_billing_reconciler(tenant_id: str, dispatcher) -> BillingReconciler:
        return BillingReconciler(
            tenant_id=tenant_id,
            client=build_asaas_client(tenant_id),
            receivable_repo=ReceivableRepoImpl(tenant_id),
            customer_repo=CustomerRepoImpl(tenant_id),
            payment_repo=PaymentRepoImpl(tenant_id),
            commission_service=CommissionService(tenant_id, CommissionRepoImpl(tenant_id)),
            audit_repo=FinancialAuditRepoImpl(tenant_id),
            dispatcher=dispatcher,
        )

    # ------- DECLARAÇÃO DO CONTAINER -------
    class Container(containers.DeclarativeContainer):
        config = providers.Configuration()
        logger = providers.Singleton(structlog.get_logger)
        event_dispatcher = providers.Object(core.event_dispatcher())

        command_bus = providers.Singleton(CommandBusImpl, dispatcher=event_dispatcher)

        # Por tenant (chamados com tenant_id=...)
        asaas_client = providers.Factory(build_asaas_client)
        billing_reconciler = providers.Factory(build_billing_reconciler, dispatcher=event_dispatcher)

        # Handlers
        apply_webhook_handler = providers.Factory(
            ApplyWebhookHandler, reconciler_factory=billing_reconciler.provider
        )
        refresh_payment_status_handler = providers.Factory(
            RefreshPaymentStatusHandler, reconciler_factory=billing_reconciler.provider
        )
        ensure_customer_handler = providers.Factory(
            EnsureCustomerHandler, reconciler_factory=billing_reconciler.provider
        )
        ensure_payment_handler = providers.Factory(
            EnsurePaymentHandler, reconciler_factory=billing_reconciler.provider
        )
        sync_receivable_update_handler = providers.Factory(
            SyncReceivableUpdateHandler, reconciler_factory=billing_reconciler.provider
        )
        sync_receivable_deletion_handler = providers.Factory(
            SyncReceivableDeletionHandler, reconciler_factory=billing_reconciler.provider
        )
        settle_receivable_handler = providers.Factory(
            SettleReceivableHandler, reconciler_factory=billing_reconciler.provider
        )
        chargeback_receivable_handler = providers.Factory(
            ChargebackReceivableHandler, reconciler_factory=billing_reconciler.provider
        )

        def init(self):
            bus = self.command_bus()
            bus.register(ApplyWebhookCommand, self.apply_webhook_handler())
            bus.register(RefreshPaymentStatusCommand, self.refresh_payment_status_handler())
            bus.register(EnsureCustomerCommand, self.ensure_customer_handler())
            bus.register(EnsurePaymentCommand, self.ensure_payment_handler())
            bus.register(SyncReceivableUpdateCommand, self.sync_receivable_update_handler())
            bus.register(SyncReceivableDeletionCommand, self.sync_receivable_deletion_handler())
            bus.register(SettleReceivableCommand, self.settle_receivable_handler())
            bus.register(ChargebackReceivableCommand, self.chargeback_receivable_handler())

    container = Container()
    Container.init(container)
    return container
