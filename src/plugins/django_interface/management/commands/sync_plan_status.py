from django.conf import settings
from django.core.management.base import BaseCommand

from billing_core.adapters.config.composition_root import (
    setup_di_container_from_settings as setup_core_container,
)
from billing_core.adapters.context.tenant_context import normalize_tenant
from billing_core.core.application.commands.plan_status_commands import SyncAllPlanStatusCommand


class Command(BaseCommand):
    """
    Varre todos os titulares de cada tenant e corrige o status de plano.
    Idempotente: uma segunda execução sem mudança nas contas não altera nada.
    """
    help = "Sincroniza o status de plano (ATIVO/SUSPENSO) pela inadimplência."

    def add_arguments(self, parser):
        parser.add_argument(
            "--tenants",
            help="Tenants separados por vírgula (default: PLANVITA_TENANTS).",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Titulares processados por lote (default: PLAN_STATUS_SYNC_BATCH_SIZE).",
        )

    def handle(self, *args, **opts):
        raw = opts.get("tenants")
        tenants = [normalize_tenant(t) for t in raw.split(",")] if raw else list(settings.PLANVITA_TENANTS)
        batch_size = opts["batch_size"] or settings.PLAN_STATUS_SYNC_BATCH_SIZE
        tenants = [t for t in tenants if t]
        if not tenants:
            self.stderr.write(self.style.ERROR("Nenhum tenant informado."))
            return

        bus = setup_core_container(settings).command_bus()
        for tenant_id in tenants:
            result = bus.dispatch(SyncAllPlanStatusCommand(tenant_id=tenant_id, batch_size=batch_size))
            self.stdout.write(
                self.style.SUCCESS(
                    f"[{tenant_id}] processados={result.processed} "
                    f"suspensos={result.suspended} reativados={result.activated}"
                )
            )
