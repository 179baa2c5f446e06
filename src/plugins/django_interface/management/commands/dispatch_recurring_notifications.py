from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from billing_core.adapters.context.tenant_context import normalize_tenant
from recurring_notification.adapters.config.composition_root import (
    setup_di_container_from_settings as setup_notification_container,
)
from recurring_notification.core.application.commands.notification_commands import (
    DispatchDueNotificationsCommand,
)
from recurring_notification.core.domain.services.flow_types import FLOW_TYPES, PERIODIC


class Command(BaseCommand):
    help = "Dispara a notificação recorrente de um tenant se o agendamento venceu."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", required=True, help="Identificador do tenant (ex.: lider, pax, bosque)")
        parser.add_argument(
            "--force",
            action="store_true",
            default=False,
            help="Dispara mesmo antes do próximo horário agendado",
        )
        parser.add_argument(
            "--flow-type",
            default=PERIODIC,
            choices=FLOW_TYPES,
            help=f"Tipo de fluxo (default: {PERIODIC})",
        )

    def handle(self, *args, **opts):
        tenant_id = normalize_tenant(opts["tenant"])
        if not tenant_id:
            raise CommandError("--tenant vazio")

        bus = setup_notification_container(settings).command_bus()
        result = bus.dispatch(
            DispatchDueNotificationsCommand(
                tenant_id=tenant_id,
                force=opts["force"],
                flow_type=opts["flow_type"],
            )
        )
        self.stdout.write(
            self.style.SUCCESS(
                f"[{tenant_id}] enviados={result.sent} ignorados={result.skipped} "
                f"falhas={result.failed} lote={result.batch_id or '-'}"
            )
        )
