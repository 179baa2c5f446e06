from django.apps import AppConfig


class PlanvitaConfig(AppConfig):
    name = "planvita_api"
    verbose_name = "Planvita Billing API"

    def ready(self):
        from django.conf import settings

        # ─── DI containers (núcleo primeiro: os demais compartilham o dispatcher) ───
        from asaas_billing.adapters.config.composition_root import (
            setup_di_container_from_settings as build_asaas_container,
        )
        from billing_core.adapters.config.composition_root import (
            setup_di_container_from_settings as build_core_container,
        )
        from recurring_notification.adapters.config.composition_root import (
            setup_di_container_from_settings as build_notification_container,
        )

        build_core_container(settings)
        build_asaas_container(settings)
        build_notification_container(settings)

        # shared_task precisa do app configurado (fila, modo eager)
        from planvita_api.celery import app as celery_app  # noqa: F401
