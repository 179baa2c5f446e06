import structlog
from django.apps import AppConfig

logger = structlog.get_logger(__name__)

class DjangoInterfaceConfig(AppConfig):
    name = "plugins.django_interface"
    verbose_name = "Planvita Billing Interface"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        logger.info("django_interface.ready")
