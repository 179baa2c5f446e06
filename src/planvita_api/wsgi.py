import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Os containers de DI são montados em PlanvitaConfig.ready()
application = get_wsgi_application()
