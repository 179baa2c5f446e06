import os

from celery import Celery

# Define o módulo de configurações do Django para o Celery.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('planvita_api')

# Toda configuração do Celery vem do settings com prefixo CELERY_
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
