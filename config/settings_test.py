from config.settings import *  # noqa: F403

DEBUG = False
SECRET_KEY = "planvita-test"
PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

PLANVITA_TENANTS = ["lider", "pax"]
TENANT_DATABASES = {}
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"

ASAAS_API_KEY = "test-api-key"
ASAAS_TOKEN = ""
ASAAS_WEBHOOK_SECRET = "test-webhook-secret"
ASAAS_BASE_URL = "https://asaas.test/api/v3"
ASAAS_ENABLED_TENANTS = []
ASAAS_MAX_RETRIES = 3
ASAAS_RETRY_BASE_DELAY = 0

NOTIFICATION_API_BASE_URL = "https://notify.test"
NOTIFICATION_EMAIL_TOKEN = "email-token"
NOTIFICATION_WHATSAPP_TOKEN = "whatsapp-token"
NOTIFICATION_DEFAULT_CHANNEL = "whatsapp"
