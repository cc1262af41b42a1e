import os

from django.core.wsgi import get_wsgi_application

from config.structlog_config import configure_logging

configure_logging()
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# o container DI é montado em GestaoClinicaConfig.ready()
application = get_wsgi_application()
