from pathlib import Path

from decouple import Csv, config

# -------------------------------
# Diretórios base
# -------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent

# -------------------------------
# Segurança e debug
# -------------------------------
SECRET_KEY = config('SECRET_KEY', default='dev-insecure-secret-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

# -------------------------------
# Cookies & CSRF
# -------------------------------
SESSION_COOKIE_SECURE   = config('SESSION_COOKIE_SECURE', default=False, cast=bool) # Desenvolvido para HTTPS
SESSION_COOKIE_HTTPONLY = config('SESSION_COOKIE_HTTPONLY', default=True, cast=bool)
SESSION_COOKIE_SAMESITE = config('SESSION_COOKIE_SAMESITE', default='Lax')
CSRF_COOKIE_SECURE      = config('CSRF_COOKIE_SECURE', default=False, cast=bool) # Desenvolvido para HTTPS
CSRF_COOKIE_SAMESITE    = config('CSRF_COOKIE_SAMESITE', default='Lax')

SECURE_SSL_REDIRECT     = config('SECURE_SSL_REDIRECT', default=False, cast=bool)
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')

# -------------------------------
# CORS
# -------------------------------
CORS_ALLOW_ALL_ORIGINS = config('CORS_ALLOW_ALL_ORIGINS', default=False, cast=bool)
CORS_ALLOW_CREDENTIALS = config('CORS_ALLOW_CREDENTIALS', default=True, cast=bool)
CSRF_TRUSTED_ORIGINS   = config('CSRF_TRUSTED_ORIGINS', default='http://localhost:3000', cast=Csv())
CORS_ALLOWED_ORIGINS   = config('CORS_ALLOWED_ORIGINS', default='http://localhost:3000', cast=Csv())

# -------------------------------
# Motor financeiro
# -------------------------------
# Alíquota usada quando o workspace não define a sua (fração: 0.15 = 15 %)
DEFAULT_TAX_RATE               = config('DEFAULT_TAX_RATE', default='0.15')
# Janela de recebimento quando não há regra de taxa cadastrada
DEFAULT_CARD_RECEIVING_DAYS    = config('DEFAULT_CARD_RECEIVING_DAYS', default=30, cast=int)
# Intervalo entre recebíveis de parcelas de cartão
CARD_INSTALLMENT_INTERVAL_DAYS = config('CARD_INSTALLMENT_INTERVAL_DAYS', default=30, cast=int)
# Diferença máxima aceita entre a soma dos splits e o total da venda
RECONCILIATION_TOLERANCE       = config('RECONCILIATION_TOLERANCE', default='0.01')

# -------------------------------
# Cache (Redis quando configurado)
# -------------------------------
REDIS_URL = config('REDIS_URL', default='')
if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": REDIS_URL,
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "gestao-clinica",
        }
    }

# -------------------------------
# Apps, Middleware, URLs
# -------------------------------
INSTALLED_APPS = [
    'corsheaders',
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'drf_yasg',
    'django_prometheus',
    'gestao_clinica_api.apps.GestaoClinicaConfig',
    'plugins.django_interface.apps.DjangoInterfaceConfig',
]

MIDDLEWARE = [
    'django_prometheus.middleware.PrometheusBeforeMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'whitenoise.middleware.WhiteNoiseMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'plugins.django_interface.request_middleware.RequestContextMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django_prometheus.middleware.PrometheusAfterMiddleware',
]

ROOT_URLCONF = 'gestao_clinica_api.urls'
WSGI_APPLICATION = 'gestao_clinica_api.wsgi.application'
ASGI_APPLICATION = 'gestao_clinica_api.asgi.application'

# -------------------------------
# Templates
# -------------------------------
TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# -------------------------------
# REST Framework
# -------------------------------
# Identidade/sessão ficam fora deste serviço: autenticação padrão do Django.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework.authentication.SessionAuthentication",
        "rest_framework.authentication.BasicAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": (
        "rest_framework.permissions.IsAuthenticated",
    ),
    "EXCEPTION_HANDLER": "plugins.django_interface.exception_handler.financial_exception_handler",
}
SWAGGER_SETTINGS = {
    'SECURITY_DEFINITIONS': {
        'Basic': {'type': 'basic'}
    },
}

# -------------------------------
# Banco de Dados
# -------------------------------
if config('DB_ENGINE', default='sqlite') == 'postgres':
    DATABASES = {
        'default': {
            'ENGINE':   'django.db.backends.postgresql',
            'NAME':     config('DB_NAME'),
            'USER':     config('DB_USER'),
            'PASSWORD': config('DB_PASS'),
            'HOST':     config('DB_HOST', default='localhost'),
            'PORT':     config('DB_PORT', default=5432, cast=int),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME':   BASE_DIR / 'db.sqlite3',
        }
    }

# -------------------------------
# Internacionalização
# -------------------------------
LANGUAGE_CODE = 'pt-br'
TIME_ZONE     = 'America/Sao_Paulo'
USE_I18N      = True
USE_TZ        = True

# -------------------------------
# Arquivos estáticos
# -------------------------------
STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
