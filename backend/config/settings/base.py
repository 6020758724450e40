import os
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve().parents[2]

env = environ.Env(
    DEBUG=(bool, False),
    ALLOWED_HOSTS=(list, ['localhost', '127.0.0.1']),
    CORS_ALLOW_ALL_ORIGINS=(bool, False),
    API_REQUIRE_AUTH=(bool, False),
    API_THROTTLE_VERIFY=(str, '60/minute'),
    API_THROTTLE_LOOKUP=(str, '120/minute'),
    API_THROTTLE_DEFAULT=(str, '180/minute'),
    GEOVERIFY_PROVIDER_TIMEOUT_SECONDS=(float, 3.0),
    GEOVERIFY_LOOKUP_DEADLINE_SECONDS=(float, 6.0),
    GEOVERIFY_LOOKUP_CACHE_TTL_SECONDS=(int, 3600),
    GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE=(bool, False),
)

environ.Env.read_env(os.path.join(BASE_DIR, '.env'))

SECRET_KEY = env('DJANGO_SECRET_KEY', default='django-insecure-change-me')
DEBUG = env('DEBUG')
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')
APP_VERSION = env('APP_VERSION', default='0.1.0')
API_AUTH_TOKEN = env('API_AUTH_TOKEN', default='')
API_REQUIRE_AUTH = env('API_REQUIRE_AUTH')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'corsheaders',
    'rest_framework',
    'geoverify',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

# The engine is stateless; the database only backs Django's own bookkeeping.
DATABASES = {
    'default': env.db_url(
        'DATABASE_URL',
        default='sqlite:///db.sqlite3',
    ),
}

CACHES = {
    'default': env.cache_url(
        'CACHE_URL',
        default='locmemcache://geoverify',
    ),
}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_THROTTLE_CLASSES': [
        'geoverify.throttles.GeoverifyScopedRateThrottle',
    ],
    'DEFAULT_THROTTLE_RATES': {
        'verify': env('API_THROTTLE_VERIFY'),
        'lookup': env('API_THROTTLE_LOOKUP'),
        'default': env('API_THROTTLE_DEFAULT'),
    },
}

CORS_ALLOW_ALL_ORIGINS = env('CORS_ALLOW_ALL_ORIGINS')
CORS_ALLOWED_ORIGINS = env.list('CORS_ALLOWED_ORIGINS', default=[])
CORS_ALLOW_HEADERS = [
    'accept',
    'authorization',
    'content-type',
    'x-api-token',
]

DATA_UPLOAD_MAX_MEMORY_SIZE = env.int('DATA_UPLOAD_MAX_MEMORY_SIZE', default=65536)

SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
USE_X_FORWARDED_HOST = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = 'strict-origin-when-cross-origin'
X_FRAME_OPTIONS = 'DENY'

# Location verification engine.
GEOVERIFY_PROVIDER_TIMEOUT_SECONDS = env('GEOVERIFY_PROVIDER_TIMEOUT_SECONDS')
GEOVERIFY_LOOKUP_DEADLINE_SECONDS = env('GEOVERIFY_LOOKUP_DEADLINE_SECONDS')
GEOVERIFY_LOOKUP_CACHE_TTL_SECONDS = env('GEOVERIFY_LOOKUP_CACHE_TTL_SECONDS')
GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE = env('GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE')
GEOVERIFY_TABLES_FILE = env('GEOVERIFY_TABLES_FILE', default='')
GEOVERIFY_USER_AGENT = env('GEOVERIFY_USER_AGENT', default='Credlio/1.0')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': env('LOG_LEVEL', default='INFO'),
    },
}
