from .base import *  # noqa: F401,F403

DEBUG = False
API_AUTH_TOKEN = ''
API_REQUIRE_AUTH = False
SECURE_SSL_REDIRECT = False
SECURE_HSTS_SECONDS = 0
SECURE_HSTS_INCLUDE_SUBDOMAINS = False
SECURE_HSTS_PRELOAD = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'geoverify-tests',
    },
}

# Keep tests isolated from the lookup cache and from real provider latency.
GEOVERIFY_LOOKUP_CACHE_TTL_SECONDS = 0
GEOVERIFY_PROVIDER_TIMEOUT_SECONDS = 1.0
GEOVERIFY_LOOKUP_DEADLINE_SECONDS = 2.0
GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE = False
GEOVERIFY_TABLES_FILE = ''

REST_FRAMEWORK = {
    **REST_FRAMEWORK,  # noqa: F405
    'DEFAULT_THROTTLE_RATES': {
        'verify': '1000/minute',
        'lookup': '1000/minute',
        'default': '1000/minute',
    },
}
