from .base import *  # noqa: F401,F403

DEBUG = False
API_REQUIRE_AUTH = env.bool('API_REQUIRE_AUTH', default=True)  # noqa: F405

if SECRET_KEY == 'django-insecure-change-me':  # noqa: F405
    raise RuntimeError('DJANGO_SECRET_KEY must be set in production.')
if CORS_ALLOW_ALL_ORIGINS:  # noqa: F405
    raise RuntimeError('CORS_ALLOW_ALL_ORIGINS must be False in production.')
if API_REQUIRE_AUTH and not API_AUTH_TOKEN:  # noqa: F405
    raise RuntimeError('API_AUTH_TOKEN must be set when API_REQUIRE_AUTH is enabled.')

SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', default=True)  # noqa: F405
SECURE_HSTS_SECONDS = env.int('SECURE_HSTS_SECONDS', default=31536000)  # noqa: F405
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_HSTS_PRELOAD = True
