from geoverify.location_engine.providers.base import BaseGeolocationProvider, ProviderLookupError
from geoverify.location_engine.providers.ip_api_com import IpApiComProvider
from geoverify.location_engine.providers.ipapi_co import IpapiCoProvider

DEFAULT_PROVIDERS = [
    IpapiCoProvider,
    IpApiComProvider,
]

__all__ = [
    'BaseGeolocationProvider',
    'DEFAULT_PROVIDERS',
    'IpApiComProvider',
    'IpapiCoProvider',
    'ProviderLookupError',
]
