from geoverify.location_engine.countries import is_detected_country_supported
from geoverify.location_engine.engine import (
    LocationVerifier,
    recommended_action,
    verify_browser_location,
    verify_hybrid_location,
    verify_ip_location,
)
from geoverify.location_engine.network import get_ip_from_request, is_private_address, is_vpn_or_proxy
from geoverify.location_engine.resolver import get_country_from_ip
from geoverify.location_engine.types import BrowserGeolocation, GeolocationResult, LocationVerificationResult

__all__ = [
    'BrowserGeolocation',
    'GeolocationResult',
    'LocationVerificationResult',
    'LocationVerifier',
    'get_country_from_ip',
    'get_ip_from_request',
    'is_detected_country_supported',
    'is_private_address',
    'is_vpn_or_proxy',
    'recommended_action',
    'verify_browser_location',
    'verify_hybrid_location',
    'verify_ip_location',
]
