from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any

from django.conf import settings

from geoverify.location_engine.geo import are_neighbors, is_location_spoofed, is_near_border, within_bounds
from geoverify.location_engine.network import canonical_ip, is_private_address, is_suspicious_ip, is_vpn_or_proxy
from geoverify.location_engine.resolver import build_resolver, get_country_from_ip
from geoverify.location_engine.tables import GeoTables, get_tables
from geoverify.location_engine.types import (
    BrowserGeolocation,
    Flag,
    LocationVerificationResult,
    RecommendedAction,
    RiskTally,
    VerificationMethod,
    clamp_risk,
    merge_flags,
)

logger = logging.getLogger(__name__)

VERIFIED_THRESHOLD = 50

NO_IP_RISK = 50
VPN_RISK = 30
LOOKUP_FAILED_RISK = 60
COUNTRY_MISMATCH_RISK = 40
NEIGHBOR_RELIEF = -10
SUSPICIOUS_IP_RISK = 20

UNKNOWN_BOUNDARY_RISK = 50
OUTSIDE_BOUNDS_RISK = 50
NEAR_BORDER_RELIEF = -15
LOW_ACCURACY_RISK = 10
LOW_ACCURACY_METERS = 1000
SPOOFING_RISK = 40

CORROBORATION_RELIEF = -10
DISAGREEMENT_RISK = 20

ERROR_RISK = 70

MONITOR_AT = 50
VERIFY_AT = 70
BLOCK_AT = 90


def _normalize_code(value: Any) -> str:
    return str(value or '').strip().upper()


def recommended_action(risk_score: int) -> str:
    """Advisory follow-up for a score. The engine itself never blocks anyone."""
    if risk_score >= BLOCK_AT:
        return RecommendedAction.BLOCK
    if risk_score >= VERIFY_AT:
        return RecommendedAction.VERIFY
    if risk_score >= MONITOR_AT:
        return RecommendedAction.MONITOR
    return RecommendedAction.NONE


def _error_result(method: str, registered_country: str, message: str, ip_address: str | None = None):
    return LocationVerificationResult(
        verified=False,
        registered_country=registered_country,
        ip_address=ip_address,
        verification_method=method,
        risk_score=ERROR_RISK,
        flags=(Flag.VERIFICATION_ERROR,),
        message=message,
    )


@dataclass
class LocationVerifier:
    tables: GeoTables
    resolver: Any = None
    accumulate_risk_on_lookup_failure: bool = False

    @classmethod
    def from_settings(cls, **overrides: Any) -> LocationVerifier:
        options = {
            'tables': overrides.pop('tables', None) or get_tables(),
            'resolver': overrides.pop('resolver', None) or build_resolver(),
            'accumulate_risk_on_lookup_failure': bool(
                getattr(settings, 'GEOVERIFY_ACCUMULATE_RISK_ON_LOOKUP_FAILURE', False)
            ),
        }
        options.update(overrides)
        return cls(**options)

    async def verify_ip_location(self, ip_address: str | None, registered_country: str) -> LocationVerificationResult:
        registered_country = _normalize_code(registered_country)
        try:
            return await self._verify_ip_location(ip_address, registered_country)
        except Exception:
            logger.exception('IP verification error (registered_country=%s)', registered_country)
            return _error_result(
                VerificationMethod.IP,
                registered_country,
                'Error during location verification',
                ip_address=ip_address or None,
            )

    async def verify_browser_location(
        self,
        location: BrowserGeolocation,
        registered_country: str,
    ) -> LocationVerificationResult:
        registered_country = _normalize_code(registered_country)
        try:
            return self._verify_browser_location(location, registered_country)
        except Exception:
            logger.exception('Browser location verification error (registered_country=%s)', registered_country)
            return _error_result(
                VerificationMethod.BROWSER,
                registered_country,
                'Error during browser location verification',
            )

    async def verify_hybrid_location(
        self,
        ip_address: str | None,
        location: BrowserGeolocation | None,
        registered_country: str,
    ) -> LocationVerificationResult:
        registered_country = _normalize_code(registered_country)
        ip_result = await self.verify_ip_location(ip_address, registered_country)
        if location is None:
            return ip_result

        browser_result = await self.verify_browser_location(location, registered_country)
        try:
            return self._combine(ip_result, browser_result, registered_country)
        except Exception:
            logger.exception('Hybrid verification error (registered_country=%s)', registered_country)
            return _error_result(
                VerificationMethod.HYBRID,
                registered_country,
                'Error during location verification',
                ip_address=ip_address or None,
            )

    async def _verify_ip_location(self, ip_address: str | None, registered_country: str) -> LocationVerificationResult:
        if not ip_address:
            return LocationVerificationResult(
                verified=False,
                registered_country=registered_country,
                verification_method=VerificationMethod.IP,
                risk_score=NO_IP_RISK,
                flags=(Flag.NO_IP_ADDRESS,),
                message='Unable to determine IP address',
            )

        if canonical_ip(ip_address) is None and not is_private_address(ip_address):
            logger.warning('Malformed IP address for verification (registered_country=%s)', registered_country)
            return _error_result(VerificationMethod.IP, registered_country, 'Invalid IP address')

        tally = RiskTally()
        if is_vpn_or_proxy(ip_address, self.tables):
            tally.add(Flag.VPN_DETECTED, VPN_RISK)

        geo_result = await get_country_from_ip(ip_address, resolver=self.resolver)
        if not geo_result.success or not geo_result.country_code:
            return self._lookup_failed(ip_address, registered_country, tally)

        detected_country = _normalize_code(geo_result.country_code)
        countries_match = detected_country == registered_country

        if not countries_match:
            tally.add(Flag.COUNTRY_MISMATCH, COUNTRY_MISMATCH_RISK)
            if are_neighbors(registered_country, detected_country, self.tables):
                tally.add(Flag.NEIGHBORING_COUNTRY, NEIGHBOR_RELIEF)

        if is_suspicious_ip(ip_address, self.tables):
            tally.add(Flag.SUSPICIOUS_IP_PATTERN, SUSPICIOUS_IP_RISK)

        risk_score = clamp_risk(tally.risk_score)
        if countries_match:
            message = 'Location verified'
        else:
            message = f'Location mismatch: detected {detected_country}, expected {registered_country}'

        return LocationVerificationResult(
            verified=countries_match and risk_score < VERIFIED_THRESHOLD,
            registered_country=registered_country,
            detected_country=detected_country,
            ip_address=ip_address,
            verification_method=VerificationMethod.IP,
            risk_score=risk_score,
            flags=tuple(tally.flags),
            message=message,
        )

    def _lookup_failed(self, ip_address: str, registered_country: str, tally: RiskTally) -> LocationVerificationResult:
        if self.accumulate_risk_on_lookup_failure:
            risk_score = tally.risk_score + LOOKUP_FAILED_RISK
            flags = (*tally.flags, Flag.GEOLOCATION_FAILED)
        else:
            # Signals gathered before the lookup are dropped on this path.
            risk_score = LOOKUP_FAILED_RISK
            flags = (Flag.GEOLOCATION_FAILED,)

        return LocationVerificationResult(
            verified=False,
            registered_country=registered_country,
            ip_address=ip_address,
            verification_method=VerificationMethod.IP,
            risk_score=risk_score,
            flags=flags,
            message='Unable to determine location from IP',
        )

    def _verify_browser_location(
        self,
        location: BrowserGeolocation,
        registered_country: str,
    ) -> LocationVerificationResult:
        within = within_bounds(location, registered_country, self.tables)
        if within is None:
            return LocationVerificationResult(
                verified=False,
                registered_country=registered_country,
                verification_method=VerificationMethod.BROWSER,
                risk_score=UNKNOWN_BOUNDARY_RISK,
                flags=(Flag.COUNTRY_BOUNDARIES_UNKNOWN,),
                message='Unable to verify country boundaries',
            )

        tally = RiskTally()
        if not within:
            tally.add(Flag.OUTSIDE_COUNTRY_BOUNDS, OUTSIDE_BOUNDS_RISK)
            if is_near_border(location, registered_country, self.tables):
                tally.add(Flag.NEAR_BORDER, NEAR_BORDER_RELIEF)

        if location.accuracy > LOW_ACCURACY_METERS:
            tally.add(Flag.LOW_ACCURACY, LOW_ACCURACY_RISK)

        if is_location_spoofed(location, self.tables):
            tally.add(Flag.LOCATION_SPOOFING_DETECTED, SPOOFING_RISK)

        risk_score = clamp_risk(tally.risk_score)
        return LocationVerificationResult(
            verified=within and risk_score < VERIFIED_THRESHOLD,
            registered_country=registered_country,
            verification_method=VerificationMethod.BROWSER,
            risk_score=risk_score,
            flags=tuple(tally.flags),
            message='Location verified' if within else 'Location outside registered country',
        )

    def _combine(
        self,
        ip_result: LocationVerificationResult,
        browser_result: LocationVerificationResult,
        registered_country: str,
    ) -> LocationVerificationResult:
        # Halves round up, matching the rounding callers have always seen.
        average = (ip_result.risk_score + browser_result.risk_score + 1) // 2
        flags = merge_flags(ip_result.flags, browser_result.flags)

        if ip_result.verified and browser_result.verified:
            verified = True
            risk_score = max(0, average + CORROBORATION_RELIEF)
            message = 'Location verified by multiple methods'
        elif ip_result.verified != browser_result.verified:
            verified = False
            risk_score = min(100, average + DISAGREEMENT_RISK)
            flags = merge_flags(flags, (Flag.VERIFICATION_MISMATCH,))
            message = 'Location verification methods disagree'
        else:
            verified = False
            risk_score = average
            message = 'Location could not be verified'

        return LocationVerificationResult(
            verified=verified,
            registered_country=registered_country,
            detected_country=ip_result.detected_country,
            ip_address=ip_result.ip_address,
            verification_method=VerificationMethod.HYBRID,
            risk_score=risk_score,
            flags=flags,
            message=message,
        )


def get_verifier(**overrides: Any) -> LocationVerifier:
    return LocationVerifier.from_settings(**overrides)


def _configured(verifier: LocationVerifier | None) -> LocationVerifier | None:
    if verifier is not None:
        return verifier
    try:
        return get_verifier()
    except Exception:
        logger.exception('Location verifier could not be configured')
        return None


async def verify_ip_location(ip_address: str | None, registered_country: str, verifier: LocationVerifier | None = None):
    verifier = _configured(verifier)
    if verifier is None:
        return _error_result(
            VerificationMethod.IP,
            _normalize_code(registered_country),
            'Error during location verification',
            ip_address=ip_address or None,
        )
    return await verifier.verify_ip_location(ip_address, registered_country)


async def verify_browser_location(
    location: BrowserGeolocation,
    registered_country: str,
    verifier: LocationVerifier | None = None,
):
    verifier = _configured(verifier)
    if verifier is None:
        return _error_result(
            VerificationMethod.BROWSER,
            _normalize_code(registered_country),
            'Error during browser location verification',
        )
    return await verifier.verify_browser_location(location, registered_country)


async def verify_hybrid_location(
    ip_address: str | None,
    location: BrowserGeolocation | None,
    registered_country: str,
    verifier: LocationVerifier | None = None,
):
    verifier = _configured(verifier)
    if verifier is None:
        return _error_result(
            VerificationMethod.HYBRID if location is not None else VerificationMethod.IP,
            _normalize_code(registered_country),
            'Error during location verification',
            ip_address=ip_address or None,
        )
    return await verifier.verify_hybrid_location(ip_address, location, registered_country)
