from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class VerificationMethod:
    IP = 'ip'
    BROWSER = 'browser'
    HYBRID = 'hybrid'


class RecommendedAction:
    NONE = 'none'
    MONITOR = 'monitor'
    VERIFY = 'verify'
    BLOCK = 'block'


class Flag:
    NO_IP_ADDRESS = 'no_ip_address'
    VPN_DETECTED = 'vpn_detected'
    GEOLOCATION_FAILED = 'geolocation_failed'
    COUNTRY_MISMATCH = 'country_mismatch'
    NEIGHBORING_COUNTRY = 'neighboring_country'
    SUSPICIOUS_IP_PATTERN = 'suspicious_ip_pattern'
    COUNTRY_BOUNDARIES_UNKNOWN = 'country_boundaries_unknown'
    OUTSIDE_COUNTRY_BOUNDS = 'outside_country_bounds'
    NEAR_BORDER = 'near_border'
    LOW_ACCURACY = 'low_accuracy'
    LOCATION_SPOOFING_DETECTED = 'location_spoofing_detected'
    VERIFICATION_MISMATCH = 'verification_mismatch'
    VERIFICATION_ERROR = 'verification_error'


def clamp_risk(value: int) -> int:
    return max(0, min(100, int(value)))


def merge_flags(*groups) -> tuple[str, ...]:
    merged: list[str] = []
    for group in groups:
        for flag in group:
            if flag not in merged:
                merged.append(flag)
    return tuple(merged)


@dataclass(frozen=True)
class LocationVerificationResult:
    verified: bool
    registered_country: str
    verification_method: str
    risk_score: int
    flags: tuple[str, ...] = ()
    detected_country: str | None = None
    ip_address: str | None = None
    message: str | None = None

    def __post_init__(self):
        object.__setattr__(self, 'risk_score', clamp_risk(self.risk_score))
        object.__setattr__(self, 'flags', merge_flags(self.flags))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            'verified': self.verified,
            'registeredCountry': self.registered_country,
            'verificationMethod': self.verification_method,
            'riskScore': self.risk_score,
            'flags': list(self.flags),
        }
        if self.detected_country is not None:
            payload['detectedCountry'] = self.detected_country
        if self.ip_address is not None:
            payload['ipAddress'] = self.ip_address
        if self.message is not None:
            payload['message'] = self.message
        return payload


@dataclass(frozen=True)
class BrowserGeolocation:
    latitude: float
    longitude: float
    accuracy: float
    timestamp: float | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> BrowserGeolocation:
        return cls(
            latitude=float(data['latitude']),
            longitude=float(data['longitude']),
            accuracy=float(data['accuracy']),
            timestamp=data.get('timestamp'),
        )


@dataclass(frozen=True)
class CountryBoundary:
    lat_min: float
    lat_max: float
    lng_min: float
    lng_max: float

    def contains(self, latitude: float, longitude: float) -> bool:
        return self.lat_min <= latitude <= self.lat_max and self.lng_min <= longitude <= self.lng_max


@dataclass(frozen=True)
class GeolocationResult:
    success: bool
    country_code: str | None = None
    country_name: str | None = None
    ip: str | None = None
    error: str | None = None
    provider: str | None = None

    @classmethod
    def failure(cls, error: str, ip: str | None = None) -> GeolocationResult:
        return cls(success=False, ip=ip, error=error)


@dataclass
class RiskTally:
    """Running risk total and flags for a single verification call."""

    risk_score: int = 0
    flags: list[str] = field(default_factory=list)

    def add(self, flag: str, points: int) -> None:
        self.flags.append(flag)
        self.risk_score += points
