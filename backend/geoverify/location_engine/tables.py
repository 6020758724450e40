from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import ipaddress
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from django.conf import settings

from geoverify.location_engine.types import CountryBoundary

TABLES_VERSION = '2024.1'

# Rough rectangular bounds; they overlap neighbours and clip coastlines.
DEFAULT_BOUNDARIES = {
    'NG': {'lat': (4.1, 13.9), 'lng': (2.7, 14.7)},
    'KE': {'lat': (-4.7, 4.6), 'lng': (33.9, 41.9)},
    'UG': {'lat': (-1.5, 4.2), 'lng': (29.5, 35.0)},
    'ZA': {'lat': (-34.8, -22.1), 'lng': (16.5, 32.9)},
    'GH': {'lat': (4.7, 11.2), 'lng': (-3.3, 1.2)},
    'TZ': {'lat': (-11.7, -1.0), 'lng': (29.3, 40.5)},
    'RW': {'lat': (-2.8, -1.0), 'lng': (28.9, 30.9)},
    'ZM': {'lat': (-18.1, -8.2), 'lng': (22.0, 33.7)},
    'NA': {'lat': (-28.9, -17.8), 'lng': (11.7, 25.3)},
    'BW': {'lat': (-26.9, -17.8), 'lng': (20.0, 29.4)},
    'MW': {'lat': (-17.1, -9.4), 'lng': (32.7, 35.9)},
    'SN': {'lat': (12.3, 16.7), 'lng': (-17.5, -11.4)},
    'ET': {'lat': (3.4, 14.9), 'lng': (33.0, 48.0)},
    'CM': {'lat': (1.7, 13.1), 'lng': (8.5, 16.2)},
    'SL': {'lat': (6.9, 10.0), 'lng': (-13.3, -10.3)},
    'ZW': {'lat': (-22.4, -15.6), 'lng': (25.2, 33.1)},
}

# Partial and one-directional. Missing rows simply mean no border relief.
DEFAULT_NEIGHBORS = {
    'NA': ['AO', 'ZM', 'BW', 'ZA'],
    'ZA': ['NA', 'BW', 'ZW', 'MZ', 'SZ', 'LS'],
    'NG': ['BJ', 'NE', 'TD', 'CM'],
    'KE': ['ET', 'SO', 'SS', 'UG', 'TZ'],
}

DEFAULT_VPN_NETWORKS = [
    '10.0.0.0/8',
    '172.16.0.0/12',
    '192.168.0.0/16',
]

DEFAULT_SUSPICIOUS_PREFIXES = [
    '104.',
    '45.',
]

DEFAULT_KNOWN_FAKE_COORDINATES = [
    (0.0, 0.0),
    (37.4419, -122.1430),
]

DEFAULT_COUNTRY_NAMES = {
    'NG': 'Nigeria',
    'KE': 'Kenya',
    'UG': 'Uganda',
    'ZA': 'South Africa',
    'GH': 'Ghana',
    'TZ': 'Tanzania',
    'RW': 'Rwanda',
    'ZM': 'Zambia',
    'NA': 'Namibia',
    'BW': 'Botswana',
    'MW': 'Malawi',
    'SN': 'Senegal',
    'ET': 'Ethiopia',
    'CM': 'Cameroon',
    'SL': 'Sierra Leone',
    'ZW': 'Zimbabwe',
}


class TableConfigurationError(ValueError):
    pass


@dataclass(frozen=True)
class GeoTables:
    """Reference data the engine scores against, loadable from versioned JSON."""

    version: str
    boundaries: Mapping[str, CountryBoundary]
    neighbors: Mapping[str, tuple[str, ...]]
    vpn_networks: tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...] = ()
    suspicious_prefixes: tuple[str, ...] = ()
    known_fake_coordinates: tuple[tuple[float, float], ...] = ()
    supported_countries: tuple[str, ...] = ()
    country_names: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> GeoTables:
        try:
            boundaries = {
                str(code).upper(): _parse_boundary(value)
                for code, value in dict(data.get('boundaries') or {}).items()
            }
            neighbors = {
                str(code).upper(): tuple(str(item).upper() for item in value)
                for code, value in dict(data.get('neighbors') or {}).items()
            }
            vpn_networks = tuple(
                ipaddress.ip_network(str(item), strict=False)
                for item in data.get('vpn_networks') or []
            )
            fakes = tuple(
                (float(lat), float(lng))
                for lat, lng in data.get('known_fake_coordinates') or []
            )
            supported = data.get('supported_countries')
            if supported is None:
                supported = sorted(boundaries)
            if isinstance(supported, str):
                raise TypeError('supported_countries must be a list of country codes')
            supported = tuple(str(item).upper() for item in supported)
            prefixes = tuple(str(item) for item in data.get('suspicious_prefixes') or [])
            country_names = {
                str(code).upper(): str(name) for code, name in dict(data.get('country_names') or {}).items()
            }
        except (KeyError, TypeError, ValueError) as exc:
            raise TableConfigurationError(f'Malformed geo tables: {exc}') from exc

        return cls(
            version=str(data.get('version') or 'unversioned'),
            boundaries=MappingProxyType(boundaries),
            neighbors=MappingProxyType(neighbors),
            vpn_networks=vpn_networks,
            suspicious_prefixes=prefixes,
            known_fake_coordinates=fakes,
            supported_countries=supported,
            country_names=MappingProxyType(country_names),
        )


def _parse_boundary(value: Any) -> CountryBoundary:
    if isinstance(value, CountryBoundary):
        return value

    if 'lat' in value:
        lat_min, lat_max = value['lat']
        lng_min, lng_max = value['lng']
    else:
        lat_min, lat_max = value['lat_min'], value['lat_max']
        lng_min, lng_max = value['lng_min'], value['lng_max']

    boundary = CountryBoundary(
        lat_min=float(lat_min),
        lat_max=float(lat_max),
        lng_min=float(lng_min),
        lng_max=float(lng_max),
    )
    if boundary.lat_min > boundary.lat_max or boundary.lng_min > boundary.lng_max:
        raise ValueError('boundary minimum exceeds maximum')
    return boundary


def default_table_data() -> dict[str, Any]:
    return {
        'version': TABLES_VERSION,
        'boundaries': DEFAULT_BOUNDARIES,
        'neighbors': DEFAULT_NEIGHBORS,
        'vpn_networks': DEFAULT_VPN_NETWORKS,
        'suspicious_prefixes': DEFAULT_SUSPICIOUS_PREFIXES,
        'known_fake_coordinates': DEFAULT_KNOWN_FAKE_COORDINATES,
        'supported_countries': list(DEFAULT_COUNTRY_NAMES),
        'country_names': DEFAULT_COUNTRY_NAMES,
    }


def load_tables(path: str | Path | None = None) -> GeoTables:
    if not path:
        return GeoTables.from_mapping(default_table_data())

    try:
        data = json.loads(Path(path).read_text(encoding='utf-8'))
    except (OSError, ValueError) as exc:
        raise TableConfigurationError(f'Unable to read geo tables from {path}: {exc}') from exc

    if not isinstance(data, dict):
        raise TableConfigurationError(f'Geo tables in {path} must be a JSON object.')

    return GeoTables.from_mapping(data)


@lru_cache(maxsize=1)
def get_tables() -> GeoTables:
    return load_tables(getattr(settings, 'GEOVERIFY_TABLES_FILE', '') or None)
