from __future__ import annotations

import ipaddress
from typing import Any

from geoverify.location_engine.tables import GeoTables, get_tables

LOCAL_HOSTNAMES = {'localhost', 'localhost.localdomain'}

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(item)
    for item in (
        '127.0.0.0/8',
        '169.254.0.0/16',
        '10.0.0.0/8',
        '172.16.0.0/12',
        '192.168.0.0/16',
        '::1/128',
        'fe80::/10',
        'fc00::/7',
    )
)

CLIENT_IP_HEADERS = (
    'x-forwarded-for',
    'x-real-ip',
    'cf-connecting-ip',
    'x-vercel-forwarded-for',
)


def _parse_ip(ip_text: str | None):
    candidate = str(ip_text or '').strip()
    if not candidate:
        return None
    # IPv6 zone ids ("fe80::1%eth0") say nothing about location.
    if ':' in candidate:
        candidate = candidate.split('%', 1)[0]
    try:
        return ipaddress.ip_address(candidate)
    except ValueError:
        return None


def canonical_ip(ip_text: str | None) -> str | None:
    """Normalized address text, or ``None`` when the input is not an IP address."""
    ip_value = _parse_ip(ip_text)
    if ip_value is None:
        return None
    return str(ip_value)


def is_private_address(ip_text: str | None) -> bool:
    if str(ip_text or '').strip().lower() in LOCAL_HOSTNAMES:
        return True

    ip_value = _parse_ip(ip_text)
    if ip_value is None:
        return False

    if ip_value.version == 6 and ip_value.ipv4_mapped is not None:
        ip_value = ip_value.ipv4_mapped

    return any(ip_value in network for network in PRIVATE_NETWORKS if network.version == ip_value.version)


def is_vpn_or_proxy(ip_text: str | None, tables: GeoTables | None = None) -> bool:
    """Best-effort anonymizer signal.

    Only adds weight to a verification; a positive answer is never grounds to
    reject on its own.
    """
    ip_value = _parse_ip(ip_text)
    if ip_value is None:
        return False

    tables = tables or get_tables()
    return any(ip_value in network for network in tables.vpn_networks if network.version == ip_value.version)


def is_suspicious_ip(ip_text: str | None, tables: GeoTables | None = None) -> bool:
    candidate = str(ip_text or '').strip()
    if not candidate:
        return False
    tables = tables or get_tables()
    return any(candidate.startswith(prefix) for prefix in tables.suspicious_prefixes)


def _read_header(request: Any, name: str) -> str:
    headers = getattr(request, 'headers', request)
    if headers is None:
        return ''

    value = headers.get(name)
    if value is None and isinstance(headers, dict):
        lowered = {str(key).lower(): item for key, item in headers.items()}
        value = lowered.get(name)
    return str(value or '').strip()


def get_ip_from_request(request: Any) -> str | None:
    """Client address as reported by the fronting proxy, if any."""
    for header in CLIENT_IP_HEADERS:
        value = _read_header(request, header)
        if value:
            first = value.split(',')[0].strip()
            return first or None
    return None
