from __future__ import annotations

from geoverify.location_engine.tables import GeoTables, get_tables
from geoverify.location_engine.types import BrowserGeolocation, CountryBoundary

BORDER_TOLERANCE_DEGREES = 0.5  # ~50 km
FAKE_COORDINATE_TOLERANCE_DEGREES = 0.001  # ~100 m
MIN_PLAUSIBLE_ACCURACY_METERS = 1.0


def get_boundary(country_code: str | None, tables: GeoTables | None = None) -> CountryBoundary | None:
    if not country_code:
        return None
    tables = tables or get_tables()
    return tables.boundaries.get(str(country_code).strip().upper())


def within_bounds(location: BrowserGeolocation, country_code: str, tables: GeoTables | None = None) -> bool | None:
    """Rectangle containment; ``None`` when the country has no boundary data."""
    boundary = get_boundary(country_code, tables)
    if boundary is None:
        return None
    return boundary.contains(location.latitude, location.longitude)


def is_near_border(location: BrowserGeolocation, country_code: str, tables: GeoTables | None = None) -> bool:
    boundary = get_boundary(country_code, tables)
    if boundary is None:
        return False

    return (
        abs(location.latitude - boundary.lat_min) < BORDER_TOLERANCE_DEGREES
        or abs(location.latitude - boundary.lat_max) < BORDER_TOLERANCE_DEGREES
        or abs(location.longitude - boundary.lng_min) < BORDER_TOLERANCE_DEGREES
        or abs(location.longitude - boundary.lng_max) < BORDER_TOLERANCE_DEGREES
    )


def are_neighbors(country_a: str | None, country_b: str | None, tables: GeoTables | None = None) -> bool:
    if not country_a or not country_b:
        return False
    tables = tables or get_tables()
    return str(country_b).upper() in tables.neighbors.get(str(country_a).upper(), ())


def is_location_spoofed(location: BrowserGeolocation, tables: GeoTables | None = None) -> bool:
    tables = tables or get_tables()
    latitude = float(location.latitude)
    longitude = float(location.longitude)

    # Real GPS fixes essentially never land on whole degrees.
    if latitude.is_integer() or longitude.is_integer():
        return True

    if location.accuracy < MIN_PLAUSIBLE_ACCURACY_METERS:
        return True

    return any(
        abs(latitude - fake_lat) < FAKE_COORDINATE_TOLERANCE_DEGREES
        and abs(longitude - fake_lng) < FAKE_COORDINATE_TOLERANCE_DEGREES
        for fake_lat, fake_lng in tables.known_fake_coordinates
    )
