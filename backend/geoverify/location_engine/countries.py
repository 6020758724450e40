from __future__ import annotations

from geoverify.location_engine.tables import GeoTables, get_tables

COUNTRY_ALIASES = {
    'RSA': 'ZA',
    'SOUTH AFRICA': 'ZA',
    'REPUBLIC OF SOUTH AFRICA': 'ZA',
    'FEDERAL REPUBLIC OF NIGERIA': 'NG',
    'UNITED REPUBLIC OF TANZANIA': 'TZ',
}


def normalize_country(value: str | None, tables: GeoTables | None = None) -> str | None:
    if not value:
        return None

    tables = tables or get_tables()
    cleaned = ' '.join(str(value).split()).upper()
    if not cleaned:
        return None

    if cleaned in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[cleaned]

    for code, name in tables.country_names.items():
        if cleaned == name.upper():
            return code

    if len(cleaned) == 2 and cleaned.isalpha():
        return cleaned

    return None


def country_name(country_code: str | None, tables: GeoTables | None = None) -> str | None:
    if not country_code:
        return None
    tables = tables or get_tables()
    return tables.country_names.get(str(country_code).upper())


def is_detected_country_supported(country_code: str | None, tables: GeoTables | None = None) -> bool:
    if not country_code:
        return False
    tables = tables or get_tables()
    return str(country_code).strip().upper() in tables.supported_countries
