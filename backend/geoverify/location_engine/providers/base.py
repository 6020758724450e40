from __future__ import annotations

from typing import Any

from geoverify.location_engine.types import GeolocationResult


class ProviderLookupError(Exception):
    def __init__(self, provider: str, reason: str):
        super().__init__(f'{provider}: {reason}')
        self.provider = provider
        self.reason = reason


class BaseGeolocationProvider:
    """One external IP lookup service and the shape of its JSON answer."""

    name = ''
    url_template = ''
    self_lookup_url = ''

    def build_url(self, ip: str | None) -> str:
        if ip:
            return self.url_template.format(ip=ip)
        return self.self_lookup_url

    def build_params(self, ip: str | None) -> dict[str, str]:
        return {}

    def parse(self, payload: dict[str, Any]) -> GeolocationResult:
        raise NotImplementedError

    def fail(self, reason: str) -> ProviderLookupError:
        return ProviderLookupError(self.name, reason)

    def success(self, *, country_code: Any, country_name: Any, ip: Any) -> GeolocationResult:
        code = str(country_code or '').strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise self.fail(f'response carried no usable country code ({country_code!r})')

        return GeolocationResult(
            success=True,
            country_code=code,
            country_name=str(country_name).strip() if country_name else None,
            ip=str(ip).strip() if ip else None,
            provider=self.name,
        )
