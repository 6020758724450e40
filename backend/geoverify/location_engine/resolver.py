from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Iterable

from django.conf import settings
import httpx

from geoverify.location_engine.cache import CachedResolver
from geoverify.location_engine.network import canonical_ip, is_private_address
from geoverify.location_engine.providers import DEFAULT_PROVIDERS, BaseGeolocationProvider, ProviderLookupError
from geoverify.location_engine.types import GeolocationResult

logger = logging.getLogger(__name__)

PRIVATE_ADDRESS_ERROR = 'private/local address'
INVALID_ADDRESS_ERROR = 'not a valid IP address'
ALL_PROVIDERS_FAILED_ERROR = (
    'All geolocation services failed. Please ensure your phone number includes the country code.'
)
UNEXPECTED_ERROR = 'Failed to detect country from IP address'

# No provider attempt is started with less budget than this.
MIN_ATTEMPT_SECONDS = 0.05


class IpGeolocationResolver:
    """Walks the provider chain in priority order and returns the first answer.

    Providers are tried one at a time. Each attempt gets its own timeout and the
    whole chain shares a deadline, so a slow provider eats into the budget of the
    ones behind it instead of stalling the call.
    """

    def __init__(
        self,
        providers: Iterable[BaseGeolocationProvider] | None = None,
        *,
        timeout: float = 3.0,
        deadline: float = 6.0,
        user_agent: str = 'Credlio/1.0',
        client_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        if providers is None:
            providers = [provider_class() for provider_class in DEFAULT_PROVIDERS]
        self.providers = list(providers)
        self.timeout = max(0.1, float(timeout))
        self.deadline = max(self.timeout, float(deadline))
        self.user_agent = user_agent
        self.client_factory = client_factory or self._default_client

    @classmethod
    def from_settings(cls, **overrides: Any) -> IpGeolocationResolver:
        options = {
            'timeout': getattr(settings, 'GEOVERIFY_PROVIDER_TIMEOUT_SECONDS', 3.0),
            'deadline': getattr(settings, 'GEOVERIFY_LOOKUP_DEADLINE_SECONDS', 6.0),
            'user_agent': getattr(settings, 'GEOVERIFY_USER_AGENT', 'Credlio/1.0'),
        }
        options.update(overrides)
        return cls(**options)

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={'User-Agent': self.user_agent, 'Accept': 'application/json'},
            follow_redirects=True,
        )

    async def resolve(self, ip: str | None = None) -> GeolocationResult:
        if ip and is_private_address(ip):
            logger.debug('Skipping geolocation for private/local address %s', ip)
            return GeolocationResult.failure(PRIVATE_ADDRESS_ERROR, ip=ip)

        lookup_ip = canonical_ip(ip) if ip else None
        if ip and lookup_ip is None:
            logger.warning('Refusing geolocation for malformed address %r', ip)
            return GeolocationResult.failure(INVALID_ADDRESS_ERROR, ip=ip)

        loop = asyncio.get_running_loop()
        started_at = loop.time()

        async with self.client_factory() as client:
            for provider in self.providers:
                remaining = self.deadline - (loop.time() - started_at)
                if remaining < MIN_ATTEMPT_SECONDS:
                    logger.warning(
                        'Geolocation deadline of %.1fs spent before trying %s',
                        self.deadline,
                        provider.name,
                    )
                    break

                budget = min(self.timeout, remaining)
                try:
                    result = await asyncio.wait_for(self._lookup(client, provider, lookup_ip, budget), timeout=budget)
                except asyncio.TimeoutError:
                    logger.warning('Geolocation provider %s timed out after %.1fs', provider.name, budget)
                    continue
                except ProviderLookupError as exc:
                    logger.warning('Geolocation provider %s failed: %s', exc.provider, exc.reason)
                    continue

                logger.debug('Resolved %s to %s via %s', ip or 'caller address', result.country_code, provider.name)
                return result

        return GeolocationResult.failure(ALL_PROVIDERS_FAILED_ERROR, ip=ip)

    async def _lookup(
        self,
        client: httpx.AsyncClient,
        provider: BaseGeolocationProvider,
        ip: str | None,
        budget: float,
    ) -> GeolocationResult:
        try:
            response = await client.get(
                provider.build_url(ip),
                params=provider.build_params(ip) or None,
                timeout=budget,
            )
        except httpx.HTTPError as exc:
            raise provider.fail(f'request failed: {exc.__class__.__name__}') from exc

        if not response.is_success:
            raise provider.fail(f'HTTP {response.status_code}')

        try:
            payload = response.json()
        except ValueError as exc:
            raise provider.fail('response was not valid JSON') from exc

        if not isinstance(payload, dict):
            raise provider.fail('response was not a JSON object')

        return provider.parse(payload)


def build_resolver(**overrides: Any):
    resolver = IpGeolocationResolver.from_settings(**overrides)
    ttl = int(getattr(settings, 'GEOVERIFY_LOOKUP_CACHE_TTL_SECONDS', 0) or 0)
    if ttl > 0:
        return CachedResolver(resolver, ttl_seconds=ttl)
    return resolver


async def get_country_from_ip(ip: str | None = None, resolver=None) -> GeolocationResult:
    try:
        resolver = resolver or build_resolver()
        return await resolver.resolve(ip)
    except Exception:
        logger.exception('IP geolocation error for %s', ip)
        return GeolocationResult.failure(UNEXPECTED_ERROR, ip=ip)
