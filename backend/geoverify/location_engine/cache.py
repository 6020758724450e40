from __future__ import annotations

from dataclasses import asdict
import logging

from django.core.cache import cache as default_cache

from geoverify.location_engine.network import canonical_ip
from geoverify.location_engine.types import GeolocationResult

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = 'geoverify:ip:'


class CachedResolver:
    """Remembers successful lookups per address for a fixed TTL.

    Sits in front of any object with ``async resolve(ip)``. Only successes are
    stored, keyed by the normalized address. The caller's-own-address lookup (no
    ip) and text that is not an address always go through.
    """

    def __init__(self, resolver, ttl_seconds: int = 3600, cache=None):
        self.resolver = resolver
        self.ttl_seconds = int(ttl_seconds)
        self.cache = cache or default_cache

    @staticmethod
    def cache_key(ip: str) -> str | None:
        lookup_ip = canonical_ip(ip)
        if lookup_ip is None:
            return None
        return f'{CACHE_KEY_PREFIX}{lookup_ip}'

    async def resolve(self, ip: str | None = None) -> GeolocationResult:
        key = self.cache_key(ip) if ip else None
        if key is None or self.ttl_seconds <= 0:
            return await self.resolver.resolve(ip)

        cached = await self.cache.aget(key)
        if cached:
            logger.debug('Geolocation cache hit for %s', ip)
            return GeolocationResult(**cached)

        result = await self.resolver.resolve(ip)
        if result.success:
            await self.cache.aset(key, asdict(result), timeout=self.ttl_seconds)
        return result
