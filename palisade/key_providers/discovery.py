"""Discovery-backed signing key set provider."""

from __future__ import annotations

from typing import Optional

from palisade.core.key_provider import SigningKeySetProvider
from palisade.discovery.cache import DiscoveryCache, get_default_cache
from palisade.exceptions import InvalidArgumentError
from palisade.models import DEFAULT_WELL_KNOWN_PATH, SigningKeySet


class DiscoveryKeySetProvider(SigningKeySetProvider):
    """Resolves an issuer's key set through a DiscoveryCache.

    Args:
        issuer: Trusted issuer URL
        well_known_path: Discovery document path below the issuer
        cache: Cache to use. Defaults to the process-wide cache.
    """

    def __init__(
        self,
        issuer: str,
        well_known_path: str = DEFAULT_WELL_KNOWN_PATH,
        cache: Optional[DiscoveryCache] = None,
    ):
        if not isinstance(issuer, str) or not issuer:
            raise InvalidArgumentError("issuer")
        if not isinstance(well_known_path, str) or not well_known_path:
            raise InvalidArgumentError("well_known_path")

        self.issuer = issuer
        self.well_known_path = well_known_path
        self._cache = cache

    @property
    def cache(self) -> DiscoveryCache:
        return self._cache or get_default_cache()

    def get_signing_keys(self) -> SigningKeySet:
        return self.cache.get_signing_keys_sync(self.issuer, self.well_known_path)

    async def get_signing_keys_async(self) -> SigningKeySet:
        return await self.cache.get_signing_keys(self.issuer, self.well_known_path)
