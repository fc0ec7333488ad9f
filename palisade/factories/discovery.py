"""Factory for discovery-backed components."""

from typing import Optional

from palisade.core.factory import ValidatorFactory
from palisade.core.key_provider import SigningKeySetProvider
from palisade.core.token_verifier import TokenVerifier
from palisade.discovery.cache import DiscoveryCache
from palisade.discovery.retriever import DiscoveryRetriever
from palisade.models import DiscoveryConfig
from palisade.validator import IdTokenValidator


class DiscoveryFactory(ValidatorFactory):
    """Factory for discovery-backed components.

    Creates DiscoveryKeySetProvider and IdTokenValidator instances that share
    one DiscoveryCache, so every component built by the factory sees the same
    key sets and the same single-flight refresh.

    Args:
        config: Discovery settings (well-known path, timeout, TTL, stale
            serving). Defaults to DiscoveryConfig().

        cache: Optional DiscoveryCache to share with other factories, for
            instance the process-wide get_default_cache(). If not provided,
            a cache is created from config.

        token_verifier: Optional TokenVerifier override for validators.
            Defaults to JwtTokenVerifier.

    Examples:
        Basic usage in production:
            >>> factory = DiscoveryFactory()
            >>> validator = factory.create_validator()
            >>> await validator.validate_async(token, issuer, client_id, nonce)

        Sync validation through a provider:
            >>> provider = factory.create_key_provider(issuer)
            >>> validator.validate(token, issuer, client_id, nonce, provider, True)

        Configuration from the environment:
            >>> factory = DiscoveryFactory(config=DiscoveryConfig.from_env())

    See Also:
        - create_factory(): Recommended way to create factory instances
        - DiscoveryCache: The shared key set cache
    """

    def __init__(
        self,
        config: Optional[DiscoveryConfig] = None,
        cache: Optional[DiscoveryCache] = None,
        token_verifier: Optional[TokenVerifier] = None,
    ):
        self.config = config or DiscoveryConfig()
        self.token_verifier = token_verifier
        self._cache: Optional[DiscoveryCache] = cache

    @property
    def cache(self) -> DiscoveryCache:
        """Create or return the cached DiscoveryCache.

        The cache is shared between every provider and validator built by
        this factory.
        """
        if self._cache is None:
            self._cache = DiscoveryCache(
                retriever=DiscoveryRetriever(timeout_seconds=self.config.timeout_seconds),
                ttl_seconds=self.config.ttl_seconds,
                serve_stale_on_error=self.config.serve_stale_on_error,
            )
        return self._cache

    def create_key_provider(self, issuer: str) -> SigningKeySetProvider:
        """Create a discovery-backed key provider for issuer."""
        from palisade.key_providers.discovery import DiscoveryKeySetProvider

        return DiscoveryKeySetProvider(
            issuer=issuer,
            well_known_path=self.config.well_known_path,
            cache=self.cache,
        )

    def create_validator(self) -> IdTokenValidator:
        """Create a validator using this factory's cache and well-known path."""
        return IdTokenValidator(
            token_verifier=self.token_verifier,
            discovery_cache=self.cache,
            well_known_path=self.config.well_known_path,
        )
