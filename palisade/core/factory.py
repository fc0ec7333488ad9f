"""Abstract factory for creating token validation components."""

from abc import ABC, abstractmethod

from palisade.core.key_provider import SigningKeySetProvider
from palisade.validator import IdTokenValidator


class ValidatorFactory(ABC):
    """Abstract factory for creating token validation components.

    This is the base class for all key-source-specific factories. Once
    configured for a key source type (discovery, static), the factory creates
    key providers and validators that work together correctly.

    Usage:
        Do not instantiate this class directly. Use create_factory() instead:

        >>> from palisade import create_factory
        >>> factory = create_factory("discovery", config=DiscoveryConfig(timeout_seconds=5.0))

    See Also:
        - create_factory(): Main entry point for creating factories
        - DiscoveryFactory: Keys from issuer discovery documents
        - StaticFactory: Fixed keys for testing and pinned deployments
    """

    @abstractmethod
    def create_key_provider(self, issuer: str) -> SigningKeySetProvider:
        """Create a signing key provider for an issuer.

        Args:
            issuer: The trusted issuer URL

        Returns:
            SigningKeySetProvider: Provider to pass to IdTokenValidator.validate()

        Examples:
            >>> factory = create_factory("discovery")
            >>> provider = factory.create_key_provider("https://idp.example")
            >>> validator = factory.create_validator()
            >>> validator.validate(token, "https://idp.example", "client-123",
            ...                    nonce, provider, True)
        """
        pass

    @abstractmethod
    def create_validator(self) -> IdTokenValidator:
        """Create an ID token validator.

        The validator shares this factory's discovery cache, so
        validate_async() and providers from create_key_provider() see the
        same key sets.

        Returns:
            IdTokenValidator: A configured validator
        """
        pass


def create_factory(provider_type: str, **kwargs) -> ValidatorFactory:
    """Create a factory for the specified key source type.

    This is the main entry point for configuring Palisade.

    Args:
        provider_type: Where signing keys come from.
            Valid values: "discovery", "static"

        **kwargs: Key-source-specific configuration arguments.

            For provider_type="discovery":
                config (DiscoveryConfig, optional): Discovery settings. Use
                    DiscoveryConfig.from_env() to read PALISADE_* variables.
                cache (DiscoveryCache, optional): Cache to share. Defaults to
                    a new cache built from config.
                token_verifier (TokenVerifier, optional): Verifier override.

            For provider_type="static":
                jwks (dict | SigningKeySet, required): The pinned key set.

    Returns:
        ValidatorFactory: A configured factory instance.

    Raises:
        ValueError: If provider_type is unknown or required arguments are missing.

    Examples:
        Discovery with environment configuration:
            >>> from palisade import DiscoveryConfig, create_factory
            >>> factory = create_factory("discovery", config=DiscoveryConfig.from_env())

        Static keys for tests:
            >>> factory = create_factory("static", jwks={"keys": [...]})
    """
    if provider_type == "discovery":
        from palisade.factories.discovery import DiscoveryFactory

        unknown = set(kwargs) - {"config", "cache", "token_verifier"}
        if unknown:
            raise ValueError(
                f"Unknown arguments for provider_type='discovery': {sorted(unknown)}. "
                f"Valid arguments: config, cache, token_verifier"
            )
        return DiscoveryFactory(**kwargs)
    elif provider_type == "static":
        from palisade.factories.static import StaticFactory

        if "jwks" not in kwargs:
            raise ValueError(
                "Missing required argument 'jwks' for provider_type='static'. "
                "Example: create_factory('static', jwks={'keys': [...]})"
            )
        return StaticFactory(**kwargs)
    else:
        raise ValueError(
            f"Unknown provider type: '{provider_type}'. "
            f"Valid types: 'discovery', 'static'. "
            f"Example: create_factory('discovery')"
        )
