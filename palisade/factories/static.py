"""Factory for fixed-key components."""

from typing import Any, Mapping, Union

from palisade.core.factory import ValidatorFactory
from palisade.core.key_provider import SigningKeySetProvider
from palisade.models import SigningKeySet
from palisade.validator import IdTokenValidator


class StaticFactory(ValidatorFactory):
    """Factory for fixed-key components.

    Every issuer resolves to the same pinned key set. No network access is
    performed by providers from this factory.

    Args:
        jwks: A JWKS document or SigningKeySet to pin.

    Examples:
        Basic usage in tests:
            >>> factory = StaticFactory(jwks={"keys": [rsa_jwk]})
            >>> provider = factory.create_key_provider("https://idp.example")
            >>> validator = factory.create_validator()
            >>> validator.validate(token, "https://idp.example", "client-123",
            ...                    "abc", provider, False)

    Note:
        - validate_async() on the created validator still uses discovery;
          call validate() with a provider from this factory instead.
    """

    def __init__(self, jwks: Union[Mapping[str, Any], SigningKeySet]) -> None:
        from palisade.key_providers.static import StaticKeySetProvider

        # Parse once; every provider shares the same immutable key set
        self._provider = StaticKeySetProvider(jwks)

    def create_key_provider(self, issuer: str) -> SigningKeySetProvider:
        """Return the shared static provider. The issuer is not consulted."""
        return self._provider

    def create_validator(self) -> IdTokenValidator:
        return IdTokenValidator()
