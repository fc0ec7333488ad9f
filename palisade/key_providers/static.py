"""Fixed signing key set provider for tests and pinned keys."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, Union

import structlog

from palisade.core.key_provider import SigningKeySetProvider
from palisade.models import SigningKey, SigningKeySet

log = structlog.get_logger()


class StaticKeySetProvider(SigningKeySetProvider):
    """
    Serves one key set that never changes.

    Useful for unit tests and for deployments that pin an issuer's keys
    instead of trusting its discovery endpoint. No network access.

    Example:
        provider = StaticKeySetProvider({
            "keys": [{"kty": "RSA", "kid": "k1", "n": "...", "e": "AQAB"}]
        })
        keys = provider.get_signing_keys()
    """

    def __init__(self, keys: Union[SigningKeySet, Mapping[str, Any], Iterable[SigningKey]] = ()):
        """Initialize static key provider.

        Args:
            keys: A SigningKeySet, a JWKS document, or an iterable of
                  SigningKey. Defaults to an empty key set.

        Raises:
            ValueError: If a JWKS document is malformed
        """
        if isinstance(keys, SigningKeySet):
            self._keys = keys
        elif isinstance(keys, Mapping):
            self._keys = SigningKeySet.from_jwks(keys)
        else:
            self._keys = SigningKeySet(keys=tuple(keys))
        log.debug("static_key_provider_initialized", key_count=len(self._keys))

    def get_signing_keys(self) -> SigningKeySet:
        """Return the fixed key set."""
        return self._keys
