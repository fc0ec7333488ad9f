"""Abstract interface for signing key set resolution.

This module defines a lightweight interface for obtaining the key set used to
verify ID token signatures. The token validator only depends on this
interface, so production code can plug in discovery-backed resolution while
tests and pinned-key deployments supply a fixed key set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from palisade.models import SigningKeySet


class SigningKeySetProvider(ABC):
    """Abstract interface for resolving the current signing key set.

    The interface supports both sync and async access:
    - Sync for IdTokenValidator.validate()
    - Async for callers already running inside an event loop

    Implementations:
        - StaticKeySetProvider: Fixed key set (tests, pinned keys)
        - DiscoveryKeySetProvider: Key set from an issuer's discovery document

    Example:
        >>> from palisade import create_factory
        >>> factory = create_factory("discovery")
        >>> provider = factory.create_key_provider("https://idp.example")
        >>> keys = provider.get_signing_keys()
    """

    @abstractmethod
    def get_signing_keys(self) -> SigningKeySet:
        """Return the current signing key set.

        Returns:
            Immutable SigningKeySet snapshot

        Raises:
            DiscoveryUnavailableError: If the key set cannot be retrieved
        """

    async def get_signing_keys_async(self) -> SigningKeySet:
        """Async version of get_signing_keys.

        The default implementation calls the sync method, which is correct
        for providers that never block.
        """
        return self.get_signing_keys()
