"""Signing key set provider implementations."""

from palisade.key_providers.discovery import DiscoveryKeySetProvider
from palisade.key_providers.static import StaticKeySetProvider

__all__ = [
    "DiscoveryKeySetProvider",
    "StaticKeySetProvider",
]
