"""Factory implementations for creating Palisade components."""

from palisade.factories.discovery import DiscoveryFactory
from palisade.factories.static import StaticFactory

__all__ = [
    "DiscoveryFactory",
    "StaticFactory",
]
