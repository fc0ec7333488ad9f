"""Discovery document retrieval and key set caching."""

from palisade.discovery.cache import DiscoveryCache, get_default_cache, reset_default_cache
from palisade.discovery.retriever import DiscoveryRetriever, build_discovery_url

__all__ = [
    "DiscoveryCache",
    "DiscoveryRetriever",
    "build_discovery_url",
    "get_default_cache",
    "reset_default_cache",
]
