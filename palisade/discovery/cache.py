"""Process-wide cache of issuer signing key sets.

This module provides discovery-backed key resolution with:
- TTL caching per (issuer, well-known path)
- Single-flight refresh: one outstanding fetch per key, shared by every
  waiting thread or coroutine
- Atomic updates: a fetch either replaces the snapshot or leaves it alone
- Optional stale serving when a refresh fails
"""

from __future__ import annotations

import asyncio
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

import structlog

from palisade.discovery.retriever import DiscoveryRetriever, build_discovery_url
from palisade.exceptions import DiscoveryUnavailableError, InvalidArgumentError
from palisade.models import DiscoveryDocument, SigningKeySet

log = structlog.get_logger()

_CacheKey = Tuple[str, str]


@dataclass(frozen=True)
class _Entry:
    document: DiscoveryDocument
    expires_at: float


class _Flight:
    """An in-progress fetch and the callers waiting on it."""

    def __init__(self) -> None:
        self.future: "Future[SigningKeySet]" = Future()
        self.waiters = 0


class DiscoveryCache:
    """Cache of discovery documents keyed by issuer and well-known path.

    Args:
        retriever: Fetches discovery documents. Defaults to a
            DiscoveryRetriever with a 10 second timeout.
        ttl_seconds: How long a snapshot is served before refetching.
            Defaults to 6 hours.
        serve_stale_on_error: Return the previous snapshot when a refresh
            fails instead of raising. Defaults to True.
        clock: Monotonic clock, replaceable in tests.
    """

    def __init__(
        self,
        retriever: Optional[DiscoveryRetriever] = None,
        ttl_seconds: int = 21600,  # 6 hours
        serve_stale_on_error: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.retriever = retriever or DiscoveryRetriever()
        self.ttl_seconds = ttl_seconds
        self.serve_stale_on_error = serve_stale_on_error
        self._clock = clock

        self._entries: Dict[_CacheKey, _Entry] = {}
        self._in_flight: Dict[_CacheKey, _Flight] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _cache_key(issuer: str, well_known_path: str) -> _CacheKey:
        if not isinstance(issuer, str) or not issuer:
            raise InvalidArgumentError("issuer")
        if not isinstance(well_known_path, str) or not well_known_path:
            raise InvalidArgumentError("well_known_path")
        return issuer, well_known_path

    # Both helpers below require self._lock to be held

    def _fresh_keys(self, key: _CacheKey) -> Optional[SigningKeySet]:
        entry = self._entries.get(key)
        if entry is not None and entry.expires_at > self._clock():
            return entry.document.signing_keys
        return None

    def _join(self, key: _CacheKey) -> Tuple[_Flight, bool]:
        flight = self._in_flight.get(key)
        owner = flight is None
        if owner:
            flight = _Flight()
            self._in_flight[key] = flight
        flight.waiters += 1
        return flight, owner

    def _leave(self, flight: _Flight) -> None:
        # The flight stays registered until _run finishes, even with no
        # waiters left, so a running fetch is never duplicated
        with self._lock:
            flight.waiters -= 1

    def _run(self, key: _CacheKey, flight: _Flight) -> None:
        """Fetch a document for key and resolve the flight."""
        issuer, well_known_path = key
        url = build_discovery_url(issuer, well_known_path)
        log.info("discovery_refresh_started", issuer=issuer, url=url)

        document: Optional[DiscoveryDocument] = None
        error: Optional[DiscoveryUnavailableError] = None
        try:
            document = self.retriever.fetch(url, expected_issuer=issuer)
        except DiscoveryUnavailableError as e:
            error = e
        except Exception as e:
            # Waiters must always be released, even on a retriever bug
            log.exception("discovery_fetch_crashed", url=url)
            error = DiscoveryUnavailableError(url, f"Unexpected error fetching discovery: {e}")

        result: Optional[SigningKeySet] = None
        with self._lock:
            if self._in_flight.get(key) is flight:
                del self._in_flight[key]

            if document is not None:
                self._entries[key] = _Entry(document, self._clock() + self.ttl_seconds)
                result = document.signing_keys
                log.info("discovery_cached", issuer=issuer, key_count=len(result))
            else:
                stale = self._entries.get(key)
                if stale is not None and self.serve_stale_on_error:
                    log.warning("serving_stale_key_set", issuer=issuer, url=url, error=str(error))
                    result = stale.document.signing_keys

        if result is not None:
            flight.future.set_result(result)
        else:
            flight.future.set_exception(error)

    def get_signing_keys_sync(self, issuer: str, well_known_path: str) -> SigningKeySet:
        """Return the current key set for an issuer, fetching if needed.

        The calling thread performs the fetch when no other caller is
        already fetching the same key; otherwise it waits for that fetch.

        Args:
            issuer: Trusted issuer URL
            well_known_path: Path of the discovery document below the issuer

        Returns:
            Immutable SigningKeySet

        Raises:
            InvalidArgumentError: If issuer or well_known_path is empty
            DiscoveryUnavailableError: If no key set could be obtained
        """
        key = self._cache_key(issuer, well_known_path)
        with self._lock:
            cached = self._fresh_keys(key)
            if cached is not None:
                return cached
            flight, owner = self._join(key)

        try:
            if owner:
                self._run(key, flight)
            return flight.future.result()
        finally:
            self._leave(flight)

    async def get_signing_keys(self, issuer: str, well_known_path: str) -> SigningKeySet:
        """Async version of get_signing_keys_sync.

        The fetch runs in the default executor. Cancelling the awaiting task
        only stops waiting: a started fetch cannot be interrupted, so it runs
        to completion, updates the cache atomically and remains the in-flight
        fetch that later callers join.
        """
        key = self._cache_key(issuer, well_known_path)
        with self._lock:
            cached = self._fresh_keys(key)
            if cached is not None:
                return cached
            flight, owner = self._join(key)

        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        def _deliver(done: "Future[SigningKeySet]") -> None:
            if waiter.done():
                return
            exc = done.exception()
            if exc is not None:
                waiter.set_exception(exc)
            else:
                waiter.set_result(done.result())

        def _on_done(done: "Future[SigningKeySet]") -> None:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_deliver, done)

        flight.future.add_done_callback(_on_done)
        if owner:
            loop.run_in_executor(None, self._run, key, flight)

        try:
            return await waiter
        finally:
            self._leave(flight)

    def invalidate(self, issuer: str, well_known_path: str) -> None:
        """Force the next lookup for this issuer to refetch.

        The current snapshot is kept so it can still be served stale.
        """
        key = self._cache_key(issuer, well_known_path)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries[key] = replace(entry, expires_at=float("-inf"))
        log.debug("discovery_invalidated", issuer=issuer)

    def clear(self) -> None:
        """Drop every cached snapshot."""
        with self._lock:
            self._entries.clear()


_default_cache: Optional[DiscoveryCache] = None
_default_cache_lock = threading.Lock()


def get_default_cache() -> DiscoveryCache:
    """Return the process-wide DiscoveryCache, creating it on first use."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = DiscoveryCache()
        return _default_cache


def reset_default_cache() -> None:
    """Tear down the process-wide DiscoveryCache."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = None
