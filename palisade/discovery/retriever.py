"""HTTP retrieval of OpenID Connect discovery documents and their JWKS."""

from __future__ import annotations

from typing import Any, Dict

import requests
import structlog

from palisade.exceptions import DiscoveryUnavailableError
from palisade.models import DiscoveryDocument, SigningKeySet

log = structlog.get_logger()


def build_discovery_url(issuer: str, well_known_path: str) -> str:
    """Join an issuer and a well-known path with exactly one slash."""
    return f"{issuer.rstrip('/')}/{well_known_path.lstrip('/')}"


class DiscoveryRetriever:
    """
    Fetches a discovery document and the key set its ``jwks_uri`` points to.

    Every request is bounded by ``timeout_seconds``. Any network, HTTP or
    parsing problem surfaces as DiscoveryUnavailableError; a returned
    DiscoveryDocument is always complete.

    Example:
        retriever = DiscoveryRetriever(timeout_seconds=5.0)
        document = retriever.fetch(
            "https://idp.example/.well-known/openid-configuration",
            expected_issuer="https://idp.example",
        )
    """

    def __init__(self, timeout_seconds: float = 10.0):
        """Initialize discovery retriever.

        Args:
            timeout_seconds: HTTP request timeout in seconds (default: 10.0)
        """
        self._timeout = timeout_seconds

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def _get_json(self, url: str, what: str) -> Any:
        try:
            response = requests.get(url, timeout=self._timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            log.error("discovery_http_error", url=url, what=what, status_code=status)
            raise DiscoveryUnavailableError(
                url, f"Failed to fetch {what}: HTTP {status}"
            ) from e
        except requests.RequestException as e:
            log.error("discovery_request_failed", url=url, what=what, error=str(e))
            raise DiscoveryUnavailableError(url, f"Failed to fetch {what}: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            log.error("discovery_invalid_json", url=url, what=what)
            raise DiscoveryUnavailableError(url, f"{what} is not valid JSON") from e

    def fetch(self, url: str, expected_issuer: str | None = None) -> DiscoveryDocument:
        """Fetch and parse a discovery document and its key set.

        Args:
            url: Discovery document URL
            expected_issuer: If given, the document's issuer must match it
                (trailing slashes ignored)

        Returns:
            DiscoveryDocument with a fully parsed SigningKeySet

        Raises:
            DiscoveryUnavailableError: On network, HTTP or format errors
        """
        document: Dict[str, Any] = self._get_json(url, "discovery document")
        if not isinstance(document, dict):
            raise DiscoveryUnavailableError(url, "Discovery document is not a JSON object")

        issuer = document.get("issuer")
        jwks_uri = document.get("jwks_uri")
        if not isinstance(issuer, str) or not issuer:
            raise DiscoveryUnavailableError(url, "Discovery document missing 'issuer'")
        if not isinstance(jwks_uri, str) or not jwks_uri:
            raise DiscoveryUnavailableError(url, "Discovery document missing 'jwks_uri'")

        if expected_issuer is not None and issuer.rstrip("/") != expected_issuer.rstrip("/"):
            log.error(
                "discovery_issuer_mismatch",
                url=url,
                expected=expected_issuer,
                got=issuer,
            )
            raise DiscoveryUnavailableError(
                url, f"Issuer mismatch: expected {expected_issuer}, discovery returned {issuer}"
            )

        jwks = self._get_json(jwks_uri, "JWKS")
        try:
            signing_keys = SigningKeySet.from_jwks(jwks)
        except ValueError as e:
            log.error("jwks_invalid", jwks_uri=jwks_uri, error=str(e))
            raise DiscoveryUnavailableError(jwks_uri, f"Invalid JWKS: {e}") from e

        log.debug("discovery_fetched", url=url, jwks_uri=jwks_uri, key_count=len(signing_keys))
        return DiscoveryDocument(
            issuer=issuer,
            jwks_uri=jwks_uri,
            signing_keys=signing_keys,
            metadata=document,
        )
