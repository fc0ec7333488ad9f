"""Palisade - OpenID Connect ID token validation.

Palisade decides whether an ID token presented by a client can be trusted:
issued by the expected issuer, scoped to the expected audience, signed by a
key the issuer currently publishes, unexpired, and carrying the nonce the
relying party sent.

Features:
- Discovery document and JWKS retrieval with a single-flight TTL cache
- Signature and claims verification delegated to PyJWT
- Constant-time nonce matching
- Boolean results with internal failure classification
- Pluggable signing key providers for tests and pinned keys
"""

from palisade.core.factory import ValidatorFactory, create_factory
from palisade.core.key_provider import SigningKeySetProvider
from palisade.core.token_verifier import TokenVerifier
from palisade.discovery import (
    DiscoveryCache,
    DiscoveryRetriever,
    get_default_cache,
    reset_default_cache,
)
from palisade.exceptions import (
    DiscoveryUnavailableError,
    InvalidArgumentError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    NonceMismatchError,
    PalisadeError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from palisade.factories import DiscoveryFactory, StaticFactory
from palisade.key_providers import DiscoveryKeySetProvider, StaticKeySetProvider
from palisade.models import (
    CLOCK_SKEW,
    DEFAULT_WELL_KNOWN_PATH,
    DiscoveryConfig,
    DiscoveryDocument,
    FailureReason,
    SigningKey,
    SigningKeySet,
    TokenClaims,
    ValidationOutcome,
    ValidationPolicy,
    ValidationStage,
)
from palisade.token_verifiers import JwtTokenVerifier
from palisade.validator import IdTokenValidator, classify_error

__version__ = "0.1.0"

__all__ = [
    # Core interfaces
    "SigningKeySetProvider",
    "TokenVerifier",
    # Factory (recommended entry point)
    "create_factory",
    "ValidatorFactory",
    "DiscoveryFactory",
    "StaticFactory",
    # Validation
    "IdTokenValidator",
    "classify_error",
    # Models
    "DiscoveryConfig",
    "DiscoveryDocument",
    "FailureReason",
    "SigningKey",
    "SigningKeySet",
    "TokenClaims",
    "ValidationOutcome",
    "ValidationPolicy",
    "ValidationStage",
    # Constants
    "CLOCK_SKEW",
    "DEFAULT_WELL_KNOWN_PATH",
    # Exceptions - Base
    "PalisadeError",
    "InvalidArgumentError",
    "DiscoveryUnavailableError",
    # Exceptions - Token
    "InvalidTokenError",
    "InvalidAudienceError",
    "InvalidIssuerError",
    "InvalidSignatureError",
    "MalformedTokenError",
    "NonceMismatchError",
    "TokenExpiredError",
    "TokenNotYetValidError",
    # Discovery
    "DiscoveryCache",
    "DiscoveryRetriever",
    "get_default_cache",
    "reset_default_cache",
    # Key providers
    "DiscoveryKeySetProvider",
    "StaticKeySetProvider",
    # Token verifiers
    "JwtTokenVerifier",
]
