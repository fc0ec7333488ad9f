"""Token validation models - provider-agnostic data structures."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

import jwt
import structlog

log = structlog.get_logger()

DEFAULT_WELL_KNOWN_PATH = "/.well-known/openid-configuration"

# Clock drift tolerated when checking exp/nbf/iat
CLOCK_SKEW = timedelta(minutes=5)

# Asymmetric JWS algorithms accepted per JWK key type
_RSA_ALGORITHMS = ("RS256", "RS384", "RS512", "PS256", "PS384", "PS512")
_EC_ALGORITHMS_BY_CURVE = {
    "P-256": ("ES256",),
    "P-384": ("ES384",),
    "P-521": ("ES512",),
    "secp256k1": ("ES256K",),
}
_OKP_ALGORITHMS = ("EdDSA",)


class FailureReason(str, Enum):
    """Why a token was rejected. For diagnostics only."""

    DISCOVERY_UNAVAILABLE = "DISCOVERY_UNAVAILABLE"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_NOT_YET_VALID = "TOKEN_NOT_YET_VALID"
    ISSUER_MISMATCH = "ISSUER_MISMATCH"
    AUDIENCE_MISMATCH = "AUDIENCE_MISMATCH"
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    NONCE_MISMATCH = "NONCE_MISMATCH"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


class ValidationStage(str, Enum):
    """Last stage a validation call reached."""

    START = "START"
    KEYS_RESOLVED = "KEYS_RESOLVED"
    CRYPTO_VERIFIED = "CRYPTO_VERIFIED"
    NONCE_CHECKED = "NONCE_CHECKED"


def _algorithms_for(jwk_data: Mapping[str, Any]) -> Tuple[str, ...]:
    kty = jwk_data.get("kty")
    crv = jwk_data.get("crv")
    alg = jwk_data.get("alg")
    for name, value in (("kty", kty), ("crv", crv), ("alg", alg)):
        if value is not None and not isinstance(value, str):
            raise ValueError(f"JWK member '{name}' must be a string")

    if kty == "RSA":
        family = _RSA_ALGORITHMS
    elif kty == "EC":
        family = _EC_ALGORITHMS_BY_CURVE.get(crv, ())
    elif kty == "OKP":
        family = _OKP_ALGORITHMS
    else:
        raise ValueError(f"Unsupported key type for signature verification: {kty}")

    if not family:
        raise ValueError(f"Unsupported curve: {crv}")

    if alg is None:
        return family
    if alg not in family:
        raise ValueError(f"Algorithm {alg} is not valid for key type {kty}")
    return (alg,)


@dataclass(frozen=True)
class SigningKey:
    """A public verification key taken from a JWKS."""

    kid: Optional[str]
    key_type: str  # RSA, EC or OKP
    algorithms: Tuple[str, ...]
    key: Any  # cryptography public key object
    jwk: Mapping[str, Any] = field(repr=False, compare=False)

    @classmethod
    def from_jwk(cls, jwk_data: Mapping[str, Any]) -> SigningKey:
        """Build a SigningKey from a single JWK.

        Raises:
            ValueError: If the key is symmetric, meant for encryption, or its
                key material cannot be loaded.
        """
        if jwk_data.get("use") not in (None, "sig"):
            raise ValueError(f"Key is not a signing key (use={jwk_data.get('use')})")

        algorithms = _algorithms_for(jwk_data)
        try:
            parsed = jwt.PyJWK(dict(jwk_data))
        except (jwt.PyJWKError, jwt.InvalidKeyError, AttributeError, TypeError, KeyError) as e:
            raise ValueError(f"Invalid key material: {e}") from e

        return cls(
            kid=jwk_data.get("kid"),
            key_type=jwk_data["kty"],
            algorithms=algorithms,
            key=parsed.key,
            jwk=dict(jwk_data),
        )


@dataclass(frozen=True)
class SigningKeySet:
    """Immutable, ordered snapshot of verification keys.

    A key set is never mutated; a refresh replaces it wholesale.
    """

    keys: Tuple[SigningKey, ...] = ()

    @classmethod
    def from_jwks(cls, jwks: Mapping[str, Any]) -> SigningKeySet:
        """Build a key set from a JWKS document.

        Individual keys that cannot be used for signature verification are
        skipped. A document without a ``keys`` list is rejected.

        Raises:
            ValueError: If the JWKS is structurally malformed
        """
        if not isinstance(jwks, Mapping) or not isinstance(jwks.get("keys"), list):
            raise ValueError("JWKS must be an object with a 'keys' list")

        keys = []
        for jwk_data in jwks["keys"]:
            if not isinstance(jwk_data, Mapping):
                log.warning("jwk_skipped", error="key entry is not an object")
                continue
            try:
                keys.append(SigningKey.from_jwk(jwk_data))
            except ValueError as e:
                log.warning("jwk_skipped", kid=jwk_data.get("kid"), error=str(e))

        return cls(keys=tuple(keys))

    @property
    def kids(self) -> Tuple[Optional[str], ...]:
        return tuple(k.kid for k in self.keys)

    def find(self, kid: str) -> Tuple[SigningKey, ...]:
        """Return keys whose kid matches."""
        return tuple(k for k in self.keys if k.kid == kid)

    def __iter__(self) -> Iterator[SigningKey]:
        return iter(self.keys)

    def __len__(self) -> int:
        return len(self.keys)


@dataclass(frozen=True)
class DiscoveryDocument:
    """Parsed OpenID Connect discovery document and its key set."""

    issuer: str
    jwks_uri: str
    signing_keys: SigningKeySet
    metadata: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(frozen=True)
class ValidationPolicy:
    """Checks to run for a single validation call.

    Built fresh per call and never shared between calls with different
    trust parameters.
    """

    issuers: Tuple[str, ...]
    audiences: Tuple[str, ...]
    signing_keys: SigningKeySet
    check_lifetime: bool
    clock_skew: timedelta = CLOCK_SKEW


@dataclass
class TokenClaims:
    """Extracted claims from a validated ID token."""

    sub: str  # User ID
    issuer: str
    audience: Tuple[str, ...]
    nonce: Optional[str] = None
    email: Optional[str] = None
    exp: Optional[int] = None
    iat: Optional[int] = None
    raw_claims: dict[str, Any] | None = None


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of a validation call.

    ``accepted`` is the only externally meaningful value; ``reason`` and
    ``stage`` are diagnostics and must not be surfaced to untrusted clients.
    """

    accepted: bool
    reason: Optional[FailureReason] = None
    stage: ValidationStage = ValidationStage.START
    claims: Optional[TokenClaims] = None


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DiscoveryConfig:
    """Configuration for discovery-backed key resolution."""

    well_known_path: str = DEFAULT_WELL_KNOWN_PATH

    # HTTP timeout per request (discovery document and JWKS)
    timeout_seconds: float = 10.0

    # How long a retrieved key set is served before refetching
    ttl_seconds: int = 21600  # 6 hours

    # Keep serving the previous key set when a refresh fails
    serve_stale_on_error: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DiscoveryConfig:
        """Build config from PALISADE_* environment variables.

        Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()
        if "PALISADE_WELL_KNOWN_PATH" in env:
            config.well_known_path = env["PALISADE_WELL_KNOWN_PATH"]
        if "PALISADE_DISCOVERY_TIMEOUT" in env:
            config.timeout_seconds = float(env["PALISADE_DISCOVERY_TIMEOUT"])
        if "PALISADE_JWKS_TTL_SECONDS" in env:
            config.ttl_seconds = int(env["PALISADE_JWKS_TTL_SECONDS"])
        if "PALISADE_SERVE_STALE_ON_ERROR" in env:
            config.serve_stale_on_error = _env_bool(env["PALISADE_SERVE_STALE_ON_ERROR"])
        return config
