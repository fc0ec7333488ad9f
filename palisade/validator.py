"""OpenID Connect ID token validation.

This module orchestrates a single validation call:
- Resolve the signing key set (caller-supplied provider or discovery)
- Build a ValidationPolicy from the caller's trust parameters
- Delegate signature and claims verification to a TokenVerifier
- Compare the nonce claim with the caller's nonce

Every token-content failure is reduced to a rejected ValidationOutcome.
Only InvalidArgumentError, a caller bug, is raised from validate().
"""

from __future__ import annotations

import hmac
from typing import Any, Dict, Optional, Tuple, Type

import structlog

from palisade.core.key_provider import SigningKeySetProvider
from palisade.core.token_verifier import TokenVerifier
from palisade.discovery.cache import DiscoveryCache, get_default_cache
from palisade.exceptions import (
    DiscoveryUnavailableError,
    InvalidArgumentError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    MalformedTokenError,
    NonceMismatchError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from palisade.models import (
    DEFAULT_WELL_KNOWN_PATH,
    FailureReason,
    SigningKeySet,
    TokenClaims,
    ValidationOutcome,
    ValidationPolicy,
    ValidationStage,
)
from palisade.token_verifiers.pyjwt import JwtTokenVerifier

log = structlog.get_logger()

# Order matters: subclasses before InvalidTokenError
_FAILURE_REASONS: Tuple[Tuple[Type[BaseException], FailureReason], ...] = (
    (DiscoveryUnavailableError, FailureReason.DISCOVERY_UNAVAILABLE),
    (TokenExpiredError, FailureReason.TOKEN_EXPIRED),
    (TokenNotYetValidError, FailureReason.TOKEN_NOT_YET_VALID),
    (InvalidIssuerError, FailureReason.ISSUER_MISMATCH),
    (InvalidAudienceError, FailureReason.AUDIENCE_MISMATCH),
    (InvalidSignatureError, FailureReason.SIGNATURE_INVALID),
    (NonceMismatchError, FailureReason.NONCE_MISMATCH),
    (MalformedTokenError, FailureReason.MALFORMED_TOKEN),
    (InvalidArgumentError, FailureReason.MALFORMED_TOKEN),
    (InvalidTokenError, FailureReason.MALFORMED_TOKEN),
)


def classify_error(error: BaseException) -> FailureReason:
    """Map an error raised during validation to its FailureReason.

    Errors that are not Palisade errors map to UNEXPECTED_ERROR.
    """
    for error_type, reason in _FAILURE_REASONS:
        if isinstance(error, error_type):
            return reason
    return FailureReason.UNEXPECTED_ERROR


def _require_text(name: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(name)


def _check_arguments(token: Any, issuer: Any, audience: Any, nonce: Any) -> None:
    _require_text("token", token)
    _require_text("issuer", issuer)
    _require_text("audience", audience)
    _require_text("nonce", nonce)


def _check_nonce(claims: Dict[str, Any], nonce: str) -> None:
    """Raise NonceMismatchError unless the nonce claim equals nonce exactly."""
    try:
        claimed = claims.get("nonce")
        if not isinstance(claimed, str):
            raise NonceMismatchError("Token has no nonce claim")
        matches = hmac.compare_digest(claimed.encode("utf-8"), nonce.encode("utf-8"))
    except (AttributeError, TypeError, UnicodeError) as e:
        raise NonceMismatchError("Could not read nonce claim") from e

    if not matches:
        raise NonceMismatchError()


def _token_claims(claims: Dict[str, Any]) -> TokenClaims:
    aud = claims.get("aud")
    audience = (aud,) if isinstance(aud, str) else tuple(aud or ())
    return TokenClaims(
        sub=claims.get("sub", ""),
        issuer=claims["iss"],
        audience=audience,
        nonce=claims.get("nonce"),
        email=claims.get("email"),
        exp=claims.get("exp"),
        iat=claims.get("iat"),
        raw_claims=claims,
    )


class IdTokenValidator:
    """Validates OpenID Connect ID tokens against caller trust parameters.

    Each call is independent; the validator holds no per-call state and may
    be shared between threads and tasks.

    Args:
        token_verifier: Signature and claims verifier. Defaults to
            JwtTokenVerifier.
        discovery_cache: Cache used by validate_async(). Defaults to the
            process-wide cache.
        well_known_path: Default discovery path for validate_async().

    Examples:
        With a fixed key set:
            >>> validator = IdTokenValidator()
            >>> provider = StaticKeySetProvider(jwks)
            >>> validator.validate(token, issuer, client_id, nonce, provider, True)
            True

        With discovery:
            >>> await validator.validate_async(token, issuer, client_id, nonce)
            True
    """

    def __init__(
        self,
        token_verifier: Optional[TokenVerifier] = None,
        discovery_cache: Optional[DiscoveryCache] = None,
        well_known_path: str = DEFAULT_WELL_KNOWN_PATH,
    ):
        self.token_verifier = token_verifier or JwtTokenVerifier()
        self.well_known_path = well_known_path
        self._discovery_cache = discovery_cache

    @property
    def discovery_cache(self) -> DiscoveryCache:
        return self._discovery_cache or get_default_cache()

    def _reject(self, reason: FailureReason, stage: ValidationStage, issuer: str) -> ValidationOutcome:
        log.info("id_token_rejected", issuer=issuer, reason=reason.value, stage=stage.value)
        return ValidationOutcome(accepted=False, reason=reason, stage=stage)

    def _validate_with_keys(
        self,
        token: str,
        issuer: str,
        audience: str,
        nonce: str,
        keys: SigningKeySet,
        check_lifetime: bool,
    ) -> ValidationOutcome:
        policy = ValidationPolicy(
            issuers=(issuer,),
            audiences=(audience,),
            signing_keys=keys,
            check_lifetime=check_lifetime,
        )

        try:
            claims = self.token_verifier.verify(token, policy)
        except Exception as e:
            reason = classify_error(e)
            if reason is FailureReason.UNEXPECTED_ERROR:
                log.exception("token_verifier_failed", issuer=issuer, error_type=type(e).__name__)
            return self._reject(reason, ValidationStage.KEYS_RESOLVED, issuer)

        try:
            _check_nonce(claims, nonce)
            token_claims = _token_claims(claims)
        except NonceMismatchError:
            return self._reject(FailureReason.NONCE_MISMATCH, ValidationStage.CRYPTO_VERIFIED, issuer)
        except (KeyError, TypeError):
            log.exception("verified_claims_unreadable", issuer=issuer)
            return self._reject(FailureReason.UNEXPECTED_ERROR, ValidationStage.NONCE_CHECKED, issuer)

        log.info("id_token_accepted", issuer=issuer, sub=token_claims.sub)
        return ValidationOutcome(
            accepted=True,
            stage=ValidationStage.NONCE_CHECKED,
            claims=token_claims,
        )

    def evaluate(
        self,
        token: str,
        issuer: str,
        audience: str,
        nonce: str,
        key_source: SigningKeySetProvider,
        check_lifetime: bool,
    ) -> ValidationOutcome:
        """Validate a token and return the classified outcome.

        Args:
            token: The ID token (compact JWS)
            issuer: The only trusted issuer
            audience: The only trusted audience, usually the client id
            nonce: Nonce sent in the authentication request
            key_source: Provider of the issuer's signing keys
            check_lifetime: Whether exp/nbf/iat are enforced

        Returns:
            ValidationOutcome. The reason is for diagnostics only.

        Raises:
            InvalidArgumentError: If any argument is empty or missing
        """
        _check_arguments(token, issuer, audience, nonce)
        if not isinstance(key_source, SigningKeySetProvider):
            raise InvalidArgumentError(
                "key_source", "Argument 'key_source' must be a SigningKeySetProvider"
            )
        if not isinstance(check_lifetime, bool):
            raise InvalidArgumentError(
                "check_lifetime", "Argument 'check_lifetime' must be True or False"
            )

        try:
            keys = key_source.get_signing_keys()
        except DiscoveryUnavailableError:
            return self._reject(FailureReason.DISCOVERY_UNAVAILABLE, ValidationStage.START, issuer)
        except Exception:
            log.exception("key_resolution_failed", issuer=issuer)
            return self._reject(FailureReason.UNEXPECTED_ERROR, ValidationStage.START, issuer)

        return self._validate_with_keys(token, issuer, audience, nonce, keys, check_lifetime)

    def validate(
        self,
        token: str,
        issuer: str,
        audience: str,
        nonce: str,
        key_source: SigningKeySetProvider,
        check_lifetime: bool,
    ) -> bool:
        """Return True only for a trusted, correctly scoped, unexpired token
        whose nonce matches.

        Raises:
            InvalidArgumentError: If any argument is empty or missing
        """
        return self.evaluate(token, issuer, audience, nonce, key_source, check_lifetime).accepted

    async def evaluate_async(
        self,
        token: str,
        issuer: str,
        audience: str,
        nonce: str,
        well_known_path: Optional[str] = None,
    ) -> ValidationOutcome:
        """Validate a token using the issuer's discovery document.

        Lifetime is always enforced.

        Raises:
            InvalidArgumentError: If any argument is empty
            DiscoveryUnavailableError: If the issuer's key set cannot be obtained
        """
        _check_arguments(token, issuer, audience, nonce)
        path = self.well_known_path if well_known_path is None else well_known_path
        _require_text("well_known_path", path)

        keys = await self.discovery_cache.get_signing_keys(issuer, path)
        return self._validate_with_keys(token, issuer, audience, nonce, keys, check_lifetime=True)

    async def validate_async(
        self,
        token: str,
        issuer: str,
        audience: str,
        nonce: str,
        well_known_path: Optional[str] = None,
    ) -> bool:
        """Async convenience entry point; see evaluate_async()."""
        outcome = await self.evaluate_async(token, issuer, audience, nonce, well_known_path)
        return outcome.accepted
