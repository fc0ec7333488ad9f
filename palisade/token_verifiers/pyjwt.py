"""PyJWT-backed token verifier.

This module provides JWT verification for OpenID Connect ID tokens with:
- Candidate key selection by kid and algorithm
- Issuer, audience and optional lifetime validation with clock skew
- Translation of PyJWT errors into Palisade token errors
"""

from __future__ import annotations

from typing import Any, Dict, List

import jwt
import structlog

from palisade.core.token_verifier import TokenVerifier
from palisade.exceptions import (
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from palisade.models import SigningKey, ValidationPolicy

log = structlog.get_logger()


class JwtTokenVerifier(TokenVerifier):
    """PyJWT token verifier.

    Tries every candidate key of the policy's key set until one verifies the
    signature. Candidates are the keys whose kid matches the token header
    (all keys if the header carries no kid) and that support the header's
    algorithm. Symmetric and ``none`` algorithms never verify, because key
    sets only hold asymmetric public keys.
    """

    def _candidate_keys(self, header: Dict[str, Any], policy: ValidationPolicy) -> List[SigningKey]:
        alg = header.get("alg")
        kid = header.get("kid")

        keys = policy.signing_keys.find(kid) if kid is not None else tuple(policy.signing_keys)
        return [k for k in keys if alg in k.algorithms]

    def _decode(self, token: str, key: SigningKey, alg: str, policy: ValidationPolicy) -> Dict[str, Any]:
        required = ["iss", "aud"]
        if policy.check_lifetime:
            required.append("exp")

        return jwt.decode(
            token,
            key=key.key,
            algorithms=[alg],
            issuer=list(policy.issuers),
            audience=list(policy.audiences),
            leeway=policy.clock_skew,
            options={
                "verify_signature": True,
                "verify_exp": policy.check_lifetime,
                "verify_nbf": policy.check_lifetime,
                "verify_iat": policy.check_lifetime,
                "verify_iss": True,
                "verify_aud": True,
                "require": required,
            },
        )

    def verify(self, token: str, policy: ValidationPolicy) -> Dict[str, Any]:
        """Verify an ID token's signature and standard claims."""
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Invalid token: {e}") from e

        candidates = self._candidate_keys(header, policy)
        if not candidates:
            log.info(
                "signing_key_not_found",
                kid=header.get("kid"),
                alg=header.get("alg"),
                available_kids=list(policy.signing_keys.kids),
            )
            raise InvalidSignatureError("No signing key matches the token")

        alg = header["alg"]
        for key in candidates:
            try:
                claims = self._decode(token, key, alg, policy)
            except (jwt.InvalidSignatureError, jwt.InvalidAlgorithmError, jwt.InvalidKeyError):
                log.debug("signature_not_verified_by_key", kid=key.kid)
                continue
            except jwt.ExpiredSignatureError as e:
                raise TokenExpiredError() from e
            except jwt.ImmatureSignatureError as e:
                raise TokenNotYetValidError() from e
            except jwt.InvalidIssuerError as e:
                raise InvalidIssuerError(policy.issuers[0]) from e
            except jwt.InvalidAudienceError as e:
                raise InvalidAudienceError(policy.audiences[0]) from e
            except jwt.MissingRequiredClaimError as e:
                if e.claim == "iss":
                    raise InvalidIssuerError(policy.issuers[0]) from e
                if e.claim == "aud":
                    raise InvalidAudienceError(policy.audiences[0]) from e
                raise MalformedTokenError(f"Token missing required claim: {e.claim}") from e
            except jwt.InvalidTokenError as e:
                raise MalformedTokenError(f"Invalid token: {e}") from e

            log.debug("token_signature_verified", kid=key.kid)
            return claims

        raise InvalidSignatureError()

    def get_unverified_claims(self, token: str) -> Dict[str, Any]:
        """Extract claims from a token WITHOUT verifying the signature."""
        try:
            return jwt.decode(
                token,
                options={"verify_signature": False, "verify_aud": False},
            )
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Failed to decode token: {e}") from e
