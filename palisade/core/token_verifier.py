"""Abstract token verifier interface.

This module defines the interface for JWT signature and claims verification.
The validator delegates all cryptography to an implementation of this
interface and never inspects signatures itself.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

from palisade.models import ValidationPolicy


class TokenVerifier(ABC):
    """Abstract interface for JWT verification against a ValidationPolicy.

    Implementations handle:
    - Token structure decoding
    - Signature verification against the policy's key set
    - Issuer, audience and lifetime checks

    Implementations:
        - JwtTokenVerifier: PyJWT-backed verification
    """

    @abstractmethod
    def verify(self, token: str, policy: ValidationPolicy) -> Dict[str, Any]:
        """Verify a JWT token and return its payload.

        Args:
            token: The JWT token to verify
            policy: Trusted issuers, audiences, keys and lifetime settings

        Returns:
            Verified token payload

        Raises:
            MalformedTokenError: If the token cannot be parsed
            InvalidSignatureError: If no key in the policy verifies the token
            TokenExpiredError: If lifetime is enforced and the token expired
            TokenNotYetValidError: If lifetime is enforced and nbf/iat is in the future
            InvalidIssuerError: If iss is not a trusted issuer
            InvalidAudienceError: If aud does not contain a trusted audience
        """
