"""Token verifier implementations for JWT validation."""

from palisade.token_verifiers.pyjwt import JwtTokenVerifier

__all__ = [
    "JwtTokenVerifier",
]
