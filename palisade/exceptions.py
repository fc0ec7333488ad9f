"""Palisade exceptions.

All exceptions inherit from PalisadeError for easy catching.
"""

from __future__ import annotations


class PalisadeError(Exception):
    """Base exception for Palisade errors."""

    def __init__(self, message: str, code: str):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidArgumentError(PalisadeError, ValueError):
    """Raised when a caller passes an empty or missing required argument.

    This is a programming error, not an authentication failure, and is never
    reduced to a rejected validation.
    """

    def __init__(self, argument: str, message: str | None = None):
        super().__init__(
            message=message or f"Argument '{argument}' must be a non-empty value",
            code="INVALID_ARGUMENT",
        )
        self.argument = argument


class DiscoveryUnavailableError(PalisadeError):
    """Raised when a discovery document or its JWKS cannot be fetched or parsed."""

    def __init__(self, url: str, message: str):
        super().__init__(message=message, code="DISCOVERY_UNAVAILABLE")
        self.url = url


# ==================== Token Errors ====================


class InvalidTokenError(PalisadeError):
    """Raised when a JWT token is invalid."""

    def __init__(self, message: str = "Invalid token", code: str = "INVALID_TOKEN"):
        super().__init__(message=message, code=code)


class InvalidSignatureError(InvalidTokenError):
    """Raised when no signing key verifies the token signature."""

    def __init__(self, message: str = "Token signature verification failed"):
        super().__init__(message=message, code="INVALID_SIGNATURE")


class TokenExpiredError(InvalidTokenError):
    """Raised when token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message=message, code="TOKEN_EXPIRED")


class TokenNotYetValidError(InvalidTokenError):
    """Raised when token nbf or iat lies in the future beyond the clock skew."""

    def __init__(self, message: str = "Token is not yet valid"):
        super().__init__(message=message, code="TOKEN_NOT_YET_VALID")


class InvalidIssuerError(InvalidTokenError):
    """Raised when token issuer is not the trusted issuer."""

    def __init__(self, issuer: str):
        super().__init__(
            message=f"Untrusted token issuer, expected: {issuer}",
            code="INVALID_ISSUER",
        )
        self.issuer = issuer


class InvalidAudienceError(InvalidTokenError):
    """Raised when token audience does not contain the trusted audience."""

    def __init__(self, audience: str):
        super().__init__(
            message=f"Token audience does not include: {audience}",
            code="INVALID_AUDIENCE",
        )
        self.audience = audience


class MalformedTokenError(InvalidTokenError):
    """Raised when a token cannot be parsed as a JWT."""

    def __init__(self, message: str = "Malformed token"):
        super().__init__(message=message, code="MALFORMED_TOKEN")


class NonceMismatchError(InvalidTokenError):
    """Raised when the nonce claim is missing or differs from the expected nonce."""

    def __init__(self, message: str = "Token nonce does not match"):
        super().__init__(message=message, code="NONCE_MISMATCH")
