"""Tests for palisade exceptions."""

import pytest

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


# ==================== Base Exceptions ====================


def test_palisade_error():
    """Test base PalisadeError."""
    error = PalisadeError("Test error", "TEST_CODE")
    assert str(error) == "Test error"
    assert error.message == "Test error"
    assert error.code == "TEST_CODE"


def test_invalid_argument_error():
    """Test InvalidArgumentError names the argument."""
    error = InvalidArgumentError("nonce")
    assert "nonce" in str(error)
    assert error.code == "INVALID_ARGUMENT"
    assert error.argument == "nonce"


def test_invalid_argument_error_is_value_error():
    """Callers can catch caller bugs as ValueError."""
    with pytest.raises(ValueError):
        raise InvalidArgumentError("token")


def test_invalid_argument_error_custom_message():
    """Test InvalidArgumentError with custom message."""
    error = InvalidArgumentError("check_lifetime", "must be a bool")
    assert str(error) == "must be a bool"


def test_discovery_unavailable_error():
    """Test DiscoveryUnavailableError."""
    error = DiscoveryUnavailableError("https://idp.example/x", "Failed to fetch")
    assert "Failed to fetch" in str(error)
    assert error.code == "DISCOVERY_UNAVAILABLE"
    assert error.url == "https://idp.example/x"


# ==================== Token Exceptions ====================


def test_invalid_token_error():
    """Test InvalidTokenError defaults."""
    error = InvalidTokenError()
    assert str(error) == "Invalid token"
    assert error.code == "INVALID_TOKEN"


def test_invalid_signature_error():
    """Test InvalidSignatureError."""
    error = InvalidSignatureError()
    assert "signature" in str(error).lower()
    assert error.code == "INVALID_SIGNATURE"


def test_token_expired_error():
    """Test TokenExpiredError."""
    error = TokenExpiredError()
    assert "expired" in str(error)
    assert error.code == "TOKEN_EXPIRED"


def test_token_not_yet_valid_error():
    """Test TokenNotYetValidError."""
    error = TokenNotYetValidError()
    assert error.code == "TOKEN_NOT_YET_VALID"


def test_invalid_issuer_error():
    """Test InvalidIssuerError."""
    error = InvalidIssuerError("https://idp.example")
    assert "https://idp.example" in str(error)
    assert error.code == "INVALID_ISSUER"
    assert error.issuer == "https://idp.example"


def test_invalid_audience_error():
    """Test InvalidAudienceError."""
    error = InvalidAudienceError("client-123")
    assert "client-123" in str(error)
    assert error.code == "INVALID_AUDIENCE"
    assert error.audience == "client-123"


def test_malformed_token_error_custom_message():
    """Test MalformedTokenError with custom message."""
    error = MalformedTokenError("Not enough segments")
    assert str(error) == "Not enough segments"
    assert error.code == "MALFORMED_TOKEN"


def test_nonce_mismatch_error():
    """Test NonceMismatchError."""
    error = NonceMismatchError()
    assert error.code == "NONCE_MISMATCH"


# ==================== Hierarchy ====================


@pytest.mark.parametrize(
    "error",
    [
        InvalidSignatureError(),
        TokenExpiredError(),
        TokenNotYetValidError(),
        InvalidIssuerError("iss"),
        InvalidAudienceError("aud"),
        MalformedTokenError(),
        NonceMismatchError(),
    ],
)
def test_token_errors_inherit_from_invalid_token_error(error):
    """All token errors can be caught as InvalidTokenError."""
    assert isinstance(error, InvalidTokenError)
    assert isinstance(error, PalisadeError)


def test_discovery_error_is_not_a_token_error():
    """Discovery failures are not token content failures."""
    assert not isinstance(DiscoveryUnavailableError("u", "m"), InvalidTokenError)
