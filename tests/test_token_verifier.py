"""Tests for token verification."""

import time

import jwt
import pytest

from conftest import AUDIENCE, ISSUER, public_jwk
from palisade.core.token_verifier import TokenVerifier
from palisade.exceptions import (
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    MalformedTokenError,
    TokenExpiredError,
    TokenNotYetValidError,
)
from palisade.models import SigningKeySet, ValidationPolicy
from palisade.token_verifiers.pyjwt import JwtTokenVerifier


def _policy(jwks, check_lifetime=True, issuer=ISSUER, audience=AUDIENCE) -> ValidationPolicy:
    return ValidationPolicy(
        issuers=(issuer,),
        audiences=(audience,),
        signing_keys=SigningKeySet.from_jwks(jwks),
        check_lifetime=check_lifetime,
    )


# ==================== TokenVerifier ABC Tests ====================


def test_token_verifier_is_abstract():
    """Test that TokenVerifier cannot be instantiated."""
    with pytest.raises(TypeError):
        TokenVerifier()


def test_token_verifier_requires_verify_method():
    """Test that subclasses must implement verify method."""

    class IncompleteVerifier(TokenVerifier):
        pass

    with pytest.raises(TypeError):
        IncompleteVerifier()


def test_token_verifier_only_requires_verify():
    """A custom verifier needs nothing beyond verify()."""

    class MinimalVerifier(TokenVerifier):
        def verify(self, token, policy):
            return {}

    assert MinimalVerifier().verify("t", None) == {}


def test_jwt_verifier_implements_token_verifier():
    """Test that JwtTokenVerifier implements TokenVerifier interface."""
    assert issubclass(JwtTokenVerifier, TokenVerifier)


# ==================== Signature Tests ====================


def test_verify_valid_token(make_token, jwks):
    """A correctly signed token returns its payload."""
    claims = JwtTokenVerifier().verify(make_token(), _policy(jwks))
    assert claims["iss"] == ISSUER
    assert claims["sub"] == "user-1"


def test_verify_tries_every_key_without_kid(make_token, rsa_jwk, other_rsa_private_key):
    """Without a kid header, every key is a candidate."""
    jwks = {"keys": [public_jwk(other_rsa_private_key, "k2"), rsa_jwk]}
    claims = JwtTokenVerifier().verify(make_token(kid=None), _policy(jwks))
    assert claims["aud"] == AUDIENCE


def test_verify_ec_token(make_token, ec_private_key):
    """EC keys verify ES256 tokens."""
    jwks = {"keys": [public_jwk(ec_private_key, "ec1")]}
    token = make_token(kid="ec1", key=ec_private_key, algorithm="ES256")
    claims = JwtTokenVerifier().verify(token, _policy(jwks))
    assert claims["nonce"] == "abc"


def test_verify_unknown_kid(make_token, jwks):
    """A kid missing from the key set fails signature verification."""
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(make_token(kid="rotated"), _policy(jwks))


def test_verify_wrong_key(make_token, jwks, other_rsa_private_key):
    """A token signed by a different key with the same kid is rejected."""
    token = make_token(key=other_rsa_private_key)
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(token, _policy(jwks))


def test_verify_tampered_modulus(make_token, rsa_jwk, other_rsa_private_key):
    """Replacing the modulus of the published key breaks verification."""
    other = public_jwk(other_rsa_private_key, "k1")
    jwks = {"keys": [dict(rsa_jwk, n=other["n"])]}
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(make_token(), _policy(jwks))


def test_verify_empty_key_set(make_token):
    """No keys means no signature can verify."""
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(make_token(), _policy({"keys": []}))


def test_verify_rejects_hmac_token(make_token, jwks):
    """HMAC tokens are never verified against a public key set."""
    token = make_token(key="shared-secret-value-long-enough-for-hs256", algorithm="HS256")
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(token, _policy(jwks))


def test_verify_rejects_unsigned_token(jwks):
    """alg=none tokens are rejected."""
    token = jwt.encode(
        {"iss": ISSUER, "aud": AUDIENCE, "exp": int(time.time()) + 3600},
        None,
        algorithm="none",
        headers={"kid": "k1"},
    )
    with pytest.raises(InvalidSignatureError):
        JwtTokenVerifier().verify(token, _policy(jwks))


# ==================== Claims Tests ====================


def test_verify_expired_token(make_token, jwks):
    """Expired tokens fail when lifetime is enforced."""
    token = make_token(claims={"exp": int(time.time()) - 3600})
    with pytest.raises(TokenExpiredError):
        JwtTokenVerifier().verify(token, _policy(jwks))


def test_verify_expired_within_clock_skew(make_token, jwks):
    """Expiry within the five minute skew is tolerated."""
    token = make_token(claims={"exp": int(time.time()) - 60})
    claims = JwtTokenVerifier().verify(token, _policy(jwks))
    assert claims["sub"] == "user-1"


def test_verify_expired_token_without_lifetime_check(make_token, jwks):
    """Expiry is ignored when lifetime is not enforced."""
    token = make_token(claims={"exp": int(time.time()) - 3600})
    claims = JwtTokenVerifier().verify(token, _policy(jwks, check_lifetime=False))
    assert claims["sub"] == "user-1"


def test_verify_not_yet_valid_token(make_token, jwks):
    """A future nbf fails when lifetime is enforced."""
    token = make_token(claims={"nbf": int(time.time()) + 3600})
    with pytest.raises(TokenNotYetValidError):
        JwtTokenVerifier().verify(token, _policy(jwks))


def test_verify_missing_exp_with_lifetime_check(make_token, jwks):
    """exp is required when lifetime is enforced."""
    with pytest.raises(MalformedTokenError) as exc:
        JwtTokenVerifier().verify(make_token(drop=("exp",)), _policy(jwks))
    assert "exp" in str(exc.value)


def test_verify_wrong_issuer(make_token, jwks):
    """A different iss is rejected."""
    token = make_token(claims={"iss": "https://evil.example"})
    with pytest.raises(InvalidIssuerError):
        JwtTokenVerifier().verify(token, _policy(jwks))


def test_verify_missing_issuer(make_token, jwks):
    """A token without iss is an issuer failure."""
    with pytest.raises(InvalidIssuerError):
        JwtTokenVerifier().verify(make_token(drop=("iss",)), _policy(jwks))


def test_verify_wrong_audience(make_token, jwks):
    """A different aud is rejected."""
    with pytest.raises(InvalidAudienceError):
        JwtTokenVerifier().verify(make_token(), _policy(jwks, audience="777"))


def test_verify_audience_list(make_token, jwks):
    """The trusted audience may be one of several."""
    token = make_token(claims={"aud": ["other-client", AUDIENCE]})
    claims = JwtTokenVerifier().verify(token, _policy(jwks))
    assert AUDIENCE in claims["aud"]


def test_verify_missing_audience(make_token, jwks):
    """A token without aud is an audience failure."""
    with pytest.raises(InvalidAudienceError):
        JwtTokenVerifier().verify(make_token(drop=("aud",)), _policy(jwks))


@pytest.mark.parametrize("token", ["7.7.7", "not-a-jwt", "a.b"])
def test_verify_malformed_token(token, jwks):
    """Tokens that are not JWTs are malformed."""
    with pytest.raises(MalformedTokenError):
        JwtTokenVerifier().verify(token, _policy(jwks))


# ==================== Unverified Claims ====================


def test_get_unverified_claims(make_token):
    """Claims are readable without a key."""
    claims = JwtTokenVerifier().get_unverified_claims(make_token())
    assert claims["nonce"] == "abc"


def test_get_unverified_claims_invalid_token():
    """Test get_unverified_claims with invalid token."""
    with pytest.raises(MalformedTokenError):
        JwtTokenVerifier().get_unverified_claims("not-a-valid-jwt")
