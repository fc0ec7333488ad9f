"""Shared pytest fixtures for palisade tests."""

import time
from unittest.mock import Mock, patch

import jwt
import pytest
import requests
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from jwt.algorithms import ECAlgorithm, RSAAlgorithm

from palisade.discovery import reset_default_cache
from palisade.key_providers import StaticKeySetProvider

ISSUER = "https://idp.example"
AUDIENCE = "client-123"
NONCE = "abc"
DISCOVERY_URL = "https://idp.example/.well-known/openid-configuration"
JWKS_URL = "https://idp.example/.well-known/jwks.json"


def public_jwk(private_key, kid: str) -> dict:
    """Build the public JWK for an RSA or EC private key."""
    if isinstance(private_key, rsa.RSAPrivateKey):
        jwk = RSAAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    else:
        jwk = ECAlgorithm.to_jwk(private_key.public_key(), as_dict=True)
    jwk["kid"] = kid
    return jwk


def http_response(payload, status: int = 200) -> Mock:
    """Create a fake requests response."""
    response = Mock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(response=response)
    return response


@pytest.fixture(autouse=True)
def fresh_default_cache():
    """Each test starts with no process-wide discovery cache."""
    reset_default_cache()
    yield
    reset_default_cache()


@pytest.fixture(scope="session")
def rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_private_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_private_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def rsa_jwk(rsa_private_key):
    return public_jwk(rsa_private_key, "k1")


@pytest.fixture
def jwks(rsa_jwk):
    return {"keys": [rsa_jwk]}


@pytest.fixture
def key_provider(jwks):
    return StaticKeySetProvider(jwks)


@pytest.fixture
def make_token(rsa_private_key):
    """Factory for signed ID tokens.

    Defaults to a valid token for ISSUER/AUDIENCE/NONCE signed by key k1.
    """

    def _make(claims=None, drop=(), kid="k1", key=None, algorithm="RS256"):
        now = int(time.time())
        payload = {
            "iss": ISSUER,
            "aud": AUDIENCE,
            "sub": "user-1",
            "nonce": NONCE,
            "iat": now,
            "exp": now + 3600,
        }
        payload.update(claims or {})
        for name in drop:
            payload.pop(name, None)
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(
            payload,
            rsa_private_key if key is None else key,
            algorithm=algorithm,
            headers=headers,
        )

    return _make


@pytest.fixture
def idp(jwks):
    """Patch requests.get to serve a discovery document and JWKS for ISSUER."""
    routes = {
        DISCOVERY_URL: http_response({"issuer": ISSUER, "jwks_uri": JWKS_URL}),
        JWKS_URL: http_response(jwks),
    }

    def fake_get(url, timeout=None):
        if url not in routes:
            raise requests.ConnectionError(f"no route to {url}")
        return routes[url]

    with patch("palisade.discovery.retriever.requests.get", side_effect=fake_get) as mock_get:
        mock_get.routes = routes
        yield mock_get
