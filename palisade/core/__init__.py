"""Core abstractions for Palisade token validation."""

from palisade.core.factory import ValidatorFactory, create_factory
from palisade.core.key_provider import SigningKeySetProvider
from palisade.core.token_verifier import TokenVerifier

__all__ = [
    "SigningKeySetProvider",
    "TokenVerifier",
    "ValidatorFactory",
    "create_factory",
]
