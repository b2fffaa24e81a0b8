"""capfetch: capability tokens for scoped, proof-backed fetches."""

from capfetch.client import AuthorizedClient, ProofGenerator
from capfetch.primitives import (
    ApplicationError,
    CapfetchError,
    DisallowedOption,
    InvalidMethod,
    InvalidParameter,
    NetworkError,
    ProtocolFailure,
    is_url_allowed,
)
from capfetch.runtime import EphemeralKeyManager
from capfetch.tokens import (
    SignatureConfig,
    SignatureData,
    TokenIssuer,
    generate_token,
    verify_token,
)

__version__ = "0.1.0"

__all__ = [
    "AuthorizedClient",
    "ProofGenerator",
    "EphemeralKeyManager",
    "SignatureConfig",
    "SignatureData",
    "TokenIssuer",
    "generate_token",
    "verify_token",
    "is_url_allowed",
    "CapfetchError",
    "InvalidParameter",
    "DisallowedOption",
    "InvalidMethod",
    "ApplicationError",
    "NetworkError",
    "ProtocolFailure",
]
