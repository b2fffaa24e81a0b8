"""Capability token issuance and verification."""

from capfetch.tokens.issuer import TokenIssuer, generate_token
from capfetch.tokens.models import SignatureConfig, SignatureData
from capfetch.tokens.verifier import verify_token

__all__ = [
    "SignatureConfig",
    "SignatureData",
    "TokenIssuer",
    "generate_token",
    "verify_token",
]
