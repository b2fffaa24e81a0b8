"""Authorized client and its proof collaborator interface."""

from capfetch.client.auth import SecretAuth, TokenAuth
from capfetch.client.client import AuthorizedClient
from capfetch.client.proofs import Proof, ProofGenerator

__all__ = [
    "AuthorizedClient",
    "SecretAuth",
    "TokenAuth",
    "Proof",
    "ProofGenerator",
]
