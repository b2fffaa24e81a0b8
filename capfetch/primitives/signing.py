"""secp256k1 signing primitives for capability tokens.

Pure cryptographic operations, no policy and no I/O. An identity is the
compressed public key of a private key, hex encoded with a ``0x`` prefix, so
a signature over a message is enough to recover the identity that made it.
"""

import hashlib
from typing import Optional

from coincurve import PrivateKey, PublicKey

from capfetch.primitives.errors import InvalidParameter

MESSAGE_PREFIX = b"\x19Capfetch Signed Message:\n"
SIGNATURE_LENGTH = 65


def _strip_hex_prefix(value: str) -> str:
    if value[:2] in ("0x", "0X"):
        return value[2:]
    return value


def message_digest(message: bytes) -> bytes:
    """SHA256 digest of a message wrapped in the signed-message envelope.

    The envelope (prefix + decimal length + message) keeps token signatures
    from being replayed as signatures over raw transaction-like data.
    """
    envelope = MESSAGE_PREFIX + str(len(message)).encode("ascii") + message
    return hashlib.sha256(envelope).digest()


class KeyIdentity:
    """A private signing key and the identity derived from it."""

    def __init__(self, private_key: PrivateKey):
        self._key = private_key

    @classmethod
    def generate(cls) -> "KeyIdentity":
        """Generate a fresh random key."""
        return cls(PrivateKey())

    @classmethod
    def from_private_key(cls, private_key_hex: str) -> "KeyIdentity":
        """Load a key from 64 hex characters (``0x`` prefix optional).

        Raises:
            InvalidParameter: If the value is not a valid secp256k1 scalar.
        """
        if not isinstance(private_key_hex, str) or not private_key_hex.strip():
            raise InvalidParameter("private key must be a non-empty hex string")
        raw = _strip_hex_prefix(private_key_hex.strip())
        if len(raw) != 64:
            raise InvalidParameter("private key must be 32 bytes of hex")
        try:
            return cls(PrivateKey(bytes.fromhex(raw)))
        except ValueError as e:
            raise InvalidParameter("private key is not a valid secp256k1 key", cause=e)

    @property
    def private_key(self) -> str:
        """Private key as ``0x``-prefixed lowercase hex."""
        return "0x" + self._key.secret.hex()

    @property
    def identity(self) -> str:
        """Public identity: ``0x`` + compressed public key hex."""
        return "0x" + self._key.public_key.format(compressed=True).hex()

    def sign_message(self, message: bytes) -> str:
        """Sign a message with the signed-message envelope.

        Args:
            message: Bytes to sign.

        Returns:
            ``0x``-prefixed hex of r || s || recovery id (65 bytes).
        """
        signature = self._key.sign_recoverable(message_digest(message), hasher=None)
        return "0x" + signature.hex()

    def __repr__(self) -> str:
        return f"KeyIdentity(identity={self.identity})"


def recover_identity(message: bytes, signature: str) -> str:
    """Recover the identity that produced a signature over message.

    Raises:
        ValueError: If the signature is malformed or unrecoverable.
    """
    if not isinstance(signature, str):
        raise ValueError("signature must be a hex string")
    raw = bytes.fromhex(_strip_hex_prefix(signature))
    if len(raw) != SIGNATURE_LENGTH:
        raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}")
    public_key = PublicKey.from_signature_and_message(raw, message_digest(message), hasher=None)
    return "0x" + public_key.format(compressed=True).hex()


def identity_for(private_key_hex: str) -> str:
    """Identity derived from a hex private key."""
    return KeyIdentity.from_private_key(private_key_hex).identity


def parse_private_key(value: Optional[str]) -> Optional[KeyIdentity]:
    """Parse a stored private key, returning None instead of raising."""
    if not value:
        return None
    try:
        return KeyIdentity.from_private_key(value)
    except InvalidParameter:
        return None
