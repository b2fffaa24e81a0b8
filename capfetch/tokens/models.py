"""Capability token data model and wire encoding.

Token wire form: ``base64(canonical_json(payload)) + "." + signature``.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from capfetch.constants import TOKEN_SEPARATOR
from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.integrity import canonical_json


@dataclass
class SignatureConfig:
    """Issuance input. application_secret must derive application_id."""

    application_id: str
    application_secret: str = field(repr=False)
    allowed_urls: List[str]
    expires_at: Optional[int] = None


@dataclass(frozen=True)
class SignatureData:
    """The signed payload, also what verification returns."""

    application_id: str
    allowed_urls: Tuple[str, ...]
    expires_at: int
    signature_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applicationId": self.application_id,
            "allowedUrls": list(self.allowed_urls),
            "expiresAt": self.expires_at,
            "signatureId": self.signature_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SignatureData":
        return cls(
            application_id=data["applicationId"],
            allowed_urls=tuple(data["allowedUrls"]),
            expires_at=data["expiresAt"],
            signature_id=data["signatureId"],
        )

    def canonical(self) -> str:
        return canonical_json(self.to_dict())


def encode_token(payload_json: str, signature: str) -> str:
    """Join the base64 payload and the signature into a token."""
    encoded = base64.b64encode(payload_json.encode("utf-8")).decode("ascii")
    return f"{encoded}{TOKEN_SEPARATOR}{signature}"


def split_token(token: str) -> Tuple[str, str]:
    """Split a token into (encoded payload, signature).

    Raises:
        InvalidParameter: If token is empty or not exactly two parts.
    """
    if not isinstance(token, str) or not token:
        raise InvalidParameter("signature must be a non-empty string", field="signature")
    parts = token.split(TOKEN_SEPARATOR)
    if len(parts) != 2:
        raise InvalidParameter("Invalid signature format", field="signature")
    return parts[0], parts[1]


def decode_payload(encoded: str) -> Dict[str, Any]:
    """Decode the base64 (standard or url-safe) JSON payload of a token.

    Raises:
        InvalidParameter: If the part is not base64 of a JSON object.
    """
    try:
        normalized = encoded.strip().replace("-", "+").replace("_", "/")
        normalized += "=" * (-len(normalized) % 4)
        raw = base64.b64decode(normalized, validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError) as e:
        raise InvalidParameter("Invalid signature payload", field="signature", cause=e)
    if not isinstance(payload, dict):
        raise InvalidParameter("Invalid signature payload", field="signature")
    return payload
