"""Capability token verification.

Pure function of (token, now): no network, no storage. Recovery failures
and identity mismatches raise the same error so callers cannot tell which
check rejected a forged token.
"""

import logging
import time
from typing import Any, Dict, Optional

from capfetch.constants import REQUIRED_PAYLOAD_FIELDS
from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.integrity import canonical_bytes
from capfetch.primitives.signing import recover_identity
from capfetch.tokens.models import SignatureData, decode_payload, split_token

logger = logging.getLogger(__name__)

SIGNATURE_FAILED = "Signature verification failed"


def _check_structure(payload: Dict[str, Any]) -> None:
    if not all(payload.get(name) for name in REQUIRED_PAYLOAD_FIELDS):
        raise InvalidParameter("Invalid signature payload structure", field="signature")

    allowed_urls = payload["allowedUrls"]
    if not isinstance(allowed_urls, list) or not all(isinstance(u, str) for u in allowed_urls):
        raise InvalidParameter("Invalid signature payload structure", field="allowedUrls")

    expires_at = payload["expiresAt"]
    if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
        raise InvalidParameter("Invalid signature payload structure", field="expiresAt")

    for name in ("applicationId", "signatureId"):
        if not isinstance(payload[name], str):
            raise InvalidParameter("Invalid signature payload structure", field=name)


def verify_token(
    token: str,
    now: Optional[int] = None,
    expected_application_id: Optional[str] = None,
) -> SignatureData:
    """Decode and verify a capability token.

    Args:
        token: Token string ``base64(payload).signature``.
        now: Verification time in Unix seconds (default: current time).
        expected_application_id: When given, the token must belong to this
            application (case-insensitive).

    Returns:
        The verified SignatureData.

    Raises:
        InvalidParameter: If the token is malformed, expired, forged, or
            issued for another application.
    """
    encoded, signature = split_token(token)
    payload = decode_payload(encoded)
    _check_structure(payload)

    if now is None:
        now = int(time.time())
    if payload["expiresAt"] <= now:
        raise InvalidParameter("Signature has expired", field="expiresAt")

    try:
        recovered = recover_identity(canonical_bytes(payload), signature)
    except Exception:
        raise InvalidParameter(SIGNATURE_FAILED, field="signature")
    if recovered.lower() != payload["applicationId"].lower():
        raise InvalidParameter(SIGNATURE_FAILED, field="signature")

    data = SignatureData.from_dict(payload)
    if expected_application_id is not None:
        if data.application_id.lower() != str(expected_application_id).lower():
            raise InvalidParameter(
                f"Signature applicationId ({data.application_id}) does not match "
                f"expected ({expected_application_id})",
                field="applicationId",
            )

    logger.debug(f"Verified capability token {data.signature_id} for {data.application_id}")
    return data
