"""Capability token issuance.

The backend holds the application secret and hands frontends a token that
names the URLs they may fetch and when that permission ends.
"""

import logging
import time
import uuid
from typing import List, Optional, Tuple

from capfetch.constants import DEFAULT_EXPIRY_HOURS, MAX_EXPIRY_HOURS
from capfetch.primitives.errors import CapfetchError, InvalidParameter
from capfetch.primitives.signing import KeyIdentity
from capfetch.primitives.url_patterns import validate_pattern
from capfetch.runtime.applications import ApplicationDirectory
from capfetch.runtime.audit import AuditLogger, LogType
from capfetch.tokens.models import SignatureConfig, SignatureData, encode_token

logger = logging.getLogger(__name__)


def validate_application_credentials(application_id: str, application_secret: str) -> KeyIdentity:
    """Check that application_secret derives application_id.

    Returns:
        The KeyIdentity of the secret.

    Raises:
        InvalidParameter: If either value is empty or they do not belong together.
    """
    if not isinstance(application_id, str) or not application_id.strip():
        raise InvalidParameter("applicationId must be a non-empty string", field="applicationId")
    if not isinstance(application_secret, str) or not application_secret.strip():
        raise InvalidParameter(
            "applicationSecret must be a non-empty string", field="applicationSecret"
        )
    try:
        identity = KeyIdentity.from_private_key(application_secret)
    except InvalidParameter:
        raise InvalidParameter(
            "Invalid applicationId and applicationSecret", field="applicationSecret"
        )
    if identity.identity.lower() != application_id.lower():
        raise InvalidParameter(
            "Invalid applicationId and applicationSecret", field="applicationSecret"
        )
    return identity


def validate_allowed_urls(allowed_urls: List[str]) -> Tuple[str, ...]:
    """Check every allow-list entry, returning them as a tuple."""
    if not isinstance(allowed_urls, (list, tuple)) or len(allowed_urls) == 0:
        raise InvalidParameter("allowedUrls must be a non-empty array", field="allowedUrls")
    for pattern in allowed_urls:
        validate_pattern(pattern)
    return tuple(allowed_urls)


def resolve_expiry(expires_at: Optional[int], now: int) -> int:
    """Apply the default expiry and enforce the allowed window.

    Raises:
        InvalidParameter: If the expiry is not after now or beyond the
            maximum horizon.
    """
    if expires_at is None:
        expires_at = now + DEFAULT_EXPIRY_HOURS * 3600
    if isinstance(expires_at, bool) or not isinstance(expires_at, int):
        raise InvalidParameter("expiresAt must be an integer Unix timestamp", field="expiresAt")

    if expires_at <= now:
        raise InvalidParameter("expiresAt must be in the future", field="expiresAt")
    if expires_at > now + MAX_EXPIRY_HOURS * 3600:
        raise InvalidParameter(
            f"expiresAt cannot exceed {MAX_EXPIRY_HOURS} hours from now", field="expiresAt"
        )
    return expires_at


def _prepare(config: SignatureConfig, now: Optional[int]) -> Tuple[KeyIdentity, SignatureData]:
    if now is None:
        now = int(time.time())
    identity = validate_application_credentials(config.application_id, config.application_secret)
    allowed_urls = validate_allowed_urls(config.allowed_urls)
    expires_at = resolve_expiry(config.expires_at, now)

    data = SignatureData(
        application_id=config.application_id,
        allowed_urls=allowed_urls,
        expires_at=expires_at,
        signature_id=str(uuid.uuid4()),
    )
    return identity, data


def _sign(identity: KeyIdentity, data: SignatureData) -> str:
    payload = data.canonical()
    signature = identity.sign_message(payload.encode("utf-8"))
    return encode_token(payload, signature)


def generate_token(config: SignatureConfig, now: Optional[int] = None) -> str:
    """Build and sign a capability token.

    Args:
        config: Issuance input.
        now: Issuance time in Unix seconds (default: current time).

    Returns:
        Token string ``base64(payload).signature``.

    Raises:
        InvalidParameter: On any invalid input.
    """
    identity, data = _prepare(config, now)
    return _sign(identity, data)


class TokenIssuer:
    """Issuance with registration gating and audit events.

    Both collaborators are optional. With a directory, unregistered
    applications are refused before anything is signed. With an audit
    logger, each issued token is reported by its signature id and each
    refusal as SESSION_TOKEN_FAILED; delivery problems never fail issuance.
    """

    def __init__(
        self,
        directory: Optional[ApplicationDirectory] = None,
        audit: Optional[AuditLogger] = None,
    ):
        self.directory = directory
        self.audit = audit

    async def issue(self, config: SignatureConfig, now: Optional[int] = None) -> str:
        """Issue a token for config.

        Raises:
            InvalidParameter: On any invalid input.
            ApplicationError: If the directory does not know the application.
            NetworkError: If the directory cannot be reached.
        """
        try:
            identity, data = _prepare(config, now)
            if self.directory is not None:
                await self.directory.get_application_name(data.application_id)
        except CapfetchError as e:
            logger.warning(f"Token issuance for {config.application_id} refused: {e}")
            if isinstance(config.application_id, str) and config.application_id.strip():
                await self._emit(LogType.SESSION_TOKEN_FAILED, config.application_id)
            raise

        token = _sign(identity, data)
        logger.info(f"Issued capability token {data.signature_id} for {data.application_id}")

        await self._emit(
            LogType.SESSION_TOKEN_GENERATED,
            data.application_id,
            signature_id=data.signature_id,
        )
        return token

    async def _emit(
        self,
        log_type: LogType,
        application_id: str,
        signature_id: Optional[str] = None,
    ) -> None:
        if self.audit is None:
            return
        try:
            await self.audit.send(log_type, application_id, signature_id=signature_id)
        except Exception as e:
            logger.warning(f"Audit event {log_type.value} for {application_id} failed: {e}")
