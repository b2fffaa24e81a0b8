"""AuthorizedClient: scoped, proof-backed fetches.

Each fetch is checked against the token allow-list (token mode), signed by
the mode's owner key and handed to the proof generator, with a fixed-count,
fixed-delay retry loop around the generator call.
"""

import asyncio
import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional

from capfetch.config import get_settings
from capfetch.client.auth import AuthMode, SecretAuth, TokenAuth
from capfetch.client.options import (
    assert_valid_options,
    assert_valid_secret_options,
    validate_url,
)
from capfetch.client.proofs import (
    Proof,
    ProofGenerator,
    build_claim_request,
    raise_for_claim_error,
    transform_proof,
)
from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.url_patterns import is_url_allowed
from capfetch.runtime.audit import AuditLogger, LogType
from capfetch.runtime.ephemeral_keys import EphemeralKeyManager
from capfetch.utils.logger import set_client_logging

logger = logging.getLogger(__name__)


class AuthorizedClient:
    """Client for one application, in secret or token mode."""

    def __init__(
        self,
        application_id: str,
        auth: AuthMode,
        generator: ProofGenerator,
        audit: Optional[AuditLogger] = None,
        logs: Optional[bool] = None,
        attestor_url: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize the client.

        Args:
            application_id: Application the client acts for.
            auth: SecretAuth or TokenAuth.
            generator: Proof collaborator.
            audit: Optional audit logger for session events.
            logs: True enables INFO logging, False silences capfetch
                loggers, None leaves logging configuration alone.
            attestor_url: Proof endpoint (default from settings).
            clock: Returns the current Unix time (default time.time).

        Raises:
            InvalidParameter: If application_id is empty or a token was
                issued for another application.
        """
        if not isinstance(application_id, str) or not application_id.strip():
            raise InvalidParameter("applicationId must be a non-empty string", field="applicationId")
        if not isinstance(auth, (SecretAuth, TokenAuth)):
            raise InvalidParameter("auth must be SecretAuth or TokenAuth", field="auth")
        if isinstance(auth, TokenAuth):
            token_app = auth.signature_data.application_id
            if token_app.lower() != application_id.lower():
                raise InvalidParameter(
                    f"Signature applicationId ({token_app}) does not match "
                    f"expected ({application_id})",
                    field="applicationId",
                )

        if logs is not None:
            set_client_logging(logs)

        self.application_id = application_id
        self.auth = auth
        self.generator = generator
        self.audit = audit
        self.attestor_url = attestor_url or get_settings().attestor_url
        self.clock = clock or time.time
        self.session_id = str(uuid.uuid4())

        logger.info(
            f"Initializing client with applicationId: {self.application_id} "
            f"and sessionId: {self.session_id} ({self.mode} mode)"
        )

    @classmethod
    def with_secret(
        cls,
        application_id: str,
        application_secret: str,
        generator: ProofGenerator,
        **kwargs: Any,
    ) -> "AuthorizedClient":
        """Backend mode: the application secret owns every request."""
        return cls(application_id, SecretAuth.create(application_id, application_secret), generator, **kwargs)

    @classmethod
    def with_token(
        cls,
        application_id: str,
        token: str,
        generator: ProofGenerator,
        key_manager: Optional[EphemeralKeyManager] = None,
        now: Optional[int] = None,
        **kwargs: Any,
    ) -> "AuthorizedClient":
        """Token mode: requests are scoped by token and owned by the ephemeral key."""
        auth = TokenAuth.create(application_id, token, key_manager=key_manager, now=now)
        return cls(application_id, auth, generator, **kwargs)

    @property
    def mode(self) -> str:
        return "token" if isinstance(self.auth, TokenAuth) else "secret"

    def check_url(self, url: str) -> None:
        """Enforce token expiry and the allow-list. Secret mode allows every URL.

        Raises:
            InvalidParameter: If the token has expired since construction, or
                naming the URL and the allow-list.
        """
        if not isinstance(self.auth, TokenAuth):
            return
        if self.auth.signature_data.expires_at <= self.clock():
            raise InvalidParameter("Signature has expired", field="expiresAt")
        allowed = self.auth.allowed_urls
        if not is_url_allowed(url, allowed):
            raise InvalidParameter(
                f"URL {url} is not allowed by the signature. "
                f"Allowed URLs: {', '.join(allowed)}",
                field="url",
            )

    async def _audit(self, log_type: LogType) -> None:
        if self.audit is None:
            return
        try:
            await self.audit.send(log_type, self.application_id, session_id=self.session_id)
        except Exception as e:
            logger.warning(f"Audit event {log_type.value} failed: {e}")

    async def fetch(
        self,
        url: str,
        options: Optional[Dict[str, Any]] = None,
        secret_options: Optional[Dict[str, Any]] = None,
        retries: int = 1,
        retry_interval: float = 1.0,
    ) -> Proof:
        """Fetch url through the proof generator.

        Args:
            url: Target URL.
            options: Public request options (method, body, headers, ...).
            secret_options: Redacted request parts and response matching.
            retries: Total attempts at the generator call.
            retry_interval: Seconds to wait between attempts.

        Returns:
            Normalized Proof.

        Raises:
            InvalidParameter: Bad URL, bad options, or URL outside the token scope.
            ProtocolFailure: The generator reported an error on the last attempt.
        """
        validate_url(url, "fetch")
        if options is not None:
            assert_valid_options(options)
        if secret_options is not None:
            assert_valid_secret_options(secret_options)
        self.check_url(url)

        await self._audit(LogType.VERIFICATION_STARTED)

        request = build_claim_request(
            url,
            options,
            secret_options,
            owner_private_key=self.auth.owner_private_key,
            attestor_url=self.attestor_url,
        )

        max_attempts = max(1, retries)
        for attempt in range(1, max_attempts + 1):
            try:
                response = await self.generator.create_claim(request)
                raise_for_claim_error(response)
                proof = transform_proof(response, self.attestor_url)
            except Exception as e:
                if attempt >= max_attempts:
                    await self._audit(LogType.ERROR)
                    logger.error(f"Fetch of {url} failed after {attempt} attempt(s): {e}")
                    raise
                logger.warning(f"Attempt {attempt}/{max_attempts} for {url} failed: {e}")
                await asyncio.sleep(retry_interval)
                continue

            await self._audit(LogType.PROOF_GENERATED)
            return proof
