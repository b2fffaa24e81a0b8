"""Audit log delivery.

Audit events are best-effort: a failed lookup, an unreachable sink or a
rejected POST is logged locally and reported as False, never raised.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from capfetch.config import get_settings
from capfetch.primitives.errors import ApplicationError, NetworkError
from capfetch.runtime.applications import ApplicationDirectory

logger = logging.getLogger(__name__)

LOGS_PATH = "/api/business-logs/capfetch"


class LogType(Enum):
    """Audit event types."""

    SESSION_TOKEN_GENERATED = "SESSION_TOKEN_GENERATED"
    SESSION_TOKEN_FAILED = "SESSION_TOKEN_FAILED"
    VERIFICATION_STARTED = "VERIFICATION_STARTED"
    PROOF_GENERATED = "PROOF_GENERATED"
    ERROR = "ERROR"


class AuditLogger:
    """Posts audit events to the log sink."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        directory: Optional[ApplicationDirectory] = None,
        enabled: bool = True,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.logs_backend_url).rstrip("/")
        self.directory = directory
        self.enabled = enabled
        self.timeout = timeout if timeout is not None else settings.http_timeout

    def build_event(
        self,
        log_type: LogType,
        application_id: str,
        application_name: Optional[str] = None,
        session_id: Optional[str] = None,
        signature_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        event: Dict[str, Any] = {
            "logType": log_type.value,
            "date": datetime.now(timezone.utc).isoformat(),
            "applicationId": application_id,
            "applicationName": application_name,
        }
        if session_id:
            event["sessionId"] = session_id
        if signature_id:
            event["signatureId"] = signature_id
        return event

    async def send(
        self,
        log_type: LogType,
        application_id: str,
        session_id: Optional[str] = None,
        signature_id: Optional[str] = None,
    ) -> bool:
        """Deliver one audit event.

        Returns:
            True if the sink accepted the event, False otherwise.
        """
        if not self.enabled:
            return False

        application_name = None
        if self.directory is not None:
            try:
                application_name = await self.directory.get_application_name(application_id)
            except (ApplicationError, NetworkError) as e:
                logger.warning(f"Audit event {log_type.value} not sent: {e}")
                return False

        event = self.build_event(
            log_type,
            application_id,
            application_name=application_name,
            session_id=session_id,
            signature_id=signature_id,
        )
        url = f"{self.base_url}{LOGS_PATH}"
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=event, timeout=self.timeout)
        except httpx.HTTPError as e:
            logger.warning(f"Failed to send audit event {log_type.value}: {e}")
            return False

        if not response.is_success:
            logger.error(f"Failed to send audit event {log_type.value}: HTTP {response.status_code}")
            return False
        return True
