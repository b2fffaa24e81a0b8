"""Application registration lookup.

Resolves an application id to its registered name. A 404 means the
application is not registered; transport failures are reported separately
so callers can tell an unknown application from an unreachable registry.
"""

import logging
from typing import Dict, Optional
from urllib.parse import quote

import httpx

from capfetch.config import get_settings
from capfetch.primitives.errors import ApplicationError, NetworkError

logger = logging.getLogger(__name__)


class ApplicationDirectory:
    """Registry client with an injectable, TTL-free name cache."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        cache: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.app_backend_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout
        self._cache = cache if cache is not None else {}

    def _application_url(self, application_id: str) -> str:
        return f"{self.base_url}/api/applications/{quote(application_id, safe='')}"

    async def get_application_name(self, application_id: str) -> str:
        """Look up the registered name of application_id.

        Raises:
            ApplicationError: If the application is not registered or the
                registry answer is unusable.
            NetworkError: If the registry cannot be reached.
        """
        cached = self._cache.get(application_id)
        if cached:
            return cached

        url = self._application_url(application_id)
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(url, timeout=self.timeout)
        except httpx.HTTPError as e:
            raise NetworkError(f"Application lookup failed: {e}", url=url, cause=e)

        if response.status_code == 404:
            raise ApplicationError("Application not found", application_id=application_id)
        if response.status_code != 200:
            raise ApplicationError(
                f"Failed to fetch application: HTTP {response.status_code}",
                application_id=application_id,
            )

        try:
            name = response.json()["application"]["applicationName"]
        except (ValueError, KeyError, TypeError):
            raise ApplicationError(
                "Failed to fetch application: malformed registry response",
                application_id=application_id,
            )
        if not isinstance(name, str) or not name:
            raise ApplicationError(
                "Failed to fetch application: missing application name",
                application_id=application_id,
            )

        self._cache[application_id] = name
        logger.debug(f"Resolved application {application_id} -> {name}")
        return name
