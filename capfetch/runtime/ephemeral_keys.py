"""Ephemeral signing keys for capability token holders.

A token holder never sees the application secret. Instead it signs proof
requests with a locally generated key, one per application, reused across
process lifetimes whenever the store can persist it.
"""

import logging
from typing import Optional

from capfetch.config import get_settings
from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.signing import KeyIdentity, parse_private_key
from capfetch.runtime.key_store import KeyStore, KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "ephemeral_key"


class EphemeralKeyManager:
    """Obtain or create the local signing key for an application."""

    def __init__(self, store: Optional[KeyValueStore] = None):
        self.store = store if store is not None else KeyStore(get_settings().key_store_service)

    def _entry(self, application_id: str) -> str:
        return f"{KEY_PREFIX}:{application_id.lower()}"

    def get_or_create_key(self, application_id: str) -> str:
        """Return the private key (hex) for application_id.

        A stored value that does not parse as a private key is removed and
        replaced. If the new key cannot be persisted it is still returned and
        lives for this process only.

        Raises:
            InvalidParameter: If application_id is empty.
        """
        if not isinstance(application_id, str) or not application_id.strip():
            raise InvalidParameter("applicationId must be a non-empty string", field="applicationId")

        entry = self._entry(application_id)
        stored = self.store.get(entry)
        if stored is not None:
            identity = parse_private_key(stored)
            if identity is not None:
                return identity.private_key
            logger.warning(f"Discarding unparseable ephemeral key for {application_id}")
            self.store.delete(entry)

        identity = KeyIdentity.generate()
        if not self.store.set(entry, identity.private_key):
            logger.info(
                f"Ephemeral key for {application_id} not persisted; "
                "it is valid for this process only"
            )
        else:
            logger.info(f"Created ephemeral key {identity.identity} for {application_id}")
        return identity.private_key

    def get_identity(self, application_id: str) -> str:
        """Public identity of the ephemeral key for application_id."""
        return KeyIdentity.from_private_key(self.get_or_create_key(application_id)).identity
