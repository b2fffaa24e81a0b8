"""capfetch runtime: key storage and backend services."""

from capfetch.runtime.applications import ApplicationDirectory
from capfetch.runtime.audit import AuditLogger, LogType
from capfetch.runtime.ephemeral_keys import EphemeralKeyManager
from capfetch.runtime.key_store import KeyStore, KeyValueStore, MemoryKeyStore

__all__ = [
    "KeyValueStore",
    "KeyStore",
    "MemoryKeyStore",
    "EphemeralKeyManager",
    "ApplicationDirectory",
    "AuditLogger",
    "LogType",
]
