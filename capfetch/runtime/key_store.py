"""Local key-value storage for signing keys.

Uses the OS keychain when a working keyring backend exists, otherwise
encrypted files in {CAPFETCH_HOME or ~}/.capfetch/keys/. Storage is
best-effort: a store never raises because its medium is unavailable, it
reports the failure through return values instead.
"""

import base64
import getpass
import hashlib
import logging
import os
import socket
import stat
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import keyring
from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from keyring.backends.fail import Keyring as FailKeyring

from capfetch.utils.paths import ensure_directory, get_capfetch_home

logger = logging.getLogger(__name__)


def _keyring_usable() -> bool:
    try:
        return not isinstance(keyring.get_keyring(), FailKeyring)
    except Exception:
        return False


KEYRING_AVAILABLE = _keyring_usable()


def _get_key_dir() -> Path:
    """Get key storage directory, owner-only permissions."""
    key_dir = ensure_directory(get_capfetch_home() / "keys")
    key_dir.chmod(stat.S_IRWXU)
    return key_dir


def _derive_key(salt: bytes) -> bytes:
    """Derive the file encryption key from machine-specific data.

    The seed (user and host name) is not secret. This keeps stored keys from
    being read casually off disk; it is not a substitute for the keychain.
    """
    try:
        user = getpass.getuser()
    except (OSError, KeyError):
        user = "unknown"
    seed = f"{user}@{socket.gethostname()}:capfetch-keys".encode()
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=100_000,
    )
    return base64.urlsafe_b64encode(kdf.derive(seed))


class KeyValueStore(ABC):
    """String values keyed by name, last writer wins."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Return the stored value or None."""

    @abstractmethod
    def set(self, name: str, value: str) -> bool:
        """Store value, returning whether it was persisted."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the value if present."""


class MemoryKeyStore(KeyValueStore):
    """Per-instance in-memory store. Nothing outlives the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)

    def set(self, name: str, value: str) -> bool:
        self._values[name] = value
        return True

    def delete(self, name: str) -> None:
        self._values.pop(name, None)


class KeyStore(KeyValueStore):
    """Persistent store using OS keychain or encrypted files."""

    def __init__(self, service_name: str = "capfetch", use_files: bool = True):
        """Initialize key store with service name.

        Args:
            service_name: Service name for keychain entries and file names.
            use_files: Allow the encrypted file fallback when the keychain
                is unavailable.
        """
        self.service_name = service_name
        self._use_keyring = KEYRING_AVAILABLE
        self._key_dir: Optional[Path] = None
        self._salt: Optional[bytes] = None

        if not self._use_keyring and use_files:
            try:
                self._key_dir = _get_key_dir()
                self._salt = self._get_or_create_salt(self._key_dir / ".salt")
            except OSError as e:
                logger.warning(f"Key file storage unavailable: {e}")
                self._key_dir = None
                self._salt = None

    @property
    def persistent(self) -> bool:
        """Whether any persistent medium is usable."""
        return self._use_keyring or self._key_dir is not None

    def _get_or_create_salt(self, salt_file: Path) -> bytes:
        if salt_file.exists():
            return salt_file.read_bytes()
        salt = os.urandom(16)
        salt_file.write_bytes(salt)
        salt_file.chmod(stat.S_IRUSR | stat.S_IWUSR)
        return salt

    def _entry_name(self, name: str) -> str:
        return f"{self.service_name}_{name}"

    def _get_key_path(self, name: str) -> Path:
        # Hash the name to keep identities out of file names
        name_hash = hashlib.sha256(self._entry_name(name).encode()).hexdigest()[:16]
        return self._key_dir / f"{name_hash}.key"

    def _fernet(self) -> Fernet:
        return Fernet(_derive_key(self._salt))

    def _write_file(self, name: str, value: str) -> bool:
        if not self._key_dir or not self._salt:
            return False
        try:
            path = self._get_key_path(name)
            path.write_bytes(self._fernet().encrypt(value.encode()))
            path.chmod(stat.S_IRUSR | stat.S_IWUSR)
            return True
        except OSError as e:
            logger.warning(f"Failed to write key file for {name}: {e}")
            return False

    def _read_file(self, name: str) -> Optional[str]:
        if not self._key_dir or not self._salt:
            return None
        path = self._get_key_path(name)
        try:
            if not path.exists():
                return None
            return self._fernet().decrypt(path.read_bytes()).decode()
        except (OSError, InvalidToken, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read key file for {name}: {e}")
            return None

    def _delete_file(self, name: str) -> None:
        if not self._key_dir:
            return
        try:
            path = self._get_key_path(name)
            if path.exists():
                path.unlink()
        except OSError as e:
            logger.warning(f"Failed to delete key file for {name}: {e}")

    def get(self, name: str) -> Optional[str]:
        if self._use_keyring:
            try:
                value = keyring.get_password(self.service_name, self._entry_name(name))
                if value:
                    return value
            except Exception as e:
                logger.debug(f"Keychain read failed for {name}: {e}")
        return self._read_file(name)

    def set(self, name: str, value: str) -> bool:
        if self._use_keyring:
            try:
                keyring.set_password(self.service_name, self._entry_name(name), value)
                return True
            except Exception as e:
                logger.debug(f"Keychain write failed for {name}: {e}")
        return self._write_file(name, value)

    def delete(self, name: str) -> None:
        if self._use_keyring:
            try:
                keyring.delete_password(self.service_name, self._entry_name(name))
            except Exception as e:
                logger.debug(f"Keychain delete failed for {name}: {e}")
        self._delete_file(name)
