"""Tests for the ephemeral key manager."""

from unittest.mock import patch

import pytest

from capfetch.primitives.errors import InvalidParameter
from capfetch.primitives.signing import KeyIdentity
from capfetch.runtime.ephemeral_keys import EphemeralKeyManager
from capfetch.runtime.key_store import KeyStore, MemoryKeyStore


class NonPersistingStore(MemoryKeyStore):
    """A store whose writes never stick."""

    def set(self, name, value):
        return False


class TestGetOrCreateKey:
    """Test key retrieval and creation."""

    def test_idempotent(self):
        """Sequential calls return the identical key."""
        manager = EphemeralKeyManager(MemoryKeyStore())
        assert manager.get_or_create_key("app-1") == manager.get_or_create_key("app-1")

    def test_valid_private_key(self):
        """The returned key loads as a private key."""
        key = EphemeralKeyManager(MemoryKeyStore()).get_or_create_key("app-1")
        assert KeyIdentity.from_private_key(key).private_key == key

    def test_per_application(self):
        """Each application gets its own key."""
        manager = EphemeralKeyManager(MemoryKeyStore())
        assert manager.get_or_create_key("app-1") != manager.get_or_create_key("app-2")

    def test_application_id_case_insensitive(self):
        """Application ids differing in case share a key."""
        manager = EphemeralKeyManager(MemoryKeyStore())
        assert manager.get_or_create_key("0xABC") == manager.get_or_create_key("0xabc")

    def test_stored_under_namespaced_entry(self):
        """Keys are stored per application under the ephemeral key prefix."""
        store = MemoryKeyStore()
        key = EphemeralKeyManager(store).get_or_create_key("App-1")
        assert store.get("ephemeral_key:app-1") == key

    def test_existing_key_reused(self):
        """A key already in the store is returned as is."""
        existing = KeyIdentity.generate().private_key
        store = MemoryKeyStore({"ephemeral_key:app-1": existing})
        assert EphemeralKeyManager(store).get_or_create_key("app-1") == existing

    def test_stale_entry_replaced(self):
        """An unparseable stored value is replaced with a fresh key."""
        store = MemoryKeyStore({"ephemeral_key:app-1": "garbage"})
        key = EphemeralKeyManager(store).get_or_create_key("app-1")
        assert key != "garbage"
        assert store.get("ephemeral_key:app-1") == key

    def test_not_persisted_still_returned(self):
        """A key that cannot be stored is still usable for the process."""
        manager = EphemeralKeyManager(NonPersistingStore())
        key = manager.get_or_create_key("app-1")
        assert KeyIdentity.from_private_key(key)

    @pytest.mark.parametrize("application_id", ["", "   ", None])
    def test_empty_application_id(self, application_id):
        """An application id is required."""
        with pytest.raises(InvalidParameter):
            EphemeralKeyManager(MemoryKeyStore()).get_or_create_key(application_id)

    def test_get_identity(self):
        """get_identity derives from the stored key."""
        manager = EphemeralKeyManager(MemoryKeyStore())
        key = manager.get_or_create_key("app-1")
        assert manager.get_identity("app-1") == KeyIdentity.from_private_key(key).identity


class TestDefaultStore:
    """Test the default persistent store."""

    def test_uses_configured_service(self, monkeypatch):
        """The default store uses the configured keychain service."""
        monkeypatch.setenv("CAPFETCH_KEY_STORE_SERVICE", "custom")
        with patch("capfetch.runtime.key_store.KEYRING_AVAILABLE", False):
            manager = EphemeralKeyManager()
        assert isinstance(manager.store, KeyStore)
        assert manager.store.service_name == "custom"

    def test_persists_across_managers(self):
        """Keys survive across manager instances through the file store."""
        with patch("capfetch.runtime.key_store.KEYRING_AVAILABLE", False):
            first = EphemeralKeyManager().get_or_create_key("app-1")
            second = EphemeralKeyManager().get_or_create_key("app-1")
        assert first == second
