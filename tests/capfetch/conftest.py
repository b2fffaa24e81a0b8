"""Shared fixtures for capfetch tests."""

import pytest

from capfetch.config import get_settings
from capfetch.primitives.signing import KeyIdentity

NOW = 1_700_000_000


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Keep local state and settings out of the real home directory."""
    monkeypatch.setenv("CAPFETCH_HOME", str(tmp_path))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def app_key():
    """A fresh application key pair."""
    return KeyIdentity.generate()


@pytest.fixture
def now():
    return NOW
