"""Test configuration for Fetscr."""

import pytest

from fetscr.config import AppSettings, get_settings
from fetscr.storage.memory import InMemoryAccountStore
from fetscr.utils.metrics import FetchMetrics

from .fakes import ScriptedFetcher


@pytest.fixture
def mock_env(monkeypatch):
    """Mock environment variables for testing."""
    monkeypatch.setenv("GOOGLE__API_KEY", "test_google_key")
    monkeypatch.setenv("GOOGLE__SEARCH_ENGINE_ID", "test_cx")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("ENVIRONMENT", "test")

    # Clear lru_cache to ensure it picks up the new env vars
    get_settings.cache_clear()

    yield

    # Clean up
    get_settings.cache_clear()


@pytest.fixture
def settings():
    """Settings independent of the process environment and any .env file."""
    return AppSettings(
        _env_file=None,
        environment="test",
        google={"api_key": "test_google_key", "search_engine_id": "test_cx"},
        retry={"max_retries": 0, "jitter": False},
        database={"url": "sqlite+aiosqlite:///:memory:"},
    )


@pytest.fixture
def fetcher():
    return ScriptedFetcher()


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def metrics():
    return FetchMetrics()
