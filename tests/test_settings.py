"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from fetscr.config import AppSettings, get_settings


class TestAppSettings:
    def test_defaults(self):
        settings = AppSettings(_env_file=None)

        assert settings.app_name == "Fetscr"
        assert settings.transport == "streamable-http"
        assert settings.google.base_url == "https://www.googleapis.com/customsearch/v1"
        assert settings.google.max_start_index == 100
        assert settings.pagination.page_size == 10
        assert settings.pagination.simple_max_pages == 10
        assert settings.pagination.keyword_max_pages == 5
        assert settings.database.url == "sqlite+aiosqlite:///fetscr.db"
        assert settings.quota.strict_reservation is False

    def test_nested_environment_variables(self, mock_env, monkeypatch):
        monkeypatch.setenv("PAGINATION__KEYWORD_MAX_PAGES", "3")
        monkeypatch.setenv("QUOTA__STRICT_RESERVATION", "true")
        monkeypatch.setenv("DATABASE__URL", "sqlite+aiosqlite:///:memory:")

        settings = AppSettings(_env_file=None)

        assert settings.google.api_key.get_secret_value() == "test_google_key"
        assert settings.google.search_engine_id == "test_cx"
        assert settings.pagination.keyword_max_pages == 3
        assert settings.quota.strict_reservation is True
        assert settings.database.url == "sqlite+aiosqlite:///:memory:"
        assert settings.log_level == "DEBUG"

    def test_api_key_is_not_echoed(self, mock_env):
        settings = AppSettings(_env_file=None)

        assert "test_google_key" not in repr(settings)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("transport", "carrier-pigeon"),
            ("log_level", "LOUD"),
            ("environment", "moon"),
            ("port", 70000),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            AppSettings(_env_file=None, **{field: value})

    def test_normalizes_case(self):
        settings = AppSettings(_env_file=None, transport="STDIO", log_level="debug")

        assert settings.transport == "stdio"
        assert settings.log_level == "DEBUG"

    def test_get_settings_is_cached(self, mock_env):
        assert get_settings() is get_settings()
