"""Configuration management module."""

from .settings import (
    AppSettings,
    DatabaseSettings,
    GoogleSearchSettings,
    PaginationSettings,
    QuotaSettings,
    RetryConfig,
    get_settings,
)

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "GoogleSearchSettings",
    "PaginationSettings",
    "QuotaSettings",
    "RetryConfig",
    "get_settings",
]
