"""Mixin for adding retry functionality to providers."""

from ..config import get_settings
from ..utils.retry import RetryConfig, with_exponential_backoff


class RetryMixin:
    """Mixin to add retry functionality to providers."""

    retry_config: RetryConfig | None = None

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration, falling back to the ``retry`` settings."""
        if self.retry_config is not None:
            return self.retry_config
        return RetryConfig.from_settings(get_settings().retry)

    def with_retry(self, func):
        """Wrap an async callable with exponential backoff retry."""
        return with_exponential_backoff(config=self.get_retry_config())(func)
