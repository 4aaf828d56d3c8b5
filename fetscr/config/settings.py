"""Application settings with Pydantic v2 patterns."""

from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSearchSettings(BaseModel):
    """Google Custom Search upstream settings."""

    api_key: SecretStr = Field(
        default=SecretStr(""), description="Google Custom Search API key"
    )
    search_engine_id: str = Field(
        default="", description="Programmable search engine id (cx)"
    )
    base_url: str = Field(
        default="https://www.googleapis.com/customsearch/v1",
        description="Custom Search JSON API endpoint",
    )
    timeout: float = Field(default=10.0, gt=0, description="Request timeout in seconds")
    max_start_index: int = Field(
        default=100, ge=1, description="Highest offset the upstream paginates to"
    )


class PaginationSettings(BaseModel):
    """Pagination ceilings for simple and keyword searches."""

    page_size: int = Field(default=10, ge=1, description="Items per upstream page")
    simple_max_pages: int = Field(
        default=10, ge=1, description="Page ceiling for a simple search"
    )
    keyword_max_pages: int = Field(
        default=5, ge=1, description="Page ceiling per keyword in keyword mode"
    )
    max_concurrent_keywords: int = Field(
        default=4, ge=1, description="Keywords paginated concurrently"
    )


class RetryConfig(BaseModel):
    """Retry configuration settings."""

    max_retries: int = Field(default=2, ge=0, description="Maximum retry attempts")
    base_delay: float = Field(
        default=0.5, gt=0, description="Base delay between retries"
    )
    max_delay: float = Field(
        default=10.0, gt=0, description="Maximum delay between retries"
    )
    exponential_base: float = Field(
        default=2.0, gt=1, description="Exponential backoff base"
    )
    jitter: bool = Field(default=True, description="Add randomization to retry delays")


class DatabaseSettings(BaseModel):
    """Account store settings."""

    url: str = Field(
        default="sqlite+aiosqlite:///fetscr.db",
        description="SQLAlchemy async database URL",
    )
    echo: bool = Field(default=False, description="Log emitted SQL")


class QuotaSettings(BaseModel):
    """Quota enforcement settings."""

    strict_reservation: bool = Field(
        default=False,
        description="Reserve a query slot with one conditional increment at admission",
    )


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
        validate_default=True,
    )

    app_name: str = Field(default="Fetscr", description="Application name")
    environment: str = Field(default="development", description="Runtime environment")

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")
    transport: str = Field(default="streamable-http", description="Transport mode")

    google: GoogleSearchSettings = Field(
        default_factory=GoogleSearchSettings, description="Upstream search"
    )
    pagination: PaginationSettings = Field(
        default_factory=PaginationSettings, description="Pagination settings"
    )
    retry: RetryConfig = Field(
        default_factory=RetryConfig, description="Retry settings"
    )
    database: DatabaseSettings = Field(
        default_factory=DatabaseSettings, description="Database settings"
    )
    quota: QuotaSettings = Field(
        default_factory=QuotaSettings, description="Quota settings"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"development", "staging", "production", "test"}
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, v: str) -> str:
        """Validate transport value."""
        valid_transports = {"streamable-http", "sse", "stdio"}
        if v.lower() not in valid_transports:
            raise ValueError(
                f"Invalid transport: {v}. Must be one of {valid_transports}"
            )
        return v.lower()


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Get cached application settings."""
    return AppSettings()
