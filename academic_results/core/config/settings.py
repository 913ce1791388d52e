# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

Settings are loaded from environment variables with sensible defaults.
The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from academic_results.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.grading.scale)
    'five_point'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from academic_results.domains.results.grading import build_scale


class DatabaseSettings(BaseSettings):
    """Results database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        create_tables: Create missing tables at startup (development only).
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "results"
    password: SecretStr = SecretStr("results_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "academic_results"
    pool_size: int = 10
    max_overflow: int = 20
    create_tables: bool = False

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class GradingSettings(BaseSettings):
    """Institutional grading scale.

    The scale is read once per process; grades are never re-derived from a
    different table mid-flight.

    Attributes:
        scale: Built-in scale name.
        bands: Optional custom breakpoints as [[min_score, letter], ...],
            highest first. Overrides the built-in bands when set.
        points: Optional custom letter to grade-point map. Required when
            bands are set.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRADING_",
        extra="ignore",
    )

    scale: Literal["five_point", "four_point"] = "five_point"
    bands: list[tuple[float, str]] | None = None
    points: dict[str, float] | None = None

    @model_validator(mode="after")
    def validate_custom_table(self) -> Self:
        """Custom bands and points must be supplied together and form a valid scale."""
        if (self.bands is None) != (self.points is None):
            raise ValueError("GRADING_BANDS and GRADING_POINTS must be set together")
        build_scale(self.scale, bands=self.bands, points=self.points)
        return self


class NotificationSettings(BaseSettings):
    """Result notification configuration.

    Attributes:
        enabled: Whether publication sends in-app notifications.
        timeout_seconds: Upper bound for a notification dispatch.
        title: Notification title for published results.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        extra="ignore",
    )

    enabled: bool = True
    timeout_seconds: float = 5.0
    title: str = "Results Published"


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        enabled: Whether rate limiting is applied.
        requests_per_minute: Default limit per client.
        bulk_per_minute: Limit for bulk import and publication.
        storage_uri: slowapi storage backend.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    enabled: bool = True
    requests_per_minute: int = 120
    bulk_per_minute: int = 10
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        grading: Grading scale settings.
        notifications: Notification settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    grading: GradingSettings = Field(default_factory=GradingSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with development shortcuts.
        """
        if self.environment == "production":
            if self.database.create_tables:
                raise ValueError(
                    "DB_CREATE_TABLES must be disabled in production. "
                    "Apply the Alembic migrations instead."
                )
            if self.database.password.get_secret_value() == "results_password":
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
