# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the academic
service. Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from academic_service.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration for the academic store.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "academic"
    password: SecretStr = SecretStr("academic_password")
    host: str = "academic-db"
    port: int = 5432
    database: str = "academic"
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for invitation codes.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "academic-redis"
    port: int = 6379
    password: SecretStr = SecretStr("academic_redis_password")
    database: int = 0
    max_connections: int = 50

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class AccessControlSettings(BaseSettings):
    """Access-control (relationship graph) service configuration.

    Attributes:
        url: Base URL of the access-control service.
        timeout: Transport timeout in seconds.
        publish_attempts: Attempts made to publish the policy table at boot.
        publish_backoff_seconds: Fixed delay between publication attempts.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_CONTROL_",
        extra="ignore",
    )

    url: str = "http://access-control-service:3000/api/v1"
    timeout: float = 10.0
    publish_attempts: int = Field(default=5, ge=1)
    publish_backoff_seconds: float = Field(default=5.0, ge=0)


class AccessPointSettings(BaseSettings):
    """Access point (API gateway) registration configuration.

    Attributes:
        url: Base URL of the access point.
        registry_key: Key sent as x-app-registry-key on registration.
        origin: Public origin of this service, announced to the gateway.
        enabled: Whether to register with the access point at boot.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_POINT_",
        extra="ignore",
    )

    url: str = "http://access-point:3000"
    registry_key: SecretStr = SecretStr("change-this-registry-key")
    origin: str = "http://academic-service:34000"
    enabled: bool = False


class InvitationSettings(BaseSettings):
    """Invitation code and invitation mail configuration.

    Attributes:
        code_length: Number of characters in a generated code.
        max_code_generation_attempts: Collision probes before giving up.
        default_code_expire_minutes: Code lifetime when none is requested.
        default_mail_expire_minutes: Mail invitation lifetime (7 days).
        client_url: Frontend URL used to build invitation links.
    """

    model_config = SettingsConfigDict(
        env_prefix="INVITATION_",
        extra="ignore",
    )

    code_length: int = Field(default=6, ge=4)
    max_code_generation_attempts: int = Field(default=10, ge=1)
    default_code_expire_minutes: int = Field(default=60, ge=1)
    default_mail_expire_minutes: int = Field(default=10080, ge=1)
    client_url: str = "http://localhost:5173"


class CommunicationSettings(BaseSettings):
    """Communication (mail delivery) service configuration.

    Attributes:
        url: Base URL of the communication service.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMMUNICATION_",
        extra="ignore",
    )

    url: str = "http://communication-service:3000/api/v1"
    timeout: float = 10.0


class ImageHostSettings(BaseSettings):
    """Image hosting configuration for avatars.

    Attributes:
        api_url: Upload endpoint of the image host.
        api_key: API key for the image host.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="IMGBB_",
        extra="ignore",
    )

    api_url: str = "https://api.imgbb.com/1/upload"
    api_key: SecretStr = SecretStr("")
    timeout: float = 30.0


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
    port: int = 34000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all subsettings and provides environment-level configuration.
    Each subsetting loads from its own environment variable prefix.

    Attributes:
        environment: Deployment environment.
        debug: Enable debug mode.
        log_level: Logging level.
        app_name: Name announced to the access point and in logs.
        base_path: Path prefix of the versioned API.
        db: Database settings.
        redis: Redis settings.
        access_control: Access-control service settings.
        access_point: Access point registration settings.
        invitation: Invitation code and mail settings.
        communication: Communication service settings.
        image_host: Image host settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"
    app_name: str = "academic-service"
    base_path: str = "/api/v1"

    # Subsettings - loaded with their own env prefixes
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    access_control: AccessControlSettings = Field(default_factory=AccessControlSettings)
    access_point: AccessPointSettings = Field(default_factory=AccessPointSettings)
    invitation: InvitationSettings = Field(default_factory=InvitationSettings)
    communication: CommunicationSettings = Field(default_factory=CommunicationSettings)
    image_host: ImageHostSettings = Field(default_factory=ImageHostSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production" and self.access_point.enabled:
            default_key = "change-this-registry-key"
            if self.access_point.registry_key.get_secret_value() == default_key:
                raise ValueError(
                    "Access point registry key must be changed from default in production. "
                    "Set ACCESS_POINT_REGISTRY_KEY environment variable."
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

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
