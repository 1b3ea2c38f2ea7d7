"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
Environment variables are validated at startup to fail fast on misconfigurations.
The stream token secret is deliberately not validated here so that Lambdas which
never sign tokens (catalog ingestion) can start without it; the token service
rejects a missing or weak secret when it is used.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import StreamTokenConfig


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are cached to avoid repeated parsing.

    Example:
        >>> settings = get_settings()
        >>> print(settings.catalog_table)
        'anime-catalog'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_REGION",
        description="AWS region for all services",
    )

    # Catalog storage
    catalog_table: str = Field(
        default="anime-catalog",
        alias="CATALOG_TABLE",
        description="DynamoDB table holding catalog records keyed by id",
    )
    catalog_bucket: str = Field(
        default="",
        alias="CATALOG_BUCKET",
        description="S3 bucket receiving catalog text files",
    )

    # Stream tokens
    stream_token_secret: str = Field(
        default="",
        alias="STREAM_TOKEN_SECRET",
        description="HMAC-SHA256 secret for signing stream tokens",
    )
    stream_token_ttl_seconds: int = Field(
        default=300,
        ge=1,
        le=86400,
        alias="STREAM_TOKEN_TTL_SECONDS",
        description="Lifetime of a stream token in seconds",
    )

    # HTTP API
    frontend_url: str = Field(
        default="http://localhost:3000",
        alias="FRONTEND_URL",
        description="Origin allowed by CORS",
    )

    # Metadata enrichment
    enable_metadata_enrichment: bool = Field(
        default=False,
        alias="ENABLE_METADATA_ENRICHMENT",
        description="Look up third-party metadata during ingestion",
    )
    metadata_api_url: str = Field(
        default="https://api.jikan.moe/v4",
        alias="METADATA_API_URL",
        description="Base URL of the metadata search API",
    )
    metadata_request_interval_seconds: float = Field(
        default=1.5,
        ge=0.0,
        le=60.0,
        alias="METADATA_REQUEST_INTERVAL_SECONDS",
        description="Minimum delay between metadata API calls",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("metadata_api_url", "frontend_url", mode="before")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Ensure URLs use an HTTP scheme."""
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def stream_token_config(self) -> StreamTokenConfig:
        """Build the explicit token configuration for StreamTokenService."""
        return StreamTokenConfig(
            secret=self.stream_token_secret,
            ttl_seconds=self.stream_token_ttl_seconds,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.

    Returns:
        Validated Settings instance

    Raises:
        pydantic.ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()
