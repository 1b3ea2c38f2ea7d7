"""Shared utilities for the anime catalog service."""

from .config import Settings, get_settings
from .exceptions import (
    CatalogServiceError,
    CatalogStoreError,
    ConfigurationError,
    InvalidTokenError,
    MalformedReferenceError,
    NotFoundError,
    RetryableError,
    ValidationError,
)
from .models import (
    Anime,
    AnimeMetadata,
    AnimeSummary,
    Episode,
    EpisodeReference,
    IngestionReport,
    IssuedStreamToken,
    PublicEpisode,
    PublicSeason,
    ResolvedEpisode,
    Season,
    StreamTokenClaims,
    StreamTokenConfig,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "CatalogServiceError",
    "CatalogStoreError",
    "ConfigurationError",
    "InvalidTokenError",
    "MalformedReferenceError",
    "NotFoundError",
    "RetryableError",
    "ValidationError",
    # Models
    "Anime",
    "AnimeMetadata",
    "AnimeSummary",
    "Episode",
    "EpisodeReference",
    "IngestionReport",
    "IssuedStreamToken",
    "PublicEpisode",
    "PublicSeason",
    "ResolvedEpisode",
    "Season",
    "StreamTokenClaims",
    "StreamTokenConfig",
]
