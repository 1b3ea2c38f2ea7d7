"""Pydantic models for data validation and serialization.

This module defines the core data structures used throughout the service:
- Catalog records (anime, season, episode) as stored in the catalog table
- Public listing views that never carry the playable video URL
- Episode references, stream token configuration and claims
- Ingestion reports

All models use Pydantic v2. External JSON uses camelCase keys
(``seasonNumber``, ``videoUrl``); models accept either form on input.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CatalogModel(BaseModel):
    """Base for catalog models exchanged as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def _ensure_strictly_ascending(numbers: list[int], label: str) -> None:
    """Raise ValueError unless numbers are unique and ascending."""
    for previous, current in zip(numbers, numbers[1:]):
        if current <= previous:
            raise ValueError(
                f"{label} numbers must be unique and ascending, got {previous} then {current}"
            )


class Episode(CatalogModel):
    """A single playable episode.

    ``video_url`` is the real playable URL. It is only ever surfaced through
    the token-gated stream endpoint.
    """

    episode_number: Annotated[int, Field(ge=1)] = Field(
        description="Episode number within the season (1-based)",
    )
    name: str = Field(
        min_length=1,
        description="Display label (e.g., 'Episodio 3')",
    )
    video_url: str = Field(
        min_length=1,
        description="Opaque playable URL, never part of public listings",
    )
    file_name: str = Field(
        min_length=1,
        description="Synthesized file name (e.g., '1x03.mp4')",
    )


class Season(CatalogModel):
    """A season and its episodes, ordered by episode number."""

    season_number: Annotated[int, Field(ge=1)] = Field(
        description="Season number (1-based)",
    )
    episodes: list[Episode] = Field(
        default_factory=list,
        description="Episodes in ascending episode_number order",
    )

    @model_validator(mode="after")
    def validate_episode_order(self) -> "Season":
        """Ensure episode numbers are unique and ascending."""
        _ensure_strictly_ascending([e.episode_number for e in self.episodes], "Episode")
        return self

    def find_episode(self, episode_number: int) -> Episode | None:
        """Return the episode with the given number, if present."""
        return next((e for e in self.episodes if e.episode_number == episode_number), None)


class AnimeMetadata(CatalogModel):
    """Third-party metadata attached to a catalog record during ingestion."""

    mal_id: int | None = Field(default=None, description="MyAnimeList identifier")
    image: str | None = Field(default=None, description="Large cover image URL")
    thumbnail: str | None = Field(default=None, description="Small cover image URL")
    synopsis: str | None = Field(default=None, description="Plot synopsis")
    genres: list[str] = Field(default_factory=list, description="Genre names")
    status: str | None = Field(default=None, description="Airing status label")
    episode_count: int | None = Field(default=None, ge=0, description="Announced episode count")
    score: float | None = Field(default=None, ge=0, description="Community score")
    rating: str | None = Field(default=None, description="Audience rating label")


class Anime(AnimeMetadata):
    """A catalog record: one title with its seasons.

    Records are rebuilt by a full parse and upserted by ``id``; they are never
    patched piecemeal.
    """

    id: str = Field(
        min_length=1,
        pattern=r"^[a-z0-9-]+$",
        description="URL-safe slug derived from the name (e.g., 'one-piece')",
    )
    name: str = Field(
        min_length=1,
        description="Display name as written in the catalog text",
    )
    year: Annotated[int, Field(ge=0, le=9999)] = Field(
        description="Release year",
    )
    day: str | None = Field(
        default=None,
        description="Weekly release day, only for airing titles",
    )
    is_airing: bool = Field(
        default=False,
        description="Whether the title is currently airing",
    )
    seasons: list[Season] = Field(
        default_factory=list,
        description="Seasons in ascending season_number order",
    )

    @model_validator(mode="after")
    def validate_season_order(self) -> "Anime":
        """Ensure season numbers are unique and ascending."""
        _ensure_strictly_ascending([s.season_number for s in self.seasons], "Season")
        return self

    @property
    def total_episodes(self) -> int:
        """Count episodes across all seasons."""
        return sum(len(s.episodes) for s in self.seasons)

    def find_season(self, season_number: int) -> Season | None:
        """Return the season with the given number, if present."""
        return next((s for s in self.seasons if s.season_number == season_number), None)

    def with_metadata(self, metadata: AnimeMetadata) -> "Anime":
        """Return a copy carrying the given metadata."""
        return self.model_copy(update=dict(metadata))


class PublicEpisode(CatalogModel):
    """Episode as shown in public listings (no video URL)."""

    episode_number: int
    name: str
    file_name: str


class PublicSeason(CatalogModel):
    """Season as shown in public listings."""

    season_number: int
    episodes: list[PublicEpisode] = Field(default_factory=list)


class AnimeSummary(AnimeMetadata):
    """Public listing entry for one title."""

    id: str
    name: str
    year: int
    day: str | None = None
    is_airing: bool
    total_seasons: int
    total_episodes: int
    seasons: list[PublicSeason] = Field(default_factory=list)

    @classmethod
    def from_anime(cls, anime: Anime) -> "AnimeSummary":
        """Build a listing entry, dropping every video URL."""
        seasons = [
            PublicSeason(
                season_number=season.season_number,
                episodes=[
                    PublicEpisode(
                        episode_number=episode.episode_number,
                        name=episode.name,
                        file_name=episode.file_name,
                    )
                    for episode in season.episodes
                ],
            )
            for season in anime.seasons
        ]
        metadata: dict[str, Any] = {
            name: getattr(anime, name) for name in AnimeMetadata.model_fields
        }
        return cls(
            id=anime.id,
            name=anime.name,
            year=anime.year,
            day=anime.day,
            is_airing=anime.is_airing,
            total_seasons=len(anime.seasons),
            total_episodes=anime.total_episodes,
            seasons=seasons,
            **metadata,
        )


class EpisodeReference(CatalogModel):
    """Composite key identifying one episode."""

    anime_id: str = Field(
        min_length=1,
        description="Anime slug (may itself contain '-')",
    )
    season_number: Annotated[int, Field(ge=0)] = Field(
        description="Season number",
    )
    episode_number: Annotated[int, Field(ge=0)] = Field(
        description="Episode number within the season",
    )


class StreamTokenConfig(BaseModel):
    """Signing configuration handed to StreamTokenService at construction."""

    model_config = ConfigDict(frozen=True)

    secret: str = Field(
        default="",
        repr=False,
        description="HMAC-SHA256 signing secret",
    )
    ttl_seconds: Annotated[int, Field(ge=1)] = Field(
        default=300,
        description="Token lifetime in seconds",
    )


class StreamTokenClaims(BaseModel):
    """Claims embedded in a signed stream token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    reference: str = Field(min_length=1, alias="ref")
    issued_at: int = Field(alias="iat")
    expires_at: int = Field(alias="exp")


class IssuedStreamToken(CatalogModel):
    """Result of issuing a stream token."""

    token: str
    expires_in_seconds: int
    issued_at: int
    expires_at: int


class ResolvedEpisode(CatalogModel):
    """Playable episode returned to a holder of a valid token."""

    video_url: str
    anime_name: str
    episode_number: int


class IngestionReport(BaseModel):
    """Outcome of one parse-and-upsert run."""

    total: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    failed_ids: list[str] = Field(default_factory=list)
