"""Optional third-party metadata enrichment for parsed catalog records.

Looks each title up by name on a Jikan-compatible search API and attaches
the first hit's cover images, synopsis, genres, status and score. Titles
that cannot be found get generic default metadata instead. Lookups run
strictly one after another through a FixedIntervalRateLimiter.
"""

import json
import ssl
import urllib.parse
import urllib.request
from typing import Any, Protocol
from urllib.error import HTTPError, URLError

from aws_lambda_powertools import Logger

from ..shared.models import Anime, AnimeMetadata
from ..shared.rate_limiter import FixedIntervalRateLimiter

logger = Logger(service="metadata-enrichment")

CURRENTLY_AIRING = "Currently Airing"
FINISHED_AIRING = "Finished Airing"
DEFAULT_GENRE = "Anime"
DEFAULT_RATING = "N/A"


class MetadataProvider(Protocol):
    """Source of metadata for a title name."""

    def lookup(self, name: str) -> AnimeMetadata | None: ...


class JikanMetadataProvider:
    """Search a Jikan v4 compatible API and map its first result.

    Args:
        base_url: API root (e.g., 'https://api.jikan.moe/v4')
        timeout_seconds: Socket timeout per request
    """

    def __init__(self, base_url: str, timeout_seconds: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    def lookup(self, name: str) -> AnimeMetadata | None:
        """Return metadata for the best match, or None if nothing usable came back."""
        query = urllib.parse.urlencode({"q": name, "limit": 1})
        request = urllib.request.Request(
            f"{self.base_url}/anime?{query}",
            headers={"Accept": "application/json", "User-Agent": "AnimeCatalog/1.0"},
            method="GET",
        )

        try:
            ssl_context = ssl.create_default_context()
            with urllib.request.urlopen(request, context=ssl_context, timeout=self.timeout_seconds) as response:
                body = json.loads(response.read().decode("utf-8"))
        except HTTPError as e:
            logger.warning(
                "Metadata lookup failed with HTTP error",
                extra={"anime_name": name, "status_code": e.code, "reason": e.reason},
            )
            return None
        except URLError as e:
            logger.warning(
                "Metadata lookup failed with URL error",
                extra={"anime_name": name, "error": str(e.reason)},
            )
            return None
        except ValueError as e:
            logger.warning(
                "Metadata lookup returned invalid JSON",
                extra={"anime_name": name, "error": str(e)},
            )
            return None

        results = body.get("data") if isinstance(body, dict) else None
        if not results:
            logger.info("No metadata match", extra={"anime_name": name})
            return None

        return _map_jikan_result(results[0])


def _map_jikan_result(result: dict[str, Any]) -> AnimeMetadata:
    """Map one Jikan anime object onto AnimeMetadata."""
    images = (result.get("images") or {}).get("jpg") or {}
    return AnimeMetadata(
        mal_id=result.get("mal_id"),
        image=images.get("large_image_url") or images.get("image_url"),
        thumbnail=images.get("image_url"),
        synopsis=result.get("synopsis"),
        genres=[g["name"] for g in result.get("genres") or [] if g.get("name")],
        status=result.get("status"),
        episode_count=result.get("episodes") or 0,
        score=result.get("score") or 0,
        rating=result.get("rating") or DEFAULT_RATING,
    )


def default_metadata(anime: Anime) -> AnimeMetadata:
    """Generic metadata for titles the provider could not find."""
    if anime.is_airing:
        synopsis = f"{anime.name} es un anime actualmente en emisión."
    else:
        synopsis = f"{anime.name} es un anime que ha finalizado su emisión."

    return AnimeMetadata(
        synopsis=f"{synopsis} Disfruta de todos los episodios disponibles en nuestra plataforma.",
        genres=[DEFAULT_GENRE],
        status=CURRENTLY_AIRING if anime.is_airing else FINISHED_AIRING,
        episode_count=anime.total_episodes,
        score=0,
        rating=DEFAULT_RATING,
    )


class MetadataEnricher:
    """Attach metadata to parsed records, one throttled lookup at a time."""

    def __init__(self, provider: MetadataProvider, rate_limiter: FixedIntervalRateLimiter) -> None:
        self.provider = provider
        self.rate_limiter = rate_limiter

    def enrich(self, animes: list[Anime]) -> list[Anime]:
        """Return copies of the records with metadata attached.

        Args:
            animes: Parsed records

        Returns:
            Records in the same order, each carrying provider or default metadata
        """
        enriched: list[Anime] = []
        found = 0

        for index, anime in enumerate(animes, start=1):
            self.rate_limiter.wait()
            logger.info(
                "Looking up metadata",
                extra={"anime_id": anime.id, "position": index, "total": len(animes)},
            )

            metadata = self.provider.lookup(anime.name)
            if metadata is None:
                metadata = default_metadata(anime)
            else:
                found += 1
            enriched.append(anime.with_metadata(metadata))

        logger.info(
            "Metadata enrichment complete",
            extra={"found": found, "defaulted": len(animes) - found},
        )
        return enriched
