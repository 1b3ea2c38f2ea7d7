"""Episode resolution for verified stream references."""

from aws_lambda_powertools import Logger

from ..catalog_store.repository import CatalogStore
from ..shared.exceptions import NotFoundError
from ..shared.models import ResolvedEpisode
from .reference import decode_reference

logger = Logger(service="episode-resolver")


class EpisodeResolver:
    """Look up the playable URL behind a verified episode reference.

    Callers must verify the stream token first; the resolver trusts the
    reference it is given.
    """

    def __init__(self, store: CatalogStore) -> None:
        self.store = store

    def resolve(self, reference: str) -> ResolvedEpisode:
        """Resolve a reference to its video URL.

        Args:
            reference: Verified '<animeId>-<season>-<episode>' reference

        Returns:
            ResolvedEpisode with video URL, anime name and episode number

        Raises:
            MalformedReferenceError: If the reference cannot be decoded
            NotFoundError: If the anime, season or episode does not exist
        """
        key = decode_reference(reference)

        anime = self.store.find_by_id(key.anime_id)
        if anime is None:
            raise NotFoundError("anime", key.anime_id, {"reference": reference})

        season = anime.find_season(key.season_number)
        if season is None:
            raise NotFoundError("season", key.season_number, {"reference": reference})

        episode = season.find_episode(key.episode_number)
        if episode is None:
            raise NotFoundError("episode", key.episode_number, {"reference": reference})

        logger.info("Resolved stream reference", extra={"reference": reference, "anime_id": anime.id})
        return ResolvedEpisode(
            video_url=episode.video_url,
            anime_name=anime.name,
            episode_number=episode.episode_number,
        )
