"""Episode reference codec.

A reference packs ``(anime_id, season_number, episode_number)`` into one
string: ``<animeId>-<season>-<episode>``. Anime ids are slugs and contain
``-`` themselves, so decoding reads season and episode from the right and
keeps everything before them as the anime id.
"""

import re

from ..shared.exceptions import MalformedReferenceError, ValidationError
from ..shared.models import EpisodeReference

REFERENCE_SEPARATOR = "-"

# Season and episode are unpadded ASCII digit runs
_NUMBER_PATTERN = re.compile(r"\d+", re.ASCII)


def encode_reference(anime_id: str, season_number: int, episode_number: int) -> str:
    """Serialize an episode key.

    Args:
        anime_id: Anime slug
        season_number: Season number
        episode_number: Episode number within the season

    Returns:
        Reference string (e.g., 'naruto-1-1')

    Raises:
        ValidationError: If the anime id is empty or a number is negative
    """
    if not anime_id:
        raise ValidationError("anime_id is required", {"field": "anime_id"})
    if season_number < 0 or episode_number < 0:
        raise ValidationError(
            "Season and episode numbers must be non-negative",
            {"season_number": season_number, "episode_number": episode_number},
        )
    return REFERENCE_SEPARATOR.join([anime_id, str(season_number), str(episode_number)])


def decode_reference(reference: str) -> EpisodeReference:
    """Parse a reference produced by encode_reference.

    Args:
        reference: Reference string

    Returns:
        EpisodeReference with the anime id and both numbers

    Raises:
        MalformedReferenceError: If fewer than three segments are present,
            the anime id is empty, or season/episode are not integers

    Example:
        >>> decode_reference("one-piece-1-1000").anime_id
        'one-piece'
    """
    parts = reference.rsplit(REFERENCE_SEPARATOR, 2)
    if len(parts) < 3:
        raise MalformedReferenceError(reference, "expected '<animeId>-<season>-<episode>'")

    anime_id, season, episode = parts
    if not anime_id:
        raise MalformedReferenceError(reference, "anime id is empty")
    if not _NUMBER_PATTERN.fullmatch(season) or not _NUMBER_PATTERN.fullmatch(episode):
        raise MalformedReferenceError(reference, "season and episode must be integers")

    return EpisodeReference(
        anime_id=anime_id,
        season_number=int(season),
        episode_number=int(episode),
    )
