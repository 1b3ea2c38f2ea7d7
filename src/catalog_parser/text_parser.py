"""Line classifier that turns catalog text into Anime records.

The parser is a two-state machine:

- ``NO_CONTEXT``: no title seen yet; only title lines are accepted.
- ``IN_CONTEXT``: a title is active; title lines start a new title and
  episode lines attach to the active one.

Lines that match no rule are dropped without aborting the run. A title whose
slug already exists replaces the earlier record, discarding its episodes.
"""

from enum import Enum

from aws_lambda_powertools import Logger

from ..shared.models import Anime, Episode, Season
from .grammar import EpisodeLine, TitleLine, match_episode_line, match_title_line
from .slug import slugify

logger = Logger(service="catalog-parser")


class ParserState(str, Enum):
    """Classifier state."""

    NO_CONTEXT = "NO_CONTEXT"
    IN_CONTEXT = "IN_CONTEXT"


class _AnimeDraft:
    """Mutable accumulator for one title while lines are being fed."""

    def __init__(self, anime_id: str, title: TitleLine, is_airing: bool) -> None:
        self.anime_id = anime_id
        self.title = title
        self.is_airing = is_airing
        # season_number -> episode_number -> Episode
        self.seasons: dict[int, dict[int, Episode]] = {}

    def add_episode(self, line: EpisodeLine) -> bool:
        """Add an episode, returning True if it replaced an existing one."""
        season = self.seasons.setdefault(line.season_number, {})
        replaced = line.episode_number in season
        season[line.episode_number] = Episode(
            episode_number=line.episode_number,
            name=line.display_name,
            video_url=line.video_url,
            file_name=line.file_name,
        )
        return replaced

    def build(self) -> Anime:
        """Freeze the draft into an Anime with sorted seasons and episodes."""
        seasons = [
            Season(
                season_number=season_number,
                episodes=[episodes[n] for n in sorted(episodes)],
            )
            for season_number, episodes in sorted(self.seasons.items())
        ]
        return Anime(
            id=self.anime_id,
            name=self.title.name,
            year=self.title.year,
            day=self.title.day if self.is_airing else None,
            is_airing=self.is_airing,
            seasons=seasons,
        )


class CatalogTextParser:
    """Incremental parser for one catalog section.

    Example:
        >>> parser = CatalogTextParser(is_airing=True)
        >>> for line in text.splitlines():
        ...     parser.feed(line)
        >>> catalog = parser.finish()
    """

    def __init__(self, is_airing: bool) -> None:
        self.is_airing = is_airing
        self._drafts: dict[str, _AnimeDraft] = {}
        self._current: _AnimeDraft | None = None
        self.skipped_lines = 0

    @property
    def state(self) -> ParserState:
        """Current classifier state."""
        return ParserState.IN_CONTEXT if self._current is not None else ParserState.NO_CONTEXT

    def feed(self, raw_line: str) -> None:
        """Classify one line and update the working catalog."""
        line = raw_line.strip()
        if not line:
            return

        title = match_title_line(line, self.is_airing)
        if title is not None:
            self._start_title(title, line)
            return

        if self._current is not None:
            episode = match_episode_line(line)
            if episode is not None:
                if self._current.add_episode(episode):
                    logger.debug(
                        "Duplicate episode line replaced earlier entry",
                        extra={
                            "anime_id": self._current.anime_id,
                            "season_number": episode.season_number,
                            "episode_number": episode.episode_number,
                        },
                    )
                return

        self._skip(line)

    def finish(self) -> list[Anime]:
        """Build the ordered catalog from everything fed so far."""
        return [draft.build() for draft in self._drafts.values()]

    def _start_title(self, title: TitleLine, line: str) -> None:
        anime_id = slugify(title.name)
        if not anime_id:
            # Nothing to key the record on; drop the title and any episodes under it
            self._current = None
            self._skip(line)
            return

        if anime_id in self._drafts:
            logger.warning(
                "Title collision, replacing earlier record",
                extra={"anime_id": anime_id, "anime_name": title.name},
            )

        draft = _AnimeDraft(anime_id, title, self.is_airing)
        self._drafts[anime_id] = draft
        self._current = draft

    def _skip(self, line: str) -> None:
        self.skipped_lines += 1
        logger.debug(
            "Skipping unmatched catalog line",
            extra={"line": line[:120], "state": self.state.value},
        )


def parse_catalog_text(text: str, is_airing: bool) -> list[Anime]:
    """Parse a catalog section into Anime records.

    Args:
        text: Raw multi-line catalog text
        is_airing: True for the airing section, False for finished titles

    Returns:
        Anime records in first-seen order, seasons and episodes ascending

    Example:
        >>> catalog = parse_catalog_text("Naruto 2012 (Lunes)\\n1x01|http://cdn/x.mp4", True)
        >>> catalog[0].seasons[0].episodes[0].file_name
        '1x01.mp4'
    """
    parser = CatalogTextParser(is_airing=is_airing)
    for line in text.splitlines():
        parser.feed(line)

    catalog = parser.finish()
    logger.info(
        "Parsed catalog section",
        extra={
            "is_airing": is_airing,
            "anime_count": len(catalog),
            "episode_count": sum(a.total_episodes for a in catalog),
            "skipped_lines": parser.skipped_lines,
        },
    )
    return catalog
