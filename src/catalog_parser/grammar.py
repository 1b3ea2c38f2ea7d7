"""Grammar rules for catalog text lines.

A catalog text file has one record per line:

    Naruto 2012 (Lunes)
    1x01|https://cdn.example.com/naruto/1x01.mp4
    Naruto 1x02.mp4|https://cdn.example.com/naruto/1x02.mp4

Title lines name a title and its year (airing titles may add a weekly day
in parentheses). Episode lines carry ``<season>x<episode>``, an optional
``.mp4`` suffix, a pipe and the playable URL. Each rule returns a typed
match or ``None``; a ``None`` from every rule means the line is skipped.
"""

import re
from dataclasses import dataclass

# Airing titles may carry a release day: "Frieren 2023 (Viernes)"
AIRING_TITLE_PATTERN = re.compile(
    r"^(?P<name>.+?)\s+(?P<year>\d{4})(?:\s+\((?P<day>[^)]+)\))?$"
)

# Finished titles never carry a day: "Death Note 2006"
FINISHED_TITLE_PATTERN = re.compile(r"^(?P<name>.+?)\s+(?P<year>\d{4})$")

# Optional free-text prefix, then "<season>x<episode>[.mp4]|<url>"
EPISODE_PATTERN = re.compile(
    r"^(?:(?P<prefix>.*?)\s+)?(?P<season>\d+)x(?P<episode>\d+)(?:\.mp4)?\|(?P<url>.+)$"
)

EPISODE_DELIMITER = "|"


@dataclass(frozen=True)
class TitleLine:
    """A matched title line."""

    name: str
    year: int
    day: str | None


@dataclass(frozen=True)
class EpisodeLine:
    """A matched episode line."""

    season_number: int
    episode_number: int
    video_url: str

    @property
    def display_name(self) -> str:
        """Default episode label."""
        return f"Episodio {self.episode_number}"

    @property
    def file_name(self) -> str:
        """Synthesized file name, episode zero-padded to two digits."""
        return f"{self.season_number}x{self.episode_number:02d}.mp4"


def match_title_line(line: str, is_airing: bool) -> TitleLine | None:
    """Match a title line for the given catalog section.

    Args:
        line: Stripped, non-empty line
        is_airing: True for the airing section (day group recognized)

    Returns:
        TitleLine or None if the line is not a title
    """
    pattern = AIRING_TITLE_PATTERN if is_airing else FINISHED_TITLE_PATTERN
    match = pattern.match(line)
    if match is None:
        return None

    day = match.groupdict().get("day")
    return TitleLine(
        name=match.group("name").strip(),
        year=int(match.group("year")),
        day=(day.strip() or None) if day else None,
    )


def match_episode_line(line: str) -> EpisodeLine | None:
    """Match an episode line.

    Season and episode numbers of zero are rejected: both are 1-based.

    Args:
        line: Stripped, non-empty line

    Returns:
        EpisodeLine or None if the line is not an episode
    """
    if EPISODE_DELIMITER not in line:
        return None

    match = EPISODE_PATTERN.match(line)
    if match is None:
        return None

    season_number = int(match.group("season"))
    episode_number = int(match.group("episode"))
    if season_number < 1 or episode_number < 1:
        return None

    return EpisodeLine(
        season_number=season_number,
        episode_number=episode_number,
        video_url=match.group("url"),
    )
