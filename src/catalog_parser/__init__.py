"""Catalog text parser module for the anime catalog service.

This module handles:
- Slug generation for catalog identifiers
- Grammar rules for title and episode lines
- Two-state line classification into Anime records
"""

from .grammar import EpisodeLine, TitleLine, match_episode_line, match_title_line
from .slug import slugify
from .text_parser import CatalogTextParser, ParserState, parse_catalog_text

__all__ = [
    "slugify",
    "TitleLine",
    "EpisodeLine",
    "match_title_line",
    "match_episode_line",
    "CatalogTextParser",
    "ParserState",
    "parse_catalog_text",
]
