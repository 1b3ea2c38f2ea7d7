"""Slug generation for catalog identifiers."""

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")
_DASH_RUNS = re.compile(r"-+")


def slugify(name: str) -> str:
    """Derive a URL-safe identifier from a display name.

    Lowercases the name, turns every character outside ``[a-z0-9]`` into
    ``-``, collapses runs of ``-`` and strips them from both ends. Distinct
    names can collapse to the same slug; callers do not disambiguate.

    Example:
        >>> slugify("Re:Zero - Starting Life in Another World")
        're-zero-starting-life-in-another-world'
    """
    slug = _NON_ALPHANUMERIC.sub("-", name.lower())
    slug = _DASH_RUNS.sub("-", slug)
    return slug.strip("-")
