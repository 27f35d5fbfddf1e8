"""Title normalization for candidate lookup.

Produces the ordered search variations of a raw title: the raw
title itself, an aggressively cleaned form and a structural form
with parentheses and subtitles removed. Variations differing only
in case count once.
"""

import re

# =============================================================================
# CONSTANTS
# =============================================================================

MIN_VARIATION_LENGTH = 2
"""Derived variations must be strictly longer than this."""

MAX_VARIATIONS = 4
"""Upper bound on variations returned for one title."""

_PARENTHESES = re.compile(r"\s*\([^)]*\)\s*")
_COLON_SUFFIX = re.compile(r"\s*:.*$")
_DASH_SUFFIX = re.compile(r"\s*[-–—]\s*.*$")
_SEASON_SUFFIX = re.compile(r"\s*\bseason\s*\d+.*$", re.IGNORECASE)
_MOVIE_SUFFIX = re.compile(r"\s*\bmovie\b.*$", re.IGNORECASE)
_LEADING_THE = re.compile(r"^the\s+", re.IGNORECASE)
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def _collapse(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def _strip_structure(title: str) -> str:
    """Remove parenthetical segments and subtitles, keeping case."""
    value = _PARENTHESES.sub(" ", title)
    value = _COLON_SUFFIX.sub("", value)
    value = _DASH_SUFFIX.sub("", value)
    return _collapse(value)


def clean_title(title: str) -> str:
    """Apply the full cleaning chain to a title.

    Args:
        title: Raw title.

    Returns:
        Lowercased title without parentheses, subtitle, season or
        movie suffix, leading article or punctuation.
    """
    value = _strip_structure(title.lower())
    value = _SEASON_SUFFIX.sub("", value)
    value = _MOVIE_SUFFIX.sub("", value)
    value = _LEADING_THE.sub("", value.strip())
    value = _PUNCTUATION.sub("", value)
    return _collapse(value)


def normalize_title(raw_title: str) -> list[str]:
    """Build the ordered lookup variations of a title.

    The raw title always comes first, even when short. Derived
    variations are kept only when longer than 2 characters and not
    already present ignoring case, since lookups are case-insensitive.

    Args:
        raw_title: Title as received from the provider.

    Returns:
        Distinct variations in lookup order, at most 4.

    Example:
        >>> normalize_title("The Garden of Words (2013)")
        ['The Garden of Words (2013)', 'garden of words', 'the garden of words']
    """
    title = (raw_title or "").strip()
    if not title:
        return []

    variations = [title]
    seen = {title.lower()}

    def add(candidate: str) -> None:
        key = candidate.lower()
        if len(candidate) > MIN_VARIATION_LENGTH and key not in seen:
            seen.add(key)
            variations.append(candidate)

    add(clean_title(title))

    structural = _strip_structure(title)
    if structural != title:
        add(structural.lower())

    return variations[:MAX_VARIATIONS]
