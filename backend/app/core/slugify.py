"""Slug Generator — derives the URL-safe event identifier from free text.

Invariants:
    - Output contains only [a-z0-9-], no leading, trailing or repeated hyphens
    - slugify(slugify(x)) == slugify(x)
    - Pure: no IO, deterministic

Design Decisions:
    - Accents folded via NFKD before filtering ("Café" → "cafe") instead of being dropped
    - Underscores treated as separators, not kept: slug alphabet stays alphanumeric + hyphen
"""

import re
import unicodedata

from app.core.domain_types import Slug

_DISALLOWED = re.compile(r"[^a-z0-9\s_-]")
_SEPARATORS = re.compile(r"[\s_]+")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(text: str) -> Slug:
    """Lowercase, strip punctuation, hyphenate whitespace, collapse hyphens."""
    folded = unicodedata.normalize("NFKD", text)
    folded = folded.encode("ascii", "ignore").decode("ascii")
    slug = folded.lower().strip()
    slug = _DISALLOWED.sub("", slug)
    slug = _SEPARATORS.sub("-", slug)
    slug = _HYPHEN_RUNS.sub("-", slug)
    return Slug(slug.strip("-"))
