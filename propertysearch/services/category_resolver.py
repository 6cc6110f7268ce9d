"""Property category resolution.

Category tokens overlap ("commercial land" contains "land"), so resolution
runs an ordered rule list and the first rule that matches wins. Narrow
multi-word tokens come before the broad expansions they lexically contain.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional

from propertysearch.models.query import CategoryResolution, CategoryResolutionKind

PLOT = "Plot"
LAND = "Land"
COMMERCIAL_LAND = "Commercial Land"


def normalize_token(value: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    if not value:
        return ""
    return " ".join(value.lower().split())


class CategoryRule(ABC):
    """A single resolution rule; returns None when it does not apply."""

    kind: CategoryResolutionKind

    @abstractmethod
    def resolve(self, token: str, raw: str) -> Optional[CategoryResolution]:
        """Resolve a normalized token (and its raw spelling)."""

    def _resolution(self, token: str, values: tuple[str, ...], phrase: Optional[str] = None) -> CategoryResolution:
        return CategoryResolution(kind=self.kind, token=token, values=values, matched_phrase=phrase or token)


class TableRule(CategoryRule):
    """Resolve tokens found in a fixed token -> values table."""

    def __init__(self, kind: CategoryResolutionKind, table: dict[str, tuple[str, ...]]):
        self.kind = kind
        self.table = table

    def resolve(self, token: str, raw: str) -> Optional[CategoryResolution]:
        values = self.table.get(token)
        if values is None:
            return None
        return self._resolution(token, values)


class FallbackRule(CategoryRule):
    """Title-case each word of the raw input (best effort)."""

    kind = CategoryResolutionKind.FALLBACK

    def resolve(self, token: str, raw: str) -> Optional[CategoryResolution]:
        words = raw.split()
        if not words:
            return None
        return self._resolution(token, (" ".join(word.capitalize() for word in words),))


EXACT_WITHIN_SET = TableRule(
    CategoryResolutionKind.EXACT_WITHIN_SET,
    {
        "commercial land": (COMMERCIAL_LAND,),
        "commercial lands": (COMMERCIAL_LAND,),
    },
)

EXPANDED_SETS = TableRule(
    CategoryResolutionKind.EXPANDED_SET,
    {
        "land": (PLOT, LAND, COMMERCIAL_LAND),
        "lands": (PLOT, LAND, COMMERCIAL_LAND),
        "plot": (PLOT, LAND),
        "plots": (PLOT, LAND),
    },
)

DIRECT_LOOKUP = TableRule(
    CategoryResolutionKind.DIRECT_LOOKUP,
    {
        "house": ("House",),
        "villa": ("Villa",),
        "villas": ("Villa",),
        "flat": ("Flat",),
        "flats": ("Flat",),
        "warehouse": ("Warehouse",),
        "warehouses": ("Warehouse",),
        "commercial building": ("Commercial Building",),
        "commercial buildings": ("Commercial Building",),
        "apartment": ("Apartment",),
        "apartments": ("Apartment",),
        "studio": ("Studio",),
        "penthouse": ("Penthouse",),
        "townhouse": ("Townhouse",),
    },
)

# Evaluated in order; first match wins
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    EXACT_WITHIN_SET,
    EXPANDED_SETS,
    DIRECT_LOOKUP,
    FallbackRule(),
)

# Phrases recognised inside free text, most specific first
_TEXT_PHRASES = (
    (EXACT_WITHIN_SET, re.compile(r"\bcommercial\s+lands?\b", re.IGNORECASE)),
    (EXPANDED_SETS, re.compile(r"\b(?:plots?|lands?)\b", re.IGNORECASE)),
)


def resolve_category(value: Optional[str], rules: tuple[CategoryRule, ...] = CATEGORY_RULES) -> Optional[CategoryResolution]:
    """Resolve a user-facing category token to backing property_type values."""
    token = normalize_token(value)
    if not token:
        return None

    raw = " ".join(value.split())
    for rule in rules:
        resolution = rule.resolve(token, raw)
        if resolution is not None:
            return resolution
    return None


def infer_category_from_text(text: Optional[str]) -> tuple[Optional[CategoryResolution], Optional[str]]:
    """
    Detect a land/plot category phrase inside free-text search.

    Returns the resolution (or None) and the text left after removing the
    matched phrase (None when nothing is left to search for).
    """
    if not text or not text.strip():
        return None, None

    for rule, pattern in _TEXT_PHRASES:
        match = pattern.search(text)
        if match is None:
            continue
        phrase = normalize_token(match.group(0))
        resolution = rule.resolve(phrase, match.group(0))
        if resolution is None:
            continue
        remainder = " ".join((text[:match.start()] + " " + text[match.end():]).split())
        return resolution, remainder or None

    return None, " ".join(text.split())
