"""Text folding used when comparing values from different sources."""

from __future__ import annotations

import re
import unicodedata

_NON_LETTERS = re.compile(r"[^\w]|[\d_]")


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def fold(value: str | None) -> str:
    """Case, whitespace and diacritic insensitive form of a value."""
    if value is None:
        return ""
    return " ".join(strip_diacritics(value).casefold().split())


def name_tokens(value: str | None) -> list[str]:
    """
    Sorted name tokens, so "DOE John" and "john doe" compare equal.

    Anything that is not a letter (MRZ fillers, hyphens, apostrophes, digits)
    separates tokens.
    """
    if not value:
        return []
    return sorted(_NON_LETTERS.sub(" ", strip_diacritics(value).casefold()).split())
