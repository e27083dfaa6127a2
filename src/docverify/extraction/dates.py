"""Date recognition for printed document text."""

from __future__ import annotations

import re
from datetime import date

MONTHS = {
    "JAN": 1, "FEB": 2, "MAR": 3, "APR": 4, "MAY": 5, "JUN": 6,
    "JUL": 7, "AUG": 8, "SEP": 9, "OCT": 10, "NOV": 11, "DEC": 12,
}

ISO_DATE = re.compile(r"\b(\d{4})-(\d{2})-(\d{2})\b")
DMY_DATE = re.compile(r"\b(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{4})\b")
DMY_TEXT_DATE = re.compile(
    r"\b(\d{1,2})\s*(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)[A-Z]*\.?\s*(\d{4})\b",
    re.IGNORECASE,
)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def find_date(text: str) -> tuple[date, str] | None:
    """
    Return the first real date in ``text`` and the matched substring.

    Recognised shapes: ISO ``YYYY-MM-DD``, ``DD/MM/YYYY`` (``.`` and ``-``
    separators too) and ``DD MMM YYYY``.
    """
    candidates = []
    for match in ISO_DATE.finditer(text):
        parsed = _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        if parsed:
            candidates.append((match.start(), parsed, match.group(0)))
    for match in DMY_DATE.finditer(text):
        parsed = _safe_date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        if parsed:
            candidates.append((match.start(), parsed, match.group(0)))
    for match in DMY_TEXT_DATE.finditer(text):
        month = MONTHS[match.group(2).upper()[:3]]
        parsed = _safe_date(int(match.group(3)), month, int(match.group(1)))
        if parsed:
            candidates.append((match.start(), parsed, match.group(0)))
    if not candidates:
        return None
    _, parsed, raw = min(candidates, key=lambda item: item[0])
    return parsed, raw


def parse_iso_date(value: str | None) -> date | None:
    """Parse an ISO date (or any shape ``find_date`` knows), ``None`` when absent or invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        found = find_date(value)
        return found[0] if found else None
