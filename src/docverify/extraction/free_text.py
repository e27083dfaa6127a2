"""
Label-anchored field extraction from printed (non-MRZ) OCR text.

Each line is claimed by its most specific label synonym (longest first).
The value is read from the rest of the line or, failing that, from the next
line. Confidence is the weaker of two signals: how well the label matched and
the OCR engine's own confidence in the value's tokens.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from docverify.config import Settings, settings as default_settings
from docverify.extraction.dates import find_date
from docverify.models.fields import ExtractedField, FieldId, FieldSource, field_label

logger = logging.getLogger(__name__)


class ValueKind(str, Enum):
    DATE = "date"
    DOCUMENT_NUMBER = "document_number"
    NAME = "name"
    SEX = "sex"
    NATIONALITY = "nationality"
    TEXT = "text"


class LabelMatch(str, Enum):
    EXACT = "exact"
    PARTIAL = "partial"
    POSITIONAL = "positional"


@dataclass(frozen=True)
class LabelRule:
    field: str
    synonyms: tuple[str, ...]
    kind: ValueKind


LABEL_RULES: tuple[LabelRule, ...] = (
    LabelRule(FieldId.SURNAME, ("surname", "last name", "family name", "nom"), ValueKind.NAME),
    LabelRule(
        FieldId.GIVEN_NAMES,
        ("given names", "given name", "first name", "first names", "forenames", "prénoms", "prenoms"),
        ValueKind.NAME,
    ),
    LabelRule(FieldId.FULL_NAME, ("full name", "name", "holder"), ValueKind.NAME),
    LabelRule(
        FieldId.DATE_OF_BIRTH,
        ("date of birth", "birth date", "dob", "d.o.b", "born"),
        ValueKind.DATE,
    ),
    LabelRule(
        FieldId.EXPIRY_DATE,
        ("date of expiry", "expiry date", "expiration date", "date of expiration", "expires", "expiry", "valid until"),
        ValueKind.DATE,
    ),
    LabelRule(FieldId.ISSUE_DATE, ("date of issue", "issue date", "issued on", "issued"), ValueKind.DATE),
    LabelRule(
        FieldId.DOCUMENT_NUMBER,
        ("passport number", "passport no", "document number", "document no", "doc no", "passport #"),
        ValueKind.DOCUMENT_NUMBER,
    ),
    LabelRule(FieldId.NATIONALITY, ("nationality", "citizenship"), ValueKind.NATIONALITY),
    LabelRule(FieldId.SEX, ("sex", "gender"), ValueKind.SEX),
    LabelRule(FieldId.PLACE_OF_BIRTH, ("place of birth", "birthplace"), ValueKind.TEXT),
    LabelRule(FieldId.ADDRESS, ("address", "residence", "domicile"), ValueKind.TEXT),
)


def _synonym_pattern(synonym: str) -> re.Pattern[str]:
    body = r"\s*".join(re.escape(part) for part in synonym.split())
    return re.compile(rf"(?<![^\W\d_]){body}(?![^\W\d_])", re.IGNORECASE)


# Longest synonym first so "given name" wins over "name" at the same position
_SYNONYMS: tuple[tuple[re.Pattern[str], LabelRule], ...] = tuple(
    (_synonym_pattern(synonym), rule)
    for rule, synonym in sorted(
        ((rule, synonym) for rule in LABEL_RULES for synonym in rule.synonyms),
        key=lambda item: len(item[1]),
        reverse=True,
    )
)

_SEPARATORS = " \t:-–—/#.|"
_DOCUMENT_NUMBER = re.compile(r"\b(?=[A-Z0-9]*\d)[A-Z0-9]{6,12}\b", re.IGNORECASE)
_NAME = re.compile(r"[^\W\d_][^\W\d_'\- ]*(?:['\-][^\W\d_ ]+)*(?: [^\W\d_][^\W\d_'\-]*)*")
_SEX = re.compile(r"\b(MALE|FEMALE|M|F|X)\b", re.IGNORECASE)
_NATIONALITY = re.compile(r"[A-Za-z][A-Za-z ]*[A-Za-z]")
_TOKEN = re.compile(r"[^\W_]+")

# (value, raw substring, offset of the raw substring in the searched text)
ValueMatch = tuple[str, str, int]


def _read_date(text: str) -> ValueMatch | None:
    found = find_date(text)
    if found is None:
        return None
    parsed, raw = found
    return parsed.isoformat(), raw, text.find(raw)


def _read_document_number(text: str) -> ValueMatch | None:
    match = _DOCUMENT_NUMBER.search(text)
    if match is None:
        return None
    return match.group(0).upper(), match.group(0), match.start()


def _read_name(text: str) -> ValueMatch | None:
    match = _NAME.search(text)
    if match is None:
        return None
    raw = match.group(0).strip()
    if len(raw) < 2:
        return None
    return " ".join(raw.split()), raw, match.start()


def _read_sex(text: str) -> ValueMatch | None:
    match = _SEX.search(text)
    if match is None:
        return None
    return match.group(1)[0].upper(), match.group(0), match.start()


def _read_nationality(text: str) -> ValueMatch | None:
    match = _NATIONALITY.search(text)
    if match is None:
        return None
    raw = match.group(0)
    return " ".join(raw.upper().split()), raw, match.start()


def _read_text(text: str) -> ValueMatch | None:
    raw = text.strip(_SEPARATORS)
    if len(raw) < 3:
        return None
    return " ".join(raw.split()), raw, text.find(raw)


_READERS: dict[ValueKind, Callable[[str], ValueMatch | None]] = {
    ValueKind.DATE: _read_date,
    ValueKind.DOCUMENT_NUMBER: _read_document_number,
    ValueKind.NAME: _read_name,
    ValueKind.SEX: _read_sex,
    ValueKind.NATIONALITY: _read_nationality,
    ValueKind.TEXT: _read_text,
}


def find_label(line: str) -> tuple[LabelRule, re.Match[str]] | None:
    """Earliest label on the line; the longest synonym wins among labels starting together."""
    best: tuple[LabelRule, re.Match[str]] | None = None
    for pattern, rule in _SYNONYMS:
        match = pattern.search(line)
        if match and (best is None or match.start() < best[1].start()):
            best = rule, match
    return best


def normalize_token_confidence(value: float) -> int:
    """Scale an OCR engine confidence to 0-100 (fractions in [0, 1] are scaled up)."""
    scaled = value * 100 if 0 <= value <= 1 else value
    return max(0, min(100, int(round(scaled))))


def token_confidence(raw: str, confidences: Mapping[str, float] | None) -> int | None:
    """Lowest OCR confidence among the value's tokens, ``None`` when none is known."""
    if not confidences:
        return None
    found = []
    for token in _TOKEN.findall(raw):
        for key in (token, token.upper(), token.lower()):
            if key in confidences:
                found.append(normalize_token_confidence(confidences[key]))
                break
    return min(found) if found else None


class FreeTextExtractor:
    """Extracts identity fields from printed document text."""

    def __init__(self, config: Settings | None = None) -> None:
        config = config or default_settings
        self.strengths = {
            LabelMatch.EXACT: config.LABEL_EXACT_CONFIDENCE,
            LabelMatch.PARTIAL: config.LABEL_PARTIAL_CONFIDENCE,
            LabelMatch.POSITIONAL: config.LABEL_POSITIONAL_CONFIDENCE,
        }

    def _same_line_value(
        self, line: str, rule: LabelRule, match: re.Match[str]
    ) -> tuple[ValueMatch, LabelMatch] | None:
        reader = _READERS[rule.kind]
        remainder = line[match.end() :]
        stripped = remainder.lstrip(_SEPARATORS)
        strength = LabelMatch.EXACT if not line[: match.start()].strip() else LabelMatch.PARTIAL

        # Bilingual labels ("Surname / Nom: DOE") put the value after a later colon,
        # unless that colon belongs to a second label following this value
        if ":" in stripped:
            head, tail = stripped.split(":", 1)
            later = find_label(head)
            if later is None or not head[: later[1].start()].strip(_SEPARATORS):
                stripped = tail.lstrip(_SEPARATORS)
                strength = LabelMatch.PARTIAL

        value = reader(stripped)
        if value is None:
            return None
        if value[2] > 0:
            strength = LabelMatch.PARTIAL
        return value, strength

    def extract(
        self,
        lines: Sequence[str],
        token_confidences: Mapping[str, float] | None = None,
    ) -> dict[str, ExtractedField]:
        """
        Extract labelled fields from OCR lines.

        Args:
            lines: OCR lines, MRZ lines already removed
            token_confidences: Optional token -> OCR confidence mapping

        Returns:
            Mapping of field id to an OCR-sourced field; fields without a match are absent
        """
        results: dict[str, ExtractedField] = {}
        consumed: set[int] = set()

        for index, line in enumerate(lines):
            if index in consumed:
                continue
            found = find_label(line)
            if found is None:
                continue
            rule, match = found

            located = self._same_line_value(line, rule, match)
            if located is None and index + 1 < len(lines) and find_label(lines[index + 1]) is None:
                value = _READERS[rule.kind](lines[index + 1].strip())
                if value is not None:
                    located = (value, LabelMatch.POSITIONAL)
                    consumed.add(index + 1)
            if located is None:
                continue

            (value, raw, _), strength = located
            label_confidence = self.strengths[strength]
            ocr_confidence = token_confidence(raw, token_confidences)
            confidence = label_confidence if ocr_confidence is None else min(label_confidence, ocr_confidence)

            existing = results.get(rule.field)
            if existing is not None and existing.confidence >= confidence:
                continue
            results[rule.field] = ExtractedField(
                label=field_label(rule.field),
                value=value,
                confidence=confidence,
                source=FieldSource.OCR,
                issues=[] if strength is LabelMatch.EXACT else [f"{strength.value} label match"],
            )

        logger.debug("Free-text extraction found %d fields", len(results))
        return results
