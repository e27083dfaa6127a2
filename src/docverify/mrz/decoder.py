"""
MRZ field decoder.

Slices a classified block into its layout zones, verifies every check digit
the layout defines, and emits one ``ExtractedField`` per decoded zone with a
checksum-gated confidence.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from docverify.config import Settings, settings as default_settings
from docverify.models.fields import ExtractedField, FieldId, FieldSource, field_label
from docverify.models.mrz import CheckDigitResult, MrzBlock
from docverify.mrz.check_digit import calculate_check_digit, validate_check_digit
from docverify.mrz.layouts import MrzLayout, Zone, ZoneKind

logger = logging.getLogger(__name__)

# Expiry dates are always read in the 21st century; birth and issue dates pivot on today
_FUTURE_DATE_FIELDS = frozenset({FieldId.EXPIRY_DATE})


def _normalize_whitespace(value: str) -> str:
    return " ".join(segment for segment in value.replace("<", " ").split() if segment)


def split_name(value: str) -> tuple[str, str]:
    """Split a ``PRIMARY<<SECONDARY`` name zone into surname and given names."""
    parts = value.split("<<", 1)
    surname = _normalize_whitespace(parts[0])
    given_names = _normalize_whitespace(parts[1]) if len(parts) > 1 else ""
    return surname, given_names


def parse_mrz_date(raw: str, *, future: bool, reference: date) -> date | None:
    """Convert ``YYMMDD`` to a date; ``None`` when the value is not a real date."""
    if len(raw) != 6 or not raw.isdigit():
        return None
    yy, mm, dd = int(raw[0:2]), int(raw[2:4]), int(raw[4:6])
    if future:
        year = 2000 + yy
    else:
        year = 2000 + yy if 2000 + yy <= reference.year else 1900 + yy
    try:
        return date(year, mm, dd)
    except ValueError:
        return None


def _decode_sex(raw: str) -> str:
    return raw if raw in ("M", "F") else "X"


def _decode_zone(zone: Zone, raw: str, reference: date) -> list[tuple[str, str, list[str]]]:
    """Return ``(field_id, value, issues)`` triples decoded from one zone."""
    if zone.kind is ZoneKind.NAME:
        surname, given_names = split_name(raw)
        return [
            (FieldId.SURNAME, surname, []),
            (FieldId.GIVEN_NAMES, given_names, []),
        ]
    if zone.kind is ZoneKind.TEXT:
        return [(zone.field, _normalize_whitespace(raw), [])]
    if zone.kind is ZoneKind.DATE:
        parsed = parse_mrz_date(raw, future=zone.field in _FUTURE_DATE_FIELDS, reference=reference)
        if parsed is None:
            return [(zone.field, raw, [f"Unparseable MRZ date '{raw}'"])]
        return [(zone.field, parsed.isoformat(), [])]
    if zone.kind is ZoneKind.SEX:
        return [(zone.field, _decode_sex(raw), [])]
    return [(zone.field, raw.replace("<", ""), [])]


def verify_check_digits(layout: MrzLayout, lines: Sequence[str]) -> list[CheckDigitResult]:
    results = []
    for spec in layout.check_digits:
        data = spec.data(lines)
        actual = spec.digit_char(lines)
        results.append(
            CheckDigitResult(
                name=spec.name,
                expected=calculate_check_digit(data),
                actual=actual,
                valid=validate_check_digit(data, actual),
            )
        )
    return results


def decode(
    layout: MrzLayout,
    lines: Sequence[str],
    *,
    config: Settings | None = None,
    reference: date | None = None,
) -> MrzBlock:
    """
    Decode normalised MRZ lines that match ``layout``.

    Args:
        layout: Layout the lines were classified as
        lines: Normalised, confusion-repaired MRZ lines
        config: Settings supplying the invalid/unchecked confidences
        reference: Date used to pivot two-digit birth and issue years

    Returns:
        MrzBlock with every decoded field and the block checksum verdict
    """
    config = config or default_settings
    reference = reference or date.today()

    digit_results = verify_check_digits(layout, lines)
    checksum_valid = all(result.valid for result in digit_results)

    # field id -> validity of every check digit covering it, plus failure issues
    coverage: dict[str, list[bool]] = {}
    failures: dict[str, list[str]] = {}
    for spec, result in zip(layout.check_digits, digit_results):
        for field_id in spec.fields:
            coverage.setdefault(field_id, []).append(result.valid)
            if not result.valid:
                failures.setdefault(field_id, []).append(
                    f"Check digit mismatch in {spec.name}: expected {result.expected}, "
                    f"found {result.actual}"
                )

    fields: dict[str, ExtractedField] = {}
    for zone in layout.zones:
        for field_id, value, issues in _decode_zone(zone, zone.slice(lines), reference):
            issues = issues + failures.get(field_id, [])
            if not value and not issues:
                continue

            if not layout.has_check_digits:
                confidence = config.MRZ_UNCHECKED_CONFIDENCE
                field_checksum: bool | None = None
            else:
                covered = coverage.get(field_id)
                field_checksum = all(covered) if covered else checksum_valid
                confidence = 100 if field_checksum else config.MRZ_INVALID_CONFIDENCE

            fields[field_id] = ExtractedField(
                label=field_label(field_id),
                value=value or None,
                confidence=confidence,
                source=FieldSource.MRZ,
                issues=issues,
                checksum_valid=field_checksum,
            )

    for field_id, from_field in layout.inferred:
        origin = fields.get(from_field)
        if origin is not None and origin.present and field_id not in fields:
            fields[field_id] = ExtractedField(
                label=field_label(field_id),
                value=origin.value,
                confidence=origin.confidence,
                source=FieldSource.INFERRED,
                issues=[f"Inferred from {origin.label.lower()}"],
            )

    if not checksum_valid:
        failed = ", ".join(r.name for r in digit_results if not r.valid)
        logger.debug("%s block failed check digits: %s", layout.format.value, failed)

    return MrzBlock(
        format=layout.format,
        lines=list(lines),
        fields=fields,
        checksum_valid=checksum_valid,
        check_digits=digit_results,
    )
