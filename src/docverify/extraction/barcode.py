"""
Parser for barcode text that was decoded upstream.

Handles three payload shapes: an MRZ carried in a 2D barcode (ICAO visas and
some ID cards), AAMVA driver licence element ids and plain ``label: value``
lines.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from docverify.config import Settings, settings as default_settings
from docverify.extraction.free_text import FreeTextExtractor
from docverify.models.fields import ExtractedField, FieldId, FieldSource, field_label
from docverify.models.report import BarcodeResult
from docverify.mrz.locator import locate

logger = logging.getLogger(__name__)

# AAMVA element id -> field id; DCT is the pre-2009 spelling of the first name
AAMVA_ELEMENTS: dict[str, str] = {
    "DCS": FieldId.SURNAME,
    "DAC": FieldId.GIVEN_NAMES,
    "DCT": FieldId.GIVEN_NAMES,
    "DBB": FieldId.DATE_OF_BIRTH,
    "DBA": FieldId.EXPIRY_DATE,
    "DBD": FieldId.ISSUE_DATE,
    "DAQ": FieldId.DOCUMENT_NUMBER,
    "DBC": FieldId.SEX,
    "DCG": FieldId.NATIONALITY,
    "DAG": FieldId.ADDRESS,
}

_AAMVA_DATES = frozenset({FieldId.DATE_OF_BIRTH, FieldId.EXPIRY_DATE, FieldId.ISSUE_DATE})
_AAMVA_SEX = {"1": "M", "2": "F", "9": "X", "M": "M", "F": "F", "X": "X"}
_AAMVA_LINE = re.compile(r"^(?:DL|ID)?(" + "|".join(AAMVA_ELEMENTS) + r")(.*)$")


def parse_aamva_date(raw: str) -> str | None:
    """AAMVA dates are ``MMDDCCYY`` (US) or ``CCYYMMDD`` (Canada)."""
    digits = raw.strip()
    if len(digits) != 8 or not digits.isdigit():
        return None
    for year, month, day in (
        (digits[4:8], digits[0:2], digits[2:4]),
        (digits[0:4], digits[4:6], digits[6:8]),
    ):
        try:
            return date(int(year), int(month), int(day)).isoformat()
        except ValueError:
            continue
    return None


class BarcodeParser:
    """Turns pre-decoded barcode text into barcode-sourced fields."""

    def __init__(self, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.free_text = FreeTextExtractor(self.config)

    def _from_mrz(self, lines: list[str], reference: date | None) -> dict[str, ExtractedField]:
        located = locate(lines, config=self.config, reference=reference)
        if not located.block.detected:
            return {}
        logger.debug("Barcode carries a %s MRZ", located.block.format.value)
        return {
            field_id: field.model_copy(update={"source": FieldSource.BARCODE})
            for field_id, field in located.block.fields.items()
        }

    def _from_aamva(self, lines: list[str]) -> dict[str, ExtractedField]:
        fields: dict[str, ExtractedField] = {}
        for line in lines:
            match = _AAMVA_LINE.match(line.strip())
            if not match:
                continue
            field_id = AAMVA_ELEMENTS[match.group(1)]
            raw = match.group(2).strip()
            if not raw or field_id in fields:
                continue

            issues: list[str] = []
            value: str | None = raw
            if field_id in _AAMVA_DATES:
                value = parse_aamva_date(raw)
                if value is None:
                    value = raw
                    issues.append(f"Unparseable barcode date '{raw}'")
            elif field_id == FieldId.SEX:
                value = _AAMVA_SEX.get(raw.upper(), "X")
            else:
                value = " ".join(raw.replace(",", " ").split())

            fields[field_id] = ExtractedField(
                label=field_label(field_id),
                value=value,
                confidence=self.config.BARCODE_CONFIDENCE,
                source=FieldSource.BARCODE,
                issues=issues,
            )
        return fields

    def _from_labels(self, lines: list[str]) -> dict[str, ExtractedField]:
        return {
            field_id: field.model_copy(
                update={
                    "source": FieldSource.BARCODE,
                    "confidence": self.config.BARCODE_CONFIDENCE,
                    "issues": [],
                }
            )
            for field_id, field in self.free_text.extract(lines).items()
        }

    def parse(self, text: str | None, *, reference: date | None = None) -> BarcodeResult | None:
        """
        Parse decoded barcode text.

        Returns:
            ``None`` when no barcode text was supplied, otherwise the raw text
            with whatever fields could be read from it
        """
        if text is None or not text.strip():
            return None

        lines = [line for line in re.split(r"[\r\n\x1e]+", text) if line.strip()]
        parsed = self._from_mrz(lines, reference)
        if not parsed:
            parsed = self._from_aamva(lines)
        if not parsed:
            parsed = self._from_labels(lines)

        logger.debug("Barcode parsing produced %d fields", len(parsed))
        return BarcodeResult(raw=text, parsed=parsed)
