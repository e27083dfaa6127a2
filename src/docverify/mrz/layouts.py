"""
MRZ layout table.

Every supported format is data: the line-length signature used by the
locator, the fixed-width zones the decoder slices, and the check digits that
gate the confidence of the zones they cover. Positions are 0-based, ``end``
exclusive, as in ICAO Doc 9303 Parts 4-7.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from docverify.models.fields import FieldId
from docverify.models.mrz import MrzFormat


class ZoneKind(str, Enum):
    CODE = "code"  # country codes; OCR digits repaired to letters
    ALNUM = "alnum"  # document numbers and optional data; never repaired
    NAME = "name"  # PRIMARY<<SECONDARY identifiers; never repaired
    TEXT = "text"  # single name component, fillers read as spaces; never repaired
    DATE = "date"  # YYMMDD; OCR letters repaired to digits
    SEX = "sex"


@dataclass(frozen=True)
class Zone:
    field: str
    line: int
    start: int
    end: int
    kind: ZoneKind

    def slice(self, lines: Sequence[str]) -> str:
        return lines[self.line][self.start : self.end]


@dataclass(frozen=True)
class CheckDigitSpec:
    name: str
    segments: tuple[tuple[int, int, int], ...]  # (line, start, end)
    digit: tuple[int, int]  # (line, index)
    fields: tuple[str, ...]

    def data(self, lines: Sequence[str]) -> str:
        return "".join(lines[line][start:end] for line, start, end in self.segments)

    def digit_char(self, lines: Sequence[str]) -> str:
        line, index = self.digit
        return lines[line][index]


@dataclass(frozen=True)
class MrzLayout:
    format: MrzFormat
    line_lengths: tuple[int, ...]
    zones: tuple[Zone, ...]
    check_digits: tuple[CheckDigitSpec, ...] = ()
    rank: int = 0
    prefix: str = ""
    excluded_prefixes: tuple[str, ...] = ()
    # Fields the format implies without carrying them, e.g. nationality from issuing state
    inferred: tuple[tuple[str, str], ...] = ()

    @property
    def line_count(self) -> int:
        return len(self.line_lengths)

    @property
    def has_check_digits(self) -> bool:
        return bool(self.check_digits)

    def matches(self, lines: Sequence[str]) -> bool:
        if tuple(len(line) for line in lines) != self.line_lengths:
            return False
        first = lines[0]
        if self.prefix and not first.startswith(self.prefix):
            return False
        return not any(first.startswith(excluded) for excluded in self.excluded_prefixes)


F = FieldId

# Line 2 of TD3 and MRVA share their first 28 positions; TD2 and MRVB likewise
_TD3_LINE1 = (
    Zone(F.DOCUMENT_TYPE, 0, 0, 2, ZoneKind.ALNUM),
    Zone(F.ISSUING_STATE, 0, 2, 5, ZoneKind.CODE),
    Zone(F.SURNAME, 0, 5, 44, ZoneKind.NAME),
)
_TD2_LINE1 = (
    Zone(F.DOCUMENT_TYPE, 0, 0, 2, ZoneKind.ALNUM),
    Zone(F.ISSUING_STATE, 0, 2, 5, ZoneKind.CODE),
    Zone(F.SURNAME, 0, 5, 36, ZoneKind.NAME),
)
_COMMON_LINE2 = (
    Zone(F.DOCUMENT_NUMBER, 1, 0, 9, ZoneKind.ALNUM),
    Zone(F.NATIONALITY, 1, 10, 13, ZoneKind.CODE),
    Zone(F.DATE_OF_BIRTH, 1, 13, 19, ZoneKind.DATE),
    Zone(F.SEX, 1, 20, 21, ZoneKind.SEX),
    Zone(F.EXPIRY_DATE, 1, 21, 27, ZoneKind.DATE),
)
_COMMON_LINE2_DIGITS = (
    CheckDigitSpec("document number", ((1, 0, 9),), (1, 9), (F.DOCUMENT_NUMBER,)),
    CheckDigitSpec("date of birth", ((1, 13, 19),), (1, 19), (F.DATE_OF_BIRTH,)),
    CheckDigitSpec("expiry date", ((1, 21, 27),), (1, 27), (F.EXPIRY_DATE,)),
)

TD3_LAYOUT = MrzLayout(
    format=MrzFormat.TD3,
    line_lengths=(44, 44),
    zones=(
        *_TD3_LINE1,
        *_COMMON_LINE2,
        Zone(F.PERSONAL_NUMBER, 1, 28, 42, ZoneKind.ALNUM),
    ),
    check_digits=(
        *_COMMON_LINE2_DIGITS,
        CheckDigitSpec("personal number", ((1, 28, 42),), (1, 42), (F.PERSONAL_NUMBER,)),
        CheckDigitSpec(
            "composite",
            ((1, 0, 10), (1, 13, 20), (1, 21, 43)),
            (1, 43),
            (F.DOCUMENT_NUMBER, F.DATE_OF_BIRTH, F.EXPIRY_DATE, F.PERSONAL_NUMBER),
        ),
    ),
    rank=3,
    excluded_prefixes=("V",),
)

MRVA_LAYOUT = MrzLayout(
    format=MrzFormat.MRVA,
    line_lengths=(44, 44),
    zones=(
        *_TD3_LINE1,
        *_COMMON_LINE2,
        Zone(F.OPTIONAL_DATA, 1, 28, 44, ZoneKind.ALNUM),
    ),
    check_digits=_COMMON_LINE2_DIGITS,
    rank=1,
    prefix="V",
)

TD2_LAYOUT = MrzLayout(
    format=MrzFormat.TD2,
    line_lengths=(36, 36),
    zones=(
        *_TD2_LINE1,
        *_COMMON_LINE2,
        Zone(F.OPTIONAL_DATA, 1, 28, 35, ZoneKind.ALNUM),
    ),
    check_digits=(
        *_COMMON_LINE2_DIGITS,
        CheckDigitSpec(
            "composite",
            ((1, 0, 10), (1, 13, 20), (1, 21, 35)),
            (1, 35),
            (F.DOCUMENT_NUMBER, F.DATE_OF_BIRTH, F.EXPIRY_DATE, F.OPTIONAL_DATA),
        ),
    ),
    rank=2,
    excluded_prefixes=("V", "IDFRA"),
)

MRVB_LAYOUT = MrzLayout(
    format=MrzFormat.MRVB,
    line_lengths=(36, 36),
    zones=(
        *_TD2_LINE1,
        *_COMMON_LINE2,
        Zone(F.OPTIONAL_DATA, 1, 28, 36, ZoneKind.ALNUM),
    ),
    check_digits=_COMMON_LINE2_DIGITS,
    rank=2,
    prefix="V",
)

TD1_LAYOUT = MrzLayout(
    format=MrzFormat.TD1,
    line_lengths=(30, 30, 30),
    zones=(
        Zone(F.DOCUMENT_TYPE, 0, 0, 2, ZoneKind.ALNUM),
        Zone(F.ISSUING_STATE, 0, 2, 5, ZoneKind.CODE),
        Zone(F.DOCUMENT_NUMBER, 0, 5, 14, ZoneKind.ALNUM),
        Zone(F.OPTIONAL_DATA, 0, 15, 30, ZoneKind.ALNUM),
        Zone(F.DATE_OF_BIRTH, 1, 0, 6, ZoneKind.DATE),
        Zone(F.SEX, 1, 7, 8, ZoneKind.SEX),
        Zone(F.EXPIRY_DATE, 1, 8, 14, ZoneKind.DATE),
        Zone(F.NATIONALITY, 1, 15, 18, ZoneKind.CODE),
        Zone(F.PERSONAL_NUMBER, 1, 18, 29, ZoneKind.ALNUM),
        Zone(F.SURNAME, 2, 0, 30, ZoneKind.NAME),
    ),
    check_digits=(
        CheckDigitSpec("document number", ((0, 5, 14),), (0, 14), (F.DOCUMENT_NUMBER,)),
        CheckDigitSpec("date of birth", ((1, 0, 6),), (1, 6), (F.DATE_OF_BIRTH,)),
        CheckDigitSpec("expiry date", ((1, 8, 14),), (1, 14), (F.EXPIRY_DATE,)),
        CheckDigitSpec(
            "composite",
            ((0, 5, 30), (1, 0, 7), (1, 8, 15), (1, 18, 29)),
            (1, 29),
            (
                F.DOCUMENT_NUMBER,
                F.OPTIONAL_DATA,
                F.DATE_OF_BIRTH,
                F.EXPIRY_DATE,
                F.PERSONAL_NUMBER,
            ),
        ),
    ),
    rank=1,
)

FRENCH_NATIONAL_ID_LAYOUT = MrzLayout(
    format=MrzFormat.FRENCH_NATIONAL_ID,
    line_lengths=(36, 36),
    zones=(
        Zone(F.DOCUMENT_TYPE, 0, 0, 2, ZoneKind.ALNUM),
        Zone(F.ISSUING_STATE, 0, 2, 5, ZoneKind.CODE),
        Zone(F.SURNAME, 0, 5, 30, ZoneKind.TEXT),
        Zone(F.OPTIONAL_DATA, 0, 30, 36, ZoneKind.ALNUM),
        Zone(F.DOCUMENT_NUMBER, 1, 0, 12, ZoneKind.ALNUM),
        Zone(F.GIVEN_NAMES, 1, 13, 27, ZoneKind.TEXT),
        Zone(F.DATE_OF_BIRTH, 1, 27, 33, ZoneKind.DATE),
        Zone(F.SEX, 1, 34, 35, ZoneKind.SEX),
    ),
    check_digits=(
        CheckDigitSpec("document number", ((1, 0, 12),), (1, 12), (F.DOCUMENT_NUMBER,)),
        CheckDigitSpec("date of birth", ((1, 27, 33),), (1, 33), (F.DATE_OF_BIRTH,)),
        CheckDigitSpec(
            "composite",
            ((0, 0, 36), (1, 0, 35)),
            (1, 35),
            (
                F.DOCUMENT_NUMBER,
                F.DATE_OF_BIRTH,
                F.SURNAME,
                F.GIVEN_NAMES,
                F.SEX,
                F.OPTIONAL_DATA,
            ),
        ),
    ),
    rank=2,
    prefix="IDFRA",
    inferred=((F.NATIONALITY, F.ISSUING_STATE),),
)

FRENCH_DRIVING_LICENSE_LAYOUT = MrzLayout(
    format=MrzFormat.FRENCH_DRIVING_LICENSE,
    line_lengths=(30,),
    zones=(
        Zone(F.DOCUMENT_TYPE, 0, 0, 2, ZoneKind.ALNUM),
        Zone(F.ISSUING_STATE, 0, 2, 5, ZoneKind.CODE),
        Zone(F.DOCUMENT_NUMBER, 0, 5, 14, ZoneKind.ALNUM),
        Zone(F.ISSUE_DATE, 0, 15, 21, ZoneKind.DATE),
        Zone(F.SURNAME, 0, 21, 29, ZoneKind.TEXT),
    ),
    check_digits=(
        CheckDigitSpec("document number", ((0, 5, 14),), (0, 14), (F.DOCUMENT_NUMBER,)),
        CheckDigitSpec(
            "composite",
            ((0, 0, 29),),
            (0, 29),
            (F.DOCUMENT_NUMBER, F.ISSUE_DATE, F.SURNAME),
        ),
    ),
    rank=0,
    prefix="D1",
)

SWISS_DRIVING_LICENSE_LAYOUT = MrzLayout(
    format=MrzFormat.SWISS_DRIVING_LICENSE,
    line_lengths=(9, 30, 30),
    zones=(
        Zone(F.DOCUMENT_NUMBER, 0, 0, 9, ZoneKind.ALNUM),
        Zone(F.DOCUMENT_TYPE, 1, 0, 2, ZoneKind.ALNUM),
        Zone(F.ISSUING_STATE, 1, 2, 5, ZoneKind.CODE),
        Zone(F.PERSONAL_NUMBER, 1, 5, 14, ZoneKind.ALNUM),
        Zone(F.OPTIONAL_DATA, 1, 14, 17, ZoneKind.ALNUM),
        Zone(F.DATE_OF_BIRTH, 1, 17, 23, ZoneKind.DATE),
        Zone(F.SURNAME, 2, 0, 30, ZoneKind.NAME),
    ),
    rank=0,
)

# Classification order: prefixed layouts before the generic ones sharing their lengths
LAYOUTS: tuple[MrzLayout, ...] = (
    TD3_LAYOUT,
    MRVA_LAYOUT,
    FRENCH_NATIONAL_ID_LAYOUT,
    MRVB_LAYOUT,
    TD2_LAYOUT,
    TD1_LAYOUT,
    FRENCH_DRIVING_LICENSE_LAYOUT,
    SWISS_DRIVING_LICENSE_LAYOUT,
)

LAYOUTS_BY_FORMAT: dict[MrzFormat, MrzLayout] = {layout.format: layout for layout in LAYOUTS}


def classify(lines: Sequence[str]) -> MrzLayout | None:
    """Return the layout whose signature the normalised lines match, if any."""
    for layout in LAYOUTS:
        if layout.matches(lines):
            return layout
    return None
