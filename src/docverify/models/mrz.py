"""MRZ block models."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from docverify.models.fields import ContractModel, ExtractedField


class MrzFormat(str, Enum):
    """Supported MRZ layouts (ICAO 9303 plus national fixed layouts)."""

    TD1 = "TD1"  # 3 lines, 30 chars each (ID cards)
    TD2 = "TD2"  # 2 lines, 36 chars each (older ID / travel documents)
    TD3 = "TD3"  # 2 lines, 44 chars each (passports)
    MRVA = "MRVA"  # 2 lines, 44 chars each (visa sticker type A)
    MRVB = "MRVB"  # 2 lines, 36 chars each (visa sticker type B)
    FRENCH_NATIONAL_ID = "FRENCH_NATIONAL_ID"  # 2 lines, 36 chars each
    FRENCH_DRIVING_LICENSE = "FRENCH_DRIVING_LICENSE"  # 1 line, 30 chars
    SWISS_DRIVING_LICENSE = "SWISS_DRIVING_LICENSE"  # 3 lines: 9, 30, 30 chars
    UNKNOWN = "unknown"


class CheckDigitResult(ContractModel):
    name: str
    expected: str
    actual: str
    valid: bool


class MrzBlock(ContractModel):
    format: MrzFormat = MrzFormat.UNKNOWN
    lines: list[str] = Field(default_factory=list)
    fields: dict[str, ExtractedField] = Field(default_factory=dict)
    checksum_valid: bool = False
    check_digits: list[CheckDigitResult] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> MrzBlock:
        return cls(format=MrzFormat.UNKNOWN, lines=[], fields={}, checksum_valid=False)

    @property
    def detected(self) -> bool:
        return self.format is not MrzFormat.UNKNOWN
