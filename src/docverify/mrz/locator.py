"""
MRZ line locator and format classifier.

Scans raw OCR lines for contiguous runs of MRZ-alphabet lines, tries every
layout signature against every window of every run, repairs common OCR
confusions inside numeric and country-code zones, and keeps the best decoded
candidate.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from docverify.config import Settings
from docverify.models.mrz import MrzBlock
from docverify.mrz.decoder import decode
from docverify.mrz.layouts import LAYOUTS, MrzLayout, ZoneKind

logger = logging.getLogger(__name__)

MRZ_LINE_PATTERN = re.compile(r"^[A-Z0-9<]+$")

# A line this long with several fillers looks like MRZ even when OCR damaged it
_DEGRADED_MIN_LENGTH = 20
_DEGRADED_MIN_FILLERS = 3

_TO_DIGITS = str.maketrans({"O": "0", "I": "1", "S": "5"})
_TO_LETTERS = str.maketrans({"0": "O", "1": "I", "5": "S"})


@dataclass(frozen=True)
class LocateResult:
    block: MrzBlock
    # indexes of the OCR lines the selected block was read from
    line_indexes: tuple[int, ...] = ()
    # MRZ-looking lines were present but no layout could be read from them
    degraded: bool = False


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", "", line).upper()


def _looks_like_mrz(normalized: str) -> bool:
    return len(normalized) >= _DEGRADED_MIN_LENGTH and normalized.count("<") >= _DEGRADED_MIN_FILLERS


def find_runs(lines: Sequence[str]) -> list[list[tuple[int, str]]]:
    """Group consecutive MRZ-alphabet lines as ``(original index, normalised line)`` runs."""
    runs: list[list[tuple[int, str]]] = []
    current: list[tuple[int, str]] = []
    for index, line in enumerate(lines):
        normalized = normalize_line(line)
        if normalized and MRZ_LINE_PATTERN.match(normalized):
            current.append((index, normalized))
            continue
        if current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def repair_confusions(layout: MrzLayout, lines: Sequence[str]) -> list[str]:
    """Undo O/0, I/1, S/5 confusions inside numeric and country-code zones only."""
    chars = [list(line) for line in lines]

    def _apply(line: int, start: int, end: int, table: dict[int, str]) -> None:
        segment = "".join(chars[line][start:end]).translate(table)
        chars[line][start:end] = list(segment)

    for zone in layout.zones:
        if zone.kind is ZoneKind.DATE:
            _apply(zone.line, zone.start, zone.end, _TO_DIGITS)
        elif zone.kind is ZoneKind.CODE:
            _apply(zone.line, zone.start, zone.end, _TO_LETTERS)
    for spec in layout.check_digits:
        line, index = spec.digit
        _apply(line, index, index + 1, _TO_DIGITS)

    return ["".join(line) for line in chars]


def _candidates(runs: list[list[tuple[int, str]]]):
    for run in runs:
        for layout in LAYOUTS:
            size = layout.line_count
            for offset in range(len(run) - size + 1):
                window = run[offset : offset + size]
                normalized = [line for _, line in window]
                if layout.matches(normalized):
                    yield layout, tuple(index for index, _ in window), normalized


def locate(
    lines: Sequence[str],
    *,
    config: Settings | None = None,
    reference: date | None = None,
) -> LocateResult:
    """
    Find and decode the best MRZ block in OCR output.

    Preference: checksum-valid blocks first, then format rank (TD3 over
    TD2/MRVB over TD1/MRVA), then the earliest block in the text.
    """
    runs = find_runs(lines)

    best: tuple[tuple[bool, int, int], MrzBlock, tuple[int, ...]] | None = None
    for layout, indexes, normalized in _candidates(runs):
        block = decode(layout, repair_confusions(layout, normalized), config=config, reference=reference)
        key = (block.checksum_valid, layout.rank, -indexes[0])
        logger.debug(
            "MRZ candidate %s at line %d (checksum valid: %s)",
            layout.format.value,
            indexes[0],
            block.checksum_valid,
        )
        if best is None or key > best[0]:
            best = (key, block, indexes)

    if best is not None:
        return LocateResult(block=best[1], line_indexes=best[2])

    degraded = any(_looks_like_mrz(normalize_line(line)) for line in lines)
    if degraded:
        logger.info("MRZ-like lines found but no supported layout could be read")
    return LocateResult(block=MrzBlock.empty(), degraded=degraded)
