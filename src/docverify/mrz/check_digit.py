"""
ICAO Doc 9303 check digit arithmetic.

Each character maps to a value (digits as themselves, A-Z as 10-35, the
filler ``<`` as 0), values are weighted 7, 3, 1 repeating from the first
character and the check digit is the weighted sum modulo 10.
"""

from __future__ import annotations

CHECK_DIGIT_WEIGHTS = (7, 3, 1)
MRZ_CHARACTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789<"


def character_value(char: str) -> int:
    if char.isdigit():
        return int(char)
    if "A" <= char <= "Z":
        return ord(char) - ord("A") + 10
    # Filler and anything OCR let through outside the MRZ alphabet
    return 0


def calculate_check_digit(data: str) -> str:
    """
    Calculate the check digit for an MRZ segment.

    Args:
        data: Segment characters, fillers included

    Returns:
        Single character check digit
    """
    total = 0
    for i, char in enumerate(data.upper()):
        total += character_value(char) * CHECK_DIGIT_WEIGHTS[i % 3]
    return str(total % 10)


def validate_check_digit(data: str, check_digit: str) -> bool:
    """
    Validate a check digit against its segment.

    A filler in the check digit position is only accepted after an empty
    field (all fillers), where ICAO allows it in place of ``0``.
    """
    if check_digit == "<" and data and set(data) == {"<"}:
        check_digit = "0"
    return calculate_check_digit(data) == check_digit
