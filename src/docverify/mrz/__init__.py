"""Machine Readable Zone location, decoding and check digit verification."""

from docverify.mrz.check_digit import calculate_check_digit, validate_check_digit
from docverify.mrz.decoder import decode
from docverify.mrz.layouts import LAYOUTS, LAYOUTS_BY_FORMAT, MrzLayout, classify
from docverify.mrz.locator import LocateResult, locate

__all__ = [
    "LAYOUTS",
    "LAYOUTS_BY_FORMAT",
    "LocateResult",
    "MrzLayout",
    "calculate_check_digit",
    "classify",
    "decode",
    "locate",
    "validate_check_digit",
]
