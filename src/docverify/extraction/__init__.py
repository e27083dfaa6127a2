"""Field extraction from printed text and decoded barcodes."""

from docverify.extraction.barcode import BarcodeParser
from docverify.extraction.dates import find_date, parse_iso_date
from docverify.extraction.free_text import FreeTextExtractor

__all__ = ["BarcodeParser", "FreeTextExtractor", "find_date", "parse_iso_date"]
