"""
Travel document verification engine.

Extracts identity fields from OCR text, MRZ lines and decoded barcodes,
validates ICAO 9303 check digits, reconciles sources and decides applicant
eligibility against a policy.
"""

from docverify.engine import VerificationEngine, evaluate, evaluate_sync
from docverify.models import (
    DEFAULT_POLICY,
    ApplicantProfile,
    EligibilityPolicy,
    RawDocument,
    VerificationResponse,
)

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_POLICY",
    "ApplicantProfile",
    "EligibilityPolicy",
    "RawDocument",
    "VerificationEngine",
    "VerificationResponse",
    "evaluate",
    "evaluate_sync",
]
