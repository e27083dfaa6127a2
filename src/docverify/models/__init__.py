"""Pydantic models for the verification engine."""

from docverify.models.fields import (
    CORE_FIELDS,
    FIELD_LABELS,
    DocumentSource,
    ExtractedField,
    FieldId,
    FieldSource,
    RawDocument,
    field_label,
)
from docverify.models.mrz import CheckDigitResult, MrzBlock, MrzFormat
from docverify.models.policy import DEFAULT_POLICY, ApplicantProfile, EligibilityPolicy, load_policy
from docverify.models.report import (
    BarcodeResult,
    CheckStatus,
    DecisionStatus,
    EligibilityDecision,
    ValidationCheck,
    VerificationResponse,
)

__all__ = [
    "CORE_FIELDS",
    "DEFAULT_POLICY",
    "FIELD_LABELS",
    "ApplicantProfile",
    "BarcodeResult",
    "CheckDigitResult",
    "CheckStatus",
    "DecisionStatus",
    "DocumentSource",
    "EligibilityDecision",
    "EligibilityPolicy",
    "ExtractedField",
    "FieldId",
    "FieldSource",
    "MrzBlock",
    "MrzFormat",
    "RawDocument",
    "ValidationCheck",
    "VerificationResponse",
    "field_label",
    "load_policy",
]
