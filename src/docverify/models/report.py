"""Verification report models: checks, decision and the response aggregate."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from docverify.models.fields import ContractModel, ExtractedField
from docverify.models.mrz import MrzBlock


class CheckStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARNING = "warning"
    UNKNOWN = "unknown"


class DecisionStatus(str, Enum):
    APPROVED = "approved"
    MANUAL_REVIEW = "manual_review"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


class ValidationCheck(ContractModel):
    id: str
    label: str
    status: CheckStatus
    details: str
    confidence: int = Field(ge=0, le=100)


class EligibilityDecision(ContractModel):
    status: DecisionStatus
    reasons: list[str] = Field(default_factory=list)
    confidence: int = Field(default=0, ge=0, le=100)


class BarcodeResult(ContractModel):
    raw: str | None = None
    parsed: dict[str, ExtractedField] = Field(default_factory=dict)


class VerificationResponse(ContractModel):
    summary: str
    overall_confidence: int = Field(ge=0, le=100)
    extracted_fields: dict[str, ExtractedField]
    mrz: MrzBlock | None = None
    barcode_data: BarcodeResult | None = None
    validation_checks: list[ValidationCheck]
    eligibility: EligibilityDecision
    recommended_actions: list[str]
    raw_ocr_text: str
    timing_ms: int = Field(ge=0)
