"""Eligibility decision and recommended actions derived from the check sequence."""

from __future__ import annotations

import math
from collections.abc import Sequence

from docverify.config import Settings, settings as default_settings
from docverify.models.report import CheckStatus, DecisionStatus, EligibilityDecision, ValidationCheck

LOW_CONFIDENCE_REASON = "Overall confidence below {threshold}; a person should review the extracted data"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def decide(checks: Sequence[ValidationCheck], *, config: Settings | None = None) -> EligibilityDecision:
    """
    Aggregate checks into one decision.

    Any failure rejects. Any warning, unknown or low-confidence check sends the
    application to manual review. Only a clean, confident sequence is approved.
    """
    config = config or default_settings
    if not checks:
        return EligibilityDecision(status=DecisionStatus.UNKNOWN, reasons=[], confidence=0)

    confidence = _round_half_up(sum(c.confidence for c in checks) / len(checks))

    failed = [c.label for c in checks if c.status is CheckStatus.FAIL]
    if failed:
        return EligibilityDecision(status=DecisionStatus.REJECTED, reasons=failed, confidence=confidence)

    threshold = config.LOW_CONFIDENCE_THRESHOLD
    reasons = [c.label for c in checks if c.status in (CheckStatus.WARNING, CheckStatus.UNKNOWN)]
    if min(c.confidence for c in checks) < threshold:
        reasons.append(LOW_CONFIDENCE_REASON.format(threshold=threshold))
    if reasons:
        return EligibilityDecision(status=DecisionStatus.MANUAL_REVIEW, reasons=reasons, confidence=confidence)

    return EligibilityDecision(status=DecisionStatus.APPROVED, reasons=[], confidence=confidence)


REMEDIATIONS: dict[tuple[str, CheckStatus], str] = {
    ("mrz_checksum", CheckStatus.FAIL): "Re-scan document with a sharper, glare-free MRZ image",
    ("mrz_checksum", CheckStatus.WARNING): "Upload a clear image of the document page that carries the MRZ",
    ("passport_validity", CheckStatus.FAIL): "Renew the passport before applying",
    ("passport_validity", CheckStatus.WARNING): "Confirm the passport expiry date manually",
    ("applicant_age", CheckStatus.FAIL): "Applicant does not meet the minimum age; apply with a guardian or a different visa category",
    ("applicant_age", CheckStatus.WARNING): "Confirm the date of birth manually",
    ("visa_type_supported", CheckStatus.FAIL): "Select a supported visa type",
    ("nationality_blacklist", CheckStatus.FAIL): "Refer the application to the consular office for nationality restrictions",
    ("name_match", CheckStatus.FAIL): "Correct the applicant name to match the travel document",
    ("name_match", CheckStatus.WARNING): "Verify the applicant name against the travel document",
    ("passport_number_match", CheckStatus.FAIL): "Correct the passport number to match the travel document",
    ("passport_number_match", CheckStatus.WARNING): "Verify the passport number against the travel document",
}


def recommend_actions(checks: Sequence[ValidationCheck]) -> list[str]:
    """One remediation per failing or warning check, in check order, without duplicates."""
    actions: list[str] = []
    for check in checks:
        if check.status not in (CheckStatus.FAIL, CheckStatus.WARNING):
            continue
        action = REMEDIATIONS.get((check.id, check.status))
        if action and action not in actions:
            actions.append(action)
    return actions
