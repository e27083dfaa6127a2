"""
Validation rule engine.

Rules are an ordered table: each entry names the check id, its label and an
evaluator that reads the reconciled fields, the applicant profile and the
policy. The order of the table is the order of the audit trail and of the
recommended actions.
"""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from dataclasses import field as dataclass_field
from datetime import date

from docverify.config import Settings, settings as default_settings
from docverify.extraction.dates import parse_iso_date
from docverify.models.fields import ExtractedField, FieldId
from docverify.models.mrz import MrzBlock
from docverify.models.policy import ApplicantProfile, EligibilityPolicy
from docverify.models.report import CheckStatus, ValidationCheck
from docverify.text import fold, name_tokens

logger = logging.getLogger(__name__)

# (status, details, confidence); None omits the check from the report
Outcome = tuple[CheckStatus, str, int]


@dataclass(frozen=True)
class RuleContext:
    fields: Mapping[str, ExtractedField]
    applicant: ApplicantProfile
    policy: EligibilityPolicy
    evaluation_date: date
    mrz: MrzBlock | None = None
    # MRZ-looking lines were seen but no layout could be read from them
    mrz_degraded: bool = False
    config: Settings = dataclass_field(default_factory=lambda: default_settings)

    def field(self, field_id: str) -> ExtractedField | None:
        field = self.fields.get(field_id)
        return field if field is not None and field.present else None

    def travel_date(self) -> tuple[date, str]:
        """Intended travel date, or the evaluation date with a note saying so."""
        declared = parse_iso_date(self.applicant.intended_travel_date)
        if declared is not None:
            return declared, f"travel date {declared.isoformat()}"
        return self.evaluation_date, (
            f"evaluation date {self.evaluation_date.isoformat()} (no usable travel date given)"
        )


@dataclass(frozen=True)
class Rule:
    id: str
    label: str
    evaluate: Callable[[RuleContext], Outcome | None]


def _mrz_checksum(ctx: RuleContext) -> Outcome | None:
    block = ctx.mrz
    if block is not None and block.detected:
        confidence = min((f.confidence for f in block.fields.values()), default=100)
        if not block.check_digits:
            return (
                CheckStatus.PASS,
                f"{block.format.value} MRZ read; this format carries no check digits",
                confidence,
            )
        if block.checksum_valid:
            return (
                CheckStatus.PASS,
                f"All {len(block.check_digits)} check digits valid in {block.format.value} MRZ",
                confidence,
            )
        failed = ", ".join(
            f"{r.name} (expected {r.expected}, found {r.actual})"
            for r in block.check_digits
            if not r.valid
        )
        return CheckStatus.FAIL, f"Check digit mismatch in {block.format.value} MRZ: {failed}", confidence
    if ctx.mrz_degraded:
        return CheckStatus.WARNING, "MRZ-like lines found but no supported MRZ layout could be read", 0
    if ctx.policy.require_mrz:
        return CheckStatus.WARNING, "No MRZ found on any document", 0
    return None


def _date_field_issue(field: ExtractedField, ctx: RuleContext) -> tuple[date | None, Outcome | None]:
    """Parse a date field; a low-confidence or unreadable value yields a warning."""
    parsed = parse_iso_date(field.value)
    if parsed is None:
        return None, (
            CheckStatus.WARNING,
            f"{field.label} '{field.value}' could not be read as a date",
            field.confidence,
        )
    if field.confidence < ctx.config.LOW_CONFIDENCE_THRESHOLD:
        return parsed, (
            CheckStatus.WARNING,
            f"{field.label} {parsed.isoformat()} read with low confidence ({field.confidence})",
            field.confidence,
        )
    return parsed, None


def _passport_validity(ctx: RuleContext) -> Outcome:
    expiry_field = ctx.field(FieldId.EXPIRY_DATE)
    if expiry_field is None:
        return CheckStatus.UNKNOWN, "Expiry date not found on any document", 0

    expiry, issue = _date_field_issue(expiry_field, ctx)
    if issue is not None:
        return issue

    travel, travel_note = ctx.travel_date()
    remaining = (expiry - travel).days
    minimum = ctx.policy.min_passport_validity_days
    details = (
        f"Document expires {expiry.isoformat()}, {remaining} days after {travel_note}; "
        f"{minimum} days required"
    )
    status = CheckStatus.PASS if remaining >= minimum else CheckStatus.FAIL
    return status, details, expiry_field.confidence


def age_on(birth: date, on: date) -> int:
    return on.year - birth.year - ((on.month, on.day) < (birth.month, birth.day))


def _applicant_age(ctx: RuleContext) -> Outcome:
    birth_field = ctx.field(FieldId.DATE_OF_BIRTH)
    if birth_field is None:
        return CheckStatus.UNKNOWN, "Date of birth not found on any document", 0

    birth, issue = _date_field_issue(birth_field, ctx)
    if issue is not None:
        return issue

    travel, travel_note = ctx.travel_date()
    age = age_on(birth, travel)
    minimum = ctx.policy.min_applicant_age
    details = f"Applicant born {birth.isoformat()} is {age} on {travel_note}; minimum age {minimum}"
    status = CheckStatus.PASS if age >= minimum else CheckStatus.FAIL
    return status, details, birth_field.confidence


def _visa_type_supported(ctx: RuleContext) -> Outcome:
    visa_type = (ctx.applicant.visa_type or "").strip()
    if not visa_type:
        return CheckStatus.UNKNOWN, "Applicant did not declare a visa type", 100
    supported = ctx.policy.supported_visa_types
    if visa_type.casefold() in {v.casefold() for v in supported}:
        return CheckStatus.PASS, f"Visa type '{visa_type}' is supported", 100
    return (
        CheckStatus.FAIL,
        f"Visa type '{visa_type}' is not one of: {', '.join(supported) or 'none'}",
        100,
    )


def _nationality_blacklist(ctx: RuleContext) -> Outcome:
    nationality = (ctx.applicant.nationality or "").strip()
    if not nationality:
        return CheckStatus.UNKNOWN, "Applicant did not declare a nationality", 100
    if nationality.casefold() in {n.casefold() for n in ctx.policy.blacklisted_nationalities}:
        return CheckStatus.FAIL, f"Nationality '{nationality}' is not eligible under this policy", 100
    return CheckStatus.PASS, f"Nationality '{nationality}' is not restricted", 100


def _document_name(ctx: RuleContext) -> tuple[str, int] | None:
    surname = ctx.field(FieldId.SURNAME)
    given_names = ctx.field(FieldId.GIVEN_NAMES)
    if surname is not None or given_names is not None:
        parts = [f for f in (surname, given_names) if f is not None]
        return " ".join(f.value for f in parts), min(f.confidence for f in parts)
    full_name = ctx.field(FieldId.FULL_NAME)
    if full_name is not None:
        return full_name.value, full_name.confidence
    return None


def _mismatch_status(required: bool) -> CheckStatus:
    return CheckStatus.FAIL if required else CheckStatus.WARNING


def _name_match(ctx: RuleContext) -> Outcome:
    declared = (ctx.applicant.name or "").strip()
    if not declared:
        return CheckStatus.UNKNOWN, "Applicant did not declare a name", 100
    document = _document_name(ctx)
    if document is None:
        return CheckStatus.UNKNOWN, "No name found on any document", 0

    document_name, confidence = document
    if name_tokens(declared) == name_tokens(document_name):
        return CheckStatus.PASS, f"Declared name '{declared}' matches document name '{document_name}'", confidence
    return (
        _mismatch_status(ctx.policy.require_name_match),
        f"Declared name '{declared}' does not match document name '{document_name}'",
        confidence,
    )


def _alnum(value: str) -> str:
    return re.sub(r"[^0-9a-z]", "", fold(value))


def _passport_number_match(ctx: RuleContext) -> Outcome:
    declared = (ctx.applicant.passport_number or "").strip()
    if not declared:
        return CheckStatus.UNKNOWN, "Applicant did not declare a passport number", 100
    number = ctx.field(FieldId.DOCUMENT_NUMBER)
    if number is None:
        return CheckStatus.UNKNOWN, "Document number not found on any document", 0

    if _alnum(declared) == _alnum(number.value):
        return CheckStatus.PASS, f"Declared passport number '{declared}' matches '{number.value}'", number.confidence
    return (
        _mismatch_status(ctx.policy.require_passport_match),
        f"Declared passport number '{declared}' does not match document number '{number.value}'",
        number.confidence,
    )


RULES: tuple[Rule, ...] = (
    Rule("mrz_checksum", "MRZ checksum", _mrz_checksum),
    Rule("passport_validity", "Passport validity", _passport_validity),
    Rule("applicant_age", "Applicant age", _applicant_age),
    Rule("visa_type_supported", "Visa type supported", _visa_type_supported),
    Rule("nationality_blacklist", "Nationality eligibility", _nationality_blacklist),
    Rule("name_match", "Name match", _name_match),
    Rule("passport_number_match", "Passport number match", _passport_number_match),
)


def run_rules(
    ctx: RuleContext,
    *,
    rules: tuple[Rule, ...] = RULES,
    deadline: float | None = None,
) -> list[ValidationCheck]:
    """
    Evaluate every rule in order.

    Args:
        ctx: Reconciled fields, applicant, policy and evaluation date
        rules: Rule table to evaluate
        deadline: ``time.monotonic()`` value after which remaining rules are
            reported as ``unknown`` instead of evaluated

    Returns:
        One ValidationCheck per rule that applies, in table order
    """
    checks: list[ValidationCheck] = []
    for rule in rules:
        if deadline is not None and time.monotonic() >= deadline:
            outcome: Outcome | None = (
                CheckStatus.UNKNOWN,
                "Not evaluated: request time budget exhausted",
                0,
            )
        else:
            outcome = rule.evaluate(ctx)
        if outcome is None:
            continue
        status, details, confidence = outcome
        checks.append(
            ValidationCheck(
                id=rule.id,
                label=rule.label,
                status=status,
                details=details,
                confidence=max(0, min(100, confidence)),
            )
        )
        logger.debug("Check %s: %s", rule.id, status.value)
    return checks
