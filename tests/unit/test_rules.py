"""Tests for the ordered validation rule table."""

import time
from datetime import date

import pytest

from docverify.config import settings
from docverify.models import (
    ApplicantProfile,
    CheckStatus,
    EligibilityPolicy,
    ExtractedField,
    FieldSource,
    MrzBlock,
)
from docverify.mrz.decoder import decode
from docverify.mrz.layouts import classify
from docverify.rules import RULES, RuleContext, age_on, run_rules
from tests.generators.mrz_generator import ICAO_TD3_SAMPLE, flip_digit

TODAY = date(2025, 6, 1)


def ocr(value, confidence=90, label="Field"):
    return ExtractedField(label=label, value=value, confidence=confidence, source=FieldSource.OCR)


def context(fields=None, applicant=None, policy=None, **kwargs):
    return RuleContext(
        fields=fields or {},
        applicant=applicant or ApplicantProfile(intended_travel_date="2025-06-01"),
        policy=policy or EligibilityPolicy(),
        evaluation_date=TODAY,
        **kwargs,
    )


def check(ctx, check_id):
    checks = {c.id: c for c in run_rules(ctx)}
    return checks.get(check_id)


def _block(lines):
    return decode(classify(lines), lines, reference=TODAY)


def test_rule_order():
    assert [rule.id for rule in RULES] == [
        "mrz_checksum",
        "passport_validity",
        "applicant_age",
        "visa_type_supported",
        "nationality_blacklist",
        "name_match",
        "passport_number_match",
    ]


class TestMrzChecksum:
    def test_valid_block_passes(self):
        result = check(context(mrz=_block(ICAO_TD3_SAMPLE)), "mrz_checksum")

        assert result.status is CheckStatus.PASS
        assert result.confidence == 100

    def test_invalid_block_fails(self):
        result = check(context(mrz=_block(flip_digit(ICAO_TD3_SAMPLE, 1, 9))), "mrz_checksum")

        assert result.status is CheckStatus.FAIL
        assert result.confidence == 40
        assert "document number (expected 6, found 0)" in result.details

    def test_degraded_mrz_warns(self):
        result = check(context(mrz=MrzBlock.empty(), mrz_degraded=True), "mrz_checksum")

        assert result.status is CheckStatus.WARNING

    def test_omitted_without_any_mrz(self):
        assert check(context(mrz=None), "mrz_checksum") is None

    def test_required_but_missing_warns(self):
        ctx = context(mrz=None, policy=EligibilityPolicy(require_mrz=True))

        assert check(ctx, "mrz_checksum").status is CheckStatus.WARNING


class TestPassportValidity:
    def test_expired_before_travel_fails(self):
        result = check(context({"expiryDate": ocr("2024-01-01")}), "passport_validity")

        assert result.status is CheckStatus.FAIL
        assert "2024-01-01" in result.details
        assert "travel date 2025-06-01" in result.details

    def test_enough_validity_passes(self):
        result = check(context({"expiryDate": ocr("2026-01-01")}), "passport_validity")

        assert result.status is CheckStatus.PASS
        assert result.confidence == 90

    def test_exactly_minimum_validity_passes(self):
        # 2025-06-01 + 180 days
        result = check(context({"expiryDate": ocr("2025-11-28")}), "passport_validity")

        assert result.status is CheckStatus.PASS

    def test_low_confidence_warns_instead_of_failing(self):
        result = check(context({"expiryDate": ocr("2024-01-01", confidence=40)}), "passport_validity")

        assert result.status is CheckStatus.WARNING
        assert result.confidence == 40

    def test_missing_expiry_is_unknown(self):
        assert check(context(), "passport_validity").status is CheckStatus.UNKNOWN

    def test_unreadable_expiry_warns(self):
        result = check(context({"expiryDate": ocr("3O12X1")}), "passport_validity")

        assert result.status is CheckStatus.WARNING

    def test_missing_travel_date_uses_evaluation_date(self):
        ctx = context({"expiryDate": ocr("2025-08-01")}, applicant=ApplicantProfile())
        result = check(ctx, "passport_validity")

        assert result.status is CheckStatus.FAIL
        assert "no usable travel date" in result.details

    def test_policy_minimum(self):
        ctx = context({"expiryDate": ocr("2025-08-01")}, policy=EligibilityPolicy(min_passport_validity_days=30))

        assert check(ctx, "passport_validity").status is CheckStatus.PASS


class TestApplicantAge:
    def test_minor_fails(self):
        result = check(context({"dateOfBirth": ocr("2010-01-01")}), "applicant_age")

        assert result.status is CheckStatus.FAIL
        assert "is 15" in result.details

    def test_adult_passes(self):
        assert check(context({"dateOfBirth": ocr("1974-08-12")}), "applicant_age").status is CheckStatus.PASS

    def test_low_confidence_warns(self):
        ctx = context({"dateOfBirth": ocr("2010-01-01", confidence=59)})

        assert check(ctx, "applicant_age").status is CheckStatus.WARNING

    def test_missing_is_unknown(self):
        assert check(context(), "applicant_age").status is CheckStatus.UNKNOWN


def test_age_on():
    assert age_on(date(2000, 6, 2), date(2025, 6, 1)) == 24
    assert age_on(date(2000, 6, 1), date(2025, 6, 1)) == 25


class TestApplicantOnlyRules:
    @pytest.mark.parametrize(
        ("visa_type", "status"),
        [("Tourist", CheckStatus.PASS), ("work", CheckStatus.FAIL), (None, CheckStatus.UNKNOWN)],
    )
    def test_visa_type_supported(self, visa_type, status):
        result = check(context(applicant=ApplicantProfile(visa_type=visa_type)), "visa_type_supported")

        assert result.status is status
        assert result.confidence == 100

    @pytest.mark.parametrize(
        ("nationality", "status"),
        [("IRN", CheckStatus.FAIL), ("irn", CheckStatus.FAIL), ("UTO", CheckStatus.PASS), (None, CheckStatus.UNKNOWN)],
    )
    def test_nationality_blacklist(self, nationality, status):
        ctx = context(
            applicant=ApplicantProfile(nationality=nationality),
            policy=EligibilityPolicy(blacklisted_nationalities=["IRN", "PRK"]),
        )

        assert check(ctx, "nationality_blacklist").status is status


class TestNameMatch:
    fields = {
        "surname": ocr("ERIKSSON", 100),
        "givenNames": ocr("ANNA MARIA", 80),
    }

    def test_token_order_and_case_insensitive(self):
        ctx = context(self.fields, applicant=ApplicantProfile(name="anna maria Eriksson"))
        result = check(ctx, "name_match")

        assert result.status is CheckStatus.PASS
        assert result.confidence == 80

    def test_diacritic_insensitive_full_name(self):
        ctx = context({"fullName": ocr("Zoë Ångström", 70)}, applicant=ApplicantProfile(name="ANGSTROM ZOE"))

        assert check(ctx, "name_match").status is CheckStatus.PASS

    def test_mismatch_fails_when_required(self):
        ctx = context(self.fields, applicant=ApplicantProfile(name="Jane Doe"))
        result = check(ctx, "name_match")

        assert result.status is CheckStatus.FAIL
        assert "Jane Doe" in result.details
        assert "ERIKSSON ANNA MARIA" in result.details

    def test_mismatch_warns_when_not_required(self):
        ctx = context(
            self.fields,
            applicant=ApplicantProfile(name="Jane Doe"),
            policy=EligibilityPolicy(require_name_match=False),
        )

        assert check(ctx, "name_match").status is CheckStatus.WARNING

    def test_no_document_name_is_unknown(self):
        ctx = context(applicant=ApplicantProfile(name="Jane Doe"))

        assert check(ctx, "name_match").status is CheckStatus.UNKNOWN


class TestPassportNumberMatch:
    def test_match_ignores_case_and_separators(self):
        ctx = context({"documentNumber": ocr("L898902C3")}, applicant=ApplicantProfile(passport_number="l898 902-c3"))

        assert check(ctx, "passport_number_match").status is CheckStatus.PASS

    def test_mismatch_fails_when_required(self):
        ctx = context({"documentNumber": ocr("L898902C3")}, applicant=ApplicantProfile(passport_number="X1234567"))

        assert check(ctx, "passport_number_match").status is CheckStatus.FAIL

    def test_mismatch_warns_when_not_required(self):
        ctx = context(
            {"documentNumber": ocr("L898902C3")},
            applicant=ApplicantProfile(passport_number="X1234567"),
            policy=EligibilityPolicy(require_passport_match=False),
        )

        assert check(ctx, "passport_number_match").status is CheckStatus.WARNING

    def test_missing_document_number_is_unknown(self):
        ctx = context(applicant=ApplicantProfile(passport_number="X1234567"))

        assert check(ctx, "passport_number_match").status is CheckStatus.UNKNOWN


def test_checks_follow_rule_order():
    ctx = context({"expiryDate": ocr("2030-01-01")}, mrz=_block(ICAO_TD3_SAMPLE))

    assert [c.id for c in run_rules(ctx)] == [rule.id for rule in RULES]


def test_rules_after_deadline_are_not_evaluated():
    ctx = context({"expiryDate": ocr("2030-01-01")})
    checks = run_rules(ctx, deadline=time.monotonic() - 1)

    assert len(checks) == len(RULES)
    assert {c.status for c in checks} == {CheckStatus.UNKNOWN}
    assert all(c.details.startswith("Not evaluated") for c in checks)


def test_context_defaults_to_service_settings():
    ctx = RuleContext(
        fields={},
        applicant=ApplicantProfile(),
        policy=EligibilityPolicy(),
        evaluation_date=TODAY,
    )

    assert ctx.config is settings
    assert ctx.mrz is None
    assert not ctx.mrz_degraded
