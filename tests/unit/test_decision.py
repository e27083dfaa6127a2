import pytest

from docverify.decision import decide, recommend_actions
from docverify.models import CheckStatus, DecisionStatus, ValidationCheck


def make_check(check_id="visa_type_supported", status=CheckStatus.PASS, confidence=100, label=None):
    return ValidationCheck(
        id=check_id,
        label=label or check_id.replace("_", " ").capitalize(),
        status=status,
        details="",
        confidence=confidence,
    )


ALL_PASS = [
    make_check("mrz_checksum"),
    make_check("passport_validity", confidence=90),
    make_check("applicant_age", confidence=90),
    make_check("name_match", confidence=70),
]


def test_no_checks_is_unknown():
    decision = decide([])

    assert decision.status is DecisionStatus.UNKNOWN
    assert decision.reasons == []
    assert decision.confidence == 0


def test_all_pass_is_approved():
    decision = decide(ALL_PASS)

    assert decision.status is DecisionStatus.APPROVED
    assert decision.reasons == []
    assert decision.confidence == 88


def test_any_fail_rejects():
    decision = decide([*ALL_PASS, make_check("passport_validity", CheckStatus.FAIL, label="Passport validity")])

    assert decision.status is DecisionStatus.REJECTED
    assert decision.reasons == ["Passport validity"]


def test_fail_outranks_warning():
    checks = [
        make_check("name_match", CheckStatus.WARNING),
        make_check("nationality_blacklist", CheckStatus.FAIL, label="Nationality eligibility"),
    ]

    assert decide(checks).status is DecisionStatus.REJECTED
    assert decide(checks).reasons == ["Nationality eligibility"]


@pytest.mark.parametrize("status", [CheckStatus.WARNING, CheckStatus.UNKNOWN])
def test_warning_or_unknown_needs_review(status):
    decision = decide([*ALL_PASS, make_check("name_match", status, label="Name match")])

    assert decision.status is DecisionStatus.MANUAL_REVIEW
    assert decision.reasons == ["Name match"]


def test_low_confidence_pass_needs_review():
    decision = decide([*ALL_PASS, make_check("applicant_age", confidence=59)])

    assert decision.status is DecisionStatus.MANUAL_REVIEW
    assert decision.reasons == ["Overall confidence below 60; a person should review the extracted data"]


def test_confidence_rounds_half_up():
    assert decide([make_check(confidence=100), make_check(confidence=45)]).confidence == 73


def test_adding_a_failure_only_moves_approved_to_rejected():
    assert decide(ALL_PASS).status is DecisionStatus.APPROVED
    for check_id in ("mrz_checksum", "applicant_age", "visa_type_supported"):
        checks = [*ALL_PASS, make_check(check_id, CheckStatus.FAIL)]
        assert decide(checks).status is DecisionStatus.REJECTED


def test_recommended_actions_follow_check_order():
    checks = [
        make_check("mrz_checksum", CheckStatus.FAIL),
        make_check("passport_validity", CheckStatus.PASS),
        make_check("name_match", CheckStatus.WARNING),
    ]

    assert recommend_actions(checks) == [
        "Re-scan document with a sharper, glare-free MRZ image",
        "Verify the applicant name against the travel document",
    ]


def test_no_actions_for_pass_or_unknown():
    checks = [make_check("name_match"), make_check("applicant_age", CheckStatus.UNKNOWN)]

    assert recommend_actions(checks) == []


def test_duplicate_actions_suppressed():
    checks = [make_check("mrz_checksum", CheckStatus.FAIL), make_check("mrz_checksum", CheckStatus.FAIL)]

    assert recommend_actions(checks) == ["Re-scan document with a sharper, glare-free MRZ image"]
