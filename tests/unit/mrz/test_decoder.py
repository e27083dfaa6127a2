"""Decoding tests for every supported MRZ layout."""

from datetime import date

import pytest

from docverify.config import Settings
from docverify.models import FieldSource, MrzFormat
from docverify.mrz.decoder import decode, parse_mrz_date, split_name
from docverify.mrz.layouts import LAYOUTS_BY_FORMAT, classify
from tests.generators.mrz_generator import (
    ICAO_TD3_SAMPLE,
    flip_digit,
    french_driving_license_line,
    french_id_lines,
    mrva_lines,
    mrvb_lines,
    swiss_driving_license_lines,
    td1_lines,
    td2_lines,
    td3_lines,
)

REFERENCE = date(2025, 6, 1)


def _decode(lines):
    layout = classify(lines)
    assert layout is not None
    return decode(layout, lines, reference=REFERENCE)


def _values(block):
    return {field_id: field.value for field_id, field in block.fields.items()}


def test_generator_reproduces_icao_specimens():
    assert td3_lines() == ICAO_TD3_SAMPLE
    assert td1_lines() == [
        "I<UTOD231458907<<<<<<<<<<<<<<<",
        "7408122F1204159UTO<<<<<<<<<<<6",
        "ERIKSSON<<ANNA<MARIA<<<<<<<<<<",
    ]
    assert td2_lines() == [
        "I<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<",
        "D231458907UTO7408122F1204159<<<<<<<6",
    ]


def test_valid_td3_mrz():
    block = _decode(ICAO_TD3_SAMPLE)

    assert block.format is MrzFormat.TD3
    assert block.checksum_valid
    assert _values(block) == {
        "documentType": "P",
        "issuingState": "UTO",
        "surname": "ERIKSSON",
        "givenNames": "ANNA MARIA",
        "documentNumber": "L898902C3",
        "nationality": "UTO",
        "dateOfBirth": "1974-08-12",
        "sex": "F",
        "expiryDate": "2012-04-15",
        "personalNumber": "ZE184226B",
    }
    assert all(field.confidence == 100 for field in block.fields.values())
    assert all(field.source is FieldSource.MRZ for field in block.fields.values())
    assert [result.name for result in block.check_digits] == [
        "document number",
        "date of birth",
        "expiry date",
        "personal number",
        "composite",
    ]


def test_flipped_document_number_digit_invalidates_mrz():
    block = _decode(flip_digit(ICAO_TD3_SAMPLE, 1, 9))

    assert not block.checksum_valid
    number = block.fields["documentNumber"]
    assert number.value == "L898902C3"
    assert number.confidence <= 40
    assert "Check digit mismatch in document number: expected 6, found 0" in number.issues
    assert number.checksum_failed


@pytest.mark.parametrize(
    ("index", "field_id"),
    [(19, "dateOfBirth"), (27, "expiryDate"), (42, "personalNumber"), (43, "documentNumber")],
)
def test_any_flipped_check_digit_invalidates_mrz(index, field_id):
    block = _decode(flip_digit(ICAO_TD3_SAMPLE, 1, index))

    assert not block.checksum_valid
    assert block.fields[field_id].confidence == 40
    assert any(issue.startswith("Check digit mismatch") for issue in block.fields[field_id].issues)


def test_invalid_confidence_comes_from_settings():
    layout = LAYOUTS_BY_FORMAT[MrzFormat.TD3]
    block = decode(
        layout,
        flip_digit(ICAO_TD3_SAMPLE, 1, 9),
        config=Settings(MRZ_INVALID_CONFIDENCE=25),
        reference=REFERENCE,
    )
    assert block.fields["documentNumber"].confidence == 25


def test_mrva_mrz():
    block = _decode(mrva_lines())

    assert block.format is MrzFormat.MRVA
    assert block.checksum_valid
    assert block.fields["dateOfBirth"].value == "1940-09-07"
    assert block.fields["expiryDate"].value == "2096-12-10"
    assert block.fields["optionalData"].value == "6ZE184226B"
    assert [result.name for result in block.check_digits] == [
        "document number",
        "date of birth",
        "expiry date",
    ]


def test_td2_mrz():
    block = _decode(td2_lines())

    assert block.format is MrzFormat.TD2
    assert block.checksum_valid
    assert block.fields["documentNumber"].value == "D23145890"
    assert block.fields["givenNames"].value == "ANNA MARIA"
    assert "optionalData" not in block.fields


def test_mrvb_mrz():
    block = _decode(mrvb_lines())

    assert block.format is MrzFormat.MRVB
    assert block.checksum_valid
    assert block.fields["documentType"].value == "V"


def test_td1_mrz():
    block = _decode(td1_lines(personal_number="AB1234"))

    assert block.format is MrzFormat.TD1
    assert block.checksum_valid
    assert block.fields["documentNumber"].value == "D23145890"
    assert block.fields["dateOfBirth"].value == "1974-08-12"
    assert block.fields["surname"].value == "ERIKSSON"
    assert block.fields["personalNumber"].value == "AB1234"
    assert block.fields["nationality"].value == "UTO"


def test_french_national_id():
    block = _decode(french_id_lines())

    assert block.format is MrzFormat.FRENCH_NATIONAL_ID
    assert block.checksum_valid
    assert block.fields["surname"].value == "BERTHIER"
    assert block.fields["givenNames"].value == "CORINNE"
    assert block.fields["documentNumber"].value == "880692310285"
    assert block.fields["dateOfBirth"].value == "1965-07-05"
    assert block.fields["sex"].value == "F"


def test_french_national_id_infers_nationality():
    nationality = _decode(french_id_lines()).fields["nationality"]

    assert nationality.value == "FRA"
    assert nationality.source is FieldSource.INFERRED
    assert nationality.issues == ["Inferred from issuing state"]


def test_french_driving_license():
    block = _decode(french_driving_license_line())

    assert block.format is MrzFormat.FRENCH_DRIVING_LICENSE
    assert block.checksum_valid
    assert block.fields["documentNumber"].value == "13AA00002"
    assert block.fields["issueDate"].value == "2013-07-01"
    assert block.fields["surname"].value == "MARTIN"


def test_swiss_driving_license_has_fixed_confidence():
    block = _decode(swiss_driving_license_lines())

    assert block.format is MrzFormat.SWISS_DRIVING_LICENSE
    assert block.checksum_valid
    assert block.check_digits == []
    assert block.fields["documentNumber"].value == "AAA001D01"
    assert block.fields["issuingState"].value == "CHE"
    assert block.fields["dateOfBirth"].value == "1980-04-15"
    assert block.fields["givenNames"].value == "PETER"
    assert {field.confidence for field in block.fields.values()} == {75}
    assert all(field.checksum_valid is None for field in block.fields.values())


def test_unparseable_date_keeps_raw_value():
    lines = td3_lines(birth_date="741332")
    block = _decode(lines)

    birth = block.fields["dateOfBirth"]
    assert birth.value == "741332"
    assert "Unparseable MRZ date '741332'" in birth.issues


def test_sex_outside_m_f_is_x():
    assert _decode(td3_lines(sex="<")).fields["sex"].value == "X"


@pytest.mark.parametrize(
    ("raw", "future", "expected"),
    [
        ("740812", False, date(1974, 8, 12)),
        ("050101", False, date(2005, 1, 1)),
        ("300101", False, date(1930, 1, 1)),
        ("300101", True, date(2030, 1, 1)),
        ("991231", True, date(2099, 12, 31)),
        ("991340", False, None),
        ("74O812", False, None),
    ],
)
def test_parse_mrz_date(raw, future, expected):
    assert parse_mrz_date(raw, future=future, reference=REFERENCE) == expected


def test_split_name():
    assert split_name("ERIKSSON<<ANNA<MARIA<<<<<") == ("ERIKSSON", "ANNA MARIA")
    assert split_name("VAN<DER<BERG<<JAN") == ("VAN DER BERG", "JAN")
    assert split_name("MADONNA<<<<<<") == ("MADONNA", "")
