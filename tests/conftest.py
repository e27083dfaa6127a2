"""
Test configuration for the docverify test suite.
"""

from __future__ import annotations

from datetime import date

import pytest

from docverify.config import Settings
from docverify.models import ApplicantProfile, RawDocument
from tests.generators.mrz_generator import td3_lines


# Test markers
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "mrz: mark test as MRZ related")
    config.addinivalue_line("markers", "ocr: mark test as OCR related")
    config.addinivalue_line("markers", "api: mark test as HTTP API related")


# Collection settings
def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        if "api" in str(item.fspath):
            item.add_marker(pytest.mark.api)

        # Add specific markers based on test names
        if "mrz" in item.name.lower():
            item.add_marker(pytest.mark.mrz)
        if "ocr" in item.name.lower():
            item.add_marker(pytest.mark.ocr)


@pytest.fixture
def evaluation_date() -> date:
    """Fixed "today" so two-digit years and missing travel dates are deterministic."""
    return date(2025, 6, 1)


@pytest.fixture
def config() -> Settings:
    return Settings()


@pytest.fixture
def passport_document() -> RawDocument:
    """A passport page: printed zone above a valid TD3 MRZ expiring end of 2030."""
    return RawDocument(
        ocr_text=[
            "PASSPORT",
            "UTOPIA",
            "Surname: ERIKSSON",
            "Given names: ANNA MARIA",
            "Date of birth: 12/08/1974",
            *td3_lines(expiry_date="301231"),
        ]
    )


@pytest.fixture
def applicant() -> ApplicantProfile:
    return ApplicantProfile(
        name="Anna Maria Eriksson",
        date_of_birth="1974-08-12",
        passport_number="L898902C3",
        nationality="UTO",
        visa_type="tourist",
        intended_travel_date="2025-06-01",
    )
