"""
Applicant profile and eligibility policy inputs.

Both are read-only per request. ``DEFAULT_POLICY`` is the only policy object
shared across requests; callers derive their own with ``merged``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, ValidationError
from pydantic.alias_generators import to_camel

from docverify.exceptions import ConfigurationError
from docverify.models.fields import ContractModel


class ApplicantProfile(ContractModel):
    """Identity and travel intent as declared by the applicant."""

    name: str | None = None
    date_of_birth: str | None = None
    passport_number: str | None = None
    nationality: str | None = None
    visa_type: str | None = None
    intended_travel_date: str | None = None


class EligibilityPolicy(ContractModel):
    min_passport_validity_days: int = Field(default=180, ge=0)
    min_applicant_age: int = Field(default=18, ge=0)
    supported_visa_types: list[str] = Field(
        default_factory=lambda: ["tourist", "business", "student"]
    )
    blacklisted_nationalities: list[str] = Field(default_factory=list)
    require_name_match: bool = True
    require_passport_match: bool = True
    require_mrz: bool = False

    def merged(self, overrides: Mapping[str, Any] | None) -> EligibilityPolicy:
        """Return a new policy with ``overrides`` (camelCase or snake_case keys) applied."""
        data = self.model_dump(by_alias=True)
        for key, value in (overrides or {}).items():
            if key in type(self).model_fields:
                key = to_camel(key)
            data[key] = value
        return type(self).model_validate(data)


DEFAULT_POLICY = EligibilityPolicy()


def load_policy(path: str | Path, base: EligibilityPolicy = DEFAULT_POLICY) -> EligibilityPolicy:
    """Load a YAML policy file and apply it over ``base``."""
    policy_path = Path(path)
    if not policy_path.exists():
        msg = f"Policy file not found: {policy_path}"
        raise ConfigurationError(msg)

    try:
        with policy_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        msg = f"Policy file is not valid YAML: {policy_path}: {exc}"
        raise ConfigurationError(msg) from exc

    if not isinstance(data, Mapping):
        msg = f"Policy file must contain a mapping: {policy_path}"
        raise ConfigurationError(msg)

    try:
        return base.merged(data)
    except ValidationError as exc:
        msg = f"Invalid policy in {policy_path}: {exc}"
        raise ConfigurationError(msg) from exc
