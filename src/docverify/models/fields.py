"""Extracted field models shared by every extraction source."""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ContractModel(BaseModel):
    """Immutable model serialised with the camelCase field names of the JSON contract."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class FieldSource(str, Enum):
    """Where an extracted value came from."""

    MRZ = "mrz"
    OCR = "ocr"
    BARCODE = "barcode"
    INFERRED = "inferred"
    MANUAL = "manual"
    UNKNOWN = "unknown"


class FieldId:
    """Stable identifiers for extracted fields."""

    DOCUMENT_TYPE = "documentType"
    ISSUING_STATE = "issuingState"
    DOCUMENT_NUMBER = "documentNumber"
    SURNAME = "surname"
    GIVEN_NAMES = "givenNames"
    FULL_NAME = "fullName"
    NATIONALITY = "nationality"
    DATE_OF_BIRTH = "dateOfBirth"
    SEX = "sex"
    EXPIRY_DATE = "expiryDate"
    ISSUE_DATE = "issueDate"
    PERSONAL_NUMBER = "personalNumber"
    OPTIONAL_DATA = "optionalData"
    PLACE_OF_BIRTH = "placeOfBirth"
    ADDRESS = "address"


FIELD_LABELS: dict[str, str] = {
    FieldId.DOCUMENT_TYPE: "Document type",
    FieldId.ISSUING_STATE: "Issuing state",
    FieldId.DOCUMENT_NUMBER: "Document number",
    FieldId.SURNAME: "Surname",
    FieldId.GIVEN_NAMES: "Given names",
    FieldId.FULL_NAME: "Full name",
    FieldId.NATIONALITY: "Nationality",
    FieldId.DATE_OF_BIRTH: "Date of birth",
    FieldId.SEX: "Sex",
    FieldId.EXPIRY_DATE: "Expiry date",
    FieldId.ISSUE_DATE: "Issue date",
    FieldId.PERSONAL_NUMBER: "Personal number",
    FieldId.OPTIONAL_DATA: "Optional data",
    FieldId.PLACE_OF_BIRTH: "Place of birth",
    FieldId.ADDRESS: "Address",
}

# Always present in a reconciled result, with a null placeholder when no source has them
CORE_FIELDS: tuple[str, ...] = (
    FieldId.DOCUMENT_NUMBER,
    FieldId.SURNAME,
    FieldId.GIVEN_NAMES,
    FieldId.DATE_OF_BIRTH,
    FieldId.EXPIRY_DATE,
    FieldId.NATIONALITY,
    FieldId.SEX,
)


def field_label(field_id: str) -> str:
    return FIELD_LABELS.get(field_id, field_id)


class ExtractedField(ContractModel):
    label: str
    value: str | None = None
    confidence: int = Field(default=0, ge=0, le=100)
    source: FieldSource = FieldSource.UNKNOWN
    issues: list[str] = Field(default_factory=list)
    # None when no check digit covers the value; never serialised
    checksum_valid: bool | None = Field(default=None, exclude=True)

    @classmethod
    def missing(cls, field_id: str) -> ExtractedField:
        return cls(label=field_label(field_id), value=None, confidence=0, source=FieldSource.UNKNOWN)

    @property
    def present(self) -> bool:
        return self.value is not None and self.value != ""

    @property
    def checksum_failed(self) -> bool:
        return self.checksum_valid is False


class RawDocument(ContractModel):
    """OCR output of one uploaded image, plus any barcode text decoded upstream."""

    ocr_text: list[str] = Field(default_factory=list)
    ocr_token_confidences: dict[str, float] | None = None
    decoded_barcode_text: str | None = None

    @field_validator("ocr_text", mode="before")
    @classmethod
    def _split_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.splitlines()
        return value


@runtime_checkable
class DocumentSource(Protocol):
    """A document whose OCR text still has to be fetched from the OCR collaborator."""

    async def fetch(self) -> RawDocument: ...
