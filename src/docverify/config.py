"""
Configuration for the document verification engine and its API service
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the verification engine"""

    model_config = SettingsConfigDict(env_prefix="DOCVERIFY_", env_file=".env", extra="ignore")

    # Service identity
    SERVICE_NAME: str = "docverify"
    PROJECT_NAME: str = "Travel Document Verification API"
    PROJECT_DESCRIPTION: str = """
    Extracts identity fields from OCR text and MRZ lines of travel documents,
    validates ICAO 9303 check digits and decides applicant eligibility against
    a configurable policy.
    """
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    # Server configuration
    HOST: str = "localhost"
    PORT: int = 8080
    USE_API_KEY: bool = False
    API_KEY: str = ""
    CORS_ORIGINS: list[str] = ["*"]

    # Time budgets
    OCR_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0)
    REQUEST_BUDGET_SECONDS: float = Field(default=30.0, gt=0)

    # Confidence model (all values on the 0-100 scale)
    LOW_CONFIDENCE_THRESHOLD: int = Field(default=60, ge=0, le=100)
    MRZ_INVALID_CONFIDENCE: int = Field(default=40, ge=0, le=40)
    MRZ_UNCHECKED_CONFIDENCE: int = Field(default=75, ge=0, le=100)
    BARCODE_CONFIDENCE: int = Field(default=95, ge=0, le=100)
    AGREEMENT_BOOST: int = Field(default=10, ge=0, le=100)
    LABEL_EXACT_CONFIDENCE: int = Field(default=90, ge=0, le=100)
    LABEL_PARTIAL_CONFIDENCE: int = Field(default=70, ge=0, le=100)
    LABEL_POSITIONAL_CONFIDENCE: int = Field(default=50, ge=0, le=100)

    # Optional YAML file overriding the built-in default policy
    POLICY_FILE: str | None = None

    @property
    def debug(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
