"""
API endpoints for the verification service
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import Field, ValidationError

from docverify.api.deps import get_engine, verify_api_key
from docverify.engine import VerificationEngine, base_policy
from docverify.exceptions import InvalidInputError, VerificationError
from docverify.models.fields import ContractModel, RawDocument
from docverify.models.policy import ApplicantProfile
from docverify.models.report import VerificationResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class VerifyRequest(ContractModel):
    """JSON body of a verification request."""

    documents: list[RawDocument] = Field(default_factory=list)
    applicant: ApplicantProfile = Field(default_factory=ApplicantProfile)
    # Partial policy, applied over the service's base policy
    policy: dict[str, Any] | None = None


class HealthResponse(ContractModel):
    status: str
    version: str
    uptime_sec: int


@router.get("/api/ping", response_class=PlainTextResponse, tags=["Health"])
async def ping() -> str:
    """
    Liveness ping endpoint
    Returns 'OK' if the service is running.
    """
    return "OK"


@router.get("/api/health", response_model=HealthResponse, tags=["Health"])
async def health(request: Request) -> HealthResponse:
    """
    Readiness/health details endpoint
    """
    uptime_sec = int(time.monotonic() - request.app.state.started)
    return HealthResponse(status="ready", version=request.app.state.config.VERSION, uptime_sec=uptime_sec)


@router.post(
    "/api/verify",
    response_model=VerificationResponse,
    tags=["Verify"],
    dependencies=[Depends(verify_api_key)],
)
async def verify_documents(
    request: VerifyRequest,
    engine: VerificationEngine = Depends(get_engine),
    x_request_id: str | None = Header(None, alias="X-RequestID"),
) -> VerificationResponse:
    """
    Verify travel documents against an applicant profile

    Submit the OCR text of one or more document images, optionally with
    barcode text decoded upstream, plus the applicant's declared data. The
    response carries the extracted fields, every validation check, the
    eligibility decision and recommended actions.
    """
    try:
        logger.info("Verification request documents=%d", len(request.documents))
        if x_request_id:
            logger.info("Request ID=%s", x_request_id)

        if not request.documents:
            msg = "No documents provided"
            raise InvalidInputError(msg)

        try:
            policy = base_policy(engine.config).merged(request.policy)
        except ValidationError as e:
            msg = f"Invalid policy: {e}"
            raise InvalidInputError(msg) from e

        result = await engine.evaluate(request.documents, request.applicant, policy)
    except VerificationError as e:
        if e.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.exception("Verification failed: %s", e.message)
        else:
            logger.warning("Rejected verification request: %s", e.message)
        raise HTTPException(status_code=e.status_code, detail=e.message) from e
    else:
        logger.info("Verification completed in %dms", result.timing_ms)
        return result
