"""
Request dependencies for the verification API
"""

from __future__ import annotations

from fastapi import HTTPException, Request, Security, status
from fastapi.security.api_key import APIKeyHeader

from docverify.engine import VerificationEngine

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def verify_api_key(request: Request, api_key: str | None = Security(api_key_header)) -> None:
    """Reject the request unless it carries the configured API key; no-op when keys are off."""
    config = request.app.state.config
    if not config.USE_API_KEY:
        return
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="API Key header is missing")
    if api_key != config.API_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API Key")


def get_engine(request: Request) -> VerificationEngine:
    return request.app.state.engine
