"""
FastAPI application for the verification service
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docverify.api.endpoints import router
from docverify.config import Settings, settings
from docverify.engine import VerificationEngine
from docverify.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None) -> FastAPI:
    """Build the API around one engine bound to ``config``."""
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.SERVICE_NAME, config.LOG_LEVEL, config.LOG_FORMAT)
        app.state.config = config
        app.state.engine = VerificationEngine(config)
        app.state.started = time.monotonic()
        logger.info(
            "Verification API ready (environment=%s, api_key=%s, policy_file=%s)",
            config.ENVIRONMENT,
            config.USE_API_KEY,
            config.POLICY_FILE or "-",
        )
        yield
        logger.info("Verification API stopped")

    app = FastAPI(
        title=config.PROJECT_NAME,
        description=config.PROJECT_DESCRIPTION,
        version=config.VERSION,
        lifespan=lifespan,
    )
    if config.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ORIGINS,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-API-Key", "X-RequestID"],
        )
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "docverify.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.debug,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
