"""
MindWell - FastAPI Application
Wellbeing analysis backend for the MindWell mobile app.

Run locally:
    uvicorn mindwell.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindwell.core.config import get_settings
from mindwell.core.database import close_db, init_db
from mindwell.core.errors import setup_exception_handlers
from mindwell.core.logging_config import setup_logging
from mindwell.core.logging_middleware import RequestLoggingMiddleware
from mindwell.routers import affirmations, analysis, chat, health, meditation
from mindwell.services.emotion_classifier import get_emotion_classifier
from mindwell.services.llm_client import get_completion_client


# =============================================================================
# Lifespan (Startup/Shutdown)
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup and release the engine on shutdown."""
    settings = get_settings()
    logger = logging.getLogger(__name__)

    logger.info("Starting %s v%s", settings.app_name, settings.app_version)
    await init_db()

    if not get_emotion_classifier().is_available:
        logger.warning("HF_API_TOKEN not set - emotion analysis requests will fail")
    if not get_completion_client().is_available:
        logger.warning("No completion provider configured - using fallback insights")

    yield

    await close_db()
    logger.info("Shutdown complete")


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Application factory.
    Creates and configures the FastAPI application.
    """
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        json_format=settings.log_json_format,
        log_file=Path(settings.log_file) if settings.log_file else None,
    )

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.enable_docs else None,
        redoc_url="/api/redoc" if settings.enable_docs else None,
        openapi_url="/api/openapi.json" if settings.enable_docs else None,
    )

    # =========================================================================
    # Middleware (first added = last to run)
    # =========================================================================
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # =========================================================================
    # Routers
    # =========================================================================
    app.include_router(health.router)
    app.include_router(analysis.router)
    app.include_router(chat.router)
    app.include_router(affirmations.router)
    app.include_router(meditation.router)

    return app


app = create_app()
