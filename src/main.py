"""SmartCompta FastAPI application."""
import logging
import os
from contextlib import asynccontextmanager

# macOS: so WeasyPrint finds pango/glib when generating PDFs (only if not already set)
if os.name == "posix" and os.environ.get("DYLD_LIBRARY_PATH") in (None, ""):
    _brew_lib = "/opt/homebrew/opt/glib/lib:/opt/homebrew/opt/pango/lib:/opt/homebrew/lib"
    if os.path.exists("/opt/homebrew/opt/glib/lib"):
        os.environ["DYLD_LIBRARY_PATH"] = _brew_lib

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import settings
from src.core.exceptions import AppException
from src.core.exceptions.handlers import (
    app_exception_handler,
    http_exception_handler,
    sqlalchemy_db_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from src.modules.clients.router import router as clients_router
from src.modules.dictation.router import router as dictation_router
from src.modules.invoices.router import router as invoices_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_title} (env={settings.app_env})")
    if not settings.openrouter_configured:
        logger.warning("OPENROUTER_API_KEY not set: transcription runs in demo mode")
    if not settings.stripe_configured:
        logger.info("STRIPE_SECRET_KEY not set: invoices are created without payment links")
    yield
    logger.info("Shutting down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title="SmartCompta",
        description="Voice-dictated invoicing for an accounting firm",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_db_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    # Routers
    app.include_router(dictation_router, prefix="/api/v1")
    app.include_router(clients_router, prefix="/api/v1")
    app.include_router(invoices_router, prefix="/api/v1")

    return app


app = create_app()
