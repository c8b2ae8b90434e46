import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.core.config import settings
from src.core.exceptions import AppException
from src.shared.schemas import ErrorResponse, ErrorDetail

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Erreur serveur"


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle application exceptions."""
    field = exc.details.get("field")
    errors = [ErrorDetail(field=field, message=exc.message)]

    response = ErrorResponse(
        error=exc.message,
        errors=errors,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=response.model_dump(),
    )


def _format_validation_errors(errors: list[dict]) -> list[ErrorDetail]:
    details: list[ErrorDetail] = []
    for error in errors:
        loc = error.get("loc", ())
        # Drop top-level "body" for cleaner field paths
        if loc and loc[0] == "body":
            loc = loc[1:]
        field = ".".join(str(part) for part in loc) if loc else None
        details.append(ErrorDetail(field=field, message=error.get("msg", "Valeur invalide")))
    return details


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle FastAPI validation errors as plain 400s."""
    response = ErrorResponse(
        error="Données invalides",
        errors=_format_validation_errors(exc.errors()),
    )
    return JSONResponse(
        status_code=400,
        content=response.model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle generic HTTP exceptions."""
    message = str(exc.detail) if exc.detail else "Erreur HTTP"
    response = ErrorResponse(
        error=message,
        errors=[ErrorDetail(field=None, message=message)],
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=response.model_dump(),
    )


def _friendly_db_error(exc: Exception) -> tuple[str, int]:
    """
    Convert common DB errors to a stable, user-facing message.

    Full DB error details are only exposed when debug is enabled.
    """
    raw = str(getattr(exc, "orig", exc))
    lower = raw.lower()

    if ("does not exist" in lower and ("column" in lower or "relation" in lower)) or "no such table" in lower:
        # Typical after deploying code without running Alembic migrations.
        return (
            "Le schéma de la base n'est pas à jour. Lancez les migrations puis réessayez.",
            500,
        )

    if settings.debug:
        return (raw, 500)

    return ("Erreur de base de données", 500)


async def sqlalchemy_db_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    message, status_code = _friendly_db_error(exc)
    response = ErrorResponse(
        error=message,
        errors=[ErrorDetail(field=None, message=message)],
    )
    return JSONResponse(status_code=status_code, content=response.model_dump())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: report a generic server error and keep the traceback in the logs."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.debug and str(exc) else GENERIC_SERVER_ERROR
    response = ErrorResponse(
        error=message,
        errors=[ErrorDetail(field=None, message=message)],
    )
    return JSONResponse(status_code=500, content=response.model_dump())
