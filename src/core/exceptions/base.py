from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=404, details=details)


class ValidationError(AppException):
    """Missing or invalid input, rejected before any side effect."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=400, details=details)


class DuplicateError(AppException):
    """Duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} avec {field}={value} existe déjà"
        super().__init__(message=message, status_code=409, details={"field": field, "value": value})


class UpstreamServiceError(AppException):
    """A third-party provider (speech-to-text, LLM, payments) answered with an error."""

    def __init__(self, provider: str, message: str):
        super().__init__(message=message, status_code=502, details={"provider": provider})


class PdfGenerationUnavailableError(AppException):
    """WeasyPrint/system libraries not available (e.g. pango on macOS)."""

    def __init__(self, message: str | None = None):
        msg = message or (
            "La génération PDF n'est pas disponible sur ce système. "
            "Sur macOS : brew install pango glib."
        )
        super().__init__(message=msg, status_code=503)
