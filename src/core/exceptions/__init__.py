from src.core.exceptions.base import (
    AppException,
    NotFoundError,
    ValidationError,
    DuplicateError,
    UpstreamServiceError,
    PdfGenerationUnavailableError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "ValidationError",
    "DuplicateError",
    "UpstreamServiceError",
    "PdfGenerationUnavailableError",
]
