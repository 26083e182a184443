from datetime import datetime, timezone
from typing import Optional
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
    format_validation_errors,
)
from app.schemas.product import ErrorResponse

logger = logging.getLogger(__name__)


def error_response(
    request: Request,
    status_code: int,
    message: str,
    details: Optional[str] = None,
) -> JSONResponse:
    """Build the JSON error body; `details` is left out when there is none."""
    body = ErrorResponse(
        timestamp=datetime.now(timezone.utc),
        status=status_code,
        message=message,
        path=request.url.path,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        format_validation_errors(exc.errors()),
    )


async def validation_handler(request: Request, exc: ValidationError):
    return error_response(request, status.HTTP_400_BAD_REQUEST, exc.message, exc.details)


async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(request, status.HTTP_404_NOT_FOUND, exc.message)


async def conflict_handler(request: Request, exc: ConflictError):
    return error_response(request, status.HTTP_409_CONFLICT, exc.message)


async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        exc.message,
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        str(exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map error kinds to status codes and the shared error body."""
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
