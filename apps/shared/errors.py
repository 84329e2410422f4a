"""
Secure Error Handling

Error taxonomy for the API plus utilities for turning errors into consistent
JSON payloads without leaking more than the client needs.
"""

import logging
import uuid
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class BlogAPIError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    category = "server_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(BlogAPIError):
    """Missing required field, bad enum value, malformed identifier or upload."""

    status_code = status.HTTP_400_BAD_REQUEST
    category = "validation"


class NotFoundError(BlogAPIError):
    status_code = status.HTTP_404_NOT_FOUND
    category = "not_found"


class StorageError(BlogAPIError):
    """The document store is unreachable or rejected the operation."""

    category = "database"


class AttachmentStorageError(BlogAPIError):
    """The attachment backend failed while storing a new file."""

    category = "attachment_storage"


def log_error(error: Exception, context: str) -> str:
    """
    Log full error details server-side under a short correlation id.

    Returns the id so the client response can reference the log entry.
    """
    error_id = str(uuid.uuid4())[:8]
    logger.error(
        f"{context} failed [{error_id}]: {type(error).__name__}: {str(error)}",
        exc_info=error
    )
    return error_id


def error_response(
    message: str,
    category: str,
    status_code: int,
    error: Optional[str] = None,
    error_id: Optional[str] = None,
) -> JSONResponse:
    """Consistent error payloads across the API."""
    content = {"message": message, "category": category}
    if error is not None:
        content["error"] = error
    if error_id is not None:
        content["error_id"] = error_id
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the JSON error handlers on an app."""

    @app.exception_handler(BlogAPIError)
    async def blog_api_exception_handler(request: Request, exc: BlogAPIError):
        if exc.status_code >= 500:
            error_id = log_error(exc.__cause__ or exc, f"{request.method} {request.url.path}")
            return error_response(
                message=exc.message,
                category=exc.category,
                status_code=exc.status_code,
                error=exc.detail,
                error_id=error_id,
            )

        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return error_response(
            message=exc.message,
            category=exc.category,
            status_code=exc.status_code,
            error=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return error_response(
            message="Validation failed",
            category=ValidationError.category,
            status_code=status.HTTP_400_BAD_REQUEST,
            error=problems,
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
            category = "security"
        elif exc.status_code >= 500:
            category = "server_error"
        else:
            category = "client_error"

        message = str(exc.detail) or "Request failed."

        return error_response(
            message=message,
            category=category,
            status_code=exc.status_code,
        )

    @app.exception_handler(Exception)
    async def unexpected_exception_handler(request: Request, exc: Exception):
        error_id = log_error(exc, f"{request.method} {request.url.path}")
        return error_response(
            message="An unexpected server error occurred. Please try again later.",
            category="server_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_id=error_id,
        )
