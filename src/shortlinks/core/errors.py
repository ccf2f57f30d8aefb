"""
Error taxonomy and the single boundary that turns errors into JSON.

Every failure leaves the service as ``{"error": "<message>"}``. Outside
production, unexpected failures also carry ``code``, ``details``, ``hint``
and ``stack`` to help debugging.
"""

import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shortlinks.core.config import Settings, logger


class ShortlinksError(Exception):
    """Base class for errors with a known HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class RequestValidationFailed(ShortlinksError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class AuthenticationError(ShortlinksError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class QuotaExceededError(ShortlinksError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "URL limit reached"


class NotFoundError(ShortlinksError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class AllocationExhaustedError(ShortlinksError):
    message = "Failed to generate unique short code"


class DataIntegrityError(ShortlinksError):
    message = "URL record missing original_url"


def _debug_fields(exc: Exception) -> Dict[str, Any]:
    """
    Collect driver level detail for an unexpected exception.

    Args:
        exc: The exception being reported

    Returns:
        Mapping with code/details/hint/stack keys
    """
    orig = getattr(exc, "orig", None) if isinstance(exc, DBAPIError) else None
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return {
        "code": code or type(exc).__name__,
        "details": str(orig) if orig is not None else str(exc),
        "hint": getattr(getattr(orig, "diag", None), "message_hint", None),
        "stack": "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        ),
    }


def install_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Register the exception handlers that format every error response."""

    @app.exception_handler(ShortlinksError)
    async def handle_shortlinks_error(request: Request, exc: ShortlinksError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.message}, headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        logger.warning(f"Rejected request body on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body"},
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        content: Dict[str, Any] = {"error": "Internal server error"}
        if not settings.is_production:
            content.update(_debug_fields(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content
        )
