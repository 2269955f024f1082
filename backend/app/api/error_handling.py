"""Exception handlers rendering every error as the JSON response envelope."""
import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_settings
from app.services.errors import ServiceError


logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    details: Any = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    """Build an error envelope: {"success": false, "error": ..., "details"?: ...}."""
    content = {"success": False, "error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _log_error(request: Request, status_code: int, message: str) -> None:
    # 401 is the normal anonymous path and is not logged
    if status_code >= 500:
        logger.error("%s %s -> %d: %s", request.method, request.url.path, status_code, message)
    elif status_code == 403:
        logger.warning("%s %s -> 403: %s", request.method, request.url.path, message)


def _format_validation_errors(exc: RequestValidationError) -> list:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else error.get("msg"))
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers for HTTP, validation, service and unexpected errors."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        _log_error(request, exc.status_code, message)
        return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, "Invalid request", _format_validation_errors(exc))

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        _log_error(request, exc.status_code, exc.message)
        return error_response(exc.status_code, exc.message, exc.details)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        details = str(exc) if get_settings().DEBUG else None
        return error_response(500, "Internal server error", details)
