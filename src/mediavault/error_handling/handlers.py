import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediavault.error_handling.exceptions import MediaVaultError, PathSecurityError

logger = logging.getLogger("mediavault.errors")
audit_logger = logging.getLogger("mediavault.audit")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


async def handle_media_error(request: Request, exc: MediaVaultError) -> JSONResponse:
    if isinstance(exc, PathSecurityError):
        client = request.client.host if request.client else "unknown"
        audit_logger.warning(
            f"Rejected path escape attempt from {client}: {exc.reference!r} ({request.method} {request.url.path})"
        )
    elif exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}", exc_info=exc)
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return error_response(exc.status_code, exc.message)


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    logger.warning(f"{request.method} {request.url.path} malformed request: {message}")
    return error_response(400, message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} failed unexpectedly: {exc!r}", exc_info=exc)
    return error_response(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"success": false, "message": ...}``."""
    app.add_exception_handler(MediaVaultError, handle_media_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)
