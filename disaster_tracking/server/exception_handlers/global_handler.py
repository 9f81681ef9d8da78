"""
Global Exception Handlers for FastAPI Application.

Domain errors raised by the services become 4xx JSON responses carrying the
error ``code``. Anything else is logged with its request context and
answered with a 500 and an error ID the client can report.
"""

import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from disaster_tracking.core.errors import DtsError
from disaster_tracking.core.forms.fields import ValidationFailed
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.core.monitoring import log_error

logger = get_logger(__name__)


async def domain_exception_handler(request: Request, exc: DtsError) -> JSONResponse:
    """
    Map a ``DtsError`` to its status code.

    ``ValidationFailed`` responses also carry the per field errors.
    """
    logger.info(
        f"{request.method} {request.url.path} rejected [{exc.code}]: {exc.message}",
        extra={"method": request.method, "path": request.url.path, "code": exc.code},
    )
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ValidationFailed):
        content["errors"] = exc.errors.model_dump()
    return JSONResponse(status_code=exc.status_code, content=content)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler to log detailed error information.

    This handler is called for any unhandled exception in the application.
    It logs the full error context and returns a JSON response with an error ID
    that clients can use to reference the error when reporting issues.

    Args:
        request: The HTTP request that caused the exception
        exc: The exception that was raised

    Returns:
        JSONResponse with error details and error ID
    """
    error_id = id(exc)

    logger.error(
        f"Unhandled exception [{error_id}] in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "error_id": error_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client": request.client.host if request.client else "unknown",
            "error_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        },
    )
    log_error(type(exc).__name__, str(exc), {"error_id": error_id, "path": request.url.path})

    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "error_type": type(exc).__name__,
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI application.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(DtsError, domain_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    logger.debug("Exception handlers registered successfully")
