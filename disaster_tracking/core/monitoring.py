"""
Monitoring and Tracing Configuration Module.

This module provides optional integration with Logfire for tracing of the
DTS server:
- API endpoint tracing
- Database operation monitoring
- Bulk import outcomes (JSON and CSV)
- Error tracking

Logfire is only used when LOGFIRE_ENABLED is set and a token is available.
Every helper degrades to a debug log line otherwise.
"""

import logging
import os
from typing import Any, Optional

from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "dts-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_logfire_active = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire for monitoring and tracing.

    Instruments SQLAlchemy and, when ``app`` is given, the FastAPI endpoints.

    Args:
        app: FastAPI application instance for FastAPI instrumentation (optional).

    Returns:
        True when Logfire was configured.
    """
    global _logfire_active

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring will not work.")
        return False

    import logfire

    logfire.configure(
        token=LOGFIRE_TOKEN,
        service_name=LOGFIRE_SERVICE_NAME,
        service_version=LOGFIRE_SERVICE_VERSION,
        environment=LOGFIRE_ENVIRONMENT,
    )

    if LOGFIRE_TRACE_SQLALCHEMY:
        logfire.instrument_sqlalchemy()
        logger.info("Logfire: SQLAlchemy instrumentation enabled")

    if LOGFIRE_TRACE_FASTAPI and app is not None:
        logfire.instrument_fastapi(app=app)
        logger.info("Logfire: FastAPI instrumentation enabled")

    _logfire_active = True
    logger.info(f"Logfire monitoring initialized: environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}")
    return True


def _emit(level: str, message: str, **attributes: Any) -> bool:
    if not _logfire_active:
        return False
    import logfire

    getattr(logfire, level)(message, **attributes)
    return True


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _emit("info", "API request completed", method=method, path=path, status_code=status_code, duration_ms=duration_ms):
        logger.debug(f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)")


def log_import_run(type_name: str, mode: str, ok: bool, rows: int) -> None:
    """
    Log the outcome of a bulk JSON or CSV import.

    Args:
        type_name: Resource being imported (e.g. "disruption")
        mode: create, update or upsert
        ok: Whether the import committed
        rows: Number of rows or objects submitted
    """
    if not _emit("info", "Bulk import finished", type_name=type_name, mode=mode, ok=ok, rows=rows):
        logger.info(f"Bulk import {type_name}/{mode}: ok={ok} rows={rows}")


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _emit("error", f"{error_type}: {error_message}", **(context or {})):
        logger.debug(f"{error_type}: {error_message}")
