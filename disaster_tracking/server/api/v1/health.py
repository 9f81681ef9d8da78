"""
Liveness, readiness and version endpoints.

These routes take no API key so that load balancers and deployment checks
can call them anonymously.
"""

from typing import Dict, Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from disaster_tracking import __version__
from disaster_tracking.core.logging_config import get_logger
from disaster_tracking.server.core import constant
from disaster_tracking.server.services.deps import SessionDep

logger = get_logger(__name__)

router = APIRouter()


class HealthStatus(BaseModel):
    status: str
    database: Optional[str] = None


@router.get(
    "/health",
    response_model=HealthStatus,
    response_model_exclude_none=True,
    summary="Liveness Check",
    description="Answers as long as the server process is up; does not touch the database.",
)
async def health_check() -> HealthStatus:
    return HealthStatus(status="ok")


@router.get(
    "/health/ready",
    response_model=HealthStatus,
    summary="Readiness Check",
    description="Runs `SELECT 1` on the database; 503 while the database cannot be reached.",
    responses={503: {"description": "Database unreachable"}},
)
async def readiness_check(session: SessionDep, response: Response) -> HealthStatus:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthStatus(status="unavailable", database="unreachable")
    return HealthStatus(status="ok", database="ok")


@router.get(
    "/version",
    summary="Get Version",
    description="Package version of the server and the path prefix of the JSON API.",
)
async def version() -> Dict[str, str]:
    return {"version": __version__, "api_prefix": constant.API_V1_STR}
