"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing), registers exception handlers and includes all API routers.
It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from disaster_tracking import __version__
from disaster_tracking.core.database import init_db
from disaster_tracking.core.logging_config import get_logger, setup_logging
from disaster_tracking.core.monitoring import initialize_logfire

from .api.v1 import (
    analytics,
    api_keys,
    assets,
    audit_logs,
    auth,
    damages,
    disaster_records,
    divisions,
    events,
    health,
    hips,
    human_effects,
    losses,
    sectors,
    units,
    users,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import RequestTimingMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Handles startup and shutdown events for the FastAPI application.
    """
    # Startup
    try:
        logger.info("Starting up DTS Server...")
        await init_db(create_tables=settings.create_tables)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down DTS Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    DTS Server API

    Disaster Tracking System backend: hazardous and disaster events, disaster records with their
    losses, damages, disruptions and human effects, reference data, CSV import/export and analytics.
    JSON API clients authenticate with an API key in the `X-Auth` header.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)
app.add_middleware(RequestTimingMiddleware)

setup_exception_handlers(app)
initialize_logfire(app)

API = constant.API_V1_STR

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix=f"{API}/auth", tags=["auth"])
app.include_router(users.router, prefix=f"{API}/users", tags=["users"])
app.include_router(api_keys.router, prefix=f"{API}/api-keys", tags=["api-keys"])
app.include_router(hips.router, prefix=API)
app.include_router(sectors.router, prefix=f"{API}/sectors")
app.include_router(units.units_router, prefix=f"{API}/unit")
app.include_router(units.measures_router, prefix=f"{API}/measure")
app.include_router(assets.router, prefix=f"{API}/asset")
app.include_router(divisions.router, prefix=f"{API}/division")
app.include_router(events.hazardous_events_router, prefix=f"{API}/hazardous-event")
app.include_router(events.disaster_events_router, prefix=f"{API}/disaster-event")
app.include_router(disaster_records.router, prefix=f"{API}/disaster-record")
app.include_router(disaster_records.sector_relations_router, prefix=f"{API}/sector-disaster-record-relation")
app.include_router(losses.router, prefix=f"{API}/losses")
app.include_router(damages.damages_router, prefix=f"{API}/damages")
app.include_router(damages.disruptions_router, prefix=f"{API}/disruption")
app.include_router(human_effects.router, prefix=f"{API}/human-effects")
app.include_router(analytics.router, prefix=f"{API}/analytics")
app.include_router(audit_logs.router, prefix=f"{API}/audit-logs")
