"""
Administrative Division Endpoints.
"""

from disaster_tracking.core.services.divisions import divisions_resource
from disaster_tracking.server.api.crud import build_crud_router

router = build_crud_router(divisions_resource, tags=["divisions"])
