"""
Units and Measures Endpoints.

Plain reference tables served by the generic CRUD routes.
"""

from disaster_tracking.core.services.units import measures_resource, units_resource
from disaster_tracking.server.api.crud import build_crud_router

units_router = build_crud_router(units_resource, tags=["units"])
measures_router = build_crud_router(measures_resource, tags=["measures"])
