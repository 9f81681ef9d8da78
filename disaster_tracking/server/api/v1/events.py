"""
Hazardous and Disaster Event Endpoints.
"""

from disaster_tracking.core.services.events import disaster_events_resource, hazardous_events_resource
from disaster_tracking.server.api.crud import build_crud_router

hazardous_events_router = build_crud_router(hazardous_events_resource, tags=["hazardous-events"])
disaster_events_router = build_crud_router(disaster_events_resource, tags=["disaster-events"])
