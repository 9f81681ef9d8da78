"""
Damages and Disruptions Endpoints.

Writes refresh the cost totals of the disaster event owning the record.
"""

from disaster_tracking.core.services.damages import damages_resource
from disaster_tracking.core.services.disruptions import disruptions_resource
from disaster_tracking.server.api.crud import build_crud_router

damages_router = build_crud_router(damages_resource, tags=["damages"])
disruptions_router = build_crud_router(disruptions_resource, tags=["disruptions"])
