"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation
of the routes that are not served by the generic CRUD factory.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from disaster_tracking.core.auth.api_keys import assigned_user_id, strip_assigned_user
from disaster_tracking.core.services.human_effects import SaveData


class LoginRequest(BaseModel):
    """Credentials of a login."""

    email: str = Field(..., description="Email address of the user.", examples=["admin@example.org"])
    password: str = Field(..., description="Clear text password.")


class UserRead(BaseModel):
    """A user as shown to admins and to the user itself; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    country_accounts_id: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    """
    Schema for inviting a user into the caller's country account.

    The password must contain at least 12 characters and two character classes.
    """

    email: str = Field(..., examples=["collector@example.org"])
    password: str
    role: str = Field(default="data-viewer", examples=["data-collector"])
    first_name: str = ""
    last_name: str = ""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "collector@example.org",
                "password": "Correct-Horse-1",
                "role": "data-collector",
                "first_name": "Ana",
                "last_name": "Silva",
            }
        }
    )


class UserUpdate(BaseModel):
    role: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class PasswordChange(BaseModel):
    password: str


class ApiKeyCreate(BaseModel):
    """Schema for creating an API key, optionally acting as another user of the tenant."""

    name: str = Field(..., examples=["Import script"])
    assigned_user_id: Optional[str] = Field(
        default=None, description="User the key acts for; defaults to the user creating it."
    )


class ApiKeyRead(BaseModel):
    id: str
    name: str
    assigned_user_id: Optional[str] = None
    manager_id: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, api_key: Any) -> "ApiKeyRead":
        return cls(
            id=api_key.id,
            name=strip_assigned_user(api_key.name),
            assigned_user_id=assigned_user_id(api_key.name),
            manager_id=api_key.manager_id,
            created_at=api_key.created_at,
        )


class ApiKeyCreated(ApiKeyRead):
    """Returned once on creation; the secret cannot be read back later."""

    secret: str


class HumanEffectsSaveRequest(BaseModel):
    """
    Body of a human effects save.

    ``columns`` must list the table's column names in order whenever ``data``
    carries changes.
    """

    columns: Optional[List[str]] = None
    data: Optional[SaveData] = None


class CategoryPresenceUpdate(BaseModel):
    data: Dict[str, Optional[bool]] = Field(default_factory=dict)


class TotalCostResponse(BaseModel):
    disaster_event_id: str
    repair: Decimal
    replacement: Decimal
    recovery: Decimal
    rehabilitation: Decimal
    total: Decimal


class AnalyticsSummary(BaseModel):
    records_by_status: Dict[str, int]
    disaster_events: int
    effects_total_local_currency: Decimal


class HazardCount(BaseModel):
    hip_type_id: Optional[str] = None
    name: Optional[str] = None
    count: int


class SectorImpact(BaseModel):
    """Figures of a sector and its sub-sectors; the ``*_over_time`` maps are keyed by year."""

    sector_id: str
    record_count: int
    event_count: int
    total_damage: Decimal
    total_loss: Decimal
    records_over_time: Dict[str, int]
    damage_over_time: Dict[str, Decimal]
    loss_over_time: Dict[str, Decimal]


class HazardShare(BaseModel):
    hip_type_id: Optional[str] = None
    name: Optional[str] = None
    value: Decimal
    percentage: float


class HazardImpact(BaseModel):
    records: List[HazardShare]
    damages: List[HazardShare]
    losses: List[HazardShare]


class DamagingEvent(BaseModel):
    disaster_event_id: str
    name: str
    created_at: datetime
    total_damages: Decimal
    total_losses: Decimal


class PublicRecordInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    disaster_event_id: Optional[str] = None
    hip_type_id: Optional[str] = None
    hip_cluster_id: Optional[str] = None
    hip_hazard_id: Optional[str] = None
    location_desc: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
