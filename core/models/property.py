# =============================================================================
# core/models/property.py - Property Schemas
# =============================================================================
# A property is a user's verified home location. Each user has at most one.
# Verification compares the claimed coordinate with the user's live GPS
# reading; both are sent in the same request.
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PropertyVerifyRequest(BaseModel):
    """
    Schema for POST /property.

    Example:
        {
            "address": "1 Main St, Palo Alto, CA",
            "lat": 37.0, "lng": -122.0,
            "live_lat": 37.0001, "live_lng": -122.0
        }
    """

    model_config = ConfigDict(extra="forbid")

    address: str = Field(..., min_length=1, max_length=500)
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    # Live GPS reading taken on the device at submit time
    live_lat: float | None = Field(default=None, ge=-90, le=90)
    live_lng: float | None = Field(default=None, ge=-180, le=180)


class PropertyResponse(BaseModel):
    """A stored property (only ever returned to its owner)."""

    id: UUID
    user_id: UUID
    address: str
    lat: float
    lng: float
    is_verified: bool
    detected_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NearbyAddress(BaseModel):
    """Reverse-geocoded address suggestion for the property setup flow."""

    address: str
    city: str = ""
    state: str = ""
    zip_code: str = ""
    lat: float
    lng: float
    distance_meters: float = 0.0
