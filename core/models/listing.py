# =============================================================================
# core/models/listing.py - Listing Schemas
# =============================================================================
# These models define the API contract for fruit listings:
# - ListingCreate: Input for POST /listings
# - ListingUpdate: Input for PATCH /listings/{id} (owner only)
# - PublicListing: What anyone may see (no exact address)
# - FullListing: PublicListing + full_address (owner, accepted requester)
#
# The response models double as field whitelists: projecting a stored row
# through PublicListing drops full_address and any other private column.
# =============================================================================

from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ListingStatus(str, Enum):
    """
    Lifecycle of a listing.

    - active: Visible on the map and open to pickup requests
    - pending: Owner paused it (e.g. a pickup is arranged)
    - completed: All fruit is gone
    - cancelled: Owner withdrew it
    """
    ACTIVE = "active"
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _check_window(start: date | None, end: date | None) -> None:
    if start is not None and end is not None and end < start:
        raise ValueError("available_end must be on or after available_start")


class ListingCreate(BaseModel):
    """
    Schema for creating a listing.

    The server geocodes full_address, derives city/state/zip and a fuzzed
    public coordinate from it; clients never send coordinates.

    Example:
        {
            "fruit_type": "lemons",
            "quantity": "about 20",
            "full_address": "1 Main St, Palo Alto, CA",
            "available_start": "2024-06-01",
            "available_end": "2024-06-14"
        }
    """

    model_config = ConfigDict(extra="forbid")

    fruit_type: str = Field(..., min_length=1, max_length=50, description="Kind of fruit (open set)")
    quantity: str = Field(..., min_length=1, max_length=100, description="Quantity descriptor, e.g. '2 bags'")
    description: str | None = Field(default=None, max_length=2000)
    full_address: str = Field(..., min_length=1, max_length=500, description="Exact pickup address (private)")
    available_start: date
    available_end: date
    pickup_notes: str | None = Field(default=None, max_length=2000)
    image_url: str | None = Field(default=None, max_length=2048)

    # Freshness: either an explicit date or the predictor's day count
    expiration_date: datetime | None = None
    expiration_days: int | None = Field(
        default=None,
        ge=0,
        le=365,
        description="Predicted days until the fruit spoils; converted to expiration_date"
    )

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.available_start, self.available_end)
        return self


class ListingUpdate(BaseModel):
    """
    Schema for updating a listing.

    Address and coordinates are fixed at creation and cannot be edited.
    """

    model_config = ConfigDict(extra="forbid")

    fruit_type: str | None = Field(default=None, min_length=1, max_length=50)
    quantity: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    pickup_notes: str | None = Field(default=None, max_length=2000)
    image_url: str | None = Field(default=None, max_length=2048)
    available_start: date | None = None
    available_end: date | None = None
    expiration_date: datetime | None = None
    status: ListingStatus | None = None

    @model_validator(mode="after")
    def check_window(self):
        _check_window(self.available_start, self.available_end)
        return self


class PublicListing(BaseModel):
    """
    Listing as shown to anyone who is not entitled to the exact address.

    Unknown columns in the source row are ignored, so private fields never
    pass through.
    """

    model_config = ConfigDict(extra="ignore")

    id: UUID
    user_id: UUID
    property_id: UUID | None = None
    fruit_type: str
    quantity: str
    description: str | None = None
    pickup_notes: str | None = None
    image_url: str | None = None
    city: str = ""
    state: str = ""
    zip_code: str = ""
    approximate_lat: float
    approximate_lng: float
    available_start: date
    available_end: date
    expiration_date: datetime | None = None
    status: ListingStatus
    created_at: datetime
    updated_at: datetime | None = None

    # Only set by browse queries with a reference point
    distance_miles: float | None = None


class FullListing(PublicListing):
    """Listing including the exact pickup address."""

    full_address: str
