# =============================================================================
# core/models/pickup_request.py - Pickup Request Schemas
# =============================================================================
# A pickup request is one user's claim on another user's listing.
#
# State machine:
#     pending -> accepted -> completed
#            \-> declined   \-> cancelled
#            \-> cancelled
#
# declined, completed and cancelled are terminal.
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class RequestStatus(str, Enum):
    """
    Possible states for a pickup request.

    - pending: Waiting for the listing owner
    - accepted: Owner agreed; requester may now see the exact address
    - declined: Owner refused
    - completed: Pickup happened and was rated
    - cancelled: Requester withdrew
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Rating(str, Enum):
    """Rating of the listing owner recorded when a pickup completes."""
    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"


class PickupRequestCreate(BaseModel):
    """
    Schema for POST /listings/{id}/requests.

    Example:
        {"message": "Could I grab some this weekend?"}
    """

    model_config = ConfigDict(extra="forbid")

    message: str | None = Field(default=None, max_length=1000)


class PickupRequestUpdate(BaseModel):
    """
    Schema for PATCH /requests/{id}.

    picked_up_quantity and rating are required when status is "completed";
    that check happens in the state machine so it reports a 400 with the
    same error shape as other transition failures.

    Example:
        {"status": "completed", "picked_up_quantity": "5 lbs", "rating": "thumbs_up"}
    """

    model_config = ConfigDict(extra="forbid")

    status: RequestStatus
    picked_up_quantity: str | None = Field(default=None, max_length=100)
    rating: Rating | None = None


class PickupRequestResponse(BaseModel):
    """Pickup request as returned to either party."""

    id: UUID
    listing_id: UUID
    requester_id: UUID
    message: str | None = None
    status: RequestStatus
    rating: Rating | None = None
    picked_up_quantity: str | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None

    # Embedded, already projected for the viewer
    listing: dict[str, Any] | None = None
    requester: UserSummary | None = None
