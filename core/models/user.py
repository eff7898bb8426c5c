# =============================================================================
# core/models/user.py - User and Reputation Schemas
# =============================================================================

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Public profile embedded in requests and messages."""

    model_config = ConfigDict(extra="ignore")

    id: UUID
    display_name: str | None = None
    email: str | None = None


class Reputation(BaseModel):
    """
    Aggregated pickup ratings for a listing owner.

    positivity_ratio is a percentage (0-100); it is 0 when there are no
    ratings, and has_ratings tells the two cases apart.
    """

    user_id: UUID
    thumbs_up_count: int = Field(default=0, ge=0)
    thumbs_down_count: int = Field(default=0, ge=0)
    total_ratings: int = Field(default=0, ge=0)
    positivity_ratio: float = Field(default=0.0, ge=0.0, le=100.0)
    has_ratings: bool = False


class UserResponse(BaseModel):
    """Full profile of the current user."""

    id: UUID
    email: str | None = None
    display_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    reputation: Reputation | None = None
