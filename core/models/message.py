# =============================================================================
# core/models/message.py - Chat Message Schemas
# =============================================================================
# Messages belong to a pickup request thread. They are append-only and
# returned oldest first. Delivery is pull-based: clients re-poll
# GET /requests/{id}/messages?since=<last created_at> every
# poll_interval_seconds.
# =============================================================================

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class MessageCreate(BaseModel):
    """
    Schema for POST /requests/{id}/messages.

    Whitespace-only content is rejected by the messaging service.
    """

    model_config = ConfigDict(extra="forbid")

    content: str = Field(..., max_length=2000)


class ThreadMessageCreate(MessageCreate):
    """Schema for POST /messages, which names the thread in the body."""

    pickup_request_id: UUID


class MessageResponse(BaseModel):
    """A single chat message."""

    id: UUID
    pickup_request_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime
    read_at: datetime | None = None
    sender: UserSummary | None = None


class MessageThread(BaseModel):
    """
    One polling response for a request thread.

    The embedded listing is projected for the viewer like every other
    listing payload.
    """

    request_id: UUID
    request_status: str
    listing: dict[str, Any] | None = None
    messages: list[MessageResponse] = Field(default_factory=list)
    poll_interval_seconds: int = 5
