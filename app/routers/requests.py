# =============================================================================
# app/routers/requests.py - Pickup Request Endpoints
# =============================================================================
# Lists and updates pickup requests, and hosts the per-request chat thread.
# All endpoints require authentication and are limited to the two parties.
# =============================================================================

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from app.auth import AuthUser, get_current_user
from app.dependencies import MessagingServiceDep, RequestServiceDep
from core.models.message import MessageCreate, MessageResponse, MessageThread
from core.models.pickup_request import PickupRequestResponse, PickupRequestUpdate

router = APIRouter()


@router.get("", response_model=list[PickupRequestResponse])
async def list_requests(
    service: RequestServiceDep,
    type: Annotated[
        Literal["incoming", "outgoing"],
        Query(description="incoming: on my listings; outgoing: made by me"),
    ] = "outgoing",
    user: AuthUser = Depends(get_current_user),
):
    """
    List the caller's pickup requests, newest first.

    The embedded listing only carries full_address where the caller may
    see it (their own listing, or their accepted request).
    """
    return service.list_requests(user.user_id, direction=type)


@router.get("/{request_id}", response_model=PickupRequestResponse)
async def get_request(
    request_id: Annotated[UUID, Path(description="Pickup request UUID")],
    service: RequestServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Get one pickup request. Requester or listing owner only."""
    return service.get_request(user.user_id, str(request_id))


@router.patch("/{request_id}", response_model=PickupRequestResponse)
async def update_request(
    request_id: Annotated[UUID, Path(description="Pickup request UUID")],
    body: PickupRequestUpdate,
    service: RequestServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Change a request's status.

    - accepted / declined: listing owner, from pending
    - cancelled: requester, from pending or accepted
    - completed: either party, from accepted, with picked_up_quantity and rating
    """
    return service.update_status(user.user_id, str(request_id), body)


# =============================================================================
# Chat thread
# =============================================================================

@router.get("/{request_id}/messages", response_model=MessageThread)
async def list_request_messages(
    request_id: Annotated[UUID, Path(description="Pickup request UUID")],
    service: MessagingServiceDep,
    since: Annotated[
        datetime | None,
        Query(description="Only messages created after this timestamp (for polling)"),
    ] = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Read the chat thread for a request, oldest first.

    Poll every poll_interval_seconds, passing the last created_at as since.
    """
    return service.list_messages(user.user_id, str(request_id), since=since)


@router.post(
    "/{request_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_request_message(
    request_id: Annotated[UUID, Path(description="Pickup request UUID")],
    body: MessageCreate,
    service: MessagingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Send a message in a request's chat thread."""
    return service.post_message(user.user_id, str(request_id), body.content, email=user.email)
