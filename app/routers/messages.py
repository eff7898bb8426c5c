# =============================================================================
# app/routers/messages.py - Thread-by-Query Message Endpoints
# =============================================================================
# Same thread as /requests/{id}/messages, addressed by request_id in the
# query string or body. Gated by the same party check.
# =============================================================================

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.auth import AuthUser, get_current_user
from app.dependencies import MessagingServiceDep
from core.models.message import MessageResponse, MessageThread, ThreadMessageCreate

router = APIRouter()


@router.get("", response_model=MessageThread)
async def list_messages(
    request_id: Annotated[UUID, Query(description="Pickup request UUID")],
    service: MessagingServiceDep,
    since: Annotated[datetime | None, Query()] = None,
    user: AuthUser = Depends(get_current_user),
):
    """Read a request's chat thread, oldest first."""
    return service.list_messages(user.user_id, str(request_id), since=since)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message(
    body: ThreadMessageCreate,
    service: MessagingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Send a message to the thread named by pickup_request_id."""
    return service.post_message(
        user.user_id, str(body.pickup_request_id), body.content, email=user.email
    )
