# =============================================================================
# app/routers/users.py - Public User Endpoints
# =============================================================================

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path

from app.dependencies import ReputationServiceDep
from core.models.user import Reputation

router = APIRouter()


@router.get("/{user_id}/reputation", response_model=Reputation)
async def get_reputation(
    user_id: Annotated[UUID, Path(description="User UUID")],
    service: ReputationServiceDep,
):
    """Thumbs-up / thumbs-down counts and positivity ratio for a listing owner."""
    return service.get_reputation(str(user_id))
