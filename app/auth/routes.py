# =============================================================================
# app/auth/routes.py - Authentication Routes
# =============================================================================
# API endpoints for authentication-related operations.
#
# Note: Actual signup/login is handled by Supabase Auth client-side.
# These routes are for getting user info after authentication.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from app.auth.dependencies import get_current_user
from app.auth.models import AuthUser
from app.dependencies import ReputationServiceDep, StoreDep
from core.models.user import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    store: StoreDep,
    reputation: ReputationServiceDep,
    user: AuthUser = Depends(get_current_user),
) -> UserResponse:
    """
    Get the current authenticated user's profile and reputation.

    The users row is created on first call if the signup trigger hasn't
    run yet.
    """
    profile = store.ensure_user(user.user_id, email=user.email)

    return UserResponse(
        id=user.id,
        email=profile.get("email") or user.email,
        display_name=profile.get("display_name"),
        created_at=profile.get("created_at"),
        updated_at=profile.get("updated_at"),
        reputation=reputation.get_reputation(user.user_id),
    )


@router.get("/verify")
async def verify_token(
    user: AuthUser = Depends(get_current_user)
) -> dict:
    """
    Verify that the current token is valid.

    Useful for checking if a stored token is still valid.
    """
    return {
        "valid": True,
        "user_id": str(user.id),
        "email": user.email
    }
