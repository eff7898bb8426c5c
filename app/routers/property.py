# =============================================================================
# app/routers/property.py - Property Endpoints
# =============================================================================
# Each user may register one home location. Registering requires standing
# at it: the live GPS reading is sent with the claim and checked here.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from fastapi.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from app.dependencies import GeocoderDep, PropertyServiceDep
from core.models.property import NearbyAddress, PropertyResponse, PropertyVerifyRequest
from core.services.property_service import PropertyService

router = APIRouter()


@router.get("", response_model=PropertyResponse)
async def get_property(
    service: PropertyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Get the caller's property."""
    return service.get_property(user.user_id)


@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
async def save_property(
    body: PropertyVerifyRequest,
    service: PropertyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Verify and save (or replace) the caller's property.

    Rejected with the measured distance when the live GPS reading is more
    than PROPERTY_MAX_DISTANCE_METERS from the claimed location.
    """
    return service.verify_and_save(user.user_id, body, email=user.email)


@router.delete("")
async def delete_property(
    service: PropertyServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Delete the caller's property."""
    service.delete_property(user.user_id)
    return {"success": True}


@router.get("/nearby-address", response_model=NearbyAddress)
async def nearby_address(
    lat: Annotated[float, Query(ge=-90, le=90)],
    lng: Annotated[float, Query(ge=-180, le=180)],
    geocoder: GeocoderDep,
    user: AuthUser = Depends(get_current_user),
):
    """Suggest the street address at the caller's GPS position."""
    return await run_in_threadpool(PropertyService.nearby_address, geocoder, lat, lng)
