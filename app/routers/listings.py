# =============================================================================
# app/routers/listings.py - Listing Endpoints
# =============================================================================
# Browse, create and manage fruit listings, and open pickup requests.
#
# Browsing and reading are public; the exact address is only included for
# the owner and for requesters whose request was accepted.
# =============================================================================

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status
from fastapi.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user, get_current_user_optional
from app.dependencies import GeocoderDep, ListingServiceDep, RequestServiceDep
from core.models.listing import ListingCreate, ListingUpdate
from core.models.pickup_request import PickupRequestCreate, PickupRequestResponse

router = APIRouter()


# =============================================================================
# Listings
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_listing(
    body: ListingCreate,
    service: ListingServiceDep,
    geocoder: GeocoderDep,
    user: AuthUser = Depends(get_current_user),
):
    """
    Create a listing.

    Requires a verified property. The address is geocoded and a fuzzed
    public location (about 500m off) is stored with it.

    A geocoder still failing after its retries answers 502
    UPSTREAM_SERVICE_ERROR, not 500.
    """
    # Geocoding blocks (with retries); keep it off the event loop
    return await run_in_threadpool(
        service.create_listing, user.user_id, body, geocoder, user.email
    )


@router.get("")
async def browse_listings(
    service: ListingServiceDep,
    fruit_type: Annotated[str | None, Query(description="Filter by fruit; 'all' for no filter")] = None,
    near_lat: Annotated[float | None, Query(ge=-90, le=90)] = None,
    near_lng: Annotated[float | None, Query(ge=-180, le=180)] = None,
    radius_miles: Annotated[float | None, Query(gt=0, description="Requires near_lat/near_lng")] = None,
):
    """
    List active listings, newest first.

    Always the public projection, whoever is asking.
    """
    return service.browse(
        fruit_type=fruit_type,
        near_lat=near_lat,
        near_lng=near_lng,
        radius_miles=radius_miles,
    )


@router.get("/mine")
async def list_my_listings(
    service: ListingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """All of the caller's listings, any status, with full addresses."""
    return service.list_my_listings(user.user_id)


@router.get("/{listing_id}")
async def get_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    service: ListingServiceDep,
    user: Optional[AuthUser] = Depends(get_current_user_optional),
):
    """
    Get one listing.

    full_address is present only for the owner and for a requester whose
    pickup request was accepted.
    """
    return service.get_listing(str(listing_id), user.user_id if user else None)


@router.patch("/{listing_id}")
async def update_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    body: ListingUpdate,
    service: ListingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Edit a listing. Owner only; the address can't be changed."""
    return service.update_listing(user.user_id, str(listing_id), body)


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    service: ListingServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """Delete a listing and its requests. Owner only."""
    service.delete_listing(user.user_id, str(listing_id))
    return {"success": True}


# =============================================================================
# Pickup requests on a listing
# =============================================================================

@router.post(
    "/{listing_id}/requests",
    response_model=PickupRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_pickup_request(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    service: RequestServiceDep,
    body: PickupRequestCreate | None = None,
    user: AuthUser = Depends(get_current_user),
):
    """
    Request a pickup from someone else's active listing.

    One request per listing per user.
    """
    return service.create_request(
        requester_id=user.user_id,
        listing_id=str(listing_id),
        message=body.message if body else None,
        email=user.email,
    )


@router.get("/{listing_id}/requests", response_model=list[PickupRequestResponse])
async def list_listing_requests(
    listing_id: Annotated[UUID, Path(description="Listing UUID")],
    service: RequestServiceDep,
    user: AuthUser = Depends(get_current_user),
):
    """All pickup requests for one listing. Owner only."""
    return service.list_requests_for_listing(user.user_id, str(listing_id))
