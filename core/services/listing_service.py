# =============================================================================
# core/services/listing_service.py - Listing Business Logic
# =============================================================================
# Handles listing creation, browsing and owner edits.
#
# Creation geocodes the exact address once and stores a fuzzed public
# coordinate next to it. The fuzzed coordinate is never recomputed, so the
# public pin of a listing doesn't move between fetches.
# =============================================================================

import logging
from datetime import timedelta
from typing import Any

from app.config import settings
from app.exceptions import (
    AddressNotFoundError,
    InvalidInputError,
    ListingNotFoundError,
    PropertyRequiredError,
    UnauthorizedError,
    UpstreamServiceError,
)
from core.models.listing import ListingCreate, ListingStatus, ListingUpdate
from core.services.visibility import ListingVisibility, full_view, public_view
from lib.geo import distance_miles, fuzzy
from lib.geocoding import AddressNotFound, Geocoder, GeocodingError
from lib.store import Row, Store
from lib.utils import utcnow

logger = logging.getLogger(__name__)

NON_NULLABLE_FIELDS = ("fruit_type", "quantity", "available_start", "available_end", "status")


class ListingService:
    """Create, browse, read, edit and delete listings."""

    def __init__(self, store: Store, visibility: ListingVisibility | None = None):
        self.store = store
        self.visibility = visibility or ListingVisibility(store)

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_listing(
        self,
        owner_id: str,
        data: ListingCreate,
        geocoder: Geocoder,
        email: str | None = None,
    ) -> dict[str, Any]:
        """
        Create an active listing for a verified owner.

        Args:
            owner_id: Caller's user ID
            data: Validated request body
            geocoder: Used once to resolve full_address
            email: Stored on the user row if it's created here

        Returns:
            Full view of the new listing (the creator is its owner)

        Raises:
            PropertyRequiredError: Owner has no verified property
            AddressNotFoundError: full_address didn't geocode
            UpstreamServiceError: Geocoder failed after retries
        """
        prop = self.store.get_property(owner_id)
        if not prop or not prop.get("is_verified"):
            raise PropertyRequiredError()

        try:
            geo = geocoder.geocode(data.full_address)
        except AddressNotFound:
            raise AddressNotFoundError(data.full_address)
        except GeocodingError as e:
            logger.error(f"Geocoding failed for listing by {owner_id}: {e}")
            raise UpstreamServiceError("Geocoding service", e.message)

        approx_lat, approx_lng = fuzzy(geo.lat, geo.lng, max_offset=settings.FUZZ_OFFSET_DEGREES)

        expiration_date = data.expiration_date
        if expiration_date is None and data.expiration_days is not None:
            expiration_date = utcnow() + timedelta(days=data.expiration_days)

        self.store.ensure_user(owner_id, email=email)
        listing = self.store.insert_listing({
            "user_id": owner_id,
            "property_id": prop.get("id"),
            "fruit_type": data.fruit_type,
            "quantity": data.quantity,
            "description": data.description,
            "pickup_notes": data.pickup_notes,
            "image_url": data.image_url,
            "full_address": data.full_address,
            "city": geo.city,
            "state": geo.state,
            "zip_code": geo.zip_code,
            "approximate_lat": approx_lat,
            "approximate_lng": approx_lng,
            "available_start": data.available_start.isoformat(),
            "available_end": data.available_end.isoformat(),
            "expiration_date": expiration_date.isoformat() if expiration_date else None,
            "status": ListingStatus.ACTIVE.value,
        })

        logger.info(f"Created listing {listing['id']} ({data.fruit_type}) for user {owner_id}")
        return full_view(listing)

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def browse(
        self,
        fruit_type: str | None = None,
        near_lat: float | None = None,
        near_lng: float | None = None,
        radius_miles: float | None = None,
    ) -> list[dict[str, Any]]:
        """
        Active listings, newest first, always in the public projection.

        When a reference point is given each item carries distance_miles
        (measured to the public coordinate) and radius_miles filters on it.
        """
        if not fruit_type or fruit_type == "all":
            fruit_type = None

        rows = self.store.list_active_listings(fruit_type=fruit_type)

        if near_lat is None or near_lng is None:
            return [public_view(r) for r in rows]

        results = []
        for row in rows:
            miles = distance_miles(near_lat, near_lng, row["approximate_lat"], row["approximate_lng"])
            if radius_miles is not None and miles > radius_miles:
                continue
            results.append(public_view(row, distance_miles=round(miles, 2)))
        return results

    def get_listing_row(self, listing_id: str) -> Row:
        listing = self.store.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    def get_listing(self, listing_id: str, viewer_id: str | None) -> dict[str, Any]:
        """One listing, projected for the viewer (public when unauthenticated)."""
        return self.visibility.project(self.get_listing_row(listing_id), viewer_id)

    def list_my_listings(self, owner_id: str) -> list[dict[str, Any]]:
        return [full_view(r) for r in self.store.list_listings_by_owner(owner_id)]

    # -------------------------------------------------------------------------
    # Owner edits
    # -------------------------------------------------------------------------

    def _owned(self, owner_id: str, listing_id: str) -> Row:
        listing = self.get_listing_row(listing_id)
        if str(listing["user_id"]) != owner_id:
            raise UnauthorizedError("Only the listing owner can change this listing")
        return listing

    def update_listing(self, owner_id: str, listing_id: str, update: ListingUpdate) -> dict[str, Any]:
        """
        Apply owner edits. Address and coordinates are immutable.

        Raises:
            UnauthorizedError: Caller doesn't own the listing
            InvalidInputError: Resulting availability window is inverted
        """
        listing = self._owned(owner_id, listing_id)
        changes = update.model_dump(mode="json", exclude_unset=True)
        cleared = [f for f in NON_NULLABLE_FIELDS if f in changes and changes[f] is None]
        if cleared:
            raise InvalidInputError(
                "These fields cannot be cleared",
                details={"fields": cleared},
            )
        if not changes:
            return full_view(listing)

        start = changes.get("available_start", listing["available_start"])
        end = changes.get("available_end", listing["available_end"])
        if str(end) < str(start):
            raise InvalidInputError(
                "available_end must be on or after available_start",
                details={"available_start": str(start), "available_end": str(end)},
            )

        updated = self.store.update_listing(listing_id, changes)
        if updated is None:
            raise ListingNotFoundError(listing_id)

        logger.info(f"Updated listing {listing_id}: {sorted(changes)}")
        return full_view(updated)

    def delete_listing(self, owner_id: str, listing_id: str) -> None:
        self._owned(owner_id, listing_id)
        if not self.store.delete_listing(listing_id):
            raise ListingNotFoundError(listing_id)
        logger.info(f"Deleted listing {listing_id}")
