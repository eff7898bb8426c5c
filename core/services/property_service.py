# =============================================================================
# core/services/property_service.py - Property Verification
# =============================================================================
# A property is saved only when the claimed coordinate is within
# PROPERTY_MAX_DISTANCE_METERS of the user's live GPS reading. Saving is an
# upsert keyed by owner, so each user has at most one property and
# re-verification replaces the previous row.
# =============================================================================

import logging
from dataclasses import dataclass

from app.config import settings
from app.exceptions import (
    AddressNotFoundError,
    InvalidInputError,
    PropertyNotFoundError,
    PropertyTooFarError,
    UpstreamServiceError,
)
from core.models.property import NearbyAddress, PropertyVerifyRequest
from lib.geo import distance_meters
from lib.geocoding import AddressNotFound, Geocoder, GeocodingError
from lib.store import Row, Store
from lib.utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verification:
    """Outcome of a proximity check."""
    accepted: bool
    distance_meters: float
    max_distance_meters: float


def verify_location(
    candidate_lat: float,
    candidate_lng: float,
    live_lat: float,
    live_lng: float,
    max_distance_meters: float = 50.0,
) -> Verification:
    """Accept iff the candidate is within max_distance_meters of the live reading."""
    distance = distance_meters(candidate_lat, candidate_lng, live_lat, live_lng)
    return Verification(
        accepted=distance <= max_distance_meters,
        distance_meters=distance,
        max_distance_meters=max_distance_meters,
    )


class PropertyService:
    """Create, read and delete the caller's verified property."""

    def __init__(self, store: Store, max_distance_meters: float | None = None):
        self.store = store
        self.max_distance_meters = (
            settings.PROPERTY_MAX_DISTANCE_METERS if max_distance_meters is None else max_distance_meters
        )

    def verify_and_save(
        self,
        user_id: str,
        request: PropertyVerifyRequest,
        email: str | None = None,
    ) -> Row:
        """
        Run the proximity check and upsert the property on success.

        Raises:
            InvalidInputError: If the live GPS reading is missing
            PropertyTooFarError: If the claimed location is too far away
        """
        if settings.PROPERTY_PROXIMITY_CHECK:
            if request.live_lat is None or request.live_lng is None:
                raise InvalidInputError(
                    "live_lat and live_lng are required to verify a property",
                    details={"missing": [f for f in ("live_lat", "live_lng") if getattr(request, f) is None]},
                )

            result = verify_location(
                request.lat, request.lng,
                request.live_lat, request.live_lng,
                self.max_distance_meters,
            )
            if not result.accepted:
                logger.info(
                    f"Rejected property for user {user_id}: {result.distance_meters:.1f}m away"
                )
                raise PropertyTooFarError(result.distance_meters, result.max_distance_meters)

        self.store.ensure_user(user_id, email=email)
        prop = self.store.upsert_property(
            user_id=user_id,
            address=request.address,
            lat=request.lat,
            lng=request.lng,
            detected_at=utcnow(),
        )
        logger.info(f"Verified property {prop['id']} for user {user_id}")
        return prop

    def get_property(self, user_id: str) -> Row:
        prop = self.store.get_property(user_id)
        if prop is None:
            raise PropertyNotFoundError(user_id)
        return prop

    def delete_property(self, user_id: str) -> None:
        if not self.store.delete_property(user_id):
            raise PropertyNotFoundError(user_id)
        logger.info(f"Deleted property for user {user_id}")

    @staticmethod
    def nearby_address(geocoder: Geocoder, lat: float, lng: float) -> NearbyAddress:
        """
        Reverse-geocode the user's GPS position into an address suggestion.

        Raises:
            AddressNotFoundError: Nothing found at that position
            UpstreamServiceError: Geocoder failed after retries
        """
        try:
            result = geocoder.reverse(lat, lng)
        except AddressNotFound:
            raise AddressNotFoundError(f"{lat},{lng}")
        except GeocodingError as e:
            raise UpstreamServiceError("Geocoding service", e.message)

        return NearbyAddress(
            address=result.formatted_address,
            city=result.city,
            state=result.state,
            zip_code=result.zip_code,
            lat=result.lat,
            lng=result.lng,
            distance_meters=round(distance_meters(lat, lng, result.lat, result.lng), 1),
        )
