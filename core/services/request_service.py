# =============================================================================
# core/services/request_service.py - Pickup Request State Machine
# =============================================================================
# Handles pickup request creation, listing and status transitions.
#
# Transition table (from, to) -> who may perform it:
#
#   pending  -> accepted   owner
#   pending  -> declined   owner
#   pending  -> cancelled  requester
#   accepted -> completed  owner or requester (+ picked_up_quantity, rating)
#   accepted -> cancelled  requester
#
# declined, completed and cancelled are terminal. Status writes are
# compare-and-set on the previous status, so a request that changed
# concurrently fails with InvalidStateError and nothing is applied.
# =============================================================================

import logging
from enum import Enum
from typing import Any

from app.exceptions import (
    DuplicateRequestError,
    InvalidInputError,
    InvalidStateError,
    ListingNotActiveError,
    ListingNotFoundError,
    RequestNotFoundError,
    SelfRequestError,
    UnauthorizedError,
)
from core.models.listing import ListingStatus
from core.models.pickup_request import PickupRequestUpdate, RequestStatus
from core.models.user import UserSummary
from core.services.reputation_service import ReputationService
from core.services.visibility import ListingVisibility
from lib.store import Row, Store, UniqueViolationError
from lib.utils import utcnow_iso

logger = logging.getLogger(__name__)


class Actor(str, Enum):
    """Which party may perform a transition."""
    OWNER = "owner"
    REQUESTER = "requester"
    EITHER = "either"


TRANSITIONS: dict[tuple[RequestStatus, RequestStatus], Actor] = {
    (RequestStatus.PENDING, RequestStatus.ACCEPTED): Actor.OWNER,
    (RequestStatus.PENDING, RequestStatus.DECLINED): Actor.OWNER,
    (RequestStatus.PENDING, RequestStatus.CANCELLED): Actor.REQUESTER,
    (RequestStatus.ACCEPTED, RequestStatus.COMPLETED): Actor.EITHER,
    (RequestStatus.ACCEPTED, RequestStatus.CANCELLED): Actor.REQUESTER,
}

def is_party(viewer_id: str, request: Row, listing: Row) -> bool:
    """True for the requester and the listing owner."""
    return viewer_id in (str(request["requester_id"]), str(listing["user_id"]))


def allowed_actor(current: RequestStatus, target: RequestStatus) -> Actor | None:
    return TRANSITIONS.get((current, target))


class RequestService:
    """Pickup request lifecycle."""

    def __init__(
        self,
        store: Store,
        visibility: ListingVisibility | None = None,
        reputation: ReputationService | None = None,
    ):
        self.store = store
        self.visibility = visibility or ListingVisibility(store)
        self.reputation = reputation or ReputationService(store)

    # -------------------------------------------------------------------------
    # Loading helpers
    # -------------------------------------------------------------------------

    def _load(self, request_id: str) -> tuple[Row, Row]:
        request = self.store.get_request(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        listing = self.store.get_listing(str(request["listing_id"]))
        if listing is None:
            raise RequestNotFoundError(request_id)
        return request, listing

    def load_for_party(self, viewer_id: str, request_id: str) -> tuple[Row, Row]:
        """
        Fetch a request and its listing, checking the viewer is a party.

        Raises:
            RequestNotFoundError: Unknown request
            UnauthorizedError: Viewer is neither requester nor owner
        """
        request, listing = self._load(request_id)
        if not is_party(viewer_id, request, listing):
            raise UnauthorizedError("You are not part of this pickup request")
        return request, listing

    def _user_summary(self, user_id: str) -> dict[str, Any] | None:
        user = self.store.get_user(user_id)
        return UserSummary.model_validate(user).model_dump(mode="json") if user else None

    def _with_listing(self, viewer_id: str, request: Row, listing: Row | None) -> dict[str, Any]:
        """Attach the viewer-projected listing to a request row."""
        result = dict(request)
        result["listing"] = (
            self.visibility.project(listing, viewer_id, related_requests=[request])
            if listing else None
        )
        return result

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def create_request(
        self,
        requester_id: str,
        listing_id: str,
        message: str | None = None,
        email: str | None = None,
    ) -> Row:
        """
        Open a pickup request on someone else's active listing.

        Raises:
            ListingNotFoundError: Unknown listing
            ListingNotActiveError: Listing isn't active
            SelfRequestError: Requester owns the listing
            DuplicateRequestError: Requester already has a request for it
        """
        listing = self.store.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        if listing["status"] != ListingStatus.ACTIVE.value:
            raise ListingNotActiveError(listing_id, listing["status"])

        if str(listing["user_id"]) == requester_id:
            raise SelfRequestError(listing_id)

        self.store.ensure_user(requester_id, email=email)

        try:
            request = self.store.insert_request({
                "listing_id": listing_id,
                "requester_id": requester_id,
                "message": message.strip() if message and message.strip() else None,
                "status": RequestStatus.PENDING.value,
            })
        except UniqueViolationError:
            logger.info(f"Duplicate request by {requester_id} for listing {listing_id}")
            raise DuplicateRequestError(listing_id)

        logger.info(f"Created request {request['id']} on listing {listing_id} by {requester_id}")
        return request

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get_request(self, viewer_id: str, request_id: str) -> dict[str, Any]:
        """A single request with its projected listing and requester profile."""
        request, listing = self.load_for_party(viewer_id, request_id)
        result = self._with_listing(viewer_id, request, listing)
        result["requester"] = self._user_summary(str(request["requester_id"]))
        return result

    def list_requests(self, viewer_id: str, direction: str = "outgoing") -> list[dict[str, Any]]:
        """
        Requests where the viewer is requester ("outgoing") or listing owner ("incoming").

        Each item embeds its listing projected for the viewer, so outgoing
        requests only show the exact address once accepted.
        """
        if direction == "incoming":
            rows = self.store.list_requests_for_owner(viewer_id)
        elif direction == "outgoing":
            rows = self.store.list_requests_by_requester(viewer_id)
        else:
            raise InvalidInputError(
                f"Unknown request type: {direction}",
                details={"allowed": ["incoming", "outgoing"]},
            )

        listings: dict[str, Row | None] = {}
        results = []
        for row in rows:
            listing_id = str(row["listing_id"])
            if listing_id not in listings:
                listings[listing_id] = self.store.get_listing(listing_id)
            item = self._with_listing(viewer_id, row, listings[listing_id])
            if direction == "incoming":
                item["requester"] = self._user_summary(str(row["requester_id"]))
            results.append(item)
        return results

    def list_requests_for_listing(self, viewer_id: str, listing_id: str) -> list[dict[str, Any]]:
        """All requests on one listing; owner only."""
        listing = self.store.get_listing(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if str(listing["user_id"]) != viewer_id:
            raise UnauthorizedError("Only the listing owner can see its requests")

        results = []
        for row in self.store.list_requests_for_listing(listing_id):
            item = dict(row)
            item["requester"] = self._user_summary(str(row["requester_id"]))
            results.append(item)
        return results

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def update_status(self, viewer_id: str, request_id: str, update: PickupRequestUpdate) -> dict[str, Any]:
        """
        Move a request to update.status if the table allows it for this viewer.

        Raises:
            RequestNotFoundError: Unknown request
            UnauthorizedError: Viewer isn't a party, or isn't the party allowed
            InvalidStateError: Transition not in the table, or lost a race
            InvalidInputError: Completion without picked_up_quantity / rating
        """
        request, listing = self.load_for_party(viewer_id, request_id)
        current = RequestStatus(request["status"])
        target = update.status

        actor = allowed_actor(current, target)
        if actor is None:
            raise InvalidStateError(current.value, target.value)

        is_owner = viewer_id == str(listing["user_id"])
        is_requester = viewer_id == str(request["requester_id"])
        if actor is Actor.OWNER and not is_owner:
            raise UnauthorizedError(
                f"Only the listing owner can mark a request {target.value}",
                details={"required_actor": actor.value},
            )
        if actor is Actor.REQUESTER and not is_requester:
            raise UnauthorizedError(
                f"Only the requester can mark a request {target.value}",
                details={"required_actor": actor.value},
            )

        if target is RequestStatus.COMPLETED:
            updated = self._complete(request, listing, update)
        else:
            updated = self.store.transition_request(
                request_id, current.value, {"status": target.value}
            )

        if updated is None:
            # Someone else moved it between our read and write
            latest = self.store.get_request(request_id)
            raise InvalidStateError(latest["status"] if latest else current.value, target.value)

        logger.info(f"Request {request_id}: {current.value} -> {target.value} by {viewer_id}")
        return self._with_listing(viewer_id, updated, listing)

    def _complete(self, request: Row, listing: Row, update: PickupRequestUpdate) -> Row | None:
        quantity = (update.picked_up_quantity or "").strip()
        missing = []
        if not quantity:
            missing.append("picked_up_quantity")
        if update.rating is None:
            missing.append("rating")
        if missing:
            raise InvalidInputError(
                "Completing a pickup requires picked_up_quantity and rating",
                details={"missing": missing},
            )

        changes = {
            "status": RequestStatus.COMPLETED.value,
            "picked_up_quantity": quantity,
            "rating": update.rating.value,
            "completed_at": utcnow_iso(),
        }
        return self.reputation.record_completion(
            request_id=str(request["id"]),
            from_status=request["status"],
            changes=changes,
            owner_id=str(listing["user_id"]),
            rating=update.rating,
        )
