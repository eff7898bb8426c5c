# =============================================================================
# tests/test_request_service.py - Pickup Request State Machine Tests
# =============================================================================
# Run with: poetry run pytest tests/test_request_service.py -v
# =============================================================================

import pytest

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
from core.models.pickup_request import PickupRequestUpdate, RequestStatus
from core.services.request_service import TRANSITIONS, Actor, RequestService, allowed_actor
from tests.conftest import OWNER_ID, REQUESTER_ID, STRANGER_ID

UNKNOWN_ID = "99999999-9999-4999-8999-999999999999"


def _update(status, **kwargs):
    return PickupRequestUpdate(status=status, **kwargs)


@pytest.fixture
def service(store):
    return RequestService(store)


@pytest.fixture
def pending(service, listing_row):
    return service.create_request(REQUESTER_ID, listing_row["id"], message="Could I grab a bag?")


@pytest.fixture
def accepted(service, pending):
    service.update_status(OWNER_ID, pending["id"], _update("accepted"))
    return pending


class TestTransitionTable:
    """Tests for the static table."""

    def test_exact_table(self):
        assert TRANSITIONS == {
            (RequestStatus.PENDING, RequestStatus.ACCEPTED): Actor.OWNER,
            (RequestStatus.PENDING, RequestStatus.DECLINED): Actor.OWNER,
            (RequestStatus.PENDING, RequestStatus.CANCELLED): Actor.REQUESTER,
            (RequestStatus.ACCEPTED, RequestStatus.COMPLETED): Actor.EITHER,
            (RequestStatus.ACCEPTED, RequestStatus.CANCELLED): Actor.REQUESTER,
        }

    @pytest.mark.parametrize("terminal", ["declined", "completed", "cancelled"])
    def test_terminal_states_have_no_exits(self, terminal):
        for target in RequestStatus:
            assert allowed_actor(RequestStatus(terminal), target) is None


class TestCreateRequest:
    """Tests for RequestService.create_request."""

    def test_creates_pending(self, pending, listing_row):
        assert pending["status"] == "pending"
        assert pending["listing_id"] == listing_row["id"]
        assert pending["requester_id"] == REQUESTER_ID
        assert pending["message"] == "Could I grab a bag?"

    def test_blank_message_stored_as_none(self, service, listing_row):
        req = service.create_request(REQUESTER_ID, listing_row["id"], message="   ")
        assert req["message"] is None

    def test_unknown_listing(self, service):
        with pytest.raises(ListingNotFoundError):
            service.create_request(REQUESTER_ID, UNKNOWN_ID)

    def test_own_listing(self, service, listing_row):
        with pytest.raises(SelfRequestError) as exc_info:
            service.create_request(OWNER_ID, listing_row["id"])
        assert exc_info.value.status_code == 400

    def test_inactive_listing(self, service, store, listing_row):
        store.update_listing(listing_row["id"], {"status": "completed"})
        with pytest.raises(ListingNotActiveError):
            service.create_request(REQUESTER_ID, listing_row["id"])

    def test_duplicate(self, service, pending, listing_row):
        with pytest.raises(DuplicateRequestError) as exc_info:
            service.create_request(REQUESTER_ID, listing_row["id"])
        assert exc_info.value.message == "You already requested this listing"

    def test_duplicate_even_after_terminal(self, service, pending, listing_row):
        service.update_status(REQUESTER_ID, pending["id"], _update("cancelled"))
        with pytest.raises(DuplicateRequestError):
            service.create_request(REQUESTER_ID, listing_row["id"])


class TestUpdateStatus:
    """Tests for RequestService.update_status."""

    def test_owner_accepts(self, service, pending):
        result = service.update_status(OWNER_ID, pending["id"], _update("accepted"))
        assert result["status"] == "accepted"
        assert result["listing"]["full_address"] == "1 Main St, Palo Alto, CA"

    def test_owner_declines(self, service, pending):
        result = service.update_status(OWNER_ID, pending["id"], _update("declined"))
        assert result["status"] == "declined"

    def test_requester_cannot_accept(self, service, pending, store):
        with pytest.raises(UnauthorizedError) as exc_info:
            service.update_status(REQUESTER_ID, pending["id"], _update("accepted"))
        assert exc_info.value.status_code == 403
        assert store.get_request(pending["id"])["status"] == "pending"

    def test_owner_cannot_cancel(self, service, pending):
        with pytest.raises(UnauthorizedError):
            service.update_status(OWNER_ID, pending["id"], _update("cancelled"))

    def test_requester_cancels_pending(self, service, pending):
        assert service.update_status(REQUESTER_ID, pending["id"], _update("cancelled"))["status"] == "cancelled"

    def test_requester_cancels_accepted(self, service, accepted):
        assert service.update_status(REQUESTER_ID, accepted["id"], _update("cancelled"))["status"] == "cancelled"

    def test_stranger_gets_403(self, service, pending):
        with pytest.raises(UnauthorizedError):
            service.update_status(STRANGER_ID, pending["id"], _update("accepted"))

    def test_unknown_request(self, service):
        with pytest.raises(RequestNotFoundError):
            service.update_status(OWNER_ID, UNKNOWN_ID, _update("accepted"))

    def test_pending_to_completed_is_invalid(self, service, pending):
        with pytest.raises(InvalidStateError) as exc_info:
            service.update_status(
                OWNER_ID, pending["id"],
                _update("completed", picked_up_quantity="1 bag", rating="thumbs_up"),
            )
        assert exc_info.value.details == {"current_status": "pending", "requested_status": "completed"}

    def test_accept_twice_is_invalid(self, service, accepted):
        with pytest.raises(InvalidStateError):
            service.update_status(OWNER_ID, accepted["id"], _update("accepted"))

    @pytest.mark.parametrize("target", ["pending", "accepted", "declined", "completed", "cancelled"])
    def test_terminal_is_final(self, service, pending, target):
        service.update_status(OWNER_ID, pending["id"], _update("declined"))
        with pytest.raises(InvalidStateError):
            service.update_status(
                OWNER_ID, pending["id"],
                _update(target, picked_up_quantity="1 bag", rating="thumbs_up"),
            )

    def test_complete_requires_fields(self, service, accepted, store):
        with pytest.raises(InvalidInputError) as exc_info:
            service.update_status(REQUESTER_ID, accepted["id"], _update("completed"))
        assert exc_info.value.details["missing"] == ["picked_up_quantity", "rating"]
        assert store.get_request(accepted["id"])["status"] == "accepted"

    def test_complete_rejects_blank_quantity(self, service, accepted):
        with pytest.raises(InvalidInputError) as exc_info:
            service.update_status(
                REQUESTER_ID, accepted["id"],
                _update("completed", picked_up_quantity="  ", rating="thumbs_up"),
            )
        assert exc_info.value.details["missing"] == ["picked_up_quantity"]

    @pytest.mark.parametrize("actor", [OWNER_ID, REQUESTER_ID])
    def test_either_party_completes(self, service, accepted, store, actor):
        result = service.update_status(
            actor, accepted["id"],
            _update("completed", picked_up_quantity="5 lbs", rating="thumbs_up"),
        )
        assert result["status"] == "completed"
        assert result["picked_up_quantity"] == "5 lbs"
        assert result["rating"] == "thumbs_up"
        assert result["completed_at"] is not None
        assert store.get_user(OWNER_ID)["thumbs_up_count"] == 1

    def test_thumbs_down_counts(self, service, accepted, store):
        service.update_status(
            REQUESTER_ID, accepted["id"],
            _update("completed", picked_up_quantity="2 bags", rating="thumbs_down"),
        )
        owner = store.get_user(OWNER_ID)
        assert owner["thumbs_down_count"] == 1
        assert owner["thumbs_up_count"] == 0

    def test_lost_race_applies_nothing(self, service, accepted, store):
        # Another session cancelled between our read and our write
        real_get = store.get_request
        calls = {"n": 0}

        def stale_get(request_id):
            row = real_get(request_id)
            calls["n"] += 1
            if calls["n"] == 1:
                store.transition_request(request_id, "accepted", {"status": "cancelled"})
            return row

        store.get_request = stale_get
        with pytest.raises(InvalidStateError) as exc_info:
            service.update_status(
                OWNER_ID, accepted["id"],
                _update("completed", picked_up_quantity="1 bag", rating="thumbs_up"),
            )
        store.get_request = real_get

        assert exc_info.value.details["current_status"] == "cancelled"
        assert store.get_request(accepted["id"])["status"] == "cancelled"
        assert store.get_user(OWNER_ID)["thumbs_up_count"] == 0


class TestListRequests:
    """Tests for request listings and embedded listing projection."""

    def test_outgoing_hides_address_until_accepted(self, service, pending):
        [item] = service.list_requests(REQUESTER_ID, "outgoing")
        assert "full_address" not in item["listing"]

        service.update_status(OWNER_ID, pending["id"], _update("accepted"))
        [item] = service.list_requests(REQUESTER_ID, "outgoing")
        assert item["listing"]["full_address"] == "1 Main St, Palo Alto, CA"

    def test_incoming_for_owner(self, service, pending):
        [item] = service.list_requests(OWNER_ID, "incoming")
        assert item["id"] == pending["id"]
        assert item["listing"]["full_address"] == "1 Main St, Palo Alto, CA"
        assert item["requester"]["id"] == REQUESTER_ID

    def test_unknown_direction(self, service):
        with pytest.raises(InvalidInputError):
            service.list_requests(OWNER_ID, "sideways")

    def test_get_request_projects_for_viewer(self, service, pending):
        assert "full_address" not in service.get_request(REQUESTER_ID, pending["id"])["listing"]
        assert "full_address" in service.get_request(OWNER_ID, pending["id"])["listing"]
        with pytest.raises(UnauthorizedError):
            service.get_request(STRANGER_ID, pending["id"])

    def test_list_for_listing_owner_only(self, service, pending, listing_row):
        [item] = service.list_requests_for_listing(OWNER_ID, listing_row["id"])
        assert item["id"] == pending["id"]
        with pytest.raises(UnauthorizedError):
            service.list_requests_for_listing(REQUESTER_ID, listing_row["id"])
