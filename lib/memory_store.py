# =============================================================================
# lib/memory_store.py - In-Memory Store
# =============================================================================
# Process-local implementation of lib.store.Store. Used by the test suite and
# by STORE_BACKEND=memory for running the API without a Supabase project.
#
# A single lock serializes every write, which gives the same guarantees the
# database provides through unique constraints and row-level locking.
# =============================================================================

import copy
import logging
import threading
from datetime import datetime, timedelta
from uuid import uuid4

from lib.store import Row, Store, StoreError, UniqueViolationError, rating_column
from lib.utils import utcnow

logger = logging.getLogger(__name__)


class InMemoryStore(Store):
    """Dict-backed Store. Rows returned are copies; callers can't mutate state."""

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[str, Row] = {}
        self._properties: dict[str, Row] = {}  # keyed by user_id
        self._listings: dict[str, Row] = {}
        self._requests: dict[str, Row] = {}
        self._messages: dict[str, list[Row]] = {}  # keyed by pickup_request_id
        self._last_ts: datetime | None = None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> datetime:
        # Strictly increasing so creation order is never ambiguous
        now = utcnow()
        if self._last_ts is not None and now <= self._last_ts:
            now = self._last_ts + timedelta(microseconds=1)
        self._last_ts = now
        return now

    @staticmethod
    def _copy(row: Row | None) -> Row | None:
        return copy.deepcopy(row) if row is not None else None

    @staticmethod
    def _newest_first(rows: list[Row]) -> list[Row]:
        return sorted(rows, key=lambda r: r["created_at"], reverse=True)

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user(self, user_id: str) -> Row | None:
        with self._lock:
            return self._copy(self._users.get(user_id))

    def ensure_user(self, user_id, email=None, display_name=None) -> Row:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                now = self._now().isoformat()
                user = {
                    "id": user_id,
                    "email": email,
                    "display_name": display_name,
                    "thumbs_up_count": 0,
                    "thumbs_down_count": 0,
                    "created_at": now,
                    "updated_at": now,
                }
                self._users[user_id] = user
            return self._copy(user)

    def increment_rating(self, user_id: str, rating: str) -> Row:
        column = rating_column(rating)
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise StoreError(f"User not found: {user_id}", code="USER_NOT_FOUND")
            user[column] += 1
            user["updated_at"] = self._now().isoformat()
            return self._copy(user)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def get_property(self, user_id: str) -> Row | None:
        with self._lock:
            return self._copy(self._properties.get(user_id))

    def upsert_property(self, user_id, address, lat, lng, detected_at) -> Row:
        with self._lock:
            now = self._now().isoformat()
            existing = self._properties.get(user_id)
            row = {
                "id": existing["id"] if existing else str(uuid4()),
                "user_id": user_id,
                "address": address,
                "lat": lat,
                "lng": lng,
                "is_verified": True,
                "detected_at": detected_at.isoformat(),
                "created_at": existing["created_at"] if existing else now,
                "updated_at": now,
            }
            self._properties[user_id] = row
            return self._copy(row)

    def delete_property(self, user_id: str) -> bool:
        with self._lock:
            return self._properties.pop(user_id, None) is not None

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def insert_listing(self, data: Row) -> Row:
        with self._lock:
            now = self._now().isoformat()
            row = {
                "status": "active",
                **copy.deepcopy(data),
                "id": str(uuid4()),
                "created_at": now,
                "updated_at": now,
            }
            self._listings[row["id"]] = row
            return self._copy(row)

    def get_listing(self, listing_id: str) -> Row | None:
        with self._lock:
            return self._copy(self._listings.get(listing_id))

    def list_active_listings(self, fruit_type: str | None = None) -> list[Row]:
        with self._lock:
            rows = [
                r for r in self._listings.values()
                if r["status"] == "active"
                and (fruit_type is None or r["fruit_type"] == fruit_type)
            ]
            return [self._copy(r) for r in self._newest_first(rows)]

    def list_listings_by_owner(self, user_id: str) -> list[Row]:
        with self._lock:
            rows = [r for r in self._listings.values() if r["user_id"] == user_id]
            return [self._copy(r) for r in self._newest_first(rows)]

    def update_listing(self, listing_id: str, changes: Row) -> Row | None:
        with self._lock:
            row = self._listings.get(listing_id)
            if row is None:
                return None
            row.update(copy.deepcopy(changes))
            row["updated_at"] = self._now().isoformat()
            return self._copy(row)

    def delete_listing(self, listing_id: str) -> bool:
        with self._lock:
            if self._listings.pop(listing_id, None) is None:
                return False
            # Mirror ON DELETE CASCADE
            doomed = [rid for rid, r in self._requests.items() if r["listing_id"] == listing_id]
            for rid in doomed:
                del self._requests[rid]
                self._messages.pop(rid, None)
            return True

    # -------------------------------------------------------------------------
    # Pickup Requests
    # -------------------------------------------------------------------------

    def insert_request(self, data: Row) -> Row:
        with self._lock:
            for r in self._requests.values():
                if (r["listing_id"] == data["listing_id"]
                        and r["requester_id"] == data["requester_id"]):
                    raise UniqueViolationError("pickup_requests", ("listing_id", "requester_id"))
            now = self._now().isoformat()
            row = {
                "status": "pending",
                "message": None,
                "rating": None,
                "picked_up_quantity": None,
                "completed_at": None,
                **copy.deepcopy(data),
                "id": str(uuid4()),
                "created_at": now,
                "updated_at": now,
            }
            self._requests[row["id"]] = row
            return self._copy(row)

    def get_request(self, request_id: str) -> Row | None:
        with self._lock:
            return self._copy(self._requests.get(request_id))

    def find_request(self, listing_id, requester_id, status=None) -> Row | None:
        with self._lock:
            for r in self._requests.values():
                if (r["listing_id"] == listing_id
                        and r["requester_id"] == requester_id
                        and (status is None or r["status"] == status)):
                    return self._copy(r)
            return None

    def list_requests_by_requester(self, requester_id: str) -> list[Row]:
        with self._lock:
            rows = [r for r in self._requests.values() if r["requester_id"] == requester_id]
            return [self._copy(r) for r in self._newest_first(rows)]

    def list_requests_for_owner(self, owner_id: str) -> list[Row]:
        with self._lock:
            owned = {lid for lid, l in self._listings.items() if l["user_id"] == owner_id}
            rows = [r for r in self._requests.values() if r["listing_id"] in owned]
            return [self._copy(r) for r in self._newest_first(rows)]

    def list_requests_for_listing(self, listing_id: str) -> list[Row]:
        with self._lock:
            rows = [r for r in self._requests.values() if r["listing_id"] == listing_id]
            return [self._copy(r) for r in self._newest_first(rows)]

    def transition_request(self, request_id, from_status, changes) -> Row | None:
        with self._lock:
            row = self._requests.get(request_id)
            if row is None or row["status"] != from_status:
                return None
            row.update(copy.deepcopy(changes))
            row["updated_at"] = self._now().isoformat()
            return self._copy(row)

    def complete_request(self, request_id, from_status, changes, owner_id, rating) -> Row | None:
        column = rating_column(rating)
        with self._lock:
            row = self._requests.get(request_id)
            if row is None or row["status"] != from_status:
                return None
            owner = self._users.get(owner_id)
            if owner is None:
                raise StoreError(f"User not found: {owner_id}", code="USER_NOT_FOUND")
            now = self._now().isoformat()
            row.update(copy.deepcopy(changes))
            row["updated_at"] = now
            owner[column] += 1
            owner["updated_at"] = now
            return self._copy(row)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def insert_message(self, data: Row) -> Row:
        with self._lock:
            row = {
                "read_at": None,
                **copy.deepcopy(data),
                "id": str(uuid4()),
                "created_at": self._now().isoformat(),
            }
            self._messages.setdefault(row["pickup_request_id"], []).append(row)
            return self._copy(row)

    def list_messages(self, request_id: str, since: datetime | None = None) -> list[Row]:
        with self._lock:
            rows = self._messages.get(request_id, [])
            if since is not None:
                rows = [r for r in rows if datetime.fromisoformat(r["created_at"]) > since]
            return [self._copy(r) for r in rows]
