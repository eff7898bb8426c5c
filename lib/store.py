# =============================================================================
# lib/store.py - Storage Interface
# =============================================================================
# One interface over the five tables (users, properties, listings,
# pickup_requests, messages). Services depend only on this class; two
# implementations exist:
# - lib.memory_store.InMemoryStore: process-local arena (tests, local runs)
# - lib.supabase_client.SupabaseStore: Supabase/PostgREST (production)
#
# Rows are plain dicts, mirroring what supabase-py returns.
#
# Concurrency contract every implementation must honour:
# - increment_rating is an atomic increment, never read-then-write
# - upsert_property is keyed by owner (one row per user)
# - insert_request raises UniqueViolationError on a repeated
#   (listing_id, requester_id) pair
# - transition_request / complete_request are compare-and-set on status;
#   complete_request applies the status change and the owner's rating
#   increment together or not at all
# =============================================================================

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from lib.utils import ApplicationError

Row = dict[str, Any]

RATING_COLUMNS = {
    "thumbs_up": "thumbs_up_count",
    "thumbs_down": "thumbs_down_count",
}


class StoreError(ApplicationError):
    """Error raised by a Store implementation."""

    def __init__(self, message: str, code: str = "STORE_ERROR", **kwargs):
        super().__init__(message, code=code, **kwargs)


class UniqueViolationError(StoreError):
    """A unique constraint rejected the write."""

    def __init__(self, table: str, columns: tuple[str, ...]):
        super().__init__(
            f"Duplicate row in {table} on ({', '.join(columns)})",
            code="UNIQUE_VIOLATION",
            details={"table": table, "columns": list(columns)},
        )
        self.table = table
        self.columns = columns


def rating_column(rating: str) -> str:
    """Map a rating value to its counter column."""
    try:
        return RATING_COLUMNS[rating]
    except KeyError:
        raise StoreError(
            f"Unknown rating: {rating}",
            code="INVALID_RATING",
            suggestion=f"Use one of: {', '.join(RATING_COLUMNS)}",
        )


class Store(ABC):
    """Persistence capabilities needed by the services."""

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_user(self, user_id: str) -> Row | None:
        ...

    @abstractmethod
    def ensure_user(
        self,
        user_id: str,
        email: str | None = None,
        display_name: str | None = None,
    ) -> Row:
        """Create the users row if missing; existing profile fields are kept."""

    @abstractmethod
    def increment_rating(self, user_id: str, rating: str) -> Row:
        """Atomically add one to the counter for `rating`. Returns the user row."""

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_property(self, user_id: str) -> Row | None:
        ...

    @abstractmethod
    def upsert_property(
        self,
        user_id: str,
        address: str,
        lat: float,
        lng: float,
        detected_at: datetime,
    ) -> Row:
        """Insert or fully replace the owner's single property row."""

    @abstractmethod
    def delete_property(self, user_id: str) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_listing(self, data: Row) -> Row:
        ...

    @abstractmethod
    def get_listing(self, listing_id: str) -> Row | None:
        ...

    @abstractmethod
    def list_active_listings(self, fruit_type: str | None = None) -> list[Row]:
        """Active listings, newest first."""

    @abstractmethod
    def list_listings_by_owner(self, user_id: str) -> list[Row]:
        ...

    @abstractmethod
    def update_listing(self, listing_id: str, changes: Row) -> Row | None:
        ...

    @abstractmethod
    def delete_listing(self, listing_id: str) -> bool:
        ...

    # -------------------------------------------------------------------------
    # Pickup Requests
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_request(self, data: Row) -> Row:
        """Insert a pickup request. Raises UniqueViolationError on duplicates."""

    @abstractmethod
    def get_request(self, request_id: str) -> Row | None:
        ...

    @abstractmethod
    def find_request(
        self,
        listing_id: str,
        requester_id: str,
        status: str | None = None,
    ) -> Row | None:
        ...

    @abstractmethod
    def list_requests_by_requester(self, requester_id: str) -> list[Row]:
        """Outgoing requests, newest first."""

    @abstractmethod
    def list_requests_for_owner(self, owner_id: str) -> list[Row]:
        """Requests against any listing owned by `owner_id`, newest first."""

    @abstractmethod
    def list_requests_for_listing(self, listing_id: str) -> list[Row]:
        ...

    @abstractmethod
    def transition_request(
        self,
        request_id: str,
        from_status: str,
        changes: Row,
    ) -> Row | None:
        """
        Apply `changes` only if the row's status still equals `from_status`.

        Returns the updated row, or None when the status had moved on.
        """

    @abstractmethod
    def complete_request(
        self,
        request_id: str,
        from_status: str,
        changes: Row,
        owner_id: str,
        rating: str,
    ) -> Row | None:
        """
        Compare-and-set to completed plus the owner's rating increment, as one unit.

        Returns the updated request row, or None when the status had moved on
        (in which case no counter changes).
        """

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    @abstractmethod
    def insert_message(self, data: Row) -> Row:
        ...

    @abstractmethod
    def list_messages(self, request_id: str, since: datetime | None = None) -> list[Row]:
        """Messages of one thread in ascending creation order."""

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        """Raise if the backend is unreachable."""
