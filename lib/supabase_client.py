# =============================================================================
# lib/supabase_client.py - Supabase Client Wrapper and Store
# =============================================================================
# This module provides:
# - SupabaseClient: singleton access to the supabase-py client
# - SupabaseStore: lib.store.Store implemented over PostgREST tables
#
# Atomic operations rely on the database, not on this process:
# - unique (user_id) on properties + upsert(on_conflict="user_id")
# - unique (listing_id, requester_id) on pickup_requests (error 23505)
# - increment_user_rating / complete_pickup_request RPC functions
#   (see supabase/schema.sql)
#
# Usage:
#   from lib.supabase_client import SupabaseStore
#   store = SupabaseStore()
#   listing = store.get_listing(listing_id)
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from supabase import create_client, Client

from app.config import settings
from lib.store import Row, Store, StoreError, UniqueViolationError, rating_column

# Set up logging for this module
logger = logging.getLogger(__name__)

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


class SupabaseClientError(StoreError):
    """
    Error during Supabase operations.

    Provides actionable error messages: errors should tell HOW to fix,
    not just WHAT failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "SUPABASE_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code=code, suggestion=suggestion, details=details)

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class SupabaseClient:
    """
    Singleton holder for the supabase-py client.

    All methods are class methods for easy access without instantiation.
    """

    _instance: Client | None = None

    @classmethod
    def get_client(cls) -> Client:
        """
        Get or create the singleton Supabase client.

        Uses service_role key which bypasses Row Level Security (RLS);
        authorization is enforced by the services instead.

        Raises:
            SupabaseClientError: If client creation fails
        """
        if cls._instance is None:
            try:
                cls._instance = create_client(
                    settings.SUPABASE_URL,
                    settings.SUPABASE_SERVICE_KEY
                )
                logger.info("Supabase client initialized successfully")
            except Exception as e:
                raise SupabaseClientError(
                    message=f"Failed to create Supabase client: {e}",
                    code="CLIENT_INIT_FAILED",
                    suggestion="Check SUPABASE_URL and SUPABASE_SERVICE_KEY in your .env file"
                )
        return cls._instance


def _is_unique_violation(error: Exception) -> bool:
    return getattr(error, "code", None) == UNIQUE_VIOLATION or UNIQUE_VIOLATION in str(error)


class SupabaseStore(Store):
    """Store backed by Supabase tables and RPC functions."""

    def __init__(self, client: Client | None = None):
        self._client = client

    @property
    def client(self) -> Client:
        if self._client is None:
            self._client = SupabaseClient.get_client()
        return self._client

    def _execute(self, query, action: str, **details) -> list[Row]:
        """Run a PostgREST query and wrap failures in SupabaseClientError."""
        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Supabase {action} failed: {e}")
            raise SupabaseClientError(
                message=f"Failed to {action}: {e}",
                code=f"{action.upper().replace(' ', '_')}_FAILED",
                details=details,
            )
        data = response.data if response is not None else None
        if data is None:
            return []
        return data if isinstance(data, list) else [data]

    def _first(self, query, action: str, **details) -> Row | None:
        rows = self._execute(query.limit(1), action, **details)
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def get_user(self, user_id: str) -> Row | None:
        return self._first(
            self.client.table("users").select("*").eq("id", user_id),
            "fetch user", user_id=user_id,
        )

    def ensure_user(self, user_id, email=None, display_name=None) -> Row:
        existing = self.get_user(user_id)
        if existing:
            return existing

        data = {"id": user_id, "email": email, "display_name": display_name}
        rows = self._execute(
            self.client.table("users").upsert(data, on_conflict="id", ignore_duplicates=True),
            "ensure user", user_id=user_id,
        )
        return rows[0] if rows else (self.get_user(user_id) or data)

    def increment_rating(self, user_id: str, rating: str) -> Row:
        column = rating_column(rating)
        rows = self._execute(
            self.client.rpc(
                "increment_user_rating",
                {"p_user_id": user_id, "p_column": column},
            ),
            "increment rating", user_id=user_id, rating=rating,
        )
        if not rows:
            raise SupabaseClientError(
                message=f"User not found: {user_id}",
                code="USER_NOT_FOUND",
            )
        return rows[0]

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    def get_property(self, user_id: str) -> Row | None:
        return self._first(
            self.client.table("properties").select("*").eq("user_id", user_id),
            "fetch property", user_id=user_id,
        )

    def upsert_property(self, user_id, address, lat, lng, detected_at) -> Row:
        data = {
            "user_id": user_id,
            "address": address,
            "lat": lat,
            "lng": lng,
            "is_verified": True,
            "detected_at": detected_at.isoformat(),
            "updated_at": detected_at.isoformat(),
        }
        rows = self._execute(
            self.client.table("properties").upsert(data, on_conflict="user_id"),
            "upsert property", user_id=user_id,
        )
        if not rows:
            raise SupabaseClientError("Upsert returned no data", code="UPSERT_NO_DATA")
        return rows[0]

    def delete_property(self, user_id: str) -> bool:
        rows = self._execute(
            self.client.table("properties").delete().eq("user_id", user_id),
            "delete property", user_id=user_id,
        )
        return bool(rows)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def insert_listing(self, data: Row) -> Row:
        rows = self._execute(
            self.client.table("listings").insert(data),
            "insert listing",
        )
        if not rows:
            raise SupabaseClientError("Insert returned no data", code="INSERT_NO_DATA")
        return rows[0]

    def get_listing(self, listing_id: str) -> Row | None:
        return self._first(
            self.client.table("listings").select("*").eq("id", listing_id),
            "fetch listing", listing_id=listing_id,
        )

    def list_active_listings(self, fruit_type: str | None = None) -> list[Row]:
        query = (
            self.client.table("listings")
            .select("*")
            .eq("status", "active")
            .order("created_at", desc=True)
        )
        if fruit_type:
            query = query.eq("fruit_type", fruit_type)
        return self._execute(query, "list listings", fruit_type=fruit_type)

    def list_listings_by_owner(self, user_id: str) -> list[Row]:
        return self._execute(
            self.client.table("listings")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True),
            "list owner listings", user_id=user_id,
        )

    def update_listing(self, listing_id: str, changes: Row) -> Row | None:
        rows = self._execute(
            self.client.table("listings").update(changes).eq("id", listing_id),
            "update listing", listing_id=listing_id,
        )
        return rows[0] if rows else None

    def delete_listing(self, listing_id: str) -> bool:
        rows = self._execute(
            self.client.table("listings").delete().eq("id", listing_id),
            "delete listing", listing_id=listing_id,
        )
        return bool(rows)

    # -------------------------------------------------------------------------
    # Pickup Requests
    # -------------------------------------------------------------------------

    def insert_request(self, data: Row) -> Row:
        try:
            response = self.client.table("pickup_requests").insert(data).execute()
        except Exception as e:
            if _is_unique_violation(e):
                raise UniqueViolationError("pickup_requests", ("listing_id", "requester_id"))
            logger.error(f"Supabase insert request failed: {e}")
            raise SupabaseClientError(
                message=f"Failed to insert pickup request: {e}",
                code="INSERT_REQUEST_FAILED",
                details={"listing_id": data.get("listing_id")},
            )
        if not response.data:
            raise SupabaseClientError("Insert returned no data", code="INSERT_NO_DATA")
        return response.data[0]

    def get_request(self, request_id: str) -> Row | None:
        return self._first(
            self.client.table("pickup_requests").select("*").eq("id", request_id),
            "fetch request", request_id=request_id,
        )

    def find_request(self, listing_id, requester_id, status=None) -> Row | None:
        query = (
            self.client.table("pickup_requests")
            .select("*")
            .eq("listing_id", listing_id)
            .eq("requester_id", requester_id)
        )
        if status:
            query = query.eq("status", status)
        return self._first(query, "find request", listing_id=listing_id)

    def list_requests_by_requester(self, requester_id: str) -> list[Row]:
        return self._execute(
            self.client.table("pickup_requests")
            .select("*")
            .eq("requester_id", requester_id)
            .order("created_at", desc=True),
            "list outgoing requests", requester_id=requester_id,
        )

    def list_requests_for_owner(self, owner_id: str) -> list[Row]:
        rows = self._execute(
            self.client.table("pickup_requests")
            .select("*, listings!inner(user_id)")
            .eq("listings.user_id", owner_id)
            .order("created_at", desc=True),
            "list incoming requests", owner_id=owner_id,
        )
        # Drop the join stub; callers embed the full projected listing themselves
        for row in rows:
            row.pop("listings", None)
        return rows

    def list_requests_for_listing(self, listing_id: str) -> list[Row]:
        return self._execute(
            self.client.table("pickup_requests")
            .select("*")
            .eq("listing_id", listing_id)
            .order("created_at", desc=True),
            "list listing requests", listing_id=listing_id,
        )

    def transition_request(self, request_id, from_status, changes) -> Row | None:
        rows = self._execute(
            self.client.table("pickup_requests")
            .update(changes)
            .eq("id", request_id)
            .eq("status", from_status),
            "update request", request_id=request_id,
        )
        return rows[0] if rows else None

    def complete_request(self, request_id, from_status, changes, owner_id, rating) -> Row | None:
        rating_column(rating)
        rows = self._execute(
            self.client.rpc(
                "complete_pickup_request",
                {
                    "p_request_id": request_id,
                    "p_from_status": from_status,
                    "p_picked_up_quantity": changes["picked_up_quantity"],
                    "p_rating": rating,
                    "p_completed_at": changes["completed_at"],
                    "p_owner_id": owner_id,
                },
            ),
            "complete request", request_id=request_id,
        )
        return rows[0] if rows else None

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    def insert_message(self, data: Row) -> Row:
        rows = self._execute(
            self.client.table("messages").insert(data),
            "insert message", pickup_request_id=data.get("pickup_request_id"),
        )
        if not rows:
            raise SupabaseClientError("Insert returned no data", code="INSERT_NO_DATA")
        return rows[0]

    def list_messages(self, request_id: str, since: datetime | None = None) -> list[Row]:
        query = (
            self.client.table("messages")
            .select("*")
            .eq("pickup_request_id", request_id)
        )
        if since is not None:
            query = query.gt("created_at", since.isoformat())
        return self._execute(
            query.order("created_at", desc=False),
            "fetch messages", request_id=request_id,
        )

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    def ping(self) -> None:
        self._execute(self.client.table("listings").select("id").limit(1), "ping database")
