# =============================================================================
# core/services/messaging_service.py - Request Chat Threads
# =============================================================================
# Each pickup request has one chat thread. Only the two parties (requester
# and listing owner) can read or write it; the same check guards both.
# Messages are append-only and listed oldest first. There is no push
# channel: clients poll with `since` set to the last created_at they saw.
# =============================================================================

import logging
from datetime import datetime, timezone
from typing import Any

from app.config import settings
from app.exceptions import InvalidInputError, RequestNotFoundError, UnauthorizedError
from core.models.user import UserSummary
from core.services.visibility import ListingVisibility
from lib.store import Row, Store

logger = logging.getLogger(__name__)


def can_access_thread(viewer_id: str | None, request: Row, listing: Row) -> bool:
    """Requester or listing owner; nobody else."""
    if viewer_id is None:
        return False
    return viewer_id in (str(request["requester_id"]), str(listing["user_id"]))


class MessagingService:
    """Gatekeeper for reading and appending thread messages."""

    def __init__(self, store: Store, visibility: ListingVisibility | None = None):
        self.store = store
        self.visibility = visibility or ListingVisibility(store)

    def _open_thread(self, viewer_id: str, request_id: str) -> tuple[Row, Row]:
        request = self.store.get_request(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        listing = self.store.get_listing(str(request["listing_id"]))
        if listing is None:
            raise RequestNotFoundError(request_id)
        if not can_access_thread(viewer_id, request, listing):
            raise UnauthorizedError("You are not part of this conversation")
        return request, listing

    def _with_senders(self, messages: list[Row]) -> list[dict[str, Any]]:
        senders: dict[str, dict[str, Any] | None] = {}
        results = []
        for msg in messages:
            sender_id = str(msg["sender_id"])
            if sender_id not in senders:
                user = self.store.get_user(sender_id)
                senders[sender_id] = (
                    UserSummary.model_validate(user).model_dump(mode="json") if user else None
                )
            results.append({**msg, "sender": senders[sender_id]})
        return results

    def post_message(
        self,
        viewer_id: str,
        request_id: str,
        content: str,
        email: str | None = None,
    ) -> dict[str, Any]:
        """
        Append a message to a request thread.

        Raises:
            InvalidInputError: Content is empty after trimming
            RequestNotFoundError: Unknown request
            UnauthorizedError: Viewer isn't a party
        """
        text = (content or "").strip()
        if not text:
            raise InvalidInputError("Message content is required")

        self._open_thread(viewer_id, request_id)
        self.store.ensure_user(viewer_id, email=email)

        message = self.store.insert_message({
            "pickup_request_id": request_id,
            "sender_id": viewer_id,
            "content": text,
        })
        logger.debug(f"Message {message['id']} posted to request {request_id} by {viewer_id}")
        return self._with_senders([message])[0]

    def list_messages(
        self,
        viewer_id: str,
        request_id: str,
        since: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Read a thread, optionally only messages newer than `since`.

        Returns:
            Dict matching MessageThread: request id/status, the listing
            projected for the viewer, messages oldest first and the
            polling cadence clients should use
        """
        request, listing = self._open_thread(viewer_id, request_id)

        if since is not None and since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        messages = self.store.list_messages(request_id, since=since)
        return {
            "request_id": request["id"],
            "request_status": request["status"],
            "listing": self.visibility.project(listing, viewer_id, related_requests=[request]),
            "messages": self._with_senders(messages),
            "poll_interval_seconds": settings.MESSAGE_POLL_INTERVAL_SECONDS,
        }
