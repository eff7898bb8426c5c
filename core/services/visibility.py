# =============================================================================
# core/services/visibility.py - Listing Address Visibility
# =============================================================================
# Decides who may see a listing's exact address and projects listing rows
# accordingly. Every code path that returns a listing, directly or embedded
# in a request or message thread, goes through ListingVisibility.project().
#
# Rule: the exact address is visible to
#   1. the listing owner, and
#   2. a requester whose pickup request for that listing is "accepted".
# Everyone else gets the public projection.
# =============================================================================

import logging
from typing import Any, Iterable

from core.models.listing import FullListing, PublicListing
from core.models.pickup_request import RequestStatus
from lib.store import Row, Store

logger = logging.getLogger(__name__)


def can_see_exact_address(
    viewer_id: str | None,
    listing: Row,
    related_requests: Iterable[Row],
) -> bool:
    """
    Pure form of the visibility rule.

    Args:
        viewer_id: Caller's user ID, or None when unauthenticated
        listing: Listing row
        related_requests: Pickup request rows to consider (any listing, any requester)
    """
    if viewer_id is None:
        return False

    if str(listing["user_id"]) == viewer_id:
        return True

    return any(
        str(r["listing_id"]) == str(listing["id"])
        and str(r["requester_id"]) == viewer_id
        and r["status"] == RequestStatus.ACCEPTED.value
        for r in related_requests
    )


def public_view(listing: Row, **extra: Any) -> dict[str, Any]:
    """Public projection: whitelisted fields only."""
    return PublicListing.model_validate({**listing, **extra}).model_dump(mode="json")


def full_view(listing: Row, **extra: Any) -> dict[str, Any]:
    return FullListing.model_validate({**listing, **extra}).model_dump(mode="json")


class ListingVisibility:
    """Store-aware wrapper around the visibility rule."""

    def __init__(self, store: Store):
        self.store = store

    def can_see_exact_address(
        self,
        viewer_id: str | None,
        listing: Row,
        related_requests: Iterable[Row] | None = None,
    ) -> bool:
        """
        Apply the rule, loading the viewer's accepted request when the caller
        doesn't supply related requests.
        """
        if related_requests is None:
            if viewer_id is None or str(listing["user_id"]) == viewer_id:
                related_requests = []
            else:
                accepted = self.store.find_request(
                    str(listing["id"]),
                    viewer_id,
                    status=RequestStatus.ACCEPTED.value,
                )
                related_requests = [accepted] if accepted else []

        return can_see_exact_address(viewer_id, listing, related_requests)

    def project(
        self,
        listing: Row,
        viewer_id: str | None,
        related_requests: Iterable[Row] | None = None,
    ) -> dict[str, Any]:
        """Full view for entitled viewers, public view for everyone else."""
        if self.can_see_exact_address(viewer_id, listing, related_requests):
            return full_view(listing)
        return public_view(listing)
