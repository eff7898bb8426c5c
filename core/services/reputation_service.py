# =============================================================================
# core/services/reputation_service.py - Reputation Ledger
# =============================================================================
# Listing owners accrue thumbs-up / thumbs-down counters from completed
# pickups. Counters only ever go up, and always via the store's atomic
# increment so concurrent completions can't lose an update.
# =============================================================================

import logging

from app.exceptions import UserNotFoundError
from core.models.pickup_request import Rating
from core.models.user import Reputation
from lib.store import Row, Store

logger = logging.getLogger(__name__)


def positivity_ratio(thumbs_up: int, thumbs_down: int) -> float:
    """Percentage of positive ratings, 0.0 when there are none."""
    total = thumbs_up + thumbs_down
    if total == 0:
        return 0.0
    return round(thumbs_up / total * 100, 1)


class ReputationService:
    """Per-user rating counters."""

    def __init__(self, store: Store):
        self.store = store

    def record_rating(self, user_id: str, rating: Rating | str) -> Row:
        """
        Atomically add one rating to a user's counters.

        Returns:
            The updated user row
        """
        value = Rating(rating).value
        user = self.store.increment_rating(user_id, value)
        logger.info(f"Recorded {value} for user {user_id}")
        return user

    def record_completion(
        self,
        request_id: str,
        from_status: str,
        changes: Row,
        owner_id: str,
        rating: Rating | str,
    ) -> Row | None:
        """
        Complete a pickup request and credit the listing owner in one step.

        Returns:
            The completed request row, or None if the request left
            `from_status` first (nothing is recorded in that case)
        """
        value = Rating(rating).value
        self.store.ensure_user(owner_id)
        completed = self.store.complete_request(request_id, from_status, changes, owner_id, value)
        if completed is not None:
            logger.info(f"Request {request_id} completed; recorded {value} for owner {owner_id}")
        return completed

    def get_reputation(self, user_id: str) -> Reputation:
        """
        Read a user's counters and positivity ratio.

        Raises:
            UserNotFoundError: If the user has no profile row
        """
        user = self.store.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        up = user.get("thumbs_up_count") or 0
        down = user.get("thumbs_down_count") or 0
        return Reputation(
            user_id=user_id,
            thumbs_up_count=up,
            thumbs_down_count=down,
            total_ratings=up + down,
            positivity_ratio=positivity_ratio(up, down),
            has_ratings=(up + down) > 0,
        )
