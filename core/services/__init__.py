# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .listing_service import ListingService
from .messaging_service import MessagingService, can_access_thread
from .property_service import PropertyService, Verification, verify_location
from .reputation_service import ReputationService, positivity_ratio
from .request_service import RequestService, TRANSITIONS
from .visibility import ListingVisibility, can_see_exact_address

__all__ = [
    "ListingService",
    "MessagingService",
    "can_access_thread",
    "PropertyService",
    "Verification",
    "verify_location",
    "ReputationService",
    "positivity_ratio",
    "RequestService",
    "TRANSITIONS",
    "ListingVisibility",
    "can_see_exact_address",
]
