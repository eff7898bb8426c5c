# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - user.py: Public profiles and reputation counters
# - property.py: Verified home location schemas
# - listing.py: Listing create/update and public/full projections
# - pickup_request.py: Pickup request lifecycle schemas
# - message.py: Chat thread schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# User Models
# -----------------------------------------------------------------------------
from .user import (
    Reputation,
    UserResponse,
    UserSummary,
)

# -----------------------------------------------------------------------------
# Property Models
# -----------------------------------------------------------------------------
from .property import (
    NearbyAddress,
    PropertyResponse,
    PropertyVerifyRequest,
)

# -----------------------------------------------------------------------------
# Listing Models
# -----------------------------------------------------------------------------
from .listing import (
    FullListing,
    ListingCreate,
    ListingStatus,
    ListingUpdate,
    PublicListing,
)

# -----------------------------------------------------------------------------
# Pickup Request Models
# -----------------------------------------------------------------------------
from .pickup_request import (
    PickupRequestCreate,
    PickupRequestResponse,
    PickupRequestUpdate,
    Rating,
    RequestStatus,
)

# -----------------------------------------------------------------------------
# Message Models
# -----------------------------------------------------------------------------
from .message import (
    MessageCreate,
    MessageResponse,
    MessageThread,
    ThreadMessageCreate,
)

__all__ = [
    # User
    "Reputation",
    "UserResponse",
    "UserSummary",
    # Property
    "NearbyAddress",
    "PropertyResponse",
    "PropertyVerifyRequest",
    # Listing
    "FullListing",
    "ListingCreate",
    "ListingStatus",
    "ListingUpdate",
    "PublicListing",
    # Pickup Request
    "PickupRequestCreate",
    "PickupRequestResponse",
    "PickupRequestUpdate",
    "Rating",
    "RequestStatus",
    # Message
    "MessageCreate",
    "MessageResponse",
    "MessageThread",
    "ThreadMessageCreate",
]
