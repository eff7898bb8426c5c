# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - listings.py: Browse/create listings, open pickup requests
# - requests.py: Pickup request lifecycle and per-request chat
# - messages.py: Chat thread addressed by query/body request_id
# - property.py: Verified home location
# - users.py: Public reputation
#
# Each router is mounted in main.py with a URL prefix.
# =============================================================================

from . import health
from . import listings
from . import requests
from . import messages
from . import property
from . import users

__all__ = [
    "health",
    "listings",
    "requests",
    "messages",
    "property",
    "users",
]
