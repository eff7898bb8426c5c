# =============================================================================
# lib/ - Standalone Utility Modules
# =============================================================================
# This package contains reusable building blocks:
# - store.py: Storage interface shared by all services
# - memory_store.py: In-memory Store (tests, local runs)
# - supabase_client.py: Supabase client singleton and Supabase-backed Store
# - geo.py: Coordinate fuzzing and haversine distance
# - geocoding.py: Nominatim / Mapbox geocoders with bounded retry
# - utils.py: Shared utilities (error base class, time helpers)
#
# These modules are self-contained and can be tested in isolation.
# =============================================================================

from lib.store import Store, StoreError, UniqueViolationError
from lib.memory_store import InMemoryStore
from lib.geo import distance_meters, distance_miles, fuzzy
from lib.utils import ApplicationError

__all__ = [
    # Storage
    "Store",
    "StoreError",
    "UniqueViolationError",
    "InMemoryStore",
    # Geo
    "distance_meters",
    "distance_miles",
    "fuzzy",
    # Utils
    "ApplicationError",
]
