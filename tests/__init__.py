# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the Fruity API:
# - test_models.py: Pydantic model validation
# - test_geo.py: Fuzzing and distance
# - test_geocoding.py: Nominatim / Mapbox clients with retries
# - test_supabase_store.py: PostgREST payloads built by SupabaseStore
# - test_*_service.py: Core services against the in-memory store
# - test_api.py: Integration tests for API endpoints
#
# Run tests with: poetry run pytest
# =============================================================================
