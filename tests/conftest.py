# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up mock environment variables before any imports
# - In-memory store and a canned geocoder instead of Supabase / Nominatim
# - A TestClient whose caller is chosen per request with the X-Test-User
#   header, so tests never need real JWTs
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")

from datetime import date, timedelta
from typing import Optional
from uuid import UUID

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from app.auth.models import AuthUser
from app.exceptions import UnauthenticatedError
from lib.geocoding import AddressNotFound, GeocodeResult, GeocodingError
from lib.memory_store import InMemoryStore


# =============================================================================
# Test identities
# =============================================================================

OWNER_ID = "11111111-1111-4111-8111-111111111111"
REQUESTER_ID = "22222222-2222-4222-8222-222222222222"
STRANGER_ID = "33333333-3333-4333-8333-333333333333"

# Geocoder answer for any address it doesn't know
HOME_LAT = 37.4419
HOME_LNG = -122.1430

TEST_USER_HEADER = "X-Test-User"


def as_user(user_id: str) -> dict[str, str]:
    """Headers that make the TestClient act as user_id."""
    return {TEST_USER_HEADER: user_id}


# =============================================================================
# Fakes
# =============================================================================

class FakeGeocoder:
    """
    Canned geocoder.

    "nowhere" in an address means no match; "outage" means the service
    failed after retries. Everything else resolves to HOME_LAT/HOME_LNG.
    """

    def __init__(self):
        self.calls: list[str] = []

    def geocode(self, address: str) -> GeocodeResult:
        self.calls.append(address)
        if "nowhere" in address.lower():
            raise AddressNotFound(address)
        if "outage" in address.lower():
            raise GeocodingError("nominatim failed after 3 attempts", code="GEOCODING_RETRIES_EXHAUSTED")
        return GeocodeResult(
            lat=HOME_LAT,
            lng=HOME_LNG,
            city="Palo Alto",
            state="CA",
            zip_code="94301",
            formatted_address=address,
        )

    def reverse(self, lat: float, lng: float) -> GeocodeResult:
        self.calls.append(f"{lat},{lng}")
        return GeocodeResult(
            lat=lat,
            lng=lng,
            city="Palo Alto",
            state="CA",
            zip_code="94301",
            formatted_address="100 University Ave, Palo Alto, CA 94301",
        )


def _header_user(request: Request) -> Optional[AuthUser]:
    user_id = request.headers.get(TEST_USER_HEADER)
    if not user_id:
        return None
    return AuthUser(id=UUID(user_id), email=f"{user_id[:8]}@example.com")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store():
    """Fresh in-memory store per test."""
    return InMemoryStore()


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def client(store, geocoder):
    """TestClient wired to the in-memory store and fake geocoder."""
    from app.auth.dependencies import get_current_user, get_current_user_optional
    from app.dependencies import get_geocoder, get_store
    from app.main import app

    async def current_user(request: Request) -> AuthUser:
        user = _header_user(request)
        if user is None:
            raise UnauthenticatedError()
        return user

    async def current_user_optional(request: Request) -> Optional[AuthUser]:
        return _header_user(request)

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    app.dependency_overrides[get_current_user] = current_user
    app.dependency_overrides[get_current_user_optional] = current_user_optional

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def verified_owner(store):
    """OWNER_ID with a verified property at HOME_LAT/HOME_LNG."""
    from lib.utils import utcnow

    store.ensure_user(OWNER_ID, email="owner@example.com", display_name="Olive Owner")
    store.upsert_property(OWNER_ID, "1 Main St, Palo Alto, CA", HOME_LAT, HOME_LNG, utcnow())
    return OWNER_ID


@pytest.fixture
def listing_payload():
    """Valid ListingCreate body."""
    start = date.today()
    return {
        "fruit_type": "lemons",
        "quantity": "about 20",
        "description": "Meyer lemons, very juicy",
        "full_address": "1 Main St, Palo Alto, CA",
        "available_start": start.isoformat(),
        "available_end": (start + timedelta(days=14)).isoformat(),
        "pickup_notes": "Side gate is unlocked",
    }


@pytest.fixture
def listing_row(store, verified_owner):
    """An active listing owned by OWNER_ID, inserted directly into the store."""
    start = date.today()
    return store.insert_listing({
        "user_id": OWNER_ID,
        "fruit_type": "lemons",
        "quantity": "about 20",
        "description": None,
        "pickup_notes": None,
        "full_address": "1 Main St, Palo Alto, CA",
        "city": "Palo Alto",
        "state": "CA",
        "zip_code": "94301",
        "approximate_lat": HOME_LAT + 0.002,
        "approximate_lng": HOME_LNG - 0.003,
        "available_start": start.isoformat(),
        "available_end": (start + timedelta(days=14)).isoformat(),
    })
