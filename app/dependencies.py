# =============================================================================
# app/dependencies.py - Shared Dependencies
# =============================================================================
# FastAPI dependency injection for shared resources.
# These are injected into route handlers using Depends(); tests replace
# get_store / get_geocoder through app.dependency_overrides.
# =============================================================================

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.config import settings
from core.services import (
    ListingService,
    ListingVisibility,
    MessagingService,
    PropertyService,
    ReputationService,
    RequestService,
)
from lib.geocoding import Geocoder, get_geocoder as build_geocoder
from lib.memory_store import InMemoryStore
from lib.store import Store

logger = logging.getLogger(__name__)


@lru_cache
def get_store() -> Store:
    """
    Get the process-wide Store.

    STORE_BACKEND=memory gives a throwaway in-memory arena; anything else
    talks to Supabase.
    """
    if settings.STORE_BACKEND == "memory":
        logger.warning("Using in-memory store; data is lost on restart")
        return InMemoryStore()

    from lib.supabase_client import SupabaseStore
    return SupabaseStore()


@lru_cache
def get_geocoder() -> Geocoder:
    """Get the configured geocoder (Mapbox if a token is set, else Nominatim)."""
    return build_geocoder()


# Type aliases for dependency injection
StoreDep = Annotated[Store, Depends(get_store)]
GeocoderDep = Annotated[Geocoder, Depends(get_geocoder)]


def get_listing_service(store: StoreDep) -> ListingService:
    return ListingService(store, ListingVisibility(store))


def get_request_service(store: StoreDep) -> RequestService:
    return RequestService(store, ListingVisibility(store), ReputationService(store))


def get_messaging_service(store: StoreDep) -> MessagingService:
    return MessagingService(store, ListingVisibility(store))


def get_property_service(store: StoreDep) -> PropertyService:
    return PropertyService(store)


def get_reputation_service(store: StoreDep) -> ReputationService:
    return ReputationService(store)


ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
RequestServiceDep = Annotated[RequestService, Depends(get_request_service)]
MessagingServiceDep = Annotated[MessagingService, Depends(get_messaging_service)]
PropertyServiceDep = Annotated[PropertyService, Depends(get_property_service)]
ReputationServiceDep = Annotated[ReputationService, Depends(get_reputation_service)]
