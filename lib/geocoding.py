# =============================================================================
# lib/geocoding.py - Address <-> Coordinate Lookup
# =============================================================================
# Two interchangeable geocoders behind one protocol:
# - NominatimGeocoder: free OpenStreetMap service (1 req/sec, needs User-Agent)
# - MapboxGeocoder: used when MAPBOX_TOKEN is configured
#
# Both retry rate-limited (429/403), 5xx and transport failures with a linear
# backoff (attempt n sleeps n * GEOCODE_RETRY_DELAY_SECONDS) and give up after
# GEOCODE_MAX_ATTEMPTS with GeocodingError. Calls are blocking; callers run
# them outside any lock.
#
# Usage:
#   from lib.geocoding import get_geocoder
#   result = get_geocoder().geocode("123 Main St, San Francisco, CA")
# =============================================================================

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol
from urllib.parse import quote

import httpx

from app.config import settings
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = (403, 429)


class GeocodingError(ApplicationError):
    """The geocoding service failed or kept rate-limiting us."""

    def __init__(self, message: str, code: str = "GEOCODING_FAILED", **kwargs):
        super().__init__(message, code=code, **kwargs)


class AddressNotFound(GeocodingError):
    """The service answered but had no match."""

    def __init__(self, query: str):
        super().__init__(
            f"No geocoding match for: {query}",
            code="ADDRESS_NOT_FOUND",
            suggestion="Include street, city and state",
            details={"query": query},
        )


@dataclass
class GeocodeResult:
    lat: float
    lng: float
    city: str = ""
    state: str = ""
    zip_code: str = ""
    formatted_address: str = ""


class Geocoder(Protocol):
    def geocode(self, address: str) -> GeocodeResult:
        ...

    def reverse(self, lat: float, lng: float) -> GeocodeResult:
        ...


class _HttpGeocoder:
    """Shared HTTP + retry plumbing."""

    name = "geocoder"

    def __init__(
        self,
        client: httpx.Client | None = None,
        max_attempts: int | None = None,
        retry_delay: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._client = client or httpx.Client(
            timeout=settings.GEOCODE_TIMEOUT_SECONDS,
            headers={"User-Agent": settings.GEOCODER_USER_AGENT},
        )
        self.max_attempts = max_attempts or settings.GEOCODE_MAX_ATTEMPTS
        self.retry_delay = settings.GEOCODE_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._sleep = sleep

    def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        last_error = "no attempts made"

        for attempt in range(self.max_attempts):
            if attempt > 0:
                delay = attempt * self.retry_delay
                logger.info(
                    f"Retrying {self.name} (attempt {attempt + 1}/{self.max_attempts}) in {delay:.1f}s"
                )
                self._sleep(delay)

            try:
                response = self._client.get(url, params=params)
            except httpx.TransportError as e:
                logger.warning(f"{self.name} transport error: {e}")
                last_error = str(e)
                continue

            if response.status_code in RATE_LIMIT_STATUSES:
                logger.warning(f"{self.name} rate limited ({response.status_code})")
                last_error = f"rate limited ({response.status_code})"
                continue

            if response.status_code >= 500:
                logger.warning(f"{self.name} server error {response.status_code}")
                last_error = f"server error ({response.status_code})"
                continue

            if response.status_code >= 400:
                raise GeocodingError(
                    f"{self.name} rejected the request: {response.status_code}",
                    details={"status_code": response.status_code},
                )

            try:
                return response.json()
            except ValueError as e:
                raise GeocodingError(f"{self.name} returned invalid JSON: {e}")

        raise GeocodingError(
            f"{self.name} failed after {self.max_attempts} attempts: {last_error}",
            code="GEOCODING_RETRIES_EXHAUSTED",
            suggestion="Try again in a moment",
        )


class NominatimGeocoder(_HttpGeocoder):
    """Free OpenStreetMap geocoder."""

    name = "nominatim"

    def __init__(self, base_url: str | None = None, **kwargs):
        super().__init__(**kwargs)
        self.base_url = (base_url or settings.NOMINATIM_URL).rstrip("/")

    @staticmethod
    def _city(details: dict[str, Any]) -> str:
        return (
            details.get("city")
            or details.get("town")
            or details.get("village")
            or details.get("municipality")
            or ""
        )

    def _to_result(self, item: dict[str, Any]) -> GeocodeResult:
        details = item.get("address") or {}
        return GeocodeResult(
            lat=float(item["lat"]),
            lng=float(item["lon"]),
            city=self._city(details),
            state=details.get("state", ""),
            zip_code=details.get("postcode", ""),
            formatted_address=item.get("display_name", ""),
        )

    def geocode(self, address: str) -> GeocodeResult:
        data = self._get_json(
            f"{self.base_url}/search",
            {"format": "json", "q": address, "addressdetails": 1, "limit": 1},
        )
        if not data:
            raise AddressNotFound(address)
        return self._to_result(data[0])

    def reverse(self, lat: float, lng: float) -> GeocodeResult:
        data = self._get_json(
            f"{self.base_url}/reverse",
            {"format": "json", "lat": lat, "lon": lng, "addressdetails": 1},
        )
        if not data or data.get("error"):
            raise AddressNotFound(f"{lat},{lng}")
        return self._to_result(data)


class MapboxGeocoder(_HttpGeocoder):
    """Mapbox Places geocoder (US only)."""

    name = "mapbox"
    BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"

    def __init__(self, token: str | None = None, **kwargs):
        super().__init__(**kwargs)
        self.token = token or settings.MAPBOX_TOKEN

    @staticmethod
    def _to_result(feature: dict[str, Any]) -> GeocodeResult:
        lng, lat = feature["center"]
        context = feature.get("context") or []

        def find(prefix: str) -> dict[str, Any]:
            return next((c for c in context if c.get("id", "").startswith(prefix)), {})

        region = find("region")
        return GeocodeResult(
            lat=float(lat),
            lng=float(lng),
            city=find("place").get("text") or feature.get("text", ""),
            state=(region.get("short_code") or "").replace("US-", ""),
            zip_code=find("postcode").get("text", ""),
            formatted_address=feature.get("place_name", ""),
        )

    def _lookup(self, query: str) -> GeocodeResult:
        data = self._get_json(
            f"{self.BASE_URL}/{quote(query)}.json",
            {"access_token": self.token, "country": "US"},
        )
        features = (data or {}).get("features") or []
        if not features:
            raise AddressNotFound(query)
        return self._to_result(features[0])

    def geocode(self, address: str) -> GeocodeResult:
        return self._lookup(address)

    def reverse(self, lat: float, lng: float) -> GeocodeResult:
        return self._lookup(f"{lng},{lat}")


def get_geocoder() -> Geocoder:
    """Mapbox when a token is configured, otherwise the free Nominatim service."""
    if settings.use_mapbox:
        return MapboxGeocoder()
    logger.debug("No Mapbox token configured, using Nominatim")
    return NominatimGeocoder()
