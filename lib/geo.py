# =============================================================================
# lib/geo.py - Coordinate Fuzzing and Great-Circle Distance
# =============================================================================
# Public listing locations are the exact property coordinate plus a random
# offset of up to FUZZ_OFFSET_DEGREES on each axis (~500m at mid latitudes).
# The offset is applied once when a listing is created and stored; reads
# never recompute it.
#
# Usage:
#   from lib.geo import fuzzy, distance_meters
#   approx_lat, approx_lng = fuzzy(37.7749, -122.4194)
# =============================================================================

import math
import random

EARTH_RADIUS_METERS = 6_371_000
EARTH_RADIUS_MILES = 3_959

DEFAULT_FUZZ_OFFSET_DEGREES = 0.005
COORDINATE_PRECISION = 8


def fuzzy(
    lat: float,
    lng: float,
    max_offset: float = DEFAULT_FUZZ_OFFSET_DEGREES,
    rng: random.Random | None = None,
) -> tuple[float, float]:
    """
    Offset a coordinate by independent uniform amounts in [-max_offset, +max_offset).

    Args:
        lat: Exact latitude in degrees
        lng: Exact longitude in degrees
        max_offset: Half-width of the offset box in degrees
        rng: Optional random source (tests pass a seeded one)

    Returns:
        (lat, lng) rounded to 8 decimal places
    """
    rng = rng or random
    offset_lat = (rng.random() - 0.5) * 2 * max_offset
    offset_lng = (rng.random() - 0.5) * 2 * max_offset

    return (
        round(lat + offset_lat, COORDINATE_PRECISION),
        round(lng + offset_lng, COORDINATE_PRECISION),
    )


def _haversine(lat1: float, lng1: float, lat2: float, lng2: float, radius: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Clamp for float drift near antipodes
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return radius * c


def distance_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two points, in meters."""
    return _haversine(lat1, lng1, lat2, lng2, EARTH_RADIUS_METERS)


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Haversine distance between two points, in miles."""
    return _haversine(lat1, lng1, lat2, lng2, EARTH_RADIUS_MILES)
