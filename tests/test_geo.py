# =============================================================================
# tests/test_geo.py - Fuzzing and Distance Tests
# =============================================================================
# Run with: poetry run pytest tests/test_geo.py -v
# =============================================================================

import random

import pytest

from lib.geo import distance_meters, distance_miles, fuzzy


class TestDistance:
    """Tests for haversine distance."""

    def test_identical_points_are_zero(self):
        assert distance_meters(37.7749, -122.4194, 37.7749, -122.4194) == 0.0

    def test_symmetric(self):
        a = distance_meters(37.7749, -122.4194, 40.7128, -74.0060)
        b = distance_meters(40.7128, -74.0060, 37.7749, -122.4194)
        assert a == pytest.approx(b)

    def test_known_distance_sf_to_nyc(self):
        # Roughly 4,130 km great-circle
        meters = distance_meters(37.7749, -122.4194, 40.7128, -74.0060)
        assert 4_100_000 < meters < 4_160_000

    def test_one_thousandth_degree_latitude(self):
        # ~111m per 0.001 degree of latitude
        meters = distance_meters(37.0, -122.0, 37.001, -122.0)
        assert meters == pytest.approx(111.2, abs=0.5)

    def test_miles_and_meters_agree(self):
        meters = distance_meters(37.0, -122.0, 37.1, -122.1)
        miles = distance_miles(37.0, -122.0, 37.1, -122.1)
        assert miles == pytest.approx(meters / 1609.34, rel=0.01)

    def test_antipodes_do_not_blow_up(self):
        meters = distance_meters(0.0, 0.0, 0.0, 180.0)
        assert meters == pytest.approx(3.14159 * 6_371_000, rel=0.001)


class TestFuzzy:
    """Tests for public-location fuzzing."""

    def test_offset_within_box(self):
        rng = random.Random(42)
        for _ in range(1000):
            lat, lng = fuzzy(37.7749, -122.4194, rng=rng)
            assert abs(lat - 37.7749) <= 0.005 + 1e-9
            assert abs(lng - (-122.4194)) <= 0.005 + 1e-9

    def test_distance_bound(self):
        """The corner of a 0.005 degree box is under ~786m away."""
        rng = random.Random(7)
        for _ in range(1000):
            lat = rng.uniform(-60, 60)
            lng = rng.uniform(-179, 179)
            f_lat, f_lng = fuzzy(lat, lng, rng=rng)
            assert distance_meters(lat, lng, f_lat, f_lng) <= 787

    def test_rounded_to_eight_decimals(self):
        lat, lng = fuzzy(37.123456789012, -122.987654321098, rng=random.Random(1))
        assert round(lat, 8) == lat
        assert round(lng, 8) == lng

    def test_actually_moves_the_point(self):
        rng = random.Random(3)
        points = {fuzzy(37.7749, -122.4194, rng=rng) for _ in range(20)}
        assert len(points) > 1
        assert (37.7749, -122.4194) not in points

    def test_custom_offset(self):
        rng = random.Random(11)
        for _ in range(200):
            lat, lng = fuzzy(10.0, 10.0, max_offset=0.001, rng=rng)
            assert abs(lat - 10.0) <= 0.001 + 1e-9
            assert abs(lng - 10.0) <= 0.001 + 1e-9
