# =============================================================================
# tests/test_geocoding.py - Geocoder Tests
# =============================================================================
# HTTP is served by httpx.MockTransport; sleeps are recorded, not slept.
#
# Run with: poetry run pytest tests/test_geocoding.py -v
# =============================================================================

import httpx
import pytest

from lib.geocoding import (
    AddressNotFound,
    GeocodingError,
    MapboxGeocoder,
    NominatimGeocoder,
)

NOMINATIM_HIT = [{
    "lat": "37.4419",
    "lon": "-122.1430",
    "display_name": "1, Main Street, Palo Alto, Santa Clara County, California, 94301, United States",
    "address": {
        "town": "Palo Alto",
        "state": "California",
        "postcode": "94301",
    },
}]


def _nominatim(handler, sleeps=None, max_attempts=3):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return NominatimGeocoder(
        base_url="https://nominatim.test",
        client=client,
        max_attempts=max_attempts,
        retry_delay=1.0,
        sleep=(sleeps.append if sleeps is not None else lambda s: None),
    )


class TestNominatimGeocoder:
    """Tests for NominatimGeocoder."""

    def test_geocode(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=NOMINATIM_HIT)

        result = _nominatim(handler).geocode("1 Main St, Palo Alto, CA")

        assert result.lat == 37.4419
        assert result.lng == -122.1430
        assert result.city == "Palo Alto"
        assert result.state == "California"
        assert result.zip_code == "94301"
        assert seen[0].url.path == "/search"
        assert seen[0].url.params["q"] == "1 Main St, Palo Alto, CA"

    def test_no_match(self):
        geocoder = _nominatim(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(AddressNotFound):
            geocoder.geocode("nowhere")

    def test_reverse(self):
        def handler(request):
            assert request.url.path == "/reverse"
            return httpx.Response(200, json=NOMINATIM_HIT[0])

        result = _nominatim(handler).reverse(37.4419, -122.1430)
        assert result.formatted_address.startswith("1, Main Street")

    def test_reverse_error_payload(self):
        geocoder = _nominatim(lambda request: httpx.Response(200, json={"error": "Unable to geocode"}))
        with pytest.raises(AddressNotFound):
            geocoder.reverse(0.0, 0.0)

    def test_retries_rate_limit_with_linear_backoff(self):
        responses = iter([
            httpx.Response(429),
            httpx.Response(403),
            httpx.Response(200, json=NOMINATIM_HIT),
        ])
        sleeps = []

        result = _nominatim(lambda request: next(responses), sleeps=sleeps).geocode("1 Main St")

        assert result.city == "Palo Alto"
        assert sleeps == [1.0, 2.0]

    def test_retries_server_errors_and_transport_failures(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            if calls["n"] == 1:
                raise httpx.ConnectError("connection refused", request=request)
            if calls["n"] == 2:
                return httpx.Response(503)
            return httpx.Response(200, json=NOMINATIM_HIT)

        assert _nominatim(handler).geocode("1 Main St").lat == 37.4419
        assert calls["n"] == 3

    def test_gives_up_after_max_attempts(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(429)

        with pytest.raises(GeocodingError) as exc_info:
            _nominatim(handler).geocode("1 Main St")

        assert calls["n"] == 3
        assert exc_info.value.code == "GEOCODING_RETRIES_EXHAUSTED"
        assert not isinstance(exc_info.value, AddressNotFound)

    def test_client_error_is_not_retried(self):
        calls = {"n": 0}

        def handler(request):
            calls["n"] += 1
            return httpx.Response(400)

        with pytest.raises(GeocodingError):
            _nominatim(handler).geocode("1 Main St")
        assert calls["n"] == 1


class TestMapboxGeocoder:
    """Tests for MapboxGeocoder."""

    FEATURE = {
        "center": [-122.1430, 37.4419],
        "text": "Main Street",
        "place_name": "1 Main Street, Palo Alto, California 94301, United States",
        "context": [
            {"id": "postcode.123", "text": "94301"},
            {"id": "place.456", "text": "Palo Alto"},
            {"id": "region.789", "text": "California", "short_code": "US-CA"},
        ],
    }

    def _geocoder(self, handler):
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return MapboxGeocoder(token="pk.test", client=client, max_attempts=3, sleep=lambda s: None)

    def test_geocode(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"features": [self.FEATURE]})

        result = self._geocoder(handler).geocode("1 Main St, Palo Alto, CA")

        assert result.lat == 37.4419
        assert result.lng == -122.1430
        assert result.city == "Palo Alto"
        assert result.state == "CA"
        assert result.zip_code == "94301"
        assert seen[0].url.params["access_token"] == "pk.test"

    def test_no_features(self):
        geocoder = self._geocoder(lambda request: httpx.Response(200, json={"features": []}))
        with pytest.raises(AddressNotFound):
            geocoder.geocode("nowhere")
