import json
import time

import pytest
import requests
from geopy.exc import GeocoderTimedOut, GeocoderUnavailable

import config
import location
from location import (PERMISSION_DENIED, POSITION_UNAVAILABLE, TIMEOUT, LocationError,
                      detect_location, geocode_location)


class FakePlace:
    latitude = 38.7223
    longitude = -9.1393


def fake_geocoder(result=None, error=None):
    class FakeNominatim:
        def __init__(self, user_agent):
            self.user_agent = user_agent

        def geocode(self, query, timeout=None):
            if error:
                raise error
            return result
    return FakeNominatim


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self.payload


def test_geocode_location(monkeypatch):
    monkeypatch.setattr(location, "Nominatim", fake_geocoder(FakePlace()))
    assert geocode_location("Lisbon, Portugal") == (38.7223, -9.1393)


@pytest.mark.parametrize("error, reason", [
    (GeocoderTimedOut("slow"), TIMEOUT),
    (GeocoderUnavailable("down"), POSITION_UNAVAILABLE),
])
def test_geocode_errors(monkeypatch, error, reason):
    monkeypatch.setattr(location, "Nominatim", fake_geocoder(error=error))
    with pytest.raises(LocationError) as exc:
        geocode_location("Lisbon, Portugal")
    assert exc.value.reason == reason
    assert exc.value.retryable


def test_geocode_unknown_place(monkeypatch):
    monkeypatch.setattr(location, "Nominatim", fake_geocoder(None))
    with pytest.raises(LocationError) as exc:
        geocode_location("Nowhere at all")
    assert exc.value.reason == POSITION_UNAVAILABLE


def test_detect_location_writes_cache(monkeypatch, tmp_path):
    cache = tmp_path / "location_cache.json"
    monkeypatch.setattr(config, "IPGEOLOCATION_API_KEY", "ip-key")
    monkeypatch.setattr(requests, "get", lambda url, params=None, timeout=None: FakeResponse(
        {"latitude": "38.72", "longitude": "-9.14", "city": "Lisbon"}))

    assert detect_location(str(cache)) == (38.72, -9.14)
    assert json.loads(cache.read_text())["lat"] == 38.72


def test_detect_location_uses_fresh_cache(monkeypatch, tmp_path):
    cache = tmp_path / "location_cache.json"
    cache.write_text(json.dumps({"lat": 41.15, "lon": -8.61, "timestamp": time.time()}))

    def no_requests(*args, **kwargs):
        raise AssertionError("should not call the API")

    monkeypatch.setattr(requests, "get", no_requests)
    assert detect_location(str(cache)) == (41.15, -8.61)


def test_detect_location_without_key(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "IPGEOLOCATION_API_KEY", None)
    with pytest.raises(LocationError) as exc:
        detect_location(str(tmp_path / "missing.json"))
    assert exc.value.reason == PERMISSION_DENIED
    assert not exc.value.retryable


def test_detect_location_timeout(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "IPGEOLOCATION_API_KEY", "ip-key")

    def timing_out(url, params=None, timeout=None):
        raise requests.exceptions.Timeout("slow")

    monkeypatch.setattr(requests, "get", timing_out)
    with pytest.raises(LocationError) as exc:
        detect_location(str(tmp_path / "missing.json"))
    assert exc.value.reason == TIMEOUT
