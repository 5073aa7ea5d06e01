# src/location.py
import json
import logging
import os
import time

import requests
from geopy.exc import (GeocoderAuthenticationFailure, GeocoderInsufficientPrivileges,
                       GeocoderServiceError, GeocoderTimedOut)
from geopy.geocoders import Nominatim

import config

logger = logging.getLogger(__name__)

IPGEOLOCATION_URL = "https://api.ipgeolocation.io/ipgeo"

PERMISSION_DENIED = "permission_denied"
POSITION_UNAVAILABLE = "position_unavailable"
TIMEOUT = "timeout"


class LocationError(Exception):
    """Position could not be obtained; reason is one of the constants above."""

    def __init__(self, reason, message):
        super().__init__(message)
        self.reason = reason

    @property
    def retryable(self):
        return self.reason != PERMISSION_DENIED


def geocode_location(location):
    """Convert a place name (e.g. 'Lisbon, Portugal') to (lat, lon)."""
    geolocator = Nominatim(user_agent="UV_Lens")
    try:
        start_geo = time.time()
        location_data = geolocator.geocode(location, timeout=10)
        logger.debug("Geocode time: %.2fs", time.time() - start_geo)
    except GeocoderTimedOut as e:
        raise LocationError(TIMEOUT, f"Geocoding timed out: {e}") from e
    except (GeocoderAuthenticationFailure, GeocoderInsufficientPrivileges) as e:
        raise LocationError(PERMISSION_DENIED, f"Geocoding refused: {e}") from e
    except GeocoderServiceError as e:
        raise LocationError(POSITION_UNAVAILABLE, f"Geocoding failed: {e}") from e

    if not location_data:
        raise LocationError(
            POSITION_UNAVAILABLE,
            "Invalid location. Please enter a valid city and country (e.g., 'Lisbon, Portugal').")
    return location_data.latitude, location_data.longitude


def _read_cached_location(cache_path):
    try:
        with open(cache_path) as f:
            cached = json.load(f)
        if time.time() - cached["timestamp"] < config.LOCATION_MAX_AGE:
            return cached["lat"], cached["lon"]
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.debug("Ignoring location cache %s: %s", cache_path, e)
    return None


def detect_location(cache_path=None):
    """Current (lat, lon) from the client's IP, reused for a few minutes."""
    cache_path = cache_path or config.LOCATION_CACHE
    if os.path.exists(cache_path):
        cached = _read_cached_location(cache_path)
        if cached:
            logger.info("Location from cache: %s", cached)
            return cached

    key = config.IPGEOLOCATION_API_KEY
    if not key:
        raise LocationError(PERMISSION_DENIED, "IP geolocation API key missing")

    try:
        response = requests.get(IPGEOLOCATION_URL, params={"apiKey": key},
                                timeout=config.REQUEST_TIMEOUT)
    except requests.exceptions.Timeout as e:
        raise LocationError(TIMEOUT, "Location request timed out") from e
    except requests.exceptions.RequestException as e:
        raise LocationError(POSITION_UNAVAILABLE, f"Location request failed: {e}") from e

    if response.status_code in (401, 403):
        raise LocationError(PERMISSION_DENIED, "IP geolocation access denied")
    if not response.ok:
        raise LocationError(POSITION_UNAVAILABLE,
                            f"IP geolocation failed with status {response.status_code}")

    try:
        r = response.json()
        lat, lon = float(r["latitude"]), float(r["longitude"])
    except (ValueError, KeyError, TypeError) as e:
        raise LocationError(POSITION_UNAVAILABLE, f"Invalid location response: {e}") from e

    try:
        with open(cache_path, "w") as f:
            json.dump({"lat": lat, "lon": lon, "timestamp": time.time()}, f)
    except OSError as e:
        logger.warning("Could not write location cache: %s", e)

    logger.info("Location detected: %s, %s (%s)", lat, lon, r.get("city"))
    return lat, lon
