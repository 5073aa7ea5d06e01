# src/uv_index.py
import logging
import math
import time
from datetime import datetime, timezone

import requests

import config

logger = logging.getLogger(__name__)

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5"
OPENUV_URL = "https://api.openuv.io/api/v1"

# Simple cache (key=lat_lon, value=(data, timestamp))
weather_cache = {}


class WeatherFetchError(Exception):
    """Weather or UV data could not be fetched. Safe to retry."""


def _get_with_retry(url, params=None, headers=None, attempts=3):
    start = time.time()
    for attempt in range(attempts):
        try:
            response = requests.get(url, params=params, headers=headers,
                                    timeout=config.REQUEST_TIMEOUT)
            logger.debug("GET %s attempt %d: %.2fs, status %s",
                         url, attempt + 1, time.time() - start, response.status_code)
            return response
        except requests.exceptions.Timeout:
            logger.warning("Timeout on attempt %d/%d for %s", attempt + 1, attempts, url)
            if attempt == attempts - 1:
                raise
            time.sleep(2 ** attempt)


def get_current_weather_and_uv(lat, lon):
    """Current weather and UV index from OpenWeather.

    Returns {"weather": <weather payload>, "uv": <uvi payload>}; the UV index
    is under ["uv"]["value"]. Raises WeatherFetchError if either call fails.
    """
    cache_key = f"{lat}_{lon}"
    if cache_key in weather_cache:
        cached, cached_time = weather_cache[cache_key]
        if time.time() - cached_time < config.CACHE_TTL:
            logger.info("Cache hit for %s: UV %s", cache_key, cached["uv"].get("value"))
            return cached
        logger.info("Cache expired for %s, refreshing", cache_key)

    api_key = config.OPENWEATHER_API_KEY
    if not api_key:
        raise WeatherFetchError("OpenWeather API key not configured")

    params = {"lat": lat, "lon": lon, "appid": api_key}
    try:
        weather_response = _get_with_retry(f"{OPENWEATHER_URL}/weather",
                                           params={**params, "units": "metric"})
        uv_response = _get_with_retry(f"{OPENWEATHER_URL}/uvi", params=params)
        if not weather_response.ok or not uv_response.ok:
            raise WeatherFetchError("Weather API request failed")
        data = {"weather": weather_response.json(), "uv": uv_response.json()}
    except requests.exceptions.RequestException as e:
        logger.error("Error fetching weather data: %s", e)
        raise WeatherFetchError(f"Failed to fetch weather data: {e}") from e
    except ValueError as e:
        raise WeatherFetchError(f"Invalid weather API response: {e}") from e

    try:
        data["uv"]["value"] = float(data["uv"]["value"])
    except (KeyError, TypeError, ValueError) as e:
        raise WeatherFetchError(f"UV index not found in API response: {e}") from e
    if not math.isfinite(data["uv"]["value"]):
        raise WeatherFetchError("UV index in API response is not a number.")

    weather_cache[cache_key] = (data, time.time())
    logger.info("Cache updated for %s: UV %s", cache_key, data["uv"]["value"])
    return data


def _parse_uv_time(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def get_uv_forecast(lat, lon, now=None):
    """Hourly UV forecast from OpenUV, from now onward, in time order.

    Returns [] when no OpenUV key is configured.
    """
    api_key = config.OPENUV_API_KEY
    if not api_key:
        logger.warning("OpenUV API key not provided")
        return []

    now = now or datetime.now(timezone.utc)
    try:
        response = _get_with_retry(f"{OPENUV_URL}/forecast",
                                   params={"lat": lat, "lng": lon},
                                   headers={"x-access-token": api_key})
        if not response.ok:
            raise WeatherFetchError("OpenUV API request failed")
        entries = response.json().get("result", [])
    except requests.exceptions.RequestException as e:
        logger.error("Error fetching detailed UV data: %s", e)
        raise WeatherFetchError(f"Failed to fetch UV forecast: {e}") from e
    except ValueError as e:
        raise WeatherFetchError(f"Invalid OpenUV response: {e}") from e

    forecast = []
    for entry in entries:
        try:
            uv_time = _parse_uv_time(entry["uv_time"])
            uv = float(entry["uv"])
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed forecast entry: %r", entry)
            continue
        if uv_time >= now:
            forecast.append((uv_time, uv))

    forecast.sort(key=lambda item: item[0])
    return [uv for _, uv in forecast]
