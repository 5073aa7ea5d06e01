# src/main.py
import logging
import os

from flask import Flask, jsonify, request, session

from config import FORECAST_HOURS, ID_COLLECTOR
from location import LocationError, PERMISSION_DENIED, detect_location, geocode_location
from notifications import ReminderScheduler
from profile_store import (ProfileError, load_profile, profile_from_record,
                           profile_to_record, save_profile)
from recommendations import (LEVEL_COLORS, format_analysis_html, format_minutes,
                             minutes_or_none, uv_index_category)
from uv_index import WeatherFetchError, get_current_weather_and_uv, get_uv_forecast
from uv_protection import SKIN_TYPES, assess_uv_exposure, get_uv_thresholds

logging.basicConfig(level=logging.INFO)

app = Flask(__name__)
app.secret_key = os.urandom(24)  # For session management

reminders = ReminderScheduler()


def error_reply(message, status_code, retryable=False, **extra):
    return jsonify(status="error", message=message, message_color="#FF0000",
                   retryable=retryable, **extra), status_code


def _parse_coordinates(body):
    lat = body.get("lat", session.get("lat"))
    lon = body.get("lng", body.get("lon", session.get("lon")))
    if lat is None or lon is None:
        return None
    return float(lat), float(lon)


def _parse_forecast(value):
    if value is None:
        return None
    if not isinstance(value, list) or not all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        raise ValueError("forecast must be a list of UV index values")
    return [float(v) for v in value]


def _weather_summary(weather):
    description = weather.get("weather") or [{}]
    return {
        "name": weather.get("name"),
        "country": (weather.get("sys") or {}).get("country"),
        "temp": (weather.get("main") or {}).get("temp"),
        "description": description[0].get("description"),
    }


@app.route("/")
def index():
    return jsonify(status="success", message="UV Lens ready", message_color="#00B300")


@app.route("/detect_location", methods=["GET"])
def detect_location_route():
    place = request.args.get("location")
    try:
        lat, lon = geocode_location(place) if place else detect_location()
    except LocationError as e:
        app.logger.warning("Location failed (%s): %s", e.reason, e)
        status_code = 403 if e.reason == PERMISSION_DENIED else 503
        return error_reply(str(e), status_code, retryable=e.retryable, reason=e.reason)

    session["lat"], session["lon"] = lat, lon
    return jsonify(status="success", lat=lat, lon=lon,
                   message="Location detected!", message_color="#00B300")


@app.route("/profile", methods=["GET"])
def get_profile():
    try:
        profile = load_profile(ID_COLLECTOR)
    except ProfileError as e:
        return error_reply(f"Saved profile is invalid, please set it up again: {e}", 422,
                           retryable=True)
    if profile is None:
        return jsonify(status="not_found", message="No profile yet.",
                       message_color="#FFA500"), 404
    return jsonify(status="success", profile=profile_to_record(profile))


@app.route("/profile", methods=["POST"])
def update_profile():
    try:
        profile = save_profile(ID_COLLECTOR, profile_from_record(request.get_json(silent=True)))
    except ProfileError as e:
        return error_reply(str(e), 400)
    return jsonify(status="success", profile=profile_to_record(profile),
                   message="Profile saved!", message_color="#00B300")


@app.route("/thresholds/<int(signed=True):skin_type>", methods=["GET"])
def thresholds(skin_type):
    return jsonify(status="success", skin_type=skin_type, thresholds=get_uv_thresholds(skin_type))


@app.route("/notifications/permission", methods=["POST"])
def notification_permission():
    granted = reminders.request_permission()
    return jsonify(status="success", granted=granted)


@app.route("/analyze", methods=["POST"])
def analyze():
    body = request.get_json(silent=True) or {}
    try:
        coordinates = _parse_coordinates(body)
        forecast = _parse_forecast(body.get("forecast"))
    except (TypeError, ValueError) as e:
        return error_reply(f"Invalid request: {e}", 400)
    if coordinates is None:
        return error_reply("Location not detected.", 400)

    try:
        profile = load_profile(ID_COLLECTOR)
    except ProfileError as e:
        return error_reply(f"Saved profile is invalid, please set it up again: {e}", 422,
                           retryable=True)
    if profile is None:
        return jsonify(status="setup_required", message="Set up your skin profile first.",
                       message_color="#FFA500"), 409

    lat, lon = coordinates
    try:
        data = get_current_weather_and_uv(lat, lon)
        if forecast is None:
            forecast = get_uv_forecast(lat, lon)
    except WeatherFetchError as e:
        app.logger.error("Analysis failed: %s", e)
        return error_reply(f"Failed to load data: {e}", 502, retryable=True)

    current_uv = float(data["uv"]["value"])
    assessment = assess_uv_exposure(profile, current_uv, forecast, FORECAST_HOURS)
    protection = assessment["protection"]
    vitamin_d_time = assessment["vitamin_d_time"]

    if protection["reapply_time"]:
        reminders.schedule_reapplication_reminder(protection["reapply_time"])

    return jsonify(
        status="success",
        weather=_weather_summary(data["weather"]),
        uv_index=current_uv,
        uv_category=uv_index_category(current_uv),
        skin_type=SKIN_TYPES[profile["skin_type"]],
        protection={
            **protection,
            "safe_exposure_time": minutes_or_none(protection["safe_exposure_time"]),
            "safe_exposure_label": format_minutes(protection["safe_exposure_time"]),
        },
        vitamin_d_time=minutes_or_none(vitamin_d_time),
        vitamin_d_label=format_minutes(vitamin_d_time),
        thresholds=assessment["thresholds"],
        result_html=format_analysis_html(current_uv, profile, protection, vitamin_d_time),
        message="Analysis complete!",
        message_color=LEVEL_COLORS[protection["level"]],
    )


if __name__ == "__main__":
    print("Starting Flask on http://localhost:5000...")
    app.run(host="0.0.0.0", port=5000, debug=True)
