# src/profile_store.py
import json
import logging
import os
import sqlite3
from datetime import datetime

from config import SQLITE_CONFIG
from uv_protection import ENVIRONMENTS, SKIN_TYPES, SPF_VALUES, TIME_OUTDOORS

logger = logging.getLogger(__name__)

PROFILE_KEY = "uvProfile"

# stored field -> (profile field, table the index points into)
PROFILE_FIELDS = {
    "skinType": ("skin_type", SKIN_TYPES),
    "sunscreenUsage": ("sunscreen_usage", SPF_VALUES),
    "timeOutdoors": ("time_outdoors", TIME_OUTDOORS),
    "environment": ("environment", ENVIRONMENTS),
}
DEFAULT_ENVIRONMENT = 1


class ProfileError(Exception):
    """Profile data is missing fields or holds out-of-range indices."""


def validate_profile(data):
    """Check a profile (snake_case keys) against the reference tables.

    Returns a clean copy with environment filled in; raises ProfileError.
    """
    if not isinstance(data, dict):
        raise ProfileError("Profile must be an object")

    profile = {}
    for field, table in PROFILE_FIELDS.values():
        value = data.get(field)
        if value is None and field == "environment":
            value = DEFAULT_ENVIRONMENT
        if value is None:
            raise ProfileError(f"Missing profile field: {field}")
        if isinstance(value, bool) or not isinstance(value, int):
            raise ProfileError(f"Profile field {field} must be an integer")
        if not 0 <= value < len(table):
            raise ProfileError(f"Profile field {field} out of range: {value}")
        profile[field] = value
    return profile


def profile_to_record(profile):
    return {stored: profile[field] for stored, (field, _) in PROFILE_FIELDS.items()}


def profile_from_record(record):
    """Validate a camelCase record (as stored or sent by a client)."""
    if not isinstance(record, dict):
        raise ProfileError("Profile must be an object")
    return validate_profile({field: record.get(stored)
                             for stored, (field, _) in PROFILE_FIELDS.items()})


def profile_to_json(profile):
    return json.dumps(profile_to_record(profile))


def profile_from_json(text):
    try:
        stored = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ProfileError(f"Stored profile is not valid JSON: {e}") from e
    return profile_from_record(stored)


def get_db_connection(db_path=None):
    db_path = db_path or SQLITE_CONFIG["path"]
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    conn = sqlite3.connect(db_path, check_same_thread=False)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS profile_store (
            device_id TEXT NOT NULL,
            key TEXT NOT NULL,
            value TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (device_id, key)
        )
    """)
    return conn


def load_profile(device_id, db_path=None):
    """Saved profile for a device, or None if there is none yet."""
    conn = get_db_connection(db_path)
    try:
        row = conn.execute(
            "SELECT value FROM profile_store WHERE device_id = ? AND key = ?",
            (device_id, PROFILE_KEY)).fetchone()
    except sqlite3.Error as e:
        raise ProfileError(f"Database error: {e}") from e
    finally:
        conn.close()

    if row is None:
        return None
    return profile_from_json(row[0])


def save_profile(device_id, profile, db_path=None):
    profile = validate_profile(profile)
    conn = get_db_connection(db_path)
    try:
        conn.execute("""
            INSERT INTO profile_store (device_id, key, value, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (device_id, key)
            DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
        """, (device_id, PROFILE_KEY, profile_to_json(profile), datetime.now().isoformat()))
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise ProfileError(f"Database error: {e}") from e
    finally:
        conn.close()

    logger.info("Profile saved for %s", device_id)
    return profile
