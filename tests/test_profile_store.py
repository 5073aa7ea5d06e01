import sqlite3

import pytest

from profile_store import (ProfileError, load_profile, profile_from_json, profile_to_json,
                           save_profile, validate_profile)

PROFILE = {"skin_type": 1, "sunscreen_usage": 2, "time_outdoors": 3, "environment": 4}


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "profiles.db")


def test_save_and_load(db_path):
    save_profile("device-1", PROFILE, db_path)
    assert load_profile("device-1", db_path) == PROFILE
    assert load_profile("device-2", db_path) is None


def test_save_overwrites(db_path):
    save_profile("device-1", PROFILE, db_path)
    save_profile("device-1", {**PROFILE, "skin_type": 4}, db_path)
    assert load_profile("device-1", db_path)["skin_type"] == 4


def test_stored_as_camel_case_json():
    assert profile_to_json(PROFILE) == (
        '{"skinType": 1, "sunscreenUsage": 2, "timeOutdoors": 3, "environment": 4}')
    assert profile_from_json('{"skinType": 0, "sunscreenUsage": 0, "timeOutdoors": 0}') == {
        "skin_type": 0, "sunscreen_usage": 0, "time_outdoors": 0, "environment": 1}


@pytest.mark.parametrize("data", [
    {"sunscreen_usage": 0, "time_outdoors": 0},
    {"skin_type": 5, "sunscreen_usage": 0, "time_outdoors": 0},
    {"skin_type": 0, "sunscreen_usage": 4, "time_outdoors": 0},
    {"skin_type": 0, "sunscreen_usage": 0, "time_outdoors": -1},
    {"skin_type": 0, "sunscreen_usage": 0, "time_outdoors": 0, "environment": 5},
    {"skin_type": "1", "sunscreen_usage": 0, "time_outdoors": 0},
    {"skin_type": True, "sunscreen_usage": 0, "time_outdoors": 0},
    ["not", "a", "profile"],
])
def test_validate_rejects_bad_profiles(data):
    with pytest.raises(ProfileError):
        validate_profile(data)


def test_save_rejects_invalid(db_path):
    with pytest.raises(ProfileError):
        save_profile("device-1", {**PROFILE, "skin_type": 7}, db_path)
    assert load_profile("device-1", db_path) is None


def test_malformed_stored_profile(db_path):
    save_profile("device-1", PROFILE, db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute("UPDATE profile_store SET value = '{broken'")

    with pytest.raises(ProfileError):
        load_profile("device-1", db_path)
