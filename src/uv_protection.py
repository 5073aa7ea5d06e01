# src/uv_protection.py
"""UV protection scoring.

Pure functions over static reference tables. Nothing here raises on bad
profile data: invalid indices fall back to the documented defaults so the
caller always gets a result to show.
"""

import math

UNBOUNDED = math.inf

# Forecast hours that count towards the worst-case UV
FORECAST_HOURS = 2

# Fitzpatrick scale, base_burn_time = minutes to burn at UV index 1
SKIN_TYPES = (
    {"type": 1, "description": "Always burns, never tans", "base_burn_time": 67},
    {"type": 2, "description": "Usually burns, tans minimally", "base_burn_time": 100},
    {"type": 3, "description": "Sometimes burns, tans moderately", "base_burn_time": 133},
    {"type": 4, "description": "Rarely burns, tans easily", "base_burn_time": 200},
    {"type": 5, "description": "Never burns, tans very easily", "base_burn_time": 300},
)

# No sunscreen, SPF 15-29, SPF 30-49, SPF 50+
SPF_VALUES = (1, 15, 30, 50)

# <30min, 30-60min, 1-2h, 2-3h, >3h
TIME_OUTDOORS = (30, 45, 90, 150, 240)

ENVIRONMENTS = (
    {"type": "shady", "reflection_factor": 0.8},
    {"type": "mixed", "reflection_factor": 1.0},
    {"type": "sunny", "reflection_factor": 1.1},
    {"type": "water_sand", "reflection_factor": 1.25},
    {"type": "snow", "reflection_factor": 1.85},
)

BASE_THRESHOLDS = {"safe": 3, "caution": 6, "danger": 8}
THRESHOLD_FLOORS = {"safe": 1, "caution": 2, "danger": 3}

# More sensitive skin -> lower thresholds
THRESHOLD_ADJUSTMENTS = (
    {"safe": -1, "caution": -2, "danger": -2},
    {"safe": -0.5, "caution": -1, "danger": -1},
    {"safe": 0, "caution": 0, "danger": 0},
    {"safe": 0.5, "caution": 1, "danger": 1},
    {"safe": 1, "caution": 2, "danger": 2},
)

# Lighter skin produces vitamin D faster
VITAMIN_D_SKIN_FACTORS = (0.5, 0.7, 1.0, 1.5, 2.0)

REAPPLY_MINUTES = {"extreme": 60, "high": 90, "moderate": 120, "low": None}

# Indices of ENVIRONMENTS where water or sweat washes sunscreen off
WET_ENVIRONMENTS = (3, 4)


def _lookup(table, index, default=None):
    """Table entry at index, or default when the index is not a valid position."""
    if isinstance(index, bool) or not isinstance(index, (int, float)):
        return default
    if isinstance(index, float):
        if not index.is_integer():
            return default
        index = int(index)
    if 0 <= index < len(table):
        return table[index]
    return default


def _round_half_up(value):
    return math.floor(value + 0.5)


def calculate_effective_uv(actual_uv, environment=1):
    """UV index scaled by the environment's reflection factor (1.0 if unknown)."""
    env = _lookup(ENVIRONMENTS, environment)
    factor = env["reflection_factor"] if env else 1.0
    return actual_uv * factor


def calculate_time_to_burn(skin_type, uv_index, spf_value=1):
    """Minutes until sunburn, or UNBOUNDED when there is no risk to compute."""
    skin = _lookup(SKIN_TYPES, skin_type)
    if skin is None or not uv_index > 0:
        return UNBOUNDED

    # SPF is applied as a plain multiplier on the unprotected time
    minutes = skin["base_burn_time"] / uv_index * spf_value
    if not math.isfinite(minutes):
        return UNBOUNDED
    return _round_half_up(minutes)


def _exposure_ratio(planned_minutes, time_to_burn):
    if time_to_burn == UNBOUNDED:
        return 0
    if time_to_burn == 0:
        return math.inf
    return planned_minutes / time_to_burn


def _uv_band_score(effective_uv):
    if effective_uv < 3:
        return 20
    elif effective_uv < 6:
        return 40
    elif effective_uv < 8:
        return 60
    elif effective_uv < 11:
        return 80
    return 100


def _is_sensitive_skin(skin_type):
    return (not isinstance(skin_type, bool)
            and isinstance(skin_type, (int, float))
            and skin_type <= 1)


def calculate_protection_level(profile, current_uv, forecast_uv=()):
    """Risk level, score and ordered recommendations for a profile.

    The burn time is evaluated against the worst UV over current_uv and the
    forecast window, while the UV band score uses the current UV only.
    """
    environment = profile.get("environment")
    if environment is None:
        environment = 1
    skin_type = profile.get("skin_type")

    effective_uv = calculate_effective_uv(current_uv, environment)
    # NaN forecast entries are ignored
    max_forecast_uv = max([current_uv] + [uv for uv in forecast_uv if not math.isnan(uv)])
    max_effective_uv = calculate_effective_uv(max_forecast_uv, environment)

    spf_value = _lookup(SPF_VALUES, profile.get("sunscreen_usage"), 1)
    time_to_burn = calculate_time_to_burn(skin_type, max_effective_uv, spf_value)
    planned_minutes = _lookup(TIME_OUTDOORS, profile.get("time_outdoors"), 90)

    score = _uv_band_score(effective_uv)
    recommendations = []

    ratio = _exposure_ratio(planned_minutes, time_to_burn)
    if ratio > 1:
        score += 40
        recommendations.append(
            "Your planned time exceeds safe exposure. Consider reducing time outdoors.")
    elif ratio > 0.7:
        score += 20
        recommendations.append("You're approaching your safe exposure limit.")

    sensitive = _is_sensitive_skin(skin_type)
    if sensitive:
        score += 20
        recommendations.append("Your skin type is highly sensitive to UV.")

    if score >= 80:
        level = "extreme"
        recommendations.insert(0, "⚠️ EXTREME UV RISK - Avoid sun exposure if possible")
        if spf_value < 50:
            recommendations.append("Apply SPF 50+ sunscreen immediately")
        recommendations.append("Wear protective clothing, hat, and sunglasses")
        recommendations.append("Seek shade frequently")
    elif score >= 60:
        level = "high"
        recommendations.insert(0, "🔴 HIGH UV RISK - Maximum protection needed")
        if spf_value < 30:
            recommendations.append("Apply at least SPF 30 sunscreen")
        recommendations.append("Wear a wide-brimmed hat")
        recommendations.append("Stay in shade during peak hours (10am-4pm)")
    elif score >= 40 or effective_uv >= 3:
        level = "moderate"
        recommendations.insert(0, "🟡 MODERATE UV RISK - Protection recommended")
        if spf_value < 15:
            recommendations.append("Apply SPF 15+ sunscreen")
        recommendations.append("Wear sunglasses")
        recommendations.append("Consider seeking shade during midday")
    else:
        level = "low"
        recommendations.insert(0, "🟢 LOW UV RISK - Minimal protection needed")
        recommendations.append("Sunglasses recommended")
        if sensitive:
            recommendations.append("Light sunscreen still advisable for sensitive skin")

    reapply_time = REAPPLY_MINUTES[level]
    if spf_value > 1 and reapply_time:
        recommendations.append(f"Reapply sunscreen every {reapply_time / 60:g} hours")
        if environment in WET_ENVIRONMENTS:
            recommendations.append("Reapply immediately after swimming or sweating")

    return {
        "level": level,
        "score": min(100, _round_half_up(score)),
        "recommendations": recommendations,
        "reapply_time": reapply_time,
        "safe_exposure_time": time_to_burn,
    }


def get_uv_thresholds(skin_type):
    """Personal UV alert thresholds, shifted by skin sensitivity."""
    adjustment = _lookup(THRESHOLD_ADJUSTMENTS, skin_type, THRESHOLD_ADJUSTMENTS[2])
    return {
        name: max(THRESHOLD_FLOORS[name], base + adjustment[name])
        for name, base in BASE_THRESHOLDS.items()
    }


def calculate_vitamin_d_time(skin_type, uv_index, body_exposure=0.25):
    """Minutes of sun for roughly 1000 IU of vitamin D, clamped to 5-30.

    Returns UNBOUNDED below UV index 3, where production is negligible.
    The 15 minute base is calibrated for UV index 3 and 25% body exposure.
    """
    if uv_index < 3:
        return UNBOUNDED

    factor = _lookup(VITAMIN_D_SKIN_FACTORS, skin_type, 1.0)
    denominator = uv_index * body_exposure * 4
    time = (15 * factor * 3) / denominator if denominator else UNBOUNDED
    return _round_half_up(max(5, min(30, time)))


def assess_uv_exposure(profile, current_uv, hourly_forecast=(), forecast_hours=FORECAST_HOURS):
    """Everything the dashboard shows for a profile: protection, vitamin D, thresholds."""
    if not profile:
        return None

    protection = calculate_protection_level(
        profile, current_uv, list(hourly_forecast)[:forecast_hours])
    return {
        "protection": protection,
        "vitamin_d_time": calculate_vitamin_d_time(profile.get("skin_type"), current_uv),
        "thresholds": get_uv_thresholds(profile.get("skin_type")),
    }
