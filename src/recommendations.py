# src/recommendations.py
import math

from uv_protection import SKIN_TYPES, UNBOUNDED

LEVEL_COLORS = {
    "low": "#00B300",
    "moderate": "#E6B800",
    "high": "#FFA500",
    "extreme": "#FF0000",
}


def uv_index_category(uv_index):
    if uv_index <= 2:
        return "low"
    elif uv_index <= 5:
        return "moderate"
    elif uv_index <= 7:
        return "high"
    elif uv_index <= 10:
        return "very_high"
    return "extreme"


def format_minutes(minutes):
    if minutes is None or minutes == UNBOUNDED:
        return "N/A"
    minutes = int(minutes)
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"


def minutes_or_none(minutes):
    """JSON has no infinity, unbounded times go out as null."""
    if minutes is None or math.isinf(minutes):
        return None
    return minutes


def format_analysis_html(uv_index, profile, protection, vitamin_d_time=UNBOUNDED):
    # Recommendations are listed in the order they were produced
    skin_type = profile.get("skin_type")
    skin = SKIN_TYPES[skin_type] if skin_type in range(len(SKIN_TYPES)) else None
    skin_label = f"Type {skin['type']} - {skin['description']}" if skin else "Unknown"

    html = f"<p><strong>UV Index:</strong> {uv_index:.1f} ({uv_index_category(uv_index)})</p>"
    html += f"<p><strong>Skin Type:</strong> {skin_label}</p>"
    html += (f"<p><strong>Risk Level:</strong> "
             f"<span style=\"color:{LEVEL_COLORS[protection['level']]}\">"
             f"{protection['level'].upper()}</span> ({protection['score']}/100)</p>")
    html += f"<p><strong>Safe Exposure:</strong> {format_minutes(protection['safe_exposure_time'])}</p>"
    html += f"<p><strong>Vitamin D:</strong> {format_minutes(vitamin_d_time)}</p>"
    html += "<p><strong>Recommendations:</strong></p><ul>"
    for rec in protection["recommendations"]:
        html += f"<li>{rec}</li>"
    html += "</ul>"
    return html
