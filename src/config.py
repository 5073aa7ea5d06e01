import os
from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
load_dotenv(os.path.join(BASE_DIR, ".env"))

# Device id, used as the profile store key
ID_COLLECTOR = os.getenv("ID_COLLECTOR", "default")

SQLITE_CONFIG = {
    "path": os.getenv("SQLITE_PATH", os.path.join(BASE_DIR, "uv_lens.db"))
}

OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY")
OPENUV_API_KEY = os.getenv("OPENUV_API_KEY")
IPGEOLOCATION_API_KEY = os.getenv("IPGEOLOCATION_API_KEY")

CACHE_TTL = int(os.getenv("CACHE_TTL", "1800"))  # 30 minutes
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "15"))
FORECAST_HOURS = int(os.getenv("FORECAST_HOURS", "2"))
LOCATION_CACHE = os.getenv("LOCATION_CACHE", os.path.join(BASE_DIR, "location_cache.json"))
LOCATION_MAX_AGE = 300  # 5 minutes
