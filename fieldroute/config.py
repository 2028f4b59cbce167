import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./fieldroute.db")

# Google Geocoding Configuration
GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY")
GOOGLE_GEOCODING_URL = os.getenv(
    "GOOGLE_GEOCODING_URL", "https://maps.googleapis.com/maps/api/geocode/json"
)
# Upper bound for a single geocode, best-fit degrades to "no recommendation" past it
GEOCODING_TIMEOUT_SECONDS = float(os.getenv("GEOCODING_TIMEOUT_SECONDS", "8.0"))
GEOCODING_CACHE_SECONDS = int(os.getenv("GEOCODING_CACHE_SECONDS", "86400"))

# Scheduling
VISIT_HORIZON_DAYS = int(os.getenv("VISIT_HORIZON_DAYS", "60"))
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "America/Chicago")

# Best-fit day analysis
NEARBY_RADIUS_MILES = float(os.getenv("NEARBY_RADIUS_MILES", "5"))
BEST_FIT_RECOMMENDATIONS = int(os.getenv("BEST_FIT_RECOMMENDATIONS", "3"))

# Frontend origins allowed by CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
).split(",")
