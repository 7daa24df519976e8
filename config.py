"""
Konfiguration och konstanter för GPX-ruttgeneratorn
"""

import os

# Standardvärden
DEFAULT_PACE = "5:30"
DEFAULT_CENTER = [48.8566, 2.3522]  # Paris
DEFAULT_ACTIVITY = "run"

# Aktivitetstyper och deras GPX-typ
ACTIVITY_TYPES = {
    "run": "running",
    "bike": "cycling",
}

# Standardhastighet (km/h) när inget tempo är satt
DEFAULT_RUN_SPEED_KMH = 10.0
DEFAULT_BIKE_SPEED_KMH = 20.0
DEFAULT_SPEED_KMH = {
    "run": DEFAULT_RUN_SPEED_KMH,
    "bike": DEFAULT_BIKE_SPEED_KMH,
}

# Geometri
EARTH_RADIUS_KM = 6371.0

# Syntetisk höjdprofil
BASE_ELEVATION = 100.0
HILL_AMPLITUDE = 30.0
MIN_ELEVATION = 20.0
KM_PER_HILL = 2.0

# GPX
GPX_CREATOR = "RouteTracker v1.0"
GPX_AUTHOR = "RouteTracker"
GPX_MIME_TYPE = "application/gpx+xml"
GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
WAYPOINT_INTERVAL = 10  # Var tionde punkt blir en rutt-waypoint
MAX_ELAPSED_SECONDS = 1000 * 365 * 24 * 3600  # Längsta tid en export får spänna över (ca 1000 år)

# API URLs
NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"
OSRM_BASE_URL = os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org")
OSRM_PROFILES = {
    "run": "foot",
    "bike": "bike",
}
USER_AGENT = "RouteTrackerApp/1.0"
REQUEST_TIMEOUT = 30
MIN_SEARCH_LENGTH = 3
SEARCH_LIMIT = 5

# Cache-inställningar
CACHE_TTL = 3600  # 1 timme

# Loggning
LOG_LEVEL = os.getenv("ROUTETRACKER_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
