"""
Routing-providers för vägfästning: OSRM
"""

import logging
import time
from typing import List, Optional, Sequence

import requests

from config import OSRM_BASE_URL, OSRM_PROFILES, REQUEST_TIMEOUT, USER_AGENT
from errors import RoadSnapError
from models import RoutePoint

logger = logging.getLogger(__name__)

class RoadSnapProvider:
    """Basklass för providers som fäster en ritad rutt mot vägnätet"""

    def snap(
        self,
        points: Sequence[RoutePoint],
        activity: str = "run",
        now_ms: Optional[int] = None
    ) -> List[RoutePoint]:
        raise NotImplementedError

class OSRMProvider(RoadSnapProvider):
    """OSRM routing provider"""

    def __init__(self, base_url: str = OSRM_BASE_URL):
        self.name = "OSRM"
        self.base_url = base_url.rstrip("/")

    def snap(
        self,
        points: Sequence[RoutePoint],
        activity: str = "run",
        now_ms: Optional[int] = None
    ) -> List[RoutePoint]:
        """
        Hämta en väganpassad version av rutten från OSRM

        Args:
            points: Ritade punkter i ordning
            activity: "run" eller "bike", väljer OSRM-profil
            now_ms: Tidsstämpel för första nya punkten, annars aktuell tid

        Returns:
            Ny, tätare punktlista längs vägnätet. Färre än två punkter
            returneras oförändrade.

        Raises:
            RoadSnapError: Om tjänsten inte svarar eller svaret saknar geometri
        """
        if len(points) < 2:
            return list(points)

        profile = OSRM_PROFILES.get(activity, "foot")
        coordinates = ";".join(f"{p.lng},{p.lat}" for p in points)
        url = f"{self.base_url}/route/v1/{profile}/{coordinates}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "false"
        }
        headers = {"User-Agent": USER_AGENT}

        try:
            response = requests.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise RoadSnapError(f"Failed to snap to roads: {e}") from e

        if response.status_code != 200:
            raise RoadSnapError(f"Failed to snap to roads: HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise RoadSnapError("Failed to snap to roads: invalid response") from e

        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return self._parse_osrm_response(data, now_ms)

    def _parse_osrm_response(self, data: dict, now_ms: int) -> List[RoutePoint]:
        """Parsa OSRM-respons till RoutePoint-lista"""

        routes = data.get("routes") or []
        if not routes or not routes[0].get("geometry"):
            raise RoadSnapError(f"No route found ({data.get('code', 'unknown')})")

        coordinates = routes[0]["geometry"].get("coordinates", [])
        points = []

        for coord in coordinates:
            if len(coord) >= 2:
                # GeoJSON format: [lon, lat]
                points.append(RoutePoint(
                    lat=coord[1],
                    lng=coord[0],
                    timestamp=now_ms + len(points)
                ))

        if len(points) < 2:
            raise RoadSnapError("Snapped route has too few points")

        logger.debug("OSRM returnerade %d punkter", len(points))
        return points
