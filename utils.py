"""
Hjälpfunktioner för GPX-ruttgeneratorn

Distans, höjdprofil och tempo räknas bara här, så att sammanfattningen
och GPX-exporten alltid visar samma siffror.
"""

import logging
import math
from typing import List, Optional, Sequence

from config import (
    BASE_ELEVATION,
    DEFAULT_PACE,
    DEFAULT_SPEED_KMH,
    EARTH_RADIUS_KM,
    HILL_AMPLITUDE,
    KM_PER_HILL,
    MAX_ELAPSED_SECONDS,
    MIN_ELEVATION,
)
from errors import InvalidActivityError, InvalidPaceError, NumericDomainError
from models import RoutePoint, RouteStatistics

logger = logging.getLogger(__name__)

def haversine_distance_km(p1: RoutePoint, p2: RoutePoint) -> float:
    """
    Beräkna storcirkelavstånd mellan två punkter (Haversine formula)

    Args:
        p1: Första punkten
        p2: Andra punkten

    Returns:
        Avstånd i km
    """
    lat1, lat2 = math.radians(p1.lat), math.radians(p2.lat)
    dlat = math.radians(p2.lat - p1.lat)
    dlng = math.radians(p2.lng - p1.lng)

    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng/2)**2
    # Avrundningsfel kan ge a strax utanför [0, 1] för nästan identiska eller antipodala punkter
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c

def cumulative_distances_km(points: Sequence[RoutePoint]) -> List[float]:
    """
    Ackumulerad distans fram till varje punkt

    Args:
        points: Punkter i ritordning

    Returns:
        Lista med samma längd som points, första värdet 0
    """
    if not points:
        return []

    distances = [0.0]
    for prev, curr in zip(points, points[1:]):
        distances.append(distances[-1] + haversine_distance_km(prev, curr))

    return distances

def cumulative_distance_km(points: Sequence[RoutePoint]) -> float:
    """Total distans i km för hela rutten"""
    if not points:
        return 0.0
    return cumulative_distances_km(points)[-1]

def calculate_bearing(p1: RoutePoint, p2: RoutePoint) -> float:
    """
    Beräkna bäring mellan två punkter

    Args:
        p1: Startpunkt
        p2: Slutpunkt

    Returns:
        Bäring i grader (0-360)
    """
    lat1, lon1 = math.radians(p1.lat), math.radians(p1.lng)
    lat2, lon2 = math.radians(p2.lat), math.radians(p2.lng)

    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)

    bearing = math.atan2(y, x)
    bearing = math.degrees(bearing)
    bearing = (bearing + 360) % 360

    return bearing

def validate_coordinates(lat: float, lng: float) -> bool:
    """
    Validera att koordinater är giltiga

    Args:
        lat: Latitud
        lng: Longitud

    Returns:
        True om koordinaterna är giltiga
    """
    return -90 <= lat <= 90 and -180 <= lng <= 180

def elevation_profile(
    points: Sequence[RoutePoint],
    distances: Optional[List[float]] = None
) -> List[float]:
    """
    Syntetisk höjdprofil, en höjd per punkt

    Kullar fördelas längs rutten (en per påbörjad KM_PER_HILL km, minst en)
    med en mindre variation ovanpå. Profilen beror bara på distansen, så
    samma rutt ger alltid samma höjder.

    Args:
        points: Punkter i ritordning
        distances: Redan beräknad ackumulerad distans, räknas annars om

    Returns:
        Höjd i meter per punkt, aldrig under MIN_ELEVATION
    """
    if distances is None:
        distances = cumulative_distances_km(points)
    if not distances:
        return []

    total_distance = distances[-1]
    number_of_hills = max(1, math.floor(total_distance / KM_PER_HILL))

    elevations = []
    for distance in distances:
        progress = distance / total_distance if total_distance > 0 else 0.0
        hill_effect = HILL_AMPLITUDE * math.sin(progress * number_of_hills * 2 * math.pi)
        variation_effect = (HILL_AMPLITUDE / 4) * math.sin(progress * number_of_hills * 8 * math.pi)
        elevations.append(max(MIN_ELEVATION, BASE_ELEVATION + hill_effect + variation_effect))

    return elevations

def calculate_elevation_gain(elevations: Sequence[float]) -> float:
    """
    Beräkna total höjdökning

    Args:
        elevations: Höjder i meter i ruttordning

    Returns:
        Total höjdökning i meter
    """
    total_gain = 0.0
    for prev, curr in zip(elevations, elevations[1:]):
        if curr > prev:
            total_gain += curr - prev

    return total_gain

def route_elevation_gain(points: Sequence[RoutePoint]) -> int:
    """Höjdökning i hela meter för den höjdprofil som exporteras"""
    if len(points) < 2:
        return 0
    return int(round(calculate_elevation_gain(elevation_profile(points))))

def resolve_speed_kmh(activity: str, pace_seconds_per_km: Optional[float] = None) -> float:
    """
    Hastighet i km/h från tempo, eller aktivitetens standardhastighet

    Args:
        activity: "run" eller "bike"
        pace_seconds_per_km: Sekunder per km, 0 eller None betyder standard

    Returns:
        Hastighet i km/h
    """
    if activity not in DEFAULT_SPEED_KMH:
        raise InvalidActivityError(f"Unknown activity type: {activity!r}")

    if pace_seconds_per_km is None or pace_seconds_per_km == 0:
        return DEFAULT_SPEED_KMH[activity]

    if not math.isfinite(pace_seconds_per_km) or pace_seconds_per_km < 0:
        raise InvalidPaceError(f"Pace must be a non-negative number, got {pace_seconds_per_km!r}")

    speed = 3600 / pace_seconds_per_km
    if not math.isfinite(speed):
        raise InvalidPaceError(f"Pace {pace_seconds_per_km!r} is too small")
    return speed

def parse_pace(pace_str: str) -> float:
    """
    Konvertera tempo-sträng till sekunder per km

    Args:
        pace_str: Tempo som "5:30"

    Returns:
        Sekunder per km
    """
    try:
        parts = pace_str.split(":")
        if len(parts) == 2:
            minutes = int(parts[0])
            seconds = int(parts[1])
            if minutes >= 0 and 0 <= seconds < 60:
                return float(minutes * 60 + seconds)
    except (AttributeError, ValueError):
        pass
    logger.warning("Ogiltigt tempo %r, använder %s", pace_str, DEFAULT_PACE)
    return parse_pace(DEFAULT_PACE)

def pace_from_target_time(total_seconds: float, distance_km: float) -> float:
    """Tempo (s/km) som krävs för att klara distansen på måltiden"""
    if distance_km <= 0:
        return 0.0
    return total_seconds / distance_km

def format_pace(pace_seconds_per_km: float) -> str:
    """Formatera tempo som M:SS"""
    minutes = int(pace_seconds_per_km // 60)
    seconds = int(pace_seconds_per_km % 60)
    return f"{minutes}:{seconds:02d}"

def speed_from_pace(pace_seconds_per_km: float) -> str:
    """Hastighet i km/h med en decimal, "0.0" när tempo saknas"""
    if pace_seconds_per_km <= 0:
        return "0.0"
    return f"{3600 / pace_seconds_per_km:.1f}"

def elapsed_seconds(distance_km: float, speed_kmh: float) -> int:
    """
    Förfluten tid i hela sekunder för en distans i given hastighet

    Används både av sammanfattningen och GPX-exporten.

    Args:
        distance_km: Ackumulerad distans i km
        speed_kmh: Hastighet i km/h

    Returns:
        Sekunder, avrundat till närmaste heltal

    Raises:
        InvalidPaceError: Om tiden inte går att representera
    """
    if speed_kmh <= 0:
        return 0
    seconds = distance_km / speed_kmh * 3600
    if not math.isfinite(seconds) or seconds > MAX_ELAPSED_SECONDS:
        raise InvalidPaceError(f"Elapsed time {seconds!r} s is out of range, pace is too slow")
    return round(seconds)

def format_duration(total_seconds: float) -> str:
    """
    Formatera tid från sekunder till sträng

    Args:
        total_seconds: Antal sekunder

    Returns:
        Formaterad tidssträng (H:MM:SS eller M:SS)
    """
    hours = int(total_seconds // 3600)
    minutes = int((total_seconds % 3600) // 60)
    seconds = int(total_seconds % 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    else:
        return f"{minutes}:{seconds:02d}"

def route_statistics(
    points: Sequence[RoutePoint],
    activity: str,
    pace_seconds_per_km: Optional[float] = None
) -> RouteStatistics:
    """
    Beräkna statistik för sammanfattningen

    Uppskattad tid räknas med samma hastighet som exporten använder, så
    utan tempo gäller aktivitetens standardhastighet.

    Args:
        points: Punkter i ritordning
        activity: "run" eller "bike"
        pace_seconds_per_km: Tempo, 0/None ger standardhastighet

    Returns:
        RouteStatistics
    """
    distance = cumulative_distance_km(points)
    estimated_seconds = elapsed_seconds(distance, resolve_speed_kmh(activity, pace_seconds_per_km))

    return RouteStatistics(
        distance_km=distance,
        formatted_distance=f"{distance:.2f}",
        estimated_time=format_duration(estimated_seconds),
        estimated_seconds=estimated_seconds,
        elevation_gain=route_elevation_gain(points),
        activity=activity
    )

def parse_coordinate_lines(text: str, start_timestamp: int) -> List[RoutePoint]:
    """
    Tolka inklistrade koordinater, en "lat, lng" per rad

    Args:
        text: Text med en punkt per rad, tomma rader ignoreras
        start_timestamp: Tidsstämpel (ms) för första punkten

    Returns:
        Lista med RoutePoint
    """
    points = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue

        parts = line.replace(";", ",").replace(",", " ").split()
        if len(parts) != 2:
            raise ValueError(f"Rad {line_number}: förväntade 'lat, lng', fick {line!r}")

        lat, lng = float(parts[0]), float(parts[1])
        if not validate_coordinates(lat, lng):
            raise NumericDomainError(f"Rad {line_number}: ogiltig koordinat ({lat}, {lng})")

        points.append(RoutePoint(lat=lat, lng=lng, timestamp=start_timestamp + len(points)))

    return points
