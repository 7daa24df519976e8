"""
GPX-export: syntetiserar tid, höjd och hastighet för ritade punkter
och skriver ett GPX 1.1-dokument
"""

import logging
import re
import xml.etree.ElementTree as ET
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Sequence, Tuple

import gpxpy
import gpxpy.gpx

from config import (
    ACTIVITY_TYPES,
    GPX_AUTHOR,
    GPX_CREATOR,
    GPX_MIME_TYPE,
    WAYPOINT_INTERVAL,
)
from errors import InvalidActivityError, InvalidPaceError, NoRouteDataError, NumericDomainError
from models import GpxFile, RouteDetails, RoutePoint, SynthesizedTrackPoint
from utils import (
    calculate_bearing,
    cumulative_distances_km,
    elapsed_seconds,
    elevation_profile,
    resolve_speed_kmh,
    validate_coordinates,
)

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

def timestamp_to_datetime(timestamp_ms: int) -> datetime:
    """Millisekunder sedan epoch som datetime i UTC"""
    return EPOCH + timedelta(milliseconds=timestamp_ms)

def _activity_type(activity: str) -> str:
    if activity not in ACTIVITY_TYPES:
        raise InvalidActivityError(f"Unknown activity type: {activity!r}")
    return ACTIVITY_TYPES[activity]

def _course(points: Sequence[RoutePoint], index: int) -> float:
    # Sista punkten behåller riktningen från föregående sträcka
    if len(points) < 2:
        return 0.0
    if index < len(points) - 1:
        return calculate_bearing(points[index], points[index + 1])
    return calculate_bearing(points[index - 1], points[index])

def synthesize_track_points(
    points: Sequence[RoutePoint],
    activity: str,
    pace_seconds_per_km: Optional[float] = None
) -> List[SynthesizedTrackPoint]:
    """
    Beräkna höjd, tid och hastighet för varje punkt

    Tiden för varje punkt är starttiden plus den ackumulerade distansen
    delad med hastigheten, avrundad till hela sekunder. Tiderna blir
    därmed aldrig minskande och medelhastigheten stämmer med tempot.

    Args:
        points: Punkter i ritordning
        activity: "run" eller "bike"
        pace_seconds_per_km: Tempo i sekunder per km, 0/None ger standardhastighet

    Returns:
        En SynthesizedTrackPoint per punkt, i samma ordning

    Raises:
        NoRouteDataError: Om punktlistan är tom
        NumericDomainError: Om en koordinat eller starttiden är ogiltig
        InvalidPaceError: Om tempot ger tider utanför giltigt datumintervall
    """
    if not points:
        raise NoRouteDataError()

    for index, point in enumerate(points):
        if not validate_coordinates(point.lat, point.lng):
            raise NumericDomainError(
                f"Point {index} has invalid coordinates ({point.lat}, {point.lng})"
            )

    speed_kmh = resolve_speed_kmh(activity, pace_seconds_per_km)
    distances = cumulative_distances_km(points)
    elevations = elevation_profile(points, distances)
    offsets = [elapsed_seconds(distance, speed_kmh) for distance in distances]

    start_ms = int(points[0].timestamp)
    try:
        start = timestamp_to_datetime(start_ms)
    except OverflowError as e:
        raise NumericDomainError(f"Start timestamp {start_ms} is out of range") from e
    try:
        start + timedelta(seconds=offsets[-1])
    except OverflowError as e:
        raise InvalidPaceError(
            f"Pace {pace_seconds_per_km!r} puts the finish time out of range"
        ) from e

    track_points = []
    for index, (point, distance, elevation, offset) in enumerate(
        zip(points, distances, elevations, offsets)
    ):
        track_points.append(SynthesizedTrackPoint(
            lat=f"{point.lat:.6f}",
            lon=f"{point.lng:.6f}",
            elevation=f"{elevation:.1f}",
            time=start + timedelta(seconds=offset),
            speed_kmh=speed_kmh,
            course=_course(points, index),
            distance_km=distance
        ))

    logger.debug(
        "Syntetiserade %d punkter, %.3f km i %.2f km/h",
        len(track_points), distances[-1], speed_kmh
    )
    return track_points

def _resolve_details(details: Optional[RouteDetails], activity_type: str) -> Tuple[str, str]:
    name = details.name.strip() if details and details.name else ""
    description = details.description.strip() if details and details.description else ""
    return (
        name or f"{activity_type} Route",
        description or f"Generated route for {activity_type}"
    )

def _extension(tag: str, text: str) -> ET.Element:
    element = ET.Element(tag)
    element.text = text
    return element

def _route_waypoints(track_points: List[SynthesizedTrackPoint], name: str) -> gpxpy.gpx.GPXRoute:
    """Rutt-waypoints: första, sista och var tionde punkt"""
    last_index = len(track_points) - 1
    waypoints = [
        point for index, point in enumerate(track_points)
        if index == 0 or index == last_index or index % WAYPOINT_INTERVAL == 0
    ]

    gpx_route = gpxpy.gpx.GPXRoute()
    gpx_route.name = f"{name} - Waypoints"
    gpx_route.description = f"Route waypoints for {name}"

    for number, point in enumerate(waypoints, start=1):
        gpx_point = gpxpy.gpx.GPXRoutePoint(
            float(point.lat),
            float(point.lon),
            elevation=float(point.elevation),
            time=point.time
        )
        gpx_point.name = f"WP{number}"
        gpx_point.description = f"Waypoint {number}"
        gpx_route.points.append(gpx_point)

    return gpx_route

def synthesize(
    points: Sequence[RoutePoint],
    activity: str,
    details: Optional[RouteDetails] = None,
    pace_seconds_per_km: Optional[float] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Skapa GPX-dokument från ritade punkter

    Koordinater skickas till gpxpy avrundade till 6 decimaler och höjder
    till 1 decimal, samma värden som i SynthesizedTrackPoint.

    Args:
        points: Punkter i ritordning
        activity: "run" eller "bike"
        details: Namn och beskrivning, standardtexter används om de saknas
        pace_seconds_per_km: Tempo i sekunder per km
        now: Exporttid för metadata, annars aktuell tid

    Returns:
        GPX som sträng
    """
    track_points = synthesize_track_points(points, activity, pace_seconds_per_km)
    activity_type = _activity_type(activity)
    name, description = _resolve_details(details, activity_type)

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    gpx = gpxpy.gpx.GPX()

    # Lägg till metadata
    gpx.creator = GPX_CREATOR
    gpx.name = name
    gpx.description = description
    gpx.author_name = GPX_AUTHOR
    gpx.time = now.astimezone(timezone.utc)
    gpx.keywords = f"{activity_type}, route, gps, track"

    lats = [float(p.lat) for p in track_points]
    lons = [float(p.lon) for p in track_points]
    gpx.bounds = gpxpy.gpx.GPXBounds(min(lats), max(lats), min(lons), max(lons))

    gpx.routes.append(_route_waypoints(track_points, name))

    # Skapa track
    speed_kmh = track_points[0].speed_kmh
    gpx_track = gpxpy.gpx.GPXTrack()
    gpx_track.name = name
    gpx_track.description = description
    gpx_track.type = activity_type
    gpx.tracks.append(gpx_track)

    # Distans anges i km
    gpx_track.extensions.append(_extension("distance", f"{track_points[-1].distance_km:.3f}"))
    gpx_track.extensions.append(_extension("points", str(len(track_points))))
    gpx_track.extensions.append(_extension("activity", activity))
    gpx_track.extensions.append(_extension("pace", f"{3600 / speed_kmh:.1f}"))
    gpx_track.extensions.append(_extension("speed", f"{speed_kmh:.2f}"))

    # Skapa segment
    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    # Lägg till punkter
    for point in track_points:
        gpx_point = gpxpy.gpx.GPXTrackPoint(
            float(point.lat),
            float(point.lon),
            elevation=float(point.elevation),
            time=point.time
        )
        gpx_point.extensions.append(_extension("speed", f"{point.speed_kmh:.2f}"))
        gpx_point.extensions.append(_extension("course", f"{point.course:.0f}"))
        gpx_segment.points.append(gpx_point)

    return gpx.to_xml(version="1.1")

def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower())

def export_filename(
    details: Optional[RouteDetails],
    activity: str,
    today: Optional[date] = None
) -> str:
    """
    Filnamn för nedladdningen

    Args:
        details: Namn används om det finns
        activity: "run" eller "bike"
        today: Datum i filnamnet, annars dagens datum (UTC)

    Returns:
        T.ex. "morgonrunda-2024-05-01.gpx" eller "running-route-2024-05-01.gpx"
    """
    date_str = (today or datetime.now(timezone.utc).date()).isoformat()
    if details and details.name:
        return f"{slugify(details.name)}-{date_str}.gpx"
    return f"{_activity_type(activity)}-route-{date_str}.gpx"

def export_gpx(
    points: Sequence[RoutePoint],
    activity: str,
    details: Optional[RouteDetails] = None,
    pace_seconds_per_km: Optional[float] = None,
    now: Optional[datetime] = None
) -> GpxFile:
    """
    Skapa GPX-fil redo för nedladdning

    Args:
        points: Punkter i ritordning
        activity: "run" eller "bike"
        details: Namn och beskrivning
        pace_seconds_per_km: Tempo i sekunder per km
        now: Exporttid, styr även datumet i filnamnet

    Returns:
        GpxFile med innehåll, filnamn och MIME-typ
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    content = synthesize(points, activity, details, pace_seconds_per_km, now)
    filename = export_filename(details, activity, now.astimezone(timezone.utc).date())

    logger.info("Exporterade %d punkter till %s", len(points), filename)
    return GpxFile(content=content, filename=filename, mime_type=GPX_MIME_TYPE)
