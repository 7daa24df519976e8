"""
Datamodeller för GPX-ruttgeneratorn
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class RoutePoint:
    """En ritad punkt på rutten, tidsstämpel i millisekunder sedan epoch"""
    lat: float
    lng: float
    timestamp: int

@dataclass
class RouteDetails:
    """Namn och beskrivning som användaren angett"""
    name: str = ""
    description: str = ""

@dataclass
class SynthesizedTrackPoint:
    """En färdigberäknad trackpunkt, redo att skrivas som <trkpt>"""
    lat: str  # 6 decimaler
    lon: str  # 6 decimaler
    elevation: str  # 1 decimal
    time: datetime  # UTC
    speed_kmh: float
    course: float
    distance_km: float

    @property
    def time_iso(self) -> str:
        """ISO-8601 i UTC med millisekunder, t.ex. 2024-05-01T08:00:00.000Z"""
        return self.time.isoformat(timespec="milliseconds").replace("+00:00", "Z")

@dataclass
class GpxFile:
    """Färdig GPX-fil för nedladdning"""
    content: str
    filename: str
    mime_type: str

    @property
    def data(self) -> bytes:
        return self.content.encode("utf-8")

@dataclass
class RouteStatistics:
    """Statistik som visas i sammanfattningen"""
    distance_km: float
    formatted_distance: str
    estimated_time: str
    estimated_seconds: int
    elevation_gain: int
    activity: str

@dataclass
class LocationResult:
    """Ett sökresultat från geokodningen"""
    lat: float
    lng: float
    display_name: str
    place_type: Optional[str] = None
