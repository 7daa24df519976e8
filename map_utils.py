"""
Kartfunktioner för visualisering
"""

import folium
from typing import Any, Dict, List, Optional, Sequence, Tuple
from models import RoutePoint
from utils import validate_coordinates

def create_map(
    center: List[float],
    points: Optional[Sequence[RoutePoint]] = None,
    show_waypoints: bool = True,
    snapped: bool = False,
    zoom_start: int = 13
) -> folium.Map:
    """
    Skapa Folium-karta med rutt och markörer

    Args:
        center: Kartans centrum [lat, lng]
        points: Ruttens punkter i ordning
        show_waypoints: Visa markörer för mellanliggande punkter
        snapped: Rutten är fäst mot vägnätet (annan linjefärg)
        zoom_start: Startzoom

    Returns:
        Folium Map-objekt
    """
    m = folium.Map(
        location=center,
        zoom_start=zoom_start,
        control_scale=True
    )

    if not points:
        return m

    route_coords = [[p.lat, p.lng] for p in points]

    # Startmarkör
    folium.Marker(
        route_coords[0],
        popup="Start",
        icon=folium.Icon(color="green", icon="play")
    ).add_to(m)

    # Markörer för ritade mellanpunkter, inte för tusentals vägpunkter
    if show_waypoints and not snapped:
        for index, coord in enumerate(route_coords[1:-1], start=2):
            folium.Marker(
                coord,
                popup=f"Punkt {index}",
                icon=folium.Icon(color="orange", icon="circle")
            ).add_to(m)

    if len(route_coords) > 1:
        # Slutmarkör
        folium.Marker(
            route_coords[-1],
            popup="Mål",
            icon=folium.Icon(color="red", icon="stop")
        ).add_to(m)

        folium.PolyLine(
            route_coords,
            color="green" if snapped else "blue",
            weight=4,
            opacity=0.8,
            dash_array=None if snapped else "8"
        ).add_to(m)

        # Anpassa zoom för att visa hela rutten
        bounds = [[min(p[0] for p in route_coords), min(p[1] for p in route_coords)],
                 [max(p[0] for p in route_coords), max(p[1] for p in route_coords)]]
        m.fit_bounds(bounds)

    return m

def point_from_click(
    map_data: Optional[Dict[str, Any]],
    last_click: Optional[Tuple[float, float]],
    timestamp: int
) -> Optional[RoutePoint]:
    """
    Tolka ett klick från st_folium som en ny ruttpunkt

    st_folium returnerar senaste klicket vid varje omritning, så ett klick
    som redan lagts till ger None.

    Args:
        map_data: Returvärdet från st_folium
        last_click: (lat, lng) för klicket som senast lades till
        timestamp: Tidsstämpel (ms) för den nya punkten

    Returns:
        RoutePoint, eller None om inget nytt giltigt klick finns
    """
    clicked = (map_data or {}).get("last_clicked")
    if not clicked:
        return None

    lat, lng = clicked.get("lat"), clicked.get("lng")
    if lat is None or lng is None or (lat, lng) == last_click:
        return None
    if not validate_coordinates(lat, lng):
        return None

    return RoutePoint(lat=lat, lng=lng, timestamp=timestamp)
