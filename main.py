"""
Huvudapplikation för Streamlit GPX-ruttgenerator
"""

import logging
import time
import streamlit as st
from streamlit_folium import st_folium

# Importera moduler
from config import ACTIVITY_TYPES, DEFAULT_ACTIVITY, DEFAULT_CENTER, DEFAULT_PACE, LOG_FORMAT, LOG_LEVEL
from errors import NoRouteDataError, RoadSnapError, RouteExportError
from geocoding import search_locations
from gpx_export import export_gpx
from map_utils import create_map, point_from_click
from models import RouteDetails, RoutePoint
from routing import snap_route, snapping_in_progress
from utils import (
    cumulative_distance_km,
    format_duration,
    format_pace,
    pace_from_target_time,
    parse_coordinate_lines,
    parse_pace,
    route_statistics,
    speed_from_pace,
    validate_coordinates,
)

logger = logging.getLogger(__name__)

def now_ms() -> int:
    return int(time.time() * 1000)

def init_session_state():
    """Initiera session state"""
    if "route_points" not in st.session_state:
        st.session_state.route_points = []
    if "original_points" not in st.session_state:
        st.session_state.original_points = []
    if "is_snapped" not in st.session_state:
        st.session_state.is_snapped = False
    if "map_center" not in st.session_state:
        st.session_state.map_center = DEFAULT_CENTER
    if "new_lat" not in st.session_state:
        st.session_state.new_lat = float(DEFAULT_CENTER[0])
    if "new_lng" not in st.session_state:
        st.session_state.new_lng = float(DEFAULT_CENTER[1])
    if "last_click" not in st.session_state:
        st.session_state.last_click = None
    if "activity" not in st.session_state:
        st.session_state.activity = DEFAULT_ACTIVITY
    if "pace" not in st.session_state:
        st.session_state.pace = parse_pace(DEFAULT_PACE)

def set_points(points, snapped=False):
    """Byt ut hela punktlistan"""
    st.session_state.route_points = list(points)
    st.session_state.is_snapped = snapped
    if not snapped:
        st.session_state.original_points = list(points)

def drawing_tools():
    """Punktinmatning: lägg till, klistra in, ångra och rensa"""
    st.subheader("Rita rutt")

    col_lat, col_lng = st.columns(2)
    with col_lat:
        lat = st.number_input("Latitud", min_value=-90.0, max_value=90.0, format="%.6f", key="new_lat")
    with col_lng:
        lng = st.number_input("Longitud", min_value=-180.0, max_value=180.0, format="%.6f", key="new_lng")

    if st.button("Lägg till punkt", use_container_width=True):
        if validate_coordinates(lat, lng):
            point = RoutePoint(lat=lat, lng=lng, timestamp=now_ms())
            set_points(st.session_state.original_points + [point])
        else:
            st.error("Ogiltig koordinat")

    pasted = st.text_area(
        "Klistra in koordinater",
        placeholder="48.8566, 2.3522\n48.8584, 2.2945",
        help="En punkt per rad: latitud, longitud"
    )
    if st.button("Lägg till punkter", use_container_width=True, disabled=not pasted.strip()):
        try:
            new_points = parse_coordinate_lines(pasted, now_ms())
        except ValueError as e:
            st.error(str(e))
        else:
            set_points(st.session_state.original_points + new_points)
            st.success(f"{len(new_points)} punkter tillagda")

    col_undo, col_clear = st.columns(2)
    with col_undo:
        if st.button("Ångra senaste", use_container_width=True,
                     disabled=not st.session_state.original_points):
            set_points(st.session_state.original_points[:-1])
    with col_clear:
        if st.button("Rensa", use_container_width=True,
                     disabled=not st.session_state.route_points):
            set_points([])

def snap_controls(activity):
    """Fäst rutten mot vägnätet eller återgå till ritade punkter"""
    if not st.session_state.is_snapped:
        if st.button("Fäst mot vägar", use_container_width=True,
                     disabled=len(st.session_state.original_points) < 2 or snapping_in_progress()):
            with st.spinner("Fäster mot vägar..."):
                try:
                    snapped = snap_route(st.session_state.original_points, activity)
                except RoadSnapError as e:
                    logger.warning("Vägfästning misslyckades: %s", e)
                    st.warning("Kunde inte fästa rutten mot vägar. Försök igen.")
                else:
                    set_points(snapped, snapped=True)
    else:
        st.success("Rutten är fäst mot vägar")
        if st.button("Återställ ritad rutt", use_container_width=True):
            set_points(st.session_state.original_points)

def go_to_location(state, location):
    """Flytta kartan och punktinmatningen till en sökträff"""
    state["map_center"] = [location.lat, location.lng]
    # Koordinatfälten ritas efter sökningen och måste sättas innan dess
    state["new_lat"] = location.lat
    state["new_lng"] = location.lng

def location_search():
    """Sök plats och flytta kartan dit"""
    query = st.text_input("Sök plats", placeholder="T.ex. Eiffeltornet, Paris", key="location_query")
    if not query:
        return

    with st.spinner("Söker plats..."):
        results = search_locations(query)

    if not results:
        st.info("Inga platser hittades")
        return

    choice = st.selectbox(
        "Träffar",
        range(len(results)),
        format_func=lambda i: results[i].display_name,
        key="location_choice"
    )
    if st.button("Gå till plats", use_container_width=True):
        go_to_location(st.session_state, results[choice])

def pace_calculator(activity, distance_km):
    """Tempo direkt eller via måltid, returnerar sekunder per km"""
    st.subheader("Tempo")

    pace_mode = st.radio(
        "Läge",
        ["pace", "time"],
        format_func=lambda x: "Ange tempo" if x == "pace" else "Ange tid",
        horizontal=True,
        key="pace_mode"
    )

    if pace_mode == "pace":
        col_min, col_sec = st.columns(2)
        with col_min:
            minutes = st.number_input("Min/km", min_value=0, value=5, step=1, key="pace_minutes")
        with col_sec:
            seconds = st.number_input("Sek", min_value=0, max_value=59, value=30, step=1, key="pace_seconds")
        pace = float(minutes * 60 + seconds)
    else:
        col_h, col_m, col_s = st.columns(3)
        with col_h:
            hours = st.number_input("Tim", min_value=0, value=0, step=1, key="target_hours")
        with col_m:
            minutes = st.number_input("Min", min_value=0, max_value=59, value=30, step=1, key="target_minutes")
        with col_s:
            seconds = st.number_input("Sek", min_value=0, max_value=59, value=0, step=1, key="target_seconds")
        pace = pace_from_target_time(hours * 3600 + minutes * 60 + seconds, distance_km)

    st.metric("Aktuellt tempo", f"{format_pace(pace)}/km")
    st.metric("Hastighet", f"{speed_from_pace(pace)} km/h")
    if distance_km > 0 and pace > 0:
        st.metric("Total tid", format_duration(distance_km * pace))

    if pace == 0:
        st.caption(f"Inget tempo satt, standardhastighet för {ACTIVITY_TYPES[activity]} används vid export")

    return pace

def main():
    """Huvudfunktion för Streamlit-appen"""
    st.set_page_config(
        page_title="GPX-ruttgenerator",
        page_icon="🗺️",
        layout="wide"
    )

    init_session_state()

    st.title("GPX-ruttgenerator")
    st.markdown("Rita en rutt, välj tempo och ladda ner en GPX-fil")

    # Sidebar för inställningar
    with st.sidebar:
        st.header("Inställningar")

        activity = st.radio(
            "Aktivitet",
            list(ACTIVITY_TYPES),
            format_func=lambda x: "Löpning" if x == "run" else "Cykling",
            key="activity"
        )

        st.divider()
        location_search()

        st.divider()
        drawing_tools()
        snap_controls(activity)

        st.divider()
        distance_km = cumulative_distance_km(st.session_state.route_points)
        st.session_state.pace = pace_calculator(activity, distance_km)

    # Huvudinnehåll
    col1, col2 = st.columns([2, 1])

    with col1:
        st.subheader("Karta")
        col_draw, col_markers = st.columns(2)
        with col_draw:
            click_to_draw = st.checkbox("Rita genom att klicka i kartan", value=True, key="click_to_draw")
        with col_markers:
            show_waypoints = st.checkbox("Visa punkter", value=True)

        m = create_map(
            st.session_state.map_center,
            st.session_state.route_points,
            show_waypoints=show_waypoints,
            snapped=st.session_state.is_snapped
        )
        # Visa karta
        map_data = st_folium(
            m,
            key="map",
            width=None,
            height=500,
            returned_objects=["last_clicked"]
        )

        point = point_from_click(map_data, st.session_state.last_click, now_ms())
        if point:
            st.session_state.last_click = (point.lat, point.lng)
            if click_to_draw:
                set_points(st.session_state.original_points + [point])
                st.rerun()

    with col2:
        st.subheader("Sammanfattning")

        stats = route_statistics(st.session_state.route_points, activity, st.session_state.pace)
        st.metric("Distans", f"{stats.formatted_distance} km")
        st.metric("Uppskattad tid", stats.estimated_time)
        st.metric("Höjdökning", f"{stats.elevation_gain} m")
        st.metric("Punkter", len(st.session_state.route_points))

        st.divider()

        # GPX-export
        st.subheader("Export")

        route_name = st.text_input("Ruttnamn", key="route_name")
        route_description = st.text_area("Beskrivning", key="route_description")

        if st.button("Exportera GPX", use_container_width=True):
            try:
                gpx_file = export_gpx(
                    st.session_state.route_points,
                    activity,
                    RouteDetails(name=route_name, description=route_description),
                    st.session_state.pace
                )
            except NoRouteDataError as e:
                st.error(str(e))
            except RouteExportError as e:
                logger.error("Export misslyckades: %s", e)
                st.error(f"Kunde inte exportera: {e}")
            else:
                st.download_button(
                    label="Spara GPX-fil",
                    data=gpx_file.data,
                    file_name=gpx_file.filename,
                    mime=gpx_file.mime_type,
                    use_container_width=True
                )

if __name__ == "__main__":
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    main()
