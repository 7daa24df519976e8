import math
import re
import xml.etree.ElementTree as ET
from datetime import date, datetime, timezone

import gpxpy
import pytest

from conftest import START_MS, equator_points, make_points
from config import DEFAULT_BIKE_SPEED_KMH, DEFAULT_RUN_SPEED_KMH, EARTH_RADIUS_KM, GPX_CREATOR, GPX_NAMESPACE, MIN_ELEVATION
from errors import InvalidActivityError, InvalidPaceError, NoRouteDataError, NumericDomainError
from gpx_export import (
    export_filename,
    export_gpx,
    slugify,
    synthesize,
    synthesize_track_points,
    timestamp_to_datetime,
)
from models import RouteDetails
from utils import cumulative_distance_km, elevation_profile, route_statistics

NS = {"gpx": GPX_NAMESPACE}
EXPORT_TIME = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)


def parse(xml):
    return ET.fromstring(xml.encode("utf-8"))


def parse_time(text):
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def trackpoints(root):
    return root.findall("gpx:trk/gpx:trkseg/gpx:trkpt", NS)


def elapsed_seconds(root):
    times = [parse_time(pt.find("gpx:time", NS).text) for pt in trackpoints(root)]
    return [(t - times[0]).total_seconds() for t in times]


# --- Guards ----------------------------------------------------------
@pytest.mark.parametrize("activity", ["run", "bike"])
def test_empty_route_raises_and_produces_nothing(activity):
    with pytest.raises(NoRouteDataError, match="create a route first"):
        synthesize([], activity)
    with pytest.raises(NoRouteDataError):
        export_gpx([], activity, RouteDetails(name="Tom"))


def test_invalid_coordinates_raise_before_output():
    points = make_points([(0.0, 0.0), (95.0, 0.0)])
    with pytest.raises(NumericDomainError):
        synthesize(points, "run")


def test_negative_pace_and_unknown_activity(one_km_points):
    with pytest.raises(InvalidPaceError):
        synthesize(one_km_points, "run", pace_seconds_per_km=-300)
    with pytest.raises(InvalidActivityError):
        synthesize(one_km_points, "walk")


@pytest.mark.parametrize("pace", [1e12, 1e300])
def test_extremely_slow_pace_raises_domain_error(one_km_points, pace):
    with pytest.raises(InvalidPaceError):
        synthesize_track_points(one_km_points, "run", pace)
    with pytest.raises(InvalidPaceError):
        export_gpx(one_km_points, "run", RouteDetails(name="Seg"), pace, now=EXPORT_TIME)


def test_finish_time_past_year_9999_raises_domain_error():
    # 9999-12-31T23:59:00Z, en km i 5:00/km passerar årsskiftet
    late_start = int(datetime(9999, 12, 31, 23, 59, tzinfo=timezone.utc).timestamp() * 1000)
    points = make_points([(0.0, 0.0), (0.0, 0.008983)], start_ms=late_start)

    with pytest.raises(InvalidPaceError):
        synthesize(points, "run", pace_seconds_per_km=300)


def test_start_timestamp_out_of_range_raises_domain_error():
    points = make_points([(0.0, 0.0), (0.0, 0.01)], start_ms=10 ** 18)
    with pytest.raises(NumericDomainError):
        synthesize_track_points(points, "run", 300)


# --- Track points ----------------------------------------------------
def test_point_count_is_preserved():
    points = equator_points(25, 0.05)
    root = parse(synthesize(points, "run", pace_seconds_per_km=330, now=EXPORT_TIME))

    assert len(trackpoints(root)) == len(points)
    assert int(root.find("gpx:trk/gpx:extensions/gpx:points", NS).text) == len(points)


def test_timestamps_are_monotonic_and_elevation_above_floor(paris_points):
    root = parse(synthesize(paris_points, "bike", pace_seconds_per_km=150, now=EXPORT_TIME))

    elapsed = elapsed_seconds(root)
    assert all(a <= b for a, b in zip(elapsed, elapsed[1:]))

    elevations = [float(pt.find("gpx:ele", NS).text) for pt in trackpoints(root)]
    assert all(e >= MIN_ELEVATION for e in elevations)


def test_coincident_points_share_timestamp():
    points = make_points([(10.0, 10.0), (10.0, 10.0), (10.0, 10.0)])
    track = synthesize_track_points(points, "run", 300)

    assert len({tp.time for tp in track}) == 1
    assert all(tp.elevation == "100.0" for tp in track)


def test_zero_pace_uses_run_default(one_km_points):
    track = synthesize_track_points(one_km_points, "run", 0)
    distance = cumulative_distance_km(one_km_points)

    assert track[0].speed_kmh == DEFAULT_RUN_SPEED_KMH
    second = track[1].time - track[0].time
    assert second.total_seconds() == round(distance / DEFAULT_RUN_SPEED_KMH * 3600)


def test_pace_matches_time_between_points():
    one_km = make_points([(0.0, 0.0), (math.degrees(1 / EARTH_RADIUS_KM), 0.0)])
    root = parse(synthesize(one_km, "run", pace_seconds_per_km=360, now=EXPORT_TIME))

    assert abs(elapsed_seconds(root)[-1] - 360) <= 1


def test_average_speed_recovered_from_export():
    points = equator_points(120, 0.083)
    track = synthesize_track_points(points, "bike", 144)  # 25 km/h

    duration = track[-1].time - track[0].time
    speed = cumulative_distance_km(points) / (duration.total_seconds() / 3600)
    assert speed == pytest.approx(25.0, rel=1e-3)


@pytest.mark.parametrize("activity,pace", [("run", 0), ("bike", None), ("run", 330), ("bike", 144)])
def test_summary_time_equals_exported_duration(paris_points, activity, pace):
    stats = route_statistics(paris_points, activity, pace)
    track = synthesize_track_points(paris_points, activity, pace)

    assert (track[-1].time - track[0].time).total_seconds() == stats.estimated_seconds
    assert stats.estimated_seconds > 0


def test_first_point_keeps_its_timestamp():
    points = make_points([(0.0, 0.0), (0.0, 0.01)], start_ms=START_MS + 123)
    track = synthesize_track_points(points, "run", 300)

    assert track[0].time == datetime(2023, 11, 14, 22, 13, 20, 123000, tzinfo=timezone.utc)
    assert track[0].time_iso == "2023-11-14T22:13:20.123Z"


def test_track_point_formatting(paris_points):
    track = synthesize_track_points(paris_points, "run", 330)

    assert track[0].lat == "48.856600"
    assert track[0].lon == "2.352200"
    assert all(re.fullmatch(r"-?\d+\.\d{6}", tp.lat) for tp in track)
    assert all(re.fullmatch(r"\d+\.\d", tp.elevation) for tp in track)
    assert all(re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d\.\d{3}Z", tp.time_iso) for tp in track)


def test_exported_elevation_follows_shared_profile(paris_points):
    track = synthesize_track_points(paris_points, "run", 330)
    assert [tp.elevation for tp in track] == [f"{e:.1f}" for e in elevation_profile(paris_points)]


def test_distance_does_not_drift_from_cumulative_distance(paris_points):
    track = synthesize_track_points(paris_points, "run", 330)
    assert track[-1].distance_km == cumulative_distance_km(paris_points)


def test_course_follows_direction_of_travel():
    east = synthesize_track_points(equator_points(3, 0.5), "run", 300)
    assert [round(tp.course) for tp in east] == [90, 90, 90]
    assert synthesize_track_points(equator_points(1, 0.5), "run", 300)[0].course == 0.0


def test_timestamp_to_datetime():
    assert timestamp_to_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)
    assert timestamp_to_datetime(START_MS) == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)


# --- Document --------------------------------------------------------
def test_document_shape(one_km_points):
    xml = synthesize(one_km_points, "run", RouteDetails("Test", "Kvällsrunda"), 300, now=EXPORT_TIME)
    root = parse(xml)

    assert xml.startswith("<?xml")
    assert root.tag == f"{{{GPX_NAMESPACE}}}gpx"
    assert root.get("version") == "1.1"
    assert root.get("creator") == GPX_CREATOR

    metadata = root.find("gpx:metadata", NS)
    assert metadata.find("gpx:name", NS).text == "Test"
    assert metadata.find("gpx:desc", NS).text == "Kvällsrunda"
    assert metadata.find("gpx:author/gpx:name", NS).text == "RouteTracker"
    assert parse_time(metadata.find("gpx:time", NS).text) == EXPORT_TIME

    track = root.find("gpx:trk", NS)
    assert track.find("gpx:name", NS).text == "Test"
    assert track.find("gpx:type", NS).text == "running"
    for pt in trackpoints(root):
        assert pt.find("gpx:ele", NS) is not None
        assert pt.find("gpx:time", NS) is not None


def test_document_reads_back_with_gpxpy(paris_points):
    xml = synthesize(paris_points, "run", RouteDetails("Paris", ""), 330, now=EXPORT_TIME)
    gpx = gpxpy.parse(xml)
    track = synthesize_track_points(paris_points, "run", 330)

    assert gpx.name == "Paris"
    assert gpx.tracks[0].type == "running"
    points = gpx.tracks[0].segments[0].points
    assert [(p.latitude, p.longitude) for p in points] == [(float(tp.lat), float(tp.lon)) for tp in track]
    assert [p.elevation for p in points] == [float(tp.elevation) for tp in track]
    assert [p.time for p in points] == [tp.time for tp in track]


def test_default_names_and_cycling_type(one_km_points):
    root = parse(synthesize(one_km_points, "bike", now=EXPORT_TIME))

    assert root.find("gpx:metadata/gpx:name", NS).text == "cycling Route"
    assert root.find("gpx:metadata/gpx:desc", NS).text == "Generated route for cycling"
    assert root.find("gpx:trk/gpx:type", NS).text == "cycling"


def test_text_is_escaped(one_km_points):
    details = RouteDetails(name="Fish & Chips <Loop>", description='"Quoted" & more')
    root = parse(synthesize(one_km_points, "run", details, 300, now=EXPORT_TIME))

    assert root.find("gpx:metadata/gpx:name", NS).text == "Fish & Chips <Loop>"
    assert root.find("gpx:trk/gpx:desc", NS).text == '"Quoted" & more'


def test_bounds_cover_all_points(paris_points):
    root = parse(synthesize(paris_points, "run", now=EXPORT_TIME))
    bounds = root.find("gpx:metadata/gpx:bounds", NS)

    assert {key: float(value) for key, value in bounds.attrib.items()} == {
        "minlat": 48.853,
        "minlon": 2.2945,
        "maxlat": 48.8606,
        "maxlon": 2.3522,
    }


def test_route_waypoints_are_every_tenth_plus_ends():
    points = equator_points(25, 0.05)
    root = parse(synthesize(points, "run", now=EXPORT_TIME))
    rtepts = root.findall("gpx:rte/gpx:rtept", NS)
    trkpts = trackpoints(root)

    assert [pt.get("lon") for pt in rtepts] == [trkpts[i].get("lon") for i in (0, 10, 20, 24)]
    assert [pt.find("gpx:name", NS).text for pt in rtepts] == ["WP1", "WP2", "WP3", "WP4"]


def test_track_extensions(one_km_points):
    root = parse(synthesize(one_km_points, "run", pace_seconds_per_km=300, now=EXPORT_TIME))
    extensions = root.find("gpx:trk/gpx:extensions", NS)

    assert extensions.find("gpx:distance", NS).text == "0.999"
    assert extensions.find("gpx:points", NS).text == "2"
    assert extensions.find("gpx:activity", NS).text == "run"
    assert extensions.find("gpx:pace", NS).text == "300.0"
    assert extensions.find("gpx:speed", NS).text == "12.00"

    first = trackpoints(root)[0].find("gpx:extensions", NS)
    assert first.find("gpx:speed", NS).text == "12.00"
    assert first.find("gpx:course", NS).text == "90"


def test_same_input_gives_identical_document(paris_points):
    details = RouteDetails("Paris", "")
    first = synthesize(paris_points, "run", details, 330, now=EXPORT_TIME)
    second = synthesize(paris_points, "run", details, 330, now=EXPORT_TIME)
    assert first == second


# --- Scenarios -------------------------------------------------------
def test_scenario_two_points_one_km_run(one_km_points):
    gpx_file = export_gpx(one_km_points, "run", RouteDetails(name="Test"), 300, now=EXPORT_TIME)
    root = parse(gpx_file.content)

    assert len(trackpoints(root)) == 2
    assert elapsed_seconds(root) == [0.0, 300.0]
    assert all(float(pt.find("gpx:ele", NS).text) >= 20.0 for pt in trackpoints(root))
    assert gpx_file.filename == "test-2024-05-01.gpx"
    assert gpx_file.mime_type == "application/gpx+xml"
    assert gpx_file.data == gpx_file.content.encode("utf-8")


def test_scenario_three_points_bike_default_speed():
    points = equator_points(3, 0.5)
    root = parse(synthesize(points, "bike", pace_seconds_per_km=None, now=EXPORT_TIME))

    expected = 1.0 / DEFAULT_BIKE_SPEED_KMH * 3600
    assert elapsed_seconds(root)[2] == pytest.approx(expected, abs=1)


# --- Filename --------------------------------------------------------
def test_export_filename():
    today = date(2024, 5, 1)
    assert export_filename(RouteDetails(name="Test"), "run", today) == "test-2024-05-01.gpx"
    assert export_filename(RouteDetails(name="Morning Run!! #3"), "run", today) == "morning-run-3-2024-05-01.gpx"
    assert export_filename(RouteDetails(), "run", today) == "running-route-2024-05-01.gpx"
    assert export_filename(None, "bike", today) == "cycling-route-2024-05-01.gpx"


def test_export_filename_keeps_dashes_from_name():
    today = date(2024, 5, 1)
    assert export_filename(RouteDetails(name="Test!"), "run", today) == "test--2024-05-01.gpx"
    assert export_filename(RouteDetails(name="!!!"), "bike", today) == "--2024-05-01.gpx"
    assert export_filename(RouteDetails(name=" Loop "), "run", today) == "-loop--2024-05-01.gpx"


def test_export_filename_uses_utc_date_of_export(one_km_points):
    late = datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc)
    assert export_gpx(one_km_points, "run", now=late).filename == "running-route-2024-05-01.gpx"


def test_slugify():
    assert slugify("Runda Runt Sjön") == "runda-runt-sj-n"
    assert slugify("  --A  b--  ") == "-a-b-"
    assert slugify("Test!") == "test-"
