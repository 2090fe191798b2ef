from datetime import timedelta

import pytest

from factories import NOW
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.services.interpolation_service import (
    LatLng,
    LivePositionFeed,
    interpolate_linear,
    point_along_route,
    positions_for_trips,
    trip_fraction,
)

ROUTE = [[120.98, 14.60], [121.00, 14.60], [121.00, 14.62]]


def test_fraction_is_clamped():
    start, end = NOW, NOW + timedelta(hours=2)
    assert trip_fraction(start, end, NOW - timedelta(minutes=5)) == 0
    assert trip_fraction(start, end, NOW + timedelta(hours=1)) == pytest.approx(0.5)
    assert trip_fraction(start, end, NOW + timedelta(hours=3)) == 1


def test_fraction_without_end_uses_one_hour_window():
    assert trip_fraction(NOW, None, NOW + timedelta(minutes=30)) == pytest.approx(0.5)


def test_fraction_of_zero_length_window():
    assert trip_fraction(NOW, NOW, NOW) == 0
    assert trip_fraction(NOW, NOW, NOW + timedelta(seconds=1)) == 1


def test_linear_midpoint():
    point = interpolate_linear(LatLng(10.0, 20.0), LatLng(12.0, 24.0), 0.5)
    assert point.lat == pytest.approx(11.0)
    assert point.lng == pytest.approx(22.0)


def test_route_endpoints_are_exact():
    assert point_along_route(ROUTE, 0) == LatLng(lat=14.60, lng=120.98)
    assert point_along_route(ROUTE, 1) == LatLng(lat=14.62, lng=121.00)


def test_route_follows_waypoints():
    # both legs are about the same length, so halfway sits near the corner
    point = point_along_route(ROUTE, 0.5)
    assert point.lng == pytest.approx(121.00, abs=0.002)
    assert point.lat == pytest.approx(14.60, abs=0.002)


def test_route_of_identical_points_returns_first():
    assert point_along_route([[121.0, 14.6], [121.0, 14.6]], 0.7) == LatLng(14.6, 121.0)


def test_empty_route_has_no_point():
    assert point_along_route([], 0.5) is None


def _in_transit(id, truck_id=None):
    return TripRecord(
        id=id,
        truckId=truck_id,
        originLat=14.0,
        originLng=121.0,
        destLat=15.0,
        destLng=121.0,
        startTime=NOW,
        endTime=NOW + timedelta(hours=2),
        status="intransit",
    )


def test_positions_keyed_by_truck_or_trip():
    trips = [
        _in_transit("TRIP-1", "T-001"),
        _in_transit("TRIP-2"),
        TripRecord(id="TRIP-3", truckId="T-003", status="pending", originLat=1, originLng=1, destLat=2, destLng=2),
        TripRecord(id="TRIP-4", truckId="T-004", status="intransit"),
    ]
    positions = positions_for_trips(trips, NOW + timedelta(hours=1))

    assert set(positions) == {"T-001", "TRIP-2"}
    assert positions["T-001"].lat == pytest.approx(14.5)


def test_positions_prefer_trip_route_over_truck_route():
    trip_route = [[121.0, 14.0], [121.5, 14.0]]
    truck_route = [[121.0, 14.0], [121.0, 13.0]]
    positions = positions_for_trips(
        [_in_transit("TRIP-1", "T-001")],
        NOW + timedelta(hours=2),
        routes={"TRIP-1": trip_route, "T-001": truck_route},
    )
    assert positions["T-001"] == LatLng(lat=14.0, lng=121.5)


def test_live_feed_tracks_clients_and_vehicles():
    feed = LivePositionFeed()

    assert feed.apply({"type": "position-update", "id": "T-001", "lat": 14.6, "lng": 121.0})
    assert feed.apply({"type": "client-position", "clientId": "phone-1", "lat": 14.5, "lng": 121.1})
    assert not feed.apply({"type": "position-update", "id": "T-002", "lat": "bad", "lng": 121.0})
    assert feed.apply({"type": "client-stop", "clientId": "phone-1"})

    assert feed.client_positions == {}
    merged = feed.merge({"T-001": LatLng(0, 0), "T-009": LatLng(1, 1)})
    assert merged == {"T-001": LatLng(14.6, 121.0), "T-009": LatLng(1, 1)}
