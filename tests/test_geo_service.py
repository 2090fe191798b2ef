from datetime import timedelta

import pytest

from factories import NOW
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.services.geo_service import (
    FALLBACK_TRAVEL_SECONDS,
    MILES_TO_KM,
    estimate_road_trip,
    estimate_trip_eta,
    haversine_km,
    trip_metrics,
)


def test_haversine_one_degree_of_longitude_at_equator():
    assert haversine_km(0, 0, 0, 1) == pytest.approx(111.195, abs=0.01)


def test_haversine_same_point_is_zero():
    assert haversine_km(14.5995, 120.9842, 14.5995, 120.9842) == 0


def test_road_estimate_applies_routing_factor_without_buffer():
    estimate = estimate_road_trip(0, 0, 0, 1)
    assert estimate.distance_km == pytest.approx(111.195 * 1.3, abs=0.02)
    assert estimate.duration_seconds == round(estimate.distance_km / 60 * 3600)


def test_eta_for_one_degree_at_equator():
    travel_seconds, end_time = estimate_trip_eta(NOW, 0, 0, 0, 1)

    assert travel_seconds / 60 == pytest.approx(159.6, abs=0.1)
    assert end_time == NOW + timedelta(seconds=travel_seconds)


def test_eta_for_same_point_is_just_the_buffer():
    travel_seconds, _ = estimate_trip_eta(NOW, 10, 10, 10, 10)
    assert travel_seconds == 15 * 60


def test_eta_without_coordinates_falls_back_to_eight_hours():
    travel_seconds, end_time = estimate_trip_eta(NOW, 14.6, None, 13.7, 121.0)

    assert travel_seconds == FALLBACK_TRAVEL_SECONDS
    assert end_time == NOW + timedelta(hours=8)


def test_metrics_from_coordinates():
    trip = TripRecord(id="TRIP-1", originLat=0, originLng=0, destLat=0, destLng=1)
    metrics = trip_metrics(trip)

    assert metrics == estimate_road_trip(0, 0, 0, 1)


def test_metrics_from_stored_miles():
    trip = TripRecord.model_validate({"id": "TRIP-2", "distance": "10 mi"})
    metrics = trip_metrics(trip)

    assert metrics.distance_km == pytest.approx(10 * MILES_TO_KM)
    assert metrics.duration_seconds == round(10 * MILES_TO_KM / 60 * 3600)


def test_metrics_from_timestamps_only():
    trip = TripRecord(id="TRIP-3", startTime=NOW, endTime=NOW + timedelta(hours=2))
    metrics = trip_metrics(trip)

    assert metrics.distance_km is None
    assert metrics.duration_seconds == 7200


def test_metrics_unknown():
    metrics = trip_metrics(TripRecord(id="TRIP-4"))
    assert metrics.distance_km is None
    assert metrics.duration_seconds is None
