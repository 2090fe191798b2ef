import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fleet_admin.schemas.trip import TripRecord

EARTH_RADIUS_KM = 6371
ROUTING_FACTOR = 1.3  # road distance vs great-circle distance
AVERAGE_SPEED_KMH = 60
ETA_BUFFER_MINUTES = 15
MIN_TRAVEL_SECONDS = 60
FALLBACK_TRAVEL_SECONDS = 8 * 3600  # no coordinates to estimate from
MILES_TO_KM = 1.60934


@dataclass(frozen=True)
class RouteEstimate:
    distance_km: Optional[float]
    duration_seconds: Optional[int]


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Great-circle distance between two points

    Args:
        lat1, lng1: First point in degrees
        lat2, lng2: Second point in degrees

    Returns:
        Distance in kilometers
    """
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def estimate_road_trip(
    origin_lat: float,
    origin_lng: float,
    dest_lat: float,
    dest_lng: float
) -> RouteEstimate:
    """
    Estimate road distance and driving time between two coordinates,
    used when no routing service response is available.

    Args:
        origin_lat, origin_lng: Origin in degrees
        dest_lat, dest_lng: Destination in degrees

    Returns:
        RouteEstimate with road distance (km) and duration (seconds), no buffer
    """
    road_km = haversine_km(origin_lat, origin_lng, dest_lat, dest_lng) * ROUTING_FACTOR
    hours = road_km / AVERAGE_SPEED_KMH
    return RouteEstimate(distance_km=road_km, duration_seconds=round(hours * 3600))


def estimate_trip_eta(
    start: datetime,
    origin_lat: Optional[float],
    origin_lng: Optional[float],
    dest_lat: Optional[float],
    dest_lng: Optional[float]
) -> Tuple[int, datetime]:
    """
    Travel time and ETA for a newly scheduled trip

    Adds a 15 minute buffer on top of the road estimate and never returns
    less than a minute. Without all four coordinates the trip is assumed
    to take 8 hours.

    Args:
        start: Departure time
        origin_lat, origin_lng, dest_lat, dest_lng: Coordinates, any may be None

    Returns:
        Tuple of (travel_time_seconds, end_time)
    """
    if None in (origin_lat, origin_lng, dest_lat, dest_lng):
        travel_seconds = FALLBACK_TRAVEL_SECONDS
    else:
        road_km = haversine_km(origin_lat, origin_lng, dest_lat, dest_lng) * ROUTING_FACTOR
        hours = road_km / AVERAGE_SPEED_KMH
        travel_seconds = max(
            MIN_TRAVEL_SECONDS,
            round(hours * 3600 + ETA_BUFFER_MINUTES * 60)
        )
    return travel_seconds, start + timedelta(seconds=travel_seconds)


def _parse_distance(raw) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return float(raw)
    cleaned = re.sub(r"[^0-9.\-]", "", str(raw))
    try:
        return float(cleaned)
    except ValueError:
        return None


def trip_metrics(trip: TripRecord) -> RouteEstimate:
    """
    Retrospective distance and duration of a trip for history views.

    Fallback ladder:
        1. coordinates -> road estimate (no ETA buffer)
        2. stored ``distance``/``miles`` field, in miles
        3. elapsed time between start and end, distance unknown
        4. nothing known
    """
    if trip.has_coordinates:
        return estimate_road_trip(trip.origin_lat, trip.origin_lng, trip.dest_lat, trip.dest_lng)

    extra = trip.model_extra or {}
    raw_distance = extra.get("distance")
    if raw_distance is None:
        raw_distance = extra.get("miles")
    miles = _parse_distance(raw_distance)
    if miles is not None:
        km = miles * MILES_TO_KM
        return RouteEstimate(distance_km=km, duration_seconds=round(km / AVERAGE_SPEED_KMH * 3600))

    if trip.start_time and trip.end_time and trip.end_time > trip.start_time:
        elapsed = (trip.end_time - trip.start_time).total_seconds()
        return RouteEstimate(distance_km=None, duration_seconds=round(elapsed))

    return RouteEstimate(distance_km=None, duration_seconds=None)
