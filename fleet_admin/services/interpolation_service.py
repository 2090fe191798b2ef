"""
Marker positions for trips in transit.

Everything here is derived from the trip's time window and its static
coordinates or route, so a position can be recomputed on every animation
frame. Nothing is persisted.
"""
from datetime import datetime, timedelta
from typing import Dict, Iterable, Mapping, NamedTuple, Optional, Sequence

from shapely.geometry import LineString

from fleet_admin.models.trip_model import TripStatus
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.services.geo_service import haversine_km

DEFAULT_TRIP_WINDOW = timedelta(hours=1)

# [lng, lat] pairs, the order routing services return
RouteCoords = Sequence[Sequence[float]]


class LatLng(NamedTuple):
    lat: float
    lng: float


def trip_fraction(start: datetime, end: Optional[datetime], now: datetime) -> float:
    """Share of the trip window elapsed at ``now``, clamped to [0, 1]"""
    if end is None:
        end = start + DEFAULT_TRIP_WINDOW
    span_ms = max(1.0, (end - start).total_seconds() * 1000)
    elapsed_ms = (now - start).total_seconds() * 1000
    return max(0.0, min(1.0, elapsed_ms / span_ms))


def interpolate_linear(origin: LatLng, destination: LatLng, fraction: float) -> LatLng:
    fraction = max(0.0, min(1.0, fraction))
    if fraction == 0 or origin == destination:
        return origin
    if fraction == 1:
        return destination
    segment = LineString([(origin.lng, origin.lat), (destination.lng, destination.lat)])
    point = segment.interpolate(fraction, normalized=True)
    return LatLng(lat=point.y, lng=point.x)


def point_along_route(coords: RouteCoords, fraction: float) -> Optional[LatLng]:
    """
    Point at ``fraction`` of the route's length

    Segment lengths are measured with haversine, so the marker moves at a
    constant ground speed whatever the latitude.

    Args:
        coords: Route waypoints as [lng, lat] pairs
        fraction: Progress along the route, clamped to [0, 1]

    Returns:
        The interpolated point, or None for an empty route
    """
    if not coords:
        return None
    points = [(float(c[0]), float(c[1])) for c in coords]
    first = LatLng(lat=points[0][1], lng=points[0][0])
    last = LatLng(lat=points[-1][1], lng=points[-1][0])
    if len(points) == 1:
        return first

    segments = list(zip(points[:-1], points[1:]))
    lengths = [haversine_km(a[1], a[0], b[1], b[0]) for a, b in segments]
    total = sum(lengths)
    if total == 0:
        return first

    fraction = max(0.0, min(1.0, fraction))
    if fraction == 0:
        return first
    if fraction == 1:
        return last

    target = fraction * total
    travelled = 0.0
    for (a, b), length in zip(segments, lengths):
        if travelled + length >= target:
            within = (target - travelled) / length
            return interpolate_linear(LatLng(a[1], a[0]), LatLng(b[1], b[0]), within)
        travelled += length
    return last


def position_for_trip(
    trip: TripRecord,
    now: datetime,
    route: Optional[RouteCoords] = None
) -> Optional[LatLng]:
    """
    Current marker position of a trip

    Follows ``route`` when one is given, otherwise moves in a straight line
    from origin to destination. Trips without both end coordinates have no
    position. A missing start means the trip starts now; a missing end
    gives it a one hour window.
    """
    if not trip.has_coordinates:
        return None
    start = trip.start_time or now
    fraction = trip_fraction(start, trip.end_time, now)

    if route:
        point = point_along_route(route, fraction)
        if point is not None:
            return point
    return interpolate_linear(
        LatLng(trip.origin_lat, trip.origin_lng),
        LatLng(trip.dest_lat, trip.dest_lng),
        fraction,
    )


def positions_for_trips(
    trips: Iterable[TripRecord],
    now: datetime,
    routes: Optional[Mapping[str, RouteCoords]] = None
) -> Dict[str, LatLng]:
    """
    Positions of every in-transit trip, keyed by truck id (trip id when the
    trip has no truck). A route is looked up by trip id, then by truck id.
    """
    routes = routes or {}
    positions = {}
    for trip in trips:
        if trip.status != TripStatus.IN_TRANSIT:
            continue
        route = routes.get(str(trip.id)) or (routes.get(str(trip.truck_id)) if trip.truck_id else None)
        point = position_for_trip(trip, now, route)
        if point is None:
            continue
        positions[str(trip.truck_id or trip.id)] = point
    return positions


class LivePositionFeed:
    """
    Positions pushed over the relay socket.

    ``position-update`` messages move a vehicle or destination marker,
    ``client-position`` messages move a phone/browser client and
    ``client-stop`` removes one.
    """

    def __init__(self):
        self.vehicle_positions: Dict[str, LatLng] = {}
        self.client_positions: Dict[str, LatLng] = {}

    @staticmethod
    def _coords(message: dict) -> Optional[LatLng]:
        lat, lng = message.get("lat"), message.get("lng")
        if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
            return None
        return LatLng(float(lat), float(lng))

    def apply(self, message: dict) -> bool:
        """Fold one relay message in; returns True if a position changed"""
        kind = message.get("type")
        if kind == "position-update" and message.get("id"):
            point = self._coords(message)
            if point is None:
                return False
            self.vehicle_positions[str(message["id"])] = point
            return True
        if kind == "client-position" and message.get("clientId"):
            point = self._coords(message)
            if point is None:
                return False
            self.client_positions[str(message["clientId"])] = point
            return True
        if kind == "client-stop" and message.get("clientId"):
            return self.client_positions.pop(str(message["clientId"]), None) is not None
        return False

    def merge(self, simulated: Mapping[str, LatLng]) -> Dict[str, LatLng]:
        """Simulated positions with live vehicle reports taking precedence"""
        merged = dict(simulated)
        merged.update(self.vehicle_positions)
        return merged
