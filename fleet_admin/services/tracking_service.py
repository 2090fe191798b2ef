import zlib
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from fleet_admin.models.truck_model import TruckStatus

# Simulated positions are scattered around Manila
CENTER_LAT = 14.5995
CENTER_LNG = 120.9842
JITTER_DEGREES = 0.3
IN_TRANSIT_OFFSET = 0.005


def simulated_location(truck_id: str, status: Optional[str], index: int, now: datetime) -> dict:
    """
    Stable fake position for one truck.

    The jitter is derived from a CRC32 of the truck id and its position in
    the list, so repeated calls return the same coordinates.
    """
    seed = zlib.crc32(f"{truck_id}{index + 1}".encode("utf-8"))
    offset = IN_TRANSIT_OFFSET if status == TruckStatus.IN_TRANSIT.value else 0

    lat_jitter = (seed % 1000) / 1000.0
    lng_jitter = ((seed >> 8) % 1000) / 1000.0

    return {
        "id": truck_id,
        "lat": round(CENTER_LAT + (lat_jitter - 0.5) * JITTER_DEGREES + offset, 6),
        "lng": round(CENTER_LNG + (lng_jitter - 0.5) * JITTER_DEGREES + offset, 6),
        "status": status,
        "updated_at": now.isoformat(),
    }


def simulated_locations(trucks: Iterable, now: Optional[datetime] = None) -> List[dict]:
    """Positions for every truck, in the order given"""
    now = now or datetime.now(timezone.utc)
    return [
        simulated_location(str(truck.id), truck.status, index, now)
        for index, truck in enumerate(trucks)
    ]
