import logging
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from fleet_admin.models.truck_model import TruckStatus
from fleet_admin.schemas.truck import TruckRecord
from fleet_admin.services.notification_service import Notifier
from fleet_admin.store.local_store import LocalStore, TRUCKS

logger = logging.getLogger(__name__)

LOW_FUEL_THRESHOLD = 20
LOW_FUEL_REPEAT = timedelta(hours=1)
MAINTENANCE_DUE_DAYS = 90
MAINTENANCE_REPEAT = timedelta(days=1)

LOW_FUEL = "Low Fuel Alert"
MAINTENANCE_DUE = "Vehicle Maintenance Due"


class FleetAlerts:
    """
    Low fuel and maintenance reminders for the fleet.

    A truck in maintenance never alerts. Each alert kind is throttled per
    truck: low fuel at most hourly, maintenance due at most daily.
    """

    def __init__(self, store: LocalStore, notifier: Notifier):
        self.store = store
        self.notifier = notifier
        self._last_sent: Dict[Tuple[str, str], datetime] = {}

    def _throttled(self, kind: str, truck_id: str, now: datetime, every: timedelta) -> bool:
        last = self._last_sent.get((kind, truck_id))
        return last is not None and now - last <= every

    def _send(self, kind: str, truck: TruckRecord, message: str, now: datetime) -> None:
        self._last_sent[(kind, truck.id)] = now
        self.notifier.notify(kind, message, type="warning", url=f"/trucks/{truck.id}", user_id=truck.id)

    def check(self, now: Optional[datetime] = None) -> List[Tuple[str, str]]:
        """Run all checks once and return the (alert, truck id) pairs sent"""
        now = now or datetime.now(timezone.utc)
        sent = []
        for truck in self.store.records(TRUCKS, TruckRecord):
            if truck.status == TruckStatus.MAINTENANCE:
                continue

            if truck.fuel_level <= LOW_FUEL_THRESHOLD and not self._throttled(LOW_FUEL, truck.id, now, LOW_FUEL_REPEAT):
                self._send(
                    LOW_FUEL,
                    truck,
                    f"{truck.name} ({truck.plate_number}) fuel level is at {truck.fuel_level}%",
                    now,
                )
                sent.append((LOW_FUEL, truck.id))

            days = days_since(truck.last_maintenance, now.date())
            if days is not None and days >= MAINTENANCE_DUE_DAYS and not self._throttled(
                MAINTENANCE_DUE, truck.id, now, MAINTENANCE_REPEAT
            ):
                self._send(
                    MAINTENANCE_DUE,
                    truck,
                    f"{truck.name} is due for maintenance (last serviced {days} days ago)",
                    now,
                )
                sent.append((MAINTENANCE_DUE, truck.id))

        if sent:
            logger.info("Sent %d fleet alerts", len(sent))
        return sent


def days_since(last: Optional[date], today: date) -> Optional[int]:
    if last is None:
        return None
    return (today - last).days
