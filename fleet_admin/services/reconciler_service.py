import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from fleet_admin.core.config import settings
from fleet_admin.models.driver_model import DriverStatus
from fleet_admin.models.trip_model import TripStatus
from fleet_admin.models.truck_model import TruckStatus
from fleet_admin.schemas.driver import DriverRecord
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.schemas.truck import TruckRecord
from fleet_admin.services.interpolation_service import DEFAULT_TRIP_WINDOW
from fleet_admin.services.notification_service import Notifier
from fleet_admin.store.local_store import LocalStore, DRIVERS, TRIPS, TRUCKS
from fleet_admin.store.remote_sync import RemoteSync

logger = logging.getLogger(__name__)

TRIP_STARTED = "Trip Started"
TRIP_COMPLETED = "Trip Completed"

# Truck status wanted for each trip status, strongest first
TRUCK_STATUS_PRIORITY = (
    (TripStatus.IN_TRANSIT, TruckStatus.IN_TRANSIT),
    (TripStatus.PENDING, TruckStatus.PENDING),
    (TripStatus.COMPLETED, TruckStatus.ASSIGNED),
)

DRIVER_STATUS_FOR_TRUCK = {
    TruckStatus.IN_TRANSIT: DriverStatus.DRIVING,
    TruckStatus.PENDING: DriverStatus.PENDING,
    TruckStatus.ASSIGNED: DriverStatus.ASSIGNED,
}

# A completed trip only demotes a truck that is still marked busy
DEMOTABLE_TRUCK_STATUSES = (TruckStatus.IN_TRANSIT, TruckStatus.PENDING)


def normalize_name(value: Optional[str]) -> str:
    return re.sub(r"[^a-z0-9]", "", (value or "").lower())


def trip_status_at(trip: TripRecord, now: datetime) -> TripStatus:
    """
    Status a trip should have at ``now``.

    Terminal trips and trips without a start time keep their status. A trip
    without an end time is considered finished one hour after it started.
    """
    if trip.is_terminal or trip.start_time is None:
        return trip.status
    if now < trip.start_time:
        return TripStatus.PENDING
    end_time = trip.end_time or trip.start_time + DEFAULT_TRIP_WINDOW
    if now >= end_time:
        return TripStatus.COMPLETED
    return TripStatus.IN_TRANSIT


def desired_truck_statuses(trips: List[TripRecord]) -> Dict[str, Tuple[TruckStatus, TripRecord]]:
    """
    Truck status implied by the trips, with the trip that decided it.

    Priority is intransit > pending > assigned (from a completed trip).
    Cancelled trips and trips without a truck contribute nothing.
    """
    desired: Dict[str, Tuple[TruckStatus, TripRecord]] = {}
    for trip_status, truck_status in TRUCK_STATUS_PRIORITY:
        for trip in trips:
            if not trip.truck_id or trip.status != trip_status:
                continue
            desired.setdefault(str(trip.truck_id), (truck_status, trip))
    return desired


@dataclass
class ReconcileReport:
    now: datetime
    trips_updated: List[str] = field(default_factory=list)
    trucks_updated: List[str] = field(default_factory=list)
    drivers_updated: List[str] = field(default_factory=list)
    notifications: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.trips_updated or self.trucks_updated or self.drivers_updated)


class TripReconciler:
    """
    Keeps trip, truck and driver statuses in line with the clock.

    Each tick reads the latest trips, recomputes every non-terminal trip's
    status against a single ``now`` and then cascades the result to trucks
    and drivers. Writes go to the local store first and are mirrored to the
    backend best-effort. "Trip Started" and "Trip Completed" are emitted once
    per trip, on the tick that makes the transition.
    """

    def __init__(self, store: LocalStore, sync: Optional[RemoteSync] = None, notifier: Optional[Notifier] = None):
        self.store = store
        self.sync = sync
        self.notifier = notifier or Notifier(store, sync)
        self._emitted: Set[Tuple[str, str]] = set()

    def tick(self, now: Optional[datetime] = None) -> ReconcileReport:
        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        report = ReconcileReport(now=now)

        trips = self._reconcile_trips(now, report)
        for truck_id, (truck_status, trip) in desired_truck_statuses(trips).items():
            truck = self._apply_truck_status(truck_id, truck_status, report)
            if truck is not None:
                self._cascade_to_driver(truck, truck_status, trip, report)

        if report.changed:
            logger.info(
                "Reconciled trips=%d trucks=%d drivers=%d",
                len(report.trips_updated),
                len(report.trucks_updated),
                len(report.drivers_updated),
            )
        return report

    # ----------------------------------------
    # Trips
    # ----------------------------------------

    def _reconcile_trips(self, now: datetime, report: ReconcileReport) -> List[TripRecord]:
        trips = self.store.records(TRIPS, TripRecord)
        result = []
        for trip in trips:
            status = trip_status_at(trip, now)
            if status == trip.status:
                result.append(trip)
                continue

            previous = trip.status
            changed = trip.model_copy(update={"status": status})
            self.store.update(TRIPS, trip.id, {"status": status.value})
            report.trips_updated.append(trip.id)
            if self.sync is not None:
                self.sync.update("trips", trip.id, {"status": status.value})

            if status == TripStatus.COMPLETED:
                self._emit(changed, TRIP_COMPLETED, report)
            elif status == TripStatus.IN_TRANSIT and previous == TripStatus.PENDING:
                self._emit(changed, TRIP_STARTED, report)
            result.append(changed)
        return result

    def _emit(self, trip: TripRecord, edge: str, report: ReconcileReport) -> None:
        key = (trip.id, edge)
        if key in self._emitted:
            return
        self._emitted.add(key)

        destination = (trip.destination or "")[:30]
        if edge == TRIP_COMPLETED:
            message = f"Trip for {trip.driver_name} to {destination} has been completed"
        else:
            message = f"{trip.driver_name} has started the trip to {destination}"

        self.notifier.notify(
            edge,
            message,
            type="info",
            url="/schedule",
            user_id=trip.driver_id,
            data={"tripId": trip.id, "truckId": trip.truck_id},
        )
        report.notifications.append(key)

    # ----------------------------------------
    # Trucks
    # ----------------------------------------

    def _apply_truck_status(self, truck_id: str, desired: TruckStatus, report: ReconcileReport) -> Optional[TruckRecord]:
        # always start from the latest persisted copy
        truck = self.store.record(TRUCKS, TruckRecord, truck_id)
        if truck is None:
            return None
        if desired == TruckStatus.ASSIGNED and truck.status not in DEMOTABLE_TRUCK_STATUSES:
            return truck
        if truck.status == desired:
            return truck

        self.store.update(TRUCKS, truck_id, {"status": desired.value})
        report.trucks_updated.append(truck_id)
        if self.sync is not None:
            self.sync.update("trucks", truck_id, {"status": desired.value})
        return truck.model_copy(update={"status": desired})

    # ----------------------------------------
    # Drivers
    # ----------------------------------------

    def _find_driver(self, drivers: List[DriverRecord], truck: TruckRecord, trip: TripRecord) -> Optional[DriverRecord]:
        for driver in drivers:
            if driver.assigned_vehicle and str(driver.assigned_vehicle) == str(truck.id):
                return driver

        # drivers who have since moved to another truck are never matched
        free = [d for d in drivers if not d.assigned_vehicle or str(d.assigned_vehicle) == str(truck.id)]

        if trip.driver_id:
            for driver in free:
                if str(driver.id) == str(trip.driver_id):
                    return driver

        # compatibility with trips saved before driver ids were recorded
        candidates = {normalize_name(trip.driver_name), normalize_name(truck.driver)} - {""}
        for driver in free:
            if normalize_name(driver.name) in candidates:
                return driver
        return None

    def _cascade_to_driver(self, truck: TruckRecord, truck_status: TruckStatus, trip: TripRecord, report: ReconcileReport) -> None:
        if truck.status != truck_status:
            return
        drivers = self.store.records(DRIVERS, DriverRecord)
        driver = self._find_driver(drivers, truck, trip)
        if driver is None:
            return

        changes = {}
        status = DRIVER_STATUS_FOR_TRUCK[truck_status]
        if driver.status != status:
            changes["status"] = status.value
        if not driver.assigned_vehicle:
            changes["assignedVehicle"] = truck.id
        if not changes:
            return

        self.store.update(DRIVERS, driver.id, changes)
        report.drivers_updated.append(driver.id)
        if self.sync is not None:
            self.sync.update("drivers", driver.id, {
                "status": changes.get("status", driver.status.value),
                "assigned_vehicle": changes.get("assignedVehicle", driver.assigned_vehicle),
            })


class ReconcilerLoop:
    """
    Runs ``TripReconciler.tick`` immediately and then every interval.

    ``after_tick`` callables (fleet alerts, history archiving) run after each
    tick with the tick's report.
    """

    def __init__(
        self,
        reconciler: TripReconciler,
        interval: Optional[float] = None,
        after_tick: Optional[List[Callable[[ReconcileReport], object]]] = None
    ):
        self.reconciler = reconciler
        self.interval = interval if interval is not None else settings.RECONCILE_INTERVAL_SECONDS
        self.after_tick = list(after_tick or [])
        self._task: Optional[asyncio.Task] = None

    def run_once(self) -> ReconcileReport:
        report = self.reconciler.tick()
        for callback in self.after_tick:
            callback(report)
        return report

    async def run(self) -> None:
        logger.info("Trip reconciler running every %ss", self.interval)
        try:
            while True:
                try:
                    self.run_once()
                except Exception:
                    logger.exception("Reconcile tick failed")
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            logger.info("Trip reconciler stopped")
            raise

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
