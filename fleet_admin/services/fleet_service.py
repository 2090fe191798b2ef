import logging
import re
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fleet_admin.core.exceptions import NotFoundError
from fleet_admin.models.driver_model import DriverStatus
from fleet_admin.models.trip_model import TripStatus
from fleet_admin.models.truck_model import TruckStatus
from fleet_admin.schemas.driver import DriverRecord
from fleet_admin.schemas.trip import TripRecord
from fleet_admin.schemas.truck import TruckRecord, UNASSIGNED
from fleet_admin.services import eligibility_service as rules
from fleet_admin.services.geo_service import estimate_trip_eta, trip_metrics
from fleet_admin.services.notification_service import Notifier
from fleet_admin.store.local_store import (
    LocalStore,
    DRIVERS,
    DRIVER_TRIP_HISTORY,
    TRIPS,
    TRIP_HISTORY,
    TRUCKS,
)
from fleet_admin.store.remote_sync import RemoteSync

logger = logging.getLogger(__name__)


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _highest_sequence(ids, prefix: str) -> int:
    pattern = re.compile(rf"^{prefix}-(\d+)$")
    numbers = [int(m.group(1)) for m in (pattern.match(str(i)) for i in ids) if m]
    return max(numbers, default=0)


class FleetService:
    """
    Fleet actions over the local store.

    Every action validates first and raises a FleetError before touching
    anything; then it writes the local collections and mirrors the result
    to the backend best-effort.
    """

    def __init__(self, store: LocalStore, sync: Optional[RemoteSync] = None, notifier: Optional[Notifier] = None):
        self.store = store
        self.sync = sync
        self.notifier = notifier or Notifier(store, sync)

    # ----------------------------------------
    # Lookups
    # ----------------------------------------

    def trucks(self) -> List[TruckRecord]:
        return self.store.records(TRUCKS, TruckRecord)

    def drivers(self) -> List[DriverRecord]:
        return self.store.records(DRIVERS, DriverRecord)

    def trips(self) -> List[TripRecord]:
        return self.store.records(TRIPS, TripRecord)

    def get_truck(self, truck_id: str) -> TruckRecord:
        truck = self.store.record(TRUCKS, TruckRecord, truck_id)
        if truck is None:
            raise NotFoundError(f"Truck {truck_id} not found")
        return truck

    def get_driver(self, driver_id: str) -> DriverRecord:
        driver = self.store.record(DRIVERS, DriverRecord, driver_id)
        if driver is None:
            raise NotFoundError(f"Driver {driver_id} not found")
        return driver

    def get_trip(self, trip_id: str) -> TripRecord:
        trip = self.store.record(TRIPS, TripRecord, trip_id)
        if trip is None:
            raise NotFoundError(f"Trip {trip_id} not found")
        return trip

    # ----------------------------------------
    # Persistence helpers
    # ----------------------------------------

    def _save_truck(self, truck: TruckRecord, created: bool = False) -> TruckRecord:
        self.store.upsert(TRUCKS, truck.to_local())
        if self.sync is not None:
            if created:
                self.sync.create("trucks", truck.to_api())
            else:
                self.sync.update("trucks", truck.id, truck.to_api())
        return truck

    def _save_driver(self, driver: DriverRecord, created: bool = False) -> DriverRecord:
        self.store.upsert(DRIVERS, driver.to_local())
        if self.sync is not None:
            if created:
                self.sync.create("drivers", driver.to_api())
            else:
                self.sync.update("drivers", driver.id, driver.to_api())
        return driver

    def _save_trip(self, trip: TripRecord, created: bool = False) -> TripRecord:
        self.store.upsert(TRIPS, trip.to_local())
        if self.sync is not None:
            if created:
                self.sync.create("trips", trip.to_api())
            else:
                self.sync.update("trips", trip.id, trip.to_api())
        return trip

    def _has_active_trips(self, truck_id: Optional[str] = None, driver_id: Optional[str] = None) -> bool:
        return bool(rules.active_trips(self.trips(), truck_id=truck_id, driver_id=driver_id))

    # ----------------------------------------
    # Trucks
    # ----------------------------------------

    def add_truck(self, data: Dict) -> TruckRecord:
        trucks = self.trucks()
        candidate = TruckRecord.model_validate({"id": "", **data})
        candidate = candidate.merged({
            "plate_number": rules.format_plate(candidate.plate_number),
            "last_maintenance": candidate.last_maintenance or date.today(),
        })
        rules.validate_truck(candidate)
        rules.ensure_unique_plate(candidate, trucks)

        floor = _highest_sequence((t.id for t in trucks), "T")
        seq = self.store.next_sequence("truck_seq", floor=floor)
        truck = candidate.merged({"id": f"T-{seq:03d}"})
        self._save_truck(truck, created=True)

        logger.info("Added truck %s (%s)", truck.id, truck.plate_number)
        self.notifier.notify(
            "New Truck Added",
            f"{truck.name} ({truck.plate_number}) has been added to the fleet",
            url=f"/trucks/{truck.id}",
        )
        return truck

    def update_truck(self, truck_id: str, changes: Dict) -> TruckRecord:
        current = self.get_truck(truck_id)
        truck = current.merged(changes)
        if "plate_number" in changes or "plateNumber" in changes:
            truck = truck.merged({"plate_number": rules.format_plate(truck.plate_number)})
        rules.ensure_assignment_unchanged(current, truck, "driver")
        rules.validate_truck(truck)
        rules.ensure_unique_plate(truck, self.trucks())
        self._save_truck(truck)

        if truck.status != current.status:
            self.notifier.notify(
                "Truck Status Updated",
                f"{truck.name} status changed to {truck.status.value}",
            )
        return truck

    def delete_truck(self, truck_id: str) -> None:
        truck = self.get_truck(truck_id)
        rules.ensure_deletable(self.trips(), truck_id=truck.id)

        for driver in self.drivers():
            if str(driver.assigned_vehicle or "") == str(truck.id):
                self._save_driver(driver.merged({
                    "assigned_vehicle": None,
                    "status": DriverStatus.AVAILABLE,
                }))

        self.store.remove(TRUCKS, truck.id)
        if self.sync is not None:
            self.sync.delete("trucks", truck.id)
        logger.info("Deleted truck %s", truck.id)
        self.notifier.notify("Truck Removed", f"{truck.name} has been removed from the fleet")

    # ----------------------------------------
    # Drivers
    # ----------------------------------------

    def add_driver(self, data: Dict) -> DriverRecord:
        drivers = self.drivers()
        candidate = DriverRecord.model_validate({"id": "", **data})
        changes = {"license_number": rules.format_license(candidate.license_number)}
        if candidate.phone:
            changes["phone"] = rules.format_phone(candidate.phone)
        candidate = candidate.merged(changes)
        rules.validate_driver(candidate)
        rules.ensure_unique_driver(candidate, drivers)

        floor = _highest_sequence((d.id for d in drivers), "D")
        seq = self.store.next_sequence("driver_seq", floor=floor)
        driver = candidate.merged({"id": f"D-{seq:03d}"})
        self._save_driver(driver, created=True)

        logger.info("Added driver %s", driver.id)
        self.notifier.notify(
            "New Driver Added",
            f"{driver.name} has been added to drivers",
            url=f"/drivers/{driver.id}",
        )
        return driver

    def update_driver(self, driver_id: str, changes: Dict) -> DriverRecord:
        current = self.get_driver(driver_id)
        driver = current.merged(changes)
        normalized = {"license_number": rules.format_license(driver.license_number)}
        if driver.phone:
            normalized["phone"] = rules.format_phone(driver.phone)
        driver = driver.merged(normalized)
        rules.ensure_assignment_unchanged(current, driver, "assigned_vehicle")
        rules.validate_driver(driver)
        rules.ensure_unique_driver(driver, self.drivers())
        self._save_driver(driver)

        if driver.status != current.status:
            self.notifier.notify(
                "Driver Status Updated",
                f"{driver.name} status changed to {driver.status.value}",
                url=f"/drivers/{driver.id}",
            )
        return driver

    def delete_driver(self, driver_id: str) -> None:
        driver = self.get_driver(driver_id)
        rules.ensure_deletable(self.trips(), driver_id=driver.id)

        if driver.assigned_vehicle:
            truck = self.store.record(TRUCKS, TruckRecord, driver.assigned_vehicle)
            if truck is not None:
                self._free_truck(truck)

        self.store.remove(DRIVERS, driver.id)
        if self.sync is not None:
            self.sync.delete("drivers", driver.id)
        logger.info("Deleted driver %s", driver.id)

    # ----------------------------------------
    # Assignment
    # ----------------------------------------

    def _free_truck(self, truck: TruckRecord) -> TruckRecord:
        changes = {"driver": UNASSIGNED}
        if not self._has_active_trips(truck_id=truck.id):
            changes["status"] = TruckStatus.AVAILABLE
        return self._save_truck(truck.merged(changes))

    def _free_driver(self, driver: DriverRecord) -> DriverRecord:
        changes = {"assigned_vehicle": None}
        if not self._has_active_trips(driver_id=driver.id):
            changes["status"] = DriverStatus.AVAILABLE
        return self._save_driver(driver.merged(changes))

    def assign_driver(self, truck_id: str, driver_id: str) -> TruckRecord:
        """
        Put a driver on a truck.

        Whoever was driving the truck is released, and the truck the driver
        had before is left unassigned.
        """
        truck = self.get_truck(truck_id)
        driver = self.get_driver(driver_id)
        rules.ensure_assignable(driver, truck)

        for other in self.drivers():
            if other.id != driver.id and str(other.assigned_vehicle or "") == str(truck.id):
                self._free_driver(other)

        if driver.assigned_vehicle and str(driver.assigned_vehicle) != str(truck.id):
            previous = self.store.record(TRUCKS, TruckRecord, driver.assigned_vehicle)
            if previous is not None:
                self._save_truck(previous.merged({"driver": UNASSIGNED, "status": TruckStatus.AVAILABLE}))

        self._save_driver(driver.merged({"assigned_vehicle": truck.id, "status": DriverStatus.ASSIGNED}))

        status = TruckStatus.ASSIGNED if truck.status == TruckStatus.AVAILABLE else truck.status
        truck = self._save_truck(truck.merged({"driver": driver.name, "status": status}))

        self.notifier.notify(
            "Driver Assignment Changed",
            f"{driver.name} has been assigned to {truck.name}",
            url=f"/trucks/{truck.id}",
        )
        return truck

    def unassign_driver(self, truck_id: str) -> TruckRecord:
        truck = self.get_truck(truck_id)
        assigned = [d for d in self.drivers() if str(d.assigned_vehicle or "") == str(truck.id)]
        for driver in assigned or [None]:
            rules.ensure_unassignable(truck, driver)

        for driver in assigned:
            self._free_driver(driver)
        truck = self._free_truck(truck)

        self.notifier.notify(
            "Driver Assignment Changed",
            f"Driver has been unassigned from {truck.name}",
            url=f"/trucks/{truck.id}",
        )
        return truck

    # ----------------------------------------
    # Trips
    # ----------------------------------------

    def _new_trip_id(self, now: datetime) -> str:
        existing = {t.get("id") for t in self.store.load(TRIPS)}
        millis = int(now.timestamp() * 1000)
        while f"TRIP-{millis}" in existing:
            millis += 1
        return f"TRIP-{millis}"

    def _assigned_driver(self, truck: TruckRecord) -> Optional[DriverRecord]:
        for driver in self.drivers():
            if driver.assigned_vehicle and str(driver.assigned_vehicle) == str(truck.id):
                return driver
        return None

    def _restore_assigned_truck(self, truck_id: Optional[str]) -> None:
        if not truck_id or self._has_active_trips(truck_id=truck_id):
            return
        truck = self.store.record(TRUCKS, TruckRecord, truck_id)
        if truck is not None and truck.has_driver and truck.status != TruckStatus.ASSIGNED:
            self._save_truck(truck.merged({"status": TruckStatus.ASSIGNED}))

    def _mark_pending(self, trip: TripRecord) -> None:
        truck = self.store.record(TRUCKS, TruckRecord, trip.truck_id)
        if truck is not None and truck.status != TruckStatus.PENDING:
            self._save_truck(truck.merged({"status": TruckStatus.PENDING}))

        for driver in self.drivers():
            by_vehicle = driver.assigned_vehicle and str(driver.assigned_vehicle) == str(trip.truck_id)
            by_id = trip.driver_id and str(driver.id) == str(trip.driver_id)
            if not (by_vehicle or by_id):
                continue
            changes = {"status": DriverStatus.PENDING}
            if not driver.assigned_vehicle:
                changes["assigned_vehicle"] = trip.truck_id
            if driver.status != DriverStatus.PENDING or not driver.assigned_vehicle:
                self._save_driver(driver.merged(changes))

    def schedule_trip(
        self,
        truck_id: str,
        start_time: datetime,
        origin: Optional[str] = None,
        destination: Optional[str] = None,
        origin_lat: Optional[float] = None,
        origin_lng: Optional[float] = None,
        dest_lat: Optional[float] = None,
        dest_lng: Optional[float] = None,
        cargo: Optional[str] = None,
        cargo_tons: Optional[float] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> TripRecord:
        now = _utc(now or datetime.now(timezone.utc))
        start_time = _utc(start_time)
        truck = self.get_truck(truck_id)
        rules.ensure_schedulable(truck, self.trips())
        rules.ensure_cargo_fits(cargo_tons, truck)

        travel_seconds, end_time = estimate_trip_eta(start_time, origin_lat, origin_lng, dest_lat, dest_lng)

        driver = self._assigned_driver(truck)
        driver_name = driver.name if driver else (truck.driver or UNASSIGNED)

        trip = TripRecord(
            id=self._new_trip_id(now),
            truck_id=truck.id,
            driver_id=driver.id if driver else None,
            driver_name=driver_name,
            origin=origin or "",
            destination=destination or "",
            origin_lat=origin_lat,
            origin_lng=origin_lng,
            dest_lat=dest_lat,
            dest_lng=dest_lng,
            start_time=start_time,
            end_time=end_time,
            travel_time_seconds=travel_seconds,
            cargo=cargo or "",
            cargo_tons=cargo_tons,
            notes=notes or "",
            status=TripStatus.PENDING if start_time > now else TripStatus.IN_TRANSIT,
        )
        self._save_trip(trip, created=True)
        if trip.status == TripStatus.PENDING:
            self._mark_pending(trip)

        logger.info("Scheduled %s for truck %s (%s)", trip.id, truck.id, trip.status.value)
        self.notifier.notify(
            "New Trip Scheduled",
            f"Trip assigned to {driver_name} from {(origin or 'origin')[:30]} to {(destination or 'destination')[:30]}",
            url="/schedule",
            user_id=trip.driver_id,
            data={"tripId": trip.id, "truckId": truck.id},
        )
        return trip

    def update_trip(self, trip_id: str, changes: Dict, now: Optional[datetime] = None) -> TripRecord:
        """
        Edit a trip and recompute its ETA.

        Completed and cancelled trips keep their status; other trips are
        pending or in transit depending on the (possibly new) start time.
        """
        now = _utc(now or datetime.now(timezone.utc))
        current = self.get_trip(trip_id)
        trip = current.merged(changes)
        truck = self.get_truck(trip.truck_id)
        moved = str(trip.truck_id) != str(current.truck_id)
        if moved:
            rules.ensure_schedulable(truck, self.trips(), exclude_trip_id=trip.id)
        rules.ensure_cargo_fits(trip.cargo_tons, truck)

        start_time = trip.start_time or now
        travel_seconds, end_time = estimate_trip_eta(
            start_time, trip.origin_lat, trip.origin_lng, trip.dest_lat, trip.dest_lng
        )
        if current.is_terminal:
            status = current.status
        else:
            status = TripStatus.PENDING if start_time > now else TripStatus.IN_TRANSIT

        trip = trip.merged({
            "start_time": start_time,
            "end_time": end_time,
            "travel_time_seconds": travel_seconds,
            "status": status,
        })
        self._save_trip(trip)
        if moved:
            self._restore_assigned_truck(current.truck_id)
        if status == TripStatus.PENDING:
            self._mark_pending(trip)

        self.notifier.notify("Trip Updated", "Trip schedule has been updated successfully", url="/schedule")
        return trip

    def delete_trip(self, trip_id: str) -> bool:
        """Remove a trip; the truck and driver go back to assigned when nothing else is scheduled"""
        raw = self.store.get(TRIPS, trip_id)
        if raw is None:
            return False
        trip = TripRecord.model_validate(raw)

        self.store.remove(TRIPS, trip.id)
        if self.sync is not None:
            self.sync.delete("trips", trip.id)

        self._restore_assigned_truck(trip.truck_id)

        for driver in self.drivers():
            matches = (trip.driver_id and str(driver.id) == str(trip.driver_id)) or (
                driver.assigned_vehicle and str(driver.assigned_vehicle) == str(trip.truck_id)
            )
            if not matches or self._has_active_trips(driver_id=driver.id):
                continue
            if driver.status in (DriverStatus.PENDING, DriverStatus.DRIVING) and driver.assigned_vehicle:
                self._save_driver(driver.merged({"status": DriverStatus.ASSIGNED}))

        self.notifier.notify("Trip Cancelled", "Trip has been cancelled and removed from schedule", url="/schedule")
        return True

    # ----------------------------------------
    # Trip history
    # ----------------------------------------

    def archive_completed_trips(self, now: Optional[datetime] = None) -> List[str]:
        """
        Snapshot completed trips into trip history and driver trip history.

        A trip is archived once; later calls skip trips already in history.
        Returns the ids of the trips archived by this call.
        """
        now = _utc(now or datetime.now(timezone.utc))
        archived_ids = {str(h.get("tripId")) for h in self.store.load(TRIP_HISTORY)}
        archived = []

        for trip in self.trips():
            if trip.status != TripStatus.COMPLETED or trip.id in archived_ids:
                continue
            metrics = trip_metrics(trip)
            snapshot = {
                "tripId": trip.id,
                "truckId": trip.truck_id,
                "driverId": trip.driver_id,
                "origin": trip.origin,
                "destination": trip.destination,
                "startTime": trip.start_time.isoformat() if trip.start_time else None,
                "endTime": trip.end_time.isoformat() if trip.end_time else None,
                "travelTimeSeconds": metrics.duration_seconds,
                "distanceKm": metrics.distance_km,
                "originLat": trip.origin_lat,
                "originLng": trip.origin_lng,
                "destLat": trip.dest_lat,
                "destLng": trip.dest_lng,
                "status": trip.status.value,
                "notes": trip.notes,
                "archivedAt": now.isoformat(),
            }
            history = {
                "id": f"TH-{trip.id}",
                **snapshot,
                "driverName": trip.driver_name,
                "cargo": trip.cargo,
                "cargoTons": trip.cargo_tons,
            }
            self.store.append(TRIP_HISTORY, history)
            if self.sync is not None:
                self.sync.create("trip-history", _snake(history))

            if trip.driver_id:
                driver_history = {"id": f"DTH-{trip.id}", **snapshot}
                self.store.append(DRIVER_TRIP_HISTORY, driver_history)
                if self.sync is not None:
                    self.sync.create("driver-trip-history", _snake(driver_history))

            archived.append(trip.id)

        if archived:
            logger.info("Archived %d completed trips", len(archived))
        return archived


def _snake(entry: Dict) -> Dict:
    return {re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower(): value for key, value in entry.items()}
