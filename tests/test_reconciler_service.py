import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from factories import NOW, driver, trip, truck
from fleet_admin.services.reconciler_service import (
    TRIP_COMPLETED,
    TRIP_STARTED,
    ReconcilerLoop,
    TripReconciler,
    normalize_name,
)
from fleet_admin.store.local_store import DRIVERS, NOTIFICATIONS, TRIPS, TRUCKS

HOUR = timedelta(hours=1)


@pytest.fixture
def reconciler(store, sync, notifier):
    return TripReconciler(store, sync, notifier)


def status_of(store, collection, item_id):
    return store.get(collection, item_id)["status"]


def titles(store):
    return [n["title"] for n in store.load(NOTIFICATIONS)]


def test_pending_trip_starts_and_cascades(store, reconciler):
    store.save(TRUCKS, [truck("T-001", driver="Juan Dela Cruz", status="pending")])
    store.save(DRIVERS, [driver("D-001", name="Juan Dela Cruz", status="pending", assignedVehicle="T-001")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, status="pending")])

    report = reconciler.tick(NOW)

    assert status_of(store, TRIPS, "TRIP-1") == "intransit"
    assert status_of(store, TRUCKS, "T-001") == "intransit"
    assert status_of(store, DRIVERS, "D-001") == "driving"
    assert report.notifications == [("TRIP-1", TRIP_STARTED)]
    assert titles(store) == [TRIP_STARTED]


def test_future_trip_stays_pending(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="assigned", driver="Juan Dela Cruz")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW + HOUR, NOW + 2 * HOUR, status="pending")])

    reconciler.tick(NOW)

    assert status_of(store, TRIPS, "TRIP-1") == "pending"
    assert status_of(store, TRUCKS, "T-001") == "pending"
    assert titles(store) == []


def test_terminal_trips_never_change(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="maintenance")])
    store.save(TRIPS, [
        trip("TRIP-1", "T-001", NOW - 5 * HOUR, NOW + HOUR, status="completed"),
        trip("TRIP-2", "T-001", NOW - HOUR, NOW + HOUR, status="cancelled"),
    ])

    report = reconciler.tick(NOW)

    assert status_of(store, TRIPS, "TRIP-1") == "completed"
    assert status_of(store, TRIPS, "TRIP-2") == "cancelled"
    assert report.trips_updated == []
    # a completed trip does not pull a truck out of maintenance
    assert status_of(store, TRUCKS, "T-001") == "maintenance"


def test_started_notification_emitted_once_across_ticks(store, reconciler):
    store.save(TRUCKS, [truck("T-001", driver="Juan Dela Cruz", status="pending")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + 3 * HOUR, status="pending")])

    reconciler.tick(NOW)
    reconciler.tick(NOW + timedelta(seconds=30))
    reconciler.tick(NOW + timedelta(seconds=60))

    assert titles(store).count(TRIP_STARTED) == 1


def test_started_notification_not_repeated_when_trip_reverted(store, reconciler):
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, status="pending")])
    reconciler.tick(NOW)

    # another client writes the stale status back
    store.update(TRIPS, "TRIP-1", {"status": "pending"})
    reconciler.tick(NOW)

    assert titles(store).count(TRIP_STARTED) == 1


def test_completion_then_next_pending_trip(store, reconciler):
    store.save(TRUCKS, [truck("T-001", driver="Juan Dela Cruz", status="assigned")])
    store.save(DRIVERS, [driver("D-001", name="Juan Dela Cruz", status="assigned", assignedVehicle="T-001")])
    store.save(TRIPS, [
        trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, status="intransit"),
        trip("TRIP-2", "T-001", NOW + 3 * HOUR, NOW + 4 * HOUR, status="pending"),
    ])

    reconciler.tick(NOW)
    assert status_of(store, TRUCKS, "T-001") == "intransit"
    assert status_of(store, DRIVERS, "D-001") == "driving"

    reconciler.tick(NOW + 2 * HOUR)
    assert status_of(store, TRIPS, "TRIP-1") == "completed"
    assert status_of(store, TRUCKS, "T-001") == "pending"
    assert status_of(store, DRIVERS, "D-001") == "pending"
    assert titles(store) == [TRIP_COMPLETED]


def test_completed_trip_returns_truck_to_assigned(store, reconciler):
    store.save(TRUCKS, [truck("T-001", driver="Juan Dela Cruz", status="intransit")])
    store.save(DRIVERS, [driver("D-001", name="Juan Dela Cruz", status="driving", assignedVehicle="T-001")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - 2 * HOUR, NOW - HOUR, status="intransit")])

    reconciler.tick(NOW)

    assert status_of(store, TRUCKS, "T-001") == "assigned"
    assert status_of(store, DRIVERS, "D-001") == "assigned"


def test_trip_without_end_completes_after_an_hour(store, reconciler):
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - 2 * HOUR, None, status="intransit")])

    reconciler.tick(NOW)

    assert status_of(store, TRIPS, "TRIP-1") == "completed"


def test_no_elapsed_time_means_no_extra_writes(store, reconciler, backend):
    store.save(TRUCKS, [truck("T-001", driver="Juan Dela Cruz", status="pending")])
    store.save(DRIVERS, [driver("D-001", name="Juan Dela Cruz", status="pending", assignedVehicle="T-001")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, status="pending")])
    reconciler.tick(NOW)

    writes = []
    for collection in (TRUCKS, DRIVERS, TRIPS):
        store.bus.subscribe(collection, writes.append)
    requests_before = len(backend.requests)

    report = reconciler.tick(NOW)

    assert not report.changed
    assert writes == []
    assert len(backend.requests) == requests_before


def test_driver_matched_by_trip_driver_id(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="pending")])
    store.save(DRIVERS, [driver("D-007", name="Maria Santos", status="pending")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, driverId="D-007", driverName="Someone Else")])

    reconciler.tick(NOW)

    record = store.get(DRIVERS, "D-007")
    assert record["status"] == "driving"
    assert record["assignedVehicle"] == "T-001"


def test_driver_matched_by_normalized_name(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="pending")])
    store.save(DRIVERS, [driver("D-002", name="Juan Dela Cruz", status="pending")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, driverName="juan  dela-cruz")])

    reconciler.tick(NOW)

    assert status_of(store, DRIVERS, "D-002") == "driving"


def test_unmatched_driver_is_left_alone(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="pending")])
    store.save(DRIVERS, [driver("D-003", name="Pedro Reyes", status="available")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR)])

    report = reconciler.tick(NOW)

    assert status_of(store, DRIVERS, "D-003") == "available"
    assert report.drivers_updated == []


def test_backend_failures_do_not_affect_local_state(store, reconciler, backend):
    backend.status_code = 503
    store.save(TRUCKS, [truck("T-001", status="pending")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR)])

    reconciler.tick(NOW)

    assert status_of(store, TRIPS, "TRIP-1") == "intransit"
    assert status_of(store, TRUCKS, "T-001") == "intransit"
    assert ("PUT", "/api/trips/TRIP-1") in backend.calls()


def test_normalize_name():
    assert normalize_name("  Juan Dela-Cruz ") == "juandelacruz"
    assert normalize_name(None) == ""


def test_loop_runs_after_tick_hooks(store, reconciler):
    seen = []
    loop = ReconcilerLoop(reconciler, interval=0, after_tick=[seen.append])

    report = loop.run_once()

    assert seen == [report]


def test_driver_on_another_truck_is_not_matched(store, reconciler):
    store.save(TRUCKS, [truck("T-001", status="pending")])
    store.save(DRIVERS, [driver("D-007", name="Maria Santos", status="assigned", assignedVehicle="T-009")])
    store.save(TRIPS, [trip("TRIP-1", "T-001", NOW - HOUR, NOW + HOUR, driverId="D-007", driverName="Maria Santos")])

    report = reconciler.tick(NOW)

    assert status_of(store, DRIVERS, "D-007") == "assigned"
    assert report.drivers_updated == []


def test_loop_survives_malformed_records_and_failing_hooks(store, reconciler):
    now = datetime.now(timezone.utc)
    store.save(TRUCKS, [{"id": "T-001", "status": "assigned", "fuelLevel": None}])
    store.save(TRIPS, [trip("TRIP-1", "T-001", now - timedelta(minutes=1), now + HOUR)])
    calls = []

    def flaky(report):
        calls.append(report)
        if len(calls) == 1:
            raise RuntimeError("hook failed")

    async def run_briefly():
        loop = ReconcilerLoop(reconciler, interval=0.01, after_tick=[flaky])
        task = loop.start()
        await asyncio.sleep(0.1)
        alive = not task.done()
        await loop.stop()
        return alive

    assert asyncio.run(run_briefly()) is True
    assert len(calls) >= 2
    assert status_of(store, TRIPS, "TRIP-1") == "intransit"
