from concurrent.futures import ThreadPoolExecutor

import httpx

from factories import truck
from fleet_admin.schemas.truck import TruckRecord
from fleet_admin.store import EventBus, LocalStore, RemoteSync
from fleet_admin.store.local_store import TRUCKS


def test_missing_and_corrupt_collections_read_as_empty(store):
    assert store.load(TRUCKS) == []

    store.path(TRUCKS).write_text("{not json", encoding="utf-8")
    assert store.load(TRUCKS) == []


def test_upsert_inserts_first_and_replaces_in_place(store):
    store.upsert(TRUCKS, truck("T-001"))
    store.upsert(TRUCKS, truck("T-002"))
    store.upsert(TRUCKS, truck("T-001", fuelLevel=5))

    items = store.load(TRUCKS)
    assert [i["id"] for i in items] == ["T-002", "T-001"]
    assert items[1]["fuelLevel"] == 5


def test_update_merges_into_latest_copy(tmp_path):
    first = LocalStore(tmp_path)
    second = LocalStore(tmp_path)
    first.save(TRUCKS, [truck("T-001", customTag="keep-me")])

    second.update(TRUCKS, "T-001", {"status": "pending"})

    record = first.get(TRUCKS, "T-001")
    assert record["status"] == "pending"
    assert record["customTag"] == "keep-me"
    assert first.update(TRUCKS, "T-404", {"status": "pending"}) is None


def test_records_skip_malformed_entries(store):
    store.save(TRUCKS, [truck("T-001"), {"id": "T-002", "status": "flying"}])

    records = store.records(TRUCKS, TruckRecord)

    assert [r.id for r in records] == ["T-001"]
    # unknown keys survive a round trip through the record
    store.save(TRUCKS, [truck("T-003", customTag="x")])
    assert store.record(TRUCKS, TruckRecord, "T-003").to_local()["customTag"] == "x"


def test_writes_publish_collection_name(tmp_path):
    bus = EventBus()
    store = LocalStore(tmp_path, bus=bus)
    seen = []
    unsubscribe = bus.subscribe(TRUCKS, seen.append)

    store.save(TRUCKS, [])
    store.remove(TRUCKS, "T-404")
    unsubscribe()
    store.save(TRUCKS, [])

    assert seen == [TRUCKS]


def test_broken_listener_does_not_block_write(store):
    def broken(_):
        raise RuntimeError("boom")

    store.bus.subscribe(TRUCKS, broken)
    store.save(TRUCKS, [truck("T-001")])

    assert store.get(TRUCKS, "T-001") is not None


def test_sequences_respect_floor(store):
    assert store.next_sequence("truck_seq", floor=3) == 4
    assert store.next_sequence("truck_seq") == 5
    assert store.next_sequence("driver_seq") == 1


def test_remote_sync_swallows_backend_errors():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(base_url="http://backend.test", transport=httpx.MockTransport(unreachable))
    sync = RemoteSync(client=client, background=False)

    assert sync._send("POST", "/api/trucks", {"id": "T-001"}) is False
    assert sync.create("trucks", {"id": "T-001"}) is None
    sync.close()


def test_remote_sync_in_background(backend):
    client = httpx.Client(base_url="http://backend.test", transport=httpx.MockTransport(backend))
    sync = RemoteSync(client=client, executor=ThreadPoolExecutor(max_workers=1))

    future = sync.update("trucks", "T-001", {"status": "pending"})

    assert future.result(timeout=5) is True
    assert backend.calls() == [("PUT", "/api/trucks/T-001")]
    sync.close()


def test_malformed_single_record_reads_as_missing(store):
    store.save(TRUCKS, [{"id": "T-001", "status": "assigned", "fuelLevel": None}])

    assert store.record(TRUCKS, TruckRecord, "T-001") is None
    assert store.get(TRUCKS, "T-001")["fuelLevel"] is None
