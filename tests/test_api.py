TRUCK = {
    "id": "T-001",
    "name": "Hauler",
    "plate_number": "ABC-1234",
    "model": "Fuso",
    "load_capacity": 12,
}

DRIVER = {
    "id": "D-001",
    "name": "Maria Santos",
    "license_number": "1234-567-89012",
    "email": "maria@fleetco.ph",
    "phone": "+63-9-17-123-4567",
}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_cors_allows_any_origin(client):
    response = client.get("/api/trucks", headers={"Origin": "http://dashboard.test"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_truck_create_list_update_delete(client):
    created = client.post("/api/trucks", json=TRUCK)
    assert created.status_code == 201
    assert created.json()["status"] == "available"
    assert created.json()["fuel_type"] == "Diesel"

    listed = client.get("/api/trucks").json()
    assert [t["id"] for t in listed] == ["T-001"]

    updated = client.put("/api/trucks/T-001", json={"status": "intransit", "driver": "Maria Santos"})
    assert updated.status_code == 200
    assert updated.json()["status"] == "intransit"
    assert updated.json()["name"] == "Hauler"

    assert client.delete("/api/trucks/T-001").status_code == 204
    assert client.get("/api/trucks").json() == []


def test_post_with_existing_id_updates(client):
    client.post("/api/trucks", json=TRUCK)
    response = client.post("/api/trucks", json={**TRUCK, "fuel_level": 42})

    assert response.status_code == 201
    assert response.json()["fuel_level"] == 42
    assert len(client.get("/api/trucks").json()) == 1


def test_duplicate_plate_is_conflict(client):
    client.post("/api/trucks", json=TRUCK)
    response = client.post("/api/trucks", json={**TRUCK, "id": "T-002", "plate_number": "abc-1234"})
    assert response.status_code == 409


def test_update_missing_is_404_and_delete_missing_is_noop(client):
    assert client.put("/api/trucks/T-404", json={"status": "pending"}).status_code == 404
    assert client.delete("/api/trucks/T-404").status_code == 204


def test_invalid_payload_is_422(client):
    response = client.post("/api/trucks", json={**TRUCK, "fuel_level": 150})
    assert response.status_code == 422


def test_driver_conflicts(client):
    assert client.post("/api/drivers", json=DRIVER).status_code == 201

    same_email = {**DRIVER, "id": "D-002", "license_number": "9999-999-99999", "phone": None, "email": "MARIA@fleetco.ph"}
    assert client.post("/api/drivers", json=same_email).status_code == 409

    same_phone = {**DRIVER, "id": "D-003", "license_number": "9999-999-99999", "email": "x@fleetco.ph", "phone": "0917 123 4567"}
    assert client.post("/api/drivers", json=same_phone).status_code == 409


def test_driver_and_trip_writes_are_logged_as_notifications(client):
    client.post("/api/drivers", json=DRIVER)
    client.post("/api/trips", json={
        "id": "TRIP-1",
        "truck_id": "T-001",
        "driver_id": "D-001",
        "destination": "Batangas",
        "start_time": "2024-06-01T12:00:00Z",
        "status": "pending",
    })
    client.delete("/api/trips/TRIP-1")

    titles = sorted(n["title"] for n in client.get("/api/notifications").json())
    assert titles == ["Driver created", "Trip created", "Trip deleted"]


def test_trip_blank_fields_become_null(client):
    response = client.post("/api/trips", json={"truck_id": "T-001", "driver_id": "", "cargo_tons": ""})

    assert response.status_code == 201
    body = response.json()
    assert body["id"].startswith("TRIP-")
    assert body["driver_id"] is None
    assert body["status"] == "pending"


def test_backend_only_resources(client):
    for path, payload in [
        ("scheduled-maintenance", {"truck_id": "T-001", "title": "Oil change"}),
        ("truck-schedules", {"truck_id": "T-001"}),
        ("driver-schedules", {"driver_id": "D-001"}),
        ("driver-documents", {"driver_id": "D-001", "name": "License scan"}),
        ("destinations", {"name": "Batangas Port", "lat": 13.75, "lng": 121.05}),
        ("trip-history", {"trip_id": "TRIP-1", "distance_km": 12.5}),
        ("driver-trip-history", {"trip_id": "TRIP-1", "driver_id": "D-001"}),
    ]:
        created = client.post(f"/api/{path}", json=payload)
        assert created.status_code == 201, path
        item_id = created.json()["id"]
        assert client.get(f"/api/{path}/{item_id}").status_code == 200
        assert client.delete(f"/api/{path}/{item_id}").status_code == 204


def test_login_is_a_demo(client):
    response = client.post("/api/login", json={"email": "admin@fleetco.ph", "password": "anything"})
    assert response.json() == {"user": {"email": "admin@fleetco.ph", "role": "admin"}, "token": "dev-token"}
    assert client.post("/api/login", json={"email": "admin@fleetco.ph"}).status_code == 422


def test_locations_are_deterministic(client):
    client.post("/api/trucks", json=TRUCK)
    client.post("/api/trucks", json={**TRUCK, "id": "T-002", "plate_number": "XYZ-0002"})

    first = client.get("/api/locations").json()
    second = client.get("/api/locations").json()

    assert [p["id"] for p in first] == ["T-001", "T-002"]
    assert [(p["lat"], p["lng"]) for p in first] == [(p["lat"], p["lng"]) for p in second]
