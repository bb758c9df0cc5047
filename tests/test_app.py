#!/usr/bin/env python3
"""Tests for the Flask JSON API."""

from datetime import datetime, timezone

import pytest

from web.app import create_app

NOW = datetime(2026, 7, 1, 10, tzinfo=timezone.utc)


@pytest.fixture
def app():
    return create_app({"TESTING": True, "FLEET_SEED": False, "CLOCK": lambda: NOW})


@pytest.fixture
def client(app):
    client = app.test_client()
    for name in ("Wave Runner 1", "Wave Runner 2"):
        resp = client.post("/api/vehicles", json={"name": name, "brand": "Hardliner"})
        assert resp.status_code == 201
    client.post("/api/vehicles", json={"name": "Sea Glider", "brand": "WaveMotion"})
    return client


def booking_payload(vehicle_id=1, start="2026-07-01T13:00:00Z", end="2026-07-01T14:30:00Z"):
    return {
        "customerName": "Jane Doe",
        "customerEmail": "jane@example.com",
        "vehicleId": vehicle_id,
        "startTime": start,
        "endTime": end,
    }


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.get_json() == {"status": "healthy", "store": "memory"}


# =============================================================================
# Vehicles
# =============================================================================


class TestVehicleRoutes:
    """Tests for /api/vehicles."""

    def test_list(self, client):
        vehicles = client.get("/api/vehicles").get_json()
        assert [v["name"] for v in vehicles] == ["Wave Runner 1", "Wave Runner 2", "Sea Glider"]
        assert vehicles[0]["status"] == "available"

    def test_create_missing_brand(self, client):
        resp = client.post("/api/vehicles", json={"name": "No Brand"})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["kind"] == "validation_error"
        assert body["errors"]

    def test_create_non_json(self, client):
        resp = client.post("/api/vehicles", data="name=x")
        assert resp.status_code == 400

    def test_get_missing(self, client):
        resp = client.get("/api/vehicles/99")
        assert resp.status_code == 404
        assert resp.get_json()["kind"] == "not_found"

    def test_patch_status(self, client):
        resp = client.patch("/api/vehicles/1", json={"status": "broken"})
        assert resp.status_code == 200
        assert resp.get_json()["status"] == "broken"

    def test_patch_bad_status(self, client):
        resp = client.patch("/api/vehicles/1", json={"status": "sunk"})
        assert resp.status_code == 400

    def test_delete(self, client):
        assert client.delete("/api/vehicles/3").status_code == 204
        assert client.get("/api/vehicles/3").status_code == 404

    def test_delete_in_use(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.delete("/api/vehicles/1")
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "vehicle_in_use"

    def test_available_for_slot(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.get(
            "/api/vehicles/available",
            query_string={"start": "2026-07-01T14:00:00Z", "end": "2026-07-01T15:00:00Z"},
        )
        assert [v["id"] for v in resp.get_json()] == [2, 3]

    def test_available_bad_timestamp(self, client):
        resp = client.get("/api/vehicles/available", query_string={"start": "noon"})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "invalid_interval"

    def test_current_booking(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.get(
            "/api/vehicles/1/current-booking", query_string={"asOf": "2026-07-01T13:30:00Z"}
        )
        assert resp.get_json()["customerName"] == "Jane Doe"
        assert client.get("/api/vehicles/1/current-booking").get_json() is None


# =============================================================================
# Bookings
# =============================================================================


class TestBookingRoutes:
    """Tests for /api/bookings."""

    def test_create(self, client):
        resp = client.post("/api/bookings", json=booking_payload())
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["id"] == 1
        assert body["status"] == "scheduled"
        assert body["startTime"] == "2026-07-01T13:00:00+00:00"

    def test_conflict(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.post(
            "/api/bookings",
            json=booking_payload(start="2026-07-01T14:00:00Z", end="2026-07-01T15:00:00Z"),
        )
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["kind"] == "availability_conflict"
        assert body["conflicts"][0]["kind"] == "booking"

    def test_back_to_back(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.post(
            "/api/bookings",
            json=booking_payload(start="2026-07-01T14:30:00Z", end="2026-07-01T15:00:00Z"),
        )
        assert resp.status_code == 201

    def test_unknown_vehicle(self, client):
        resp = client.post("/api/bookings", json=booking_payload(vehicle_id=99))
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "vehicle_not_found"

    def test_bad_timestamp(self, client):
        resp = client.post("/api/bookings", json=booking_payload(start="half past one"))
        assert resp.status_code == 400
        assert resp.get_json()["errors"][0]["field"] == "startTime"

    def test_inverted_interval(self, client):
        resp = client.post(
            "/api/bookings",
            json=booking_payload(start="2026-07-01T15:00:00Z", end="2026-07-01T14:00:00Z"),
        )
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "invalid_interval"

    def test_cancel_then_rebook(self, client):
        client.post("/api/bookings", json=booking_payload())
        resp = client.patch("/api/bookings/1", json={"status": "cancelled"})
        assert resp.get_json()["status"] == "cancelled"
        assert client.post("/api/bookings", json=booking_payload()).status_code == 201

    def test_today(self, client):
        client.post("/api/bookings", json=booking_payload())
        client.post(
            "/api/bookings",
            json=booking_payload(start="2026-07-02T13:00:00Z", end="2026-07-02T14:00:00Z"),
        )
        assert [b["id"] for b in client.get("/api/bookings/today").get_json()] == [1]
        resp = client.get("/api/bookings/today", query_string={"asOf": "2026-07-02T08:00:00Z"})
        assert [b["id"] for b in resp.get_json()] == [2]

    def test_delete_missing(self, client):
        assert client.delete("/api/bookings/99").status_code == 404


# =============================================================================
# Downtime
# =============================================================================


class TestDowntimeRoutes:
    """Tests for /api/downtime."""

    def test_refueling_now_then_complete(self, client):
        resp = client.post(
            "/api/downtime",
            json={
                "vehicleId": 1,
                "type": "refueling",
                "startTime": "2026-07-01T09:45:00Z",
                "endTime": "2026-07-01T10:30:00Z",
            },
        )
        assert resp.status_code == 201
        assert client.get("/api/vehicles/1").get_json()["status"] == "refueling"

        resp = client.patch("/api/downtime/1", json={"completed": True})
        assert resp.get_json()["completed"] is True
        assert client.get("/api/vehicles/1").get_json()["status"] == "available"

    def test_blocks_booking(self, client):
        client.post(
            "/api/downtime",
            json={
                "vehicleId": 1,
                "type": "maintenance",
                "startTime": "2026-07-01T12:00:00Z",
                "endTime": "2026-07-01T14:00:00Z",
            },
        )
        resp = client.post("/api/bookings", json=booking_payload())
        assert resp.status_code == 400
        assert resp.get_json()["conflicts"][0]["kind"] == "downtime"

    def test_patch_onto_other_downtime_rejected(self, client):
        for start, end in (("08:00", "10:00"), ("12:00", "13:00")):
            client.post(
                "/api/downtime",
                json={
                    "vehicleId": 1,
                    "type": "maintenance",
                    "startTime": f"2026-07-01T{start}:00Z",
                    "endTime": f"2026-07-01T{end}:00Z",
                },
            )
        resp = client.patch("/api/downtime/2", json={"startTime": "2026-07-01T09:00:00Z"})
        assert resp.status_code == 400
        assert resp.get_json()["conflicts"][0]["id"] == 1

    def test_bad_type(self, client):
        resp = client.post(
            "/api/downtime",
            json={
                "vehicleId": 1,
                "type": "nap",
                "startTime": "2026-07-01T12:00:00Z",
                "endTime": "2026-07-01T14:00:00Z",
            },
        )
        assert resp.status_code == 400

    def test_get_missing(self, client):
        assert client.get("/api/downtime/5").status_code == 404


# =============================================================================
# Dashboard and availability windows
# =============================================================================


class TestDashboardRoutes:
    """Tests for dashboard summary and availability windows."""

    def test_dashboard_summary(self, client):
        client.post("/api/bookings", json=booking_payload())
        body = client.get("/api/dashboard-summary").get_json()
        assert body == {
            "totalVehicles": 3,
            "availableVehicles": 3,
            "todayBookings": 1,
            "maintenanceAlerts": 0,
            "refuelingNeeded": 0,
        }

    def test_windows_default_brand(self, client):
        client.post("/api/bookings", json=booking_payload(vehicle_id=2))
        windows = client.get(
            "/api/availability-windows", query_string={"until": "2026-07-01T15:00:00Z"}
        ).get_json()
        assert [(w["from"], w["until"], w["count"]) for w in windows] == [
            ("2026-07-01T10:00:00+00:00", "2026-07-01T13:00:00+00:00", 2),
            ("2026-07-01T13:00:00+00:00", "2026-07-01T14:30:00+00:00", 1),
            ("2026-07-01T14:30:00+00:00", "2026-07-01T15:00:00+00:00", 2),
        ]
        assert [v["id"] for v in windows[1]["vehicles"]] == [1]

    def test_windows_min_count(self, client):
        client.post("/api/bookings", json=booking_payload(vehicle_id=2))
        windows = client.get(
            "/api/availability-windows",
            query_string={"until": "2026-07-01T15:00:00Z", "minCount": 2},
        ).get_json()
        assert [w["count"] for w in windows] == [2, 2]

    def test_windows_all_brands(self, client):
        windows = client.get(
            "/api/availability-windows",
            query_string={"brand": "all", "until": "2026-07-01T15:00:00Z"},
        ).get_json()
        assert windows[0]["count"] == 3

    def test_windows_default_horizon(self, client):
        windows = client.get("/api/availability-windows").get_json()
        assert windows == [
            {
                "count": 2,
                "from": "2026-07-01T10:00:00+00:00",
                "until": "2026-07-08T10:00:00+00:00",
                "vehicles": windows[0]["vehicles"],
            }
        ]

    def test_windows_unknown_brand_empty(self, client):
        resp = client.get("/api/availability-windows", query_string={"brand": "Yamaha"})
        assert resp.status_code == 200
        assert resp.get_json() == []

    def test_windows_bad_min_count(self, client):
        resp = client.get("/api/availability-windows", query_string={"minCount": "lots"})
        assert resp.status_code == 400


class TestErrors:
    """Tests for error handlers."""

    def test_unknown_route_is_json(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.get_json()["kind"] == "http_error"

    def test_unexpected_error_logged(self, caplog):
        def broken_clock():
            raise RuntimeError("clock stopped")

        app = create_app({"TESTING": True, "FLEET_SEED": False, "CLOCK": broken_clock})
        with caplog.at_level("ERROR", logger="web.app"):
            resp = app.test_client().get("/api/vehicles/available")
        assert resp.status_code == 500
        assert resp.get_json()["kind"] == "internal_error"
        record = next(r for r in caplog.records if r.name == "web.app")
        assert record.msg == "Unhandled error: %s"
        assert record.getMessage() == "Unhandled error: clock stopped"


class TestConfig:
    """Tests for store selection."""

    def test_seeded_memory_store(self):
        app = create_app({"TESTING": True, "CLOCK": lambda: NOW})
        vehicles = app.test_client().get("/api/vehicles").get_json()
        assert len(vehicles) == 5

    def test_yaml_store(self, tmp_path):
        path = tmp_path / "fleet.yaml"
        config = {"TESTING": True, "FLEET_STORE": "yaml", "FLEET_DATA_FILE": str(path)}
        client = create_app(config).test_client()
        client.post("/api/vehicles", json={"name": "V1", "brand": "Hardliner"})
        assert "Hardliner" in path.read_text()

    def test_unknown_store(self):
        with pytest.raises(ValueError):
            create_app({"FLEET_STORE": "postgres"})
