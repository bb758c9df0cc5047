"""Flask JSON API for the jet ski fleet."""

import logging
import os
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from dateutil.relativedelta import relativedelta
from flask import Blueprint, Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

# Add parent directory to path for fleet imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from fleet.booking import Booking
from fleet.downtime import DowntimeBlock
from fleet.errors import FleetError, RecordNotFound, ValidationFailed
from fleet.loader import parse_fields, parse_timestamp, record_to_dict, window_to_dict
from fleet.schema import validate_payload
from fleet.seed import seed_fleet
from fleet.service import FleetService, utc_now
from fleet.store import memory_store, yaml_store
from fleet.vehicle import Vehicle

logger = logging.getLogger(__name__)

# Default fleet file (relative to project root)
DATA_FILE = Path(__file__).parent.parent / "fleet.yaml"

api = Blueprint("api", __name__, url_prefix="/api")


def build_service(config: Dict[str, Any]) -> FleetService:
    """Create the fleet service for the configured store backend."""
    clock = config.get("CLOCK") or utc_now
    backend = config["FLEET_STORE"]
    if backend == "yaml":
        store = yaml_store(config["FLEET_DATA_FILE"])
    elif backend == "memory":
        store = memory_store()
        if config["FLEET_SEED"]:
            seed_fleet(store, clock())
    else:
        raise ValueError(f"Unknown FLEET_STORE {backend!r} (expected 'memory' or 'yaml')")
    logger.info("Using %s fleet store", backend)
    return FleetService(store, clock=clock)


def get_service() -> FleetService:
    return current_app.extensions["fleet_service"]


def json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationFailed(
            "Request body must be JSON",
            [{"field": "", "message": "Expected a JSON object"}],
        )
    return payload


def query_time(name: str):
    """Parse an optional ISO timestamp query parameter."""
    value = request.args.get(name)
    if not value:
        return None
    return parse_timestamp(value)


def query_int(name: str, default: int) -> int:
    value = request.args.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationFailed(
            f"Invalid {name}", [{"field": name, "message": "Must be an integer"}]
        )


def summary_to_dict(summary) -> Dict[str, int]:
    """Dashboard counts with camelCase keys."""
    data = asdict(summary)
    return {
        "totalVehicles": data["total_vehicles"],
        "availableVehicles": data["available_vehicles"],
        "todayBookings": data["today_bookings"],
        "maintenanceAlerts": data["maintenance_alerts"],
        "refuelingNeeded": data["refueling_needed"],
    }


def error_status(exc: FleetError) -> int:
    """HTTP status for a fleet error. Everything but a missing path id is a 400."""
    if isinstance(exc, RecordNotFound):
        return 404
    return 400


# =============================================================================
# Vehicles
# =============================================================================


@api.route("/vehicles", methods=["GET"])
def list_vehicles():
    return jsonify([record_to_dict(v) for v in get_service().list_vehicles()])


@api.route("/vehicles/<int:vehicle_id>", methods=["GET"])
def get_vehicle(vehicle_id: int):
    return jsonify(record_to_dict(get_service().get_vehicle(vehicle_id)))


@api.route("/vehicles", methods=["POST"])
def create_vehicle():
    payload = json_body()
    validate_payload("vehicle", payload)
    vehicle = get_service().add_vehicle(parse_fields(Vehicle, payload))
    return jsonify(record_to_dict(vehicle)), 201


@api.route("/vehicles/<int:vehicle_id>", methods=["PATCH"])
def update_vehicle(vehicle_id: int):
    payload = json_body()
    validate_payload("vehicle", payload, partial=True)
    vehicle = get_service().update_vehicle(vehicle_id, parse_fields(Vehicle, payload))
    return jsonify(record_to_dict(vehicle))


@api.route("/vehicles/<int:vehicle_id>", methods=["DELETE"])
def delete_vehicle(vehicle_id: int):
    get_service().delete_vehicle(vehicle_id)
    return "", 204


@api.route("/vehicles/available", methods=["GET"])
def available_vehicles():
    """Vehicles free for [start, end). Without parameters: free right now."""
    start = query_time("start")
    end = query_time("end")
    vehicles = get_service().available_vehicles(start, end)
    return jsonify([record_to_dict(v) for v in vehicles])


@api.route("/vehicles/<int:vehicle_id>/current-booking", methods=["GET"])
def vehicle_current_booking(vehicle_id: int):
    booking = get_service().current_booking(vehicle_id, query_time("asOf"))
    return jsonify(record_to_dict(booking) if booking else None)


# =============================================================================
# Bookings
# =============================================================================


@api.route("/bookings", methods=["GET"])
def list_bookings():
    return jsonify([record_to_dict(b) for b in get_service().list_bookings()])


@api.route("/bookings/today", methods=["GET"])
def todays_bookings():
    bookings = get_service().todays_bookings(query_time("asOf"))
    return jsonify([record_to_dict(b) for b in bookings])


@api.route("/bookings/<int:booking_id>", methods=["GET"])
def get_booking(booking_id: int):
    return jsonify(record_to_dict(get_service().get_booking(booking_id)))


@api.route("/bookings", methods=["POST"])
def create_booking():
    payload = json_body()
    validate_payload("booking", payload)
    booking = get_service().create_booking(parse_fields(Booking, payload))
    return jsonify(record_to_dict(booking)), 201


@api.route("/bookings/<int:booking_id>", methods=["PATCH"])
def update_booking(booking_id: int):
    payload = json_body()
    validate_payload("booking", payload, partial=True)
    booking = get_service().update_booking(booking_id, parse_fields(Booking, payload))
    return jsonify(record_to_dict(booking))


@api.route("/bookings/<int:booking_id>", methods=["DELETE"])
def delete_booking(booking_id: int):
    get_service().delete_booking(booking_id)
    return "", 204


# =============================================================================
# Downtime
# =============================================================================


@api.route("/downtime", methods=["GET"])
def list_downtime():
    return jsonify([record_to_dict(d) for d in get_service().list_downtime()])


@api.route("/downtime/<int:block_id>", methods=["GET"])
def get_downtime(block_id: int):
    return jsonify(record_to_dict(get_service().get_downtime(block_id)))


@api.route("/downtime", methods=["POST"])
def create_downtime():
    payload = json_body()
    validate_payload("downtime", payload)
    block = get_service().create_downtime(
        parse_fields(DowntimeBlock, payload), as_of=query_time("asOf")
    )
    return jsonify(record_to_dict(block)), 201


@api.route("/downtime/<int:block_id>", methods=["PATCH"])
def update_downtime(block_id: int):
    payload = json_body()
    validate_payload("downtime", payload, partial=True)
    block = get_service().update_downtime(block_id, parse_fields(DowntimeBlock, payload))
    return jsonify(record_to_dict(block))


@api.route("/downtime/<int:block_id>", methods=["DELETE"])
def delete_downtime(block_id: int):
    get_service().delete_downtime(block_id)
    return "", 204


# =============================================================================
# Dashboard and availability windows
# =============================================================================


@api.route("/dashboard-summary", methods=["GET"])
def dashboard_summary():
    summary = get_service().dashboard_summary(query_time("asOf"))
    return jsonify(summary_to_dict(summary))


@api.route("/availability-windows", methods=["GET"])
def availability_windows():
    """
    Windows in which vehicles of one brand are free together.

    brand defaults to DEFAULT_BRAND; brand=all covers the whole fleet.
    until defaults to asOf + WINDOW_HORIZON_DAYS.
    """
    service = get_service()
    brand: Optional[str] = request.args.get("brand") or current_app.config["DEFAULT_BRAND"]
    if brand.lower() == "all":
        brand = None
    as_of = query_time("asOf") or service.clock()
    until = query_time("until") or as_of + relativedelta(
        days=current_app.config["WINDOW_HORIZON_DAYS"]
    )
    min_count = query_int("minCount", 1)

    windows = service.availability_windows(
        brand=brand, as_of=as_of, until=until, min_count=min_count
    )
    return jsonify([window_to_dict(w) for w in windows])


# =============================================================================
# App factory
# =============================================================================


def create_app(test_config: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev-secret-key-change-in-prod"),
        FLEET_STORE=os.environ.get("FLEET_STORE", "memory"),
        FLEET_DATA_FILE=os.environ.get("FLEET_DATA_FILE", str(DATA_FILE)),
        FLEET_SEED=os.environ.get("FLEET_SEED", "true").lower() == "true",
        DEFAULT_BRAND=os.environ.get("DEFAULT_BRAND", "hardliner"),
        WINDOW_HORIZON_DAYS=int(os.environ.get("WINDOW_HORIZON_DAYS", "7")),
        LOG_LEVEL=os.environ.get("LOG_LEVEL", "INFO"),
        CLOCK=None,
    )
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config["LOG_LEVEL"])
    app.extensions["fleet_service"] = build_service(app.config)
    app.register_blueprint(api)

    @app.errorhandler(FleetError)
    def handle_fleet_error(exc: FleetError):
        return jsonify(exc.to_dict()), error_status(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"message": exc.description, "kind": "http_error"}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return jsonify({"message": "Internal server error", "kind": "internal_error"}), 500

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "store": app.config["FLEET_STORE"]})

    return app


app = create_app()


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    app.run(debug=True, host="0.0.0.0", port=5001)
