"""
Jet ski fleet models and availability engine.

This package provides:
- VehicleStatus, BookingStatus, DowntimeType: closed status enums
- Vehicle, Booking, DowntimeBlock: fleet records
- conflicts / available_vehicles: interval overlap and availability checks
- combination_windows: when same-brand vehicles are free together
- Status transition rules for the downtime lifecycle
- FleetStore: in-memory and YAML-file repositories
- FleetService: operations used by the web app and CLI
"""

from .status import VehicleStatus, BookingStatus, DowntimeType
from .vehicle import Vehicle, normalize_brand
from .booking import Booking
from .downtime import DowntimeBlock
from .errors import (
    FleetError,
    InvalidInterval,
    VehicleNotFound,
    RecordNotFound,
    AvailabilityConflict,
    VehicleInUse,
    ValidationFailed,
)
from .overlap import check_interval, overlaps, conflicts, find_conflicts
from .availability import available_vehicles, available_at, current_booking, filter_by_brand
from .windows import AvailabilityWindow, combination_windows, merge_windows
from .transitions import status_after_downtime_created, status_after_downtime_completed
from .summary import FleetSummary, bookings_on_day, summarize_fleet
from .loader import parse_timestamp, parse_fields, record_to_dict, window_to_dict
from .store import FleetStore, MemoryRepository, YamlRepository, memory_store, yaml_store
from .seed import seed_fleet
from .service import FleetService

__all__ = [
    "VehicleStatus",
    "BookingStatus",
    "DowntimeType",
    "Vehicle",
    "normalize_brand",
    "Booking",
    "DowntimeBlock",
    "FleetError",
    "InvalidInterval",
    "VehicleNotFound",
    "RecordNotFound",
    "AvailabilityConflict",
    "VehicleInUse",
    "ValidationFailed",
    "check_interval",
    "overlaps",
    "conflicts",
    "find_conflicts",
    "available_vehicles",
    "available_at",
    "current_booking",
    "filter_by_brand",
    "AvailabilityWindow",
    "combination_windows",
    "merge_windows",
    "status_after_downtime_created",
    "status_after_downtime_completed",
    "FleetSummary",
    "bookings_on_day",
    "summarize_fleet",
    "parse_timestamp",
    "parse_fields",
    "record_to_dict",
    "window_to_dict",
    "FleetStore",
    "MemoryRepository",
    "YamlRepository",
    "memory_store",
    "yaml_store",
    "seed_fleet",
    "FleetService",
]
