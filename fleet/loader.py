"""Conversion between records and their camelCase dict / YAML form."""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Type, Union

import yaml
from dateutil.parser import isoparse

from .booking import Booking
from .downtime import DowntimeBlock
from .errors import InvalidInterval, ValidationFailed
from .status import BookingStatus, DowntimeType, VehicleStatus
from .vehicle import Vehicle
from .windows import AvailabilityWindow

SECTIONS = ("vehicles", "bookings", "downtime")


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 timestamp.

    Naive values are taken as UTC so every stored timestamp is comparable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = isoparse(value)
        except ValueError:
            raise InvalidInterval(f"Invalid timestamp: {value!r}")
    else:
        raise InvalidInterval(f"Invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(value)
    return value


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# camelCase key -> (attribute, converter)
FieldTable = Dict[str, Tuple[str, Callable[[Any], Any]]]

VEHICLE_FIELDS: FieldTable = {
    "name": ("name", str),
    "brand": ("brand", str),
    "status": ("status", VehicleStatus),
    "lastMaintenanceDate": ("last_maintenance_date", parse_timestamp),
    "hoursUsed": ("hours_used", int),
}

BOOKING_FIELDS: FieldTable = {
    "customerName": ("customer_name", str),
    "customerEmail": ("customer_email", str),
    "customerPhone": ("customer_phone", str),
    "vehicleId": ("vehicle_id", int),
    "startTime": ("start_time", parse_timestamp),
    "endTime": ("end_time", parse_timestamp),
    "status": ("status", BookingStatus),
    "notes": ("notes", str),
}

DOWNTIME_FIELDS: FieldTable = {
    "vehicleId": ("vehicle_id", int),
    "type": ("type", DowntimeType),
    "startTime": ("start_time", parse_timestamp),
    "endTime": ("end_time", parse_timestamp),
    "completed": ("completed", _as_bool),
    "notes": ("notes", str),
}

FIELD_TABLES: Dict[Type, FieldTable] = {
    Vehicle: VEHICLE_FIELDS,
    Booking: BOOKING_FIELDS,
    DowntimeBlock: DOWNTIME_FIELDS,
}


def parse_fields(record_type: Type, dct: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a (possibly partial) camelCase mapping into constructor kwargs.

    Unknown keys are ignored. None is kept as None.
    """
    table = FIELD_TABLES[record_type]
    fields: Dict[str, Any] = {}
    errors = []
    for key, value in dct.items():
        if key not in table:
            continue
        attr, convert = table[key]
        if value is None:
            fields[attr] = None
            continue
        try:
            fields[attr] = convert(value)
        except InvalidInterval as e:
            errors.append({"field": key, "message": e.message})
        except (TypeError, ValueError):
            errors.append({"field": key, "message": f"Invalid value {value!r}"})
    if errors:
        raise ValidationFailed("Invalid field values", errors)
    return fields


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def record_to_dict(record: Any) -> Dict[str, Any]:
    """Serialize a Vehicle, Booking or DowntimeBlock (camelCase keys)."""
    d: Dict[str, Any] = {"id": record.id}
    for key, (attr, _) in FIELD_TABLES[type(record)].items():
        d[key] = _serialize(getattr(record, attr))
    return d


def record_from_dict(record_type: Type, dct: Dict[str, Any]) -> Any:
    """Build a record from its camelCase dict form (must include id)."""
    fields = parse_fields(record_type, dct)
    return record_type(id=dct["id"], **fields)


def window_to_dict(window: AvailabilityWindow) -> Dict[str, Any]:
    return {
        "count": window.count,
        "from": window.start.isoformat(),
        "until": window.until.isoformat(),
        "vehicles": [record_to_dict(v) for v in window.vehicles],
    }


def load_fleet_data(filename: Union[str, Path]) -> Dict[str, Any]:
    """Load the raw fleet YAML, filling in missing sections."""
    with open(filename, "r") as fp:
        data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
    for section in SECTIONS:
        if data.get(section) is None:
            data[section] = []
    if data.get("sequences") is None:
        data["sequences"] = {}
    return data


def save_fleet_data(filename: Union[str, Path], data: Dict[str, Any]) -> None:
    """Write the raw fleet dict back to YAML."""
    with open(filename, "w") as fp:
        yaml.dump(
            data,
            fp,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )


def create_fleet_file(filename: Union[str, Path]) -> None:
    """Create an empty fleet YAML file."""
    data: Dict[str, Any] = {section: [] for section in SECTIONS}
    data["sequences"] = {}
    save_fleet_data(filename, data)
