"""Exceptions raised by the fleet core and service layer."""

from datetime import datetime
from typing import Any, Dict, List, Optional


class FleetError(Exception):
    """Base class for fleet errors. Carries a structured payload."""

    kind = "fleet_error"

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"message": self.message, "kind": self.kind}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class InvalidInterval(FleetError):
    """Malformed, unparseable or inverted timestamps."""

    kind = "invalid_interval"

    def __init__(self, message: str, start: Any = None, end: Any = None):
        super().__init__(message)
        self.start = start
        self.end = end

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["interval"] = {"start": _stamp(self.start), "end": _stamp(self.end)}
        return payload


class VehicleNotFound(FleetError):
    """A referenced vehicle id does not resolve."""

    kind = "vehicle_not_found"

    def __init__(self, vehicle_id: Any):
        super().__init__(f"Vehicle {vehicle_id} does not exist")
        self.vehicle_id = vehicle_id

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["vehicleId"] = self.vehicle_id
        return payload


class RecordNotFound(FleetError):
    """No record with the requested id."""

    kind = "not_found"

    def __init__(self, entity: str, record_id: Any):
        super().__init__(f"{entity.capitalize()} {record_id} not found")
        self.entity = entity
        self.record_id = record_id

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["entity"] = self.entity
        payload["id"] = self.record_id
        return payload


class AvailabilityConflict(FleetError):
    """Requested interval is not free for the vehicle."""

    kind = "availability_conflict"

    def __init__(
        self,
        vehicle_id: int,
        start: datetime,
        end: datetime,
        conflicts: Optional[List[Dict[str, Any]]] = None,
        message: str = "Selected vehicle is not available for the requested time slot",
    ):
        super().__init__(message)
        self.vehicle_id = vehicle_id
        self.start = start
        self.end = end
        self.conflicts = conflicts or []

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["vehicleId"] = self.vehicle_id
        payload["interval"] = {"start": _stamp(self.start), "end": _stamp(self.end)}
        payload["conflicts"] = self.conflicts
        return payload


class VehicleInUse(FleetError):
    """Vehicle still referenced by active bookings or downtime."""

    kind = "vehicle_in_use"

    def __init__(self, vehicle_id: int, booking_ids: List[int], downtime_ids: List[int]):
        super().__init__(
            f"Vehicle {vehicle_id} has {len(booking_ids)} active booking(s) "
            f"and {len(downtime_ids)} active downtime block(s)"
        )
        self.vehicle_id = vehicle_id
        self.booking_ids = booking_ids
        self.downtime_ids = downtime_ids

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["vehicleId"] = self.vehicle_id
        payload["bookingIds"] = self.booking_ids
        payload["downtimeIds"] = self.downtime_ids
        return payload


class ValidationFailed(FleetError):
    """Request data failed validation. `errors` holds field-level details."""

    kind = "validation_error"


def _stamp(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return None if value is None else str(value)
