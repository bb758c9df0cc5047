"""Interval overlap checks between a requested slot and existing reservations."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from .booking import Booking
from .downtime import DowntimeBlock
from .errors import InvalidInterval

Reservation = Union[Booking, DowntimeBlock]


def check_timestamp(value: Any, name: str = "timestamp") -> None:
    """Raise InvalidInterval unless value is a datetime."""
    if not isinstance(value, datetime):
        raise InvalidInterval(f"{name} must be a datetime, got {type(value).__name__}")


def check_interval(start: Any, end: Any, strict: bool = False) -> None:
    """
    Validate an interval.

    start == end is a point interval and passes unless strict is set.
    Writes (new bookings and downtime) use strict=True.
    """
    check_timestamp(start, "start")
    check_timestamp(end, "end")
    try:
        inverted = end <= start if strict else end < start
    except TypeError:
        raise InvalidInterval(
            "Cannot compare naive and timezone-aware timestamps", start, end
        )
    if inverted:
        raise InvalidInterval("End time must be after start time", start, end)


def overlaps(
    existing_start: datetime, existing_end: datetime, start: datetime, end: datetime
) -> bool:
    """
    Check whether [existing_start, existing_end) collides with [start, end).

    Intervals that only touch at an endpoint do not collide. A point interval
    (start == end) collides only when existing_start <= start < existing_end.
    """
    if start == end:
        return existing_start <= start < existing_end
    return (
        (existing_start <= start and existing_end > start)
        or (existing_start < end and existing_end >= end)
        or (existing_start >= start and existing_end <= end)
    )


def occupies(record: Reservation, instant: datetime) -> bool:
    """True if an active reservation covers the instant."""
    return record.is_active and record.start_time <= instant < record.end_time


def active_reservations(
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
    exclude_booking_id: Optional[int] = None,
) -> List[Reservation]:
    """Active bookings followed by active downtime blocks."""
    result: List[Reservation] = [
        b for b in bookings if b.is_active and b.id != exclude_booking_id
    ]
    result.extend(d for d in downtime if d.is_active)
    return result


def find_conflicts(
    vehicle_id: int,
    start: datetime,
    end: datetime,
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
    exclude_booking_id: Optional[int] = None,
) -> List[Reservation]:
    """All active reservations of the vehicle that collide with [start, end)."""
    check_interval(start, end)
    return [
        r
        for r in active_reservations(bookings, downtime, exclude_booking_id)
        if r.vehicle_id == vehicle_id and overlaps(r.start_time, r.end_time, start, end)
    ]


def conflicts(
    vehicle_id: int,
    start: datetime,
    end: datetime,
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
    exclude_booking_id: Optional[int] = None,
) -> bool:
    """Check whether the vehicle has any active booking or downtime in [start, end)."""
    return bool(
        find_conflicts(vehicle_id, start, end, bookings, downtime, exclude_booking_id)
    )


def describe_reservation(record: Reservation) -> Dict[str, Any]:
    """Short reference to a reservation for error payloads."""
    return {
        "kind": "booking" if isinstance(record, Booking) else "downtime",
        "id": record.id,
        "startTime": record.start_time.isoformat(),
        "endTime": record.end_time.isoformat(),
    }
