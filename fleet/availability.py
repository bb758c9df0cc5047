"""Which vehicles are free for an interval or at an instant."""

from datetime import datetime
from typing import Iterable, List, Optional

from .booking import Booking
from .downtime import DowntimeBlock
from .overlap import active_reservations, check_interval, check_timestamp, conflicts, occupies
from .vehicle import Vehicle, normalize_brand


def filter_by_brand(vehicles: Iterable[Vehicle], brand: Optional[str]) -> List[Vehicle]:
    """Vehicles whose brand matches case-insensitively. No brand means all."""
    if brand is None:
        return list(vehicles)
    key = normalize_brand(brand)
    return [v for v in vehicles if v.brand_key == key]


def available_vehicles(
    start: datetime,
    end: datetime,
    vehicles: Iterable[Vehicle],
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
) -> List[Vehicle]:
    """
    Vehicles in available status with no conflicting booking or downtime.

    Result keeps the order of `vehicles`.
    """
    check_interval(start, end)
    bookings = list(bookings)
    downtime = list(downtime)
    return [
        v
        for v in vehicles
        if v.is_available and not conflicts(v.id, start, end, bookings, downtime)
    ]


def available_at(
    instant: datetime,
    vehicles: Iterable[Vehicle],
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
) -> List[Vehicle]:
    """Vehicles in available status that no active reservation covers at instant."""
    check_timestamp(instant, "instant")
    reservations = active_reservations(bookings, downtime)
    return [
        v
        for v in vehicles
        if v.is_available
        and not any(r.vehicle_id == v.id and occupies(r, instant) for r in reservations)
    ]


def current_booking(
    vehicle_id: int, bookings: Iterable[Booking], as_of: datetime
) -> Optional[Booking]:
    """The active booking of the vehicle that is running at as_of, if any."""
    check_timestamp(as_of, "as_of")
    for booking in bookings:
        if booking.vehicle_id == vehicle_id and occupies(booking, as_of):
            return booking
    return None
