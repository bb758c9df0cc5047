"""Booking class for customer reservations."""

from datetime import datetime
from typing import Optional

from .status import BookingStatus


class Booking:
    """A customer reservation of one vehicle for a time interval."""

    def __init__(
        self,
        id: int,
        customer_name: str,
        vehicle_id: int,
        start_time: datetime,
        end_time: datetime,
        status: BookingStatus = BookingStatus.SCHEDULED,
        customer_email: Optional[str] = None,
        customer_phone: Optional[str] = None,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.customer_name = customer_name
        self.vehicle_id = vehicle_id
        self.start_time = start_time
        self.end_time = end_time
        self.status = status
        self.customer_email = customer_email
        self.customer_phone = customer_phone
        self.notes = notes

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def __repr__(self) -> str:
        return (
            f"Booking(id={self.id!r}, vehicle_id={self.vehicle_id!r}, "
            f"{self.start_time.isoformat()}..{self.end_time.isoformat()}, "
            f"status={self.status.value})"
        )
