"""DowntimeBlock class for maintenance, refueling and repair windows."""

from datetime import datetime
from typing import Optional

from .status import DowntimeType


class DowntimeBlock:
    """A period during which a vehicle cannot be rented."""

    def __init__(
        self,
        id: int,
        vehicle_id: int,
        type: DowntimeType,
        start_time: datetime,
        end_time: datetime,
        completed: bool = False,
        notes: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.type = type
        self.start_time = start_time
        self.end_time = end_time
        self.completed = completed or False
        self.notes = notes

    @property
    def is_active(self) -> bool:
        """Completed blocks no longer block the vehicle."""
        return not self.completed

    def contains(self, instant: datetime) -> bool:
        return self.start_time <= instant < self.end_time

    def __repr__(self) -> str:
        return (
            f"DowntimeBlock(id={self.id!r}, vehicle_id={self.vehicle_id!r}, "
            f"type={self.type.value}, completed={self.completed})"
        )
