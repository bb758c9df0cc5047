"""Status enums for vehicles, bookings and downtime blocks."""

from enum import Enum


class VehicleStatus(Enum):
    """Displayed status of a jet ski."""

    AVAILABLE = "available"
    IN_USE = "in_use"
    REFUELING = "refueling"
    MAINTENANCE = "maintenance"
    BROKEN = "broken"


class BookingStatus(Enum):
    """Lifecycle of a customer booking."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"

    @property
    def is_active(self) -> bool:
        """Active bookings take part in conflict checks."""
        return self not in (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


class DowntimeType(Enum):
    """Reason a vehicle is blocked out."""

    MAINTENANCE = "maintenance"
    REFUELING = "refueling"
    REPAIRS = "repairs"
    OTHER = "other"
