"""Automatic vehicle status changes driven by the downtime lifecycle.

Bookings never change a vehicle's status on their own; staff set
in_use/broken directly.
"""

from datetime import datetime

from .downtime import DowntimeBlock
from .status import DowntimeType, VehicleStatus

# repairs and other have no status of their own
DOWNTIME_STATUS = {
    DowntimeType.MAINTENANCE: VehicleStatus.MAINTENANCE,
    DowntimeType.REFUELING: VehicleStatus.REFUELING,
    DowntimeType.REPAIRS: VehicleStatus.MAINTENANCE,
    DowntimeType.OTHER: VehicleStatus.MAINTENANCE,
}

RELEASED_ON_COMPLETION = (VehicleStatus.MAINTENANCE, VehicleStatus.REFUELING)


def status_after_downtime_created(
    current: VehicleStatus, block: DowntimeBlock, as_of: datetime
) -> VehicleStatus:
    """New vehicle status once `block` is scheduled at as_of."""
    if block.completed or not block.contains(as_of):
        return current
    if current != VehicleStatus.AVAILABLE:
        return current
    return DOWNTIME_STATUS[block.type]


def status_after_downtime_completed(current: VehicleStatus) -> VehicleStatus:
    """New vehicle status once a downtime block is marked completed."""
    if current in RELEASED_ON_COMPLETION:
        return VehicleStatus.AVAILABLE
    return current
