"""Dashboard counts for the fleet."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List

from dateutil.relativedelta import relativedelta

from .booking import Booking
from .downtime import DowntimeBlock
from .status import DowntimeType
from .vehicle import Vehicle


@dataclass
class FleetSummary:
    """Aggregated counts shown on the dashboard."""

    total_vehicles: int
    available_vehicles: int
    today_bookings: int
    maintenance_alerts: int
    refueling_needed: int


def bookings_on_day(bookings: Iterable[Booking], as_of: datetime) -> List[Booking]:
    """Bookings of any status that start on as_of's calendar day."""
    day_start = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = day_start + relativedelta(days=1)
    return [b for b in bookings if day_start <= b.start_time < day_end]


def count_pending(downtime: Iterable[DowntimeBlock], kind: DowntimeType) -> int:
    """Active downtime blocks of one type."""
    return sum(1 for d in downtime if d.is_active and d.type == kind)


def summarize_fleet(
    vehicles: Iterable[Vehicle],
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
    as_of: datetime,
) -> FleetSummary:
    vehicles = list(vehicles)
    downtime = list(downtime)
    return FleetSummary(
        total_vehicles=len(vehicles),
        available_vehicles=sum(1 for v in vehicles if v.is_available),
        today_bookings=len(bookings_on_day(bookings, as_of)),
        maintenance_alerts=count_pending(downtime, DowntimeType.MAINTENANCE),
        refueling_needed=count_pending(downtime, DowntimeType.REFUELING),
    )
