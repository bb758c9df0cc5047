"""Combination windows: when sets of same-brand vehicles are free together."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, FrozenSet, Iterable, List, Optional

from .availability import filter_by_brand
from .booking import Booking
from .downtime import DowntimeBlock
from .overlap import Reservation, active_reservations, check_interval, check_timestamp, occupies
from .vehicle import Vehicle


@dataclass
class AvailabilityWindow:
    """A maximal interval during which exactly `vehicles` are free together."""

    start: datetime
    until: datetime
    vehicles: List[Vehicle] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.vehicles)

    @property
    def vehicle_ids(self) -> FrozenSet[int]:
        return frozenset(v.id for v in self.vehicles)


def collect_boundaries(
    reservations: Iterable[Reservation],
    as_of: datetime,
    until: Optional[datetime] = None,
) -> List[datetime]:
    """
    Sorted distinct instants where availability can change.

    Starts at as_of. Instants at or before as_of, or at or after until,
    are dropped; until itself closes the axis when given.
    """
    points = {as_of}
    for r in reservations:
        for instant in (r.start_time, r.end_time):
            if instant <= as_of:
                continue
            if until is not None and instant >= until:
                continue
            points.add(instant)
    if until is not None:
        points.add(until)
    return sorted(points)


def merge_windows(windows: Iterable[AvailabilityWindow]) -> List[AvailabilityWindow]:
    """Join touching windows that carry the same vehicle set."""
    merged: List[AvailabilityWindow] = []
    for window in windows:
        last = merged[-1] if merged else None
        if (
            last is not None
            and last.until == window.start
            and last.vehicle_ids == window.vehicle_ids
        ):
            last.until = window.until
        else:
            merged.append(
                AvailabilityWindow(window.start, window.until, list(window.vehicles))
            )
    return merged


def combination_windows(
    vehicles: Iterable[Vehicle],
    bookings: Iterable[Booking],
    downtime: Iterable[DowntimeBlock],
    as_of: datetime,
    until: Optional[datetime] = None,
    brand: Optional[str] = None,
    min_count: int = 1,
) -> List[AvailabilityWindow]:
    """
    Sweep the time axis from as_of and report which vehicles are free together.

    Every boundary of an active booking or downtime block of the filtered
    vehicles splits the axis. Within two neighbouring boundaries nothing
    changes, so the left boundary is sampled for the whole sub-window.
    Empty sub-windows are skipped, then neighbours with identical vehicle
    sets are merged and windows with fewer than min_count vehicles dropped.

    Without `until` the axis ends at the last boundary after as_of, so no
    open-ended trailing window is reported.
    """
    check_timestamp(as_of, "as_of")
    if until is not None:
        check_interval(as_of, until)

    subset = filter_by_brand(vehicles, brand)
    if not subset:
        return []

    ids = {v.id for v in subset}
    by_vehicle: Dict[int, List[Reservation]] = defaultdict(list)
    for r in active_reservations(bookings, downtime):
        if r.vehicle_id in ids:
            by_vehicle[r.vehicle_id].append(r)

    reservations = [r for rs in by_vehicle.values() for r in rs]
    boundaries = collect_boundaries(reservations, as_of, until)

    raw: List[AvailabilityWindow] = []
    for start, end in zip(boundaries, boundaries[1:]):
        free = [
            v
            for v in subset
            if v.is_available and not any(occupies(r, start) for r in by_vehicle[v.id])
        ]
        if free:
            raw.append(AvailabilityWindow(start, end, free))

    return [w for w in merge_windows(raw) if w.count >= min_count]
