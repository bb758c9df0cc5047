"""Fleet service: the operations the web app and CLI run against a store."""

import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional

from .availability import available_vehicles, current_booking
from .booking import Booking
from .downtime import DowntimeBlock
from .errors import (
    AvailabilityConflict,
    RecordNotFound,
    ValidationFailed,
    VehicleInUse,
    VehicleNotFound,
)
from .overlap import check_interval, describe_reservation, find_conflicts, overlaps
from .status import BookingStatus, VehicleStatus
from .store import FleetStore
from .summary import FleetSummary, bookings_on_day, summarize_fleet
from .transitions import status_after_downtime_completed, status_after_downtime_created
from .vehicle import Vehicle
from .windows import AvailabilityWindow, combination_windows

logger = logging.getLogger(__name__)

INTERVAL_FIELDS = ("start_time", "end_time", "vehicle_id")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require(fields: Dict[str, Any], names: List[str]) -> None:
    missing = [n for n in names if fields.get(n) is None]
    if missing:
        raise ValidationFailed(
            "Missing required fields",
            [{"field": n, "message": "This field is required"} for n in missing],
        )


class FleetService:
    """
    Coordinates store snapshots with the availability core.

    Check-then-write sequences run under a per-vehicle lock so two requests
    in the same process cannot double-book a vehicle.
    """

    def __init__(self, store: FleetStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock
        self._locks: Dict[int, threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    @contextmanager
    def _vehicle_lock(self, vehicle_id: int) -> Iterator[None]:
        with self._locks_guard:
            lock = self._locks[vehicle_id]
        with lock:
            yield

    def _require_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self.store.vehicles.get(vehicle_id)
        if vehicle is None:
            raise VehicleNotFound(vehicle_id)
        return vehicle

    # -------------------------------------------------------------------------
    # Vehicles
    # -------------------------------------------------------------------------

    def list_vehicles(self) -> List[Vehicle]:
        return self.store.vehicles.list()

    def get_vehicle(self, vehicle_id: int) -> Vehicle:
        vehicle = self.store.vehicles.get(vehicle_id)
        if vehicle is None:
            raise RecordNotFound("vehicle", vehicle_id)
        return vehicle

    def add_vehicle(self, fields: Dict[str, Any]) -> Vehicle:
        _require(fields, ["name", "brand"])
        fields = {k: v for k, v in fields.items() if v is not None}
        if fields.get("hours_used", 0) < 0:
            raise ValidationFailed(
                "Invalid vehicle data",
                [{"field": "hoursUsed", "message": "Must not be negative"}],
            )
        vehicle = self.store.vehicles.create(fields)
        logger.info("Added vehicle %s (%s)", vehicle.id, vehicle.name)
        return vehicle

    def update_vehicle(self, vehicle_id: int, fields: Dict[str, Any]) -> Vehicle:
        """Partial update. Status may be set to anything (staff override)."""
        vehicle = self.store.vehicles.update(vehicle_id, fields)
        if vehicle is None:
            raise RecordNotFound("vehicle", vehicle_id)
        if "status" in fields:
            logger.info("Vehicle %s status set to %s", vehicle_id, vehicle.status.value)
        return vehicle

    def delete_vehicle(self, vehicle_id: int) -> None:
        """
        Delete a vehicle that no active booking or downtime refers to.

        Cancelled/completed bookings and completed downtime keep the old id.
        """
        with self._vehicle_lock(vehicle_id):
            self.get_vehicle(vehicle_id)
            booking_ids = [
                b.id
                for b in self.store.bookings.list()
                if b.vehicle_id == vehicle_id and b.is_active
            ]
            downtime_ids = [
                d.id
                for d in self.store.downtime.list()
                if d.vehicle_id == vehicle_id and d.is_active
            ]
            if booking_ids or downtime_ids:
                logger.warning("Refusing to delete vehicle %s: still referenced", vehicle_id)
                raise VehicleInUse(vehicle_id, booking_ids, downtime_ids)
            self.store.vehicles.delete(vehicle_id)
        logger.info("Deleted vehicle %s", vehicle_id)

    # -------------------------------------------------------------------------
    # Bookings
    # -------------------------------------------------------------------------

    def list_bookings(self) -> List[Booking]:
        return self.store.bookings.list()

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.store.bookings.get(booking_id)
        if booking is None:
            raise RecordNotFound("booking", booking_id)
        return booking

    def todays_bookings(self, as_of: Optional[datetime] = None) -> List[Booking]:
        return bookings_on_day(self.store.bookings.list(), as_of or self.clock())

    def create_booking(self, fields: Dict[str, Any]) -> Booking:
        """
        Book a vehicle.

        The vehicle must be in available status and free of active bookings
        and downtime for the whole interval.
        """
        _require(fields, ["customer_name", "vehicle_id", "start_time", "end_time"])
        fields = {k: v for k, v in fields.items() if v is not None}
        start, end = fields["start_time"], fields["end_time"]
        check_interval(start, end, strict=True)
        vehicle_id = fields["vehicle_id"]
        self._require_vehicle(vehicle_id)

        with self._vehicle_lock(vehicle_id):
            vehicles = self.store.vehicles.list()
            bookings = self.store.bookings.list()
            downtime = self.store.downtime.list()
            free = available_vehicles(start, end, vehicles, bookings, downtime)
            if not any(v.id == vehicle_id for v in free):
                clashes = find_conflicts(vehicle_id, start, end, bookings, downtime)
                logger.warning(
                    "Rejected booking for vehicle %s %s..%s (%d conflicts)",
                    vehicle_id, start.isoformat(), end.isoformat(), len(clashes),
                )
                raise AvailabilityConflict(
                    vehicle_id, start, end, [describe_reservation(r) for r in clashes]
                )
            booking = self.store.bookings.create(fields)

        logger.info("Created booking %s for vehicle %s", booking.id, vehicle_id)
        return booking

    def update_booking(self, booking_id: int, fields: Dict[str, Any]) -> Booking:
        """
        Partial update.

        Changing the time or vehicle re-checks for overlaps with the other
        active bookings and downtime, unless the same update cancels it.
        """
        existing = self.get_booking(booking_id)
        moving = any(fields.get(name) is not None for name in INTERVAL_FIELDS)
        if not moving or fields.get("status") == BookingStatus.CANCELLED:
            return self._save_booking(booking_id, fields)

        start = fields.get("start_time") or existing.start_time
        end = fields.get("end_time") or existing.end_time
        vehicle_id = fields.get("vehicle_id") or existing.vehicle_id
        check_interval(start, end, strict=True)
        self._require_vehicle(vehicle_id)

        with self._vehicle_lock(vehicle_id):
            clashes = find_conflicts(
                vehicle_id,
                start,
                end,
                self.store.bookings.list(),
                self.store.downtime.list(),
                exclude_booking_id=booking_id,
            )
            if clashes:
                logger.warning("Rejected change to booking %s: overlaps", booking_id)
                raise AvailabilityConflict(
                    vehicle_id, start, end, [describe_reservation(r) for r in clashes]
                )
            return self._save_booking(booking_id, fields)

    def _save_booking(self, booking_id: int, fields: Dict[str, Any]) -> Booking:
        booking = self.store.bookings.update(booking_id, fields)
        if booking is None:
            raise RecordNotFound("booking", booking_id)
        logger.info("Updated booking %s", booking_id)
        return booking

    def delete_booking(self, booking_id: int) -> None:
        if not self.store.bookings.delete(booking_id):
            raise RecordNotFound("booking", booking_id)
        logger.info("Deleted booking %s", booking_id)

    # -------------------------------------------------------------------------
    # Downtime
    # -------------------------------------------------------------------------

    def list_downtime(self) -> List[DowntimeBlock]:
        return self.store.downtime.list()

    def get_downtime(self, block_id: int) -> DowntimeBlock:
        block = self.store.downtime.get(block_id)
        if block is None:
            raise RecordNotFound("downtime", block_id)
        return block

    def create_downtime(
        self, fields: Dict[str, Any], as_of: Optional[datetime] = None
    ) -> DowntimeBlock:
        """
        Block a vehicle out.

        Overlapping active downtime on the same vehicle is rejected; bookings
        inside the block are kept and logged. A block running at as_of moves
        an available vehicle into maintenance or refueling.
        """
        _require(fields, ["vehicle_id", "type", "start_time", "end_time"])
        fields = {k: v for k, v in fields.items() if v is not None}
        start, end = fields["start_time"], fields["end_time"]
        check_interval(start, end, strict=True)
        vehicle_id = fields["vehicle_id"]
        as_of = as_of or self.clock()

        with self._vehicle_lock(vehicle_id):
            vehicle = self._require_vehicle(vehicle_id)
            blocks = self._downtime_clashes(vehicle_id, start, end)
            if blocks:
                raise AvailabilityConflict(
                    vehicle_id,
                    start,
                    end,
                    [describe_reservation(d) for d in blocks],
                    message="Vehicle already has downtime scheduled in this time slot",
                )
            affected = find_conflicts(vehicle_id, start, end, self.store.bookings.list(), [])
            if affected:
                logger.warning(
                    "Downtime on vehicle %s overlaps bookings %s",
                    vehicle_id, [b.id for b in affected],
                )

            block = self.store.downtime.create(fields)
            new_status = status_after_downtime_created(vehicle.status, block, as_of)
            if new_status != vehicle.status:
                self.store.vehicles.update(vehicle_id, {"status": new_status})
                logger.info(
                    "Vehicle %s status %s -> %s (downtime %s)",
                    vehicle_id, vehicle.status.value, new_status.value, block.id,
                )

        logger.info("Created downtime %s for vehicle %s", block.id, vehicle_id)
        return block

    def _downtime_clashes(
        self,
        vehicle_id: int,
        start: datetime,
        end: datetime,
        exclude_block_id: Optional[int] = None,
    ) -> List[DowntimeBlock]:
        return [
            d
            for d in self.store.downtime.list()
            if d.vehicle_id == vehicle_id
            and d.id != exclude_block_id
            and d.is_active
            and overlaps(d.start_time, d.end_time, start, end)
        ]

    def update_downtime(self, block_id: int, fields: Dict[str, Any]) -> DowntimeBlock:
        """
        Partial update. Completing a block releases the vehicle.

        Moving an active block in time or onto another vehicle is rejected
        when it would overlap other active downtime on that vehicle.
        """
        existing = self.get_downtime(block_id)
        start = fields.get("start_time") or existing.start_time
        end = fields.get("end_time") or existing.end_time
        vehicle_id = fields.get("vehicle_id") or existing.vehicle_id
        check_interval(start, end, strict=True)
        if fields.get("vehicle_id") is not None:
            self._require_vehicle(vehicle_id)

        moving = any(fields.get(name) is not None for name in INTERVAL_FIELDS)
        completed = fields.get("completed")
        stays_active = not (existing.completed if completed is None else completed)

        with self._vehicle_lock(vehicle_id):
            if moving and stays_active:
                blocks = self._downtime_clashes(vehicle_id, start, end, block_id)
                if blocks:
                    logger.warning("Rejected change to downtime %s: overlaps", block_id)
                    raise AvailabilityConflict(
                        vehicle_id,
                        start,
                        end,
                        [describe_reservation(d) for d in blocks],
                        message="Vehicle already has downtime scheduled in this time slot",
                    )
            block = self.store.downtime.update(block_id, fields)
            if block is None:
                raise RecordNotFound("downtime", block_id)
            logger.info("Updated downtime %s", block_id)

            if completed is True and not existing.completed:
                self._release_vehicle(block.vehicle_id, block_id)
        return block

    def complete_downtime(self, block_id: int) -> DowntimeBlock:
        return self.update_downtime(block_id, {"completed": True})

    def _release_vehicle(self, vehicle_id: int, block_id: int) -> None:
        vehicle = self.store.vehicles.get(vehicle_id)
        if vehicle is None:
            return
        new_status = status_after_downtime_completed(vehicle.status)
        if new_status != vehicle.status:
            self.store.vehicles.update(vehicle_id, {"status": new_status})
            logger.info(
                "Vehicle %s status %s -> %s (downtime %s completed)",
                vehicle_id, vehicle.status.value, new_status.value, block_id,
            )

    def delete_downtime(self, block_id: int) -> None:
        """Delete without touching the vehicle's status."""
        if not self.store.downtime.delete(block_id):
            raise RecordNotFound("downtime", block_id)
        logger.info("Deleted downtime %s", block_id)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def available_vehicles(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Vehicle]:
        """Free vehicles for [start, end). Defaults to the current instant."""
        now = self.clock()
        start = start or now
        end = end or start
        return available_vehicles(
            start,
            end,
            self.store.vehicles.list(),
            self.store.bookings.list(),
            self.store.downtime.list(),
        )

    def current_booking(
        self, vehicle_id: int, as_of: Optional[datetime] = None
    ) -> Optional[Booking]:
        self.get_vehicle(vehicle_id)
        return current_booking(vehicle_id, self.store.bookings.list(), as_of or self.clock())

    def availability_windows(
        self,
        brand: Optional[str] = None,
        as_of: Optional[datetime] = None,
        until: Optional[datetime] = None,
        min_count: int = 1,
    ) -> List[AvailabilityWindow]:
        return combination_windows(
            self.store.vehicles.list(),
            self.store.bookings.list(),
            self.store.downtime.list(),
            as_of or self.clock(),
            until=until,
            brand=brand,
            min_count=min_count,
        )

    def dashboard_summary(self, as_of: Optional[datetime] = None) -> FleetSummary:
        return summarize_fleet(
            self.store.vehicles.list(),
            self.store.bookings.list(),
            self.store.downtime.list(),
            as_of or self.clock(),
        )

    def status_counts(self) -> Dict[VehicleStatus, int]:
        """Vehicles per status, every status present."""
        counts = {status: 0 for status in VehicleStatus}
        for vehicle in self.store.vehicles.list():
            counts[vehicle.status] += 1
        return counts
