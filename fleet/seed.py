"""Demo fleet used when the app starts with an empty in-memory store."""

from datetime import datetime, timezone

from dateutil.relativedelta import relativedelta

from .status import BookingStatus, DowntimeType, VehicleStatus
from .store import FleetStore


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def seed_fleet(store: FleetStore, as_of: datetime) -> None:
    """Five jet skis plus bookings and downtime around as_of's day."""
    today = as_of.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + relativedelta(days=1)

    def at(day: datetime, hours: float) -> datetime:
        return day + relativedelta(minutes=int(hours * 60))

    runner1 = store.vehicles.create({
        "name": "Wave Runner 1",
        "brand": "Hardliner",
        "status": VehicleStatus.AVAILABLE,
        "last_maintenance_date": _utc(2023, 5, 30),
        "hours_used": 128,
    })
    runner2 = store.vehicles.create({
        "name": "Wave Runner 2",
        "brand": "Hardliner",
        "status": VehicleStatus.IN_USE,
        "last_maintenance_date": _utc(2023, 6, 5),
        "hours_used": 142,
    })
    glider = store.vehicles.create({
        "name": "Sea Glider",
        "brand": "WaveMotion",
        "status": VehicleStatus.REFUELING,
        "last_maintenance_date": _utc(2023, 6, 10),
        "hours_used": 95,
    })
    drifter = store.vehicles.create({
        "name": "Sea Drifter",
        "brand": "Hardliner",
        "status": VehicleStatus.MAINTENANCE,
        "last_maintenance_date": _utc(2023, 4, 15),
        "hours_used": 215,
    })
    cruiser = store.vehicles.create({
        "name": "Wave Cruiser",
        "brand": "Hardliner",
        "status": VehicleStatus.IN_USE,
        "last_maintenance_date": _utc(2023, 6, 1),
        "hours_used": 155,
    })

    bookings = [
        ("John Smith", "john@example.com", "555-123-4567", runner2, today, 13, 14.5,
         BookingStatus.IN_PROGRESS, "First time rider"),
        ("Emma Johnson", "emma@example.com", "555-789-0123", runner1, today, 15, 16.5,
         BookingStatus.SCHEDULED, None),
        ("Michael Brown", "michael@example.com", "555-456-7890", glider, today, 11, 12.5,
         BookingStatus.COMPLETED, "Returning customer"),
        ("Sarah Wilson", "sarah@example.com", "555-234-5678", runner1, tomorrow, 10, 11.5,
         BookingStatus.SCHEDULED, None),
        ("David Miller", "david@example.com", "555-345-6789", cruiser, today, 12.5, 16.5,
         BookingStatus.IN_PROGRESS, "Extended booking"),
    ]
    for name, email, phone, vehicle, day, start, end, status, notes in bookings:
        store.bookings.create({
            "customer_name": name,
            "customer_email": email,
            "customer_phone": phone,
            "vehicle_id": vehicle.id,
            "start_time": at(day, start),
            "end_time": at(day, end),
            "status": status,
            "notes": notes,
        })

    downtime = [
        (drifter, DowntimeType.MAINTENANCE, today, 8, 12, "Regular service check"),
        (glider, DowntimeType.REFUELING, today, 12.5, 13, None),
        (runner1, DowntimeType.MAINTENANCE, tomorrow, 8, 11, "Oil change"),
    ]
    for vehicle, kind, day, start, end, notes in downtime:
        store.downtime.create({
            "vehicle_id": vehicle.id,
            "type": kind,
            "start_time": at(day, start),
            "end_time": at(day, end),
            "completed": False,
            "notes": notes,
        })
