"""Vehicle class for a single jet ski in the fleet."""

from datetime import datetime
from typing import Optional

from .status import VehicleStatus


def normalize_brand(brand: Optional[str]) -> str:
    """Lookup key for case-insensitive brand matching."""
    return (brand or "").strip().casefold()


class Vehicle:
    """A rentable jet ski."""

    def __init__(
        self,
        id: int,
        name: str,
        brand: str,
        status: VehicleStatus = VehicleStatus.AVAILABLE,
        last_maintenance_date: Optional[datetime] = None,
        hours_used: int = 0,
    ):
        self.id = id
        self.name = name
        self.brand = brand
        self.status = status
        self.last_maintenance_date = last_maintenance_date
        self.hours_used = hours_used or 0

    @property
    def brand_key(self) -> str:
        return normalize_brand(self.brand)

    @property
    def is_available(self) -> bool:
        return self.status == VehicleStatus.AVAILABLE

    def __repr__(self) -> str:
        return f"Vehicle(id={self.id!r}, name={self.name!r}, status={self.status.value})"
