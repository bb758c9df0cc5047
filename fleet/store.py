"""Entity store: per-type repositories with in-memory and YAML-file backends."""

import copy
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar, Union

from .booking import Booking
from .downtime import DowntimeBlock
from .loader import (
    create_fleet_file,
    load_fleet_data,
    record_from_dict,
    record_to_dict,
    save_fleet_data,
)
from .vehicle import Vehicle

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Repository(Generic[T]):
    """
    Contract the fleet core relies on.

    `fields` are constructor keyword arguments (snake_case attribute names).
    Each call is atomic on its own; nothing spans calls.
    """

    record_type: Type[T]

    def list(self) -> List[T]:
        raise NotImplementedError

    def get(self, record_id: int) -> Optional[T]:
        raise NotImplementedError

    def create(self, fields: Dict[str, Any]) -> T:
        raise NotImplementedError

    def update(self, record_id: int, fields: Dict[str, Any]) -> Optional[T]:
        raise NotImplementedError

    def delete(self, record_id: int) -> bool:
        raise NotImplementedError


class MemoryRepository(Repository[T]):
    """Records kept in a dict, ids handed out from a counter."""

    def __init__(self, record_type: Type[T]):
        self.record_type = record_type
        self._records: Dict[int, T] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def list(self) -> List[T]:
        with self._lock:
            return [copy.copy(r) for r in self._records.values()]

    def get(self, record_id: int) -> Optional[T]:
        with self._lock:
            record = self._records.get(record_id)
            return copy.copy(record) if record is not None else None

    def create(self, fields: Dict[str, Any]) -> T:
        with self._lock:
            record_id = self._next_id
            self._next_id += 1
            record = self.record_type(id=record_id, **fields)
            self._records[record_id] = record
            return copy.copy(record)

    def update(self, record_id: int, fields: Dict[str, Any]) -> Optional[T]:
        with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                return None
            merged = {**vars(existing), **fields, "id": record_id}
            record = self.record_type(**merged)
            self._records[record_id] = record
            return copy.copy(record)

    def delete(self, record_id: int) -> bool:
        with self._lock:
            return self._records.pop(record_id, None) is not None


class YamlRepository(Repository[T]):
    """
    One section of a fleet YAML file.

    Every call loads the file, works on the raw data, and writes it back.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        section: str,
        record_type: Type[T],
        lock: threading.Lock,
    ):
        self.filename = Path(filename)
        self.section = section
        self.record_type = record_type
        self._lock = lock

    def _find(self, data: Dict[str, Any], record_id: int) -> Optional[int]:
        for index, raw in enumerate(data[self.section]):
            if raw.get("id") == record_id:
                return index
        return None

    def list(self) -> List[T]:
        with self._lock:
            data = load_fleet_data(self.filename)
        return [record_from_dict(self.record_type, raw) for raw in data[self.section]]

    def get(self, record_id: int) -> Optional[T]:
        with self._lock:
            data = load_fleet_data(self.filename)
        index = self._find(data, record_id)
        if index is None:
            return None
        return record_from_dict(self.record_type, data[self.section][index])

    def create(self, fields: Dict[str, Any]) -> T:
        with self._lock:
            data = load_fleet_data(self.filename)
            sequences = data["sequences"]
            existing_ids = [raw.get("id", 0) for raw in data[self.section]]
            record_id = max([sequences.get(self.section, 1)] + [i + 1 for i in existing_ids])
            sequences[self.section] = record_id + 1

            record = self.record_type(id=record_id, **fields)
            data[self.section].append(record_to_dict(record))
            save_fleet_data(self.filename, data)
        return record

    def update(self, record_id: int, fields: Dict[str, Any]) -> Optional[T]:
        with self._lock:
            data = load_fleet_data(self.filename)
            index = self._find(data, record_id)
            if index is None:
                return None
            existing = record_from_dict(self.record_type, data[self.section][index])
            merged = {**vars(existing), **fields, "id": record_id}
            record = self.record_type(**merged)
            data[self.section][index] = record_to_dict(record)
            save_fleet_data(self.filename, data)
        return record

    def delete(self, record_id: int) -> bool:
        with self._lock:
            data = load_fleet_data(self.filename)
            index = self._find(data, record_id)
            if index is None:
                return False
            del data[self.section][index]
            save_fleet_data(self.filename, data)
        return True


class FleetStore:
    """The three repositories the fleet service works against."""

    def __init__(
        self,
        vehicles: Repository[Vehicle],
        bookings: Repository[Booking],
        downtime: Repository[DowntimeBlock],
    ):
        self.vehicles = vehicles
        self.bookings = bookings
        self.downtime = downtime


def memory_store() -> FleetStore:
    """Empty in-memory store."""
    return FleetStore(
        MemoryRepository(Vehicle),
        MemoryRepository(Booking),
        MemoryRepository(DowntimeBlock),
    )


def yaml_store(filename: Union[str, Path]) -> FleetStore:
    """Store backed by a fleet YAML file, created empty if missing."""
    path = Path(filename)
    if not path.exists():
        logger.info("Creating fleet file %s", path)
        create_fleet_file(path)
    lock = threading.Lock()
    return FleetStore(
        YamlRepository(path, "vehicles", Vehicle, lock),
        YamlRepository(path, "bookings", Booking, lock),
        YamlRepository(path, "downtime", DowntimeBlock, lock),
    )
