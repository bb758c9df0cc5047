#!/usr/bin/env python3
"""Tests for status enums."""

import pytest

from fleet import BookingStatus, DowntimeType, VehicleStatus
from jetski import BOOKING_LABELS, STATUS_LABELS


class TestVehicleStatus:
    """Tests for VehicleStatus enum."""

    def test_values(self):
        assert [s.value for s in VehicleStatus] == [
            "available",
            "in_use",
            "refueling",
            "maintenance",
            "broken",
        ]

    def test_from_value(self):
        assert VehicleStatus("in_use") is VehicleStatus.IN_USE

    def test_unknown_value_raises(self):
        with pytest.raises(ValueError):
            VehicleStatus("sunk")

    def test_every_status_has_label(self):
        """Adding a status without a display label should fail here."""
        assert set(STATUS_LABELS) == set(VehicleStatus)


class TestBookingStatus:
    """Tests for BookingStatus enum."""

    @pytest.mark.parametrize(
        "status",
        [BookingStatus.SCHEDULED, BookingStatus.IN_PROGRESS, BookingStatus.INTERRUPTED],
    )
    def test_active(self, status):
        assert status.is_active is True

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
    def test_inactive(self, status):
        assert status.is_active is False

    def test_every_status_has_label(self):
        assert set(BOOKING_LABELS) == set(BookingStatus)


class TestDowntimeType:
    """Tests for DowntimeType enum."""

    def test_values(self):
        assert {t.value for t in DowntimeType} == {
            "maintenance",
            "refueling",
            "repairs",
            "other",
        }
