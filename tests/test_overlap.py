#!/usr/bin/env python3
"""Tests for interval checks and overlap detection."""

from datetime import datetime, timezone

import pytest

from fleet import (
    Booking,
    BookingStatus,
    DowntimeBlock,
    DowntimeType,
    InvalidInterval,
    check_interval,
    conflicts,
    find_conflicts,
    overlaps,
)
from fleet.overlap import describe_reservation


def at(hour, minute=0):
    return datetime(2026, 7, 1, hour, minute, tzinfo=timezone.utc)


def booking(id, vehicle_id, start, end, status=BookingStatus.SCHEDULED):
    return Booking(id, f"Customer {id}", vehicle_id, start, end, status=status)


def block(id, vehicle_id, start, end, completed=False):
    return DowntimeBlock(id, vehicle_id, DowntimeType.MAINTENANCE, start, end, completed)


# =============================================================================
# check_interval tests
# =============================================================================


class TestCheckInterval:
    """Tests for check_interval."""

    def test_valid_interval(self):
        check_interval(at(10), at(11))

    def test_point_interval_allowed(self):
        check_interval(at(10), at(10))

    def test_point_rejected_when_strict(self):
        with pytest.raises(InvalidInterval):
            check_interval(at(10), at(10), strict=True)

    def test_inverted_rejected(self):
        with pytest.raises(InvalidInterval) as exc:
            check_interval(at(11), at(10))
        assert exc.value.to_dict()["interval"]["start"] == at(11).isoformat()

    def test_non_datetime_rejected(self):
        with pytest.raises(InvalidInterval):
            check_interval("2026-07-01T10:00", at(11))

    def test_naive_and_aware_rejected(self):
        with pytest.raises(InvalidInterval):
            check_interval(datetime(2026, 7, 1, 10), at(11))


# =============================================================================
# overlaps tests
# =============================================================================


class TestOverlaps:
    """Tests for the overlap rule."""

    def test_existing_covers_start(self):
        assert overlaps(at(9), at(11), at(10), at(12))

    def test_existing_covers_end(self):
        assert overlaps(at(11), at(13), at(10), at(12))

    def test_existing_inside_request(self):
        assert overlaps(at(10, 30), at(11), at(10), at(12))

    def test_request_inside_existing(self):
        assert overlaps(at(9), at(13), at(10), at(12))

    def test_identical(self):
        assert overlaps(at(10), at(12), at(10), at(12))

    def test_touching_before_is_free(self):
        assert not overlaps(at(8), at(10), at(10), at(12))

    def test_touching_after_is_free(self):
        assert not overlaps(at(12), at(14), at(10), at(12))

    def test_disjoint(self):
        assert not overlaps(at(14), at(15), at(10), at(12))

    def test_point_inside(self):
        assert overlaps(at(10), at(12), at(11), at(11))

    def test_point_at_start_collides(self):
        assert overlaps(at(10), at(12), at(10), at(10))

    def test_point_at_end_is_free(self):
        assert not overlaps(at(10), at(12), at(12), at(12))

    def test_point_before_start_is_free(self):
        assert not overlaps(at(10), at(12), at(9, 59), at(9, 59))

    def test_point_after_end_is_free(self):
        assert not overlaps(at(10), at(12), at(12, 30), at(12, 30))


# =============================================================================
# conflicts / find_conflicts tests
# =============================================================================


class TestConflicts:
    """Tests for conflicts and find_conflicts."""

    def test_booking_conflict(self):
        bookings = [booking(1, 1, at(13), at(14, 30))]
        assert conflicts(1, at(14), at(15), bookings, [])

    def test_point_at_booking_end_is_free(self):
        bookings = [booking(1, 1, at(10), at(11))]
        assert not conflicts(1, at(11), at(11), bookings, [])

    def test_point_at_downtime_end_is_free(self):
        assert not conflicts(1, at(12), at(12), [], [block(1, 1, at(8), at(12))])

    def test_other_vehicle_ignored(self):
        bookings = [booking(1, 2, at(13), at(14, 30))]
        assert not conflicts(1, at(14), at(15), bookings, [])

    def test_back_to_back_is_free(self):
        bookings = [booking(1, 1, at(13), at(14, 30))]
        assert not conflicts(1, at(14, 30), at(15), bookings, [])

    @pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.COMPLETED])
    def test_inactive_booking_ignored(self, status):
        bookings = [booking(1, 1, at(13), at(14, 30), status=status)]
        assert not conflicts(1, at(13), at(14), bookings, [])

    def test_interrupted_booking_blocks(self):
        bookings = [booking(1, 1, at(13), at(14, 30), status=BookingStatus.INTERRUPTED)]
        assert conflicts(1, at(13), at(14), bookings, [])

    def test_downtime_conflict(self):
        assert conflicts(1, at(9), at(10), [], [block(1, 1, at(8), at(12))])

    def test_completed_downtime_ignored(self):
        assert not conflicts(1, at(9), at(10), [], [block(1, 1, at(8), at(12), completed=True)])

    def test_exclude_booking_id(self):
        bookings = [booking(1, 1, at(13), at(14, 30))]
        assert not conflicts(1, at(13), at(15), bookings, [], exclude_booking_id=1)

    def test_find_conflicts_returns_records(self):
        bookings = [booking(1, 1, at(13), at(14)), booking(2, 1, at(16), at(17))]
        downtime = [block(7, 1, at(12), at(13, 30))]
        found = find_conflicts(1, at(12), at(15), bookings, downtime)
        assert [r.id for r in found] == [1, 7]

    def test_invalid_interval_raises(self):
        with pytest.raises(InvalidInterval):
            conflicts(1, at(15), at(14), [], [])


class TestDescribeReservation:
    """Tests for describe_reservation."""

    def test_booking(self):
        d = describe_reservation(booking(3, 1, at(13), at(14)))
        assert d == {
            "kind": "booking",
            "id": 3,
            "startTime": "2026-07-01T13:00:00+00:00",
            "endTime": "2026-07-01T14:00:00+00:00",
        }

    def test_downtime(self):
        assert describe_reservation(block(4, 1, at(8), at(9)))["kind"] == "downtime"
