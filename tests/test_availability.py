from datetime import datetime
from types import SimpleNamespace

from services.availability import check_availability
from services.time_range import TimeRange


def booking(id, room_id, h1, h2, status="confirmed"):
    return SimpleNamespace(
        id=id,
        room_id=room_id,
        status=status,
        start_time=datetime(2026, 10, 20, h1),
        end_time=datetime(2026, 10, 20, h2),
    )


def window(h1, h2):
    return TimeRange(datetime(2026, 10, 20, h1), datetime(2026, 10, 20, h2))


def test_free_room_is_available():
    result = check_availability(1, window(10, 11), [])
    assert result.available
    assert result.conflicts == []


def test_overlap_reports_conflicts():
    existing = [booking(1, 1, 10, 12), booking(2, 1, 13, 14)]
    result = check_availability(1, window(11, 14), existing)
    assert not result.available
    assert [c.id for c in result.conflicts] == [1, 2]


def test_adjacent_booking_is_allowed():
    result = check_availability(1, window(11, 12), [booking(1, 1, 10, 11)])
    assert result.available


def test_cancelled_and_other_rooms_are_ignored():
    existing = [booking(1, 1, 10, 12, status="cancelled"), booking(2, 2, 10, 12)]
    assert check_availability(1, window(10, 11), existing).available


def test_excluded_reservation_does_not_conflict_with_itself():
    existing = [booking(7, 1, 10, 12)]
    assert check_availability(1, window(10, 11), existing, exclude_id=7).available
    assert not check_availability(1, window(10, 11), existing).available
