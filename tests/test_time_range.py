from datetime import date, datetime

import pytest

from services.errors import InvalidRangeError
from services.time_range import TimeRange, duration_hours, overlaps


def r(h1, m1, h2, m2):
    return TimeRange(datetime(2026, 10, 20, h1, m1), datetime(2026, 10, 20, h2, m2))


def test_rejects_empty_and_inverted_ranges():
    with pytest.raises(InvalidRangeError):
        r(10, 0, 10, 0)
    with pytest.raises(InvalidRangeError):
        r(11, 0, 10, 0)


def test_touching_ranges_do_not_overlap():
    assert not overlaps(r(10, 0, 11, 0), r(11, 0, 12, 0))
    assert not overlaps(r(11, 0, 12, 0), r(10, 0, 11, 0))


@pytest.mark.parametrize("other", [
    (10, 30, 10, 45),   # contained
    (9, 0, 12, 0),      # containing
    (9, 30, 10, 30),    # overlapping start
    (10, 59, 11, 30),   # overlapping end
    (10, 0, 11, 0),     # identical
])
def test_overlapping_ranges(other):
    assert overlaps(r(10, 0, 11, 0), r(*other))
    assert r(*other).overlaps(r(10, 0, 11, 0))


def test_duration_in_hours():
    assert duration_hours(r(10, 0, 11, 30)) == 1.5
    assert r(9, 0, 13, 0).duration_hours == 4.0


def test_for_day_covers_whole_calendar_day():
    day = TimeRange.for_day(date(2026, 10, 20))
    assert day.start == datetime(2026, 10, 20, 0, 0)
    assert day.end == datetime(2026, 10, 21, 0, 0)
