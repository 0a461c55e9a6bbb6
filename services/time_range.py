from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from services.errors import InvalidRangeError


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval [start, end)."""

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidRangeError("End time must be after start time")

    @classmethod
    def for_day(cls, day: date) -> "TimeRange":
        start = datetime.combine(day, time.min)
        return cls(start, start + timedelta(days=1))

    @classmethod
    def of(cls, reservation) -> "TimeRange":
        return cls(reservation.start_time, reservation.end_time)

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self, other)

    @property
    def duration_hours(self) -> float:
        return duration_hours(self)


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    # touching endpoints (a.end == b.start) do not conflict
    return a.start < b.end and a.end > b.start


def duration_hours(r: TimeRange) -> float:
    return (r.end - r.start).total_seconds() / 3600
