from dataclasses import dataclass, field
from typing import Iterable, List

from services.time_range import TimeRange, overlaps

CONFIRMED = "confirmed"
CANCELLED = "cancelled"


@dataclass
class AvailabilityResult:
    available: bool
    conflicts: List = field(default_factory=list)


def check_availability(room_id, candidate: TimeRange, existing: Iterable, exclude_id=None) -> AvailabilityResult:
    """Return whether ``candidate`` is free in ``room_id``.

    Only confirmed reservations of that room count. ``exclude_id`` skips the
    reservation being edited so it cannot conflict with itself.
    """
    conflicts = [
        r for r in existing
        if r.room_id == room_id
        and r.status == CONFIRMED
        and r.id != exclude_id
        and overlaps(candidate, TimeRange.of(r))
    ]
    return AvailabilityResult(available=not conflicts, conflicts=conflicts)
