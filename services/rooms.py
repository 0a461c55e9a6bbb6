import logging
from datetime import date, datetime

from services.availability import CONFIRMED
from services.errors import RoomInactiveError, RoomNotFoundError
from services.time_range import TimeRange

logger = logging.getLogger(__name__)


def _hour_of(value: str) -> int:
    # "HH:MM:SS" (or "HH:MM") -> HH
    return int(str(value).split(":")[0])


class RoomDirectory:
    def __init__(self, room_store, clock=datetime.now):
        self.room_store = room_store
        self.clock = clock

    def get_room(self, room_id):
        room = self.room_store.get_room(room_id)
        if room is None:
            raise RoomNotFoundError("Room not found")
        return room

    def get_active_room(self, room_id):
        room = self.get_room(room_id)
        if not room.is_active:
            raise RoomInactiveError("Room not found or inactive")
        return room

    @staticmethod
    def is_within_operating_hours(room, rng: TimeRange) -> bool:
        """Coarse hour-of-day check.

        Only the hour fields are compared, so a booking ending at 17:30 still
        fits a room that closes at 17:00. Dates are ignored.
        """
        from_hour = _hour_of(room.available_from)
        to_hour = _hour_of(room.available_to)
        return rng.start.hour >= from_hour and rng.end.hour <= to_hour

    def future_confirmed_reservations(self, room):
        now = self.clock()
        return [
            r for r in self.room_store.list_reservations_for_room(room.id)
            if r.status == CONFIRMED and r.start_time > now
        ]

    def can_deactivate_or_delete(self, room) -> bool:
        upcoming = self.future_confirmed_reservations(room)
        if upcoming:
            logger.info("Room %s has %d upcoming reservation(s)", room.id, len(upcoming))
        return not upcoming

    def daily_schedule(self, room, day: date):
        window = TimeRange.for_day(day)
        rows = self.room_store.list_reservations_for_room(room.id, window)
        return sorted(
            (r for r in rows
             if r.status == CONFIRMED and window.start <= r.start_time < window.end),
            key=lambda r: r.start_time,
        )
