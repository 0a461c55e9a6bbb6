"""Reservation lifecycle: create, update and cancel bookings.

A reservation is ``confirmed`` until it is ``cancelled``; nothing else is a
state change. Every write re-runs the availability check inside the room
lock, so an earlier preview from ``check`` is never trusted. Audit records
and notifications fire only after the write has committed, and their
failures are logged, not raised.
"""
import logging
from datetime import datetime

from services.availability import CANCELLED, CONFIRMED, check_availability
from services.errors import (
    DurationExceededError,
    InvalidRangeError,
    OutsideOperatingHoursError,
    PastReservationError,
    ReservationNotFoundError,
    RoomConflictError,
    ValidationError,
)
from services.rooms import RoomDirectory
from services.time_range import TimeRange

logger = logging.getLogger(__name__)

MAX_DURATION_HOURS = 4
PATCHABLE_FIELDS = ("start_time", "end_time", "purpose", "department")


class NullAuditSink:
    def record(self, action, actor_id, entity_type, entity_id, details=None):
        pass


class NullNotifier:
    def notify(self, kind, reservation, user, room):
        pass


class ReservationManager:
    def __init__(
        self,
        room_store,
        reservation_store,
        user_store=None,
        audit=None,
        notifier=None,
        clock=datetime.now,
        max_duration_hours=MAX_DURATION_HOURS,
    ):
        self.rooms = RoomDirectory(room_store, clock=clock)
        self.room_store = room_store
        self.reservations = reservation_store
        self.users = user_store
        self.audit = audit or NullAuditSink()
        self.notifier = notifier or NullNotifier()
        self.clock = clock
        self.max_duration_hours = max_duration_hours

    # ---------- validation ----------

    def _validate_range(self, rng: TimeRange):
        if rng.start <= self.clock():
            raise InvalidRangeError("Start time must be in the future")
        if rng.duration_hours > self.max_duration_hours:
            raise DurationExceededError(
                f"Reservation cannot exceed {self.max_duration_hours} hours",
                maxHours=self.max_duration_hours,
            )

    @staticmethod
    def _clean_purpose(purpose):
        if not isinstance(purpose, str) or not purpose.strip():
            raise ValidationError.for_field("purpose", "Purpose is required")
        return purpose.strip()

    @staticmethod
    def _clean_department(department):
        if department is None:
            return None
        return str(department).strip() or None

    def _check_hours(self, room, rng):
        if not self.rooms.is_within_operating_hours(room, rng):
            raise OutsideOperatingHoursError(
                f"Room is only available from {room.available_from} to {room.available_to}",
                availableFrom=room.available_from,
                availableTo=room.available_to,
            )

    def _check_free(self, room_id, rng, exclude_id=None):
        existing = self.room_store.list_reservations_for_room(room_id, rng)
        result = check_availability(room_id, rng, existing, exclude_id=exclude_id)
        if not result.available:
            logger.info(
                "Conflict in room %s for %s - %s (%d overlapping)",
                room_id, rng.start.isoformat(), rng.end.isoformat(), len(result.conflicts),
            )
            raise RoomConflictError(conflicts=result.conflicts)

    # ---------- lookups ----------

    def _resolve(self, reservation_id, acting_user):
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise ReservationNotFoundError("Reservation not found")
        # hide other people's bookings instead of reporting a permission error
        if reservation.user_id != acting_user.id and not acting_user.is_admin:
            raise ReservationNotFoundError("Reservation not found")
        return reservation

    def get(self, reservation_id, acting_user):
        return self._resolve(reservation_id, acting_user)

    def list_for_user(self, user_id, status=None, limit=50):
        return self.reservations.list_for_user(user_id, status=status, limit=limit)

    def check(self, room_id, rng: TimeRange):
        """Advisory availability query; create/update repeat it authoritatively."""
        self.rooms.get_active_room(room_id)
        existing = self.room_store.list_reservations_for_room(room_id, rng)
        return check_availability(room_id, rng, existing)

    # ---------- lifecycle ----------

    def create(self, user_id, room_id, rng: TimeRange, purpose, department=None):
        purpose = self._clean_purpose(purpose)
        department = self._clean_department(department)
        self._validate_range(rng)

        room = self.rooms.get_active_room(room_id)
        self._check_hours(room, rng)

        with self.room_store.lock_room(room_id):
            self._check_free(room_id, rng)
            reservation = self.reservations.insert({
                "user_id": user_id,
                "room_id": room_id,
                "start_time": rng.start,
                "end_time": rng.end,
                "purpose": purpose,
                "department": department,
                "status": CONFIRMED,
            })

        logger.info("Reservation %s created in room %s by user %s", reservation.id, room_id, user_id)
        self._record("reservation_created", user_id, reservation.id, {
            "roomId": room_id,
            "startTime": rng.start.isoformat(),
            "endTime": rng.end.isoformat(),
            "purpose": purpose,
        })
        self._notify("confirmation", reservation, room)
        return reservation

    def update(self, reservation_id, acting_user, patch):
        reservation = self._resolve(reservation_id, acting_user)
        if reservation.status != CONFIRMED:
            raise ValidationError("Only confirmed reservations can be changed")
        if reservation.start_time <= self.clock():
            raise PastReservationError("Cannot modify past or ongoing reservations")

        # department may be cleared with None; the other fields cannot
        changes = {
            k: v for k, v in (patch or {}).items()
            if k in PATCHABLE_FIELDS and (v is not None or k == "department")
        }
        if not changes:
            raise ValidationError("No fields to update")

        # working copy; the stored row is only touched by reservations.update
        working = {
            "start_time": reservation.start_time,
            "end_time": reservation.end_time,
            "purpose": reservation.purpose,
            "department": reservation.department,
        }
        working.update(changes)
        working["purpose"] = self._clean_purpose(working["purpose"])
        if "department" in changes:
            working["department"] = self._clean_department(working["department"])

        rng = TimeRange(working["start_time"], working["end_time"])
        self._validate_range(rng)

        # room stays as booked; its active flag is not re-checked here
        room = self.rooms.get_room(reservation.room_id)
        self._check_hours(room, rng)

        with self.room_store.lock_room(room.id):
            self._check_free(room.id, rng, exclude_id=reservation.id)
            updated = self.reservations.update(reservation.id, working)

        logger.info("Reservation %s updated by user %s", reservation_id, acting_user.id)
        self._record("reservation_updated", acting_user.id, updated.id, {
            "startTime": rng.start.isoformat(),
            "endTime": rng.end.isoformat(),
            "purpose": working["purpose"],
            "department": working["department"],
        })
        self._notify("update", updated, room)
        return updated

    def cancel(self, reservation_id, acting_user):
        reservation = self._resolve(reservation_id, acting_user)
        now = self.clock()
        if reservation.start_time <= now:
            raise PastReservationError("Cannot cancel past or ongoing reservations")
        if reservation.status == CANCELLED:
            raise ValidationError("Reservation is already cancelled")

        cancelled = self.reservations.set_status(reservation.id, CANCELLED, at=now)

        logger.info("Reservation %s cancelled by user %s", reservation_id, acting_user.id)
        self._record("reservation_cancelled", acting_user.id, cancelled.id, {
            "roomId": cancelled.room_id,
            "ownerId": cancelled.user_id,
        })
        room = self.room_store.get_room(cancelled.room_id)
        self._notify("cancellation", cancelled, room)
        return cancelled

    # ---------- hooks ----------

    def _record(self, action, actor_id, entity_id, details):
        try:
            self.audit.record(action, actor_id, "reservation", entity_id, details)
        except Exception:
            logger.exception("Audit record %s for reservation %s failed", action, entity_id)

    def _notify(self, kind, reservation, room):
        try:
            user = self.users.get_user(reservation.user_id) if self.users else None
            self.notifier.notify(kind, reservation, user, room)
        except Exception:
            logger.exception("%s notification for reservation %s failed", kind, reservation.id)
