"""SQLAlchemy-backed stores consumed by the booking core.

The core only relies on the method names below, so tests swap these for
in-memory doubles. Every write commits; a failed write is rolled back and
re-raised for the caller to report.
"""
from contextlib import contextmanager

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.reservation import Reservation
from models.room import Room
from models.user import User


class SqlRoomStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def get_room(self, room_id):
        return self.session.get(Room, room_id)

    def list_reservations_for_room(self, room_id, date_range=None):
        q = self.session.query(Reservation).filter(Reservation.room_id == room_id)
        if date_range is not None:
            q = q.filter(
                Reservation.start_time < date_range.end,
                Reservation.end_time > date_range.start,
            )
        return q.order_by(Reservation.start_time.asc()).all()

    @contextmanager
    def lock_room(self, room_id):
        """Hold a write lock on the room until the enclosed write commits.

        A no-op UPDATE of the room row is a row lock on PostgreSQL/MySQL and a
        RESERVED database lock on SQLite, where FOR UPDATE is ignored and a
        plain SELECT opens no transaction. Either way the availability read
        that follows sees every booking committed before the lock was granted.
        """
        try:
            self.session.execute(
                update(Room)
                .where(Room.id == room_id)
                .values(updated_at=Room.updated_at)
                .execution_options(synchronize_session=False)
            )
            yield
        except Exception:
            self.session.rollback()
            raise


class SqlReservationStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, reservation_id):
        return self.session.get(Reservation, reservation_id)

    def insert(self, fields):
        row = Reservation(**fields)
        self.session.add(row)
        self._commit()
        return row

    def update(self, reservation_id, fields):
        row = self.session.get(Reservation, reservation_id)
        for key, value in fields.items():
            setattr(row, key, value)
        self._commit()
        return row

    def set_status(self, reservation_id, status, at=None):
        row = self.session.get(Reservation, reservation_id)
        row.status = status
        if status == "cancelled":
            row.cancelled_at = at
        self._commit()
        return row

    def list_for_user(self, user_id, status=None, limit=50):
        q = self.session.query(Reservation).filter(Reservation.user_id == user_id)
        if status:
            q = q.filter(Reservation.status == status)
        return q.order_by(Reservation.start_time.desc()).limit(limit).all()

    def _commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise


class SqlUserStore:
    def __init__(self, session=None):
        self.session = session or db.session

    def get_user(self, user_id):
        return self.session.get(User, user_id)
