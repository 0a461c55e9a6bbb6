from flask import current_app

from services.reservations import ReservationManager
from services.rooms import RoomDirectory
from services.stores import SqlReservationStore, SqlRoomStore, SqlUserStore
from utils.audit import DatabaseAuditSink
from utils.clock import now
from utils.notifications import EmailNotifier


def get_manager() -> ReservationManager:
    """Wire the booking core to the request's database session."""
    return ReservationManager(
        room_store=SqlRoomStore(),
        reservation_store=SqlReservationStore(),
        user_store=SqlUserStore(),
        audit=DatabaseAuditSink(),
        notifier=EmailNotifier(),
        clock=now,
        max_duration_hours=current_app.config.get("MAX_RESERVATION_HOURS", 4),
    )


def get_directory() -> RoomDirectory:
    return RoomDirectory(SqlRoomStore(), clock=now)
