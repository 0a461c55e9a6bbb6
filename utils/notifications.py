import logging

from utils.emailer import send_email

logger = logging.getLogger(__name__)

SUBJECTS = {
    "confirmation": "Meeting Room Reservation Confirmed",
    "update": "Meeting Room Reservation Updated",
    "cancellation": "Meeting Room Reservation Cancelled",
}


def _body(kind, reservation, user, room):
    lines = [
        f"Hello {user.name}," if user is not None and user.name else "Hello,",
        "",
        f"Room: {room.name}" if room is not None else f"Room #{reservation.room_id}",
    ]
    if room is not None and room.location:
        lines.append(f"Location: {room.location}")
    lines.append(f"Date: {reservation.start_time:%Y-%m-%d}")
    if kind != "cancellation":
        lines.append(f"Time: {reservation.start_time:%H:%M} - {reservation.end_time:%H:%M}")
        lines.append(f"Purpose: {reservation.purpose}")
    return "\n".join(lines)


class EmailNotifier:
    """Notification sink that mails the reservation owner."""

    def notify(self, kind, reservation, user, room):
        subject = SUBJECTS.get(kind)
        if subject is None:
            raise ValueError(f"Unknown notification kind: {kind}")
        if user is None or not user.email:
            logger.warning("No recipient for %s of reservation %s", kind, reservation.id)
            return False
        sent, _ = send_email(user.email, subject, _body(kind, reservation, user, room))
        return sent
