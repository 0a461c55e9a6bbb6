"""Typed failures raised by the booking core.

Each error knows the HTTP status it maps to; ``app.py`` turns any
``BookingError`` into ``{"error": message, ...}`` with that status.
"""


class BookingError(Exception):
    status_code = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"error": self.message}
        payload.update(self.details)
        return payload


class ValidationError(BookingError):
    """Field-level input problems; ``errors`` is a list of {field, message}."""

    def __init__(self, message: str = "Validation failed", errors=None):
        super().__init__(message, errors=list(errors or []))
        self.errors = self.details["errors"]

    @classmethod
    def for_field(cls, field: str, message: str):
        return cls(message, errors=[{"field": field, "message": message}])


class InvalidRangeError(BookingError):
    pass


class DurationExceededError(BookingError):
    pass


class OutsideOperatingHoursError(BookingError):
    pass


class RoomConflictError(BookingError):
    status_code = 409

    def __init__(self, message: str = "Room is not available for the selected time", conflicts=None):
        self.conflicts = list(conflicts or [])
        super().__init__(
            message,
            conflictingReservations=[_conflict_summary(r) for r in self.conflicts],
        )


class RoomNotFoundError(BookingError):
    status_code = 404


class RoomInactiveError(RoomNotFoundError):
    pass


class RoomInUseError(BookingError):
    pass


class ReservationNotFoundError(BookingError):
    status_code = 404


class PermissionDeniedError(BookingError):
    status_code = 403


class PastReservationError(BookingError):
    pass


def _conflict_summary(reservation):
    return {
        "id": reservation.id,
        "start_time": reservation.start_time.isoformat(),
        "end_time": reservation.end_time.isoformat(),
    }
