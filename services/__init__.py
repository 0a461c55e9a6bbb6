from .errors import (
    BookingError,
    ValidationError,
    InvalidRangeError,
    DurationExceededError,
    OutsideOperatingHoursError,
    RoomConflictError,
    RoomNotFoundError,
    RoomInactiveError,
    RoomInUseError,
    ReservationNotFoundError,
    PermissionDeniedError,
    PastReservationError,
)
from .time_range import TimeRange, overlaps, duration_hours
from .availability import AvailabilityResult, check_availability
from .rooms import RoomDirectory
from .reservations import ReservationManager
