"""
Half-open time intervals used for overlap checks.

An interval covers [start, start + duration). Two intervals overlap only
when each starts strictly before the other ends, so back-to-back bookings
never collide.
"""

from datetime import datetime, timedelta

from models.appointment import Appointment
from utils.datetime_utils import ensure_utc
from utils.exceptions import DataIntegrityError, MissingServiceError


class TimeInterval:
    """A half-open [start, end) range in UTC."""

    __slots__ = ("start", "duration_minutes", "end")

    def __init__(self, start: datetime, duration_minutes: int):
        if duration_minutes <= 0:
            raise DataIntegrityError(
                f"Interval duration must be positive, got {duration_minutes} minutes."
            )
        self.start = ensure_utc(start)
        self.duration_minutes = duration_minutes
        self.end = self.start + timedelta(minutes=duration_minutes)

    @classmethod
    def for_appointment(cls, appointment: Appointment) -> "TimeInterval":
        """
        Build the interval an appointment occupies.

        Raises:
            MissingServiceError: If the appointment's service is not loaded
            DataIntegrityError: If the service duration is not positive
        """
        if appointment.service is None:
            raise MissingServiceError(appointment.id)
        return cls(appointment.start_date_time, appointment.service.duration_minutes)

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TimeInterval):
            return NotImplemented
        return self.start == other.start and self.end == other.end

    def __hash__(self) -> int:
        return hash((self.start, self.end))

    def __repr__(self) -> str:
        return f"TimeInterval({self.start.isoformat()} -> {self.end.isoformat()})"


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Strict overlap test for half-open intervals."""
    return a.start < b.end and b.start < a.end
