"""
Custom exception classes for better error handling.
Provides specific error types instead of generic exceptions.

BookingError subclasses are recoverable rejections returned to the caller.
DataIntegrityError and DatabaseError abort the current operation.
"""

from typing import Dict, Iterable, Optional


class BookingError(Exception):
    """Base exception for rejected booking requests."""

    error_kind = "booking_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """Raised when a referenced entity does not exist."""

    error_kind = "not_found"


class ServiceNotFoundError(NotFoundError):
    """Raised when a service is missing or no longer offered."""

    def __init__(self, service_id: int):
        super().__init__(f"Service {service_id} not found or not available.")
        self.service_id = service_id


class UserNotFoundError(NotFoundError):
    """Raised when a user does not exist."""

    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found.")


class AppointmentNotFoundError(NotFoundError):
    """Raised when one or more appointments are not found."""

    def __init__(self, appointment_ids: Iterable[int]):
        self.appointment_ids = sorted(set(appointment_ids))
        ids = ", ".join(str(i) for i in self.appointment_ids)
        if len(self.appointment_ids) == 1:
            message = f"Appointment {ids} not found."
        else:
            message = f"Appointments not found: {ids}."
        super().__init__(message)


class InvalidInputError(BookingError):
    """Raised when a required field is missing or malformed."""

    error_kind = "invalid_input"


class InvalidCosmetologistError(BookingError):
    """Raised when the designated staff member is not a cosmetologist."""

    error_kind = "invalid_cosmetologist"

    def __init__(self, cosmetologist_id: int):
        super().__init__(f"Invalid cosmetologist: {cosmetologist_id}.")
        self.cosmetologist_id = cosmetologist_id


class InvalidTimeError(BookingError):
    """Raised when the requested start time is not in the future."""

    error_kind = "invalid_time"


class OutsideBusinessHoursError(BookingError):
    """Raised when the requested interval falls outside business hours."""

    error_kind = "outside_business_hours"


class SlotConflictError(BookingError):
    """Raised when the requested interval overlaps an existing booking."""

    error_kind = "slot_conflict"

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "This time slot is no longer available. Please choose another time."
        )


class InvalidTransitionError(BookingError):
    """Raised when a status change is not permitted."""

    error_kind = "invalid_transition"

    def __init__(self, from_status, to_status, message: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            message
            or f"Cannot transition from {_status_name(from_status)} "
            f"to {_status_name(to_status)}."
        )


class BulkTransitionError(BookingError):
    """Raised when any transition in a bulk status update is invalid."""

    error_kind = "invalid_transition"

    def __init__(self, failures: Dict[int, str]):
        self.failures = dict(sorted(failures.items()))
        ids = ", ".join(str(i) for i in self.failures)
        super().__init__(
            f"Bulk status update rejected; no appointments were changed. "
            f"Invalid transitions for appointments: {ids}."
        )


class ForbiddenError(BookingError):
    """Raised when a user acts on an appointment they do not own."""

    error_kind = "forbidden"


class DataIntegrityError(Exception):
    """Raised when stored data violates a scheduling invariant."""

    pass


class MissingServiceError(DataIntegrityError):
    """Raised when an appointment's service relation is not loaded."""

    def __init__(self, appointment_id: Optional[int] = None):
        super().__init__(
            f"Service must be loaded to compute the end time of "
            f"appointment {appointment_id}."
        )
        self.appointment_id = appointment_id


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


def _status_name(status) -> str:
    return getattr(status, "value", str(status))
