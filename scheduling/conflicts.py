"""
Double-booking detection for a single cosmetologist.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from models.appointment import Appointment, AppointmentStatus
from scheduling.interval import TimeInterval

logger = logging.getLogger(__name__)


def find_conflict(
    appointments: Iterable[Appointment],
    candidate: TimeInterval,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[Appointment]:
    """
    Return the first appointment whose interval overlaps the candidate.

    Cancelled appointments never block. A row without its service loaded
    raises MissingServiceError instead of being skipped.
    """
    for appointment in appointments:
        if appointment.status == AppointmentStatus.CANCELLED:
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if TimeInterval.for_appointment(appointment).overlaps(candidate):
            return appointment
    return None


class ConflictDetector:
    """
    Checks candidate intervals against a cosmetologist's existing bookings.

    The storage collaborator must provide
    ``get_active_appointments_for_cosmetologist(cosmetologist_id, until=None, since=None)``
    returning that cosmetologist's non-cancelled appointments with their
    service loaded, optionally limited to those starting before ``until``
    and ending after ``since``.
    """

    def __init__(self, db):
        self.db = db

    async def load_bookings(
        self,
        cosmetologist_id: int,
        until: Optional[datetime] = None,
        since: Optional[datetime] = None,
    ) -> List[Appointment]:
        """Fetch the bookings that can block a cosmetologist within [since, until)."""
        return await self.db.get_active_appointments_for_cosmetologist(
            cosmetologist_id, until=until, since=since
        )

    async def has_conflict(
        self,
        cosmetologist_id: int,
        candidate_start: datetime,
        candidate_duration_minutes: int,
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        """
        Check whether the candidate interval overlaps an existing booking.

        Args:
            cosmetologist_id: Staff member whose calendar is checked
            candidate_start: Requested start (UTC)
            candidate_duration_minutes: Requested duration, must be positive
            exclude_appointment_id: Appointment to ignore when re-validating it

        Returns:
            True if any non-cancelled booking overlaps the candidate
        """
        candidate = TimeInterval(candidate_start, candidate_duration_minutes)
        bookings = await self.load_bookings(
            cosmetologist_id, until=candidate.end, since=candidate.start
        )

        conflict = find_conflict(bookings, candidate, exclude_appointment_id)
        if conflict is not None:
            logger.debug(
                f"Conflict for cosmetologist {cosmetologist_id}: {candidate} "
                f"overlaps appointment {conflict.id}"
            )
            return True
        return False

    async def is_time_slot_available(
        self, cosmetologist_id: int, start: datetime, duration_minutes: int
    ) -> bool:
        return not await self.has_conflict(cosmetologist_id, start, duration_minutes)
