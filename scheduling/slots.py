"""
Bookable slot generation for a business day.

Slots start at the opening hour and advance by the configured interval
while the whole service still fits before closing. Slots starting at or
before the current instant are omitted; every other slot is returned and
flagged available when at least one candidate cosmetologist is free.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Union

from config import Settings, settings as default_settings
from models.appointment import Appointment
from models.slot import AvailableSlot
from scheduling.conflicts import ConflictDetector, find_conflict
from scheduling.interval import TimeInterval
from utils.datetime_utils import ensure_utc, start_of_day

logger = logging.getLogger(__name__)


class SlotGenerator:
    """Enumerates a day's candidate slots for a service."""

    def __init__(
        self,
        db,
        conflict_detector: Optional[ConflictDetector] = None,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.conflict_detector = conflict_detector or ConflictDetector(db)
        self.settings = settings or default_settings
        self.settings.validate_business_hours()

    def business_window(self, day: Union[date, datetime]) -> tuple:
        """Return the (open, close) instants of the business day in UTC."""
        midnight = start_of_day(day)
        return (
            midnight + timedelta(hours=self.settings.business_start_hour),
            midnight + timedelta(hours=self.settings.business_end_hour),
        )

    async def generate_slots(
        self,
        day: Union[date, datetime],
        service_id: int,
        cosmetologist_id: Optional[int] = None,
        *,
        now: datetime,
    ) -> List[AvailableSlot]:
        """
        Generate the slot grid for a day.

        Args:
            day: Calendar date; any time-of-day component is ignored
            service_id: Service to book; inactive or unknown yields []
            cosmetologist_id: Restrict candidates to this staff member
            now: Current instant; slots at or before it are omitted

        Returns:
            Slots ordered by start time
        """
        service = await self.db.get_service_by_id(service_id)
        if service is None or not service.is_active:
            logger.info(f"No slots: service {service_id} is missing or inactive")
            return []

        if cosmetologist_id is not None:
            candidates = [cosmetologist_id]
        else:
            candidates = await self.db.get_cosmetologist_ids()
        if not candidates:
            logger.info("No slots: no cosmetologists available")
            return []

        now = ensure_utc(now)
        duration = service.duration_minutes
        step = timedelta(minutes=self.settings.slot_interval_minutes)
        day_open, day_close = self.business_window(day)

        # Rejects a non-positive duration before any slot is produced
        TimeInterval(day_open, duration)

        bookings: Dict[int, List[Appointment]] = {}
        for candidate_id in candidates:
            bookings[candidate_id] = await self.conflict_detector.load_bookings(
                candidate_id, until=day_close, since=day_open
            )

        slots = []
        current = day_open
        while current + timedelta(minutes=duration) <= day_close:
            if current > now:
                interval = TimeInterval(current, duration)
                available = any(
                    find_conflict(bookings[candidate_id], interval) is None
                    for candidate_id in candidates
                )
                slots.append(
                    AvailableSlot(
                        start_time=interval.start,
                        end_time=interval.end,
                        available=available,
                    )
                )
            current += step

        logger.debug(
            f"Generated {len(slots)} slots for service {service_id} on "
            f"{day_open.date()} across {len(candidates)} cosmetologist(s)"
        )
        return slots
