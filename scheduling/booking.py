"""
Booking orchestration: validates and records new bookings and applies
status changes.

This is the only code path that creates appointments or changes their
status. Storage is reached through the injected ``db`` collaborator
(see db.supabase_client.SupabaseClient for the full contract).

Concurrency: the conflict check and the insert for a cosmetologist run
under a per-cosmetologist lock, and status changes share one lock so that
validation and write observe the same state. The locks cover a single
process; the exclusion constraint documented in db.supabase_client guards
across processes.
"""

import asyncio
import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Union

from config import Settings, settings as default_settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.slot import AvailableSlot
from scheduling.conflicts import ConflictDetector
from scheduling.interval import TimeInterval
from scheduling.slots import SlotGenerator
from scheduling.status import INITIAL_STATUS, ensure_transition, validate_transition
from utils.constants import APPOINTMENTS_LIST_LIMIT, MAX_BULK_UPDATE_SIZE, MAX_NOTES_LENGTH
from utils.datetime_utils import ensure_utc, to_iso_string
from utils.exceptions import (
    AppointmentNotFoundError,
    BulkTransitionError,
    ForbiddenError,
    InvalidCosmetologistError,
    InvalidInputError,
    InvalidTimeError,
    InvalidTransitionError,
    OutsideBusinessHoursError,
    ServiceNotFoundError,
    SlotConflictError,
)
from utils.validation import sanitize_text

logger = logging.getLogger(__name__)


class BookingOrchestrator:
    """Entry point for booking creation, status changes and availability."""

    def __init__(
        self,
        db,
        settings: Optional[Settings] = None,
        conflict_detector: Optional[ConflictDetector] = None,
    ):
        self.db = db
        self.settings = settings or default_settings
        self.conflict_detector = conflict_detector or ConflictDetector(db)
        self.slot_generator = SlotGenerator(
            db, conflict_detector=self.conflict_detector, settings=self.settings
        )
        self._cosmetologist_locks: Dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._status_lock = asyncio.Lock()

    # ========== Availability ==========

    async def get_available_slots(
        self,
        day: Union[date, datetime],
        service_id: int,
        cosmetologist_id: Optional[int] = None,
        *,
        now: datetime,
    ) -> List[AvailableSlot]:
        """Slot grid for a day; see SlotGenerator.generate_slots."""
        return await self.slot_generator.generate_slots(
            day, service_id, cosmetologist_id, now=now
        )

    # ========== Booking Creation ==========

    async def create_booking(
        self,
        customer_id: int,
        service_id: int,
        start_date_time: datetime,
        cosmetologist_id: Optional[int] = None,
        notes: Optional[str] = None,
        *,
        now: datetime,
    ) -> Appointment:
        """
        Validate and persist a new booking with status Pending.

        Checks run in order: active service, start strictly in the future,
        interval inside business hours, then (when a cosmetologist is
        designated) staff role and conflicts.

        Raises:
            ServiceNotFoundError: Service missing or inactive
            InvalidTimeError: Start is not after ``now``
            OutsideBusinessHoursError: Start or end outside the business window
            InvalidCosmetologistError: Designated user is not a cosmetologist
            SlotConflictError: Overlaps a non-cancelled booking
        """
        start = ensure_utc(start_date_time)
        now = ensure_utc(now)

        service = await self.db.get_service_by_id(service_id)
        if service is None or not service.is_active:
            raise ServiceNotFoundError(service_id)

        if start <= now:
            raise InvalidTimeError("Appointment date must be in the future.")

        interval = TimeInterval(start, service.duration_minutes)
        self._ensure_within_business_hours(interval)

        appointment_data = AppointmentCreate(
            customer_id=customer_id,
            service_id=service_id,
            cosmetologist_id=cosmetologist_id,
            start_date_time=start,
            status=INITIAL_STATUS,
            notes=sanitize_text(notes, MAX_NOTES_LENGTH) or None,
        )

        if cosmetologist_id is None:
            appointment = await self.db.create_appointment(appointment_data)
        else:
            cosmetologist = await self.db.get_user_by_id(cosmetologist_id)
            if cosmetologist is None or not cosmetologist.is_cosmetologist:
                raise InvalidCosmetologistError(cosmetologist_id)

            async with self._cosmetologist_locks[cosmetologist_id]:
                if await self.conflict_detector.has_conflict(
                    cosmetologist_id, start, service.duration_minutes
                ):
                    logger.info(
                        f"Rejected booking for customer {customer_id}: "
                        f"cosmetologist {cosmetologist_id} busy at {to_iso_string(start)}"
                    )
                    raise SlotConflictError()
                appointment = await self.db.create_appointment(appointment_data)

        logger.info(
            f"Created appointment {appointment.id}: customer={customer_id}, "
            f"service={service_id}, cosmetologist={cosmetologist_id}, "
            f"start={to_iso_string(start)}"
        )
        return appointment

    def _ensure_within_business_hours(self, interval: TimeInterval) -> None:
        day_open, day_close = self.slot_generator.business_window(interval.start)
        if interval.start < day_open or interval.end > day_close:
            raise OutsideBusinessHoursError(
                f"The selected time must be within business hours "
                f"({self.settings.business_start_hour:02d}:00-"
                f"{self.settings.business_end_hour:02d}:00 UTC)."
            )

    # ========== Status Changes ==========

    async def update_status(
        self, appointment_id: int, requested_status
    ) -> Appointment:
        """
        Apply a single validated status change.

        Raises:
            InvalidInputError: Unknown status value
            AppointmentNotFoundError: No such appointment
            InvalidTransitionError: Transition not permitted
        """
        requested = AppointmentStatus.parse(requested_status)

        async with self._status_lock:
            appointment = await self.db.get_appointment_by_id(appointment_id)
            if appointment is None:
                raise AppointmentNotFoundError([appointment_id])

            ensure_transition(appointment.status, requested)
            updated = await self.db.update_appointment_status(appointment_id, requested)
            if updated is None:
                raise AppointmentNotFoundError([appointment_id])

        logger.info(
            f"Appointment {appointment_id} status {appointment.status.value} -> "
            f"{requested.value}"
        )
        return updated

    async def bulk_update_status(
        self, appointment_ids: Iterable[int], requested_status
    ) -> int:
        """
        Apply one status to many appointments, all or nothing.

        Every id must exist and every transition must be valid before any
        write happens.

        Returns:
            Number of appointments updated

        Raises:
            InvalidInputError: Empty batch, oversized batch or unknown status
            AppointmentNotFoundError: Lists every missing id
            BulkTransitionError: Lists every id whose transition is invalid
        """
        ids = list(dict.fromkeys(appointment_ids))
        if not ids:
            raise InvalidInputError("appointmentIds must be a non-empty list.")
        if len(ids) > MAX_BULK_UPDATE_SIZE:
            raise InvalidInputError(
                f"At most {MAX_BULK_UPDATE_SIZE} appointments can be updated at once."
            )
        requested = AppointmentStatus.parse(requested_status)

        async with self._status_lock:
            appointments = await self.db.get_appointments_by_ids(ids)
            missing = [i for i in ids if i not in appointments]
            if missing:
                raise AppointmentNotFoundError(missing)

            failures = {}
            for appointment_id in ids:
                result = validate_transition(appointments[appointment_id].status, requested)
                if not result.allowed:
                    failures[appointment_id] = result.reason
            if failures:
                logger.info(
                    f"Rejected bulk update to {requested.value}: "
                    f"{len(failures)} of {len(ids)} transitions invalid"
                )
                raise BulkTransitionError(failures)

            updated = await self.db.update_appointments_status(ids, requested)

        logger.info(f"Bulk updated {updated} appointment(s) to {requested.value}")
        return updated

    async def cancel_booking(self, appointment_id: int, customer_id: int) -> Appointment:
        """
        Customer-initiated cancellation of their own pending appointment.

        Raises:
            AppointmentNotFoundError: No such appointment
            ForbiddenError: Appointment belongs to another customer
            InvalidTransitionError: Appointment is no longer pending
        """
        async with self._status_lock:
            appointment = await self.db.get_appointment_by_id(appointment_id)
            if appointment is None:
                raise AppointmentNotFoundError([appointment_id])
            if appointment.customer_id != customer_id:
                raise ForbiddenError("You can only cancel your own appointments.")
            if appointment.status != AppointmentStatus.PENDING:
                raise InvalidTransitionError(
                    appointment.status,
                    AppointmentStatus.CANCELLED,
                    "Only pending appointments can be cancelled.",
                )

            ensure_transition(appointment.status, AppointmentStatus.CANCELLED)
            updated = await self.db.update_appointment_status(
                appointment_id, AppointmentStatus.CANCELLED
            )
            if updated is None:
                raise AppointmentNotFoundError([appointment_id])

        logger.info(f"Customer {customer_id} cancelled appointment {appointment_id}")
        return updated

    # ========== Queries ==========

    async def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = await self.db.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError([appointment_id])
        return appointment

    async def list_appointments(
        self,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        status=None,
        cosmetologist_id: Optional[int] = None,
    ) -> List[Appointment]:
        """Staff listing with optional filters, ordered by start time."""
        return await self.db.get_all_appointments(
            from_date=ensure_utc(from_date) if from_date else None,
            to_date=ensure_utc(to_date) if to_date else None,
            status=AppointmentStatus.parse(status) if status is not None else None,
            cosmetologist_id=cosmetologist_id,
            limit=APPOINTMENTS_LIST_LIMIT,
        )

    async def list_customer_appointments(self, customer_id: int) -> List[Appointment]:
        return await self.db.get_appointments_by_customer(customer_id)
