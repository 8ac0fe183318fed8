"""
Unit tests for double-booking detection.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from models.appointment import AppointmentStatus
from scheduling.conflicts import ConflictDetector, find_conflict
from scheduling.interval import TimeInterval
from tests.conftest import COSMETOLOGIST_ID, FACIAL_ID, SECOND_COSMETOLOGIST_ID
from utils.exceptions import DataIntegrityError, MissingServiceError

TEN = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0) -> datetime:
    return TEN.replace(hour=hour, minute=minute)


@pytest.fixture
def detector(store):
    return ConflictDetector(store)


@pytest.fixture
def booked(store):
    """A confirmed 10:00-11:00 facial for the cosmetologist."""
    return store.add_appointment(
        service_id=FACIAL_ID,
        cosmetologist_id=COSMETOLOGIST_ID,
        start_date_time=TEN,
        status=AppointmentStatus.CONFIRMED,
    )


@pytest.mark.asyncio
async def test_no_bookings_no_conflict(detector):
    """Test an empty calendar never conflicts."""
    assert await detector.has_conflict(COSMETOLOGIST_ID, TEN, 60) is False


@pytest.mark.asyncio
async def test_overlapping_candidate_conflicts(detector, booked):
    """Test a candidate starting inside an existing booking conflicts."""
    assert await detector.has_conflict(COSMETOLOGIST_ID, at(10, 30), 60) is True
    assert await detector.has_conflict(COSMETOLOGIST_ID, at(9, 30), 60) is True


@pytest.mark.asyncio
async def test_back_to_back_does_not_conflict(detector, booked):
    """Test bookings touching at the boundary do not conflict."""
    assert await detector.has_conflict(COSMETOLOGIST_ID, at(11), 60) is False
    assert await detector.has_conflict(COSMETOLOGIST_ID, at(9), 60) is False


@pytest.mark.asyncio
async def test_other_cosmetologist_is_unaffected(detector, booked, store):
    """Test bookings only block their own cosmetologist."""
    assert await detector.has_conflict(SECOND_COSMETOLOGIST_ID, TEN, 60) is False


@pytest.mark.asyncio
async def test_cancelled_appointment_never_blocks(detector, store):
    """Test cancelled bookings are ignored regardless of overlap."""
    store.add_appointment(
        service_id=FACIAL_ID,
        cosmetologist_id=COSMETOLOGIST_ID,
        start_date_time=TEN,
        status=AppointmentStatus.CANCELLED,
    )
    assert await detector.has_conflict(COSMETOLOGIST_ID, TEN, 60) is False


def test_find_conflict_skips_cancelled_rows(store):
    """Test the pure check ignores cancelled rows even if the query returns them."""
    cancelled = store.add_appointment(
        service_id=FACIAL_ID,
        cosmetologist_id=COSMETOLOGIST_ID,
        start_date_time=TEN,
        status=AppointmentStatus.CANCELLED,
    )
    assert find_conflict([cancelled], TimeInterval(TEN, 60)) is None


@pytest.mark.asyncio
async def test_excluded_appointment_is_ignored(detector, booked):
    """Test re-validating an appointment does not conflict with itself."""
    assert (
        await detector.has_conflict(
            COSMETOLOGIST_ID, TEN, 60, exclude_appointment_id=booked.id
        )
        is False
    )


@pytest.mark.asyncio
async def test_is_time_slot_available(detector, booked):
    """Test availability is the negation of conflict."""
    assert await detector.is_time_slot_available(COSMETOLOGIST_ID, TEN, 30) is False
    assert await detector.is_time_slot_available(COSMETOLOGIST_ID, at(11), 30) is True


@pytest.mark.asyncio
async def test_query_is_bounded_by_candidate_window():
    """Test only bookings that can touch the candidate interval are fetched."""
    db = AsyncMock()
    db.get_active_appointments_for_cosmetologist = AsyncMock(return_value=[])

    await ConflictDetector(db).has_conflict(COSMETOLOGIST_ID, TEN, 45)

    db.get_active_appointments_for_cosmetologist.assert_called_once_with(
        COSMETOLOGIST_ID, until=at(10, 45), since=TEN
    )


@pytest.mark.asyncio
async def test_missing_service_fails_the_query(booked):
    """Test a row without its service aborts instead of being skipped."""
    db = AsyncMock()
    db.get_active_appointments_for_cosmetologist = AsyncMock(
        return_value=[booked.model_copy(update={"service": None})]
    )

    with pytest.raises(MissingServiceError):
        await ConflictDetector(db).has_conflict(COSMETOLOGIST_ID, at(15), 30)


@pytest.mark.asyncio
async def test_non_positive_candidate_duration_rejected(detector):
    """Test candidates must have a positive duration."""
    with pytest.raises(DataIntegrityError):
        await detector.has_conflict(COSMETOLOGIST_ID, TEN, 0)


@pytest.mark.asyncio
async def test_past_history_is_not_loaded(detector, store):
    """Test bookings that ended before the window are left out of the load."""
    store.add_appointment(
        service_id=FACIAL_ID,
        cosmetologist_id=COSMETOLOGIST_ID,
        start_date_time=datetime(2020, 1, 1, 10, 0, tzinfo=timezone.utc),
        status=AppointmentStatus.COMPLETED,
    )
    touching = store.add_appointment(
        service_id=FACIAL_ID,
        cosmetologist_id=COSMETOLOGIST_ID,
        start_date_time=at(9),
    )

    bookings = await detector.load_bookings(COSMETOLOGIST_ID, until=at(18), since=TEN)
    assert bookings == []

    bookings = await detector.load_bookings(COSMETOLOGIST_ID, until=at(18), since=at(9, 30))
    assert [b.id for b in bookings] == [touching.id]
