"""
Unit tests for half-open time intervals.
"""

from datetime import datetime, timedelta, timezone

import pytest

from scheduling.interval import TimeInterval, overlaps
from utils.exceptions import DataIntegrityError

T0 = datetime(2026, 6, 1, 10, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


def test_interval_end():
    """Test end is start plus duration."""
    interval = TimeInterval(T0, 90)
    assert interval.end == at(90)


@pytest.mark.parametrize("duration", [0, -30])
def test_interval_rejects_non_positive_duration(duration):
    """Test zero or negative durations are integrity violations."""
    with pytest.raises(DataIntegrityError):
        TimeInterval(T0, duration)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ((0, 60), (30, 60), True),  # partial overlap
        ((0, 60), (60, 30), False),  # back-to-back
        ((0, 120), (30, 30), True),  # containment
        ((0, 60), (0, 60), True),  # identical
        ((0, 30), (90, 30), False),  # disjoint
        ((0, 60), (-30, 30), False),  # ends exactly at start
        ((0, 60), (-30, 31), True),  # one minute into the interval
    ],
)
def test_overlap_is_symmetric(a, b, expected):
    """Test overlap results and symmetry."""
    first = TimeInterval(at(a[0]), a[1])
    second = TimeInterval(at(b[0]), b[1])

    assert overlaps(first, second) is expected
    assert overlaps(second, first) is expected
    assert first.overlaps(second) is second.overlaps(first)


def test_naive_start_is_utc():
    """Test naive and aware starts for the same instant compare equal."""
    naive = TimeInterval(datetime(2026, 6, 1, 10, 0), 30)
    assert naive == TimeInterval(T0, 30)
    assert naive.start.tzinfo == timezone.utc


def test_offset_start_is_converted_to_utc():
    """Test aware starts in other zones are converted."""
    plus_two = timezone(timedelta(hours=2))
    interval = TimeInterval(datetime(2026, 6, 1, 12, 0, tzinfo=plus_two), 30)
    assert interval.start == T0
    assert interval.start.utcoffset() == timedelta(0)
