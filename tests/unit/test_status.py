"""
Unit tests for the appointment status state machine.
"""

import itertools

import pytest

from models.appointment import AppointmentStatus
from scheduling.status import ensure_transition, is_terminal, validate_transition
from utils.exceptions import InvalidInputError, InvalidTransitionError

P = AppointmentStatus.PENDING
CF = AppointmentStatus.CONFIRMED
CP = AppointmentStatus.COMPLETED
X = AppointmentStatus.CANCELLED

ALLOWED = {(P, CF), (P, X), (CF, CP), (CF, X)}


@pytest.mark.parametrize(
    "current, requested", list(itertools.product(AppointmentStatus, repeat=2))
)
def test_transition_table_is_exhaustive(current, requested):
    """Test all 16 ordered pairs: only the four listed transitions pass."""
    result = validate_transition(current, requested)

    assert result.allowed is ((current, requested) in ALLOWED)
    if result.allowed:
        assert result.reason is None
    else:
        assert result.reason == (
            f"Cannot transition from {current.value} to {requested.value}."
        )


def test_same_status_is_rejected():
    """Test re-submitting the current status is not a no-op."""
    for status in AppointmentStatus:
        assert validate_transition(status, status).allowed is False


def test_pending_cannot_skip_to_completed():
    """Test completion requires confirmation first."""
    with pytest.raises(InvalidTransitionError) as exc_info:
        ensure_transition(P, CP)

    assert exc_info.value.from_status == P
    assert exc_info.value.to_status == CP
    assert exc_info.value.message == "Cannot transition from Pending to Completed."


def test_ensure_transition_returns_normalized_target():
    """Test boundary values are normalized."""
    assert ensure_transition("pending", 1) is CF
    assert ensure_transition(CF, "Completed") is CP


def test_unknown_status_is_invalid_input():
    """Test unknown values surface as input errors, not transition errors."""
    with pytest.raises(InvalidInputError):
        validate_transition(P, "Archived")


def test_terminal_statuses():
    """Test Completed and Cancelled are terminal."""
    assert is_terminal(CP)
    assert is_terminal("Cancelled")
    assert not is_terminal(P)
    assert not is_terminal(CF)
