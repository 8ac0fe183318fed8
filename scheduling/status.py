"""
Appointment status state machine.

Pending -> Confirmed -> Completed, with Cancelled reachable from Pending or
Confirmed. Completed and Cancelled are terminal, and re-submitting the
current status is rejected like any other undefined transition.
"""

from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel

from models.appointment import AppointmentStatus
from utils.exceptions import InvalidTransitionError

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

INITIAL_STATUS = AppointmentStatus.PENDING
TERMINAL_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


class TransitionResult(BaseModel):
    """Outcome of a transition check."""

    allowed: bool
    from_status: AppointmentStatus
    to_status: AppointmentStatus
    reason: Optional[str] = None


def validate_transition(current, requested) -> TransitionResult:
    """
    Decide whether ``current -> requested`` is permitted.

    Both arguments may be statuses, names or integer codes.

    Raises:
        InvalidInputError: If either value is not a known status
    """
    current = AppointmentStatus.parse(current)
    requested = AppointmentStatus.parse(requested)

    if requested in ALLOWED_TRANSITIONS[current]:
        return TransitionResult(allowed=True, from_status=current, to_status=requested)

    return TransitionResult(
        allowed=False,
        from_status=current,
        to_status=requested,
        reason=f"Cannot transition from {current.value} to {requested.value}.",
    )


def ensure_transition(current, requested) -> AppointmentStatus:
    """
    Validate a transition and return the normalized target status.

    Raises:
        InvalidTransitionError: If the transition is not permitted
    """
    result = validate_transition(current, requested)
    if not result.allowed:
        raise InvalidTransitionError(result.from_status, result.to_status, result.reason)
    return result.to_status


def is_terminal(status) -> bool:
    return AppointmentStatus.parse(status) in TERMINAL_STATUSES
