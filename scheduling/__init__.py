"""Appointment scheduling and availability engine."""

from .booking import BookingOrchestrator
from .conflicts import ConflictDetector, find_conflict
from .interval import TimeInterval, overlaps
from .slots import SlotGenerator
from .status import ALLOWED_TRANSITIONS, TransitionResult, ensure_transition, validate_transition

__all__ = [
    "ALLOWED_TRANSITIONS",
    "BookingOrchestrator",
    "ConflictDetector",
    "SlotGenerator",
    "TimeInterval",
    "TransitionResult",
    "ensure_transition",
    "find_conflict",
    "overlaps",
    "validate_transition",
]
