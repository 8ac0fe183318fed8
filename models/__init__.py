"""Pydantic models for data validation and serialization."""

from .appointment import (
    Appointment,
    AppointmentCreate,
    AppointmentStatus,
    BookingRequest,
    BulkStatusUpdateRequest,
    StatusUpdateRequest,
)
from .service import Service, ServiceCreate, ServiceUpdate
from .slot import AvailableSlot
from .user import User, UserRole

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "AvailableSlot",
    "BookingRequest",
    "BulkStatusUpdateRequest",
    "Service",
    "ServiceCreate",
    "ServiceUpdate",
    "StatusUpdateRequest",
    "User",
    "UserRole",
]
