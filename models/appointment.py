"""Appointment models for salon bookings."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from models.service import Service
from utils.constants import MAX_NOTES_LENGTH
from utils.datetime_utils import ensure_utc
from utils.exceptions import InvalidInputError, MissingServiceError

_DATETIME_ADAPTER = TypeAdapter(datetime)


class AppointmentStatus(str, Enum):
    """Appointment status. Declaration order matches the integer codes 0..3."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: Union["AppointmentStatus", str, int]) -> "AppointmentStatus":
        """
        Normalize a boundary value to an AppointmentStatus.

        Accepts a member, a case-insensitive name ("confirmed") or an
        integer code (0=Pending, 1=Confirmed, 2=Completed, 3=Cancelled).

        Raises:
            InvalidInputError: If the value names no status
        """
        if isinstance(value, cls):
            return value

        members = list(cls)
        if isinstance(value, int) and not isinstance(value, bool):
            if 0 <= value < len(members):
                return members[value]
        elif isinstance(value, str):
            text = value.strip()
            if text.isascii() and text.isdecimal():
                return cls.parse(int(text))
            for member in members:
                if member.value.lower() == text.lower():
                    return member

        raise InvalidInputError(f"Invalid status value: {value}")


class Appointment(BaseModel):
    """
    Appointment model.

    The end time is derived from the loaded service and never stored.
    """

    id: int
    customer_id: int
    service_id: int
    cosmetologist_id: Optional[int] = None
    start_date_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    service: Optional[Service] = Field(None, exclude=True)
    customer_name: Optional[str] = Field(None, exclude=True)
    cosmetologist_name: Optional[str] = Field(None, exclude=True)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "customerId": 3,
                "serviceId": 1,
                "cosmetologistId": 2,
                "startDateTime": "2026-06-01T10:00:00+00:00",
                "status": "Pending",
                "notes": "First visit",
            }
        }

    @field_validator("start_date_time", "created_at")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @property
    def end_date_time(self) -> datetime:
        """Start plus the service duration; requires the service to be loaded."""
        if self.service is None:
            raise MissingServiceError(self.id)
        return self.start_date_time + timedelta(minutes=self.service.duration_minutes)

    def to_response(self) -> Dict[str, Any]:
        """Serialize for API responses, including derived service fields."""
        data = self.model_dump(mode="json", by_alias=True)
        data["endDateTime"] = _DATETIME_ADAPTER.dump_python(self.end_date_time, mode="json")
        data["durationMinutes"] = self.service.duration_minutes
        data["serviceName"] = self.service.name
        data["servicePrice"] = float(self.service.price)
        data["customerName"] = self.customer_name
        data["cosmetologistName"] = self.cosmetologist_name
        return data


class AppointmentCreate(BaseModel):
    """Appointment creation model."""

    customer_id: int
    service_id: int
    cosmetologist_id: Optional[int] = None
    start_date_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING
    notes: Optional[str] = None


class BookingRequest(BaseModel):
    """Body of a create-appointment request."""

    service_id: int = Field(..., gt=0)
    cosmetologist_id: Optional[int] = Field(None, gt=0)
    start_date_time: datetime
    notes: Optional[str] = Field(None, max_length=MAX_NOTES_LENGTH)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class StatusUpdateRequest(BaseModel):
    """Body of a single status update request."""

    status: Union[StrictInt, StrictStr]


class BulkStatusUpdateRequest(BaseModel):
    """Body of a bulk status update request."""

    appointment_ids: List[int] = Field(..., min_length=1)
    new_status: Union[StrictInt, StrictStr]

    class Config:
        alias_generator = to_camel
        populate_by_name = True
