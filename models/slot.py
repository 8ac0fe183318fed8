"""Slot models for bookable time slots."""

from datetime import datetime

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class AvailableSlot(BaseModel):
    """A candidate slot within a business day. Not persisted."""

    start_time: datetime
    end_time: datetime
    available: bool

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "startTime": "2026-06-01T09:00:00+00:00",
                "endTime": "2026-06-01T10:00:00+00:00",
                "available": True,
            }
        }
