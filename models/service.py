"""Service models for salon services."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from utils.constants import MAX_SERVICE_DESCRIPTION_LENGTH, MAX_SERVICE_NAME_LENGTH


class Service(BaseModel):
    """
    Service model.

    duration_minutes is not constrained here so that corrupt rows still load
    and are rejected by the scheduling engine as a data-integrity violation.
    """

    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int = Field(..., description="Duration in minutes")
    price: Decimal = Field(..., ge=0, description="Price")
    is_active: bool = Field(default=True, description="Whether the service is bookable")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": 1,
                "name": "Classic Facial",
                "description": "Deep cleansing and moisturizing facial",
                "durationMinutes": 60,
                "price": 50.0,
                "isActive": True,
            }
        }

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class ServiceCreate(BaseModel):
    """Service creation model."""

    name: str = Field(..., max_length=MAX_SERVICE_NAME_LENGTH)
    description: Optional[str] = Field(None, max_length=MAX_SERVICE_DESCRIPTION_LENGTH)
    duration_minutes: int = Field(..., gt=0, description="Duration in minutes")
    price: Decimal = Field(..., ge=0)

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Name is required and must not be blank."""
        v = v.strip()
        if not v:
            raise ValueError("Name is required.")
        return v


class ServiceUpdate(ServiceCreate):
    """Service update model."""

    is_active: bool = True
