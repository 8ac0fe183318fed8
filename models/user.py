"""User models for customers and salon staff."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    """User role."""

    ADMIN = "Admin"
    COSMETOLOGIST = "Cosmetologist"
    CUSTOMER = "Customer"


class User(BaseModel):
    """User model. Only id, name and role matter for scheduling."""

    id: int
    name: str
    role: UserRole
    email: Optional[str] = None
    phone_number: Optional[str] = Field(None, description="Contact phone number")

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": 2,
                "name": "Jane Smith",
                "role": "Cosmetologist",
                "email": "jane.smith@cosmetology.local",
                "phoneNumber": "+1-555-0002",
            }
        }

    @property
    def is_cosmetologist(self) -> bool:
        return self.role == UserRole.COSMETOLOGIST
