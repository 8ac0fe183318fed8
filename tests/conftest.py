"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from config import Settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.service import Service, ServiceCreate, ServiceUpdate
from models.user import User, UserRole
from scheduling import BookingOrchestrator

CUSTOMER_ID = 1
COSMETOLOGIST_ID = 2
SECOND_COSMETOLOGIST_ID = 4
ADMIN_ID = 3

FACIAL_ID = 1  # 60 minutes
HAIRCUT_ID = 2  # 30 minutes
RETIRED_ID = 3  # inactive


class InMemoryStore:
    """
    Dictionary-backed implementation of the storage contract used by the
    scheduling engine, mirroring SupabaseClient's async methods.
    """

    def __init__(self):
        self.users: Dict[int, User] = {}
        self.services: Dict[int, Service] = {}
        self.appointments: Dict[int, Appointment] = {}
        self._next_id = 1
        self.status_writes = 0

    def add_user(self, user_id: int, name: str, role: UserRole) -> User:
        self.users[user_id] = User(id=user_id, name=name, role=role)
        return self.users[user_id]

    def add_service(
        self, service_id: int, name: str, duration_minutes: int, is_active: bool = True
    ) -> Service:
        self.services[service_id] = Service(
            id=service_id,
            name=name,
            duration_minutes=duration_minutes,
            price=Decimal("50.00"),
            is_active=is_active,
        )
        return self.services[service_id]

    def add_appointment(self, **fields) -> Appointment:
        fields.setdefault("id", self._next_id)
        fields.setdefault("customer_id", CUSTOMER_ID)
        self._next_id = max(self._next_id, fields["id"]) + 1
        appointment = Appointment(**fields)
        self.appointments[appointment.id] = appointment
        return self._with_service(appointment)

    def _with_service(self, appointment: Appointment) -> Appointment:
        customer = self.users.get(appointment.customer_id)
        cosmetologist = self.users.get(appointment.cosmetologist_id)
        return appointment.model_copy(
            update={
                "service": self.services.get(appointment.service_id),
                "customer_name": customer.name if customer else None,
                "cosmetologist_name": cosmetologist.name if cosmetologist else None,
            }
        )

    def _ends_after(self, appointment: Appointment, since: datetime) -> bool:
        service = self.services.get(appointment.service_id)
        if service is None:
            return True
        return appointment.start_date_time + timedelta(minutes=service.duration_minutes) > since

    # ========== Storage contract ==========

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def get_cosmetologists(self) -> List[User]:
        return sorted(
            (u for u in self.users.values() if u.role == UserRole.COSMETOLOGIST),
            key=lambda u: u.id,
        )

    async def get_cosmetologist_ids(self) -> List[int]:
        return sorted(
            u.id for u in self.users.values() if u.role == UserRole.COSMETOLOGIST
        )

    async def get_service_by_id(self, service_id: int) -> Optional[Service]:
        return self.services.get(service_id)

    async def get_active_services(self) -> List[Service]:
        return [s for s in self.services.values() if s.is_active]

    async def create_service(self, data: ServiceCreate) -> Service:
        service_id = max(self.services, default=0) + 1
        self.services[service_id] = Service(id=service_id, **data.model_dump())
        return self.services[service_id]

    async def update_service(self, service_id: int, data: ServiceUpdate) -> Optional[Service]:
        if service_id not in self.services:
            return None
        self.services[service_id] = Service(id=service_id, **data.model_dump())
        return self.services[service_id]

    async def deactivate_service(self, service_id: int) -> bool:
        if service_id not in self.services:
            return False
        self.services[service_id] = self.services[service_id].model_copy(
            update={"is_active": False}
        )
        return True

    async def create_appointment(self, data: AppointmentCreate) -> Appointment:
        return self.add_appointment(**data.model_dump())

    async def get_appointment_by_id(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self.appointments.get(appointment_id)
        return self._with_service(appointment) if appointment else None

    async def get_appointments_by_ids(self, ids: List[int]) -> Dict[int, Appointment]:
        return {
            i: self._with_service(self.appointments[i])
            for i in ids
            if i in self.appointments
        }

    async def get_active_appointments_for_cosmetologist(
        self,
        cosmetologist_id: int,
        until: Optional[datetime] = None,
        since: Optional[datetime] = None,
    ) -> List[Appointment]:
        return [
            self._with_service(a)
            for a in sorted(self.appointments.values(), key=lambda a: a.start_date_time)
            if a.cosmetologist_id == cosmetologist_id
            and a.status != AppointmentStatus.CANCELLED
            and (until is None or a.start_date_time < until)
            and (since is None or self._ends_after(a, since))
        ]

    async def get_appointments_by_customer(self, customer_id: int) -> List[Appointment]:
        return [
            self._with_service(a)
            for a in self.appointments.values()
            if a.customer_id == customer_id
        ]

    async def get_all_appointments(
        self,
        from_date=None,
        to_date=None,
        status=None,
        cosmetologist_id=None,
        limit: int = 500,
    ) -> List[Appointment]:
        result = []
        for a in sorted(self.appointments.values(), key=lambda a: a.start_date_time):
            if from_date and a.start_date_time < from_date:
                continue
            if to_date and a.start_date_time > to_date:
                continue
            if status and a.status != status:
                continue
            if cosmetologist_id and a.cosmetologist_id != cosmetologist_id:
                continue
            result.append(self._with_service(a))
        return result[:limit]

    async def update_appointment_status(
        self, appointment_id: int, status: AppointmentStatus
    ) -> Optional[Appointment]:
        if appointment_id not in self.appointments:
            return None
        self.status_writes += 1
        self.appointments[appointment_id] = self.appointments[appointment_id].model_copy(
            update={"status": status}
        )
        return self._with_service(self.appointments[appointment_id])

    async def update_appointments_status(
        self, ids: List[int], status: AppointmentStatus
    ) -> int:
        updated = 0
        for appointment_id in ids:
            if await self.update_appointment_status(appointment_id, status):
                updated += 1
        return updated


@pytest.fixture
def booking_settings() -> Settings:
    """Settings with the documented business-hours defaults."""
    return Settings(
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
        business_start_hour=9,
        business_end_hour=18,
        slot_interval_minutes=30,
        environment="test",
    )


@pytest.fixture
def store() -> InMemoryStore:
    """Store seeded with a customer, an admin, two cosmetologists and three services."""
    store = InMemoryStore()
    store.add_user(CUSTOMER_ID, "John Doe", UserRole.CUSTOMER)
    store.add_user(COSMETOLOGIST_ID, "Jane Smith", UserRole.COSMETOLOGIST)
    store.add_user(ADMIN_ID, "Admin User", UserRole.ADMIN)
    store.add_service(FACIAL_ID, "Facial", 60)
    store.add_service(HAIRCUT_ID, "Haircut", 30)
    store.add_service(RETIRED_ID, "Old Peel", 45, is_active=False)
    return store


@pytest.fixture
def orchestrator(store, booking_settings) -> BookingOrchestrator:
    return BookingOrchestrator(store, settings=booking_settings)


@pytest.fixture
def now() -> datetime:
    """Fixed request time well before the test booking dates."""
    return datetime(2026, 5, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table
