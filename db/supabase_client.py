"""
Supabase database client with CRUD operations.
Handles all database interactions for users, services and appointments.

Tables:
- users(id, name, role, email, phone_number)
- services(id, name, description, duration_minutes, price, is_active)
- appointments(id, customer_id, service_id, cosmetologist_id,
  start_date_time, end_date_time, status, notes, created_at)

end_date_time is a storage-side copy maintained by a trigger from the
service duration. It is only used to bound conflict queries; the
application always recomputes the end time from the loaded service.

Double-booking backstop (SQL):
------------------------------
CREATE EXTENSION IF NOT EXISTS btree_gist;

ALTER TABLE appointments
ADD CONSTRAINT appointments_no_overlap
EXCLUDE USING gist (
    cosmetologist_id WITH =,
    tstzrange(start_date_time, end_date_time, '[)') WITH &&
)
WHERE (cosmetologist_id IS NOT NULL AND status <> 'Cancelled');

A violation (SQLSTATE 23P01) is reported as SlotConflictError.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.service import Service, ServiceCreate, ServiceUpdate
from models.user import User, UserRole
from utils.datetime_utils import parse_iso_datetime, to_iso_string, utc_now
from utils.exceptions import DatabaseError, SlotConflictError

EXCLUSION_VIOLATION = "23P01"

# Appointments are always read with their service and participant names embedded
APPOINTMENT_SELECT = (
    "*, service:services(*), "
    "customer:users!customer_id(name), "
    "cosmetologist:users!cosmetologist_id(name)"
)


class SupabaseClient:
    """
    Supabase database client wrapper.

    Implements the storage contract consumed by the scheduling engine.
    Includes a simple in-memory cache for the service catalog.
    """

    def __init__(self):
        """Initialize Supabase client."""
        self.client: SupabaseClientType = create_client(
            settings.supabase_url, settings.supabase_key
        )

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=5)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if utc_now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        """Set value in cache with TTL."""
        self._cache[key] = (value, utc_now() + self._cache_ttl)

    def _clear_cache(self, pattern: Optional[str] = None) -> None:
        """Clear cache entries matching pattern, or all if pattern is None."""
        if pattern is None:
            self._cache.clear()
        else:
            for k in [k for k in self._cache if pattern in k]:
                del self._cache[k]

    # ========== User Operations ==========

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        try:
            response = self.client.table("users").select("*").eq("id", user_id).execute()

            if response.data:
                return User(**response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get user: {e}") from e

    async def get_cosmetologists(self) -> List[User]:
        """Get all users with the Cosmetologist role, ordered by name."""
        try:
            response = (
                self.client.table("users")
                .select("*")
                .eq("role", UserRole.COSMETOLOGIST.value)
                .order("name", desc=False)
                .execute()
            )
            return [User(**item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get cosmetologists: {e}") from e

    async def get_cosmetologist_ids(self) -> List[int]:
        """Get IDs of all users with the Cosmetologist role."""
        try:
            response = (
                self.client.table("users")
                .select("id")
                .eq("role", UserRole.COSMETOLOGIST.value)
                .order("id", desc=False)
                .execute()
            )
            return [item["id"] for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get cosmetologists: {e}") from e

    # ========== Service Operations ==========

    async def get_service_by_id(self, service_id: int) -> Optional[Service]:
        """
        Get service by ID, active or not.

        Uses cache to reduce database load during slot generation.
        """
        cache_key = f"service:id:{service_id}"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table("services").select("*").eq("id", service_id).execute()
            )

            if response.data:
                service = Service(**response.data[0])
                self._set_cache(cache_key, service)
                return service
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get service: {e}") from e

    async def get_active_services(self) -> List[Service]:
        """Get all services currently offered."""
        try:
            response = (
                self.client.table("services")
                .select("*")
                .eq("is_active", True)
                .order("name", desc=False)
                .execute()
            )
            return [Service(**item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get services: {e}") from e

    async def create_service(self, service_data: ServiceCreate) -> Service:
        """Create a new active service."""
        try:
            data = service_data.model_dump(mode="json")
            data["is_active"] = True

            response = self.client.table("services").insert(data).execute()

            if not response.data:
                raise ValueError("Failed to create service: no data returned")

            return Service(**response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to create service: {e}") from e

    async def update_service(
        self, service_id: int, service_data: ServiceUpdate
    ) -> Optional[Service]:
        """Update a service. Returns None if it does not exist."""
        try:
            response = (
                self.client.table("services")
                .update(service_data.model_dump(mode="json"))
                .eq("id", service_id)
                .execute()
            )
            self._clear_cache(f"service:id:{service_id}")

            if not response.data:
                return None
            return Service(**response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to update service: {e}") from e

    async def deactivate_service(self, service_id: int) -> bool:
        """Mark a service as no longer offered. Services are never deleted."""
        try:
            response = (
                self.client.table("services")
                .update({"is_active": False})
                .eq("id", service_id)
                .execute()
            )
            self._clear_cache(f"service:id:{service_id}")
            return len(response.data) > 0
        except Exception as e:
            raise DatabaseError(f"Failed to deactivate service: {e}") from e

    # ========== Appointment Operations ==========

    async def create_appointment(self, appointment_data: AppointmentCreate) -> Appointment:
        """
        Create a new appointment and return it with its service loaded.

        Raises:
            SlotConflictError: If the exclusion constraint rejects the insert
        """
        try:
            data = appointment_data.model_dump(exclude_none=True, mode="json")
            data["start_date_time"] = to_iso_string(appointment_data.start_date_time)

            response = self.client.table("appointments").insert(data).execute()

            if not response.data:
                raise ValueError("Failed to create appointment: no data returned")
        except APIError as e:
            if e.code == EXCLUSION_VIOLATION:
                raise SlotConflictError() from e
            raise DatabaseError(f"Failed to create appointment: {e}") from e
        except Exception as e:
            raise DatabaseError(f"Failed to create appointment: {e}") from e

        created = await self.get_appointment_by_id(response.data[0]["id"])
        if created is None:
            raise DatabaseError("Failed to reload created appointment")
        return created

    async def get_appointment_by_id(self, appointment_id: int) -> Optional[Appointment]:
        """Get appointment by ID with its service loaded."""
        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("id", appointment_id)
                .execute()
            )

            if response.data:
                return self._parse_appointment(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get appointment: {e}") from e

    async def get_appointments_by_ids(
        self, appointment_ids: List[int]
    ) -> Dict[int, Appointment]:
        """
        Batch fetch multiple appointments by IDs.

        Returns:
            Dictionary mapping appointment_id -> Appointment
        """
        if not appointment_ids:
            return {}

        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .in_("id", appointment_ids)
                .execute()
            )

            appointments = {}
            for item in response.data:
                appointment = self._parse_appointment(item)
                appointments[appointment.id] = appointment
            return appointments
        except Exception as e:
            raise DatabaseError(f"Failed to get appointments by IDs: {e}") from e

    async def get_active_appointments_for_cosmetologist(
        self,
        cosmetologist_id: int,
        until: Optional[datetime] = None,
        since: Optional[datetime] = None,
    ) -> List[Appointment]:
        """
        Get a cosmetologist's non-cancelled appointments, optionally only
        those starting before ``until`` and ending after ``since``.

        The lower bound uses the storage-side end_date_time column.
        """
        try:
            query = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("cosmetologist_id", cosmetologist_id)
                .neq("status", AppointmentStatus.CANCELLED.value)
            )
            if until:
                query = query.lt("start_date_time", to_iso_string(until))
            if since:
                query = query.gt("end_date_time", to_iso_string(since))

            response = query.order("start_date_time", desc=False).execute()
            return [self._parse_appointment(item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get cosmetologist appointments: {e}") from e

    async def get_appointments_by_customer(self, customer_id: int) -> List[Appointment]:
        """Get all appointments booked by a customer."""
        try:
            response = (
                self.client.table("appointments")
                .select(APPOINTMENT_SELECT)
                .eq("customer_id", customer_id)
                .order("start_date_time", desc=False)
                .execute()
            )
            return [self._parse_appointment(item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get customer appointments: {e}") from e

    async def get_all_appointments(
        self,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        status: Optional[AppointmentStatus] = None,
        cosmetologist_id: Optional[int] = None,
        limit: int = 500,
    ) -> List[Appointment]:
        """
        Get all appointments (staff operation).

        Args:
            from_date: Only appointments starting at or after this instant
            to_date: Only appointments starting at or before this instant
            status: Filter by status
            cosmetologist_id: Filter by assigned cosmetologist
            limit: Maximum number of appointments to return

        Returns:
            Appointments ordered by start time
        """
        try:
            query = self.client.table("appointments").select(APPOINTMENT_SELECT)

            if from_date:
                query = query.gte("start_date_time", to_iso_string(from_date))
            if to_date:
                query = query.lte("start_date_time", to_iso_string(to_date))
            if status:
                query = query.eq("status", status.value)
            if cosmetologist_id:
                query = query.eq("cosmetologist_id", cosmetologist_id)

            response = query.order("start_date_time", desc=False).limit(limit).execute()
            return [self._parse_appointment(item) for item in response.data]
        except Exception as e:
            raise DatabaseError(f"Failed to get all appointments: {e}") from e

    async def update_appointment_status(
        self, appointment_id: int, status: AppointmentStatus
    ) -> Optional[Appointment]:
        """Update appointment status. Returns None if it does not exist."""
        try:
            response = (
                self.client.table("appointments")
                .update({"status": status.value})
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to update appointment status: {e}") from e

        if not response.data:
            return None
        return await self.get_appointment_by_id(appointment_id)

    async def update_appointments_status(
        self, appointment_ids: List[int], status: AppointmentStatus
    ) -> int:
        """
        Set one status on many appointments in a single statement.

        Returns:
            Number of rows updated
        """
        if not appointment_ids:
            return 0

        try:
            response = (
                self.client.table("appointments")
                .update({"status": status.value})
                .in_("id", appointment_ids)
                .execute()
            )
            return len(response.data)
        except Exception as e:
            raise DatabaseError(f"Failed to bulk update appointment status: {e}") from e

    # ========== Helper Methods ==========

    def _parse_appointment(self, item: dict) -> Appointment:
        """
        Parse appointment data from database response.

        Args:
            item: Raw appointment row, with the embedded service and names if selected

        Returns:
            Parsed Appointment object
        """
        item = item.copy()
        item.pop("end_date_time", None)
        for field in ["start_date_time", "created_at"]:
            if item.get(field):
                item[field] = parse_iso_datetime(item[field])
        if item.get("service"):
            item["service"] = Service(**item["service"])
        for role in ["customer", "cosmetologist"]:
            embedded = item.pop(role, None)
            if embedded:
                item[f"{role}_name"] = embedded.get("name")
        return Appointment(**item)


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client
