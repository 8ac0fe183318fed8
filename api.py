"""
HTTP API for the booking engine (aiohttp).

Thin layer over BookingOrchestrator and the service catalog:
- Request parsing and validation with pydantic
- Error kinds mapped to status codes by one middleware
- Security headers on every response

The caller is identified by the X-User-Id header set by the upstream
gateway after authentication.
"""

import json
import time
from typing import Optional

from aiohttp import web
from aiohttp.web import Request, Response
from pydantic import ValidationError as PydanticValidationError

from config import settings
from db import get_db_client
from models.appointment import BookingRequest, BulkStatusUpdateRequest, StatusUpdateRequest
from models.service import ServiceCreate, ServiceUpdate
from scheduling import BookingOrchestrator
from utils.constants import USER_ID_HEADER
from utils.datetime_utils import parse_iso_date, parse_iso_datetime, utc_now
from utils.exceptions import (
    AppointmentNotFoundError,
    BookingError,
    BulkTransitionError,
    DatabaseError,
    DataIntegrityError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    ServiceNotFoundError,
    SlotConflictError,
    UserNotFoundError,
)
from utils.logging_config import configure_app_logging, setup_logging
from utils.validation import parse_id, parse_optional_id

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="api.log", log_dir="logs"
)

_started_at = time.time()


def _status_for(error: BookingError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, ForbiddenError):
        return 403
    if isinstance(error, SlotConflictError):
        return 409
    return 400


def _error_response(status: int, error: str, message: str, **extra) -> Response:
    payload = {"status": "error", "error": error, "message": message}
    payload.update(extra)
    return web.json_response(payload, status=status)


@web.middleware
async def error_middleware(request: Request, handler):
    """
    Translate domain exceptions into JSON error responses.

    Booking rejections are expected outcomes and logged at INFO; data
    integrity and storage failures abort the request with 500.
    """
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except BulkTransitionError as e:
        logger.info(f"{request.method} {request.path} rejected: {e.message}")
        return _error_response(
            400,
            e.error_kind,
            e.message,
            failures={str(k): v for k, v in e.failures.items()},
        )
    except AppointmentNotFoundError as e:
        logger.info(f"{request.method} {request.path} rejected: {e.message}")
        return _error_response(404, e.error_kind, e.message, appointmentIds=e.appointment_ids)
    except BookingError as e:
        logger.info(f"{request.method} {request.path} rejected: {e.message}")
        return _error_response(_status_for(e), e.error_kind, e.message)
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        return _error_response(400, "invalid_input", f"Invalid or missing fields: {fields}")
    except json.JSONDecodeError:
        return _error_response(400, "invalid_input", "Request body must be valid JSON")
    except DataIntegrityError as e:
        logger.error(f"Data integrity violation on {request.path}: {e}", exc_info=True)
        return _error_response(500, "data_integrity", str(e))
    except DatabaseError as e:
        logger.error(f"Storage failure on {request.path}: {e}", exc_info=True)
        return _error_response(500, "storage_error", "Internal storage error")


def _set_security_headers(headers) -> None:
    headers["X-Content-Type-Options"] = "nosniff"
    headers["X-Frame-Options"] = "DENY"
    headers["X-XSS-Protection"] = "1; mode=block"
    headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"


@web.middleware
async def security_headers_middleware(request: Request, handler):
    """Add security headers to all responses, including raised HTTP errors."""
    try:
        response = await handler(request)
    except web.HTTPException as e:
        _set_security_headers(e.headers)
        raise

    _set_security_headers(response.headers)
    return response


def _current_user_id(request: Request) -> int:
    raw = request.headers.get(USER_ID_HEADER)
    if not raw:
        raise web.HTTPUnauthorized(
            text=json.dumps({"status": "error", "error": "unauthorized",
                             "message": f"Missing {USER_ID_HEADER} header"}),
            content_type="application/json",
        )
    return parse_id(raw, USER_ID_HEADER)


def _optional_datetime(value: Optional[str], field: str):
    if not value:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError as e:
        raise InvalidInputError(f"{field} must be an ISO 8601 datetime.") from e


async def _json_body(request: Request) -> dict:
    body = await request.json()
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return body


# ========== Availability ==========


async def availability_handler(request: Request) -> Response:
    """GET /api/availability?date=2026-06-01&serviceId=1&cosmetologistId=2"""
    raw_date = request.query.get("date")
    if not raw_date:
        raise InvalidInputError("Date is required.")
    try:
        day = parse_iso_date(raw_date)
    except ValueError as e:
        raise InvalidInputError(f"Invalid date: {raw_date}") from e

    service_id = parse_id(request.query.get("serviceId"), "serviceId")
    cosmetologist_id = parse_optional_id(request.query.get("cosmetologistId"), "cosmetologistId")

    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    slots = await orchestrator.get_available_slots(
        day, service_id, cosmetologist_id, now=utc_now()
    )
    return web.json_response([s.model_dump(mode="json", by_alias=True) for s in slots])


# ========== Appointments ==========


async def create_appointment_handler(request: Request) -> Response:
    """POST /api/appointments"""
    customer_id = _current_user_id(request)
    booking = BookingRequest.model_validate(await _json_body(request))

    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    appointment = await orchestrator.create_booking(
        customer_id=customer_id,
        service_id=booking.service_id,
        start_date_time=booking.start_date_time,
        cosmetologist_id=booking.cosmetologist_id,
        notes=booking.notes,
        now=utc_now(),
    )
    return web.json_response(appointment.to_response(), status=201)


async def list_appointments_handler(request: Request) -> Response:
    """GET /api/appointments?from&to&status&cosmetologistId (staff)"""
    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    appointments = await orchestrator.list_appointments(
        from_date=_optional_datetime(request.query.get("from"), "from"),
        to_date=_optional_datetime(request.query.get("to"), "to"),
        status=request.query.get("status") or None,
        cosmetologist_id=parse_optional_id(
            request.query.get("cosmetologistId"), "cosmetologistId"
        ),
    )
    return web.json_response([a.to_response() for a in appointments])


async def my_appointments_handler(request: Request) -> Response:
    """GET /api/appointments/my"""
    customer_id = _current_user_id(request)
    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    appointments = await orchestrator.list_customer_appointments(customer_id)
    return web.json_response([a.to_response() for a in appointments])


async def get_appointment_handler(request: Request) -> Response:
    """GET /api/appointments/{id}"""
    appointment_id = parse_id(request.match_info["id"], "id")
    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    appointment = await orchestrator.get_appointment(appointment_id)
    return web.json_response(appointment.to_response())


async def update_status_handler(request: Request) -> Response:
    """PUT /api/appointments/{id}/status"""
    appointment_id = parse_id(request.match_info["id"], "id")
    update = StatusUpdateRequest.model_validate(await _json_body(request))

    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    appointment = await orchestrator.update_status(appointment_id, update.status)
    return web.json_response(appointment.to_response())


async def bulk_status_handler(request: Request) -> Response:
    """PUT /api/appointments/bulk-status"""
    update = BulkStatusUpdateRequest.model_validate(await _json_body(request))

    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    updated = await orchestrator.bulk_update_status(update.appointment_ids, update.new_status)
    return web.json_response({"updated": updated})


async def cancel_appointment_handler(request: Request) -> Response:
    """DELETE /api/appointments/{id} (customer cancels own pending booking)"""
    customer_id = _current_user_id(request)
    appointment_id = parse_id(request.match_info["id"], "id")

    orchestrator: BookingOrchestrator = request.app["orchestrator"]
    await orchestrator.cancel_booking(appointment_id, customer_id)
    return web.Response(status=204)


# ========== Services ==========


async def list_services_handler(request: Request) -> Response:
    """GET /api/services"""
    services = await request.app["db"].get_active_services()
    return web.json_response([s.model_dump(mode="json", by_alias=True) for s in services])


async def get_service_handler(request: Request) -> Response:
    """GET /api/services/{id}"""
    service_id = parse_id(request.match_info["id"], "id")
    service = await request.app["db"].get_service_by_id(service_id)
    if service is None or not service.is_active:
        raise ServiceNotFoundError(service_id)
    return web.json_response(service.model_dump(mode="json", by_alias=True))


async def create_service_handler(request: Request) -> Response:
    """POST /api/services"""
    service_data = ServiceCreate.model_validate(await _json_body(request))
    service = await request.app["db"].create_service(service_data)
    logger.info(f"Created service {service.id}: {service.name}")
    return web.json_response(service.model_dump(mode="json", by_alias=True), status=201)


async def update_service_handler(request: Request) -> Response:
    """PUT /api/services/{id}"""
    service_id = parse_id(request.match_info["id"], "id")
    service_data = ServiceUpdate.model_validate(await _json_body(request))
    service = await request.app["db"].update_service(service_id, service_data)
    if service is None:
        raise ServiceNotFoundError(service_id)
    return web.json_response(service.model_dump(mode="json", by_alias=True))


async def deactivate_service_handler(request: Request) -> Response:
    """DELETE /api/services/{id} (deactivates; services are never deleted)"""
    service_id = parse_id(request.match_info["id"], "id")
    if not await request.app["db"].deactivate_service(service_id):
        raise ServiceNotFoundError(service_id)
    logger.info(f"Deactivated service {service_id}")
    return web.Response(status=204)


# ========== Users ==========


async def list_cosmetologists_handler(request: Request) -> Response:
    """GET /api/users/cosmetologists"""
    cosmetologists = await request.app["db"].get_cosmetologists()
    return web.json_response(
        [u.model_dump(mode="json", by_alias=True) for u in cosmetologists]
    )


async def current_user_handler(request: Request) -> Response:
    """GET /api/users/me"""
    user_id = _current_user_id(request)
    user = await request.app["db"].get_user_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return web.json_response(user.model_dump(mode="json", by_alias=True))


# ========== Health ==========


async def health_check(request: Request) -> Response:
    """Health check endpoint with configuration info."""
    uptime_hours = (time.time() - _started_at) / 3600
    return web.json_response(
        {
            "status": "ok",
            "service": "cosmetology-booking",
            "timestamp": time.time(),
            "uptime_hours": round(uptime_hours, 2),
            "configuration": {
                "business_start_hour": settings.business_start_hour,
                "business_end_hour": settings.business_end_hour,
                "slot_interval_minutes": settings.slot_interval_minutes,
                "environment": settings.environment,
            },
        }
    )


def create_app(db=None, orchestrator: Optional[BookingOrchestrator] = None) -> web.Application:
    """
    Create aiohttp application with middleware and routes.

    Args:
        db: Storage collaborator; defaults to the global Supabase client
        orchestrator: Booking orchestrator; built over ``db`` when omitted

    Returns:
        Configured web application
    """
    if db is None:
        db = get_db_client()
    if orchestrator is None:
        orchestrator = BookingOrchestrator(db, settings=settings)

    app = web.Application(middlewares=[security_headers_middleware, error_middleware])
    app["db"] = db
    app["orchestrator"] = orchestrator

    app.router.add_get("/api/availability", availability_handler)

    app.router.add_get("/api/appointments", list_appointments_handler)
    app.router.add_post("/api/appointments", create_appointment_handler)
    app.router.add_get("/api/appointments/my", my_appointments_handler)
    app.router.add_put("/api/appointments/bulk-status", bulk_status_handler)
    app.router.add_get(r"/api/appointments/{id:\d+}", get_appointment_handler)
    app.router.add_delete(r"/api/appointments/{id:\d+}", cancel_appointment_handler)
    app.router.add_put(r"/api/appointments/{id:\d+}/status", update_status_handler)

    app.router.add_get("/api/services", list_services_handler)
    app.router.add_post("/api/services", create_service_handler)
    app.router.add_get(r"/api/services/{id:\d+}", get_service_handler)
    app.router.add_put(r"/api/services/{id:\d+}", update_service_handler)
    app.router.add_delete(r"/api/services/{id:\d+}", deactivate_service_handler)

    app.router.add_get("/api/users/cosmetologists", list_cosmetologists_handler)
    app.router.add_get("/api/users/me", current_user_handler)

    app.router.add_get("/health", health_check)

    return app


if __name__ == "__main__":
    settings.validate_all_required()
    configure_app_logging(log_level=settings.log_level)
    logger.info(f"Starting booking API on {settings.host}:{settings.port}")
    web.run_app(create_app(), host=settings.host, port=settings.port)
