# salon/routers/appointments_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from salon.auth import get_current_user
from salon.booking_service import AppointmentService
from salon.catalog import load_branch_catalog
from salon.data import STAFF_ROLES, AppointmentStatus
from salon.deps import (
    ensure_can_change_status,
    ensure_can_reschedule,
    ensure_can_view,
    get_service,
    require_role,
)
from salon.lifecycle import present
from salon.reporting import appointment_value
from salon.schemas import (
    AppointmentPublic,
    BookingRequest,
    BookingResponse,
    ClientInfoUpdate,
    RescheduleRequest,
    StatusChange,
    ValidationResult,
)

router = APIRouter(
    prefix="/appointments",
    tags=["appointments"],
)


@router.post("/validate", response_model=ValidationResult)
def validate_appointment(
    booking: BookingRequest,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    return service.validate(booking)


@router.post("", response_model=BookingResponse, status_code=201)
def create_appointment(
    booking: BookingRequest,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, *STAFF_ROLES)  # front desk and above

    warnings = service.validate(booking).warnings
    appointment = service.book(booking, current_user["id"])
    catalog = load_branch_catalog(service.store, appointment.branch_id)
    return BookingResponse(
        appointment=present(appointment, service.clock()),
        total=appointment_value(appointment, catalog),
        warnings=warnings,
    )


@router.get("", response_model=List[AppointmentPublic])
def list_appointments(
    branch_id: Optional[str] = None,
    status: Optional[AppointmentStatus] = None,
    stylist_id: Optional[str] = None,
    client_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    q: Optional[str] = None,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    # Stylists and clients only ever see their own appointments
    if current_user["role"] == "stylist":
        stylist_id = current_user["id"]
    elif current_user["role"] == "client":
        client_id = current_user["id"]
    else:
        require_role(current_user, *STAFF_ROLES)

    appointments = service.search(
        q or "",
        branch_id=branch_id,
        status=status.value if status else None,
        stylist_id=stylist_id,
        client_id=client_id,
        date_from=date_from,
        date_to=date_to,
    )
    now = service.clock()
    return [present(a, now) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentPublic)
def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    appointment = service.get(appointment_id)
    ensure_can_view(current_user, appointment)
    return present(appointment, service.clock())


@router.post("/{appointment_id}/status", response_model=AppointmentPublic)
def change_appointment_status(
    appointment_id: str,
    change: StatusChange,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    # 1) Authorization against the current record
    appointment = service.get(appointment_id)
    ensure_can_change_status(current_user, appointment, change.status)

    # 2) Transition (re-reads and writes conditionally on version)
    updated = service.change_status(
        appointment_id,
        change.status,
        current_user["id"],
        notes=change.notes,
        expected_version=change.expected_version,
    )
    return present(updated, service.clock())


@router.patch("/{appointment_id}/client-info", response_model=AppointmentPublic)
def update_client_info(
    appointment_id: str,
    client_info: ClientInfoUpdate,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, *STAFF_ROLES)
    updated = service.update_client_info(appointment_id, client_info, current_user["id"])
    return present(updated, service.clock())


@router.post("/{appointment_id}/reschedule", response_model=AppointmentPublic)
def reschedule_appointment(
    appointment_id: str,
    move: RescheduleRequest,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    appointment = service.get(appointment_id)
    ensure_can_reschedule(current_user, appointment)

    updated = service.reschedule(
        appointment_id,
        move.appointment_date,
        move.appointment_time,
        current_user["id"],
        notes=move.notes,
    )
    return present(updated, service.clock())
