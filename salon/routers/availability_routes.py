# salon/routers/availability_routes.py

from datetime import date
from typing import List

from fastapi import APIRouter, Depends

from salon.auth import get_current_user
from salon.booking_service import AppointmentService
from salon.deps import get_service, require_role
from salon.lifecycle import present
from salon.schemas import BookingResponse, ClientBookingCreate, StylistAvailability

router = APIRouter(
    prefix="/branches",
    tags=["availability"],
)


@router.get("/{branch_id}/availability", response_model=List[StylistAvailability])
def branch_availability(
    branch_id: str,
    date: date,
    service: AppointmentService = Depends(get_service),
):
    # Empty list means nobody is scheduled that weekday, not an error
    return service.resolve_availability(branch_id, date)


@router.post("/{branch_id}/bookings", response_model=BookingResponse, status_code=201)
def client_book_appointment(
    branch_id: str,
    booking: ClientBookingCreate,
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "client")

    # 1) Compose the selections against freshly resolved availability
    composer = service.start_booking(branch_id, booking.appointment_date, booking.appointment_time)
    for selection in booking.selections:
        composer.toggle(selection.stylist_name, selection.service_id)

    request = composer.compose(
        client_id=current_user["id"],
        client_info=booking.client_info,
        notes=booking.notes,
    )

    # 2) Advisory warnings go back to the caller, they never block
    warnings = service.validate(request).warnings

    # 3) Create, reserving workload in the same write
    appointment = service.book(request, current_user["id"])
    return BookingResponse(
        appointment=present(appointment, service.clock()),
        total=composer.total(),
        warnings=warnings,
    )
