# salon/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from .booking_service import AppointmentService
from .data import STAFF_ROLES, AppointmentStatus
from .db import get_session
from .schemas import Appointment
from .store import SalonStore


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_store(session: Session = Depends(get_session)) -> SalonStore:
    return SalonStore(session)


def get_service(store: SalonStore = Depends(get_store)) -> AppointmentService:
    return AppointmentService(store)


def ensure_can_view(user: dict, appointment: Appointment):
    if user["role"] in STAFF_ROLES:
        return
    if user["role"] == "stylist" and user["id"] in appointment.stylist_ids:
        return
    if user["role"] == "client" and user["id"] == appointment.client_id:
        return
    raise HTTPException(status_code=403, detail="Forbidden")


def ensure_can_change_status(user: dict, appointment: Appointment, new_status: str):
    role = user["role"]
    if role in STAFF_ROLES:
        return
    if role == "stylist" and user["id"] in appointment.stylist_ids and new_status in (
        AppointmentStatus.in_progress.value,
        AppointmentStatus.completed.value,
    ):
        return
    if role == "client" and user["id"] == appointment.client_id and new_status == AppointmentStatus.cancelled.value:
        return
    raise HTTPException(status_code=403, detail="Forbidden")


def ensure_can_reschedule(user: dict, appointment: Appointment):
    role = user["role"]
    if role in STAFF_ROLES:
        return
    if role == "client" and user["id"] == appointment.client_id:
        return
    raise HTTPException(status_code=403, detail="Forbidden")
