# salon/lifecycle.py
"""Appointment lifecycle engine.

Pure operations over ``Appointment`` values: each returns a new appointment and
never touches the store. History is append-only; every status change adds
exactly one ``status_changed_to_<status>`` entry.
"""

import logging
from datetime import date, datetime
from typing import Optional

from .data import TERMINAL_STATUSES, AppointmentStatus
from .errors import IllegalTransitionError, ValidationError
from .schemas import Appointment, AppointmentPublic, ClientInfo, HistoryEntry
from .validation import (
    is_legal_transition,
    normalize_pairs,
    parse_date,
    parse_time,
    sanitize,
    sanitize_client_info,
    validate,
    validate_client_info,
    validate_schedule,
)

logger = logging.getLogger(__name__)


def _entry(action: str, by: Optional[str], notes: str, now: datetime) -> HistoryEntry:
    return HistoryEntry(action=action, by=by, timestamp=now, notes=notes)


def create(booking_request, created_by: Optional[str], now: Optional[datetime] = None) -> Appointment:
    """Build a new ``scheduled`` appointment from a composed booking request.

    Raises ValidationError with every hard error found. The returned
    appointment has no id yet; the store assigns one on insert.
    """
    now = now or datetime.now()
    data = sanitize(booking_request)
    result = validate(data, now=now)
    if not result.is_valid:
        raise ValidationError(result.errors)

    client_info = ClientInfo(**(data.get("client_info") or {}))
    if not client_info.name:
        fallback = data.get("client_name") or data.get("new_client_name") or ""
        client_info = client_info.model_copy(update={"name": fallback})

    return Appointment(
        branch_id=data["branch_id"],
        appointment_date=parse_date(data["appointment_date"]),
        appointment_time=parse_time(data["appointment_time"]),
        client_id=data.get("client_id") or None,
        client_name=data.get("client_name") or "",
        is_new_client=bool(data.get("is_new_client")),
        new_client_name=data.get("new_client_name") or "",
        client_info=client_info,
        service_stylist_pairs=normalize_pairs(data),
        status=AppointmentStatus.scheduled,
        notes=data.get("notes") or "",
        created_by=created_by,
        created_at=now,
        updated_at=now,
        history=[_entry("created", created_by, "Appointment created", now)],
    )


def transition(
    appointment: Appointment,
    new_status,
    by: Optional[str],
    notes: str = "",
    now: Optional[datetime] = None,
) -> Appointment:
    """The only sanctioned way to change ``status``."""
    current = AppointmentStatus(appointment.status).value
    if not is_legal_transition(current, new_status):
        logger.warning(
            "Rejected status change for appointment %s: %s -> %s", appointment.id, current, new_status
        )
        raise IllegalTransitionError(current, str(getattr(new_status, "value", new_status)))

    new_status = AppointmentStatus(new_status)
    now = now or datetime.now()
    entry = _entry(
        f"status_changed_to_{new_status.value}",
        by,
        notes or f"Appointment status changed to {new_status.value}",
        now,
    )
    return appointment.model_copy(
        update={
            "status": new_status,
            "updated_at": now,
            "history": [*appointment.history, entry],
        }
    )


def update_client_info(
    appointment: Appointment,
    partial_client_info,
    by: Optional[str],
    now: Optional[datetime] = None,
) -> Appointment:
    """Merge the given (non-None) client fields. Status is left alone."""
    if hasattr(partial_client_info, "model_dump"):
        partial_client_info = partial_client_info.model_dump()
    changes = {
        key: value
        for key, value in partial_client_info.items()
        if value is not None and key in ClientInfo.model_fields
    }
    changes = sanitize_client_info(changes)
    errors = validate_client_info(changes)
    if errors:
        raise ValidationError(errors)

    now = now or datetime.now()
    entry = _entry(
        "client_info_updated",
        by,
        f"Client information updated for {changes.get('name') or 'client'}",
        now,
    )
    return appointment.model_copy(
        update={
            "client_info": appointment.client_info.model_copy(update=changes),
            "updated_at": now,
            "history": [*appointment.history, entry],
        }
    )


def reschedule(
    appointment: Appointment,
    new_date,
    new_time,
    by: Optional[str],
    notes: str = "",
    now: Optional[datetime] = None,
) -> Appointment:
    """Move the appointment to a new date/time.

    Only format, future-ness and non-terminal status are checked here; stylist
    capacity on the new day is the caller's job (see AppointmentService.reschedule).
    """
    status = AppointmentStatus(appointment.status)
    if status in TERMINAL_STATUSES:
        raise ValidationError([f"Cannot reschedule a {status.value} appointment"])

    now = now or datetime.now()
    errors, _ = validate_schedule(new_date, new_time, now=now)
    if errors:
        raise ValidationError(errors)

    moved_date = parse_date(new_date)
    moved_time = parse_time(new_time)
    entry = _entry(
        "rescheduled",
        by,
        notes or (
            f"Rescheduled from {appointment.appointment_date.isoformat()} "
            f"{appointment.appointment_time:%H:%M} to {moved_date.isoformat()} {moved_time:%H:%M}"
        ),
        now,
    )
    return appointment.model_copy(
        update={
            "appointment_date": moved_date,
            "appointment_time": moved_time,
            "updated_at": now,
            "history": [*appointment.history, entry],
        }
    )


# Derived read-only views

def client_display_name(appointment: Appointment) -> str:
    if appointment.client_info and appointment.client_info.name:
        return appointment.client_info.name
    if appointment.client_name:
        return appointment.client_name
    if appointment.new_client_name:
        return appointment.new_client_name
    return "Unknown Client"


def appointment_datetime(appointment: Appointment) -> datetime:
    return datetime.combine(appointment.appointment_date, appointment.appointment_time)


def formatted_date(appointment: Appointment) -> str:
    """e.g. ``Friday, October 17, 2025``"""
    d = appointment.appointment_date
    return f"{d:%A}, {d:%B} {d.day}, {d.year}"


def formatted_time(appointment: Appointment) -> str:
    """12-hour clock, e.g. ``2:30 PM``"""
    t = appointment.appointment_time
    suffix = "PM" if t.hour >= 12 else "AM"
    return f"{t.hour % 12 or 12}:{t.minute:02d} {suffix}"


def is_today(appointment: Appointment, today: Optional[date] = None) -> bool:
    return appointment.appointment_date == (today or date.today())


def is_past_appointment(appointment: Appointment, now: Optional[datetime] = None) -> bool:
    return appointment_datetime(appointment) < (now or datetime.now())


def present(appointment: Appointment, now: Optional[datetime] = None) -> AppointmentPublic:
    now = now or datetime.now()
    return AppointmentPublic(
        **appointment.model_dump(),
        client_display_name=client_display_name(appointment),
        formatted_date=formatted_date(appointment),
        formatted_time=formatted_time(appointment),
        is_today=is_today(appointment, now.date()),
        is_past=is_past_appointment(appointment, now),
    )
