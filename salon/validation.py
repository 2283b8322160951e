# salon/validation.py
"""Validation and sanitization of appointment data.

Everything here is pure and safe to call before any write. ``validate`` never
raises for bad data; it reports hard ``errors`` (which block a write) and
advisory ``warnings`` (which never do).
"""

import re
from datetime import date, datetime, time
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from .data import STATUS_FLOW, AppointmentStatus, field_limits, shop_settings
from .schemas import ServiceStylistPair, ValidationResult

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\+?\d{7,15}$")


def _as_dict(data) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump()
    return dict(data or {})


def _get(obj, key):
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def parse_date(value) -> Optional[date]:
    """Return the calendar date for a ``YYYY-MM-DD`` string, or None if malformed."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, shop_settings["date_format"]).date()
    except ValueError:
        # right shape, not a real day (2025-02-30)
        return None


def parse_time(value) -> Optional[time]:
    """Return the time for a 24-hour ``HH:MM`` string, or None if malformed."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        return None
    match = TIME_PATTERN.match(value)
    if not match:
        return None
    return time(int(match.group(1)), int(match.group(2)))


def is_legal_transition(current, requested) -> bool:
    """True if the status machine allows ``current -> requested``. Unknown statuses are never legal."""
    try:
        current = AppointmentStatus(current)
        requested = AppointmentStatus(requested)
    except ValueError:
        return False
    return requested in STATUS_FLOW[current]


def normalize_pairs(data) -> List[ServiceStylistPair]:
    """Canonical service/stylist pairs for either appointment shape.

    The paired shape wins when present; the legacy shape (``service_ids`` plus a
    single ``stylist_id``) becomes one pair per service, in order.
    """
    pairs = _get(data, "service_stylist_pairs") or []
    if pairs:
        return [
            ServiceStylistPair(service_id=_get(p, "service_id"), stylist_id=_get(p, "stylist_id"))
            for p in pairs
        ]

    stylist_id = _get(data, "stylist_id")
    service_ids = _get(data, "service_ids") or []
    if not stylist_id:
        return []
    return [ServiceStylistPair(service_id=str(s), stylist_id=stylist_id) for s in service_ids]


def validate_client_info(client_info) -> List[str]:
    errors = []
    phone = _get(client_info, "phone")
    if phone and not PHONE_PATTERN.match(re.sub(r"[\s\-\(\)]", "", phone)):
        errors.append("client_info.phone has an invalid phone number format")

    email = _get(client_info, "email")
    if email and not EMAIL_PATTERN.match(email.strip()):
        errors.append("client_info.email has an invalid email format")
    return errors


def validate_schedule(appointment_date, appointment_time, now: Optional[datetime] = None):
    """Check date/time format and that the slot is strictly in the future.

    Returns ``(errors, warnings)``.
    """
    errors = []
    warnings = []

    parsed_date = parse_date(appointment_date)
    if not appointment_date:
        errors.append("appointment_date is required")
    elif parsed_date is None:
        errors.append("appointment_date must be a valid date in YYYY-MM-DD format")

    parsed_time = parse_time(appointment_time)
    if not appointment_time:
        errors.append("appointment_time is required")
    elif parsed_time is None:
        errors.append("appointment_time must be a valid time in HH:MM (24-hour) format")

    if parsed_date is not None and parsed_time is not None:
        now = now or datetime.now()
        if datetime.combine(parsed_date, parsed_time) <= now:
            errors.append("appointment_date and appointment_time must be in the future")

        opens = parse_time(shop_settings["business_open"])
        closes = parse_time(shop_settings["business_close"])
        if parsed_time < opens or parsed_time > closes:
            warnings.append(
                "Appointment is outside normal business hours "
                f"({shop_settings['business_open']} - {shop_settings['business_close']})"
            )

    return errors, warnings


def validate(appointment_data, now: Optional[datetime] = None) -> ValidationResult:
    data = _as_dict(appointment_data)

    errors, warnings = validate_schedule(
        data.get("appointment_date"), data.get("appointment_time"), now=now
    )

    if not data.get("branch_id"):
        errors.append("branch_id is required")

    pairs = data.get("service_stylist_pairs") or []
    service_ids = data.get("service_ids") or []
    if pairs:
        for index, pair in enumerate(pairs):
            if not _get(pair, "service_id"):
                errors.append(f"service_stylist_pairs[{index}].service_id is required")
            if not _get(pair, "stylist_id"):
                errors.append(f"service_stylist_pairs[{index}].stylist_id is required")
    elif service_ids:
        if not data.get("stylist_id"):
            errors.append("stylist_id is required")
    else:
        errors.append("service_ids or service_stylist_pairs is required and must be non-empty")

    client_info = data.get("client_info") or {}
    if data.get("is_new_client"):
        if not (data.get("new_client_name") or data.get("client_name") or _get(client_info, "name")):
            errors.append("new_client_name or client_name is required for new clients")
    elif not data.get("client_id"):
        errors.append("client_id is required for existing clients")

    if client_info:
        errors.extend(validate_client_info(client_info))

    notes = data.get("notes") or ""
    if len(notes) > field_limits["notes"]:
        warnings.append(
            f"Notes exceed recommended length of {field_limits['notes']} characters "
            "and will be truncated"
        )

    return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)


def _clip(value: Any, limit: Optional[int] = None) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    return text[:limit] if limit else text


def sanitize_client_info(client_info) -> dict:
    info = _as_dict(client_info)
    sanitized = dict(info)
    for key, limit in (("name", field_limits["name"]), ("address", field_limits["address"])):
        if key in info:
            sanitized[key] = _clip(info[key], limit)
    if "phone" in info:
        sanitized["phone"] = _clip(info["phone"])
    if "email" in info:
        sanitized["email"] = _clip(info["email"]).lower()
    return sanitized


def sanitize(appointment_data) -> dict:
    """Trim and cap free text, normalise email and service ids. Returns a new dict."""
    sanitized = _as_dict(appointment_data)

    for key in ("branch_id", "client_id", "stylist_id", "appointment_date", "appointment_time"):
        if isinstance(sanitized.get(key), str):
            sanitized[key] = sanitized[key].strip()

    if sanitized.get("notes"):
        sanitized["notes"] = _clip(sanitized["notes"], field_limits["notes"])
    for key in ("new_client_name", "client_name"):
        if sanitized.get(key):
            sanitized[key] = _clip(sanitized[key], field_limits["name"])

    if sanitized.get("client_info"):
        sanitized["client_info"] = sanitize_client_info(sanitized["client_info"])

    if sanitized.get("service_ids"):
        sanitized["service_ids"] = [
            _clip(s) for s in sanitized["service_ids"] if s is not None and _clip(s)
        ]

    if sanitized.get("service_stylist_pairs"):
        sanitized["service_stylist_pairs"] = [
            {"service_id": _clip(_get(p, "service_id")), "stylist_id": _clip(_get(p, "stylist_id"))}
            for p in sanitized["service_stylist_pairs"]
            if _clip(_get(p, "service_id"))
        ]

    return sanitized
