# salon/errors.py
"""Error taxonomy for the scheduling core.

Only StoreUnavailableError is worth retrying (with backoff, by the caller).
"""


class SalonError(Exception):
    """Base class for all domain errors."""


class ValidationError(SalonError):
    """Appointment data failed hard validation. ``errors`` is shown to the user verbatim."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid appointment data")


class IllegalTransitionError(SalonError):
    def __init__(self, current, requested):
        self.current = current
        self.requested = requested
        super().__init__(f"Invalid status transition from {current} to {requested}")


class IncompleteSelectionError(SalonError):
    def __init__(self, message="At least one service must be selected"):
        super().__init__(message)


class NotFoundError(SalonError):
    def __init__(self, kind: str, identifier):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} {identifier!r} not found")


class StoreUnavailableError(SalonError):
    """The backing store failed; the operation may be retried."""


class CapacityExceededError(SalonError):
    def __init__(self, stylist_id: str, work_date: str, requested: int, remaining: int):
        self.stylist_id = stylist_id
        self.work_date = work_date
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            f"Stylist {stylist_id} has {remaining} workload unit(s) left on {work_date}, "
            f"{requested} requested"
        )


class ConcurrentModificationError(SalonError):
    def __init__(self, appointment_id: str):
        self.appointment_id = appointment_id
        super().__init__(f"Appointment {appointment_id} was modified by someone else")
