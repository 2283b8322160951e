# salon/booking_service.py
"""
Appointment booking service
Ties the pure scheduling core (availability, composer, lifecycle) to the store
and fires notification trigger points after successful writes.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional

from . import lifecycle
from .availability import resolve_availability
from .catalog import BranchCatalog, load_branch_catalog
from .composer import BookingComposer
from .data import AppointmentStatus, Weekday
from .errors import ConcurrentModificationError, NotFoundError, ValidationError
from .notifications import AppointmentNotifier, ContactDetails, LoggingNotifier, NotificationEvent
from .reporting import appointment_stats, revenue_summary, stylist_performance
from .schemas import (
    Appointment,
    AppointmentStats,
    RevenueSummary,
    ServiceStylistPair,
    StylistAvailability,
    StylistPerformance,
    ValidationResult,
)
from .store import SalonStore, WorkloadReservation
from .validation import parse_date, sanitize, validate

logger = logging.getLogger(__name__)

STATUS_EVENTS = {
    AppointmentStatus.confirmed: NotificationEvent.confirmed,
    AppointmentStatus.cancelled: NotificationEvent.cancelled,
    AppointmentStatus.completed: NotificationEvent.completed,
}


class AppointmentService:
    """Booking and lifecycle operations against a SalonStore."""

    def __init__(
        self,
        store: SalonStore,
        notifier: Optional[AppointmentNotifier] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.notifier = notifier or LoggingNotifier()
        self.clock = clock

    # Availability and composing

    def resolve_availability(self, branch_id: str, on_date: date) -> List[StylistAvailability]:
        return resolve_availability(self.store, branch_id, on_date)

    def start_booking(self, branch_id: str, appointment_date, appointment_time: str) -> BookingComposer:
        on_date = parse_date(appointment_date)
        if on_date is None:
            raise ValidationError(["appointment_date must be a valid date in YYYY-MM-DD format"])
        availability = self.resolve_availability(branch_id, on_date)
        return BookingComposer(branch_id, on_date, appointment_time, availability)

    def validate(self, appointment_data) -> ValidationResult:
        return validate(sanitize(appointment_data), now=self.clock())

    # Workload

    def _reservations(
        self, branch_id: str, pairs: Iterable[ServiceStylistPair], on_date: date
    ) -> List[WorkloadReservation]:
        """Check every pair against the branch catalog and schedules; one reservation per stylist."""
        catalog = load_branch_catalog(self.store, branch_id)
        weekday = Weekday(on_date.weekday())
        units: Dict[str, int] = OrderedDict()
        certified: Dict[str, set] = {}
        errors = []

        for pair in pairs:
            stylist = self.store.get_staff(pair.stylist_id)
            if stylist.branch_id != branch_id:
                errors.append(f"Stylist {stylist.name} does not work at branch {branch_id}")
                continue
            if pair.service_id not in catalog:
                errors.append(f"Service {pair.service_id} is not offered at branch {branch_id}")
                continue
            if stylist.id not in certified:
                certified[stylist.id] = {
                    s.service_id
                    for s in catalog.services_for(self.store.list_stylist_certifications(stylist.id))
                }
            if pair.service_id not in certified[stylist.id]:
                errors.append(f"Stylist {stylist.name} is not certified for service {pair.service_id}")
                continue
            units[stylist.id] = units.get(stylist.id, 0) + catalog.workload_of(pair.service_id)

        reservations = []
        for stylist_id, total in units.items():
            schedule = self.store.get_stylist_schedule(stylist_id, weekday)
            if schedule is None:
                errors.append(f"Stylist {stylist_id} is not scheduled on {weekday.name.title()}")
                continue
            reservations.append(
                WorkloadReservation(stylist_id, on_date, total, schedule.workload_maximum)
            )

        if errors:
            raise ValidationError(errors)
        return reservations

    def _check_slot(self, appointment: Appointment, exclude_id: Optional[str] = None):
        """A stylist can only be in one active appointment per date and time."""
        conflicts = self.store.find_slot_conflicts(
            appointment.stylist_ids,
            appointment.appointment_date,
            appointment.appointment_time,
            exclude_id=exclude_id,
        )
        busy = []
        for conflict in conflicts:
            for stylist_id in conflict.stylist_ids:
                if stylist_id in appointment.stylist_ids and stylist_id not in busy:
                    busy.append(stylist_id)
        if busy:
            logger.warning(
                "Slot %s %s already taken for stylist(s) %s",
                appointment.appointment_date.isoformat(),
                appointment.appointment_time.strftime("%H:%M"),
                ", ".join(busy),
            )
            raise ValidationError(
                [f"Stylist {self.store.get_staff(s).name} is already booked at this time" for s in busy]
            )

    def _held_workload(self, appointment: Appointment) -> List[WorkloadReservation]:
        catalog = load_branch_catalog(self.store, appointment.branch_id)
        units: Dict[str, int] = OrderedDict()
        for pair in appointment.service_stylist_pairs:
            units[pair.stylist_id] = units.get(pair.stylist_id, 0) + catalog.workload_of(pair.service_id)
        return [
            WorkloadReservation(stylist_id, appointment.appointment_date, total)
            for stylist_id, total in units.items()
        ]

    # Lifecycle

    def book(self, booking_request, created_by: Optional[str]) -> Appointment:
        """Validate, reserve stylist workload and persist a new appointment atomically."""
        appointment = lifecycle.create(booking_request, created_by, now=self.clock())
        self.store.get_branch(appointment.branch_id)
        reservations = self._reservations(
            appointment.branch_id, appointment.service_stylist_pairs, appointment.appointment_date
        )
        self._check_slot(appointment)

        appointment_id = self.store.create_appointment(appointment, reservations)
        appointment = appointment.model_copy(update={"id": appointment_id})
        logger.info(
            "Appointment %s created at branch %s for %s %s with %d service(s)",
            appointment_id,
            appointment.branch_id,
            appointment.appointment_date.isoformat(),
            appointment.appointment_time.strftime("%H:%M"),
            len(appointment.service_stylist_pairs),
        )

        if appointment.client_id:
            self._notify(NotificationEvent.created, appointment)
        return appointment

    def get(self, appointment_id: str) -> Appointment:
        return self.store.get_appointment(appointment_id)

    def list_appointments(self, **filters) -> List[Appointment]:
        return self.store.query_appointments(**filters)

    def search(self, term: str, **filters) -> List[Appointment]:
        appointments = self.list_appointments(**filters)
        if not term:
            return appointments
        term = term.lower()
        return [
            a for a in appointments
            if term in lifecycle.client_display_name(a).lower() or term in a.notes.lower()
        ]

    def change_status(
        self,
        appointment_id: str,
        new_status,
        by: Optional[str],
        notes: str = "",
        expected_version: Optional[int] = None,
    ) -> Appointment:
        # re-read right before writing; the write is conditional on this version
        current = self.store.get_appointment(appointment_id)
        if expected_version is not None and current.version != expected_version:
            raise ConcurrentModificationError(appointment_id)

        updated = lifecycle.transition(current, new_status, by, notes, now=self.clock())
        releases = []
        if updated.status == AppointmentStatus.cancelled:
            releases = self._held_workload(current)

        saved = self.store.save_appointment(updated, expected_version=current.version, releases=releases)
        logger.info(
            "Appointment %s: %s -> %s by %s",
            appointment_id, AppointmentStatus(current.status).value, saved.status.value, by,
        )

        event = STATUS_EVENTS.get(saved.status)
        if event is not None:
            self._notify(event, saved)
        return saved

    def update_client_info(self, appointment_id: str, partial_client_info, by: Optional[str]) -> Appointment:
        current = self.store.get_appointment(appointment_id)
        updated = lifecycle.update_client_info(current, partial_client_info, by, now=self.clock())
        return self.store.save_appointment(updated, expected_version=current.version)

    def reschedule(
        self, appointment_id: str, new_date, new_time, by: Optional[str], notes: str = ""
    ) -> Appointment:
        """Move an appointment, re-checking stylist schedules and capacity when the day changes."""
        current = self.store.get_appointment(appointment_id)
        updated = lifecycle.reschedule(current, new_date, new_time, by, notes, now=self.clock())

        if (updated.appointment_date, updated.appointment_time) != (
            current.appointment_date,
            current.appointment_time,
        ):
            self._check_slot(updated, exclude_id=current.id)

        reservations, releases = [], []
        if updated.appointment_date != current.appointment_date:
            releases = self._held_workload(current)
            reservations = self._reservations(
                current.branch_id, current.service_stylist_pairs, updated.appointment_date
            )

        saved = self.store.save_appointment(
            updated, expected_version=current.version, reservations=reservations, releases=releases
        )
        logger.info(
            "Appointment %s rescheduled to %s %s by %s",
            appointment_id,
            saved.appointment_date.isoformat(),
            saved.appointment_time.strftime("%H:%M"),
            by,
        )
        return saved

    # Notifications

    def _contact(self, stylist_id: str) -> ContactDetails:
        staff = self.store.get_staff(stylist_id)
        return ContactDetails(id=staff.id, name=staff.name, phone=staff.phone, email=staff.email)

    def _notify(self, event: NotificationEvent, appointment: Appointment):
        try:
            info = appointment.client_info
            client = ContactDetails(
                id=appointment.client_id,
                name=lifecycle.client_display_name(appointment),
                phone=info.phone or None,
                email=info.email or None,
            )
            stylists = [self._contact(stylist_id) for stylist_id in appointment.stylist_ids]
            self.notifier.notify(event, appointment, client, stylists)
        except Exception as exc:
            # the write already happened; a failed notification must not undo it
            logger.warning(
                "Failed to send %s notification for appointment %s: %s", event.value, appointment.id, exc
            )

    # Reporting

    def _catalogs(self, appointments: Iterable[Appointment]) -> Dict[str, BranchCatalog]:
        branch_ids = {a.branch_id for a in appointments}
        return {branch_id: load_branch_catalog(self.store, branch_id) for branch_id in branch_ids}

    def stats(self, **filters) -> AppointmentStats:
        return appointment_stats(self.list_appointments(**filters))

    def revenue(self, **filters) -> RevenueSummary:
        appointments = self.list_appointments(**filters)
        return revenue_summary(appointments, self._catalogs(appointments))

    def performance(self, **filters) -> List[StylistPerformance]:
        appointments = self.list_appointments(**filters)
        names = {}
        for appointment in appointments:
            for stylist_id in appointment.stylist_ids:
                if stylist_id in names:
                    continue
                try:
                    names[stylist_id] = self.store.get_staff(stylist_id).name
                except NotFoundError:
                    names[stylist_id] = stylist_id
        return stylist_performance(appointments, self._catalogs(appointments), names)
