# salon/store.py
"""Read/write adapter over the salon's backing store.

The store is the only arbiter of per-row atomicity. Workload reservations are
conditional writes made in the same transaction as the appointment write, so
two bookings can never jointly exceed a stylist's daily maximum.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, Iterable, List, Optional

from sqlalchemy import case, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .data import ACTIVE_STATUSES, AppointmentStatus, Weekday
from .errors import (
    CapacityExceededError,
    ConcurrentModificationError,
    NotFoundError,
    StoreUnavailableError,
)
from .models import (
    AppointmentRecord,
    Branch,
    BranchServiceOffering,
    ServiceDefinition,
    Staff,
    StylistSchedule,
    StylistServiceCertification,
    StylistWorkload,
    new_id,
)
from .schemas import Appointment
from .validation import normalize_pairs, parse_date, parse_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkloadReservation:
    stylist_id: str
    work_date: date
    units: int
    maximum: Optional[int] = None  # not needed when releasing


def _day(value) -> str:
    return value.isoformat() if isinstance(value, date) else str(value)


def _clock(value) -> str:
    return value.strftime("%H:%M") if isinstance(value, time) else str(value)


def record_to_appointment(record: AppointmentRecord) -> Appointment:
    return Appointment(
        id=record.id,
        branch_id=record.branch_id,
        appointment_date=parse_date(record.appointment_date),
        appointment_time=parse_time(record.appointment_time),
        client_id=record.client_id,
        client_name=record.client_name or "",
        is_new_client=record.is_new_client,
        new_client_name=record.new_client_name or "",
        client_info=record.client_info or {},
        service_stylist_pairs=normalize_pairs(record),
        status=record.status,
        notes=record.notes or "",
        created_by=record.created_by,
        created_at=record.created_at,
        updated_at=record.updated_at,
        history=record.history or [],
        version=record.version,
    )


def appointment_to_fields(appointment: Appointment) -> dict:
    return {
        "branch_id": appointment.branch_id,
        "appointment_date": appointment.appointment_date.isoformat(),
        "appointment_time": _clock(appointment.appointment_time),
        "client_id": appointment.client_id,
        "client_name": appointment.client_name,
        "is_new_client": appointment.is_new_client,
        "new_client_name": appointment.new_client_name,
        "client_info": appointment.client_info.model_dump(),
        "service_stylist_pairs": [p.model_dump() for p in appointment.service_stylist_pairs],
        "status": AppointmentStatus(appointment.status).value,
        "notes": appointment.notes,
        "created_by": appointment.created_by,
        "created_at": appointment.created_at,
        "updated_at": appointment.updated_at,
        "history": [entry.model_dump(mode="json") for entry in appointment.history],
    }


class SalonStore:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self, operation: str, commit: bool = False):
        try:
            yield
            if commit:
                self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Store operation %s failed: %s", operation, exc)
            raise StoreUnavailableError(f"{operation} failed") from exc
        except Exception:
            if commit:
                self.session.rollback()
            raise

    # Staff directory and catalog

    def get_branch(self, branch_id: str) -> Branch:
        with self._guard("get_branch"):
            branch = self.session.get(Branch, branch_id)
        if branch is None:
            raise NotFoundError("Branch", branch_id)
        return branch

    def list_staff_by_branch(self, branch_id: str) -> List[Staff]:
        with self._guard("list_staff_by_branch"):
            return list(
                self.session.exec(
                    select(Staff).where(Staff.branch_id == branch_id).order_by(Staff.name)
                ).all()
            )

    def get_staff(self, staff_id: str) -> Staff:
        with self._guard("get_staff"):
            staff = self.session.get(Staff, staff_id)
        if staff is None:
            raise NotFoundError("Staff", staff_id)
        return staff

    def get_stylist_schedule(self, stylist_id: str, weekday) -> Optional[StylistSchedule]:
        with self._guard("get_stylist_schedule"):
            return self.session.exec(
                select(StylistSchedule)
                .where(StylistSchedule.stylist_id == stylist_id)
                .where(StylistSchedule.weekday == int(Weekday(weekday)))
            ).first()

    def list_branch_service_offerings(self, branch_id: str) -> List[BranchServiceOffering]:
        with self._guard("list_branch_service_offerings"):
            return list(
                self.session.exec(
                    select(BranchServiceOffering).where(BranchServiceOffering.branch_id == branch_id)
                ).all()
            )

    def get_service_definitions(self, service_ids: Iterable[str]) -> Dict[str, ServiceDefinition]:
        service_ids = list(set(service_ids))
        if not service_ids:
            return {}
        with self._guard("get_service_definitions"):
            rows = self.session.exec(
                select(ServiceDefinition).where(ServiceDefinition.id.in_(service_ids))
            ).all()
        return {row.id: row for row in rows}

    def list_stylist_certifications(self, stylist_id: str) -> List[StylistServiceCertification]:
        with self._guard("list_stylist_certifications"):
            return list(
                self.session.exec(
                    select(StylistServiceCertification)
                    .where(StylistServiceCertification.stylist_id == stylist_id)
                    .order_by(StylistServiceCertification.id)
                ).all()
            )

    # Workload ledger

    def get_committed_workload(self, stylist_id: str, work_date) -> int:
        with self._guard("get_committed_workload"):
            used = self.session.exec(
                select(StylistWorkload.used_units)
                .where(StylistWorkload.stylist_id == stylist_id)
                .where(StylistWorkload.work_date == _day(work_date))
            ).first()
        return used or 0

    def _reserve(self, reservation: WorkloadReservation):
        key = (reservation.stylist_id, _day(reservation.work_date))
        if self.session.get(StylistWorkload, key) is None:
            self.session.add(StylistWorkload(stylist_id=key[0], work_date=key[1], used_units=0))
            self.session.flush()

        result = self.session.execute(
            update(StylistWorkload)
            .where(StylistWorkload.stylist_id == key[0])
            .where(StylistWorkload.work_date == key[1])
            .where(StylistWorkload.used_units + reservation.units <= reservation.maximum)
            .values(used_units=StylistWorkload.used_units + reservation.units)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            used = self.session.exec(
                select(StylistWorkload.used_units)
                .where(StylistWorkload.stylist_id == key[0])
                .where(StylistWorkload.work_date == key[1])
            ).one()
            remaining = max(reservation.maximum - used, 0)
            logger.warning(
                "Capacity exceeded for stylist %s on %s: %s requested, %s left",
                key[0], key[1], reservation.units, remaining,
            )
            raise CapacityExceededError(key[0], key[1], reservation.units, remaining)

    def _release(self, reservation: WorkloadReservation):
        remaining = StylistWorkload.used_units - reservation.units
        self.session.execute(
            update(StylistWorkload)
            .where(StylistWorkload.stylist_id == reservation.stylist_id)
            .where(StylistWorkload.work_date == _day(reservation.work_date))
            .values(used_units=case((remaining < 0, 0), else_=remaining))
            .execution_options(synchronize_session=False)
        )

    # Appointments

    def create_appointment(
        self, appointment: Appointment, reservations: Iterable[WorkloadReservation] = ()
    ) -> str:
        record = AppointmentRecord(id=appointment.id or new_id(), **appointment_to_fields(appointment))
        with self._guard("create_appointment", commit=True):
            for reservation in reservations:
                self._reserve(reservation)
            self.session.add(record)
        return record.id

    def get_appointment(self, appointment_id: str) -> Appointment:
        with self._guard("get_appointment"):
            record = self.session.get(AppointmentRecord, appointment_id)
            if record is not None:
                self.session.refresh(record)
        if record is None:
            raise NotFoundError("Appointment", appointment_id)
        return record_to_appointment(record)

    def update_appointment(
        self,
        appointment_id: str,
        patch: dict,
        expected_version: Optional[int] = None,
        reservations: Iterable[WorkloadReservation] = (),
        releases: Iterable[WorkloadReservation] = (),
    ):
        """Apply ``patch`` and bump ``version``, conditionally on ``expected_version``."""
        with self._guard("update_appointment", commit=True):
            stmt = update(AppointmentRecord).where(AppointmentRecord.id == appointment_id)
            if expected_version is not None:
                stmt = stmt.where(AppointmentRecord.version == expected_version)
            stmt = stmt.values(**patch, version=AppointmentRecord.version + 1)
            result = self.session.execute(stmt.execution_options(synchronize_session=False))

            if result.rowcount == 0:
                if self.session.get(AppointmentRecord, appointment_id) is None:
                    raise NotFoundError("Appointment", appointment_id)
                raise ConcurrentModificationError(appointment_id)

            for reservation in releases:
                self._release(reservation)
            for reservation in reservations:
                self._reserve(reservation)

    def save_appointment(
        self,
        appointment: Appointment,
        expected_version: Optional[int] = None,
        reservations: Iterable[WorkloadReservation] = (),
        releases: Iterable[WorkloadReservation] = (),
    ) -> Appointment:
        patch = appointment_to_fields(appointment)
        patch.pop("created_at")
        patch.pop("created_by")
        self.update_appointment(
            appointment.id,
            patch,
            expected_version=expected_version,
            reservations=reservations,
            releases=releases,
        )
        return self.get_appointment(appointment.id)

    def find_slot_conflicts(
        self, stylist_ids: Iterable[str], work_date, at_time, exclude_id: Optional[str] = None
    ) -> List[Appointment]:
        """Active appointments at the same date and time that share a stylist with ``stylist_ids``."""
        stylist_ids = set(stylist_ids)
        stmt = (
            select(AppointmentRecord)
            .where(AppointmentRecord.appointment_date == _day(work_date))
            .where(AppointmentRecord.appointment_time == _clock(at_time))
            .where(AppointmentRecord.status.in_([s.value for s in ACTIVE_STATUSES]))
        )
        if exclude_id:
            stmt = stmt.where(AppointmentRecord.id != exclude_id)

        with self._guard("find_slot_conflicts"):
            records = self.session.exec(stmt).all()

        appointments = [record_to_appointment(r) for r in records]
        return [a for a in appointments if stylist_ids.intersection(a.stylist_ids)]

    def query_appointments(
        self,
        branch_id: Optional[str] = None,
        status: Optional[str] = None,
        stylist_id: Optional[str] = None,
        client_id: Optional[str] = None,
        date_from=None,
        date_to=None,
    ) -> List[Appointment]:
        stmt = select(AppointmentRecord)
        if branch_id:
            stmt = stmt.where(AppointmentRecord.branch_id == branch_id)
        if status:
            stmt = stmt.where(AppointmentRecord.status == AppointmentStatus(status).value)
        if client_id:
            stmt = stmt.where(AppointmentRecord.client_id == client_id)
        if date_from:
            stmt = stmt.where(AppointmentRecord.appointment_date >= _day(date_from))
        if date_to:
            stmt = stmt.where(AppointmentRecord.appointment_date <= _day(date_to))
        stmt = stmt.order_by(AppointmentRecord.appointment_date, AppointmentRecord.appointment_time)

        with self._guard("query_appointments"):
            records = self.session.exec(stmt).all()

        appointments = [record_to_appointment(r) for r in records]
        if stylist_id:
            # pairs live in a JSON column, so filter after normalising
            appointments = [a for a in appointments if stylist_id in a.stylist_ids]
        return appointments
