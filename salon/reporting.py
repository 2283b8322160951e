# salon/reporting.py
"""Rollups over an already-filtered list of appointments.

Revenue only counts completed appointments, priced through each branch's
catalog (branch price if set, else the default price).
"""

from collections import Counter
from typing import Dict, Iterable, List, Mapping, Optional

from .catalog import BranchCatalog
from .data import AppointmentStatus
from .schemas import Appointment, AppointmentStats, RevenueSummary, StylistPerformance


def appointment_stats(appointments: Iterable[Appointment]) -> AppointmentStats:
    by_status = Counter()
    by_branch = Counter()
    by_stylist = Counter()
    total = 0
    for appointment in appointments:
        total += 1
        by_status[AppointmentStatus(appointment.status).value] += 1
        by_branch[appointment.branch_id] += 1
        for stylist_id in appointment.stylist_ids:
            by_stylist[stylist_id] += 1

    return AppointmentStats(
        total=total,
        by_status={status.value: by_status.get(status.value, 0) for status in AppointmentStatus},
        by_branch=dict(by_branch),
        by_stylist=dict(by_stylist),
    )


def appointment_value(appointment: Appointment, catalog: Optional[BranchCatalog]) -> float:
    if catalog is None:
        return 0.0
    return sum(catalog.price_of(p.service_id) for p in appointment.service_stylist_pairs)


def revenue_summary(
    appointments: Iterable[Appointment], catalogs: Mapping[str, BranchCatalog]
) -> RevenueSummary:
    summary = RevenueSummary()
    by_branch: Dict[str, float] = {}
    for appointment in appointments:
        if AppointmentStatus(appointment.status) != AppointmentStatus.completed:
            continue
        value = appointment_value(appointment, catalogs.get(appointment.branch_id))
        summary.total_revenue += value
        summary.completed_appointments += 1
        summary.services_performed += len(appointment.service_stylist_pairs)
        by_branch[appointment.branch_id] = by_branch.get(appointment.branch_id, 0.0) + value

    summary.by_branch = by_branch
    if summary.completed_appointments:
        summary.average_ticket = round(summary.total_revenue / summary.completed_appointments, 2)
    return summary


def stylist_performance(
    appointments: Iterable[Appointment],
    catalogs: Mapping[str, BranchCatalog],
    stylist_names: Optional[Mapping[str, str]] = None,
) -> List[StylistPerformance]:
    stylist_names = stylist_names or {}
    rows: Dict[str, StylistPerformance] = {}

    for appointment in appointments:
        status = AppointmentStatus(appointment.status)
        catalog = catalogs.get(appointment.branch_id)

        for stylist_id in appointment.stylist_ids:
            row = rows.setdefault(
                stylist_id,
                StylistPerformance(stylist_id=stylist_id, name=stylist_names.get(stylist_id, stylist_id)),
            )
            row.appointments += 1
            if status == AppointmentStatus.completed:
                row.completed += 1
            elif status == AppointmentStatus.cancelled:
                row.cancelled += 1

        if status != AppointmentStatus.completed:
            continue
        # only a stylist's own services count toward their revenue and workload
        for pair in appointment.service_stylist_pairs:
            row = rows[pair.stylist_id]
            row.services_performed += 1
            if catalog is not None:
                row.revenue += catalog.price_of(pair.service_id)
                row.workload_units += catalog.workload_of(pair.service_id)

    return sorted(rows.values(), key=lambda r: (-r.revenue, r.name))
