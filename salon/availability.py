# salon/availability.py

import logging
from datetime import date
from typing import List

from .catalog import load_branch_catalog, resolve_stylist_services
from .data import Weekday
from .schemas import StylistAvailability

logger = logging.getLogger(__name__)


def resolve_availability(store, branch_id: str, on_date: date) -> List[StylistAvailability]:
    """Stylists at ``branch_id`` who work on ``on_date``'s weekday.

    Stylists without a schedule row for that weekday are left out; a scheduled
    stylist with no certified services is kept with an empty ``services`` list.
    Nothing is reserved here; ``remaining_workload`` only reflects what was
    already committed by persisted appointments.
    """
    store.get_branch(branch_id)
    weekday = Weekday(on_date.weekday())

    stylists = [s for s in store.list_staff_by_branch(branch_id) if s.role == "stylist"]
    catalog = load_branch_catalog(store, branch_id)

    available = []
    for stylist in stylists:
        schedule = store.get_stylist_schedule(stylist.id, weekday)
        if schedule is None:
            continue

        committed = store.get_committed_workload(stylist.id, on_date)
        available.append(
            StylistAvailability(
                stylist_id=stylist.id,
                name=stylist.name,
                position=stylist.position,
                remaining_workload=max(schedule.workload_maximum - committed, 0),
                services=resolve_stylist_services(store, branch_id, stylist.id, catalog=catalog),
            )
        )

    logger.info(
        "Resolved %d of %d stylist(s) at branch %s for %s (%s)",
        len(available), len(stylists), branch_id, on_date.isoformat(), weekday.name.title(),
    )
    return available
