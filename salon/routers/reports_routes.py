# salon/routers/reports_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends

from salon.auth import get_current_user
from salon.booking_service import AppointmentService
from salon.data import REPORT_ROLES
from salon.deps import get_service, require_role
from salon.schemas import AppointmentStats, RevenueSummary, StylistPerformance

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
)


def report_filters(
    branch_id: Optional[str] = None,
    stylist_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict:
    return {
        "branch_id": branch_id,
        "stylist_id": stylist_id,
        "date_from": date_from,
        "date_to": date_to,
    }


@router.get("/stats", response_model=AppointmentStats)
def appointment_stats(
    filters: dict = Depends(report_filters),
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, *REPORT_ROLES)
    return service.stats(**filters)


@router.get("/revenue", response_model=RevenueSummary)
def revenue(
    filters: dict = Depends(report_filters),
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, *REPORT_ROLES)
    return service.revenue(**filters)


@router.get("/stylists", response_model=List[StylistPerformance])
def stylist_performance(
    filters: dict = Depends(report_filters),
    service: AppointmentService = Depends(get_service),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, *REPORT_ROLES)
    return service.performance(**filters)
