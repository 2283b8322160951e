# salon/data.py

from enum import Enum, IntEnum


class AppointmentStatus(str, Enum):
    scheduled = "scheduled"
    confirmed = "confirmed"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class Weekday(IntEnum):
    # matches date.weekday(): 0=Mon, 1=Tues....
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6


STATUS_FLOW = {
    AppointmentStatus.scheduled: (AppointmentStatus.confirmed, AppointmentStatus.cancelled),
    AppointmentStatus.confirmed: (AppointmentStatus.in_progress, AppointmentStatus.cancelled),
    AppointmentStatus.in_progress: (AppointmentStatus.completed, AppointmentStatus.cancelled),
    AppointmentStatus.completed: (),
    AppointmentStatus.cancelled: (),
}

TERMINAL_STATUSES = {AppointmentStatus.completed, AppointmentStatus.cancelled}

# statuses that hold a stylist's workload for the day
ACTIVE_STATUSES = {
    AppointmentStatus.scheduled,
    AppointmentStatus.confirmed,
    AppointmentStatus.in_progress,
}

shop_settings = {
    "business_open": "09:00",
    "business_close": "21:00",
    "date_format": "%Y-%m-%d",
    "time_format": "%H:%M",
}

field_limits = {
    "notes": 500,
    "name": 100,
    "address": 200,
}

STAFF_ROLES = (
    "system_admin",
    "operational_manager",
    "branch_admin",
    "branch_manager",
    "receptionist",
)

REPORT_ROLES = ("system_admin", "operational_manager", "branch_admin", "branch_manager")
