# salon/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, date, time
from typing import Dict, List, Optional

from .data import AppointmentStatus


class ClientInfo(BaseModel):
    name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""


class ClientInfoUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class ServiceStylistPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_id: str
    stylist_id: str


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: str
    by: Optional[str] = None
    timestamp: datetime
    notes: str = ""


class Appointment(BaseModel):
    id: Optional[str] = None
    branch_id: str
    appointment_date: date
    appointment_time: time
    client_id: Optional[str] = None
    client_name: str = ""
    is_new_client: bool = False
    new_client_name: str = ""
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    service_stylist_pairs: List[ServiceStylistPair]
    status: AppointmentStatus = AppointmentStatus.scheduled
    notes: str = ""
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    history: List[HistoryEntry] = Field(default_factory=list)
    version: int = 1

    @property
    def stylist_ids(self) -> List[str]:
        seen = []
        for pair in self.service_stylist_pairs:
            if pair.stylist_id not in seen:
                seen.append(pair.stylist_id)
        return seen


class ResolvedService(BaseModel):
    model_config = ConfigDict(frozen=True)

    service_id: str
    name: str
    description: str = ""
    price: float
    workload_units: int


class StylistAvailability(BaseModel):
    stylist_id: str
    name: str
    position: str
    remaining_workload: int
    services: List[ResolvedService] = Field(default_factory=list)


class BookingRequest(BaseModel):
    # date/time stay strings so malformed input is reported by validate()
    branch_id: str = ""
    appointment_date: str = ""
    appointment_time: str = ""
    service_stylist_pairs: List[ServiceStylistPair] = Field(default_factory=list)
    service_ids: List[str] = Field(default_factory=list)
    stylist_id: Optional[str] = None
    client_id: Optional[str] = None
    client_name: str = ""
    is_new_client: bool = False
    new_client_name: str = ""
    client_info: Optional[ClientInfo] = None
    notes: str = ""


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class StatusChange(BaseModel):
    status: str
    notes: str = ""
    expected_version: Optional[int] = None


class RescheduleRequest(BaseModel):
    appointment_date: str
    appointment_time: str
    notes: str = ""


class BookingSelection(BaseModel):
    stylist_name: str
    service_id: str


class ClientBookingCreate(BaseModel):
    appointment_date: str
    appointment_time: str
    selections: List[BookingSelection]
    client_info: Optional[ClientInfo] = None
    notes: str = ""


class AppointmentPublic(Appointment):
    client_display_name: str
    formatted_date: str
    formatted_time: str
    is_today: bool
    is_past: bool


class BookingResponse(BaseModel):
    appointment: AppointmentPublic
    total: float
    warnings: List[str] = Field(default_factory=list)


class AppointmentStats(BaseModel):
    total: int = 0
    by_status: Dict[str, int] = Field(default_factory=dict)
    by_branch: Dict[str, int] = Field(default_factory=dict)
    by_stylist: Dict[str, int] = Field(default_factory=dict)


class RevenueSummary(BaseModel):
    total_revenue: float = 0.0
    completed_appointments: int = 0
    services_performed: int = 0
    average_ticket: float = 0.0
    by_branch: Dict[str, float] = Field(default_factory=dict)


class StylistPerformance(BaseModel):
    stylist_id: str
    name: str
    appointments: int = 0
    completed: int = 0
    cancelled: int = 0
    services_performed: int = 0
    workload_units: int = 0
    revenue: float = 0.0
