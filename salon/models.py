# salon/models.py

from typing import Optional, List
from datetime import datetime
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column


def new_id() -> str:
    return uuid4().hex


class Branch(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    address: str = ""


class Staff(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(index=True)
    name: str
    position: str = "Stylist"
    role: str = "stylist"  # stylist, receptionist, branch_manager, ...
    email: Optional[str] = None
    phone: Optional[str] = None


class StylistSchedule(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("stylist_id", "weekday", name="uq_stylist_weekday"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    stylist_id: str = Field(index=True)
    weekday: int  # 0=Mon ... 6=Sun
    workload_maximum: int


class ServiceDefinition(SQLModel, table=True):
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str
    description: str = ""
    default_price: float
    workload_units: int = 1
    duration_minutes: int = 30


class BranchServiceOffering(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("branch_id", "service_id", name="uq_branch_service"),
    )

    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(index=True)
    service_id: str = Field(index=True)
    branch_discounted_price: Optional[float] = None


class StylistServiceCertification(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("stylist_id", "branch_service_id", name="uq_stylist_offering"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    stylist_id: str = Field(index=True)
    branch_service_id: str = Field(index=True)


class StylistWorkload(SQLModel, table=True):
    # committed workload units per stylist per day
    stylist_id: str = Field(primary_key=True)
    work_date: str = Field(primary_key=True)  # YYYY-MM-DD
    used_units: int = 0


class AppointmentRecord(SQLModel, table=True):
    __tablename__ = "appointments"

    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(index=True)
    appointment_date: str = Field(index=True)  # YYYY-MM-DD
    appointment_time: str  # HH:MM

    client_id: Optional[str] = Field(default=None, index=True)
    client_name: str = ""
    is_new_client: bool = False
    new_client_name: str = ""
    client_info: dict = Field(default_factory=dict, sa_column=Column(JSON))

    service_stylist_pairs: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    # legacy single-stylist shape, still read
    service_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    stylist_id: Optional[str] = Field(default=None, index=True)

    status: str = Field(default="scheduled", index=True)
    notes: str = ""
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    history: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    version: int = 1
