# tests/conftest.py

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from salon.auth import create_access_token
from salon.booking_service import AppointmentService
from salon.db import get_session
from salon.deps import get_service
from salon.main import app
from salon.models import (
    Branch,
    BranchServiceOffering,
    ServiceDefinition,
    Staff,
    StylistSchedule,
    StylistServiceCertification,
)
from salon.notifications import AppointmentNotifier
from salon.store import SalonStore

# Monday morning; every booking date used in the tests is after this
NOW = datetime(2025, 10, 13, 8, 0)
FRIDAY = "2025-10-17"
MONDAY = "2025-10-20"
TUESDAY = "2025-10-21"
SUNDAY = "2025-10-19"


class RecordingNotifier(AppointmentNotifier):
    def __init__(self):
        self.sent = []

    def notify(self, event, appointment, client, stylists):
        self.sent.append((event, appointment, client, stylists))


def seed(session: Session):
    session.add_all([
        Branch(id="B1", name="Makati"),
        Branch(id="B2", name="Quezon City"),
        Branch(id="B3", name="Empty Branch"),

        Staff(id="S1", branch_id="B1", name="Sean", position="Senior Stylist",
              email="sean@salon.test", phone="09170000001"),
        Staff(id="S2", branch_id="B1", name="Francis", position="Stylist",
              email="francis@salon.test"),
        Staff(id="S3", branch_id="B1", name="Anna", position="Junior Stylist"),
        Staff(id="R1", branch_id="B1", name="Rhea", position="Receptionist", role="receptionist"),
        Staff(id="S4", branch_id="B2", name="Lara", position="Stylist"),

        # S1: Fri + Mon, S2: Mon + Tue, S3: Wed (no certifications), R1 not a stylist
        StylistSchedule(stylist_id="S1", weekday=4, workload_maximum=5),
        StylistSchedule(stylist_id="S1", weekday=0, workload_maximum=5),
        StylistSchedule(stylist_id="S2", weekday=0, workload_maximum=3),
        StylistSchedule(stylist_id="S2", weekday=1, workload_maximum=4),
        StylistSchedule(stylist_id="S3", weekday=2, workload_maximum=4),
        StylistSchedule(stylist_id="R1", weekday=4, workload_maximum=5),
        StylistSchedule(stylist_id="S4", weekday=4, workload_maximum=5),

        ServiceDefinition(id="service_haircut", name="Haircut", description="Cut and style",
                          default_price=350, workload_units=2, duration_minutes=45),
        ServiceDefinition(id="service_color", name="Color", description="Full color",
                          default_price=800, workload_units=2, duration_minutes=90),
        ServiceDefinition(id="service_treatment", name="Treatment", default_price=350,
                          workload_units=2, duration_minutes=60),
        ServiceDefinition(id="service_shampoo", name="Shampoo", default_price=100,
                          workload_units=1, duration_minutes=15),

        BranchServiceOffering(id="off_b1_haircut", branch_id="B1", service_id="service_haircut",
                              branch_discounted_price=300),
        BranchServiceOffering(id="off_b1_color", branch_id="B1", service_id="service_color"),
        BranchServiceOffering(id="off_b1_treatment", branch_id="B1", service_id="service_treatment"),
        BranchServiceOffering(id="off_b2_shampoo", branch_id="B2", service_id="service_shampoo"),
        BranchServiceOffering(id="off_b2_haircut", branch_id="B2", service_id="service_haircut"),

        StylistServiceCertification(stylist_id="S1", branch_service_id="off_b1_haircut"),
        StylistServiceCertification(stylist_id="S1", branch_service_id="off_b1_color"),
        StylistServiceCertification(stylist_id="S1", branch_service_id="off_b2_shampoo"),
        StylistServiceCertification(stylist_id="S2", branch_service_id="off_b1_haircut"),
        StylistServiceCertification(stylist_id="S2", branch_service_id="off_b1_treatment"),
        StylistServiceCertification(stylist_id="S4", branch_service_id="off_b2_shampoo"),
    ])
    session.commit()


def booking_data(**overrides) -> dict:
    data = {
        "branch_id": "B1",
        "appointment_date": MONDAY,
        "appointment_time": "10:00",
        "service_stylist_pairs": [
            {"service_id": "service_haircut", "stylist_id": "S1"},
            {"service_id": "service_color", "stylist_id": "S1"},
        ],
        "client_id": "C1",
        "client_info": {
            "name": "Maria Santos",
            "phone": "0917 123 4567",
            "email": "Maria@Example.com ",
            "address": "12 Ayala Ave",
        },
        "notes": "Prefers a quiet chair",
    }
    data.update(overrides)
    return data


def token_for(user_id: str, role: str) -> dict:
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        seed(session)
        yield session


@pytest.fixture
def store(session):
    return SalonStore(session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(store, notifier):
    return AppointmentService(store, notifier=notifier, clock=lambda: NOW)


@pytest.fixture
def client(session, service):
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
