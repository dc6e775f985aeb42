# tests/conftest.py
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("REDIS_URL", None)

from datetime import date

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dispensary.database import build_engine
from dispensary.models import Base, Bookings, RecurringSessions, ScheduleOverrides

DOCTOR_ID = 7
DISPENSARY_ID = 3
MONDAY = date(2025, 1, 6)
MONDAY_WEEKDAY = 1  # 0 = Sunday


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed engine for tests that use several connections at once."""
    engine = build_engine(f"sqlite:///{tmp_path / 'slots.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, autoflush=False)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def add_recurring(db_session):
    def _add(
        weekday=MONDAY_WEEKDAY,
        start_time="09:00",
        end_time="10:00",
        max_patients=10,
        minutes_per_patient=15,
        doctor_id=DOCTOR_ID,
        dispensary_id=DISPENSARY_ID,
    ):
        row = RecurringSessions(
            doctor_id=doctor_id,
            dispensary_id=dispensary_id,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            max_patients=max_patients,
            minutes_per_patient=minutes_per_patient,
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture
def add_override(db_session):
    def _add(
        target_date=MONDAY,
        is_modified_session=False,
        doctor_id=DOCTOR_ID,
        dispensary_id=DISPENSARY_ID,
        **fields,
    ):
        row = ScheduleOverrides(
            doctor_id=doctor_id,
            dispensary_id=dispensary_id,
            date=target_date.isoformat(),
            is_modified_session=int(is_modified_session),
            **fields,
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture
def add_booking(db_session):
    def _add(appointment_number, status="scheduled", target_date=MONDAY):
        row = Bookings(
            patient_id=f"temp-555-{appointment_number}",
            patient_name="Patient",
            patient_phone=f"555-{appointment_number}",
            doctor_id=DOCTOR_ID,
            dispensary_id=DISPENSARY_ID,
            booking_date=target_date.isoformat(),
            appointment_number=appointment_number,
            time_slot="00:00-00:00",
            estimated_time="00:00",
            status=status,
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture
def fake_redis():
    """In-memory Redis with real command semantics, one server per test."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
