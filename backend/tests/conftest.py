import datetime
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rxmanager.db import Base, get_db
from rxmanager.main import app
from rxmanager.schemas import Prescription


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def patient_id():
    return str(uuid.uuid4())


def make_prescription(**overrides) -> Prescription:
    fields = {
        "prescription_id": "456e7890-e89b-12d3-a456-426614174001",
        "patient_id": "123e4567-e89b-12d3-a456-426614174000",
        "medication_name": "amoxicillin",
        "dosage": 500,
        "unit": "mg",
        "frequency_hours": 8,
        "start_time": "08:00",
        "start_date": datetime.date(2024, 1, 1),
        "end_date": datetime.date(2024, 1, 8),
        "status": "ACTIVE",
        "prescribed_by": "Dr. Smith",
    }
    fields.update(overrides)
    return Prescription(**fields)


@pytest.fixture
def rx():
    return make_prescription
