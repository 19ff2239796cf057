# backend/rxmanager/db.py
import datetime
import os

from sqlalchemy import Column, Date, DateTime, Float, Integer, String, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./prescriptions.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class PrescriptionRecord(Base):
    __tablename__ = "prescriptions"

    prescription_id = Column(String(36), primary_key=True)
    patient_id = Column(String(36), index=True, nullable=False)
    medication_name = Column(String(100), nullable=False)
    dosage = Column(Float, nullable=False)
    unit = Column(String(16), nullable=False)
    frequency_hours = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(String(16), index=True, nullable=False)
    prescribed_by = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class ScheduleEntryRecord(Base):
    __tablename__ = "prescription_schedules"

    prescription_id = Column(String(36), primary_key=True)
    scheduled_date = Column(Date, primary_key=True)
    scheduled_time = Column(String(5), primary_key=True)
    patient_id = Column(String(36), index=True, nullable=False)
    dosage = Column(Float, nullable=False)
    unit = Column(String(16), nullable=False)
    status = Column(String(16), nullable=False)


def init_db(bind=None):
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
