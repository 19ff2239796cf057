# backend/rxmanager/stores.py
import datetime
import logging
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rxmanager.db import PrescriptionRecord, ScheduleEntryRecord, utcnow
from rxmanager.schemas import (
    Prescription,
    PrescriptionCreate,
    PrescriptionStatus,
    ScheduleEntry,
    ScheduleStatus,
)

log = logging.getLogger("stores")

IMMUTABLE_FIELDS = {"prescription_id", "patient_id", "created_at"}


def _plain(value):
    return value.value if isinstance(value, Enum) else value


def _commit(db: Session):
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("Commit failed, session rolled back")
        raise


class PrescriptionStore:
    """Prescriptions keyed by id, indexed by patient and by status."""

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        patient_id: str,
        data: PrescriptionCreate,
        status: PrescriptionStatus = PrescriptionStatus.ACTIVE,
    ) -> Prescription:
        now = utcnow()
        record = PrescriptionRecord(
            prescription_id=str(uuid.uuid4()),
            patient_id=patient_id,
            status=status.value,
            created_at=now,
            updated_at=now,
            **{k: _plain(v) for k, v in data.model_dump().items()},
        )
        self.db.add(record)
        _commit(self.db)
        self.db.refresh(record)
        log.info("Created prescription %s for patient %s", record.prescription_id, patient_id)
        return Prescription.model_validate(record)

    def get_by_patient(self, patient_id: str) -> List[Prescription]:
        records = (
            self.db.query(PrescriptionRecord)
            .filter(PrescriptionRecord.patient_id == patient_id)
            .order_by(PrescriptionRecord.created_at)
            .all()
        )
        return [Prescription.model_validate(r) for r in records]

    def get_by_id(self, prescription_id: str) -> Optional[Prescription]:
        record = self.db.get(PrescriptionRecord, prescription_id)
        if record is None:
            return None
        return Prescription.model_validate(record)

    def get_active(self) -> List[Prescription]:
        records = (
            self.db.query(PrescriptionRecord)
            .filter(PrescriptionRecord.status == PrescriptionStatus.ACTIVE.value)
            .order_by(PrescriptionRecord.created_at)
            .all()
        )
        return [Prescription.model_validate(r) for r in records]

    def update(self, prescription_id: str, fields: Dict[str, Any]) -> Optional[Prescription]:
        record = self.db.get(PrescriptionRecord, prescription_id)
        if record is None:
            return None
        for key, value in fields.items():
            if key in IMMUTABLE_FIELDS or not hasattr(record, key):
                continue
            setattr(record, key, _plain(value))
        record.updated_at = utcnow()
        _commit(self.db)
        self.db.refresh(record)
        return Prescription.model_validate(record)

    def delete(self, prescription_id: str) -> bool:
        record = self.db.get(PrescriptionRecord, prescription_id)
        if record is None:
            return False
        self.db.delete(record)
        _commit(self.db)
        log.info("Deleted prescription %s", prescription_id)
        return True


class ScheduleStore:
    """Schedule entries keyed by (prescription, date, time), indexed by patient."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, entry: ScheduleEntry) -> ScheduleEntry:
        record = ScheduleEntryRecord(**{k: _plain(v) for k, v in entry.model_dump().items()})
        # same key overwrites, like a put
        record = self.db.merge(record)
        _commit(self.db)
        return ScheduleEntry.model_validate(record)

    def get_by_prescription(self, prescription_id: str) -> List[ScheduleEntry]:
        records = (
            self.db.query(ScheduleEntryRecord)
            .filter(ScheduleEntryRecord.prescription_id == prescription_id)
            .order_by(ScheduleEntryRecord.scheduled_date, ScheduleEntryRecord.scheduled_time)
            .all()
        )
        return [ScheduleEntry.model_validate(r) for r in records]

    def get_by_patient(
        self, patient_id: str, date: Optional[datetime.date] = None
    ) -> List[ScheduleEntry]:
        q = self.db.query(ScheduleEntryRecord).filter(ScheduleEntryRecord.patient_id == patient_id)
        if date is not None:
            q = q.filter(ScheduleEntryRecord.scheduled_date == date)
        q = q.order_by(ScheduleEntryRecord.scheduled_date, ScheduleEntryRecord.scheduled_time)
        return [ScheduleEntry.model_validate(r) for r in q.all()]

    def update_status(
        self,
        prescription_id: str,
        scheduled_date: datetime.date,
        scheduled_time: str,
        status: ScheduleStatus,
    ) -> Optional[ScheduleEntry]:
        record = self.db.get(ScheduleEntryRecord, (prescription_id, scheduled_date, scheduled_time))
        if record is None:
            return None
        record.status = _plain(status)
        _commit(self.db)
        self.db.refresh(record)
        return ScheduleEntry.model_validate(record)

    def delete_all_for_prescription(self, prescription_id: str) -> None:
        deleted = (
            self.db.query(ScheduleEntryRecord)
            .filter(ScheduleEntryRecord.prescription_id == prescription_id)
            .delete(synchronize_session=False)
        )
        _commit(self.db)
        log.info("Deleted %d schedule entries for prescription %s", deleted, prescription_id)
