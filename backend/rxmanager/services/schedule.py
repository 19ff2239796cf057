# backend/rxmanager/services/schedule.py
import datetime
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from rxmanager.schemas import Prescription, ScheduleEntry, ScheduleStatus
from rxmanager.services.preconditions import require_ordered_dates, require_positive_frequency
from rxmanager.stores import ScheduleStore

log = logging.getLogger("schedule")

ONE_DAY = datetime.timedelta(days=1)


def _parse_start_time(start_time: str):
    hour, minute = start_time.split(":")
    return int(hour), int(minute)


def build_schedule(prescription: Prescription) -> List[ScheduleEntry]:
    """
    Expand a prescription into its dosing events.

    Every date from start_date to end_date inclusive gets one entry per offset
    0, f, 2f, ... below 24 hours. The hour wraps modulo 24 but stays on the same
    calendar date. On the end date only, offsets that would cross midnight are
    dropped, so the last day can hold fewer entries than the others.
    """
    require_positive_frequency(prescription)
    require_ordered_dates(prescription)
    start_hour, start_minute = _parse_start_time(prescription.start_time)
    entries = []

    current = prescription.start_date
    while current <= prescription.end_date:
        is_last_day = current == prescription.end_date
        offset = 0
        while offset < 24:
            if is_last_day and start_hour + offset >= 24:
                break
            hour = (start_hour + offset) % 24
            entries.append(ScheduleEntry(
                prescription_id=prescription.prescription_id,
                patient_id=prescription.patient_id,
                scheduled_date=current,
                scheduled_time=f"{hour:02d}:{start_minute:02d}",
                dosage=prescription.dosage,
                unit=prescription.unit,
                status=ScheduleStatus.PENDING,
            ))
            offset += prescription.frequency_hours
        current += ONE_DAY

    return entries


def generate_schedule(prescription: Prescription, store: ScheduleStore) -> List[ScheduleEntry]:
    """Build the schedule and write each entry; failed writes are logged and skipped."""
    entries = build_schedule(prescription)
    failed = 0
    for entry in entries:
        try:
            store.create(entry)
        except SQLAlchemyError as e:
            failed += 1
            log.error(
                "Failed to save schedule entry %s %s %s: %s",
                entry.prescription_id, entry.scheduled_date, entry.scheduled_time, e,
            )
    log.info(
        "Generated %d schedule entries for prescription %s (%d failed to save)",
        len(entries), prescription.prescription_id, failed,
    )
    return entries


def regenerate_schedule(prescription: Prescription, store: ScheduleStore) -> List[ScheduleEntry]:
    # old entries are discarded, never patched
    store.delete_all_for_prescription(prescription.prescription_id)
    return generate_schedule(prescription, store)


def get_prescription_schedule(store: ScheduleStore, prescription_id: str) -> List[ScheduleEntry]:
    return store.get_by_prescription(prescription_id)


def get_patient_schedule(
    store: ScheduleStore, patient_id: str, date: Optional[datetime.date] = None
) -> List[ScheduleEntry]:
    return store.get_by_patient(patient_id, date)


def update_schedule_status(
    store: ScheduleStore,
    prescription_id: str,
    scheduled_date: datetime.date,
    scheduled_time: str,
    status: ScheduleStatus,
) -> Optional[ScheduleEntry]:
    return store.update_status(prescription_id, scheduled_date, scheduled_time, status)


def delete_schedule_for_prescription(store: ScheduleStore, prescription_id: str) -> None:
    store.delete_all_for_prescription(prescription_id)
