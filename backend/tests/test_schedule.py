import datetime
from collections import Counter

import pytest
from sqlalchemy.exc import SQLAlchemyError

from rxmanager.schemas import ScheduleStatus
from rxmanager.services.preconditions import InvalidPrescriptionError
from rxmanager.services.schedule import build_schedule, generate_schedule, regenerate_schedule
from rxmanager.stores import ScheduleStore


def test_eight_hourly_week_truncates_last_day(rx):
    entries = build_schedule(rx(frequency_hours=8, start_time="08:00"))

    per_day = Counter(e.scheduled_date for e in entries)
    for day in range(1, 8):
        assert per_day[datetime.date(2024, 1, day)] == 3
    assert per_day[datetime.date(2024, 1, 8)] == 2
    assert len(entries) == 23

    first_day = [e.scheduled_time for e in entries if e.scheduled_date == datetime.date(2024, 1, 1)]
    assert first_day == ["08:00", "16:00", "00:00"]
    last_day = [e.scheduled_time for e in entries if e.scheduled_date == datetime.date(2024, 1, 8)]
    assert last_day == ["08:00", "16:00"]


def test_wrapped_hour_stays_on_same_date(rx):
    entries = build_schedule(rx(
        frequency_hours=12, start_time="18:30",
        start_date=datetime.date(2024, 3, 1), end_date=datetime.date(2024, 3, 2),
    ))
    assert [(e.scheduled_date.day, e.scheduled_time) for e in entries] == [
        (1, "18:30"), (1, "06:30"), (2, "18:30"),
    ]


def test_uneven_frequency_has_no_partial_interval(rx):
    entries = build_schedule(rx(
        frequency_hours=5, start_time="10:00",
        start_date=datetime.date(2024, 1, 1), end_date=datetime.date(2024, 1, 2),
    ))
    first_day = [e.scheduled_time for e in entries if e.scheduled_date.day == 1]
    assert first_day == ["10:00", "15:00", "20:00", "01:00", "06:00"]
    last_day = [e.scheduled_time for e in entries if e.scheduled_date.day == 2]
    assert last_day == ["10:00", "15:00", "20:00"]


@pytest.mark.parametrize("start_time,frequency,expected", [
    ("20:00", 6, ["20:00"]),
    ("00:00", 8, ["00:00", "08:00", "16:00"]),
    ("23:59", 1, ["23:59"]),
])
def test_single_day_uses_last_day_truncation(rx, start_time, frequency, expected):
    day = datetime.date(2024, 5, 5)
    entries = build_schedule(rx(
        start_time=start_time, frequency_hours=frequency, start_date=day, end_date=day,
    ))
    assert [e.scheduled_time for e in entries] == expected


def test_entries_copy_dosage_and_start_pending(rx):
    p = rx(dosage=2.5, unit="tablets")
    entries = build_schedule(p)
    assert all(e.dosage == 2.5 for e in entries)
    assert all(e.unit.value == "tablets" for e in entries)
    assert all(e.status == ScheduleStatus.PENDING for e in entries)
    assert all(e.prescription_id == p.prescription_id for e in entries)
    assert all(e.patient_id == p.patient_id for e in entries)


def test_same_prescription_gives_same_schedule(rx):
    p = rx(frequency_hours=7, start_time="09:15")
    assert build_schedule(p) == build_schedule(p)


def test_non_positive_frequency_is_rejected(rx):
    with pytest.raises(InvalidPrescriptionError):
        build_schedule(rx(frequency_hours=0))


def test_end_before_start_is_rejected(rx):
    with pytest.raises(InvalidPrescriptionError):
        build_schedule(rx(start_date=datetime.date(2024, 1, 8), end_date=datetime.date(2024, 1, 1)))


class FlakyStore:
    def __init__(self, fail_on):
        self.fail_on = fail_on
        self.saved = []

    def create(self, entry):
        if len(self.saved) + 1 == self.fail_on and not getattr(self, "failed", False):
            self.failed = True
            raise SQLAlchemyError("write failed")
        self.saved.append(entry)
        return entry


def test_failed_write_does_not_stop_siblings(rx):
    store = FlakyStore(fail_on=2)
    entries = generate_schedule(rx(), store)
    assert len(entries) == 23
    assert len(store.saved) == 22


def test_generate_persists_entries(db, rx):
    store = ScheduleStore(db)
    p = rx()
    generate_schedule(p, store)

    saved = store.get_by_prescription(p.prescription_id)
    assert len(saved) == 23
    assert saved[0].scheduled_date == datetime.date(2024, 1, 1)
    assert saved[0].scheduled_time == "00:00"

    on_day = store.get_by_patient(p.patient_id, datetime.date(2024, 1, 8))
    assert [e.scheduled_time for e in on_day] == ["08:00", "16:00"]


def test_regenerate_discards_old_entries(db, rx):
    store = ScheduleStore(db)
    p = rx()
    generate_schedule(p, store)

    shorter = p.model_copy(update={"end_date": datetime.date(2024, 1, 2), "frequency_hours": 12})
    regenerate_schedule(shorter, store)

    saved = store.get_by_prescription(p.prescription_id)
    assert [(e.scheduled_date.day, e.scheduled_time) for e in saved] == [
        (1, "08:00"), (1, "20:00"), (2, "08:00"), (2, "20:00"),
    ]


def test_update_status(db, rx):
    store = ScheduleStore(db)
    p = rx()
    generate_schedule(p, store)

    entry = store.update_status(p.prescription_id, datetime.date(2024, 1, 3), "16:00", ScheduleStatus.TAKEN)
    assert entry.status == ScheduleStatus.TAKEN
    assert store.update_status(p.prescription_id, datetime.date(2024, 1, 3), "17:00", ScheduleStatus.TAKEN) is None
