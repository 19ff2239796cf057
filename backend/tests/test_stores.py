import datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import SQLAlchemyError

from rxmanager.schemas import ScheduleStatus
from rxmanager.stores import PrescriptionStore, ScheduleStore


@pytest.fixture
def failing_db():
    db = MagicMock()
    db.commit.side_effect = SQLAlchemyError("commit failed")
    return db


def test_delete_rolls_back_on_commit_failure(failing_db):
    with pytest.raises(SQLAlchemyError):
        PrescriptionStore(failing_db).delete("rx-1")
    failing_db.rollback.assert_called_once()


def test_update_status_rolls_back_on_commit_failure(failing_db):
    with pytest.raises(SQLAlchemyError):
        ScheduleStore(failing_db).update_status(
            "rx-1", datetime.date(2024, 1, 1), "08:00", ScheduleStatus.TAKEN
        )
    failing_db.rollback.assert_called_once()


def test_delete_all_rolls_back_on_commit_failure(failing_db, caplog):
    with pytest.raises(SQLAlchemyError):
        ScheduleStore(failing_db).delete_all_for_prescription("rx-1")
    failing_db.rollback.assert_called_once()
    assert "rolled back" in caplog.text
