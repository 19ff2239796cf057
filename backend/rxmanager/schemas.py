# backend/rxmanager/schemas.py
import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

START_TIME_PATTERN = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


class Unit(str, Enum):
    mg = "mg"
    g = "g"
    ml = "ml"
    tablets = "tablets"
    capsules = "capsules"


class PrescriptionStatus(str, Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ScheduleStatus(str, Enum):
    PENDING = "PENDING"
    TAKEN = "TAKEN"
    MISSED = "MISSED"


class InteractionSeverity(str, Enum):
    MILD = "MILD"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"


class DosageAlertType(str, Enum):
    MAX_DOSE_EXCEEDED = "MAX_DOSE_EXCEEDED"
    FREQUENCY_TOO_HIGH = "FREQUENCY_TOO_HIGH"
    DURATION_TOO_LONG = "DURATION_TOO_LONG"


class AlertType(str, Enum):
    DRUG_INTERACTION = "DRUG_INTERACTION"
    DOSAGE_ALERT = "DOSAGE_ALERT"
    ALLERGY_ALERT = "ALLERGY_ALERT"  # reserved


class AlertSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class Prescription(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    prescription_id: str
    patient_id: str
    medication_name: str
    dosage: float
    unit: Unit
    frequency_hours: int
    start_time: str
    start_date: datetime.date
    end_date: datetime.date
    status: PrescriptionStatus = PrescriptionStatus.ACTIVE
    prescribed_by: str
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None


class PrescriptionCreate(BaseModel):
    medication_name: str = Field(min_length=1, max_length=100)
    dosage: float = Field(gt=0)
    unit: Unit
    frequency_hours: int = Field(ge=1, le=24)
    start_time: str = Field(pattern=START_TIME_PATTERN)
    start_date: datetime.date
    end_date: datetime.date
    prescribed_by: str = Field(min_length=1, max_length=100)

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        if self.start_date < datetime.date.today():
            raise ValueError("Start date cannot be in the past")
        return self


class PrescriptionUpdate(BaseModel):
    medication_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    dosage: Optional[float] = Field(default=None, gt=0)
    unit: Optional[Unit] = None
    frequency_hours: Optional[int] = Field(default=None, ge=1, le=24)
    start_time: Optional[str] = Field(default=None, pattern=START_TIME_PATTERN)
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    status: Optional[PrescriptionStatus] = None

    @model_validator(mode="after")
    def check_not_empty(self):
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class ScheduleEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    prescription_id: str
    patient_id: str
    scheduled_date: datetime.date
    scheduled_time: str
    dosage: float
    unit: Unit
    status: ScheduleStatus = ScheduleStatus.PENDING


class ScheduleStatusUpdate(BaseModel):
    status: ScheduleStatus


class DrugInteraction(BaseModel):
    model_config = ConfigDict(frozen=True)

    severity: InteractionSeverity
    description: str
    medications: List[str]


class DosageAlert(BaseModel):
    type: DosageAlertType
    message: str
    recommendation: str


class ClinicalAlert(BaseModel):
    prescription_id: str
    patient_id: str
    alert_type: AlertType
    severity: AlertSeverity
    message: str
    recommendation: str
    created_at: datetime.datetime


class PrescriptionCreated(BaseModel):
    prescription: Prescription
    clinical_alerts: Optional[List[ClinicalAlert]] = None
