# backend/rxmanager/main.py
import datetime
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from rxmanager.db import get_db, init_db
from rxmanager.schemas import (
    Prescription,
    PrescriptionCreate,
    PrescriptionCreated,
    PrescriptionUpdate,
    ScheduleEntry,
    ScheduleStatusUpdate,
)
from rxmanager.services import clinical, schedule
from rxmanager.services.preconditions import InvalidPrescriptionError, require_valid_date_range
from rxmanager.stores import PrescriptionStore, ScheduleStore

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
log = logging.getLogger("uvicorn.error")

SERVICE_NAME = os.getenv("SERVICE_NAME", "prescription-management-service")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# changing any of these invalidates the generated schedule
TIMING_FIELDS = {"frequency_hours", "start_time", "start_date", "end_date"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


app = FastAPI(title="Prescription Management API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg") if errors else "invalid request"
    return JSONResponse(status_code=400, content={"detail": f"Validation error: {message}"})


@app.exception_handler(InvalidPrescriptionError)
async def invalid_prescription_handler(request: Request, exc: InvalidPrescriptionError):
    return JSONResponse(status_code=400, content={"detail": f"Validation error: {exc}"})


def get_prescription_store(db: Session = Depends(get_db)) -> PrescriptionStore:
    return PrescriptionStore(db)


def get_schedule_store(db: Session = Depends(get_db)) -> ScheduleStore:
    return ScheduleStore(db)


@app.get("/health")
def health():
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }


@app.get("/patients/{patient_id}/prescriptions", response_model=List[Prescription])
def list_patient_prescriptions(
    patient_id: uuid.UUID,
    prescriptions: PrescriptionStore = Depends(get_prescription_store),
):
    return prescriptions.get_by_patient(str(patient_id))


@app.post(
    "/patients/{patient_id}/prescriptions",
    response_model=PrescriptionCreated,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_prescription(
    patient_id: uuid.UUID,
    payload: PrescriptionCreate,
    prescriptions: PrescriptionStore = Depends(get_prescription_store),
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    """
    Create an ACTIVE prescription, evaluate it against the patient's other
    prescriptions, then generate its dosing schedule.
    """
    prescription = prescriptions.create(str(patient_id), payload)

    siblings = [
        p for p in prescriptions.get_by_patient(str(patient_id))
        if p.prescription_id != prescription.prescription_id
    ]
    alerts = clinical.generate_clinical_alerts(prescription, siblings)

    schedule.generate_schedule(prescription, schedules)

    return PrescriptionCreated(prescription=prescription, clinical_alerts=alerts or None)


@app.get("/prescriptions/active", response_model=List[Prescription])
def list_active_prescriptions(prescriptions: PrescriptionStore = Depends(get_prescription_store)):
    return prescriptions.get_active()


@app.get("/prescriptions/{prescription_id}", response_model=Prescription)
def get_prescription(
    prescription_id: uuid.UUID,
    prescriptions: PrescriptionStore = Depends(get_prescription_store),
):
    prescription = prescriptions.get_by_id(str(prescription_id))
    if prescription is None:
        raise HTTPException(status_code=404, detail="Prescription not found")
    return prescription


@app.put("/prescriptions/{prescription_id}", response_model=Prescription)
def update_prescription(
    prescription_id: uuid.UUID,
    payload: PrescriptionUpdate,
    prescriptions: PrescriptionStore = Depends(get_prescription_store),
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    existing = prescriptions.get_by_id(str(prescription_id))
    if existing is None:
        raise HTTPException(status_code=404, detail="Prescription not found")

    updates = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
    if not updates:
        raise HTTPException(status_code=400, detail="Validation error: no fields to update")
    require_valid_date_range(existing.model_copy(update=updates))

    updated = prescriptions.update(str(prescription_id), updates)
    if updated is None:
        raise HTTPException(status_code=404, detail="Prescription not found")

    if TIMING_FIELDS & updates.keys():
        log.info("Timing changed for prescription %s, regenerating schedule", prescription_id)
        schedule.regenerate_schedule(updated, schedules)

    return updated


@app.delete("/prescriptions/{prescription_id}")
def delete_prescription(
    prescription_id: uuid.UUID,
    prescriptions: PrescriptionStore = Depends(get_prescription_store),
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    if not prescriptions.delete(str(prescription_id)):
        raise HTTPException(status_code=404, detail="Prescription not found")
    schedule.delete_schedule_for_prescription(schedules, str(prescription_id))
    return {"message": "Prescription deleted successfully"}


@app.get("/prescriptions/{prescription_id}/schedule", response_model=List[ScheduleEntry])
def get_prescription_schedule(
    prescription_id: uuid.UUID,
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    return schedule.get_prescription_schedule(schedules, str(prescription_id))


@app.put(
    "/prescriptions/{prescription_id}/schedule/{scheduled_date}/{scheduled_time}",
    response_model=ScheduleEntry,
)
def update_schedule_status(
    prescription_id: uuid.UUID,
    scheduled_date: datetime.date,
    scheduled_time: str,
    payload: ScheduleStatusUpdate,
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    entry = schedule.update_schedule_status(
        schedules, str(prescription_id), scheduled_date, scheduled_time, payload.status
    )
    if entry is None:
        raise HTTPException(status_code=404, detail="Schedule entry not found")
    return entry


@app.get("/patients/{patient_id}/schedule", response_model=List[ScheduleEntry])
def get_patient_schedule(
    patient_id: uuid.UUID,
    date: Optional[datetime.date] = None,
    schedules: ScheduleStore = Depends(get_schedule_store),
):
    return schedule.get_patient_schedule(schedules, str(patient_id), date)
