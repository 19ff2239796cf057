# backend/rxmanager/services/preconditions.py
from rxmanager.schemas import Prescription


class InvalidPrescriptionError(ValueError):
    """Raised when a prescription violates an invariant the core relies on."""


def require_positive_frequency(prescription: Prescription):
    if prescription.frequency_hours is None or prescription.frequency_hours <= 0:
        raise InvalidPrescriptionError(
            f"frequency_hours must be positive, got {prescription.frequency_hours}"
        )


def require_valid_date_range(prescription: Prescription):
    if prescription.end_date <= prescription.start_date:
        raise InvalidPrescriptionError("End date must be after start date")


def require_ordered_dates(prescription: Prescription):
    # equal dates are a single-day course
    if prescription.end_date < prescription.start_date:
        raise InvalidPrescriptionError("End date cannot be before start date")
