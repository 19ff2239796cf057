# backend/rxmanager/services/clinical.py
import datetime
import logging
from typing import List, Sequence

from rxmanager.schemas import (
    AlertSeverity,
    AlertType,
    ClinicalAlert,
    DosageAlert,
    DosageAlertType,
    InteractionSeverity,
    Prescription,
)
from rxmanager.services.dose_rules import DOSE_LIMITS, DURATION_LIMITS, MIN_FREQUENCY_HOURS
from rxmanager.services.interactions import check_drug_interactions
from rxmanager.services.preconditions import require_ordered_dates, require_positive_frequency

log = logging.getLogger("clinical")

INTERACTION_SEVERITY_MAP = {
    InteractionSeverity.MILD: AlertSeverity.LOW,
    InteractionSeverity.MODERATE: AlertSeverity.MEDIUM,
    InteractionSeverity.SEVERE: AlertSeverity.CRITICAL,
}

DOSAGE_SEVERITY_MAP = {
    DosageAlertType.MAX_DOSE_EXCEEDED: AlertSeverity.CRITICAL,
    DosageAlertType.FREQUENCY_TOO_HIGH: AlertSeverity.HIGH,
    DosageAlertType.DURATION_TOO_LONG: AlertSeverity.MEDIUM,
}


def _fmt(value: float) -> str:
    # 12000.0 -> "12000", 4000.004 -> "4000.004"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def daily_dose(prescription: Prescription) -> float:
    require_positive_frequency(prescription)
    return (24 / prescription.frequency_hours) * prescription.dosage


def treatment_days(prescription: Prescription) -> int:
    require_ordered_dates(prescription)
    return (prescription.end_date - prescription.start_date).days


def check_dosage_alerts(prescription: Prescription) -> List[DosageAlert]:
    """
    Run the max daily dose, dosing frequency and treatment duration checks.
    Each check fires independently, in that order.
    """
    require_positive_frequency(prescription)
    require_ordered_dates(prescription)
    alerts = []
    medication = prescription.medication_name.lower()
    unit = prescription.unit.value

    limit = DOSE_LIMITS.get(medication)
    if limit and unit == limit["unit"]:
        dose = daily_dose(prescription)
        if dose > limit["max_daily_dose"]:
            alerts.append(DosageAlert(
                type=DosageAlertType.MAX_DOSE_EXCEEDED,
                message=(
                    f"Daily dose of {_fmt(dose)}{unit} exceeds maximum recommended dose "
                    f"of {_fmt(limit['max_daily_dose'])}{limit['unit']}"
                ),
                recommendation=(
                    "Consider reducing dose or frequency. Maximum daily dose should not "
                    f"exceed {_fmt(limit['max_daily_dose'])}{limit['unit']}."
                ),
            ))

    if prescription.frequency_hours < MIN_FREQUENCY_HOURS:
        alerts.append(DosageAlert(
            type=DosageAlertType.FREQUENCY_TOO_HIGH,
            message=(
                f"Dosing frequency is very high (less than {MIN_FREQUENCY_HOURS} hours "
                "between doses)"
            ),
            recommendation=(
                "Consider extending the interval between doses to reduce risk of side effects."
            ),
        ))

    max_days = DURATION_LIMITS.get(medication)
    if max_days:
        days = treatment_days(prescription)
        if days > max_days:
            alerts.append(DosageAlert(
                type=DosageAlertType.DURATION_TOO_LONG,
                message=(
                    f"Treatment duration of {days} days exceeds recommended maximum "
                    f"of {max_days} days"
                ),
                recommendation=(
                    f"Consider limiting treatment duration to {max_days} days or provide "
                    "additional monitoring."
                ),
            ))

    return alerts


def generate_clinical_alerts(
    prescription: Prescription, existing_prescriptions: Sequence[Prescription]
) -> List[ClinicalAlert]:
    """Interaction alerts first, then dosage alerts, all sharing one timestamp."""
    now = datetime.datetime.now(datetime.timezone.utc)
    alerts = []

    for interaction in check_drug_interactions(prescription, existing_prescriptions):
        alerts.append(ClinicalAlert(
            prescription_id=prescription.prescription_id,
            patient_id=prescription.patient_id,
            alert_type=AlertType.DRUG_INTERACTION,
            severity=INTERACTION_SEVERITY_MAP.get(interaction.severity, AlertSeverity.MEDIUM),
            message=f"Drug interaction detected: {interaction.description}",
            recommendation=(
                f"Review interaction between {prescription.medication_name} and "
                f"{', '.join(interaction.medications)}. Consider alternative medications "
                "or additional monitoring."
            ),
            created_at=now,
        ))

    for dosage_alert in check_dosage_alerts(prescription):
        alerts.append(ClinicalAlert(
            prescription_id=prescription.prescription_id,
            patient_id=prescription.patient_id,
            alert_type=AlertType.DOSAGE_ALERT,
            severity=DOSAGE_SEVERITY_MAP.get(dosage_alert.type, AlertSeverity.MEDIUM),
            message=dosage_alert.message,
            recommendation=dosage_alert.recommendation,
            created_at=now,
        ))

    if alerts:
        log.info(
            "Generated %d clinical alert(s) for prescription %s",
            len(alerts), prescription.prescription_id,
        )
    return alerts
