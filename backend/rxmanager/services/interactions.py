# backend/rxmanager/services/interactions.py
import logging
from typing import Dict, List, Sequence

from rxmanager.schemas import (
    DrugInteraction,
    InteractionSeverity,
    Prescription,
    PrescriptionStatus,
)

log = logging.getLogger("interactions")

# Keyed by the newly prescribed medication only. The reverse direction is not
# looked up, so a pair is caught only if the table carries an entry for the
# drug being added.
INTERACTIONS_DB: Dict[str, List[DrugInteraction]] = {
    "warfarin": [
        DrugInteraction(
            severity=InteractionSeverity.SEVERE,
            description="Increased bleeding risk when combined with aspirin",
            medications=["aspirin", "acetylsalicylic acid"],
        )
    ],
    "amoxicillin": [
        DrugInteraction(
            severity=InteractionSeverity.MODERATE,
            description="May reduce effectiveness of oral contraceptives",
            medications=["ethinyl estradiol", "levonorgestrel"],
        )
    ],
}


def lookup_interactions(medication_name: str) -> List[DrugInteraction]:
    if not medication_name:
        return []
    return INTERACTIONS_DB.get(medication_name.lower(), [])


def check_drug_interactions(
    new_prescription: Prescription, existing_prescriptions: Sequence[Prescription]
) -> List[DrugInteraction]:
    """
    Report every interaction entry of the new medication that matches an
    ACTIVE existing prescription. An entry is reported once per matching
    prescription, so duplicates are expected.
    """
    results = []
    for interaction in lookup_interactions(new_prescription.medication_name):
        for existing in existing_prescriptions:
            if existing.status != PrescriptionStatus.ACTIVE:
                continue
            if existing.medication_name.lower() in interaction.medications:
                log.info(
                    "Interaction %s between %s and %s (prescription %s)",
                    interaction.severity.value,
                    new_prescription.medication_name,
                    existing.medication_name,
                    existing.prescription_id,
                )
                results.append(interaction)
    return results
