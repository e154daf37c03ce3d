"""
Patient Suitability - age, organ function and allergy checks for candidates.

Contraindications (age group, allergy cross-reactivity) make a candidate
unsuitable; the scorer drives its safety score to the floor. Organ function
findings only add dosing notes. Every candidate also carries the monitoring
its prescriber should plan for.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import Field, field_validator

from app.services.interactions.models import DrugRef, FrozenModel

ELDERLY_AGE = 65
ADULT_AGE = 18


class OrganFunction(str, Enum):
    NORMAL = "normal"
    IMPAIRED = "impaired"


class PatientFactors(FrozenModel):
    """Clinical context of the patient beyond pharmacogenomics."""
    age: Optional[int] = Field(None, ge=0, le=130)
    allergies: Tuple[str, ...] = ()
    renal_function: Optional[OrganFunction] = None
    hepatic_function: Optional[OrganFunction] = None

    @field_validator("allergies", mode="before")
    @classmethod
    def _normalize_allergies(cls, value):
        if value is None:
            return ()
        return tuple(sorted({str(a).strip().lower() for a in value if str(a).strip()}))

    @property
    def is_empty(self) -> bool:
        return (
            self.age is None
            and not self.allergies
            and self.renal_function is None
            and self.hepatic_function is None
        )


# ============================================================================
# Reference tables (generic names unless noted)
# ============================================================================

ELDERLY_AVOID: Dict[str, str] = {
    "amitriptyline": "Avoid in elderly due to anticholinergic effects",
    "diphenhydramine": "Avoid in elderly due to anticholinergic effects",
}

PEDIATRIC_AVOID: Dict[str, str] = {
    "aspirin": "Contraindicated in pediatric patients (Reye's syndrome)",
    "doxycycline": "Contraindicated in pediatric patients",
    "codeine": "Contraindicated in pediatric patients",
    "tramadol": "Contraindicated in pediatric patients",
}

RENAL_DOSE_ADJUSTMENTS: Dict[str, str] = {
    "metformin": "Dose reduction required for renal impairment",
    "gabapentin": "Dose reduction required for renal impairment",
    "dabigatran": "Dose reduction required for renal impairment",
}

HEPATIC_CAUTION_DRUGS = {"acetaminophen"}
HEPATIC_CAUTION_CLASSES = {"STATINS"}
HEPATIC_CAUTION_NOTE = "Caution with hepatic impairment"

# Allergen -> (generic name fragments, therapeutic classes) that cross-react
ALLERGY_CROSS_REACTIVITY: Dict[str, Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    "penicillin": (("amoxicillin", "ampicillin", "penicillin"), ("PENICILLINS",)),
    "sulfa": (("sulfamethoxazole", "trimethoprim"), ()),
    "aspirin": (("aspirin", "salicylate"), ("SALICYLATES",)),
    "nsaid": (("ibuprofen", "naproxen", "diclofenac", "celecoxib"), ("NSAIDS",)),
}

MONITORING_REQUIREMENTS: Dict[str, Tuple[str, ...]] = {
    "lisinopril": ("Blood pressure", "Renal function", "Potassium"),
    "metformin": ("Blood glucose", "Renal function", "Vitamin B12"),
    "atorvastatin": ("Lipid panel", "Liver function"),
    "warfarin": ("INR", "Bleeding signs"),
    "omeprazole": ("Symptom relief", "Magnesium (long-term)"),
}

DEFAULT_MONITORING: Tuple[str, ...] = ("Clinical response", "Adverse effects")


@dataclass
class SuitabilityAssessment:
    contraindications: List[str] = field(default_factory=list)
    dosage_adjustments: List[str] = field(default_factory=list)

    @property
    def suitable(self) -> bool:
        return not self.contraindications


def allergy_contraindicates(drug: DrugRef, allergy: str) -> bool:
    """Whether ``drug`` cross-reacts with a reported allergy."""
    fragments, classes = ALLERGY_CROSS_REACTIVITY.get(allergy.strip().lower(), ((), ()))
    name = drug.generic_name.lower()
    if any(fragment in name for fragment in fragments):
        return True
    return drug.drug_class is not None and drug.drug_class in classes


def assess_suitability(drug: DrugRef, patient: Optional[PatientFactors]) -> SuitabilityAssessment:
    """Check one drug against the patient's age, organ function and allergies."""
    assessment = SuitabilityAssessment()
    if patient is None:
        return assessment

    name = drug.generic_name.lower()

    if patient.age is not None:
        if patient.age >= ELDERLY_AGE and name in ELDERLY_AVOID:
            assessment.contraindications.append(ELDERLY_AVOID[name])
        if patient.age < ADULT_AGE and name in PEDIATRIC_AVOID:
            assessment.contraindications.append(PEDIATRIC_AVOID[name])

    if patient.renal_function == OrganFunction.IMPAIRED and name in RENAL_DOSE_ADJUSTMENTS:
        assessment.dosage_adjustments.append(RENAL_DOSE_ADJUSTMENTS[name])

    if patient.hepatic_function == OrganFunction.IMPAIRED and (
        name in HEPATIC_CAUTION_DRUGS or drug.drug_class in HEPATIC_CAUTION_CLASSES
    ):
        assessment.dosage_adjustments.append(HEPATIC_CAUTION_NOTE)

    for allergy in patient.allergies:
        if allergy_contraindicates(drug, allergy):
            assessment.contraindications.append(f"Contraindicated due to {allergy} allergy")

    return assessment


def monitoring_requirements(drug: DrugRef) -> Tuple[str, ...]:
    return MONITORING_REQUIREMENTS.get(drug.generic_name.lower(), DEFAULT_MONITORING)
