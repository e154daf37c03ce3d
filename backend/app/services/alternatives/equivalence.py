"""
Therapeutic class and equivalence tables.

Class membership comes from the drug catalog; this module adds the class
descriptions and the per-drug efficacy baselines (0-100) used when ranking
alternatives. Baselines favour guideline-preferred agents within a class.
"""

from typing import Dict, Iterable, List, Optional

from app.services.interactions.errors import NotFoundError
from app.services.interactions.knowledge_base import CatalogDrug, DrugCatalog
from app.services.interactions.models import DrugRef

THERAPEUTIC_CLASSES: Dict[str, str] = {
    "ORAL_ANTICOAGULANTS": "Oral anticoagulants",
    "SALICYLATES": "Salicylates",
    "P2Y12_INHIBITORS": "P2Y12 platelet inhibitors",
    "NSAIDS": "Nonsteroidal anti-inflammatory drugs",
    "NON_OPIOID_ANALGESICS": "Non-opioid analgesics",
    "OPIOID_ANALGESICS": "Opioid analgesics",
    "PROTON_PUMP_INHIBITORS": "Proton pump inhibitors",
    "STATINS": "HMG-CoA reductase inhibitors",
    "FIBRATES": "Fibrates",
    "MACROLIDES": "Macrolide antibiotics",
    "PENICILLINS": "Penicillins",
    "AZOLE_ANTIFUNGALS": "Azole antifungals",
    "RIFAMYCINS": "Rifamycins",
    "ANTIARRHYTHMICS": "Antiarrhythmics",
    "ACE_INHIBITORS": "ACE inhibitors",
    "BETA_BLOCKERS": "Beta blockers",
    "SSRIS": "Selective serotonin reuptake inhibitors",
    "SNRIS": "Serotonin-norepinephrine reuptake inhibitors",
    "TRICYCLIC_ANTIDEPRESSANTS": "Tricyclic antidepressants",
    "AMINOKETONE_ANTIDEPRESSANTS": "Aminoketone antidepressants",
    "BIGUANIDES": "Biguanides",
    "XANTHINE_OXIDASE_INHIBITORS": "Xanthine oxidase inhibitors",
    "SERMS": "Selective estrogen receptor modulators",
    "THIOPURINES": "Thiopurines",
    "FLUOROPYRIMIDINES": "Fluoropyrimidines",
    "ANTIMETABOLITES": "Antimetabolites",
    "ALKYLATING_AGENTS": "Alkylating agents",
    "ANTHRACYCLINES": "Anthracyclines",
    "PLATINUM_AGENTS": "Platinum agents",
}

# Efficacy baseline by generic name; drugs not listed get the neutral score
EFFICACY_BASELINES: Dict[str, int] = {
    # Anticoagulants
    "apixaban": 95,
    "rivaroxaban": 90,
    "warfarin": 85,
    "dabigatran": 85,
    "edoxaban": 85,
    # Antiplatelets
    "ticagrelor": 95,
    "prasugrel": 90,
    "clopidogrel": 85,
    # Analgesics
    "naproxen": 85,
    "ibuprofen": 85,
    "celecoxib": 85,
    "diclofenac": 80,
    "morphine": 90,
    "hydromorphone": 85,
    "oxycodone": 85,
    "codeine": 75,
    "tramadol": 75,
    # Acid suppression
    "omeprazole": 90,
    "esomeprazole": 90,
    "pantoprazole": 90,
    "rabeprazole": 85,
    "lansoprazole": 85,
    # Cardiometabolic
    "atorvastatin": 95,
    "rosuvastatin": 95,
    "simvastatin": 85,
    "pravastatin": 80,
    "lisinopril": 95,
    "ramipril": 90,
    "enalapril": 85,
    "metoprolol": 90,
    "carvedilol": 90,
    "atenolol": 80,
    "propranolol": 80,
    "metformin": 95,
    # Anti-infectives
    "amoxicillin": 90,
    "azithromycin": 85,
    "clarithromycin": 85,
    "erythromycin": 75,
    # Antidepressants
    "sertraline": 90,
    "escitalopram": 90,
    "citalopram": 85,
    "fluoxetine": 85,
    "paroxetine": 80,
}


class TherapeuticClassTable:
    """Class membership over the drug catalog, in catalog order."""

    def __init__(
        self,
        catalog: Optional[DrugCatalog] = None,
        descriptions: Optional[Dict[str, str]] = None,
    ):
        self.catalog = catalog or DrugCatalog()
        self.descriptions = descriptions if descriptions is not None else THERAPEUTIC_CLASSES
        self._members: Dict[str, List[CatalogDrug]] = {}
        for entry in self.catalog.entries():
            if entry.drug_class:
                self._members.setdefault(entry.drug_class, []).append(entry)

    def class_of(self, drug: DrugRef) -> str:
        """
        Therapeutic class of a drug: the caller's value, else the catalog's.

        Raises:
            NotFoundError: the drug has no known class
        """
        if drug.drug_class:
            return drug.drug_class
        entry = self.catalog.lookup(drug.id) or self.catalog.lookup(drug.generic_name)
        if entry is None or not entry.drug_class:
            raise NotFoundError("therapeutic class", drug.id)
        return entry.drug_class

    def members(self, class_code: str) -> List[DrugRef]:
        """
        Every drug in a class.

        Raises:
            NotFoundError: the class is unknown or has no members
        """
        entries = self._members.get(class_code)
        if not entries:
            raise NotFoundError("therapeutic class", class_code)
        return [entry.to_ref() for entry in entries]

    def describe(self, class_code: str) -> str:
        return self.descriptions.get(class_code, class_code.replace("_", " ").lower())

    def classes(self) -> Iterable[str]:
        return sorted(self._members)


class EquivalenceTable:
    """Static efficacy baselines for therapeutic-equivalence ranking."""

    def __init__(self, baselines: Optional[Dict[str, int]] = None, catalog: Optional[DrugCatalog] = None):
        self.baselines = baselines if baselines is not None else EFFICACY_BASELINES
        self.catalog = catalog or DrugCatalog()

    def efficacy_baseline(self, drug: DrugRef) -> int:
        """
        Baseline efficacy of a drug.

        Raises:
            NotFoundError: no baseline is recorded for the drug
        """
        names = [drug.generic_name.lower()]
        entry = self.catalog.by_id(drug.id)
        if entry is not None:
            names.append(entry.name)

        for name in names:
            if name in self.baselines:
                return self.baselines[name]
        raise NotFoundError("efficacy baseline", drug.id)
