"""
CPIC gene-drug guideline table.

Rows are condensed from the published CPIC guidelines and keyed by drug
generic name; GeneDrugTable resolves them to catalog identifiers once at
construction.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from app.services.interactions.knowledge_base import DrugCatalog
from app.services.interactions.models import EvidenceLevel

from .models import GeneDrugInteraction, Phenotype

logger = logging.getLogger(__name__)

CPIC_BASE_URL = "https://cpicpgx.org/guidelines"

CLOPIDOGREL_URL = f"{CPIC_BASE_URL}/guideline-for-clopidogrel-and-cyp2c19/"
WARFARIN_URL = f"{CPIC_BASE_URL}/guideline-for-warfarin-and-cyp2c9-and-vkorc1/"
NSAID_URL = f"{CPIC_BASE_URL}/cpic-guideline-for-nsaids-based-on-cyp2c9-genotype/"
THIOPURINE_URL = f"{CPIC_BASE_URL}/guideline-for-thiopurines-and-tpmt/"
FLUOROPYRIMIDINE_URL = f"{CPIC_BASE_URL}/guideline-for-fluoropyrimidines-and-dpyd/"
OPIOID_URL = f"{CPIC_BASE_URL}/guideline-for-codeine-and-cyp2d6/"
SSRI_URL = f"{CPIC_BASE_URL}/guideline-for-selective-serotonin-reuptake-inhibitors-and-cyp2d6-and-cyp2c19/"
TCA_URL = f"{CPIC_BASE_URL}/guideline-for-tricyclic-antidepressants-and-cyp2d6-and-cyp2c19/"
PPI_URL = f"{CPIC_BASE_URL}/cpic-guideline-for-proton-pump-inhibitors-and-cyp2c19/"
TAMOXIFEN_URL = f"{CPIC_BASE_URL}/cpic-guideline-for-tamoxifen-based-on-cyp2d6-genotype/"


@dataclass(frozen=True)
class GuidelineRow:
    gene: str
    drug: str
    phenotype: Phenotype
    recommendation: str
    evidence_level: EvidenceLevel
    dose_adjustment: Optional[str] = None
    actionable: bool = True
    url: Optional[str] = None


PM, IM, NM, RM, UM = Phenotype.PM, Phenotype.IM, Phenotype.NM, Phenotype.RM, Phenotype.UM
A, B = EvidenceLevel.A, EvidenceLevel.B

CPIC_GUIDELINES: List[GuidelineRow] = [
    # CYP2C19 - clopidogrel
    GuidelineRow("CYP2C19", "clopidogrel", PM,
                 "Avoid clopidogrel; use prasugrel or ticagrelor if no contraindication",
                 A, url=CLOPIDOGREL_URL),
    GuidelineRow("CYP2C19", "clopidogrel", IM,
                 "Avoid standard-dose clopidogrel; use prasugrel or ticagrelor if no contraindication",
                 A, url=CLOPIDOGREL_URL),
    GuidelineRow("CYP2C19", "clopidogrel", NM,
                 "Use clopidogrel at standard dose", A, actionable=False, url=CLOPIDOGREL_URL),

    # CYP2C9 - warfarin and NSAIDs
    GuidelineRow("CYP2C9", "warfarin", PM,
                 "Use significantly lower warfarin doses; calculate with a validated pharmacogenetic algorithm",
                 A, dose_adjustment="50-75% reduction", url=WARFARIN_URL),
    GuidelineRow("CYP2C9", "warfarin", IM,
                 "Reduce initial warfarin dose and monitor INR closely",
                 A, dose_adjustment="20-40% reduction", url=WARFARIN_URL),
    GuidelineRow("CYP2C9", "celecoxib", PM,
                 "Initiate at 25-50% of the lowest starting dose, or choose an NSAID not metabolized by CYP2C9",
                 A, dose_adjustment="25-50% of lowest starting dose", url=NSAID_URL),
    GuidelineRow("CYP2C9", "ibuprofen", PM,
                 "Initiate at 25-50% of the lowest starting dose, or choose an NSAID not metabolized by CYP2C9",
                 A, dose_adjustment="25-50% of lowest starting dose", url=NSAID_URL),
    GuidelineRow("CYP2C9", "ibuprofen", IM,
                 "Initiate at the lowest recommended starting dose",
                 B, url=NSAID_URL),

    # TPMT - thiopurines
    GuidelineRow("TPMT", "azathioprine", PM,
                 "Consider a non-thiopurine immunosuppressant; if used, drastically reduce the dose",
                 A, dose_adjustment="10% of standard dose, three times weekly", url=THIOPURINE_URL),
    GuidelineRow("TPMT", "azathioprine", IM,
                 "Start at a reduced dose and adjust by myelosuppression",
                 A, dose_adjustment="30-80% of standard dose", url=THIOPURINE_URL),
    GuidelineRow("TPMT", "mercaptopurine", PM,
                 "Drastically reduce the dose and dosing frequency",
                 A, dose_adjustment="10% of standard dose, three times weekly", url=THIOPURINE_URL),
    GuidelineRow("TPMT", "mercaptopurine", IM,
                 "Start at a reduced dose and adjust by myelosuppression",
                 A, dose_adjustment="30-80% of standard dose", url=THIOPURINE_URL),

    # DPYD - fluoropyrimidines
    GuidelineRow("DPYD", "fluorouracil", PM,
                 "Avoid fluorouracil-containing regimens",
                 A, url=FLUOROPYRIMIDINE_URL),
    GuidelineRow("DPYD", "fluorouracil", IM,
                 "Reduce starting dose and titrate by toxicity",
                 A, dose_adjustment="50% reduction", url=FLUOROPYRIMIDINE_URL),
    GuidelineRow("DPYD", "capecitabine", PM,
                 "Avoid capecitabine",
                 A, url=FLUOROPYRIMIDINE_URL),
    GuidelineRow("DPYD", "capecitabine", IM,
                 "Reduce starting dose and titrate by toxicity",
                 A, dose_adjustment="50% reduction", url=FLUOROPYRIMIDINE_URL),

    # CYP2D6 - opioids, tamoxifen, antidepressants
    GuidelineRow("CYP2D6", "codeine", PM,
                 "Avoid codeine due to lack of efficacy; use a non-tramadol opioid such as morphine",
                 A, url=OPIOID_URL),
    GuidelineRow("CYP2D6", "codeine", UM,
                 "Avoid codeine due to potential for serious toxicity",
                 A, url=OPIOID_URL),
    GuidelineRow("CYP2D6", "tramadol", PM,
                 "Avoid tramadol due to lack of efficacy; use a non-codeine opioid",
                 B, url=OPIOID_URL),
    GuidelineRow("CYP2D6", "tramadol", UM,
                 "Avoid tramadol due to potential for serious toxicity",
                 A, url=OPIOID_URL),
    GuidelineRow("CYP2D6", "tamoxifen", PM,
                 "Consider an aromatase inhibitor (postmenopausal) or higher-dose tamoxifen",
                 A, url=TAMOXIFEN_URL),
    GuidelineRow("CYP2D6", "paroxetine", PM,
                 "Consider a lower starting dose and slower titration",
                 B, dose_adjustment="50% reduction of starting dose", url=SSRI_URL),
    GuidelineRow("CYP2D6", "paroxetine", UM,
                 "Select an alternative not predominantly metabolized by CYP2D6",
                 A, url=SSRI_URL),
    GuidelineRow("CYP2D6", "amitriptyline", PM,
                 "Avoid tricyclic use; if warranted, reduce the starting dose",
                 A, dose_adjustment="50% reduction of starting dose", url=TCA_URL),
    GuidelineRow("CYP2D6", "amitriptyline", UM,
                 "Avoid tricyclic use due to potential lack of efficacy",
                 A, url=TCA_URL),
    GuidelineRow("CYP2D6", "aspirin", PM,
                 "Use label-recommended dosing", B, actionable=False),

    # CYP2C19 - SSRIs and PPIs
    GuidelineRow("CYP2C19", "citalopram", PM,
                 "Consider a 50% reduction of the starting dose",
                 A, dose_adjustment="50% reduction of starting dose", url=SSRI_URL),
    GuidelineRow("CYP2C19", "citalopram", UM,
                 "Consider an alternative not predominantly metabolized by CYP2C19",
                 A, url=SSRI_URL),
    GuidelineRow("CYP2C19", "escitalopram", PM,
                 "Consider a 50% reduction of the starting dose",
                 A, dose_adjustment="50% reduction of starting dose", url=SSRI_URL),
    GuidelineRow("CYP2C19", "escitalopram", UM,
                 "Consider an alternative not predominantly metabolized by CYP2C19",
                 A, url=SSRI_URL),
    GuidelineRow("CYP2C19", "sertraline", PM,
                 "Consider a lower starting dose and slower titration",
                 B, dose_adjustment="50% reduction of starting dose", url=SSRI_URL),
    GuidelineRow("CYP2C19", "omeprazole", UM,
                 "Increase starting daily dose by 100%",
                 A, dose_adjustment="100% increase", url=PPI_URL),
    GuidelineRow("CYP2C19", "omeprazole", RM,
                 "Increase starting daily dose by 50-100% for H. pylori or erosive esophagitis",
                 A, dose_adjustment="50-100% increase", url=PPI_URL),
    GuidelineRow("CYP2C19", "pantoprazole", UM,
                 "Increase starting daily dose by 100%",
                 A, dose_adjustment="100% increase", url=PPI_URL),
    GuidelineRow("CYP2C19", "lansoprazole", UM,
                 "Increase starting daily dose by 100%",
                 A, dose_adjustment="100% increase", url=PPI_URL),
]


class GeneDrugTable:
    """Lookup of guideline rows by drug identifier."""

    def __init__(
        self,
        rows: Optional[Iterable[GuidelineRow]] = None,
        catalog: Optional[DrugCatalog] = None,
    ):
        catalog = catalog or DrugCatalog()
        self._by_drug: Dict[str, List[GeneDrugInteraction]] = {}

        for row in rows if rows is not None else CPIC_GUIDELINES:
            entry = catalog.lookup(row.drug)
            if entry is None:
                logger.warning(f"Skipping guideline {row.gene}/{row.drug}: drug not in catalog")
                continue
            self._by_drug.setdefault(entry.rxcui, []).append(GeneDrugInteraction(
                gene=row.gene,
                drug_id=entry.rxcui,
                phenotype=row.phenotype,
                recommendation=row.recommendation,
                dose_adjustment=row.dose_adjustment,
                evidence_level=row.evidence_level,
                actionable=row.actionable,
                guideline_url=row.url,
            ))

    def rows_for(self, drug_id: str, genes: Optional[Iterable[str]] = None) -> List[GeneDrugInteraction]:
        """Guideline rows for a drug, optionally restricted to some genes."""
        rows = self._by_drug.get(drug_id, [])
        if genes is None:
            return list(rows)
        wanted = {gene.upper() for gene in genes}
        return [row for row in rows if row.gene in wanted]

    def genes_for(self, drug_id: str) -> List[str]:
        return sorted({row.gene for row in self._by_drug.get(drug_id, [])})
