"""
Pharmacogenomic data models.

Gene-drug guideline rows and the per-drug annotations derived from a
patient's phenotype profile. Annotations are reported next to the drug-drug
results, never folded into their severity.
"""

from enum import Enum
from typing import Dict, Mapping, Optional

from pydantic import Field, computed_field

from app.services.interactions.errors import ValidationCode, ValidationError
from app.services.interactions.models import EvidenceLevel, FrozenModel


class Phenotype(str, Enum):
    """CPIC metabolizer phenotype."""
    PM = "PM"  # Poor Metabolizer
    IM = "IM"  # Intermediate Metabolizer
    NM = "NM"  # Normal Metabolizer
    RM = "RM"  # Rapid Metabolizer
    UM = "UM"  # Ultrarapid Metabolizer

    @property
    def long_name(self) -> str:
        return PHENOTYPE_SHORT_TO_LONG[self.value]

    @classmethod
    def parse(cls, value: str) -> "Phenotype":
        """Parse a short code or long CPIC name (case-insensitive)."""
        key = " ".join(str(value or "").replace("-", "").split()).lower()
        code = PHENOTYPE_ALIASES.get(key)
        if code is None:
            raise ValidationError(
                ValidationCode.UNKNOWN_PHENOTYPE,
                f"Unknown phenotype {value!r}. Use PM/IM/NM/RM/UM",
            )
        return cls(code)


PHENOTYPE_SHORT_TO_LONG = {
    "PM": "Poor Metabolizer",
    "IM": "Intermediate Metabolizer",
    "NM": "Normal Metabolizer",
    "RM": "Rapid Metabolizer",
    "UM": "Ultrarapid Metabolizer",
}

# Normalised spelling (lower case, no hyphens) -> short code
PHENOTYPE_ALIASES: Dict[str, str] = {
    **{code.lower(): code for code in PHENOTYPE_SHORT_TO_LONG},
    **{name.lower(): code for code, name in PHENOTYPE_SHORT_TO_LONG.items()},
    "ultrarapid": "UM",
    "poor": "PM",
    "intermediate": "IM",
    "normal": "NM",
    "rapid": "RM",
    # Pre-2017 nomenclature
    "em": "NM",
    "extensive metabolizer": "NM",
}

UNFAVORABLE_PHENOTYPES = frozenset({Phenotype.PM, Phenotype.UM})


class GeneDrugInteraction(FrozenModel):
    """One CPIC-style guideline row for a (gene, drug, phenotype) triple."""
    gene: str = Field(..., description="Gene symbol, e.g. CYP2C19")
    drug_id: str = Field(..., description="Canonical drug identifier")
    phenotype: Phenotype
    recommendation: str
    dose_adjustment: Optional[str] = None
    evidence_level: EvidenceLevel
    actionable: bool = Field(True, description="False for rows that amount to normal dosing")
    guideline_url: Optional[str] = None


class PhenotypeAnnotation(FrozenModel):
    """A guideline row matched against the patient's phenotype for one drug."""
    gene: str
    phenotype: Phenotype
    recommendation: str
    dose_adjustment: Optional[str] = None
    evidence_level: EvidenceLevel
    actionable: bool = True
    guideline_url: Optional[str] = None

    @computed_field(alias="unfavorable")
    @property
    def unfavorable(self) -> bool:
        return self.actionable and self.phenotype in UNFAVORABLE_PHENOTYPES

    @classmethod
    def from_guideline(cls, row: GeneDrugInteraction) -> "PhenotypeAnnotation":
        return cls(
            gene=row.gene,
            phenotype=row.phenotype,
            recommendation=row.recommendation,
            dose_adjustment=row.dose_adjustment,
            evidence_level=row.evidence_level,
            actionable=row.actionable,
            guideline_url=row.guideline_url,
        )


PatientPhenotypeProfile = Dict[str, Phenotype]


def parse_phenotype_profile(raw: Optional[Mapping[str, str]]) -> PatientPhenotypeProfile:
    """
    Normalise a caller-supplied gene -> phenotype mapping.

    Gene symbols are upper-cased; blank genes are dropped.

    Raises:
        ValidationError: UnknownPhenotype for any unrecognised phenotype
    """
    profile: PatientPhenotypeProfile = {}
    for gene, value in (raw or {}).items():
        symbol = (gene or "").strip().upper()
        if not symbol:
            continue
        profile[symbol] = Phenotype.parse(value)
    return profile
