"""
Request and response contracts of the interaction and alternatives endpoints.

Field names are camelCase on the wire (drugA, safetyScore, ...) to stay
compatible with the existing UI client.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.services.alternatives.models import AlternativeCandidate
from app.services.alternatives.suitability import OrganFunction, PatientFactors
from app.services.interactions.models import DrugRef, EvidenceLevel, FrozenModel, InteractionRecord, Severity
from app.services.pharmacogenomics.models import Phenotype, PhenotypeAnnotation


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


# ============================================================================
# Requests
# ============================================================================

class InteractionCheckRequest(CamelModel):
    """Body of POST /interactions/check."""
    drugs: List[str] = Field(..., description="Drug identifiers (RXCUI) or names, 2..MAX_DRUGS distinct")
    patient_profile: Optional[Dict[str, str]] = Field(
        None,
        description="Gene symbol -> phenotype (PM/IM/NM/RM/UM or CPIC long name)"
    )


class DrugInput(CamelModel):
    """A drug as the UI sends it; at least one of id or name is required."""
    id: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    generic_name: Optional[str] = None
    drug_class: Optional[str] = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "DrugInput":
        if not (self.id or self.name or self.generic_name):
            raise ValueError("Each drug needs an id or a name")
        return self

    def to_drug_ref(self) -> DrugRef:
        key = (self.id or self.name or self.generic_name).strip()
        name = self.name or self.generic_name or key
        return DrugRef(
            id=key,
            display_name=self.display_name or name,
            generic_name=(self.generic_name or name).lower(),
            drug_class=self.drug_class,
        )


class FindAlternativesRequest(CamelModel):
    """Body of POST /alternatives/find-alternatives."""
    drugs: List[DrugInput] = Field(..., description="Current regimen, 1..MAX_DRUGS drugs")
    patient_profile: Optional[Dict[str, str]] = None
    age: Optional[int] = Field(None, ge=0, le=130, description="Patient age in years")
    allergies: List[str] = Field(default_factory=list, description="Reported allergies (penicillin, sulfa, ...)")
    renal_function: Optional[OrganFunction] = None
    hepatic_function: Optional[OrganFunction] = None

    def patient_factors(self) -> Optional[PatientFactors]:
        """Clinical factors of the request, or None when none were given."""
        factors = PatientFactors(
            age=self.age,
            allergies=self.allergies,
            renal_function=self.renal_function,
            hepatic_function=self.hepatic_function,
        )
        return None if factors.is_empty else factors


# ============================================================================
# Responses
# ============================================================================

class StoredExternal(FrozenModel):
    """Records split by provenance: curated store vs external references."""
    stored: List[InteractionRecord] = Field(default_factory=list)
    external: List[InteractionRecord] = Field(default_factory=list)


class SourceTotals(FrozenModel):
    stored: int = 0
    external: int = 0


class UnavailableSource(FrozenModel):
    """A source that could not answer for one pair."""
    drug_a: str
    drug_b: str
    source: str
    reason: str


class InteractionCheckResponse(FrozenModel):
    input_drugs: List[str]
    found_drugs: List[DrugRef]
    unresolved_drugs: List[str] = Field(default_factory=list)
    pair_count: int
    interaction_count: int
    highest_severity: Optional[Severity] = None
    source_counts: Dict[str, int] = Field(default_factory=dict)
    pairs: List[InteractionRecord] = Field(default_factory=list)
    interactions: StoredExternal
    sources: SourceTotals
    unavailable_sources: List[UnavailableSource] = Field(default_factory=list)
    phenotype_annotations: Dict[str, List[PhenotypeAnnotation]] = Field(default_factory=dict)


class AlternativesData(FrozenModel):
    alternatives: List[AlternativeCandidate]
    original_drugs: List[DrugRef]
    patient_profile: Dict[str, Phenotype] = Field(default_factory=dict)
    patient_factors: Optional[PatientFactors] = None
    total_alternatives: int
    high_safety_alternatives: int
    recommended_alternatives: int
    phenotype_annotations: Dict[str, List[PhenotypeAnnotation]] = Field(default_factory=dict)
    unavailable_sources: List[UnavailableSource] = Field(default_factory=list)


class AlternativesResponse(FrozenModel):
    success: bool = True
    data: AlternativesData


class InteractionRowEntry(FrozenModel):
    """One interaction of a matrix row, seen from the row's drug."""
    drug: DrugRef
    severity: Severity
    risk_score: int
    risk_level: str
    mechanism: str
    effect: str
    management: str
    evidence_level: Optional[EvidenceLevel] = None
    sources: List[str] = Field(default_factory=list)


class InteractionRowData(FrozenModel):
    drug: DrugRef
    total_interactions: int
    breakdown: Dict[str, int]
    interactions: List[InteractionRowEntry]


class InteractionRowResponse(FrozenModel):
    success: bool = True
    data: InteractionRowData


class KnownInteractionsResponse(FrozenModel):
    count: int
    total: int
    filters: Dict[str, Any]
    interactions: List[InteractionRecord]


class ClearCacheResponse(FrozenModel):
    success: bool = True
    message: str = "Cache cleared"
