"""
Data models for the drug interaction engine.

Every model is frozen: records are built once per request from caller input
and source responses and never mutated afterwards. Models serialise with
camelCase aliases (drugA, evidenceLevel, ...) to keep the JSON contract the
UI layer already consumes; Python code uses the snake_case attribute names.
"""

from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .errors import ValidationCode, ValidationError

# Provenance tag of the curated local store
LOCAL_SOURCE = "LOCAL"


class FrozenModel(BaseModel):
    """Immutable model with camelCase aliases on the wire."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)


# ============================================================================
# Ranked enumerations
# ============================================================================

class RankedEnum(str, Enum):
    """
    String enum ordered by clinical rank instead of spelling.

    Members are declared strongest first; ``rank`` counts down from the number
    of members so the strongest member has the highest rank. Comparisons
    between members of different enums are not supported.
    """

    @property
    def rank(self) -> int:
        members = list(type(self))
        return len(members) - members.index(self)

    def __lt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.rank >= other.rank


class Severity(RankedEnum):
    """Clinical severity of a drug-drug interaction."""
    CONTRAINDICATED = "contraindicated"  # Never co-administer
    MAJOR = "major"                      # Avoid if possible, intensive monitoring
    MODERATE = "moderate"                # Monitor, may need adjustment
    MINOR = "minor"                      # Informational

    @classmethod
    def parse(cls, value: str) -> "Severity":
        """Parse a severity label, accepting the aliases used by reference sources."""
        key = str(value or "").strip().lower()
        key = SEVERITY_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(
                ValidationCode.UNKNOWN_SEVERITY,
                f"Unknown severity {value!r}. Use contraindicated/major/moderate/minor",
            ) from None


class EvidenceLevel(RankedEnum):
    """Strength of the supporting literature, A strongest."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @classmethod
    def parse(cls, value: str) -> "EvidenceLevel":
        key = str(value or "").strip().upper()
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(
                ValidationCode.UNKNOWN_EVIDENCE_LEVEL,
                f"Unknown evidence level {value!r}. Use A/B/C/D",
            ) from None


SEVERITY_ALIASES: Dict[str, str] = {
    "critical": "contraindicated",
    "high": "major",
    "low": "minor",
}

# Coarse banner levels, kept from the original check endpoint
RISK_LEVELS: Dict[Severity, str] = {
    Severity.CONTRAINDICATED: "HIGH",
    Severity.MAJOR: "HIGH",
    Severity.MODERATE: "MODERATE",
    Severity.MINOR: "LOW",
}


def evidence_rank(level: Optional[EvidenceLevel]) -> int:
    """Rank of an evidence level; records without one rank below D."""
    return level.rank if level is not None else 0


# ============================================================================
# Drugs and interaction records
# ============================================================================

class DrugRef(FrozenModel):
    """Canonical reference to a resolved drug concept."""
    id: str = Field(..., min_length=1, description="Canonical identifier (RXCUI-equivalent)")
    display_name: str = Field(..., description="Name shown to clinicians")
    generic_name: str = Field(..., description="Generic (ingredient) name")
    drug_class: Optional[str] = Field(None, description="Therapeutic class code, e.g. NSAIDS")


class InteractionRecord(FrozenModel):
    """One drug-drug interaction for a canonical pair (drug_a.id < drug_b.id)."""
    drug_a: DrugRef
    drug_b: DrugRef
    severity: Severity
    mechanism: str = ""
    effect: str = ""
    management: str = ""
    evidence_level: Optional[EvidenceLevel] = None
    sources: Tuple[str, ...] = Field(default=(), description="Provenance tags, sorted and unique")
    frequency: Optional[str] = Field(None, description="common / uncommon / rare")
    onset: Optional[str] = Field(None, description="rapid / delayed")
    documentation: Optional[str] = Field(None, description="established / probable / suspected")
    references: Tuple[str, ...] = Field(default=(), description="Literature or label citations")

    @field_validator("sources")
    @classmethod
    def _normalise_sources(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(sorted(set(value)))

    @model_validator(mode="after")
    def _check_canonical_order(self) -> "InteractionRecord":
        if self.drug_a.id == self.drug_b.id:
            raise ValueError(f"Self-interaction for drug {self.drug_a.id} is not allowed")
        if self.drug_a.id > self.drug_b.id:
            raise ValueError(
                f"Pair ({self.drug_a.id}, {self.drug_b.id}) is not canonically ordered"
            )
        return self

    @computed_field(alias="riskLevel")
    @property
    def risk_level(self) -> str:
        return RISK_LEVELS[self.severity]

    @computed_field(alias="riskScore")
    @property
    def risk_score(self) -> int:
        return self.severity.rank

    @property
    def pair_key(self) -> Tuple[str, str]:
        return (self.drug_a.id, self.drug_b.id)

    def involves(self, drug_id: str) -> bool:
        return drug_id in self.pair_key

    def partner_of(self, drug_id: str) -> DrugRef:
        """The other side of the pair."""
        return self.drug_b if self.drug_a.id == drug_id else self.drug_a

    def with_sources(self, sources: Iterable[str]) -> "InteractionRecord":
        """Copy of this record carrying the given provenance tags."""
        # model_copy skips validation, so normalise here
        return self.model_copy(update={"sources": tuple(sorted(set(sources)))})


class InteractionCheckResult(FrozenModel):
    """Merged, severity-ranked result for one request."""
    pairs: Tuple[InteractionRecord, ...] = ()
    highest_severity: Optional[Severity] = None
    source_counts: Dict[str, int] = Field(default_factory=dict)
