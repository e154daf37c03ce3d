"""
Alternative suggestion models.
"""

from typing import Optional, Tuple

from pydantic import Field, computed_field

from app.services.interactions.models import DrugRef, FrozenModel

RECOMMENDATION_THRESHOLD = 80


class Citation(FrozenModel):
    """Source backing a score adjustment."""
    label: str
    url: Optional[str] = None


class ScoreAdjustment(FrozenModel):
    """One penalty applied to a safety score."""
    reason: str
    points: int = Field(..., description="Signed change to the score")


class AlternativeCandidate(FrozenModel):
    """A class peer proposed in place of ``for_drug``, with its scores."""
    drug: DrugRef
    for_drug: DrugRef
    safety_score: int = Field(..., ge=0, le=100)
    efficacy_score: int = Field(..., ge=0, le=100)
    rationale: str
    citations: Tuple[Citation, ...] = ()
    adjustments: Tuple[ScoreAdjustment, ...] = ()
    contraindications: Tuple[str, ...] = ()
    dosage_adjustments: Tuple[str, ...] = ()
    monitoring_requirements: Tuple[str, ...] = ()

    @computed_field(alias="recommended")
    @property
    def recommended(self) -> bool:
        return (
            not self.contraindications
            and self.safety_score >= RECOMMENDATION_THRESHOLD
            and self.efficacy_score >= RECOMMENDATION_THRESHOLD
        )
