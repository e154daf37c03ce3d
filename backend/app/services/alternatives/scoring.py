"""
Alternative Scorer - safety and efficacy scores for alternative candidates.

The penalty weights encode clinical policy and are pinned by tests:

    safety   = 100 - severity penalty of the worst interaction with the rest
               of the regimen - 15 per gene with an unfavorable phenotype
               - 100 per patient contraindication (age group, allergy)
    efficacy = static baseline from the equivalence table (85 when unknown)

Both scores are clamped to [0, 100]. A candidate is recommended when both
reach 80 and the patient has no contraindication to it.
"""

import logging
from typing import Dict, List, Optional, Sequence

from app.services.interactions.errors import NotFoundError
from app.services.interactions.models import DrugRef, InteractionRecord, Severity
from app.services.pharmacogenomics.adjuster import PhenotypeAdjuster
from app.services.pharmacogenomics.models import PatientPhenotypeProfile, PhenotypeAnnotation

from .equivalence import EquivalenceTable
from .models import RECOMMENDATION_THRESHOLD, AlternativeCandidate, Citation, ScoreAdjustment
from .suitability import PatientFactors, assess_suitability, monitoring_requirements

logger = logging.getLogger(__name__)

# ============================================================================
# Scoring policy
# ============================================================================

CONTRAINDICATED_PENALTY = 60
MAJOR_PENALTY = 40
MODERATE_PENALTY = 20
MINOR_PENALTY = 5
PGX_UNFAVORABLE_PENALTY = 15
PATIENT_CONTRAINDICATION_PENALTY = 100

SCORE_FLOOR = 0
SCORE_CEILING = 100

# Same-class presumption for drugs without a recorded baseline
NEUTRAL_EFFICACY_SCORE = 85

SEVERITY_PENALTIES: Dict[Severity, int] = {
    Severity.CONTRAINDICATED: CONTRAINDICATED_PENALTY,
    Severity.MAJOR: MAJOR_PENALTY,
    Severity.MODERATE: MODERATE_PENALTY,
    Severity.MINOR: MINOR_PENALTY,
}


def clamp_score(value: int) -> int:
    return max(SCORE_FLOOR, min(SCORE_CEILING, value))


def rank_candidates(candidates: Sequence[AlternativeCandidate]) -> List[AlternativeCandidate]:
    """Safety desc, efficacy desc, then drug id and replaced drug id ascending."""
    return sorted(
        candidates,
        key=lambda c: (-c.safety_score, -c.efficacy_score, c.drug.id, c.for_drug.id),
    )


class AlternativeScorer:
    """Scores one candidate against the rest of the regimen and the patient's phenotypes."""

    def __init__(
        self,
        equivalence: Optional[EquivalenceTable] = None,
        adjuster: Optional[PhenotypeAdjuster] = None,
    ):
        self.equivalence = equivalence or EquivalenceTable()
        self.adjuster = adjuster or PhenotypeAdjuster()

    def efficacy_score(self, drug: DrugRef) -> int:
        try:
            return clamp_score(self.equivalence.efficacy_baseline(drug))
        except NotFoundError:
            return NEUTRAL_EFFICACY_SCORE

    def score(
        self,
        candidate: DrugRef,
        target: DrugRef,
        interactions: Sequence[InteractionRecord],
        profile: Optional[PatientPhenotypeProfile] = None,
        class_label: Optional[str] = None,
        patient: Optional[PatientFactors] = None,
    ) -> AlternativeCandidate:
        """
        Score a candidate replacing ``target``.

        Args:
            candidate: Proposed drug
            target: Drug being replaced
            interactions: Merged records between the candidate and the other drugs
                of the regimen (records not involving the candidate are ignored)
            profile: Patient phenotype profile
            class_label: Human-readable therapeutic class for the rationale
            patient: Age, organ function and allergies of the patient
        """
        relevant = sorted(
            (r for r in interactions if r.involves(candidate.id)),
            key=lambda r: (-r.severity.rank, r.partner_of(candidate.id).id),
        )
        annotations = self.adjuster.unfavorable_annotations(candidate, profile or {})
        suitability = assess_suitability(candidate, patient)

        adjustments: List[ScoreAdjustment] = []
        citations: List[Citation] = []

        if relevant:
            worst = relevant[0].severity
            partners = [r.partner_of(candidate.id).display_name for r in relevant if r.severity == worst]
            adjustments.append(ScoreAdjustment(
                reason=f"{worst.value.capitalize()} interaction with {', '.join(partners)}",
                points=-SEVERITY_PENALTIES[worst],
            ))
            for record in relevant:
                citations.extend(self._interaction_citations(candidate, record))

        for annotation in annotations:
            adjustments.append(ScoreAdjustment(
                reason=f"Unfavorable {annotation.gene} phenotype ({annotation.phenotype.value})",
                points=-PGX_UNFAVORABLE_PENALTY,
            ))
            citations.append(self._guideline_citation(annotation))

        for contraindication in suitability.contraindications:
            adjustments.append(ScoreAdjustment(
                reason=contraindication,
                points=-PATIENT_CONTRAINDICATION_PENALTY,
            ))

        safety = clamp_score(SCORE_CEILING + sum(a.points for a in adjustments))
        efficacy = self.efficacy_score(candidate)

        return AlternativeCandidate(
            drug=candidate,
            for_drug=target,
            safety_score=safety,
            efficacy_score=efficacy,
            rationale=self._rationale(candidate, target, adjustments, class_label),
            citations=tuple(citations),
            adjustments=tuple(adjustments),
            contraindications=tuple(suitability.contraindications),
            dosage_adjustments=tuple(suitability.dosage_adjustments),
            monitoring_requirements=monitoring_requirements(candidate),
        )

    @staticmethod
    def _interaction_citations(candidate: DrugRef, record: InteractionRecord) -> List[Citation]:
        partner = record.partner_of(candidate.id)
        label = (
            f"{', '.join(record.sources)}: {candidate.display_name} + {partner.display_name} "
            f"({record.severity.value})"
        )
        citations = [Citation(label=label)]
        citations.extend(Citation(label=reference) for reference in record.references)
        return citations

    @staticmethod
    def _guideline_citation(annotation: PhenotypeAnnotation) -> Citation:
        return Citation(
            label=f"CPIC guideline: {annotation.gene} {annotation.phenotype.long_name}",
            url=annotation.guideline_url,
        )

    @staticmethod
    def _rationale(
        candidate: DrugRef,
        target: DrugRef,
        adjustments: Sequence[ScoreAdjustment],
        class_label: Optional[str],
    ) -> str:
        prefix = f"{candidate.display_name} replaces {target.display_name}"
        if class_label:
            prefix = f"{prefix} ({class_label})"

        if not adjustments:
            return f"{prefix}; no interactions with the current regimen and no unfavorable pharmacogenomic findings."

        # Largest penalty drives the score; ties go to the first listed
        driver = min(adjustments, key=lambda a: a.points)
        return f"{prefix}; safety driven by {driver.reason[0].lower()}{driver.reason[1:]} ({driver.points})."
