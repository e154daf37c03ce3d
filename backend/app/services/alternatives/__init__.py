"""
Therapeutic Alternatives Service

Class-peer candidate generation and safety/efficacy scoring adjusted for
the patient's pharmacogenomic phenotypes and clinical factors.
"""

from .models import AlternativeCandidate, Citation, ScoreAdjustment
from .equivalence import TherapeuticClassTable, EquivalenceTable
from .candidates import AlternativeCandidateGenerator
from .scoring import AlternativeScorer, rank_candidates
from .suitability import OrganFunction, PatientFactors, assess_suitability

__all__ = [
    'AlternativeCandidate',
    'Citation',
    'ScoreAdjustment',
    'TherapeuticClassTable',
    'EquivalenceTable',
    'AlternativeCandidateGenerator',
    'AlternativeScorer',
    'rank_candidates',
    'OrganFunction',
    'PatientFactors',
    'assess_suitability',
]
