"""
Pharmacogenomics Service

CPIC-aligned gene-drug guidance: phenotype parsing, the guideline table and
the adjuster that annotates drugs for a patient's phenotype profile.
"""

from .models import (
    Phenotype,
    GeneDrugInteraction,
    PhenotypeAnnotation,
    PatientPhenotypeProfile,
    parse_phenotype_profile,
)
from .cpic_guidelines import GeneDrugTable, CPIC_GUIDELINES
from .adjuster import PhenotypeAdjuster, explain_phenotype

__all__ = [
    # Models
    'Phenotype',
    'GeneDrugInteraction',
    'PhenotypeAnnotation',
    'PatientPhenotypeProfile',
    'parse_phenotype_profile',

    # Guidelines
    'GeneDrugTable',
    'CPIC_GUIDELINES',

    # Adjuster
    'PhenotypeAdjuster',
    'explain_phenotype',
]
