"""
Phenotype Adjuster - attach gene-drug guidance to the drugs of a request.

Drug-drug severity and gene-drug guidance are separate facets: this module
only annotates, it never changes an interaction record.
"""

import logging
from typing import Dict, List, Optional, Sequence

from app.services.interactions.models import DrugRef

from .cpic_guidelines import GeneDrugTable
from .models import PatientPhenotypeProfile, Phenotype, PhenotypeAnnotation

logger = logging.getLogger(__name__)


def explain_phenotype(phenotype: Phenotype, drug_name: str) -> str:
    """Generate a one-line explanation of how a phenotype affects drug response."""
    explanations = {
        Phenotype.PM: f"{drug_name} metabolism significantly reduced; risk of toxicity or lack of efficacy",
        Phenotype.IM: f"{drug_name} metabolism moderately reduced; dose adjustment likely needed",
        Phenotype.NM: f"Normal {drug_name} metabolism expected",
        Phenotype.RM: f"{drug_name} metabolism increased; risk of subtherapeutic levels",
        Phenotype.UM: f"{drug_name} metabolism greatly increased; risk of treatment failure or toxicity",
    }
    return explanations[phenotype]


class PhenotypeAdjuster:
    """Matches a patient's phenotype profile against the gene-drug table."""

    def __init__(self, table: Optional[GeneDrugTable] = None):
        self.table = table or GeneDrugTable()

    def annotate_drug(self, drug: DrugRef, profile: PatientPhenotypeProfile) -> List[PhenotypeAnnotation]:
        """Annotations for one drug; genes without a matching row are ignored."""
        if not profile:
            return []

        annotations = []
        for row in self.table.rows_for(drug.id, genes=profile.keys()):
            if profile.get(row.gene) == row.phenotype:
                annotations.append(PhenotypeAnnotation.from_guideline(row))
        annotations.sort(key=lambda a: a.gene)
        return annotations

    def annotate(
        self,
        drugs: Sequence[DrugRef],
        profile: PatientPhenotypeProfile,
    ) -> Dict[str, List[PhenotypeAnnotation]]:
        """
        Annotate every drug of a request.

        Returns:
            drug id -> annotations, containing only drugs with at least one match
        """
        result: Dict[str, List[PhenotypeAnnotation]] = {}
        for drug in drugs:
            annotations = self.annotate_drug(drug, profile)
            if annotations:
                result[drug.id] = annotations

        if result:
            logger.info(
                f"Phenotype annotations for {len(result)} of {len(drugs)} drugs",
                extra={"genes": sorted(profile)},
            )
        return result

    def unfavorable_annotations(self, drug: DrugRef, profile: PatientPhenotypeProfile) -> List[PhenotypeAnnotation]:
        """One annotation per gene whose phenotype makes ``drug`` an unfavorable choice."""
        by_gene: Dict[str, PhenotypeAnnotation] = {}
        for annotation in self.annotate_drug(drug, profile):
            if annotation.unfavorable:
                by_gene.setdefault(annotation.gene, annotation)
        return [by_gene[gene] for gene in sorted(by_gene)]
