"""
Result Assembler - pure transforms from engine results to response objects.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from app.schemas.interactions import (
    AlternativesData,
    AlternativesResponse,
    InteractionCheckResponse,
    InteractionRowData,
    InteractionRowEntry,
    InteractionRowResponse,
    SourceTotals,
    StoredExternal,
    UnavailableSource,
)
from app.services.alternatives.models import RECOMMENDATION_THRESHOLD, AlternativeCandidate
from app.services.alternatives.suitability import PatientFactors
from app.services.pharmacogenomics.models import PatientPhenotypeProfile, PhenotypeAnnotation

from .models import DrugRef, InteractionCheckResult, InteractionRecord, LOCAL_SOURCE, Severity


def _unavailable_entries(unavailable: Mapping[Tuple[str, str], Mapping[str, str]]) -> List[UnavailableSource]:
    entries = []
    for (id_a, id_b) in sorted(unavailable):
        for source, reason in sorted(unavailable[(id_a, id_b)].items()):
            entries.append(UnavailableSource(drug_a=id_a, drug_b=id_b, source=source, reason=reason))
    return entries


def split_by_provenance(records: Sequence[InteractionRecord]) -> StoredExternal:
    """Curated records vs external ones; a record with both kinds of tags is in both lists."""
    stored = [r for r in records if LOCAL_SOURCE in r.sources]
    external = [r for r in records if any(tag != LOCAL_SOURCE for tag in r.sources)]
    return StoredExternal(stored=stored, external=external)


def assemble_check_response(
    pair_count: int,
    input_drugs: Sequence[str],
    drugs: Sequence[DrugRef],
    result: InteractionCheckResult,
    annotations: Mapping[str, List[PhenotypeAnnotation]],
    unavailable: Mapping[Tuple[str, str], Mapping[str, str]],
    unresolved: Sequence[str] = (),
) -> InteractionCheckResponse:
    buckets = split_by_provenance(result.pairs)
    return InteractionCheckResponse(
        input_drugs=list(input_drugs),
        found_drugs=list(drugs),
        unresolved_drugs=list(unresolved),
        pair_count=pair_count,
        interaction_count=len(result.pairs),
        highest_severity=result.highest_severity,
        source_counts=dict(result.source_counts),
        pairs=list(result.pairs),
        interactions=buckets,
        sources=SourceTotals(stored=len(buckets.stored), external=len(buckets.external)),
        unavailable_sources=_unavailable_entries(unavailable),
        phenotype_annotations=dict(annotations),
    )


def assemble_alternatives_response(
    alternatives: Sequence[AlternativeCandidate],
    drugs: Sequence[DrugRef],
    profile: PatientPhenotypeProfile,
    annotations: Mapping[str, List[PhenotypeAnnotation]],
    unavailable: Optional[Mapping[Tuple[str, str], Mapping[str, str]]] = None,
    patient: Optional[PatientFactors] = None,
) -> AlternativesResponse:
    return AlternativesResponse(
        success=True,
        data=AlternativesData(
            alternatives=list(alternatives),
            original_drugs=list(drugs),
            patient_profile=dict(profile),
            patient_factors=patient,
            total_alternatives=len(alternatives),
            high_safety_alternatives=sum(1 for a in alternatives if a.safety_score >= RECOMMENDATION_THRESHOLD),
            recommended_alternatives=sum(1 for a in alternatives if a.recommended),
            phenotype_annotations=dict(annotations),
            unavailable_sources=_unavailable_entries(unavailable or {}),
        ),
    )


def assemble_interaction_row(drug: DrugRef, records: Sequence[InteractionRecord]) -> InteractionRowResponse:
    """Matrix row for one drug: each partner with the record's severity and risk score."""
    breakdown: Dict[str, int] = {severity.value: 0 for severity in Severity}
    entries = []
    for record in records:
        breakdown[record.severity.value] += 1
        entries.append(InteractionRowEntry(
            drug=record.partner_of(drug.id),
            severity=record.severity,
            risk_score=record.risk_score,
            risk_level=record.risk_level,
            mechanism=record.mechanism,
            effect=record.effect,
            management=record.management,
            evidence_level=record.evidence_level,
            sources=list(record.sources),
        ))

    return InteractionRowResponse(
        success=True,
        data=InteractionRowData(
            drug=drug,
            total_interactions=len(entries),
            breakdown=breakdown,
            interactions=entries,
        ),
    )
