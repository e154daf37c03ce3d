"""
Interaction Engine - request pipeline for interaction checks and alternatives.

check_interactions:
    validate -> resolve -> pair -> merge sources -> aggregate -> annotate -> assemble

find_alternatives:
    validate -> class peers of every input drug -> one concurrent fan-out of
    (candidate, other drug) pairs -> score -> rank -> assemble

Only ValidationError escapes; source, cache and reference-data failures
degrade to reduced coverage or empty results.
"""

import logging
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from app.schemas.interactions import (
    AlternativesResponse,
    ClearCacheResponse,
    InteractionCheckResponse,
    InteractionRowResponse,
    KnownInteractionsResponse,
)
from app.services.alternatives.candidates import AlternativeCandidateGenerator
from app.services.alternatives.equivalence import EquivalenceTable, TherapeuticClassTable
from app.services.alternatives.scoring import AlternativeScorer, rank_candidates
from app.services.alternatives.suitability import PatientFactors
from app.services.pharmacogenomics.adjuster import PhenotypeAdjuster
from app.services.pharmacogenomics.cpic_guidelines import GeneDrugTable
from app.services.pharmacogenomics.models import parse_phenotype_profile

from .adapters import ExternalReferenceAdapter, LocalCuratedStoreAdapter, SourceAdapter
from .aggregator import aggregate, order_records
from .assembler import assemble_alternatives_response, assemble_check_response, assemble_interaction_row
from .cache import ResultCache, request_signature
from .combinations import DrugPair, dedupe_drugs, generate_pairs, validate_drug_count
from .config import InteractionEngineConfig, get_config
from .errors import CacheError, NotFoundError
from .knowledge_base import DrugCatalog, LocalCuratedStore
from .merger import InteractionMerger
from .models import DrugRef, Severity
from .resolver import CatalogDrugResolver, DrugRefResolver

logger = logging.getLogger(__name__)


def _clean_queries(drug_ids: Sequence[str]) -> List[str]:
    """Strip identifiers, drop blanks and repeats, keep caller order."""
    seen = set()
    queries = []
    for raw in drug_ids:
        query = (raw or "").strip()
        if not query or query in seen:
            continue
        seen.add(query)
        queries.append(query)
    return queries


class InteractionEngine:
    """
    Drug interaction and pharmacogenomic alternative engine.

    All collaborators are injected; create_interaction_engine() wires the
    defaults (curated store, external reference service, CPIC table).
    """

    def __init__(
        self,
        config: InteractionEngineConfig,
        resolver: DrugRefResolver,
        adapters: Sequence[SourceAdapter],
        store: LocalCuratedStore,
        adjuster: PhenotypeAdjuster,
        candidates: AlternativeCandidateGenerator,
        scorer: AlternativeScorer,
        cache: Optional[ResultCache] = None,
    ):
        self.config = config
        self.resolver = resolver
        self.adapters = list(adapters)
        self.store = store
        self.adjuster = adjuster
        self.candidates = candidates
        self.scorer = scorer
        self.cache = cache
        self.merger = InteractionMerger(
            self.adapters,
            cache=cache,
            adapter_timeout=config.adapter_timeout_seconds,
            overall_deadline=config.overall_deadline_seconds,
        )

    # ------------------------------------------------------------------
    # Interaction check
    # ------------------------------------------------------------------

    async def check_interactions(
        self,
        drug_ids: Sequence[str],
        phenotype_profile: Optional[Mapping[str, str]] = None,
    ) -> InteractionCheckResponse:
        """
        Check every pairwise combination of a drug list.

        Args:
            drug_ids: RXCUIs or names; repeats are ignored
            phenotype_profile: Optional gene -> phenotype mapping

        Raises:
            ValidationError: too few/many drugs, unknown phenotype
        """
        queries = _clean_queries(drug_ids)
        validate_drug_count(len(queries), 2, self.config.max_drugs)
        profile = parse_phenotype_profile(phenotype_profile)

        resolution = self.resolver.resolve_all(queries)
        drugs = dedupe_drugs(resolution.drugs)
        pairs = generate_pairs(drugs, self.config.max_drugs)

        outcome = await self.merger.merge_pairs(pairs)
        result = aggregate(outcome.records.values())
        annotations = self.adjuster.annotate(drugs, profile)

        logger.info(
            f"Checked {len(pairs)} pairs: {len(result.pairs)} interactions, "
            f"highest={result.highest_severity.value if result.highest_severity else None}",
            extra={
                "pair_count": len(pairs),
                "unavailable_pairs": len(outcome.unavailable),
                "cache_hits": outcome.cache_hits,
            },
        )

        return assemble_check_response(
            pair_count=len(pairs),
            input_drugs=queries,
            drugs=drugs,
            result=result,
            annotations=annotations,
            unavailable=outcome.unavailable,
            unresolved=resolution.unresolved,
        )

    # ------------------------------------------------------------------
    # Alternatives
    # ------------------------------------------------------------------

    async def find_alternatives(
        self,
        drugs: Sequence[DrugRef],
        phenotype_profile: Optional[Mapping[str, str]] = None,
        patient: Optional[PatientFactors] = None,
    ) -> AlternativesResponse:
        """
        Propose scored class-peer alternatives for every drug of a regimen.

        Each candidate is scored against the regimen minus the drug it
        replaces. A drug without a known class simply contributes no
        candidates. Clinical factors (age, organ function, allergies) add
        contraindications and dosing notes to each candidate.

        Raises:
            ValidationError: no drugs, too many drugs, unknown phenotype
        """
        regimen = dedupe_drugs([self.resolver.canonicalize(drug) for drug in drugs])
        validate_drug_count(len(regimen), 1, self.config.max_drugs)
        profile = parse_phenotype_profile(phenotype_profile)

        signature = request_signature(
            "alternatives",
            [drug.id for drug in regimen],
            profile,
            context={
                "classes": {drug.id: drug.drug_class for drug in regimen},
                "patient": patient.model_dump(mode="json") if patient else None,
            },
        )
        hit, cached = self._cache_get(signature)
        if hit:
            logger.info("Alternatives served from cache", extra={"signature": signature})
            return cached

        proposals: List[Tuple[DrugRef, DrugRef, List[Tuple[str, str]]]] = []
        pairs: Dict[Tuple[str, str], DrugPair] = {}
        for target in regimen:
            for candidate in self.candidates.generate(target, regimen):
                keys = []
                for other in regimen:
                    if other.id == target.id:
                        continue
                    pair = DrugPair.of(candidate, other)
                    pairs.setdefault(pair.key, pair)
                    keys.append(pair.key)
                proposals.append((target, candidate, keys))

        outcome = await self.merger.merge_pairs(list(pairs.values()))

        scored = []
        for target, candidate, keys in proposals:
            records = [outcome.records[key] for key in keys if key in outcome.records]
            scored.append(self.scorer.score(
                candidate,
                target,
                records,
                profile,
                class_label=self._class_label(target),
                patient=patient,
            ))

        ranked = rank_candidates(scored)
        annotations = self.adjuster.annotate(regimen, profile)
        response = assemble_alternatives_response(
            ranked, regimen, profile, annotations, outcome.unavailable, patient=patient,
        )

        logger.info(
            f"Scored {len(ranked)} alternatives for {len(regimen)} drugs",
            extra={"candidate_pairs": len(pairs), "unavailable_pairs": len(outcome.unavailable)},
        )

        if not outcome.unavailable:
            self._cache_set(signature, response)
        return response

    def _class_label(self, drug: DrugRef) -> Optional[str]:
        table = self.candidates.class_table
        try:
            return table.describe(table.class_of(drug))
        except NotFoundError:
            return None

    # ------------------------------------------------------------------
    # Curated store views
    # ------------------------------------------------------------------

    def interaction_row(self, drug_name: str) -> InteractionRowResponse:
        """Known curated interactions of one drug; an unknown drug has an empty row."""
        drug = self.resolver.resolve(drug_name)
        if drug is None:
            key = (drug_name or "").strip()
            drug = DrugRef(id=key, display_name=key, generic_name=key.lower())
            return assemble_interaction_row(drug, [])
        return assemble_interaction_row(drug, self.store.interactions_for(drug.id))

    def known_interactions(
        self,
        drug: Optional[str] = None,
        severity: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> KnownInteractionsResponse:
        """
        Filtered listing of the curated store, strongest first.

        Raises:
            ValidationError: unknown severity filter
        """
        wanted_severity = Severity.parse(severity) if severity else None

        if drug:
            resolved = self.resolver.resolve(drug)
            records = self.store.interactions_for(resolved.id) if resolved else []
        else:
            records = self.store.all()

        if wanted_severity is not None:
            records = [r for r in records if r.severity == wanted_severity]

        ordered = list(order_records(records))
        listed = ordered[:limit] if limit else ordered
        return KnownInteractionsResponse(
            count=len(listed),
            total=len(ordered),
            filters={
                "drug": drug,
                "severity": wanted_severity.value if wanted_severity else None,
                "limit": limit,
            },
            interactions=listed,
        )

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def clear_cache(self) -> ClearCacheResponse:
        """Invalidate every cached lookup. Idempotent."""
        dropped = self.cache.clear() if self.cache is not None else 0
        return ClearCacheResponse(success=True, message=f"Cache cleared ({dropped} entries)")

    def _cache_get(self, key: str):
        if self.cache is None:
            return False, None
        try:
            return self.cache.get(key)
        except CacheError as e:
            logger.warning(f"Cache read failed, bypassing: {e}")
            return False, None

    def _cache_set(self, key: str, value) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(key, value)
        except CacheError as e:
            logger.warning(f"Cache write failed, ignoring: {e}")

    async def close(self) -> None:
        for adapter in self.adapters:
            await adapter.aclose()


# ============================================================================
# Factory and process-wide instance
# ============================================================================

def create_interaction_engine(
    config: Optional[InteractionEngineConfig] = None,
    adapters: Optional[Sequence[SourceAdapter]] = None,
    cache: Optional[ResultCache] = None,
) -> InteractionEngine:
    """
    Build an engine with the default collaborators.

    Args:
        config: Engine configuration (defaults to the global config)
        adapters: Interaction sources; defaults to the curated store plus the
            external reference service when enabled
        cache: Result cache; defaults to a TTL cache when caching is enabled
    """
    config = config or get_config()
    catalog = DrugCatalog()
    store = LocalCuratedStore(catalog=catalog)

    if adapters is None:
        adapters = [LocalCuratedStoreAdapter(store)]
        if config.external_reference_enabled:
            adapters.append(ExternalReferenceAdapter(
                base_url=config.external_reference_url,
                source_name=config.external_source_name,
                timeout=config.adapter_timeout_seconds,
            ))

    if cache is None and config.cache_enabled:
        cache = ResultCache(ttl_seconds=config.cache_ttl_seconds)

    adjuster = PhenotypeAdjuster(GeneDrugTable(catalog=catalog))
    class_table = TherapeuticClassTable(catalog=catalog)

    return InteractionEngine(
        config=config,
        resolver=CatalogDrugResolver(catalog),
        adapters=adapters,
        store=store,
        adjuster=adjuster,
        candidates=AlternativeCandidateGenerator(class_table, max_candidates=config.max_candidates_per_drug),
        scorer=AlternativeScorer(EquivalenceTable(catalog=catalog), adjuster),
        cache=cache,
    )


_engine: Optional[InteractionEngine] = None


def get_engine() -> InteractionEngine:
    """Process-wide engine, created on first use (FastAPI dependency)."""
    global _engine
    if _engine is None:
        _engine = create_interaction_engine()
    return _engine


async def shutdown_engine() -> None:
    """Close the process-wide engine's network clients."""
    global _engine
    if _engine is not None:
        await _engine.close()
        _engine = None
