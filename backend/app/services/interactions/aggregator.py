"""
Severity aggregation over the merged records of one request.
"""

from typing import Dict, Iterable

from .models import InteractionCheckResult, InteractionRecord, evidence_rank


def order_records(records: Iterable[InteractionRecord]) -> tuple:
    """Strongest first: severity, then evidence, then canonical pair key."""
    return tuple(sorted(
        records,
        key=lambda r: (-r.severity.rank, -evidence_rank(r.evidence_level), r.pair_key),
    ))


def count_sources(records: Iterable[InteractionRecord]) -> Dict[str, int]:
    """Records per provenance tag; a record with several tags counts for each."""
    counts: Dict[str, int] = {}
    for record in records:
        for tag in record.sources:
            counts[tag] = counts.get(tag, 0) + 1
    return dict(sorted(counts.items()))


def aggregate(records: Iterable[InteractionRecord]) -> InteractionCheckResult:
    """
    Reduce merged pair records to the request-level result.

    ``highest_severity`` is None when no record was found; otherwise it is
    never weaker than any record in ``pairs``.
    """
    # One record per canonical pair; later duplicates would be a merger bug
    unique: Dict[tuple, InteractionRecord] = {}
    for record in records:
        unique.setdefault(record.pair_key, record)

    pairs = order_records(unique.values())
    return InteractionCheckResult(
        pairs=pairs,
        highest_severity=pairs[0].severity if pairs else None,
        source_counts=count_sources(pairs),
    )
