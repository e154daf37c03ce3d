"""
Interaction Merger - fan-out to every source and merge per canonical pair.

Merge rule for records about the same pair:
1. Higher severity wins
2. On a severity tie, higher evidence level wins (no evidence ranks below D)
3. On a full tie, the curated LOCAL record wins
4. Remaining ties go to the lexicographically smallest source tags

Whichever record wins the clinical fields, the merged record carries the
union of every contributing record's sources.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

from .errors import CacheError, SourceUnavailableError
from .models import InteractionRecord, LOCAL_SOURCE, evidence_rank

if TYPE_CHECKING:
    from .adapters import SourceAdapter
    from .cache import ResultCache
    from .combinations import DrugPair

logger = logging.getLogger(__name__)

PairKey = Tuple[str, str]


def _precedence(record: InteractionRecord) -> tuple:
    # Ascending sort key: the first record after sorting wins
    return (
        -record.severity.rank,
        -evidence_rank(record.evidence_level),
        LOCAL_SOURCE not in record.sources,
        record.sources,
    )


def merge_records(records: Sequence[InteractionRecord]) -> InteractionRecord:
    """Merge records about one pair into a single record with unioned sources."""
    if not records:
        raise ValueError("merge_records needs at least one record")

    keys = {record.pair_key for record in records}
    if len(keys) > 1:
        raise ValueError(f"Cannot merge records for different pairs: {sorted(keys)}")

    winner = sorted(records, key=_precedence)[0]
    all_sources = set()
    for record in records:
        all_sources.update(record.sources)
    return winner.with_sources(all_sources)


@dataclass
class MergeOutcome:
    """Merged records of one fan-out plus the coverage gaps it hit."""
    records: Dict[PairKey, InteractionRecord] = field(default_factory=dict)
    # pair key -> {source name: reason}
    unavailable: Dict[PairKey, Dict[str, str]] = field(default_factory=dict)
    cache_hits: int = 0

    def mark_unavailable(self, key: PairKey, source: str, reason: str) -> None:
        self.unavailable.setdefault(key, {})[source] = reason


class InteractionMerger:
    """
    Queries every source for every pair concurrently and merges the answers.

    Each (pair, source) lookup runs as its own task bounded by the adapter
    timeout; the whole fan-out is bounded by the overall deadline. Lookups
    still running at the deadline are cancelled and reported as unavailable.
    Cancelling merge_pairs() cancels every outstanding lookup.
    """

    def __init__(
        self,
        adapters: Sequence["SourceAdapter"],
        cache: Optional["ResultCache"] = None,
        adapter_timeout: float = 2.0,
        overall_deadline: float = 5.0,
    ):
        self.adapters = list(adapters)
        self.cache = cache
        self.adapter_timeout = adapter_timeout
        self.overall_deadline = overall_deadline

    async def merge_pairs(self, pairs: Sequence["DrugPair"]) -> MergeOutcome:
        outcome = MergeOutcome()

        to_fetch = []
        for pair in pairs:
            hit, cached = self._cache_get(pair.key)
            if hit:
                outcome.cache_hits += 1
                if cached is not None:
                    outcome.records[pair.key] = cached
                continue
            to_fetch.append(pair)

        if not to_fetch or not self.adapters:
            return outcome

        tasks: Dict[asyncio.Task, Tuple["DrugPair", "SourceAdapter"]] = {}
        for pair in to_fetch:
            for adapter in self.adapters:
                task = asyncio.ensure_future(self._fetch_one(adapter, pair))
                tasks[task] = (pair, adapter)

        try:
            done, pending = await asyncio.wait(tasks.keys(), timeout=self.overall_deadline)
        finally:
            outstanding = [task for task in tasks if not task.done()]
            for task in outstanding:
                task.cancel()
            if outstanding:
                await asyncio.gather(*outstanding, return_exceptions=True)

        fetched: Dict[Tuple[PairKey, str], InteractionRecord] = {}
        for task, (pair, adapter) in tasks.items():
            if task in pending or task.cancelled():
                self._report_unavailable(
                    outcome, pair, adapter.name,
                    f"overall deadline of {self.overall_deadline}s exceeded",
                )
                continue

            exc = task.exception()
            if exc is not None:
                self._report_unavailable(outcome, pair, adapter.name, self._describe_failure(exc), exc)
                continue

            record = task.result()
            if record is None:
                continue
            if record.pair_key != pair.key:
                logger.warning(
                    f"Discarding {adapter.name} record for {record.pair_key}: requested {pair.key}"
                )
                continue
            fetched[(pair.key, adapter.name)] = record

        for pair in to_fetch:
            # Source order, not completion order, keeps merging deterministic
            records = [
                fetched[(pair.key, adapter.name)]
                for adapter in self.adapters
                if (pair.key, adapter.name) in fetched
            ]
            merged = merge_records(records) if records else None
            if merged is not None:
                outcome.records[pair.key] = merged
            if pair.key not in outcome.unavailable:
                self._cache_set(pair.key, merged)

        return outcome

    async def _fetch_one(self, adapter: "SourceAdapter", pair: "DrugPair") -> Optional[InteractionRecord]:
        return await asyncio.wait_for(adapter.fetch(pair), timeout=self.adapter_timeout)

    def _describe_failure(self, exc: BaseException) -> str:
        if isinstance(exc, asyncio.TimeoutError):
            return f"timed out after {self.adapter_timeout}s"
        if isinstance(exc, SourceUnavailableError):
            return exc.reason
        return f"unexpected error: {type(exc).__name__}: {exc}"

    @staticmethod
    def _report_unavailable(
        outcome: MergeOutcome,
        pair: "DrugPair",
        source: str,
        reason: str,
        exc: Optional[BaseException] = None,
    ) -> None:
        outcome.mark_unavailable(pair.key, source, reason)
        unexpected = exc is not None and not isinstance(exc, (SourceUnavailableError, asyncio.TimeoutError))
        logger.warning(
            f"Source {source} unavailable for {pair}: {reason}",
            extra={"source": source, "pair": "+".join(pair.key)},
            exc_info=exc if unexpected else None,
        )

    # ------------------------------------------------------------------
    # Cache access; failures fall through to a live lookup
    # ------------------------------------------------------------------

    def _cache_get(self, key: PairKey) -> Tuple[bool, Optional[InteractionRecord]]:
        if self.cache is None:
            return False, None
        try:
            return self.cache.get(("pair",) + key)
        except CacheError as e:
            logger.warning(f"Cache read failed, bypassing: {e}")
            return False, None

    def _cache_set(self, key: PairKey, record: Optional[InteractionRecord]) -> None:
        if self.cache is None:
            return
        try:
            self.cache.set(("pair",) + key, record)
        except CacheError as e:
            logger.warning(f"Cache write failed, ignoring: {e}")
