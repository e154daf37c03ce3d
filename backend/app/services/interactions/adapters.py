"""
Interaction sources.

Every source answers the same question for one canonical pair: is there an
interaction, and if so what does it look like. Sources fail independently;
a failure is reported as SourceUnavailableError and the merger carries on
with whatever the other sources returned.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import backoff
import httpx

from .combinations import DrugPair
from .errors import InteractionEngineError, SourceUnavailableError
from .knowledge_base import LocalCuratedStore
from .merger import merge_records
from .models import InteractionRecord, LOCAL_SOURCE, Severity

logger = logging.getLogger(__name__)


class SourceAdapter(ABC):
    """One source of drug-drug interaction evidence."""

    #: Provenance tag attached to records from this source
    name: str = "UNKNOWN"

    @abstractmethod
    async def fetch(self, pair: DrugPair) -> Optional[InteractionRecord]:
        """
        Look up the interaction for a canonical pair.

        Returns:
            The record, or None when the source knows of no interaction

        Raises:
            SourceUnavailableError: the source could not answer
        """

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""


# ============================================================================
# Local curated store
# ============================================================================

class LocalCuratedStoreAdapter(SourceAdapter):
    """Authoritative, in-process lookup against the curated store."""

    name = LOCAL_SOURCE

    def __init__(self, store: Optional[LocalCuratedStore] = None):
        self.store = store or LocalCuratedStore()

    async def fetch(self, pair: DrugPair) -> Optional[InteractionRecord]:
        record = self.store.get(pair.key)
        if record is None:
            return None
        # Report the drugs as the caller referenced them
        return record.model_copy(update={"drug_a": pair.drug_a, "drug_b": pair.drug_b})


# ============================================================================
# External reference service (RxNav-style interaction API)
# ============================================================================

def _is_retryable(exc: Exception) -> bool:
    return not (isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code < 500)


class ExternalReferenceAdapter(SourceAdapter):
    """
    Adapter over an RxNav-compatible interaction service.

    Queries ``GET {base_url}/interaction/list.json?rxcuis=<a>+<b>`` and turns
    each interaction pair in the response into a record tagged with the
    originating knowledge source (DrugBank, ONCHigh, ...). Pairs whose
    severity the service leaves unspecified ("N/A") are skipped rather than
    guessed.
    """

    def __init__(
        self,
        base_url: str = "https://rxnav.nlm.nih.gov/REST",
        source_name: str = "RXNAV",
        timeout: float = 2.0,
        client: Optional[httpx.AsyncClient] = None,
        max_concurrency: int = 8,
    ):
        self.name = source_name
        self.base_url = base_url.rstrip("/")
        self.max_concurrency = max_concurrency
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._semaphore_loop: Optional[asyncio.AbstractEventLoop] = None
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _limiter(self) -> asyncio.Semaphore:
        """Concurrency limiter bound to the running event loop, created on first use."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrency)
            self._semaphore_loop = loop
        return self._semaphore

    @backoff.on_exception(
        backoff.expo,
        (httpx.RequestError, httpx.HTTPStatusError),
        max_tries=2,
        giveup=lambda e: not _is_retryable(e)
    )
    async def _get_interactions(self, pair: DrugPair) -> Dict[str, Any]:
        url = f"{self.base_url}/interaction/list.json"
        response = await self._client.get(url, params={"rxcuis": f"{pair.drug_a.id} {pair.drug_b.id}"})
        response.raise_for_status()
        return response.json()

    async def fetch(self, pair: DrugPair) -> Optional[InteractionRecord]:
        logger.debug("Querying external reference", extra={"source": self.name, "pair": str(pair)})

        try:
            async with self._limiter():
                payload = await self._get_interactions(pair)
        except httpx.HTTPStatusError as e:
            raise SourceUnavailableError(self.name, f"HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise SourceUnavailableError(self.name, f"{type(e).__name__}: {e}") from e
        except ValueError as e:
            raise SourceUnavailableError(self.name, f"malformed response: {e}") from e

        records = self.parse_response(pair, payload)
        if not records:
            return None
        return merge_records(records)

    def parse_response(self, pair: DrugPair, payload: Dict[str, Any]) -> List[InteractionRecord]:
        """Extract the records concerning ``pair`` from an interaction/list payload."""
        if not isinstance(payload, dict):
            raise SourceUnavailableError(self.name, "malformed response: expected a JSON object")

        records = []
        for group in payload.get("fullInteractionTypeGroup") or []:
            source_tag = (group.get("sourceName") or self.name).strip().upper()

            for interaction_type in group.get("fullInteractionType") or []:
                for row in interaction_type.get("interactionPair") or []:
                    if not self._concerns_pair(row, pair):
                        continue
                    try:
                        severity = Severity.parse(row.get("severity"))
                    except InteractionEngineError:
                        logger.debug(f"Skipping {source_tag} row with severity {row.get('severity')!r}")
                        continue

                    records.append(InteractionRecord(
                        drug_a=pair.drug_a,
                        drug_b=pair.drug_b,
                        severity=severity,
                        effect=(row.get("description") or "").strip(),
                        sources=(source_tag,),
                    ))
        return records

    @staticmethod
    def _concerns_pair(row: Dict[str, Any], pair: DrugPair) -> bool:
        concepts = row.get("interactionConcept") or []
        ids = {
            ((concept.get("minConceptItem") or {}).get("rxcui"))
            for concept in concepts
        }
        ids.discard(None)
        # Rows without concept detail are taken to be about the queried pair
        return not ids or ids == set(pair.key)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
