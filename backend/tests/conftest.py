"""
Shared fixtures: catalog-backed drug references, record builders, a
scriptable interaction source and an API client.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.services.interactions.adapters import SourceAdapter
from app.services.interactions.config import InteractionEngineConfig
from app.services.interactions.engine import create_interaction_engine, get_engine
from app.services.interactions.knowledge_base import DrugCatalog
from app.services.interactions.models import EvidenceLevel, InteractionRecord, Severity


class FakeAdapter(SourceAdapter):
    """
    Interaction source answering from a fixed list of records.

    Records are re-bound to the queried pair, so they can be written with
    any drug refs as long as the canonical ids match.
    """

    def __init__(self, name, records=(), error=None, delay=0.0):
        self.name = name
        self.records = {record.pair_key: record for record in records}
        self.error = error
        self.delay = delay
        self.calls = []
        self.cancelled = 0
        self.closed = False

    async def fetch(self, pair):
        self.calls.append(pair.key)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.error is not None:
            raise self.error
        record = self.records.get(pair.key)
        if record is None:
            return None
        return record.model_copy(update={"drug_a": pair.drug_a, "drug_b": pair.drug_b})

    async def aclose(self):
        self.closed = True


@pytest.fixture
def catalog():
    """The default drug catalog."""
    return DrugCatalog()


@pytest.fixture
def drug(catalog):
    """Build a DrugRef from a catalog name or RXCUI."""
    def _drug(name):
        entry = catalog.lookup(name)
        assert entry is not None, f"{name} missing from catalog"
        return entry.to_ref()
    return _drug


@pytest.fixture
def make_record(drug):
    """Build a canonical InteractionRecord between two catalog drugs."""
    def _make(a, b, severity, evidence=None, sources=("LOCAL",), effect="", mechanism=""):
        first, second = drug(a), drug(b)
        if first.id > second.id:
            first, second = second, first
        return InteractionRecord(
            drug_a=first,
            drug_b=second,
            severity=Severity.parse(severity),
            evidence_level=EvidenceLevel.parse(evidence) if evidence else None,
            sources=sources,
            effect=effect,
            mechanism=mechanism,
        )
    return _make


@pytest.fixture
def fake_adapter():
    """The FakeAdapter class, for tests that script their own sources."""
    return FakeAdapter


@pytest.fixture
def offline_config():
    """Engine config with the external reference service switched off."""
    return InteractionEngineConfig(external_reference_enabled=False)


@pytest.fixture
def engine(offline_config):
    """Engine backed by the curated store only."""
    return create_interaction_engine(offline_config)


@pytest.fixture
def client(engine):
    """TestClient without startup events; requests use the offline engine."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()
