"""
Unit tests for the shared TTL result cache and request signatures.
"""

import threading

import pytest

from app.services.interactions.cache import ResultCache, request_signature
from app.services.interactions.errors import CacheError
from app.services.pharmacogenomics.models import Phenotype


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class TestResultCache:
    """Test suite for ResultCache"""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ResultCache(ttl_seconds=60, clock=clock)

    def test_miss(self, cache):
        assert cache.get(("pair", "1", "2")) == (False, None)

    def test_hit(self, cache):
        cache.set(("pair", "1", "2"), "record")
        assert cache.get(("pair", "1", "2")) == (True, "record")

    def test_none_is_a_hit(self, cache):
        """Test that a cached 'no interaction' is distinguishable from a miss"""
        cache.set("key", None)
        assert cache.get("key") == (True, None)

    def test_expiry(self, cache, clock):
        cache.set("key", "value")
        clock.advance(59)
        assert cache.get("key") == (True, "value")
        clock.advance(1)
        assert cache.get("key") == (False, None)
        assert len(cache) == 0

    def test_clear_is_idempotent(self, cache):
        """Test that clearing twice succeeds and the second call drops nothing"""
        cache.set("a", 1)
        cache.set("b", 2)

        assert cache.clear() == 2
        assert cache.clear() == 0
        assert cache.get("a") == (False, None)

    def test_unhashable_key(self, cache):
        with pytest.raises(CacheError):
            cache.get(["not", "hashable"])
        with pytest.raises(CacheError):
            cache.set({"not": "hashable"}, 1)

    def test_concurrent_access(self):
        """Test readers, writers and clears racing from several threads"""
        cache = ResultCache()
        errors = []

        def worker(n):
            try:
                for i in range(200):
                    cache.set((n, i), i)
                    cache.get((n, i))
                    if i % 50 == 0:
                        cache.clear()
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []


class TestRequestSignature:
    """Test suite for request_signature"""

    def test_order_and_duplicates_ignored(self):
        assert request_signature("alternatives", ["1", "2"]) == request_signature("alternatives", ["2", "1", "2"])

    def test_profile_changes_signature(self):
        plain = request_signature("alternatives", ["1", "2"])
        with_profile = request_signature("alternatives", ["1", "2"], {"CYP2C19": Phenotype.PM})
        assert plain != with_profile

    def test_context_changes_signature(self):
        plain = request_signature("alternatives", ["1"])
        classed = request_signature("alternatives", ["1"], context={"classes": {"1": "NSAIDS"}})
        unclassed = request_signature("alternatives", ["1"], context={"classes": {"1": None}})
        assert len({plain, classed, unclassed}) == 3

    def test_profile_order_ignored(self):
        first = request_signature("alternatives", ["1"], {"CYP2C19": Phenotype.PM, "CYP2D6": Phenotype.UM})
        second = request_signature("alternatives", ["1"], {"CYP2D6": Phenotype.UM, "CYP2C19": Phenotype.PM})
        assert first == second

    def test_kind_and_version_prefix(self):
        signature = request_signature("alternatives", ["1"])
        assert signature.startswith("v1-alternatives-")
        assert request_signature("check", ["1"]) != signature
