"""
Thread-safe TTL cache shared by concurrent requests.

Keys are canonical pair tuples for interaction lookups and SHA-256 request
signatures for alternative suggestions. A cached value may legitimately be
None ("no interaction known"), so lookups report hits separately from values.
"""

import hashlib
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Sequence, Tuple

from .errors import CacheError

logger = logging.getLogger(__name__)


class ResultCache:
    """Mutex-guarded dict with per-entry expiry on a monotonic clock."""

    def __init__(self, ttl_seconds: float = 3600.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[Hashable, Tuple[float, Any]] = {}

    def get(self, key: Hashable) -> Tuple[bool, Any]:
        """
        Look up ``key``.

        Returns:
            (hit, value); expired entries are evicted and reported as misses

        Raises:
            CacheError: the key cannot be used (e.g. unhashable)
        """
        now = self._clock()
        try:
            with self._lock:
                entry = self._entries.get(key)
                if entry is None:
                    return False, None
                expires_at, value = entry
                if expires_at <= now:
                    del self._entries[key]
                    return False, None
                return True, value
        except TypeError as e:
            raise CacheError(f"Invalid cache key {key!r}: {e}") from e

    def set(self, key: Hashable, value: Any) -> None:
        expires_at = self._clock() + self.ttl_seconds
        try:
            with self._lock:
                self._entries[key] = (expires_at, value)
        except TypeError as e:
            raise CacheError(f"Invalid cache key {key!r}: {e}") from e

    def clear(self) -> int:
        """Drop every entry. Idempotent; returns how many entries were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries = {}
        logger.info(f"Result cache cleared ({dropped} entries)")
        return dropped

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def request_signature(
    kind: str,
    drug_ids: Sequence[str],
    profile: Optional[Mapping[str, Any]] = None,
    context: Optional[Mapping[str, Any]] = None,
    version: str = "1",
) -> str:
    """
    Stable cache key for a request: order of drugs and profile genes does
    not matter, duplicates do not matter.

    ``context`` carries any other request input the answer depends on
    (caller-supplied classes, clinical factors); it must be JSON-serializable.
    """
    fingerprint_source = json.dumps(
        {
            "kind": kind,
            "drugs": sorted(set(drug_ids)),
            "profile": {
                gene: str(getattr(value, "value", value))
                for gene, value in sorted((profile or {}).items())
            },
            "context": context or {},
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(fingerprint_source.encode("utf-8")).hexdigest()
    return f"v{version}-{kind}-{digest}"
