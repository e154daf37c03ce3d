"""
Error taxonomy for the interaction engine.

Only ValidationError is allowed to cross the engine boundary as a hard
failure. The other kinds are raised inside the engine and degraded locally:
a failed source means reduced coverage, missing reference data means an
empty result, a broken cache means a live lookup.
"""

from enum import Enum
from typing import Optional


class ValidationCode(str, Enum):
    """Machine-readable reason attached to a ValidationError."""
    TOO_FEW_DRUGS = "TooFewDrugs"
    TOO_MANY_DRUGS = "TooManyDrugs"
    UNKNOWN_SEVERITY = "UnknownSeverity"
    UNKNOWN_EVIDENCE_LEVEL = "UnknownEvidenceLevel"
    UNKNOWN_PHENOTYPE = "UnknownPhenotype"


class InteractionEngineError(Exception):
    """Base class for all engine errors."""


class ValidationError(InteractionEngineError):
    """Caller input is malformed. Surfaced as a 4xx, never retried."""

    def __init__(self, code: ValidationCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code.value}: {message}")


class SourceUnavailableError(InteractionEngineError):
    """An interaction source failed or timed out for one lookup."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Source {source} unavailable: {reason}")


class NotFoundError(InteractionEngineError):
    """Requested drug, class or equivalence data is absent."""

    def __init__(self, kind: str, key: str, detail: Optional[str] = None) -> None:
        self.kind = kind
        self.key = key
        message = f"No {kind} data for {key!r}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CacheError(InteractionEngineError):
    """Result cache read or write failed."""
