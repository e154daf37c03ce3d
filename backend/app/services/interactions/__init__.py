"""
Drug Interaction Service

Merges drug-drug interaction evidence from the curated store and external
reference services into one deduplicated, severity-ranked result. The
request pipeline lives in ``engine``; this package root only exposes the
shared models and errors so that sibling services can import them cheaply.
"""

from .errors import (
    InteractionEngineError,
    ValidationError,
    ValidationCode,
    SourceUnavailableError,
    NotFoundError,
    CacheError,
)
from .models import (
    DrugRef,
    Severity,
    EvidenceLevel,
    InteractionRecord,
    InteractionCheckResult,
    LOCAL_SOURCE,
)

__all__ = [
    # Errors
    'InteractionEngineError',
    'ValidationError',
    'ValidationCode',
    'SourceUnavailableError',
    'NotFoundError',
    'CacheError',

    # Models
    'DrugRef',
    'Severity',
    'EvidenceLevel',
    'InteractionRecord',
    'InteractionCheckResult',
    'LOCAL_SOURCE',
]
