"""
Process settings for the API.

The hosting process owns the environment: this module reads .env / process
variables and builds the InteractionEngineConfig handed to the engine.
"""

import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple

from dotenv import load_dotenv, find_dotenv

from app.services.interactions.config import InteractionEngineConfig

# Load .env file (walks up directories to find it)
load_dotenv(find_dotenv())

logger = logging.getLogger(__name__)

SERVICE_NAME = "Drug Interaction Engine"
API_PREFIX = "/api/v1"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


# Environment variable -> (config field, parser)
ENV_FIELDS: Dict[str, Tuple[str, Callable[[str], Any]]] = {
    "MAX_DRUGS": ("max_drugs", int),
    "MAX_CANDIDATES_PER_DRUG": ("max_candidates_per_drug", int),
    "ADAPTER_TIMEOUT_SECONDS": ("adapter_timeout_seconds", float),
    "CHECK_DEADLINE_SECONDS": ("overall_deadline_seconds", float),
    "CACHE_TTL_SECONDS": ("cache_ttl_seconds", float),
    "CACHE_ENABLED": ("cache_enabled", _parse_bool),
    "EXTERNAL_REFERENCE_ENABLED": ("external_reference_enabled", _parse_bool),
    "EXTERNAL_REFERENCE_URL": ("external_reference_url", str),
}


def build_engine_config(environ: Optional[Dict[str, str]] = None) -> InteractionEngineConfig:
    """
    Build the engine configuration from environment variables.

    Unset or empty variables keep the config defaults. Malformed values fail
    at startup rather than at the first request.
    """
    environ = os.environ if environ is None else environ
    overrides: Dict[str, Any] = {}
    for variable, (field, parse) in ENV_FIELDS.items():
        raw = environ.get(variable)
        if raw is None or not raw.strip():
            continue
        try:
            overrides[field] = parse(raw.strip())
        except ValueError as e:
            raise ValueError(f"Invalid value for {variable}: {raw!r}") from e

    if overrides:
        logger.info("Engine configuration overrides from environment", extra={"fields": sorted(overrides)})
    return InteractionEngineConfig(**overrides)
