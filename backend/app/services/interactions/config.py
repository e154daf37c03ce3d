"""
Configuration for the interaction engine.
Centralizes tunable limits, timeouts and cache behaviour.

The engine never reads the environment itself; the hosting process builds an
InteractionEngineConfig (see app.core.settings) and hands it to the factory.
"""

from pydantic import BaseModel, Field


class InteractionEngineConfig(BaseModel):
    """Main configuration for the interaction engine."""

    # Request limits
    max_drugs: int = Field(
        default=10,
        ge=2,
        le=50,
        description="Maximum number of distinct drugs accepted by one check"
    )

    max_candidates_per_drug: int = Field(
        default=0,
        ge=0,
        description="Cap on alternative candidates per target drug (0 = unlimited)"
    )

    # Timeouts
    adapter_timeout_seconds: float = Field(
        default=2.0,
        gt=0.0,
        le=30.0,
        description="Timeout for a single source lookup of one pair"
    )

    overall_deadline_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=120.0,
        description="Deadline for the whole fan-out of one request"
    )

    # Result cache
    cache_enabled: bool = Field(
        default=True,
        description="Cache fully-covered pair lookups and alternative suggestions"
    )

    cache_ttl_seconds: float = Field(
        default=3600.0,
        ge=0.0,
        description="Lifetime of a cache entry (1 hour, as the alternatives service used)"
    )

    # External reference service
    external_reference_enabled: bool = Field(
        default=True,
        description="Query the external reference service in addition to the curated store"
    )

    external_reference_url: str = Field(
        default="https://rxnav.nlm.nih.gov/REST",
        description="Base URL of the RxNav-style interaction API"
    )

    external_source_name: str = Field(
        default="RXNAV",
        description="Provenance tag used when the service does not name its own source"
    )


# Global configuration instance
_config: InteractionEngineConfig = InteractionEngineConfig()


def get_config() -> InteractionEngineConfig:
    """Get the global configuration instance."""
    return _config


def update_config(**kwargs) -> InteractionEngineConfig:
    """
    Update configuration parameters, revalidating the whole model.

    Raises:
        KeyError: a key is not a configuration field
    """
    global _config
    unknown = sorted(set(kwargs) - set(InteractionEngineConfig.model_fields))
    if unknown:
        raise KeyError(f"Unknown configuration keys: {', '.join(unknown)}")

    current_dict = _config.model_dump()
    current_dict.update(kwargs)

    _config = InteractionEngineConfig(**current_dict)
    return _config


def set_config(config: InteractionEngineConfig) -> InteractionEngineConfig:
    """Replace the global configuration (used by the hosting process at startup)."""
    global _config
    _config = config
    return _config


def load_config_from_file(filepath: str) -> InteractionEngineConfig:
    """Load configuration from a JSON file."""
    import json
    global _config

    with open(filepath, 'r') as f:
        config_dict = json.load(f)

    _config = InteractionEngineConfig(**config_dict)
    return _config


def save_config_to_file(filepath: str):
    """Save current configuration to a JSON file."""
    import json

    with open(filepath, 'w') as f:
        json.dump(_config.model_dump(), f, indent=2)
