"""
Pipeline settings.

Tunable constants for the injectors, caps and heuristic detectors. Defaults
are the production values; ``PipelineSettings.from_env()`` lets a deployment
override them with ``SCREENPLAY_QC_*`` environment variables.
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict

from .utils.errors import ConfigurationError

ENV_PREFIX = "SCREENPLAY_QC_"

_PROBABILITIES = {"friction_chance", "extreme_variance_chance", "voice_similar_pair_ratio", "max_interior_ratio"}


@dataclass(frozen=True)
class PipelineSettings:
    """Tunables for one pipeline instance."""

    # Injectors
    friction_chance: float = 0.08
    max_friction_per_unit: int = 3
    sensory_target_density: float = 3.0
    max_sensory_injections: int = 15

    # Sentence variance
    metric_threshold: float = 4.5
    extreme_variance_target: float = 5.5
    extreme_variance_chance: float = 0.15

    # Cleanup caps
    max_ellipses: int = 10
    max_stutters: int = 5
    generic_reply_keep: int = 3

    # Voice homogeneity heuristic
    starter_overuse_lines: int = 3
    voice_min_lines: int = 3
    voice_rhythm_tolerance: float = 2.0
    voice_similar_pair_ratio: float = 0.7
    voice_min_characters: int = 3

    # Structure
    max_scenes: int = 100
    max_interior_ratio: float = 0.85
    combined_phrase_threshold: int = 10

    # Multiplier applied to every prop cooldown distance
    cooldown_scale: float = 1.0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if value < 0:
                raise ConfigurationError(f.name, value, "must not be negative")
            if f.name in _PROBABILITIES and value > 1:
                raise ConfigurationError(f.name, value, "must be between 0 and 1")

    @classmethod
    def from_env(cls, environ: Dict[str, str] = None) -> "PipelineSettings":
        """
        Build settings from environment variables.

        Each field maps to ``SCREENPLAY_QC_<FIELD_NAME>``; unset variables
        keep the default.

        Args:
            environ: Mapping to read instead of ``os.environ`` (for tests)

        Returns:
            PipelineSettings instance

        Raises:
            ConfigurationError: If a variable cannot be parsed or is out of range
        """
        overrides: Dict[str, Any] = {}
        for f in fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = environ.get(key) if environ is not None else os.getenv(key)
            if raw is None or raw.strip() == "":
                continue
            cast: Callable[[str], Any] = int if f.type in (int, "int") else float
            try:
                overrides[f.name] = cast(raw.strip())
            except ValueError:
                raise ConfigurationError(f.name, raw, f"expected {cast.__name__}")
        return cls(**overrides)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
