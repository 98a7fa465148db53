"""
Screenplay QC - Rule-based post-processing for generated screenplays.

Detects and corrects machine-sounding prose and screenplay-craft violations
in generated sequences, one sequence at a time, without further model calls.
"""

from .models import (
    CharacterProfile,
    DetectorResult,
    DialogueArchetype,
    PersistentContext,
    SequenceSummary,
)
from .settings import PipelineSettings
from .hard_reject import HardRejectResult, check_hard_reject_patterns
from .pipeline import (
    PostProcessingResult,
    ProcessingReport,
    ScreenplayPostProcessor,
    run_screenplay_post_processing,
)

__version__ = "0.1.0"

__all__ = [
    "CharacterProfile",
    "DetectorResult",
    "DialogueArchetype",
    "PersistentContext",
    "SequenceSummary",
    "PipelineSettings",
    "HardRejectResult",
    "check_hard_reject_patterns",
    "PostProcessingResult",
    "ProcessingReport",
    "ScreenplayPostProcessor",
    "run_screenplay_post_processing",
]
