"""
Utility modules for the screenplay post-processing pipeline.

Modules:
- line_classifier: Dialogue/action classification shared by every pass
- word_count: Word counting and absolute document offsets
- text: Splicing and sentence helpers for the rewriting passes
- errors: Exception hierarchy for caller-contract misuse
"""

from .word_count import count_words, word_offset, words_per_thousand
from .line_classifier import (
    LineKind,
    ScriptLine,
    classify_lines,
    dialogue_lines,
    action_lines,
    action_text,
    dialogue_by_speaker,
)
from .errors import PipelineError, ValidationError, ConfigurationError

__all__ = [
    "count_words",
    "word_offset",
    "words_per_thousand",
    "LineKind",
    "ScriptLine",
    "classify_lines",
    "dialogue_lines",
    "action_lines",
    "action_text",
    "dialogue_by_speaker",
    "PipelineError",
    "ValidationError",
    "ConfigurationError",
]
