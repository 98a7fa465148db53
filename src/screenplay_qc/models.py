"""
Data model for the screenplay post-processing pipeline.

Cross-unit state and caller inputs use Pydantic for validation; per-call
results are frozen dataclasses because nothing downstream should edit them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

MAX_EXAMPLES = 5


class DialogueArchetype(str, Enum):
    """Closed set of dialogue archetypes a character can be written to."""
    EVADER = "The Evader"
    STEAMROLLER = "The Steamroller"
    PROFESSOR = "The Professor"
    REACTOR = "The Reactor"


class CharacterRole(str, Enum):
    PROTAGONIST = "protagonist"
    ANTAGONIST = "antagonist"
    SUPPORTING = "supporting"
    MINOR = "minor"


class VoiceTraits(BaseModel):
    """How a character sounds on the page."""
    vocabulary: Optional[str] = None
    rhythm: Optional[str] = None
    tics: List[str] = Field(default_factory=list)


class CharacterProfile(BaseModel):
    """
    Read-only character description supplied by the caller.

    Used by the Professor humanization check and to label speakers in the
    voice-homogeneity report.
    """
    name: str = Field(..., min_length=1)
    role: CharacterRole = CharacterRole.SUPPORTING
    dialogue_archetype: Optional[DialogueArchetype] = None
    voice_traits: VoiceTraits = Field(default_factory=VoiceTraits)

    model_config = {"frozen": True}

    @property
    def cue_name(self) -> str:
        """Name as it appears on a character cue line."""
        return self.name.strip().upper()


class SequenceSummary(BaseModel):
    """Summary of an accepted unit, consumed by loop detection."""
    sequence_number: int = Field(..., ge=1)
    summary: str = ""
    character_states: Dict[str, str] = Field(default_factory=dict)


class PersistentContext(BaseModel):
    """
    State threaded from one unit to the next for a single document.

    The pipeline never edits an instance in place. Accepted units produce a
    new context; rejected units hand the caller's context back untouched.
    """
    tic_credits: Dict[str, int] = Field(default_factory=dict)
    object_credits: Dict[str, int] = Field(default_factory=dict)
    exit_credits: Dict[str, int] = Field(default_factory=dict)
    prop_last_position: Dict[str, int] = Field(default_factory=dict)
    total_word_count: int = Field(default=0, ge=0)
    sequence_summaries: List[SequenceSummary] = Field(default_factory=list)
    character_states: Dict[str, str] = Field(default_factory=dict)

    @field_validator("tic_credits", "object_credits", "exit_credits", "prop_last_position")
    @classmethod
    def non_negative_counts(cls, value: Dict[str, int]) -> Dict[str, int]:
        for name, count in value.items():
            if count < 0:
                raise ValueError(f"'{name}' must not be negative (got {count})")
        return value

    @classmethod
    def create(cls) -> "PersistentContext":
        """Empty context for the start of a document."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


@dataclass(frozen=True)
class DetectorResult:
    """
    Outcome of a single detector.

    Attributes:
        name: Detector identifier used in reports and reasons
        count: Number of matches (unique matches where the detector says so)
        examples: Up to five matched excerpts
        is_hard_reject: Whether the count crossed the detector's threshold
        details: Detector-specific extras (ratios, thresholds, per-name counts)
    """
    name: str
    count: int
    examples: List[str] = field(default_factory=list)
    is_hard_reject: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if len(self.examples) > MAX_EXAMPLES:
            object.__setattr__(self, "examples", list(self.examples[:MAX_EXAMPLES]))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "count": self.count,
            "examples": list(self.examples),
            "is_hard_reject": self.is_hard_reject,
            "details": dict(self.details),
        }
