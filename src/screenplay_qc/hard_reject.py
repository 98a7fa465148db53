"""
Hard-Reject Gate

Runs every detector over a unit and decides whether the unit can be fixed
mechanically or must be regenerated. A rejection carries a "surgical" prompt:
one paragraph per failing detector with concrete excerpts and an instruction
for the regeneration call.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from . import detectors
from .models import CharacterProfile, DetectorResult, SequenceSummary
from .settings import PipelineSettings
from .utils.errors import ValidationError, require_text
from .voice_analyzer import detect_voice_homogeneity, verbal_messiness_prompt

logger = logging.getLogger(__name__)

SURGICAL_HEADER = "SURGICAL CORRECTIONS REQUIRED. Regenerate this sequence and fix every issue below."
SOFT_HEADER = "CORRECTIONS FOR THE NEXT SEQUENCE:"


@dataclass(frozen=True)
class HardRejectResult:
    """
    Attributes:
        must_regenerate: True when any detector crossed its threshold
        reasons: One short reason per failing detector
        surgical_prompt: Correction instructions, None when accepted
        detector_results: Every detector result by name, for reporting
    """
    must_regenerate: bool
    reasons: List[str] = field(default_factory=list)
    surgical_prompt: Optional[str] = None
    detector_results: Dict[str, DetectorResult] = field(default_factory=dict)


def _quoted(result: DetectorResult, limit: int = 3) -> str:
    return "; ".join(result.examples[:limit]) or "n/a"


# Paragraph per detector: what is wrong, where, and what to do instead
SURGICAL_INSTRUCTIONS: Dict[str, Callable[[DetectorResult], str]] = {
    "clinical_dialogue": lambda r: (
        f"CLINICAL DIALOGUE ({r.count} instances): characters talk like incident reports. "
        f"Examples: {_quoted(r)}. Rewrite these lines in plain spoken English with "
        "contractions. People say \"I need\", not \"I require\"."
    ),
    "on_the_nose": lambda r: (
        f"ON-THE-NOSE DIALOGUE ({r.count} instances): characters announce their feelings. "
        f"Examples: {_quoted(r)}. Cut the stated emotion and let it show in what the "
        "character does or refuses to say."
    ),
    "banned_phrases": lambda r: (
        f"BANNED PHRASES ({r.count} instances): {_quoted(r)}. Remove every one and replace "
        "it with a specific line only this character would say."
    ),
    "loop_detection": lambda r: (
        f"STORY LOOP: this sequence restarts the story instead of continuing it "
        f"({_quoted(r)}). Pick up exactly where the previous sequence ended. Do not use "
        "FADE IN: and do not introduce characters or places the audience already knows."
    ),
    "phrase_density": lambda r: (
        f"FILLER PHRASE DENSITY ({r.count} instances): banned phrases, trailing qualifiers "
        "and summary endings add up to too many. Cut them all and end paragraphs on an "
        "image, not a verdict."
    ),
    "voice_homogeneity": lambda r: (
        f"VOICE HOMOGENEITY: every character sounds the same ({_quoted(r)}). Give each "
        "character a distinct rhythm and vocabulary; one speaks in fragments, another in "
        "long run-ons. Drop the shared openers."
    ),
    "mundanity_ratio": lambda r: (
        f"MUNDANITY RATIO ({r.details.get('ratio', 0):.0%} of dialogue is profound): "
        f"{_quoted(r)}. Human conversation is mostly logistics and small talk. Rewrite so "
        "at least 70% of lines deal with practical, mundane matters."
    ),
    "time_jumps": lambda r: (
        f"TIME JUMPS ({r.count} distinct): {_quoted(r)}. Keep the sequence in continuous "
        "time; dramatize what happens instead of skipping it."
    ),
    "montages": lambda r: (
        f"MONTAGE ({r.count} found): {_quoted(r)}. Montages are not allowed. Replace it with "
        "one fully dramatized scene."
    ),
    "scene_count": lambda r: (
        f"SCENE COUNT ({r.count} scenes, max {r.details.get('max_scenes')}): too many "
        "scene headings. Merge them into fewer, longer scenes."
    ),
    "interior_ratio": lambda r: (
        f"INTERIOR RATIO ({r.details.get('ratio', 0):.0%} of {r.details.get('scenes')} "
        "scenes are INT.): the story never goes outside. Move some scenes to exterior "
        "locations (EXT.)."
    ),
    "generic_responses": lambda r: (
        f"GENERIC RESPONSES ({r.count} lines): {_quoted(r)}. Replace stock replies with "
        "answers that carry intent or subtext."
    ),
    "word_repetition": lambda r: (
        f"WORD REPETITION ({r.count} distinct): {_quoted(r)}. Remove the immediate repeats."
    ),
    "purple_prose": lambda r: (
        f"PURPLE PROSE ({r.count} distinct): {_quoted(r)}. Replace them with concrete, "
        "plain description."
    ),
}


def _reason(result: DetectorResult) -> str:
    if result.name == "interior_ratio":
        return f"interior_ratio: {result.details.get('ratio', 0):.0%} interior scenes"
    if result.name == "mundanity_ratio":
        return f"mundanity_ratio: {result.details.get('ratio', 0):.0%} profound dialogue"
    if result.name == "scene_count":
        return f"scene_count: {result.count} scenes (max {result.details.get('max_scenes')})"
    return f"{result.name}: {result.count}"


def run_detectors(
    text: str,
    sequence_number: int = 1,
    previous_summaries: Optional[Sequence[SequenceSummary]] = None,
    characters: Optional[Sequence[CharacterProfile]] = None,
    settings: Optional[PipelineSettings] = None,
) -> Dict[str, DetectorResult]:
    """
    Run every detector over a unit.

    Returns:
        Results by detector name, in gate order. The report-only detectors
        (semantic glue, summary endings, technical artifacts) come last.
    """
    settings = settings or PipelineSettings()

    banned = detectors.detect_banned_phrases(text)
    glue = detectors.detect_semantic_glue(text)
    summaries = detectors.detect_summary_endings(text)
    combined = banned.count + glue.count + summaries.count

    ordered = [
        detectors.detect_clinical_dialogue(text),
        detectors.detect_on_the_nose_dialogue(text),
        banned,
        detectors.check_for_loops(text, sequence_number, previous_summaries),
        DetectorResult(
            name="phrase_density",
            count=combined,
            examples=banned.examples + glue.examples + summaries.examples,
            is_hard_reject=combined >= settings.combined_phrase_threshold,
            details={"banned": banned.count, "semantic_glue": glue.count, "summary_endings": summaries.count},
        ),
        detect_voice_homogeneity(text, characters, settings),
        detectors.detect_mundanity_ratio(text),
        detectors.detect_time_jumps(text),
        detectors.detect_montages(text),
        detectors.detect_scene_count(text, settings.max_scenes),
        detectors.detect_interior_ratio(text, settings.max_interior_ratio),
        detectors.detect_generic_responses(text),
        detectors.detect_word_repetition(text),
        detectors.detect_purple_prose(text),
        glue,
        summaries,
        detectors.detect_technical_artifacts(text),
    ]
    return {result.name: result for result in ordered}


def build_surgical_prompt(failures: List[DetectorResult]) -> Optional[str]:
    if not failures:
        return None
    paragraphs = [SURGICAL_INSTRUCTIONS[result.name](result) for result in failures]
    return SURGICAL_HEADER + "\n\n" + "\n\n".join(paragraphs)


def check_hard_reject_patterns(
    text: str,
    sequence_number: int = 1,
    previous_summaries: Optional[Sequence[SequenceSummary]] = None,
    characters: Optional[Sequence[CharacterProfile]] = None,
    settings: Optional[PipelineSettings] = None,
) -> HardRejectResult:
    """
    Decide whether a unit must be regenerated.

    Args:
        text: Unit text
        sequence_number: 1-based position of the unit in the document
        previous_summaries: Summaries of accepted units, for loop detection
        characters: Character profiles, for the voice checks
        settings: Pipeline settings

    Returns:
        HardRejectResult

    Raises:
        ValidationError: If ``text`` is not a string or ``sequence_number`` < 1
    """
    require_text(text)
    if not isinstance(sequence_number, int) or sequence_number < 1:
        raise ValidationError(
            f"'sequence_number' must be a positive integer, got {sequence_number!r}",
            details={"field": "sequence_number"},
        )

    results = run_detectors(text, sequence_number, previous_summaries, characters, settings)
    failures = [result for result in results.values() if result.is_hard_reject]

    if failures:
        logger.info(
            f"Sequence {sequence_number} hard-rejected: "
            f"{', '.join(result.name for result in failures)}"
        )

    return HardRejectResult(
        must_regenerate=bool(failures),
        reasons=[_reason(result) for result in failures],
        surgical_prompt=build_surgical_prompt(failures),
        detector_results=results,
    )


def build_soft_surgical_prompt(
    mundanity: DetectorResult,
    messiness: Dict,
    noir: Dict,
    professor: Dict,
) -> Optional[str]:
    """
    Corrections for an accepted unit, aimed at the next generation call.

    Args:
        mundanity: Mundanity detector result (soft band is 0.30 to 0.50)
        messiness: Result of check_verbal_messiness
        noir: Result of detect_noir_template
        professor: Result of check_professor_humanization

    Returns:
        Prompt text, or None when nothing needs saying
    """
    paragraphs = []
    if mundanity.details.get("is_soft"):
        paragraphs.append(
            f"Dialogue is {mundanity.details['ratio']:.0%} profound. Aim for 70% mundane "
            "logistics and small talk, 30% meaningful."
        )
    if not messiness.get("has_messiness", True):
        paragraphs.append(verbal_messiness_prompt(messiness.get("missing", [])))
    paragraphs.extend(noir.get("suggestions", []))
    paragraphs.extend(professor.get("suggestions", []))

    if not paragraphs:
        return None
    return SOFT_HEADER + "\n\n" + "\n\n".join(paragraphs)
