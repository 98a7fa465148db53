"""
Pattern Detectors

Independent scanners for specific tells of generated screenplay text. Each
detector is a pure function of the unit text that returns a DetectorResult;
none of them decides anything about the unit as a whole. Missing structure
(no dialogue, no scene headings) is a zero count, never an error.

Thresholds:
- clinical dialogue: >= 3 matches
- on-the-nose dialogue: >= 2 matches
- banned phrases: >= 3 matches
- time jumps: > 2 unique matches
- montages: > 0 lines
- scene count: > 100 headings; interior ratio > 85%
- generic responses: > 20 lines
- word repetition: > 8 unique matches
- purple prose: > 5 unique matches
- mundanity ratio: > 0.50 hard, > 0.30 soft (with >= 5 dialogue lines)
- semantic glue, summary endings, technical artifacts: reported only
"""

import re
from typing import Iterable, List, Optional, Pattern, Sequence

from .models import DetectorResult, SequenceSummary
from .patterns import (
    BANGER_PATTERNS,
    BANNED_PHRASES,
    CLINICAL_PATTERNS,
    GENERIC_RESPONSE_PATTERNS,
    INTERIOR_HEADING_PATTERN,
    MARKDOWN_BOLD_PATTERN,
    MONTAGE_PATTERNS,
    ON_THE_NOSE_PATTERNS,
    PURPLE_PROSE_PATTERNS,
    REINTRODUCTION_PATTERNS,
    SEMANTIC_GLUE_PATTERNS,
    START_OF_STORY_PATTERN,
    SUMMARY_ENDING_PATTERN,
    TECHNICAL_ARTIFACT_LINE_PATTERNS,
    TIME_JUMP_PATTERNS,
    WORD_REPETITION_PATTERNS,
)
from .utils.line_classifier import LineKind, action_lines, classify_lines, dialogue_lines
from .utils.text import excerpt

CLINICAL_THRESHOLD = 3
ON_THE_NOSE_THRESHOLD = 2
BANNED_PHRASE_THRESHOLD = 3
TIME_JUMP_THRESHOLD = 2
MAX_SCENES = 100
MAX_INTERIOR_RATIO = 0.85
GENERIC_RESPONSE_THRESHOLD = 20
WORD_REPETITION_THRESHOLD = 8
PURPLE_PROSE_THRESHOLD = 5
MUNDANITY_HARD_RATIO = 0.50
MUNDANITY_SOFT_RATIO = 0.30
MIN_DIALOGUE_FOR_MUNDANITY = 5
LOOP_KEYWORD_MIN_LENGTH = 5

_KEYWORD_STOPWORDS = {
    "about", "after", "again", "their", "there", "these", "those", "which",
    "while", "where", "would", "could", "should", "being", "through", "before",
}


def _unique_matches(patterns: Iterable[Pattern], text: str) -> List[str]:
    """Distinct matched strings (case-insensitive), in first-seen order."""
    seen = {}
    for pattern in patterns:
        for match in pattern.finditer(text):
            key = match.group(0).lower()
            if key not in seen:
                seen[key] = match.group(0)
    return list(seen.values())


def detect_clinical_dialogue(text: str) -> DetectorResult:
    """Clinical/robotic vocabulary spoken by characters."""
    count = 0
    examples = []
    found = {}
    for line in dialogue_lines(text):
        for phrase, pattern in CLINICAL_PATTERNS:
            hits = len(pattern.findall(line.stripped))
            if hits:
                count += hits
                found[phrase] = found.get(phrase, 0) + hits
                examples.append(f"{line.speaker}: \"{excerpt(line.stripped)}\"")
    return DetectorResult(
        name="clinical_dialogue",
        count=count,
        examples=examples,
        is_hard_reject=count >= CLINICAL_THRESHOLD,
        details={"phrases": found},
    )


def detect_on_the_nose_dialogue(text: str) -> DetectorResult:
    """Characters stating their emotions outright."""
    count = 0
    examples = []
    for line in dialogue_lines(text):
        for pattern in ON_THE_NOSE_PATTERNS:
            hits = len(pattern.findall(line.stripped))
            if hits:
                count += hits
                examples.append(f"{line.speaker}: \"{excerpt(line.stripped)}\"")
    return DetectorResult(
        name="on_the_nose",
        count=count,
        examples=examples,
        is_hard_reject=count >= ON_THE_NOSE_THRESHOLD,
    )


def detect_banned_phrases(text: str) -> DetectorResult:
    """Stock AI phrases anywhere in the unit (case-insensitive substring)."""
    lowered = text.lower()
    found = {}
    for phrase in BANNED_PHRASES:
        hits = lowered.count(phrase.lower())
        if hits:
            found[phrase] = hits
    count = sum(found.values())
    return DetectorResult(
        name="banned_phrases",
        count=count,
        examples=[f"\"{phrase}\" x{hits}" for phrase, hits in found.items()],
        is_hard_reject=count >= BANNED_PHRASE_THRESHOLD,
        details={"phrases": found},
    )


def detect_time_jumps(text: str) -> DetectorResult:
    """Lazy time skips ("THREE WEEKS LATER"); counted once per distinct phrase."""
    unique = _unique_matches(TIME_JUMP_PATTERNS, text)
    return DetectorResult(
        name="time_jumps",
        count=len(unique),
        examples=unique,
        is_hard_reject=len(unique) > TIME_JUMP_THRESHOLD,
    )


def detect_montages(text: str) -> DetectorResult:
    """Montage and series-of-shots lines. Zero tolerance."""
    examples = []
    for line in classify_lines(text):
        if line.kind in (LineKind.BLANK, LineKind.DIALOGUE):
            continue
        if any(pattern.search(line.stripped) for pattern in MONTAGE_PATTERNS):
            examples.append(excerpt(line.stripped))
    return DetectorResult(
        name="montages",
        count=len(examples),
        examples=examples,
        is_hard_reject=len(examples) > 0,
    )


def _scene_headings(text: str) -> List[str]:
    return [line.stripped for line in classify_lines(text) if line.kind == LineKind.SCENE_HEADING]


def detect_scene_count(text: str, max_scenes: int = MAX_SCENES) -> DetectorResult:
    """Too many scene headings for one unit."""
    headings = _scene_headings(text)
    return DetectorResult(
        name="scene_count",
        count=len(headings),
        examples=headings[:1] + headings[-1:] if headings else [],
        is_hard_reject=len(headings) > max_scenes,
        details={"max_scenes": max_scenes},
    )


def detect_interior_ratio(text: str, max_ratio: float = MAX_INTERIOR_RATIO) -> DetectorResult:
    """
    Share of pure ``INT.`` scenes among all scene headings.

    A unit without headings has a ratio of 0 and never rejects.
    """
    headings = _scene_headings(text)
    interiors = [h for h in headings if INTERIOR_HEADING_PATTERN.match(h)]
    ratio = len(interiors) / len(headings) if headings else 0.0
    return DetectorResult(
        name="interior_ratio",
        count=len(interiors),
        examples=interiors,
        is_hard_reject=ratio > max_ratio,
        details={"ratio": round(ratio, 3), "scenes": len(headings), "max_ratio": max_ratio},
    )


def detect_generic_responses(text: str) -> DetectorResult:
    """Dialogue lines that are nothing but a stock reply ("Yeah.", "Okay.")."""
    examples = []
    for line in dialogue_lines(text):
        if any(pattern.match(line.stripped) for pattern in GENERIC_RESPONSE_PATTERNS):
            examples.append(f"{line.speaker}: \"{line.stripped}\"")
    return DetectorResult(
        name="generic_responses",
        count=len(examples),
        examples=examples,
        is_hard_reject=len(examples) > GENERIC_RESPONSE_THRESHOLD,
    )


def detect_word_repetition(text: str) -> DetectorResult:
    """Immediate word or phrase repeats ("the the", "Gone. Gone.")."""
    unique = _unique_matches(WORD_REPETITION_PATTERNS, text)
    return DetectorResult(
        name="word_repetition",
        count=len(unique),
        examples=unique,
        is_hard_reject=len(unique) > WORD_REPETITION_THRESHOLD,
    )


def detect_purple_prose(text: str) -> DetectorResult:
    """Overwrought stock imagery ("dust motes dance", "deafening silence")."""
    unique = _unique_matches(PURPLE_PROSE_PATTERNS, text)
    return DetectorResult(
        name="purple_prose",
        count=len(unique),
        examples=unique,
        is_hard_reject=len(unique) > PURPLE_PROSE_THRESHOLD,
    )


def detect_semantic_glue(text: str) -> DetectorResult:
    """Trailing qualifiers (", somehow.", ", which said everything"). Report only."""
    examples = []
    for pattern in SEMANTIC_GLUE_PATTERNS:
        for match in pattern.finditer(text):
            examples.append(match.group(0).strip(' ,-'))
    return DetectorResult(name="semantic_glue", count=len(examples), examples=examples)


def detect_summary_endings(text: str) -> DetectorResult:
    """Action lines that close on a verdict ("It was enough."). Report only."""
    examples = []
    for line in action_lines(text):
        match = SUMMARY_ENDING_PATTERN.search(line.text)
        if match:
            examples.append(match.group(0).strip())
    return DetectorResult(name="summary_endings", count=len(examples), examples=examples)


def detect_technical_artifacts(text: str) -> DetectorResult:
    """Generator leakage: scene/sequence markers, meta notes, markdown."""
    examples = []
    for line in text.split('\n'):
        if any(pattern.match(line) for pattern in TECHNICAL_ARTIFACT_LINE_PATTERNS):
            examples.append(excerpt(line))
    examples.extend(match.group(0) for match in MARKDOWN_BOLD_PATTERN.finditer(text))
    return DetectorResult(name="technical_artifacts", count=len(examples), examples=examples)


def detect_mundanity_ratio(text: str) -> DetectorResult:
    """
    Fraction of dialogue lines that are trailer-speak philosophy.

    Real people mostly talk about mundane things. Above 0.50 the unit is
    rejected; above 0.30 it is accepted with a soft correction.

    Returns:
        DetectorResult with ``details["ratio"]`` and ``details["is_soft"]``
    """
    lines = dialogue_lines(text)
    if len(lines) < MIN_DIALOGUE_FOR_MUNDANITY:
        return DetectorResult(
            name="mundanity_ratio",
            count=0,
            details={"ratio": 0.0, "dialogue_lines": len(lines), "is_soft": False},
        )

    profound = [
        line for line in lines
        if any(pattern.search(line.stripped) for pattern in BANGER_PATTERNS)
    ]
    ratio = len(profound) / len(lines)
    return DetectorResult(
        name="mundanity_ratio",
        count=len(profound),
        examples=[f"{line.speaker}: \"{excerpt(line.stripped)}\"" for line in profound],
        is_hard_reject=ratio > MUNDANITY_HARD_RATIO,
        details={
            "ratio": round(ratio, 3),
            "dialogue_lines": len(lines),
            "is_soft": MUNDANITY_SOFT_RATIO < ratio <= MUNDANITY_HARD_RATIO,
        },
    )


def _keywords(text: str) -> set:
    words = re.findall(r"[a-z']+", text.lower())
    return {w for w in words if len(w) >= LOOP_KEYWORD_MIN_LENGTH and w not in _KEYWORD_STOPWORDS}


def keyword_overlap(first: str, second: str) -> float:
    """Jaccard similarity of the long words in two passages."""
    a, b = _keywords(first), _keywords(second)
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def check_for_loops(
    text: str,
    sequence_number: int,
    previous_summaries: Optional[Sequence[SequenceSummary]] = None,
) -> DetectorResult:
    """
    Detect a unit that restarts the story instead of continuing it.

    After the first unit, ``FADE IN:`` or phrases that introduce a character
    or place for the first time mean the generator has looped. The keyword
    overlap with earlier summaries is reported in ``details`` but never
    rejects on its own.

    Args:
        text: Unit text
        sequence_number: 1-based position of the unit in the document
        previous_summaries: Summaries of accepted units

    Returns:
        DetectorResult named ``loop_detection``
    """
    previous_summaries = list(previous_summaries or [])
    if sequence_number <= 1 and not previous_summaries:
        return DetectorResult(name="loop_detection", count=0)

    examples = []
    if START_OF_STORY_PATTERN.search(text):
        examples.append("FADE IN: (start-of-story marker)")
    for pattern in REINTRODUCTION_PATTERNS:
        for match in pattern.finditer(text):
            examples.append(match.group(0))

    overlap = 0.0
    closest = None
    for summary in previous_summaries:
        score = keyword_overlap(text, summary.summary)
        if score > overlap:
            overlap, closest = score, summary.sequence_number

    return DetectorResult(
        name="loop_detection",
        count=len(examples),
        examples=examples,
        is_hard_reject=bool(examples),
        details={"keyword_overlap": round(overlap, 3), "closest_sequence": closest},
    )
