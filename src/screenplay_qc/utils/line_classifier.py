"""
Screenplay line classifier.

Every detector, limiter and injector needs to know whether a line is
dialogue or action. This module is the single place that decides it, so the
heuristic cannot drift between components.

Rules:
- Scene headings start with INT., EXT., INT./EXT. or I/E.
- Transitions start with FADE, CUT, DISSOLVE, SMASH or MATCH, or are an
  all-caps line ending in a colon.
- A character cue is an all-caps line shorter than 50 characters (extensions
  such as ``(V.O.)`` or ``(CONT'D)`` allowed). It opens a dialogue block.
- Blank lines, scene headings and transitions close the dialogue block.
- ``(...)`` lines are parentheticals wherever they appear.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

CUE_MAX_LENGTH = 50

SCENE_HEADING_PATTERN = re.compile(r'^(?:INT\./EXT\.|INT/EXT\.|I/E\.|INT\.|EXT\.)')
TRANSITION_PATTERN = re.compile(r'^(?:FADE|CUT|DISSOLVE|SMASH|MATCH)\b|^[A-Z][A-Z\s]*:$')
CHARACTER_CUE_PATTERN = re.compile(r"^[A-Z][A-Z0-9\s.'()\-]+$")
PARENTHETICAL_PATTERN = re.compile(r'^\([^)]*\)$')
CUE_EXTENSION_PATTERN = re.compile(r'\s*\([^)]*\)\s*$')


class LineKind(str, Enum):
    """Kinds of screenplay line."""
    BLANK = "blank"
    SCENE_HEADING = "scene_heading"
    TRANSITION = "transition"
    CHARACTER_CUE = "character_cue"
    PARENTHETICAL = "parenthetical"
    DIALOGUE = "dialogue"
    ACTION = "action"


@dataclass(frozen=True)
class ScriptLine:
    """One classified line. ``text`` is the raw line, indentation included."""
    index: int
    kind: LineKind
    text: str
    speaker: Optional[str] = None

    @property
    def stripped(self) -> str:
        return self.text.strip()


def is_scene_heading(line: str) -> bool:
    return bool(SCENE_HEADING_PATTERN.match(line.strip()))


def is_character_cue(line: str) -> bool:
    """All-caps short line that is not a heading or transition."""
    trimmed = line.strip()
    if not trimmed or len(trimmed) >= CUE_MAX_LENGTH:
        return False
    if is_scene_heading(trimmed) or TRANSITION_PATTERN.match(trimmed):
        return False
    return bool(CHARACTER_CUE_PATTERN.match(trimmed))


def speaker_name(cue: str) -> str:
    """Strip cue extensions: ``MARA (V.O.)`` -> ``MARA``."""
    return CUE_EXTENSION_PATTERN.sub('', cue.strip()).strip()


def classify_lines(text: str) -> List[ScriptLine]:
    """
    Classify every line of a screenplay unit.

    Args:
        text: Unit text

    Returns:
        One ScriptLine per ``\\n``-separated line, in order
    """
    if not text:
        return []

    result = []
    in_dialogue = False
    speaker = None

    for index, line in enumerate(text.split('\n')):
        trimmed = line.strip()

        if not trimmed:
            in_dialogue = False
            speaker = None
            kind = LineKind.BLANK
        elif is_scene_heading(trimmed):
            in_dialogue = False
            speaker = None
            kind = LineKind.SCENE_HEADING
        elif TRANSITION_PATTERN.match(trimmed):
            in_dialogue = False
            speaker = None
            kind = LineKind.TRANSITION
        elif is_character_cue(trimmed):
            in_dialogue = True
            speaker = speaker_name(trimmed)
            kind = LineKind.CHARACTER_CUE
        elif PARENTHETICAL_PATTERN.match(trimmed):
            kind = LineKind.PARENTHETICAL
        elif in_dialogue:
            kind = LineKind.DIALOGUE
        else:
            kind = LineKind.ACTION

        result.append(ScriptLine(index=index, kind=kind, text=line, speaker=speaker))

    return result


def dialogue_lines(text: str) -> List[ScriptLine]:
    """Spoken lines only (no cues, no parentheticals)."""
    return [line for line in classify_lines(text) if line.kind == LineKind.DIALOGUE]


def action_lines(text: str) -> List[ScriptLine]:
    return [line for line in classify_lines(text) if line.kind == LineKind.ACTION]


def action_text(text: str) -> str:
    """All action lines joined with spaces, as the variance analyzer reads them."""
    return ' '.join(line.stripped for line in action_lines(text))


def dialogue_by_speaker(text: str) -> Dict[str, List[str]]:
    """
    Group spoken lines by the character cue that introduced them.

    Returns:
        Mapping of speaker name (cue without extensions) to their lines
    """
    grouped: Dict[str, List[str]] = {}
    for line in dialogue_lines(text):
        grouped.setdefault(line.speaker or "UNKNOWN", []).append(line.stripped)
    return grouped
