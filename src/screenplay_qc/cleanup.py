"""
Cleanup & Cap Passes

Stateless text transforms applied near the end of the pipeline. Every pass
returns ``(text, changes)`` and is idempotent: running it on its own output
changes nothing.
"""

import logging
import re
from typing import Dict, List, Tuple

from .patterns import (
    ELLIPSIS_PATTERN,
    GENERIC_RESPONSE_ALTERNATIVES,
    GENERIC_RESPONSE_PATTERNS,
    MARKDOWN_BOLD_PATTERN,
    SEMANTIC_GLUE_PATTERNS,
    STUTTER_PATTERN,
    SUMMARY_ENDING_PATTERN,
    TECHNICAL_ARTIFACT_LINE_PATTERNS,
)
from .utils.line_classifier import LineKind, classify_lines

logger = logging.getLogger(__name__)

MAX_ELLIPSES = 10
MAX_STUTTERS = 5
GENERIC_REPLY_KEEP = 3

_LONG_ELLIPSIS = re.compile(r'\.{4,}|…')
_LOWERCASE_AFTER_END = re.compile(r'(?<!\.)([.!?])([ \t]+)([a-z])')


def _drop_blank_runs(lines: List[str]) -> List[str]:
    """Collapse consecutive blank lines into one."""
    result = []
    for line in lines:
        if not line.strip() and result and not result[-1].strip():
            continue
        result.append(line)
    return result


def strip_technical_artifacts(text: str) -> Tuple[str, int]:
    """
    Remove generator leakage.

    Whole lines that are scene/sequence markers, meta notes, markdown rules or
    headers are dropped; ``**bold**`` markers are unwrapped.
    """
    kept = []
    removed = 0
    for line in text.split('\n'):
        if any(pattern.match(line) for pattern in TECHNICAL_ARTIFACT_LINE_PATTERNS):
            removed += 1
            continue
        kept.append(line)

    if removed:
        kept = _drop_blank_runs(kept)
    result, unwrapped = MARKDOWN_BOLD_PATTERN.subn(r'\1', '\n'.join(kept))
    return result, removed + unwrapped


def strip_semantic_glue(text: str) -> Tuple[str, int]:
    """Delete trailing qualifiers such as ", somehow" before the final stop."""
    changes = 0
    for pattern in SEMANTIC_GLUE_PATTERNS:
        text, hits = pattern.subn('', text)
        changes += hits
    return text, changes


def strip_summary_endings(text: str) -> Tuple[str, int]:
    """
    Drop verdict sentences ("It was enough.") that close an action line.

    A line left empty is removed along with the blank line that followed it.
    """
    lines = text.split('\n')
    action_indices = {line.index for line in classify_lines(text) if line.kind == LineKind.ACTION}
    result = []
    changes = 0
    skip_blank = False

    for index, line in enumerate(lines):
        if skip_blank:
            skip_blank = False
            if not line.strip():
                continue
        if index in action_indices:
            stripped, hits = SUMMARY_ENDING_PATTERN.subn('', line)
            while hits:
                changes += hits
                line = stripped
                stripped, hits = SUMMARY_ENDING_PATTERN.subn('', line)
            if not line.strip() and lines[index].strip():
                skip_blank = bool(result) and not result[-1].strip()
                continue
        result.append(line)

    return '\n'.join(result), changes


def limit_ellipses_per_line(text: str) -> Tuple[str, int]:
    """
    Normalize ellipses and keep at most one per action line.

    ``…`` and runs of four or more dots become ``...`` everywhere. In action
    lines every ellipsis after the first becomes a full stop.
    """
    text, changes = _LONG_ELLIPSIS.subn('...', text)

    lines = text.split('\n')
    for script_line in classify_lines(text):
        if script_line.kind != LineKind.ACTION:
            continue
        matches = list(ELLIPSIS_PATTERN.finditer(script_line.text))
        if len(matches) <= 1:
            continue
        line = script_line.text
        for match in reversed(matches[1:]):
            line = line[:match.start()] + '.' + line[match.end():]
        lines[script_line.index] = line
        changes += len(matches) - 1

    return '\n'.join(lines), changes


def fix_lowercase_after_sentence_end(text: str) -> Tuple[str, int]:
    """Capitalize a lowercase letter that follows ``.``, ``!`` or ``?`` and a space."""
    result, changes = _LOWERCASE_AFTER_END.subn(
        lambda m: m.group(1) + m.group(2) + m.group(3).upper(), text
    )
    return result, changes


def cap_ellipses(text: str, max_total: int = MAX_ELLIPSES) -> Tuple[str, int]:
    """
    Cap the number of ellipses in a unit.

    Excess ellipses are taken from action lines before dialogue lines, last
    first, and replaced alternately with ``.`` and ``--``.

    Args:
        text: Unit text
        max_total: Ellipses allowed in the whole unit

    Returns:
        Tuple of (text, number replaced)
    """
    lines = text.split('\n')
    located = []
    for script_line in classify_lines(text):
        in_dialogue = script_line.kind == LineKind.DIALOGUE
        for match in ELLIPSIS_PATTERN.finditer(script_line.text):
            located.append((in_dialogue, script_line.index, match.start(), match.end()))

    excess = len(located) - max_total
    if excess <= 0:
        return text, 0

    # Action first, then latest position first
    located.sort(key=lambda item: (item[0], -item[1], -item[2]))
    chosen = located[:excess]

    by_line: Dict[int, List[Tuple[int, int, str]]] = {}
    for i, (_, index, start, end) in enumerate(chosen):
        by_line.setdefault(index, []).append((start, end, '.' if i % 2 == 0 else '--'))

    for index, edits in by_line.items():
        line = lines[index]
        for start, end, replacement in sorted(edits, reverse=True):
            line = line[:start] + replacement + line[end:]
        lines[index] = line

    logger.debug(f"Capped ellipses: replaced {excess} of {len(located)}")
    return '\n'.join(lines), excess


def cap_stutters(text: str, max_total: int = MAX_STUTTERS) -> Tuple[str, int]:
    """Keep the first ``max_total`` stutters ("W-what") and remove the rest."""
    seen = 0

    def strip(match):
        nonlocal seen
        seen += 1
        return match.group(0) if seen <= max_total else ''

    result = STUTTER_PATTERN.sub(strip, text)
    return result, max(0, seen - max_total)


def _reply_key(line: str) -> str:
    return line.strip().rstrip('.!?').lower()


def replace_generic_responses(text: str, keep: int = GENERIC_REPLY_KEEP) -> Tuple[str, int]:
    """
    Thin out stock one-line replies.

    The first ``keep`` uses of each reply survive; later ones cycle through
    less generic alternatives.
    """
    lines = text.split('\n')
    seen: Dict[str, int] = {}
    changes = 0

    for script_line in classify_lines(text):
        if script_line.kind != LineKind.DIALOGUE:
            continue
        stripped = script_line.stripped
        if not any(pattern.match(stripped) for pattern in GENERIC_RESPONSE_PATTERNS):
            continue
        key = _reply_key(stripped)
        seen[key] = seen.get(key, 0) + 1
        if seen[key] > keep:
            indent = script_line.text[:len(script_line.text) - len(script_line.text.lstrip())]
            alternative = GENERIC_RESPONSE_ALTERNATIVES[changes % len(GENERIC_RESPONSE_ALTERNATIVES)]
            lines[script_line.index] = indent + alternative
            changes += 1

    return '\n'.join(lines), changes
