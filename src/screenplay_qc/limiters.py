"""
Credit-Based Limiters

Three limiters share one mechanism: count the matches of each pattern, keep
the first ones up to the cap verbatim, and rewrite the rest in left-to-right
order. They differ in scope and replacement:

- Tic limiter: cap applies per unit; rotating neutral substitutes in the
  tense of the matched verb
- Object limiter: cap applies per document; pronoun, pause or deletion
- Exit-cliché limiter: cap applies per document; rotating plain exits

Credits are returned in a new mapping. Document-wide credits only ever grow
and never exceed a pattern's cap.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .patterns import (
    EXIT_ALTERNATIVES,
    EXIT_CLICHES,
    OBJECT_TICS,
    TIC_PATTERNS,
    TIC_REPLACEMENTS,
    ExitCliche,
    ObjectTic,
    TicPattern,
)
from .utils.text import match_case, splice

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LimiterResult:
    """Rewritten text plus the credits consumed to produce it."""
    content: str
    updated_credits: Dict[str, int]
    warnings: List[str] = field(default_factory=list)
    replaced: int = 0


def pronoun_for(phrase: str) -> str:
    """``it`` for a singular noun phrase, ``them`` for a plural one."""
    last = phrase.split()[-1].lower() if phrase.split() else ""
    return "them" if last.endswith("s") else "it"


def verb_tense(phrase: str) -> str:
    """
    Tense of the verb that opens ``phrase``, as a key of TIC_REPLACEMENTS.

    ``nodded`` is past, ``sighing`` progressive, ``nods`` present and
    ``adjust`` base.
    """
    verb = phrase.split()[0].lower() if phrase.split() else ""
    if verb.endswith("ed"):
        return "past"
    if verb.endswith("ing"):
        return "progressive"
    if verb.endswith("s"):
        return "present"
    return "base"


def _tic_replacement(index: int, matched: str) -> str:
    rotation = TIC_REPLACEMENTS[verb_tense(matched)]
    return match_case(matched, rotation[index % len(rotation)])


def _object_replacement(tic: ObjectTic, matched: str) -> str:
    if tic.replacement == "pronoun":
        return match_case(matched, pronoun_for(matched))
    if tic.replacement == "pause":
        return match_case(matched, TIC_REPLACEMENTS[verb_tense(matched)][0])
    return ""


def _cap_pattern(text: str, pattern, allowed: int, replace) -> Tuple[str, int, int]:
    """
    Keep the first ``allowed`` matches, rewrite the rest.

    Args:
        text: Text to scan
        pattern: Compiled regex
        allowed: Matches to keep verbatim
        replace: Callable (excess_index, matched_text) -> replacement

    Returns:
        Tuple of (text, total matches, matches replaced)
    """
    matches = list(pattern.finditer(text))
    excess = matches[allowed:]
    if not excess:
        return text, len(matches), 0
    edits = [
        (match.start(), match.end(), replace(i, match.group(0)))
        for i, match in enumerate(excess)
    ]
    return splice(text, edits), len(matches), len(excess)


def enforce_tic_limits(
    text: str,
    credits: Optional[Dict[str, int]] = None,
    patterns: Sequence[TicPattern] = TIC_PATTERNS,
) -> LimiterResult:
    """
    Cap phrase-level tics within one unit.

    Every unit gets the full per-sequence allowance; the credits mapping
    accumulates what each unit kept, for reporting across the document.

    Args:
        text: Unit text
        credits: Tic credits carried in from earlier units
        patterns: Tic patterns to enforce

    Returns:
        LimiterResult
    """
    updated = dict(credits or {})
    warnings = []
    replaced = 0

    for tic in patterns:
        text, total, excess = _cap_pattern(
            text,
            tic.pattern,
            tic.max_per_sequence,
            _tic_replacement,
        )
        if total:
            updated[tic.name] = updated.get(tic.name, 0) + min(total, tic.max_per_sequence)
        if excess:
            replaced += excess
            warnings.append(
                f"Tic '{tic.name}' appeared {total} times (max {tic.max_per_sequence}); "
                f"replaced {excess}"
            )

    if replaced:
        logger.debug(f"Tic limiter replaced {replaced} occurrences")
    return LimiterResult(content=text, updated_credits=updated, warnings=warnings, replaced=replaced)


def enforce_object_tic_limits(
    text: str,
    credits: Optional[Dict[str, int]] = None,
    objects: Sequence[ObjectTic] = OBJECT_TICS,
) -> LimiterResult:
    """
    Cap prop habits across the whole document.

    Occurrences past the document-wide cap become ``it``/``them`` (noun
    phrases, determiner included), ``pauses`` in the matched tense (checking
    and staring verbs) or are deleted.

    Args:
        text: Unit text
        credits: Object credits consumed by earlier units
        objects: Object tics to enforce

    Returns:
        LimiterResult whose credits never exceed each object's cap
    """
    updated = dict(credits or {})
    warnings = []
    replaced = 0

    for tic in objects:
        used = updated.get(tic.name, 0)
        allowed = max(0, tic.max_per_screenplay - used)
        text, total, excess = _cap_pattern(
            text,
            tic.pattern,
            allowed,
            lambda i, matched, tic=tic: _object_replacement(tic, matched),
        )
        if total:
            updated[tic.name] = used + min(total, allowed)
        if excess:
            replaced += excess
            warnings.append(
                f"Object '{tic.name}' has reached its document limit of "
                f"{tic.max_per_screenplay}; replaced {excess}"
            )

    if replaced:
        logger.debug(f"Object limiter replaced {replaced} occurrences")
    return LimiterResult(content=text, updated_credits=updated, warnings=warnings, replaced=replaced)


def enforce_exit_cliche_limits(
    text: str,
    credits: Optional[Dict[str, int]] = None,
    cliches: Sequence[ExitCliche] = EXIT_CLICHES,
) -> LimiterResult:
    """
    Cap scene-exit clichés across the whole document.

    Excess exits cycle through plain alternatives ("walks out", "leaves", ...)
    in the order they are replaced.
    """
    updated = dict(credits or {})
    warnings = []
    replaced = 0

    for cliche in cliches:
        used = updated.get(cliche.name, 0)
        allowed = max(0, cliche.max_per_screenplay - used)
        offset = replaced
        text, total, excess = _cap_pattern(
            text,
            cliche.pattern,
            allowed,
            lambda i, matched, offset=offset: match_case(
                matched, EXIT_ALTERNATIVES[(offset + i) % len(EXIT_ALTERNATIVES)]
            ),
        )
        if total:
            updated[cliche.name] = used + min(total, allowed)
        if excess:
            replaced += excess
            warnings.append(
                f"Exit cliché '{cliche.name}' over its document limit of "
                f"{cliche.max_per_screenplay}; replaced {excess}"
            )

    return LimiterResult(content=text, updated_credits=updated, warnings=warnings, replaced=replaced)
