"""
Cooldown Enforcer

Where the credit limiters count occurrences, the cooldown enforcer measures
distance: two mentions of the same prop must sit at least ``cooldown_words``
words apart in the document. Offsets are absolute word indices into the whole
document, carried between units in ``PersistentContext.prop_last_position``.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .limiters import pronoun_for
from .patterns import PROP_COOLDOWNS, PropCooldown
from .utils.text import match_case, splice
from .utils.word_count import count_words, word_offset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CooldownViolation:
    prop: str
    distance: int
    required: int
    position: int


@dataclass(frozen=True)
class CooldownResult:
    """
    Attributes:
        content: Text with violating mentions replaced or removed
        updated_positions: Last accepted offset per prop
        violations: One entry per removed mention
        new_word_count: Document offset at which the next unit starts
    """
    content: str
    updated_positions: Dict[str, int]
    violations: List[CooldownViolation] = field(default_factory=list)
    new_word_count: int = 0


def _replacement(prop: PropCooldown, matched: str) -> str:
    if prop.replacement == "pronoun":
        return match_case(matched, pronoun_for(matched))
    return ""


def enforce_prop_cooldown(
    text: str,
    prop_last_position: Optional[Dict[str, int]] = None,
    current_word_count: int = 0,
    cooldowns: Sequence[PropCooldown] = PROP_COOLDOWNS,
    scale: float = 1.0,
) -> CooldownResult:
    """
    Remove prop mentions that come too soon after the previous one.

    Matches are walked in text order. A match closer than the cooldown to the
    prop's last accepted position is a violation and does not move that
    position, so the next match is measured from the last mention that was
    kept.

    Args:
        text: Unit text
        prop_last_position: Absolute offset of each prop's last accepted mention
        current_word_count: Words in the document before this unit
        cooldowns: Props to track
        scale: Multiplier applied to every cooldown distance

    Returns:
        CooldownResult
    """
    positions = dict(prop_last_position or {})

    found = []
    for prop in cooldowns:
        for match in prop.pattern.finditer(text):
            found.append((match.start(), match, prop))
    found.sort(key=lambda item: item[0])

    violations = []
    edits = []
    for start, match, prop in found:
        offset = word_offset(text, start, current_word_count)
        required = int(prop.cooldown_words * scale)
        previous = positions.get(prop.name)
        if previous is not None and offset - previous < required:
            violations.append(CooldownViolation(
                prop=prop.name,
                distance=offset - previous,
                required=required,
                position=offset,
            ))
            edits.append((match.start(), match.end(), _replacement(prop, match.group(0))))
        else:
            positions[prop.name] = offset

    content = splice(text, edits) if edits else text
    if violations:
        logger.debug(f"Cooldown removed {len(violations)} prop mentions")

    return CooldownResult(
        content=content,
        updated_positions=positions,
        violations=violations,
        new_word_count=current_word_count + count_words(content),
    )


def last_prop_positions(
    text: str,
    current_word_count: int = 0,
    cooldowns: Sequence[PropCooldown] = PROP_COOLDOWNS,
) -> Dict[str, int]:
    """
    Absolute offset of the last mention of each prop in ``text``.

    Props that ``text`` never mentions are left out.
    """
    positions = {}
    for prop in cooldowns:
        for match in prop.pattern.finditer(text):
            positions[prop.name] = word_offset(text, match.start(), current_word_count)
    return positions
