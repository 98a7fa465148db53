"""
Injection Engines

Stochastic insertors that roughen text judged too polished or too flat:

- Sensory details after scene headings when sensory density is low
- Verbal friction (stutters, false starts, fillers) in dialogue
- Somatic markers in place of stated emotions in action lines

Every injector takes an explicit ``random.Random`` so a unit processed with
the same seed always comes out the same. None of them inserts into a
dialogue block or rewrites dialogue it was not asked to.
"""

import logging
import math
import random
import re
from typing import Callable, Dict, List, Optional, Tuple

from .patterns import (
    FILLER_WORDS,
    POSSESSIVES,
    PRONOUN_SWAPS,
    SENSORY_DETAILS,
    SENSORY_WORD_PATTERNS,
    SOMATIC_MARKERS,
    TELLING_EMOTION_PATTERNS,
)
from .utils.errors import require_probability
from .utils.line_classifier import LineKind, classify_lines
from .utils.text import capitalize_first
from .utils.word_count import count_words, words_per_thousand
from .variance import MERGEABLE_STARTERS

logger = logging.getLogger(__name__)

DEFAULT_SENSORY_DENSITY = 3.0
MAX_SENSORY_INJECTIONS = 15
DEFAULT_FRICTION_CHANCE = 0.08
MAX_FRICTION_PER_UNIT = 3

_SENTENCE_START = re.compile(r'(?:^\s*|[.!?]["\')]?\s+)$')
_LOWERABLE_STARTERS = MERGEABLE_STARTERS | {
    "you", "what", "why", "how", "where", "when", "no", "yes", "yeah", "okay",
    "not", "just", "don't", "can't", "it's", "that's",
}


def sensory_density(text: str) -> float:
    """Sensory words per 1000 words."""
    hits = sum(len(pattern.findall(text)) for pattern in SENSORY_WORD_PATTERNS.values())
    return words_per_thousand(hits, count_words(text))


def _pick_detail(rng: random.Random, used: set) -> Optional[str]:
    categories = list(SENSORY_DETAILS)
    rng.shuffle(categories)
    for category in categories:
        options = [line for line in SENSORY_DETAILS[category] if line not in used]
        if options:
            return rng.choice(options)
    return None


def inject_sensory_details(
    text: str,
    rng: random.Random,
    target_density: float = DEFAULT_SENSORY_DENSITY,
    max_injections: int = MAX_SENSORY_INJECTIONS,
) -> Tuple[str, int]:
    """
    Add short sensory lines after randomly chosen scene headings.

    Runs only when sensory density is under ``target_density``. Each heading
    receives at most one line and no line is used twice, including lines
    already present in the unit.

    Args:
        text: Unit text
        rng: Random source
        target_density: Sensory words per 1000 words to aim for
        max_injections: Upper bound on inserted lines

    Returns:
        Tuple of (text, number of lines inserted)
    """
    words = count_words(text)
    density = sensory_density(text)
    if words == 0 or density >= target_density:
        return text, 0

    headings = [line.index for line in classify_lines(text) if line.kind == LineKind.SCENE_HEADING]
    if not headings:
        return text, 0

    needed = math.ceil((target_density - density) * words / 1000.0)
    wanted = min(needed, max_injections, len(headings))
    chosen = sorted(rng.sample(headings, wanted))

    used = {detail for details in SENSORY_DETAILS.values() for detail in details if detail in text}
    additions: List[Tuple[int, str]] = []
    for index in chosen:
        detail = _pick_detail(rng, used)
        if detail is None:
            break
        used.add(detail)
        additions.append((index, detail))

    lines = text.split('\n')
    for index, detail in reversed(additions):
        if index + 1 < len(lines) and not lines[index + 1].strip():
            lines[index + 2:index + 2] = [detail, ""]
        else:
            lines[index + 1:index + 1] = ["", detail, ""]

    if additions:
        logger.debug(f"Injected {len(additions)} sensory lines (density {density:.2f})")
    return '\n'.join(lines), len(additions)


# ---------------------------------------------------------------------------
# Verbal friction
# ---------------------------------------------------------------------------

def _lower_start(line: str) -> str:
    first, _, rest = line.partition(' ')
    if first.strip(',.!?').lower() in _LOWERABLE_STARTERS:
        return first.lower() + (' ' + rest if rest else '')
    return line


def _stutter(line: str, rng: random.Random) -> str:
    words = line.split(' ')
    for i, word in enumerate(words[:3]):
        if len(word) >= 2 and word[0].isalpha():
            words[i] = f"{word[0]}-{word}"
            return ' '.join(words)
    return line


def _false_start(line: str, rng: random.Random) -> str:
    words = line.split()
    if len(words) < 4:
        return line
    opener = ' '.join(words[:2]).rstrip(',.;:!?')
    return f"{opener}-- No. {line}"


def _filler(line: str, rng: random.Random) -> str:
    filler = capitalize_first(rng.choice(FILLER_WORDS))
    return f"{filler}, {_lower_start(line)}"


def _trail_off(line: str, rng: random.Random) -> str:
    words = line.split()
    if len(words) < 6:
        return line
    cut = max(3, int(len(words) * rng.uniform(0.6, 0.8)))
    return ' '.join(words[:cut]).rstrip(',.;:!?-') + "..."


def _self_correction(line: str, rng: random.Random) -> str:
    words = line.split(' ')
    for i, word in enumerate(words):
        core = word.strip(',.;:!?')
        swap = PRONOUN_SWAPS.get(core.lower())
        if swap:
            words[i] = word.replace(core, f"{core}-- {swap}", 1)
            return ' '.join(words)
    return line


def _interruption(line: str, rng: random.Random) -> str:
    words = line.split()
    if len(words) < 5:
        return line
    return ' '.join(words[:len(words) // 2]).rstrip(',.;:!?') + "--"


VERBAL_FRICTION_TYPES: Dict[str, Callable[[str, random.Random], str]] = {
    "stutter": _stutter,
    "false_start": _false_start,
    "filler": _filler,
    "trail_off": _trail_off,
    "self_correction": _self_correction,
    "interruption": _interruption,
}


def inject_verbal_friction(
    text: str,
    rng: random.Random,
    chance: float = DEFAULT_FRICTION_CHANCE,
    max_injections: int = MAX_FRICTION_PER_UNIT,
) -> Tuple[str, int]:
    """
    Roughen a few dialogue lines.

    Each spoken line gets one randomly chosen friction transform with
    probability ``chance`` until ``max_injections`` lines have changed.

    Returns:
        Tuple of (text, number of lines changed)

    Raises:
        ValidationError: If ``chance`` is not a probability
    """
    require_probability(chance, "chance")
    lines = text.split('\n')
    names = list(VERBAL_FRICTION_TYPES)
    injected = 0

    for script_line in classify_lines(text):
        if injected >= max_injections:
            break
        if script_line.kind != LineKind.DIALOGUE or rng.random() >= chance:
            continue
        transform = VERBAL_FRICTION_TYPES[rng.choice(names)]
        stripped = script_line.stripped
        rewritten = transform(stripped, rng)
        if rewritten != stripped:
            indent = script_line.text[:len(script_line.text) - len(script_line.text.lstrip())]
            lines[script_line.index] = indent + rewritten
            injected += 1

    if injected:
        logger.debug(f"Injected verbal friction into {injected} dialogue lines")
    return '\n'.join(lines), injected


# ---------------------------------------------------------------------------
# Somatic markers
# ---------------------------------------------------------------------------

def _possessive(owner: str) -> str:
    lowered = owner.lower()
    if lowered in POSSESSIVES:
        return POSSESSIVES[lowered]
    return f"{owner}'s"


def inject_somatic_markers(text: str, rng: random.Random) -> Tuple[str, int]:
    """
    Replace stated emotions in action lines with a physical sensation.

    "She feels scared" becomes "her stomach drops"; "Anger rises in Mara"
    becomes "Mara's jaw tightens". Dialogue is never touched.

    Returns:
        Tuple of (text, number of replacements)
    """
    lines = text.split('\n')
    replaced = 0

    for script_line in classify_lines(text):
        if script_line.kind != LineKind.ACTION:
            continue
        line = script_line.text
        for emotion, pattern in TELLING_EMOTION_PATTERNS:
            def swap(match, emotion=emotion):
                marker = rng.choice(SOMATIC_MARKERS[emotion])
                phrase = f"{_possessive(match.group('owner'))} {marker}"
                if _SENTENCE_START.search(match.string[:match.start()]):
                    phrase = capitalize_first(phrase)
                return phrase

            line, hits = pattern.subn(swap, line)
            replaced += hits
        lines[script_line.index] = line

    if replaced:
        logger.debug(f"Replaced {replaced} stated emotions with somatic markers")
    return '\n'.join(lines), replaced
