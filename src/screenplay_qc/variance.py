"""
Sentence Variance Analyzer

Uniform sentence length is one of the most reliable tells of generated prose.
This module measures the spread of sentence lengths in action lines and
applies two mechanical corrections:

- ``enforce_sentence_variance``: merges runs of three staccato sentences
- ``enforce_extreme_variance``: splits some medium-length sentences in two

Dialogue, character cues and scene headings are never read or rewritten.
"""

import logging
import random
import statistics
from dataclasses import dataclass, asdict
from typing import Dict, List, Tuple

from .utils.line_classifier import LineKind, ScriptLine, action_text, classify_lines
from .utils.errors import require_probability
from .utils.text import capitalize_first, sentence_word_count, split_sentences

logger = logging.getLogger(__name__)

MIN_SENTENCES = 10
MIN_SENTENCE_WORDS = 2
DEFAULT_STD_DEV = 5.0
METRIC_THRESHOLD = 4.5
EXTREME_VARIANCE_TARGET = 5.5

SHORT_SENTENCE_WORDS = 6
LONG_SENTENCE_WORDS = 20
STACCATO_WORDS = 7
MEDIUM_RANGE = (8, 14)

# Sentence openers that read naturally in lower case once merged mid-sentence
MERGEABLE_STARTERS = {
    "the", "a", "an", "he", "she", "they", "it", "his", "her", "their",
    "we", "this", "that", "there",
}

# Never end a split fragment on one of these
_WEAK_ENDINGS = {
    "the", "a", "an", "and", "or", "but", "of", "to", "in", "on", "at",
    "with", "for", "from", "his", "her", "their", "my", "your", "its",
}


@dataclass(frozen=True)
class VarianceStats:
    """Sentence-length statistics for the action lines of a unit."""
    std_dev: float
    avg_length: float
    short_count: int
    long_count: int
    sentence_count: int
    is_metric: bool

    def to_dict(self) -> Dict:
        return asdict(self)


def _qualifying_lengths(text: str) -> List[int]:
    lengths = []
    for sentence in split_sentences(action_text(text)):
        words = sentence_word_count(sentence)
        if words >= MIN_SENTENCE_WORDS:
            lengths.append(words)
    return lengths


def calculate_sentence_variance(text: str, metric_threshold: float = METRIC_THRESHOLD) -> VarianceStats:
    """
    Measure the spread of sentence lengths in action lines.

    Args:
        text: Unit text
        metric_threshold: Standard deviation below which prose is metronomic

    Returns:
        VarianceStats. With fewer than 10 qualifying sentences the standard
        deviation is reported as 5.0 and the text is never metronomic.
    """
    lengths = _qualifying_lengths(text)
    count = len(lengths)
    avg = statistics.mean(lengths) if lengths else 0.0
    short = sum(1 for n in lengths if n < SHORT_SENTENCE_WORDS)
    long = sum(1 for n in lengths if n > LONG_SENTENCE_WORDS)

    if count < MIN_SENTENCES:
        return VarianceStats(
            std_dev=DEFAULT_STD_DEV,
            avg_length=round(avg, 2),
            short_count=short,
            long_count=long,
            sentence_count=count,
            is_metric=False,
        )

    std_dev = statistics.pstdev(lengths)
    return VarianceStats(
        std_dev=round(std_dev, 2),
        avg_length=round(avg, 2),
        short_count=short,
        long_count=long,
        sentence_count=count,
        is_metric=std_dev < metric_threshold,
    )


def _strip_terminal(sentence: str) -> str:
    return sentence.rstrip().rstrip('.!?').rstrip()


def _soften_start(sentence: str) -> str:
    first, _, rest = sentence.partition(' ')
    if first.lower() in MERGEABLE_STARTERS:
        return first.lower() + (' ' + rest if rest else '')
    return sentence


def combine_staccato_sentences(first: str, second: str, third: str) -> str:
    """
    Merge three short sentences into ``A—b, and c.``

    The terminal punctuation of the third sentence is kept.
    """
    ending = third.rstrip()[-1:] if third.rstrip()[-1:] in ('.', '!', '?') else '.'
    return (
        f"{_strip_terminal(first)}—{_soften_start(_strip_terminal(second))}, "
        f"and {_soften_start(_strip_terminal(third))}{ending}"
    )


def _action_runs(text: str) -> List[List[ScriptLine]]:
    """Consecutive action lines; any other line kind ends a run."""
    runs = []
    current: List[ScriptLine] = []
    for script_line in classify_lines(text):
        if script_line.kind == LineKind.ACTION:
            current.append(script_line)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def _merge_paragraph(paragraph: str) -> Tuple[str, int]:
    sentences = split_sentences(paragraph)
    if len(sentences) < 3:
        return paragraph, 0

    merged = []
    combinations = 0
    i = 0
    while i < len(sentences):
        window = sentences[i:i + 3]
        if len(window) == 3 and all(sentence_word_count(s) < STACCATO_WORDS for s in window):
            merged.append(combine_staccato_sentences(*window))
            combinations += 1
            i += 3
        else:
            merged.append(sentences[i])
            i += 1

    if not combinations:
        return paragraph, 0
    return ' '.join(merged), combinations


def enforce_sentence_variance(text: str) -> Tuple[str, int]:
    """
    Merge runs of staccato sentences in action paragraphs.

    Consecutive action lines are read as one paragraph, so one short
    sentence per line still merges. Every run of three consecutive sentences
    under seven words becomes one sentence and counts as one combination. A
    paragraph with a merge is written back as a single line; paragraphs
    without one are returned byte-identical.

    Args:
        text: Unit text

    Returns:
        Tuple of (rewritten text, number of combinations)
    """
    lines = text.split('\n')
    dropped = set()
    total = 0
    for run in _action_runs(text):
        first = run[0].text
        paragraph = ' '.join(script_line.stripped for script_line in run)
        rewritten, combinations = _merge_paragraph(paragraph)
        if not combinations:
            continue
        indent = first[:len(first) - len(first.lstrip())]
        lines[run[0].index] = indent + rewritten
        dropped.update(script_line.index for script_line in run[1:])
        total += combinations

    if total:
        logger.debug(f"Combined {total} staccato sentence runs")
    return '\n'.join(line for i, line in enumerate(lines) if i not in dropped), total


def _split_sentence(sentence: str) -> str:
    words = sentence.split()
    mid = len(words) // 2
    while mid < len(words) - 2 and words[mid - 1].lower().strip(',;') in _WEAK_ENDINGS:
        mid += 1
    head = ' '.join(words[:mid]).rstrip(',;:—-')
    tail = ' '.join(words[mid:])
    return f"{head}. {capitalize_first(tail)}"


def enforce_extreme_variance(
    text: str,
    rng: random.Random,
    chance: float = 0.15,
    target: float = EXTREME_VARIANCE_TARGET,
) -> Tuple[str, int]:
    """
    Split some medium-length action sentences to widen the length spread.

    Runs only when the measured standard deviation is below ``target``.
    Short units report the default 5.0, so they always run. Each 8-14 word
    sentence is split at its midpoint with probability ``chance``. Sentences
    are only ever shortened.

    Args:
        text: Unit text
        rng: Random source
        chance: Per-sentence split probability
        target: Standard deviation the pass aims for

    Returns:
        Tuple of (rewritten text, number of splits)

    Raises:
        ValidationError: If ``chance`` is not a probability
    """
    require_probability(chance, "chance")
    stats = calculate_sentence_variance(text)
    if stats.std_dev >= target:
        return text, 0

    low, high = MEDIUM_RANGE
    lines = text.split('\n')
    splits = 0
    for script_line in classify_lines(text):
        if script_line.kind != LineKind.ACTION:
            continue
        sentences = split_sentences(script_line.text)
        changed = False
        for i, sentence in enumerate(sentences):
            if low <= sentence_word_count(sentence) <= high and rng.random() < chance:
                sentences[i] = _split_sentence(sentence)
                changed = True
                splits += 1
        if changed:
            indent = script_line.text[:len(script_line.text) - len(script_line.text.lstrip())]
            lines[script_line.index] = indent + ' '.join(sentences)

    if splits:
        logger.debug(f"Split {splits} medium-length sentences (std dev {stats.std_dev})")
    return '\n'.join(lines), splits
