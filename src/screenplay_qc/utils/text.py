"""
Small text helpers shared by the rewriting passes.
"""

import re
from typing import Iterable, List, Tuple

SENTENCE_BOUNDARY = re.compile(r'(?<=[.!?])\s+')


def split_sentences(text: str) -> List[str]:
    """Split a paragraph on whitespace that follows terminal punctuation."""
    if not text.strip():
        return []
    return [s for s in SENTENCE_BOUNDARY.split(text.strip()) if s]


def sentence_word_count(sentence: str) -> int:
    return len(sentence.split())


def splice(text: str, edits: Iterable[Tuple[int, int, str]]) -> str:
    """
    Apply non-overlapping ``(start, end, replacement)`` edits to ``text``.

    Edits are applied from the last position to the first so earlier offsets
    stay valid. An empty replacement also swallows one neighbouring space, so
    deleting a phrase never leaves a double space or a space before
    punctuation.

    Args:
        text: Original text
        edits: Character spans to replace

    Returns:
        Rewritten text
    """
    result = text
    for start, end, replacement in sorted(edits, key=lambda e: e[0], reverse=True):
        if replacement == "":
            before_is_space = start > 0 and result[start - 1] in " \t"
            after = result[end:end + 1]
            if before_is_space and (after in (" ", "\t") or after == "" or after in ",.;:!?\n"):
                start -= 1
            elif not before_is_space and after in (" ", "\t"):
                end += 1
        result = result[:start] + replacement + result[end:]
    return result


def capitalize_first(text: str) -> str:
    """Upper-case the first alphabetic character, leaving the rest alone."""
    for i, ch in enumerate(text):
        if ch.isalpha():
            return text[:i] + ch.upper() + text[i + 1:]
    return text


def match_case(original: str, replacement: str) -> str:
    """Capitalize ``replacement`` when ``original`` starts with a capital."""
    if original[:1].isupper():
        return capitalize_first(replacement)
    return replacement


def excerpt(text: str, limit: int = 60) -> str:
    """Trim text for reports and surgical prompts."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."
