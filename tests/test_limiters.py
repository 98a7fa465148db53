"""
Tests for the credit-based limiters.

Verifies:
- first N occurrences survive byte-for-byte, later ones are rewritten
- document-wide credits never decrease and never pass the cap
- replacement strategy per limiter
"""

import re

from src.screenplay_qc.limiters import (
    enforce_exit_cliche_limits,
    enforce_object_tic_limits,
    enforce_tic_limits,
    pronoun_for,
    verb_tense,
)
from src.screenplay_qc.patterns import OBJECT_TICS, EXIT_CLICHES, TIC_PATTERNS, ObjectTic, TicPattern

SIGH_LINES = [
    "Mara sighs at the stove.",
    "Jonah sighs by the door.",
    "Mara sighs into her coffee.",
    "Jonah sighs at the window.",
    "Mara sighs once more.",
]


def test_order_preserved_under_cap():
    """First two occurrences are byte-identical; three to five are replaced."""
    sigh = next(t for t in TIC_PATTERNS if t.name == "sigh")
    text = "\n\n".join(SIGH_LINES)

    result = enforce_tic_limits(text, {}, patterns=[sigh])
    lines = result.content.split("\n\n")

    assert lines[0] == SIGH_LINES[0]
    assert lines[1] == SIGH_LINES[1]
    assert lines[2] == "Mara pauses."
    assert lines[3] == "Jonah waits."
    assert lines[4] == "Mara hesitates once more."
    assert result.replaced == 3
    assert result.updated_credits == {"sigh": 2}


def test_tic_rotation_includes_deletion():
    tic = TicPattern("nod", re.compile(r"\bnods\b"), 0)
    text = "A nods. B nods. C nods. D nods."
    result = enforce_tic_limits(text, {}, patterns=[tic])
    assert result.content == "A pauses. B waits. C hesitates. D."


def test_tic_replacement_keeps_tense():
    nod = next(t for t in TIC_PATTERNS if t.name == "nod")
    text = "He nodded. She nodded. They nodded. He nodded at Mara. She nods."
    result = enforce_tic_limits(text, {}, patterns=[nod])
    assert result.content == "He nodded. She nodded. They nodded. He paused. She waits."


def test_verb_tense():
    assert verb_tense("nodded at Mara") == "past"
    assert verb_tense("clenching her jaw") == "progressive"
    assert verb_tense("sighs") == "present"
    assert verb_tense("adjust his glasses") == "base"


def test_tic_cap_applies_per_unit():
    tic = TicPattern("sigh", re.compile(r"\bsighs\b"), 2)
    first = enforce_tic_limits("He sighs. She sighs.", {}, patterns=[tic])
    second = enforce_tic_limits("He sighs. She sighs.", first.updated_credits, patterns=[tic])
    assert second.replaced == 0
    assert second.updated_credits["sigh"] == 4


def test_tic_warning_and_input_untouched():
    credits = {"sigh": 1}
    result = enforce_tic_limits("He sighs. He sighs. He sighs.", credits)
    assert credits == {"sigh": 1}
    assert any("sigh" in warning for warning in result.warnings)


def test_default_tic_patterns():
    text = "Mara takes a deep breath. Jonah takes a deep breath."
    result = enforce_tic_limits(text)
    assert result.content == "Mara takes a deep breath. Jonah pauses."


def test_object_credits_monotonic_across_units():
    """Credits grow across units and stop at the cap."""
    unit = "Mara lifts the gun. Jonah eyes the gun. The gun stays on the table."
    credits = {}
    history = []
    contents = []
    for _ in range(3):
        result = enforce_object_tic_limits(unit, credits)
        credits = result.updated_credits
        history.append(credits["gun"])
        contents.append(result.content)

    assert history == [3, 6, 6]
    assert all(a <= b for a, b in zip(history, history[1:]))
    assert max(history) <= 6
    assert contents[0] == unit
    assert contents[2] == "Mara lifts it. Jonah eyes it. It stays on the table."


def test_object_credits_never_decrease_from_input():
    credits = {"gun": 6, "cigarette": 2}
    result = enforce_object_tic_limits("No props here.", credits)
    assert result.updated_credits == credits
    assert result.content == "No props here."


def test_object_pronoun_plural():
    tic = ObjectTic("cigarette", re.compile(r"\b(?:his\s+)?cigarettes?\b"), 0, "pronoun")
    result = enforce_object_tic_limits("He crushes his cigarettes.", {}, objects=[tic])
    assert result.content == "He crushes them."
    assert pronoun_for("the gun") == "it"
    assert pronoun_for("the guns") == "them"


def test_object_pause_for_checking_verbs():
    check_watch = next(t for t in OBJECT_TICS if t.name == "check_watch")
    result = enforce_object_tic_limits(
        "She checks her watch. He checks his watch. She checks her watch again.",
        {},
        objects=[check_watch],
    )
    assert result.content == "She checks her watch. He checks his watch. She pauses again."
    assert result.updated_credits == {"check_watch": 2}


def test_object_pause_keeps_past_tense():
    check_watch = next(t for t in OBJECT_TICS if t.name == "check_watch")
    result = enforce_object_tic_limits("She checked her watch.", {"check_watch": 2}, objects=[check_watch])
    assert result.content == "She paused."


def test_object_delete_replacement():
    tic = ObjectTic("hat", re.compile(r"\bthe hat\b"), 1, "delete")
    result = enforce_object_tic_limits("He lifts the hat and drops the hat slowly.", {}, objects=[tic])
    assert result.content == "He lifts the hat and drops slowly."


def test_object_determiner_inside_word_not_matched():
    result = enforce_object_tic_limits("Is this gun loaded?", {"gun": 6})
    assert result.content == "Is this it loaded?"


def test_exit_cliche_cap_is_global():
    unit = "Mara walks into the rain."
    first = enforce_exit_cliche_limits(unit, {})
    assert first.content == unit
    assert first.updated_credits == {"walks_into_rain": 1}

    second = enforce_exit_cliche_limits(unit, first.updated_credits)
    assert second.content == "Mara walks out."
    assert second.updated_credits == {"walks_into_rain": 1}
    assert second.warnings


def test_exit_alternatives_rotate():
    text = "A walks into the rain. B walks into the rain. C walks into the rain."
    result = enforce_exit_cliche_limits(text, {})
    assert result.content == "A walks into the rain. B walks out. C leaves."
    assert result.replaced == 2


def test_exit_credits_bounded_by_cap():
    credits = {}
    for _ in range(4):
        result = enforce_exit_cliche_limits("He vanishes into the night. She disappears into the crowd.", credits)
        for cliche in EXIT_CLICHES:
            assert result.updated_credits.get(cliche.name, 0) >= credits.get(cliche.name, 0)
            assert result.updated_credits.get(cliche.name, 0) <= cliche.max_per_screenplay
        credits = result.updated_credits
