"""
Tests for prop cooldown enforcement.
"""

import re

from src.screenplay_qc.cooldown import enforce_prop_cooldown, last_prop_positions
from src.screenplay_qc.patterns import PropCooldown

LIGHTER = PropCooldown("lighter", re.compile(r"\bthe lighter\b", re.IGNORECASE), 10)


def test_mention_inside_cooldown_is_replaced():
    """Second mention nine words later violates a ten-word cooldown."""
    text = "the lighter " + "word " * 7 + "the lighter"
    result = enforce_prop_cooldown(text, {}, 0, cooldowns=[LIGHTER])

    assert len(result.violations) == 1
    violation = result.violations[0]
    assert violation.prop == "lighter"
    assert violation.distance == 9
    assert violation.required == 10
    assert result.content.endswith("word it")
    assert result.updated_positions == {"lighter": 0}


def test_mention_at_exact_cooldown_is_kept():
    text = "the lighter " + "word " * 8 + "the lighter"
    result = enforce_prop_cooldown(text, {}, 0, cooldowns=[LIGHTER])

    assert result.violations == []
    assert result.content == text
    assert result.updated_positions == {"lighter": 10}


def test_violation_does_not_move_last_position():
    text = "the lighter w w w the lighter w w w w w the lighter"
    result = enforce_prop_cooldown(text, {}, 0, cooldowns=[LIGHTER])

    assert [v.position for v in result.violations] == [5]
    assert result.updated_positions == {"lighter": 12}
    assert result.content == "the lighter w w w it w w w w w the lighter"


def test_positions_carry_across_units():
    result = enforce_prop_cooldown("the lighter burns.", {"lighter": 995}, 1000, cooldowns=[LIGHTER])

    assert result.violations[0].distance == 5
    assert result.violations[0].position == 1000
    assert result.content == "it burns."
    assert result.updated_positions == {"lighter": 995}
    assert result.new_word_count == 1002


def test_input_positions_not_mutated():
    positions = {"lighter": 0}
    enforce_prop_cooldown("w " * 20 + "the lighter", positions, 0, cooldowns=[LIGHTER])
    assert positions == {"lighter": 0}


def test_scale_shortens_cooldown():
    text = "the lighter w w w the lighter"
    result = enforce_prop_cooldown(text, {}, 0, cooldowns=[LIGHTER], scale=0.5)
    assert result.violations == []


def test_default_props():
    text = "Mara glances at her watch. Jonah taps his watch."
    result = enforce_prop_cooldown(text)

    assert result.content == "Mara glances at her watch. Jonah taps it."
    assert result.violations[0].prop == "watch"
    assert result.updated_positions == {"watch": 3}


def test_delete_replacement_for_cigarettes():
    text = "She lights a cigarette. He stubs out the cigarette."
    result = enforce_prop_cooldown(text)
    assert result.content == "She lights a cigarette. He stubs out."


def test_no_props():
    result = enforce_prop_cooldown("Nothing to see.", {}, 40)
    assert result.content == "Nothing to see."
    assert result.violations == []
    assert result.new_word_count == 43


def test_last_prop_positions_takes_final_mention():
    text = "the lighter " + "word " * 3 + "the lighter"
    assert last_prop_positions(text, 100, cooldowns=[LIGHTER]) == {"lighter": 105}
    assert last_prop_positions("Nothing to see.", 100, cooldowns=[LIGHTER]) == {}
