"""
Tests for the sensory, verbal friction and somatic injectors.
"""

import random

import pytest

from src.screenplay_qc.injectors import (
    VERBAL_FRICTION_TYPES,
    inject_sensory_details,
    inject_somatic_markers,
    inject_verbal_friction,
    sensory_density,
)
from src.screenplay_qc.patterns import SENSORY_DETAILS, SOMATIC_MARKERS
from src.screenplay_qc.utils.errors import ValidationError
from src.screenplay_qc.utils.line_classifier import LineKind, classify_lines
from src.screenplay_qc.voice_analyzer import check_verbal_messiness
from tests.conftest import build_scenes, dialogue_block

ALL_DETAILS = {detail for details in SENSORY_DETAILS.values() for detail in details}

SPOKEN = "I think we should call the police before midnight."


def inserted_details(text):
    return [line.stripped for line in classify_lines(text) if line.stripped in ALL_DETAILS]


class TestSensoryInjection:
    def test_injection_count_is_capped(self):
        text = build_scenes(20)
        result, count = inject_sensory_details(text, random.Random(5), target_density=1000.0)
        assert count == 15
        assert len(inserted_details(result)) == 15

    def test_no_detail_repeats(self):
        text = build_scenes(20)
        result, _ = inject_sensory_details(text, random.Random(9), target_density=1000.0)
        details = inserted_details(result)
        assert len(details) == len(set(details))

    def test_lines_already_present_are_not_reused(self):
        text = build_scenes(10) + "\nPipes groan overhead.\n"
        result, count = inject_sensory_details(text, random.Random(2), target_density=1000.0)
        assert count == 10
        assert result.count("Pipes groan overhead.") == 1

    def test_inserted_lines_are_action_after_headings(self):
        text = build_scenes(4)
        result, count = inject_sensory_details(text, random.Random(11), target_density=1000.0)
        assert count == 4
        lines = classify_lines(result)
        for line in lines:
            if line.stripped in ALL_DETAILS:
                assert line.kind == LineKind.ACTION
                assert lines[line.index - 2].kind == LineKind.SCENE_HEADING

    def test_needed_lines_follow_density_deficit(self):
        # 180 words at zero density need ceil(3.0 * 180 / 1000) = 1 line
        text = build_scenes(20)
        assert sensory_density(text) == 0.0
        _, count = inject_sensory_details(text, random.Random(5))
        assert count == 1

    def test_dense_text_untouched(self):
        text = "INT. ROOM - DAY\n\nThe cold pipes hum. A sour smell."
        result, count = inject_sensory_details(text, random.Random(5))
        assert count == 0
        assert result == text

    def test_same_seed_same_output(self):
        text = build_scenes(12)
        first, _ = inject_sensory_details(text, random.Random(77), target_density=1000.0)
        second, _ = inject_sensory_details(text, random.Random(77), target_density=1000.0)
        assert first == second

    def test_no_headings(self):
        assert inject_sensory_details("Just action.", random.Random(1)) == ("Just action.", 0)


class TestVerbalFriction:
    def unit(self):
        return "INT. ROOM - DAY\n\nMara waits by the window.\n\n" + dialogue_block("MARA", *[SPOKEN] * 5)

    def test_every_transform_changes_a_long_line(self):
        for name, transform in VERBAL_FRICTION_TYPES.items():
            assert transform(SPOKEN, random.Random(3)) != SPOKEN, name

    def test_short_lines_left_alone_by_length_gated_transforms(self):
        assert VERBAL_FRICTION_TYPES["trail_off"]("Go home.", random.Random(1)) == "Go home."
        assert VERBAL_FRICTION_TYPES["interruption"]("Go home.", random.Random(1)) == "Go home."

    def test_injections_capped_per_unit(self):
        result, count = inject_verbal_friction(self.unit(), random.Random(8), chance=1.0, max_injections=3)
        assert count == 3
        spoken = [line.stripped for line in classify_lines(result) if line.kind == LineKind.DIALOGUE]
        assert sum(1 for line in spoken if line != SPOKEN) == 3

    def test_zero_chance_changes_nothing(self):
        text = self.unit()
        assert inject_verbal_friction(text, random.Random(8), chance=0.0) == (text, 0)

    def test_action_lines_untouched(self):
        result, _ = inject_verbal_friction(self.unit(), random.Random(8), chance=1.0)
        assert "Mara waits by the window." in result.split("\n")

    def test_self_correction_swaps_pronoun(self):
        corrected = VERBAL_FRICTION_TYPES["self_correction"]("Give me the keys.", random.Random(1))
        assert corrected == "Give me-- us the keys."

    def test_false_start_restarts_the_line(self):
        restarted = VERBAL_FRICTION_TYPES["false_start"](SPOKEN, random.Random(1))
        assert restarted == "I think-- No. " + SPOKEN

        found = check_verbal_messiness(dialogue_block("MARA", restarted))["found"]
        assert "false_start: 1x" in found

    def test_invalid_chance_rejected(self):
        with pytest.raises(ValidationError):
            inject_verbal_friction(self.unit(), random.Random(1), chance=1.5)


class TestSomaticMarkers:
    def test_stated_emotions_become_sensations(self):
        text = "INT. ROOM - DAY\n\nShe feels scared. Anger rises in Mara.\n\nMARA\nI feel scared."
        result, count = inject_somatic_markers(text, random.Random(4))
        action = result.split("\n")[2]

        assert count == 2
        assert action.startswith("Her ")
        assert any(marker in action for marker in SOMATIC_MARKERS["fear"])
        assert "Mara's " in action
        assert "scared" not in action
        assert result.endswith("MARA\nI feel scared.")

    def test_mid_sentence_stays_lowercase(self):
        text = "Then he feels nervous."
        result, count = inject_somatic_markers(text, random.Random(4))
        assert count == 1
        assert result.startswith("Then his ")

    def test_plain_action_unchanged(self):
        text = "Mara crosses the room."
        assert inject_somatic_markers(text, random.Random(4)) == (text, 0)
