"""
Tests for the data model, settings and error payloads.
"""

import dataclasses

import pytest
from pydantic import ValidationError as ModelValidationError

from src.screenplay_qc.models import (
    MAX_EXAMPLES,
    CharacterProfile,
    CharacterRole,
    DetectorResult,
    DialogueArchetype,
    PersistentContext,
    SequenceSummary,
)
from src.screenplay_qc.settings import PipelineSettings
from src.screenplay_qc.utils.errors import (
    ConfigurationError,
    ValidationError,
    create_error_response,
    require_probability,
    require_text,
)


class TestPersistentContext:
    def test_create_is_empty(self):
        context = PersistentContext.create()
        assert context.tic_credits == {}
        assert context.prop_last_position == {}
        assert context.total_word_count == 0
        assert context.sequence_summaries == []

    def test_instances_do_not_share_state(self):
        first = PersistentContext.create()
        second = PersistentContext.create()
        first.object_credits["gun"] = 1
        assert second.object_credits == {}

    def test_negative_counts_rejected(self):
        with pytest.raises(ModelValidationError):
            PersistentContext(object_credits={"gun": -1})
        with pytest.raises(ModelValidationError):
            PersistentContext(total_word_count=-5)

    def test_json_round_trip(self):
        context = PersistentContext(
            tic_credits={"sigh": 2},
            sequence_summaries=[SequenceSummary(sequence_number=1, summary="Mara finds the ledger")],
        )
        restored = PersistentContext.model_validate_json(context.model_dump_json())
        assert restored == context
        assert context.to_dict()["tic_credits"] == {"sigh": 2}


class TestCharacterProfile:
    def test_defaults_and_cue_name(self):
        profile = CharacterProfile(name=" Dr. Hale ")
        assert profile.role == CharacterRole.SUPPORTING
        assert profile.dialogue_archetype is None
        assert profile.cue_name == "DR. HALE"

    def test_archetype_is_closed_set(self):
        assert CharacterProfile(name="Hale", dialogue_archetype="The Professor").dialogue_archetype == DialogueArchetype.PROFESSOR
        with pytest.raises(ModelValidationError):
            CharacterProfile(name="Hale", dialogue_archetype="The Philosopher")

    def test_profiles_are_read_only(self, professor):
        with pytest.raises(ModelValidationError):
            professor.name = "Someone Else"

    def test_name_required(self):
        with pytest.raises(ModelValidationError):
            CharacterProfile(name="")


class TestDetectorResult:
    def test_examples_capped(self):
        result = DetectorResult(name="x", count=9, examples=[str(i) for i in range(9)])
        assert len(result.examples) == MAX_EXAMPLES
        assert result.examples == ["0", "1", "2", "3", "4"]

    def test_frozen(self):
        result = DetectorResult(name="x", count=1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.count = 2

    def test_to_dict(self):
        result = DetectorResult(name="x", count=1, examples=["a"], is_hard_reject=True, details={"k": 1})
        assert result.to_dict() == {
            "name": "x",
            "count": 1,
            "examples": ["a"],
            "is_hard_reject": True,
            "details": {"k": 1},
        }


class TestPipelineSettings:
    def test_defaults(self):
        settings = PipelineSettings()
        assert settings.friction_chance == 0.08
        assert settings.max_friction_per_unit == 3
        assert settings.max_sensory_injections == 15
        assert settings.max_ellipses == 10
        assert settings.max_stutters == 5

    def test_from_env_overrides(self):
        settings = PipelineSettings.from_env({
            "SCREENPLAY_QC_FRICTION_CHANCE": "0.5",
            "SCREENPLAY_QC_MAX_ELLIPSES": "4",
            "SCREENPLAY_QC_MAX_SCENES": "",
        })
        assert settings.friction_chance == 0.5
        assert settings.max_ellipses == 4
        assert settings.max_scenes == 100

    def test_from_env_bad_number(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PipelineSettings.from_env({"SCREENPLAY_QC_MAX_STUTTERS": "five"})
        assert exc_info.value.details["setting"] == "max_stutters"

    def test_out_of_range_values(self):
        with pytest.raises(ConfigurationError):
            PipelineSettings(friction_chance=1.5)
        with pytest.raises(ConfigurationError):
            PipelineSettings(max_ellipses=-1)

    def test_to_dict(self):
        assert PipelineSettings().to_dict()["combined_phrase_threshold"] == 10


class TestErrors:
    def test_validation_error_payload(self):
        with pytest.raises(ValidationError) as exc_info:
            require_text(3, field="content")
        payload = exc_info.value.to_dict()
        assert payload["error_code"] == "VALIDATION_ERROR"
        assert payload["details"] == {"field": "content"}

    def test_require_probability(self):
        assert require_probability(1, "chance") == 1.0
        with pytest.raises(ValidationError):
            require_probability(-0.1, "chance")

    def test_unexpected_errors_are_masked(self):
        response = create_error_response(RuntimeError("boom"))
        assert response["error_code"] == "INTERNAL_ERROR"
        assert "boom" not in response["error"]

    def test_pipeline_errors_pass_through(self):
        error = ConfigurationError("max_scenes", "x", "expected int")
        assert create_error_response(error)["error_code"] == "CONFIGURATION_ERROR"
