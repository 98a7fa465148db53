"""
Tests for the developer CLI.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from src.screenplay_qc.cli import cli
from src.screenplay_qc.models import PersistentContext
from tests.conftest import CLEAN_UNIT, dialogue_block

CLINICAL_UNIT = CLEAN_UNIT + "\n" + dialogue_block(
    "HALE",
    "It is imperative that I require the ledger.",
    "It would appear they know.",
)


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def units(tmp_path):
    clean = tmp_path / "seq1.txt"
    clean.write_text(CLEAN_UNIT, encoding="utf-8")
    clinical = tmp_path / "seq2.txt"
    clinical.write_text(CLINICAL_UNIT, encoding="utf-8")
    return clean, clinical


def test_process_accepted_unit(runner, units, tmp_path):
    clean, _ = units
    context_file = tmp_path / "context.json"
    out_dir = tmp_path / "out"

    result = runner.invoke(cli, [
        "process", str(clean),
        "--seed", "7",
        "--save-context", str(context_file),
        "--output-dir", str(out_dir),
    ])

    assert result.exit_code == 0, result.output
    entries = json.loads(result.output)
    assert len(entries) == 1
    assert entries[0]["hard_reject"] is False
    assert entries[0]["report"]["sequence_number"] == 1

    context = PersistentContext.model_validate_json(context_file.read_text(encoding="utf-8"))
    assert context.total_word_count == entries[0]["report"]["word_count"]
    assert (out_dir / "seq1.txt").read_text(encoding="utf-8").startswith("INT. DINER - NIGHT")


def test_process_is_reproducible_with_seed(runner, units):
    clean, _ = units
    first = runner.invoke(cli, ["process", str(clean), "--seed", "3"])
    second = runner.invoke(cli, ["process", str(clean), "--seed", "3"])
    assert first.output == second.output


def test_process_stops_at_hard_reject(runner, units, tmp_path):
    clean, clinical = units
    result = runner.invoke(cli, ["process", str(clinical), str(clean)])

    assert result.exit_code == 2
    entries = json.loads(result.output)
    assert len(entries) == 1
    assert entries[0]["hard_reject"] is True
    assert entries[0]["surgical_prompt"].startswith("SURGICAL CORRECTIONS REQUIRED")


def test_process_threads_context_and_sequence_numbers(runner, units, tmp_path):
    clean, _ = units
    second = tmp_path / "seq2_clean.txt"
    second.write_text(CLEAN_UNIT, encoding="utf-8")

    result = runner.invoke(cli, ["process", str(clean), str(second), "--start", "4", "--seed", "1"])

    assert result.exit_code == 0, result.output
    entries = json.loads(result.output)
    assert [e["report"]["sequence_number"] for e in entries] == [4, 5]


def test_process_with_characters(runner, units, tmp_path):
    clean, _ = units
    characters = tmp_path / "characters.json"
    characters.write_text(json.dumps([{"name": "Jonah", "dialogue_archetype": "The Professor"}]), encoding="utf-8")

    result = runner.invoke(cli, ["process", str(clean), "--characters", str(characters)])

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)[0]["report"]
    assert report["professor_check"]["needs_humanization"] is True


def test_bad_context_file(runner, units, tmp_path):
    clean, _ = units
    context_file = tmp_path / "context.json"
    context_file.write_text('{"object_credits": {"gun": -1}}', encoding="utf-8")

    result = runner.invoke(cli, ["process", str(clean), "--context", str(context_file)])

    assert result.exit_code == 1
    assert "VALIDATION_ERROR" in result.output


def test_unreadable_characters_file(runner, units, tmp_path):
    clean, _ = units
    characters = tmp_path / "characters.json"
    characters.write_text("not json", encoding="utf-8")

    result = runner.invoke(cli, ["process", str(clean), "--characters", str(characters)])

    assert result.exit_code == 1
    assert "INTERNAL_ERROR" in result.output


def test_bad_setting_in_environment(runner, units):
    clean, _ = units
    result = runner.invoke(cli, ["process", str(clean)], env={"SCREENPLAY_QC_MAX_STUTTERS": "five"})
    assert result.exit_code == 1
    assert "CONFIGURATION_ERROR" in result.output


def test_scan_json(runner, units):
    _, clinical = units
    result = runner.invoke(cli, ["scan", str(clinical), "--format", "json"])

    assert result.exit_code == 0, result.output
    detectors = json.loads(result.output)
    assert len(detectors) == 17
    assert detectors["clinical_dialogue"]["is_hard_reject"] is True


def test_scan_table(runner, units):
    clean, _ = units
    result = runner.invoke(cli, ["scan", str(clean)])
    assert result.exit_code == 0
    assert "clinical_dialogue" in result.output
    assert "0 detector(s) would reject this sequence." in result.output


def test_missing_file(runner):
    result = runner.invoke(cli, ["scan", str(Path("does-not-exist.txt"))])
    assert result.exit_code == 2
