"""
Shared pytest fixtures for the test suite.

Provides small screenplay units that pass every detector, plus builders for
the larger synthetic texts the boundary tests need.
"""

import random

import pytest

from src.screenplay_qc.models import CharacterProfile, PersistentContext
from src.screenplay_qc.settings import PipelineSettings


CLEAN_UNIT = """INT. DINER - NIGHT

Rain needles the window. MARA (40s, tired eyes) slides into a booth across from JONAH (30s), who is already halfway through a plate of fries.

MARA
You ordered without me.

JONAH
You were twenty minutes late. The fries were getting lonely.

MARA
Did you bring the ledger?

JONAH
(pushing a folder across)
Page six. Somebody moved forty grand through the bakery account.

MARA
The bakery on Fifth? They can barely afford flour.

JONAH
That's my point.

EXT. PARKING LOT - CONTINUOUS

Mara walks to her car and fumbles with the keys. A truck idles two rows over, headlights off.
"""


def build_scenes(count: int, interior_every: int = 2) -> str:
    """
    Screenplay-shaped text with ``count`` scene headings.

    Every ``interior_every``-th heading is INT., the rest EXT.
    """
    blocks = []
    for i in range(count):
        prefix = "INT." if i % interior_every == 0 else "EXT."
        blocks.append(f"{prefix} LOCATION {i} - DAY\n\nMara crosses the room.")
    return "\n\n".join(blocks) + "\n"


def dialogue_block(speaker: str, *lines: str) -> str:
    """A character cue followed by its dialogue lines."""
    return "\n".join((speaker,) + lines)


@pytest.fixture
def clean_unit():
    return CLEAN_UNIT


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def context():
    return PersistentContext.create()


@pytest.fixture
def settings():
    return PipelineSettings()


@pytest.fixture
def professor():
    return CharacterProfile(
        name="Hale",
        role="supporting",
        dialogue_archetype="The Professor",
    )
