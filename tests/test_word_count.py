"""
Tests for word counting, document offsets and the splice helpers.
"""

from src.screenplay_qc.utils.text import capitalize_first, excerpt, match_case, splice, split_sentences
from src.screenplay_qc.utils.word_count import count_words, word_offset, words_per_thousand


def test_word_count_basic():
    """Tests basic word counting functionality."""
    assert count_words("This is a test sentence with seven words.") == 8


def test_word_count_empty():
    """Tests word counting with empty text and None values."""
    assert count_words("") == 0
    assert count_words(None) == 0
    assert count_words("   \n\t ") == 0


def test_word_count_ignores_line_structure():
    assert count_words("INT. HOUSE - DAY\n\nMARA\nHello.") == 6


def test_word_offset_is_document_absolute():
    """Tests that offsets add the words already in the document."""
    text = "one two three four"
    position = text.index("three")
    assert word_offset(text, position) == 2
    assert word_offset(text, position, base_offset=1000) == 1002


def test_words_per_thousand():
    assert words_per_thousand(3, 1000) == 3.0
    assert words_per_thousand(3, 0) == 0.0


def test_splice_applies_edits_back_to_front():
    text = "the gun and the gun"
    assert splice(text, [(0, 7, "it"), (12, 19, "it")]) == "it and it"


def test_splice_deletion_swallows_one_space():
    """Tests that deleting a phrase leaves no double space."""
    assert splice("He sighs loudly.", [(3, 8, "")]) == "He loudly."
    assert splice("He sighs.", [(3, 8, "")]) == "He."


def test_split_sentences():
    assert split_sentences("He runs. She stops! Why?") == ["He runs.", "She stops!", "Why?"]
    assert split_sentences("   ") == []


def test_case_helpers():
    assert capitalize_first("  it") == "  It"
    assert match_case("The gun", "it") == "It"
    assert match_case("the gun", "it") == "it"
    assert excerpt("x" * 100, limit=10) == "x" * 10 + "..."
