"""
Word counting and document offsets.

Cooldown enforcement measures distances in words across the whole document,
so every component must agree on what a "word" is: a run of non-whitespace.
"""


def count_words(text):
    """
    Count words in text.

    Args:
        text: String to count words in

    Returns:
        Word count as integer (0 for empty or non-string input)
    """
    if not text or not isinstance(text, str):
        return 0
    return len(text.split())


def word_offset(text, position, base_offset=0):
    """
    Absolute word index of the word starting at a character position.

    Args:
        text: Unit text
        position: Character index into ``text``
        base_offset: Words already in the document before this unit

    Returns:
        ``base_offset`` plus the number of words fully preceding ``position``
    """
    return base_offset + count_words(text[:position])


def words_per_thousand(count, word_count):
    """
    Density of ``count`` occurrences per 1000 words.

    Returns 0.0 when there are no words to measure against.
    """
    if word_count <= 0:
        return 0.0
    return count * 1000.0 / word_count
