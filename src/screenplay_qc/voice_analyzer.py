"""
Character Voice Analyzer

Analyzes screenplay dialogue per speaker to catch voices that have collapsed
into one another, and runs the softer dialogue checks whose findings become
corrective notes rather than rejections:

- Voice homogeneity: shared filler openers and near-identical rhythm
- Verbal messiness: stutters, trail-offs and fillers that real speech has
- Noir template: too many pithy one-liners
- Professor archetype: lecturing characters with nothing human about them
"""

import logging
import re
import statistics
from collections import Counter, defaultdict
from itertools import combinations
from typing import Dict, List, Optional, Sequence

from .models import CharacterProfile, DetectorResult, DialogueArchetype
from .patterns import (
    DIALOGUE_STARTER_MARKERS,
    MESSINESS_PATTERNS,
    NOIR_ONE_LINER_PATTERNS,
    PROFESSOR_ARMOR_CRACKS,
    PROFESSOR_HOBBIES,
    PROFESSOR_IMPERFECTIONS,
)
from .settings import PipelineSettings
from .utils.line_classifier import dialogue_by_speaker, dialogue_lines
from .utils.text import sentence_word_count, split_sentences

logger = logging.getLogger(__name__)

MIN_MESSINESS_TYPES = 2
NOIR_MAX_WORDS = 8
NOIR_RATIO = 0.4
NOIR_MIN_COUNT = 5

_LEADING_WORD = re.compile(r"^[^A-Za-z]*([A-Za-z']+)")


def _first_word(line: str) -> Optional[str]:
    match = _LEADING_WORD.match(line)
    return match.group(1).lower() if match else None


class SpeechPatternAnalyzer:
    """Per-speaker rhythm and opener statistics."""

    def analyze_speaker(self, lines: List[str]) -> Dict:
        """
        Analyze all the lines one character speaks.

        Args:
            lines: Dialogue lines for a single speaker

        Returns:
            Dict with analysis:
            {
                "line_count": int,
                "sentence_count": int,
                "avg_sentence_length": float,
                "starters": Dict[str, int],  # first word -> uses
                "contraction_ratio": float,
            }
        """
        if not lines:
            return self._empty_analysis()

        lengths = []
        for line in lines:
            lengths.extend(sentence_word_count(s) for s in split_sentences(line))
        words = re.findall(r"\b[\w']+\b", ' '.join(lines).lower())
        contractions = len(re.findall(r"\b\w+'(?:t|s|d|ll|ve|re|m)\b", ' '.join(lines).lower()))

        starters = Counter(w for w in (_first_word(line) for line in lines) if w)

        return {
            "line_count": len(lines),
            "sentence_count": len(lengths),
            "avg_sentence_length": round(statistics.mean(lengths), 2) if lengths else 0.0,
            "starters": dict(starters),
            "contraction_ratio": round(contractions / len(words), 3) if words else 0.0,
        }

    def _empty_analysis(self) -> Dict:
        return {
            "line_count": 0,
            "sentence_count": 0,
            "avg_sentence_length": 0.0,
            "starters": {},
            "contraction_ratio": 0.0,
        }


class CharacterVoiceAnalyzer:
    """
    Detects dialogue in which every character sounds the same.

    Two signals, either of which rejects the unit:
    - two or more filler openers ("Look,", "Listen,") each used on more than
      ``starter_overuse_lines`` lines by at least two different characters
    - with at least ``voice_min_characters`` speakers, more than
      ``voice_similar_pair_ratio`` of speaker pairs have average sentence
      lengths within ``voice_rhythm_tolerance`` words of each other
    """

    def __init__(self, settings: Optional[PipelineSettings] = None):
        self.settings = settings or PipelineSettings()
        self.pattern_analyzer = SpeechPatternAnalyzer()

    def profile_speakers(self, text: str) -> Dict[str, Dict]:
        return {
            speaker: self.pattern_analyzer.analyze_speaker(lines)
            for speaker, lines in dialogue_by_speaker(text).items()
        }

    def overused_starters(self, profiles: Dict[str, Dict]) -> Dict[str, Dict]:
        """Filler openers shared across speakers, with use and speaker counts."""
        uses: Counter = Counter()
        speakers = defaultdict(set)
        for speaker, profile in profiles.items():
            for word, count in profile["starters"].items():
                if word in DIALOGUE_STARTER_MARKERS:
                    uses[word] += count
                    speakers[word].add(speaker)

        return {
            word: {"uses": count, "speakers": sorted(speakers[word])}
            for word, count in uses.items()
            if count > self.settings.starter_overuse_lines and len(speakers[word]) >= 2
        }

    def rhythm_similarity(self, profiles: Dict[str, Dict]) -> Dict:
        """Share of speaker pairs whose average sentence lengths nearly match."""
        eligible = {
            speaker: profile["avg_sentence_length"]
            for speaker, profile in profiles.items()
            if profile["line_count"] >= self.settings.voice_min_lines
        }
        pairs = list(combinations(sorted(eligible), 2))
        similar = [
            (a, b) for a, b in pairs
            if abs(eligible[a] - eligible[b]) <= self.settings.voice_rhythm_tolerance
        ]
        return {
            "characters": len(eligible),
            "pairs": len(pairs),
            "similar_pairs": len(similar),
            "ratio": round(len(similar) / len(pairs), 3) if pairs else 0.0,
            "examples": [f"{a} / {b}" for a, b in similar],
        }

    def detect_homogeneity(
        self,
        text: str,
        characters: Optional[Sequence[CharacterProfile]] = None,
    ) -> DetectorResult:
        """
        Run both homogeneity signals over a unit.

        Args:
            text: Unit text
            characters: Optional profiles, used to label speakers by archetype

        Returns:
            DetectorResult named ``voice_homogeneity``
        """
        profiles = self.profile_speakers(text)
        overused = self.overused_starters(profiles)
        rhythm = self.rhythm_similarity(profiles)

        rhythm_fail = (
            rhythm["characters"] >= self.settings.voice_min_characters
            and rhythm["ratio"] > self.settings.voice_similar_pair_ratio
        )
        examples = [
            f"\"{word.capitalize()}\" opens {info['uses']} lines ({', '.join(info['speakers'])})"
            for word, info in overused.items()
        ]
        if rhythm_fail:
            examples.extend(f"same rhythm: {pair}" for pair in rhythm["examples"])

        archetypes = {}
        for profile in characters or []:
            if profile.cue_name in profiles and profile.dialogue_archetype:
                archetypes[profile.cue_name] = profile.dialogue_archetype.value

        return DetectorResult(
            name="voice_homogeneity",
            count=len(overused),
            examples=examples,
            is_hard_reject=len(overused) >= 2 or rhythm_fail,
            details={
                "overused_starters": overused,
                "rhythm": {k: v for k, v in rhythm.items() if k != "examples"},
                "rhythm_homogeneous": rhythm_fail,
                "archetypes": archetypes,
            },
        )


def detect_voice_homogeneity(
    text: str,
    characters: Optional[Sequence[CharacterProfile]] = None,
    settings: Optional[PipelineSettings] = None,
) -> DetectorResult:
    """Convenience wrapper around CharacterVoiceAnalyzer.detect_homogeneity."""
    return CharacterVoiceAnalyzer(settings).detect_homogeneity(text, characters)


def check_verbal_messiness(text: str) -> Dict:
    """
    Check dialogue for the imperfections of real speech.

    Args:
        text: Unit text

    Returns:
        Dict with:
        {
            "has_messiness": bool,  # at least two kinds present
            "score": float,  # 0-100, share of kinds present
            "found": List[str],  # "stutter: 2x"
            "missing": List[str],  # descriptions of absent kinds
        }
    """
    spoken = '\n'.join(line.stripped for line in dialogue_lines(text))
    found = []
    missing = []
    for name, pattern, description in MESSINESS_PATTERNS:
        hits = len(pattern.findall(spoken))
        if hits:
            found.append(f"{name}: {hits}x")
        else:
            missing.append(description)

    return {
        "has_messiness": len(found) >= MIN_MESSINESS_TYPES,
        "score": round(min(100.0, len(found) / len(MESSINESS_PATTERNS) * 100), 1),
        "found": found,
        "missing": missing,
    }


def verbal_messiness_prompt(missing: List[str]) -> str:
    if not missing:
        return ""
    suggestions = '\n'.join(f"- {item}" for item in missing[:3])
    return (
        "VERBAL MESSINESS REQUIRED: the dialogue is too polished. Real people:\n"
        f"{suggestions}\n"
        "Add at least two of these, e.g. \"I just-- I don't know what to--\" "
        "or \"Look, it's not... it's complicated.\""
    )


def detect_noir_template(text: str) -> Dict:
    """
    Flag dialogue made mostly of pithy noir one-liners.

    A line counts when it has at most eight words and matches a one-liner
    shape. The unit is flagged when more than 40% of lines, and more than
    five lines in total, are one-liners.
    """
    lines = [line.stripped for line in dialogue_lines(text)]
    one_liners = 0
    for line in lines:
        if len(line.split()) <= NOIR_MAX_WORDS and any(p.match(line) for p in NOIR_ONE_LINER_PATTERNS):
            one_liners += 1

    ratio = one_liners / len(lines) if lines else 0.0
    has_problem = ratio > NOIR_RATIO and one_liners > NOIR_MIN_COUNT

    suggestions = []
    if has_problem:
        suggestions.append(
            f"Too many pithy one-liners ({one_liners}/{len(lines)} = {ratio:.0%}). "
            "Add messier exchanges: characters talking past each other, incomplete "
            "thoughts, interruptions, and small talk before the cool line."
        )
    return {
        "has_problem": has_problem,
        "one_liner_count": one_liners,
        "dialogue_lines": len(lines),
        "ratio": round(ratio, 3),
        "suggestions": suggestions,
    }


def check_professor_humanization(
    text: str,
    characters: Optional[Sequence[CharacterProfile]] = None,
) -> Dict:
    """
    Make sure every Professor-archetype character gets a human moment.

    A Professor passes with any one of: a mundane hobby mention, a physical
    imperfection, or an armor-cracking beat on a line naming them.

    Returns:
        Dict with ``needs_humanization``, ``warnings`` and ``suggestions``
    """
    professors = [c for c in characters or [] if c.dialogue_archetype == DialogueArchetype.PROFESSOR]
    warnings = []
    suggestions = []
    lowered = text.lower()

    for professor in professors:
        has_hobby = any(hobby in lowered for hobby in PROFESSOR_HOBBIES)
        has_imperfection = any(item in lowered for item in PROFESSOR_IMPERFECTIONS)
        name = re.escape(professor.name.strip())
        has_crack = any(
            re.search(name + r".*" + crack, text, re.IGNORECASE)
            for crack in PROFESSOR_ARMOR_CRACKS
        )
        if not (has_hobby or has_imperfection or has_crack):
            warnings.append(f"{professor.name} (Professor archetype) lacks humanizing details")
            suggestions.append(
                f"Give {professor.name} one human beat: a mundane hobby (crossword, "
                "gardening, old movies), a physical imperfection (coffee stain on the "
                "tie, messy desk) or an armor-cracking moment (forgets a word, admits "
                "uncertainty, actually laughs)."
            )

    if warnings:
        logger.debug(f"Professor check: {len(warnings)} character(s) need humanization")
    return {
        "needs_humanization": bool(warnings),
        "warnings": warnings,
        "suggestions": suggestions,
    }
