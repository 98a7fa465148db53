"""
Pattern libraries for screenplay quality control.

Fixed vocabularies and compiled regular expressions used by the detectors,
limiters and injectors. Compiled patterns carry no match state between calls,
so they are safe to share across documents and threads.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Pattern

_I = re.IGNORECASE


@dataclass(frozen=True)
class TicPattern:
    """Phrase-level verbal/physical tic capped per sequence."""
    name: str
    pattern: Pattern
    max_per_sequence: int


@dataclass(frozen=True)
class ObjectTic:
    """
    Prop habit capped across the whole screenplay.

    ``replacement`` is ``"pronoun"`` (it/them), ``"pause"`` or ``"delete"``.
    """
    name: str
    pattern: Pattern
    max_per_screenplay: int
    replacement: str


@dataclass(frozen=True)
class ExitCliche:
    """Scene-exit cliché capped across the whole screenplay."""
    name: str
    pattern: Pattern
    max_per_screenplay: int


@dataclass(frozen=True)
class PropCooldown:
    """Minimum word distance between two mentions of a prop."""
    name: str
    pattern: Pattern
    cooldown_words: int
    replacement: str = "pronoun"


# ---------------------------------------------------------------------------
# Dialogue tells
# ---------------------------------------------------------------------------

# Clinical/robotic vocabulary (only counted inside dialogue)
CLINICAL_VOCABULARY = [
    "it is imperative",
    "highly irregular",
    "I require",
    "it would appear",
    "one might suggest",
    "most certainly",
    "precisely so",
    "affirmative",
    "in my estimation",
    "spatial logistics",
    "I must insist",
    "it has come to my attention",
    "perhaps it would be prudent",
    "it is my understanding",
    "sufficient for",
    "it shall",
]

CLINICAL_PATTERNS = [
    (phrase, re.compile(r'\b' + re.escape(phrase) + r'\b', _I))
    for phrase in CLINICAL_VOCABULARY
]

# Characters announcing their feelings
ON_THE_NOSE_PATTERNS = [
    re.compile(r"\bI feel (?:so |really )?(?:angry|sad|happy|scared|betrayed|hurt|confused|lonely|afraid)\b", _I),
    re.compile(r"\bI(?:'m| am) (?:so |really )?(?:angry|sad|scared|confused|devastated|heartbroken|terrified)\b", _I),
    re.compile(r"\byou make me feel\b", _I),
    re.compile(r"\bwhat I(?:'m| am) trying to say is\b", _I),
    re.compile(r"\bthe truth is,? I\b", _I),
    re.compile(r"\bI have to be honest\b", _I),
    re.compile(r"\bcan I be honest with you\b", _I),
    re.compile(r"\bI(?:'m| am) feeling\b", _I),
    re.compile(r"\bmy feelings (?:are|for you)\b", _I),
]

# Phrases that read as machine-written anywhere in the script
BANNED_PHRASES = [
    "I need you to understand",
    "Here's the thing",
    "Let me be clear",
    "With all due respect",
    "To be honest with you",
    "I have to say",
    "Look, I get it, but",
    "The thing is",
    "I mean, think about it",
    "You have to understand",
    "At the end of the day",
    "It is what it is",
]

# "Banger" lines: trailer-speak philosophy in dialogue
BANGER_PATTERNS = [
    re.compile(r"\bThe (?:truth|reality|problem) is\b", _I),
    re.compile(r"\bWhat (?:really )?matters (?:most )?is\b", _I),
    re.compile(r"\bIn the end,", _I),
    re.compile(r"\bWhen you (?:really )?think about it\b", _I),
    re.compile(r"\bLife is (?:about|like|just)\b", _I),
    re.compile(r"\bThe thing about .+ is\b", _I),
    re.compile(r"\bWhat does it (?:even )?mean to\b", _I),
    re.compile(r"\bWho are we (?:really|truly)\b", _I),
    re.compile(r"\bWhat makes us (?:truly )?human\b", _I),
    re.compile(r"\bEverything (?:has )?changed\b", _I),
    re.compile(r"\bNothing will ever be the same\b", _I),
    re.compile(r"\bThis changes everything\b", _I),
    re.compile(r"\bThere's no going back\b", _I),
    re.compile(r"\bIn a world where\b", _I),
    re.compile(r"\bWhen all hope (?:seems|is) lost\b", _I),
]

# Stock one-line replies; each must match a whole dialogue line
GENERIC_RESPONSE_PATTERNS = [
    re.compile(r"^(?:Yeah|Yes|No|Okay|Sure|Right|Fine|Whatever)[.!]?$", _I),
    re.compile(r"^I (?:don't )?know\.?$", _I),
    re.compile(r"^What(?:\?|'s that\??)$", _I),
    re.compile(r"^Really\??$", _I),
    re.compile(r"^Are you sure\??$", _I),
    re.compile(r"^I(?:'m| am) sorry\.?$", _I),
    re.compile(r"^Thank you\.?$", _I),
    re.compile(r"^Of course\.?$", _I),
]

GENERIC_RESPONSE_ALTERNATIVES = [
    "Mm.",
    "Guess so.",
    "If you say so.",
    "Could be.",
    "Sure, sure.",
]

# Discourse markers that homogenize voices when everyone opens with them
DIALOGUE_STARTER_MARKERS = [
    "look", "listen", "well", "so", "okay", "hey", "honestly",
    "actually", "seriously", "right", "yeah", "oh", "now", "fine",
]

# ---------------------------------------------------------------------------
# Structural tells
# ---------------------------------------------------------------------------

TIME_JUMP_PATTERNS = [
    re.compile(r"\b(?:THREE|FOUR|FIVE|SIX|SEVEN|EIGHT|NINE|TEN|SEVERAL|MANY|FEW|COUPLE OF|\d+)\s+(?:DAYS?|WEEKS?|MONTHS?|YEARS?)\s+LATER\b", _I),
    re.compile(r"\bONE\s+(?:DAY|WEEK|MONTH|YEAR)\s+LATER\b", _I),
    re.compile(r"\bTWO\s+(?:DAYS?|WEEKS?|MONTHS?|YEARS?)\s+LATER\b", _I),
    re.compile(r"\bLATER\s+THAT\s+(?:DAY|NIGHT|WEEK|EVENING)\b", _I),
    re.compile(r"\bTHE\s+NEXT\s+(?:DAY|MORNING|WEEK)\b", _I),
    re.compile(r"\bMONTHS?\s+PASS\b", _I),
    re.compile(r"\bTIME\s+PASSES?\b", _I),
]

MONTAGE_PATTERNS = [
    re.compile(r"\bMONTAGE\b", _I),
    re.compile(r"\bSERIES OF (?:SHOTS|IMAGES|QUICK CUTS|SCENES)\b", _I),
    re.compile(r"\bQUICK CUTS\b", _I),
]

# Pure interiors only; INT./EXT. headings count toward the total but not the ratio
INTERIOR_HEADING_PATTERN = re.compile(r"^\s*INT\.(?!\s*/)")

START_OF_STORY_PATTERN = re.compile(r"\bFADE IN:", _I)

REINTRODUCTION_PATTERNS = [
    re.compile(r"\bwe (?:first )?meet\b", _I),
    re.compile(r"\bintroduces? (?:us to|the protagonist)\b", _I),
    re.compile(r"\bfor the first time\b", _I),
]

# ---------------------------------------------------------------------------
# Prose tells
# ---------------------------------------------------------------------------

WORD_REPETITION_PATTERNS = [
    re.compile(r"\b(\w+)\.[ \t]*\1\.", _I),
    re.compile(r"\b(\w+)[ \t]+\1\b", _I),
    re.compile(r"\b(?:I'm|I am)[ \t]+\w+\.[ \t]*(?:I'm|I am)[ \t]+\w+\.", _I),
]

PURPLE_PROSE_PATTERNS = [
    re.compile(r"\bdust motes? (?:dance|float|drift|swirl)", _I),
    re.compile(r"\bcathedral of\b", _I),
    re.compile(r"\bvelvet (?:hammer|voice|darkness|silence)\b", _I),
    re.compile(r"\bsilk(?:en|y)? (?:voice|tone|thread)\b", _I),
    re.compile(r"\b(?:golden|amber|honey) (?:light|glow|hue)\b", _I),
    re.compile(r"\bfingers? of (?:light|shadow|dawn|dusk)\b", _I),
    re.compile(r"\btapestry of\b", _I),
    re.compile(r"\bsymphony of\b", _I),
    re.compile(r"\bballet of\b", _I),
    re.compile(r"\bdance of (?:shadow|light|death|life)\b", _I),
    re.compile(r"\bmosaic of\b", _I),
    re.compile(r"\bkaleidoscope of\b", _I),
    re.compile(r"\bwith the grace of\b", _I),
    re.compile(r"\blike a (?:wounded|dying|fallen) (?:animal|bird|angel)\b", _I),
    re.compile(r"\bocean of (?:emotion|feeling|grief|sorrow)\b", _I),
    re.compile(r"\bweight of (?:the world|history|time|silence)\b", _I),
    re.compile(r"\bghost of a (?:smile|laugh|memory)\b", _I),
    re.compile(r"\bpregnant (?:pause|silence|moment)\b", _I),
    re.compile(r"\bdeafening silence\b", _I),
    re.compile(r"\bpalpable tension\b", _I),
    re.compile(r"\belectric (?:silence|tension|atmosphere)\b", _I),
]

# Trailing qualifiers bolted onto otherwise finished sentences
SEMANTIC_GLUE_PATTERNS = [
    re.compile(r",\s*somehow(?=[.!?])", _I),
    re.compile(r",\s*which said everything", _I),
    re.compile(r"\s*--\s*not that it mattered", _I),
    re.compile(r",\s*if you could call it that", _I),
    re.compile(r",\s*and it showed", _I),
    re.compile(r",\s*in a way(?=[.!?])", _I),
    re.compile(r",\s*for what it(?:'s| is| was) worth", _I),
]

# Wrap-up sentences that close a paragraph on a verdict
SUMMARY_ENDING_PATTERN = re.compile(
    r"(?:(?<=[.!?])\s+|^\s*)"
    r"(?:It was enough|And that was that|It meant everything|It meant nothing|"
    r"But still|That was all|Nothing more)\.\s*$",
    _I,
)

# Generator leakage: scene markers, sequence markers, meta notes, markdown
TECHNICAL_ARTIFACT_LINE_PATTERNS = [
    re.compile(r"^\s*\[(?:SCENE|SEQUENCE|END|BEGIN|PAGE|ACT|CONTINUED)[^\]]*\]\s*$", _I),
    re.compile(r"^\s*\**\s*(?:SCENE|SEQUENCE)\s+\d+\b.*$"),
    re.compile(r"^\s*\((?:Note|Continued|CONT'D|End of|Sequence|Author'?s note)[^)]*\)\s*$", _I),
    re.compile(r"^\s*(?:-{3,}|\*{3,}|```\w*)\s*$"),
    re.compile(r"^\s*#{1,6}\s+\S.*$"),
    re.compile(r"^\s*PAGE\s+\d+\s*$", _I),
]

MARKDOWN_BOLD_PATTERN = re.compile(r"\*\*([^*\n]+)\*\*")

# ---------------------------------------------------------------------------
# Credit-limited tics, props and exits
# ---------------------------------------------------------------------------

# Optional object after a gesture ("at Mara", "into her coffee"); replaced along with it
_GESTURE_OBJECT = r"(?:\s+(?:at|to|toward|towards|into|in|by|over|across)\s+(?:(?:his|her|their|the|a|an)\s+)?[\w']+)?"

TIC_PATTERNS = [
    TicPattern("glasses_adjust", re.compile(
        r"\b(?:clean|wipe|polish|adjust|push|remove)(?:s|es|ed|ing)?\s+(?:(?:his|her|their)\s+)?(?:glasses|spectacles)\b", _I), 1),
    TicPattern("sigh", re.compile(r"\bsigh(?:s|ed)\b" + _GESTURE_OBJECT, _I), 2),
    TicPattern("nod", re.compile(r"\bnod(?:s|ded)\b" + _GESTURE_OBJECT, _I), 3),
    TicPattern("jaw_clench", re.compile(r"\bclench(?:es|ed|ing)?\s+(?:his|her|their)\s+jaw\b", _I), 1),
    TicPattern("fist_ball", re.compile(r"\bball(?:s|ed|ing)?\s+(?:his|her|their)\s+fists?\b", _I), 1),
    TicPattern("throat_clear", re.compile(r"\bclear(?:s|ed|ing)?\s+(?:his|her|their)\s+throat\b", _I), 1),
    TicPattern("deep_breath", re.compile(r"\btakes?\s+a\s+deep\s+breath\b", _I), 1),
]

# Replacement rotation by the tense of the matched verb; "" deletes the tic
TIC_REPLACEMENTS: Dict[str, List[str]] = {
    "present": ["pauses", "waits", "hesitates", ""],
    "past": ["paused", "waited", "hesitated", ""],
    "progressive": ["pausing", "waiting", "hesitating", ""],
    "base": ["pause", "wait", "hesitate", ""],
}

_DETERMINER = r"(?:\b(?:his|her|their|the|a|an)\s+)"

OBJECT_TICS = [
    ObjectTic("check_watch", re.compile(
        r"\b(?:checks|check|checked|checking|glances at|looks at)\s+(?:his|her|their|the)\s+(?:wrist)?watch\b", _I),
        2, "pause"),
    ObjectTic("watch", re.compile(
        r"\b(?:his|her|their|the|a)\s+(?:wrist)?watch\b(?!\s*(?:tower|man|dog))", _I),
        4, "pronoun"),
    ObjectTic("gun", re.compile(
        _DETERMINER + r"?\b(?:gun|pistol|revolver|weapon|firearm)s?\b", _I),
        6, "pronoun"),
    ObjectTic("cigarette", re.compile(
        _DETERMINER + r"?\b(?:cigarette|cig)s?\b(?!\s*(?:alarm|smoke))", _I),
        5, "pronoun"),
    ObjectTic("stare_window", re.compile(
        r"\bstar(?:es|ed|ing)\s+out\s+(?:of\s+)?the\s+window\b", _I),
        2, "pause"),
]

EXIT_CLICHES = [
    ExitCliche("walks_into_rain", re.compile(
        r"\b(?:walks|steps|disappears|vanishes)\s+(?:out\s+)?into\s+the\s+rain\b", _I), 1),
    ExitCliche("into_the_night", re.compile(
        r"\b(?:walks|drives|disappears|vanishes|fades|slips)\s+(?:off\s+|away\s+)?into\s+the\s+(?:night|darkness|shadows)\b", _I), 1),
    ExitCliche("without_looking_back", re.compile(
        r"\bwalks\s+away\s+without\s+looking\s+back\b", _I), 1),
    ExitCliche("into_the_crowd", re.compile(
        r"\b(?:disappears|vanishes|melts|fades)\s+into\s+the\s+crowd\b", _I), 1),
    ExitCliche("into_the_sunset", re.compile(
        r"\b(?:walks|drives|rides)\s+(?:off\s+)?into\s+the\s+sunset\b", _I), 1),
]

EXIT_ALTERNATIVES = ["walks out", "leaves", "exits", "is gone", "heads out"]

PROP_COOLDOWNS = [
    PropCooldown("watch", re.compile(r"\b(?:his|her|their|the|a)\s+(?:wrist)?watch\b(?!\s*(?:tower|man|dog))", _I), 1500),
    PropCooldown("gun", re.compile(_DETERMINER + r"?\b(?:gun|pistol|revolver)\b", _I), 1200),
    PropCooldown("phone", re.compile(_DETERMINER + r"?\b(?:phone|cellphone)\b", _I), 800),
    PropCooldown("cigarette", re.compile(_DETERMINER + r"?\bcigarette\b", _I), 1000, replacement="delete"),
    PropCooldown("photo", re.compile(_DETERMINER + r"?\b(?:photo|photograph)\b", _I), 1000),
]

# ---------------------------------------------------------------------------
# Injection libraries
# ---------------------------------------------------------------------------

SENSORY_WORD_PATTERNS: Dict[str, Pattern] = {
    "smell": re.compile(r"\b(?:smells?|scent|odou?r|aroma|stench|whiff|fragrance|reeks?|musk)\b", _I),
    "sound": re.compile(r"\b(?:sound|noise|hums?|buzz(?:es)?|cracks?|thuds?|whispers?|roars?|echo(?:es)?|creaks?|groans?|hiss(?:es)?|rustles?|clanks?|ticks?)\b", _I),
    "touch": re.compile(r"\b(?:rough|smooth|cold|warm|wet|dry|texture|grip|grasp|sticky|slick|gritty|damp)\b", _I),
    "taste": re.compile(r"\b(?:taste|bitter|sweet|sour|salty|metallic|tongue|acrid)\b", _I),
}

SENSORY_DETAILS: Dict[str, List[str]] = {
    "smell": [
        "The air smells of burnt coffee and old carpet.",
        "A sour whiff of bleach hangs near the door.",
        "Old smoke clings to the curtains.",
        "It smells like rain on hot asphalt.",
        "The stale reek of fryer oil drifts in.",
    ],
    "sound": [
        "A radiator clanks somewhere in the wall.",
        "The fluorescent tubes hum, one of them flickering.",
        "Traffic hisses past on wet pavement outside.",
        "A clock ticks louder than it should.",
        "Pipes groan overhead.",
    ],
    "touch": [
        "The air is damp enough to stick to skin.",
        "A cold draft slides under the door.",
        "The room is too warm, close and airless.",
        "Grit crunches underfoot.",
        "The metal railing is slick with condensation.",
    ],
    "texture": [
        "Paint peels from the window frame in gray curls.",
        "The linoleum is scuffed into a dull path.",
        "Water stains bloom across the ceiling tiles.",
        "The couch cushions sag, their fabric worn shiny.",
        "Dust furs the top of every frame.",
    ],
}

# Verbal messiness markers; present in human dialogue, absent in polished AI dialogue
MESSINESS_PATTERNS = [
    ("stutter", re.compile(r"\b([A-Za-z])-\1", _I), "Stutter on a word under pressure (w-what)"),
    ("ellipsis", re.compile(r"\.\.\."), "Trail off mid-thought (I thought you...)"),
    ("dash_interrupt", re.compile(r"--(?!\s*$)"), "Interrupt themselves mid-sentence (I just-- forget it)"),
    ("filler", re.compile(r"\b(?:um|uh|er|ah)\b|\b(?:like|you know|I mean),", _I), "Use filler words (um, you know, I mean)"),
    ("false_start", re.compile(r"--\s*No[.,]", _I), "Start a sentence, stop, restart (I think-- No.)"),
    ("trail_off", re.compile(r"[a-z]\.\.\.\s*$", re.MULTILINE), "Leave a line unfinished"),
]

FILLER_WORDS = ["um", "uh", "like", "you know", "I mean", "so", "well", "look"]

PRONOUN_SWAPS = {
    "my": "our", "i": "we", "me": "us",
    "his": "their", "her": "their", "he": "they", "she": "they",
}

STUTTER_PATTERN = re.compile(r"\b([A-Za-z])-(?=\1)", _I)
ELLIPSIS_PATTERN = re.compile(r"(?<!\.)\.\.\.(?!\.)")

# Emotion words a narrator uses to tell instead of show
TELLING_EMOTION_ADJECTIVES: Dict[str, List[str]] = {
    "fear": ["scared", "afraid", "terrified", "frightened"],
    "anger": ["angry", "furious", "enraged", "mad"],
    "sadness": ["sad", "heartbroken", "miserable", "devastated"],
    "anxiety": ["anxious", "nervous", "worried", "uneasy"],
    "shame": ["ashamed", "embarrassed", "humiliated", "guilty"],
}

TELLING_EMOTION_NOUNS: Dict[str, List[str]] = {
    "fear": ["fear", "dread", "panic", "terror"],
    "anger": ["anger", "rage", "fury"],
    "sadness": ["sadness", "grief", "sorrow"],
    "anxiety": ["anxiety", "worry", "nervousness"],
    "shame": ["shame", "embarrassment", "guilt"],
}

SOMATIC_MARKERS: Dict[str, List[str]] = {
    "fear": ["stomach drops", "scalp prickles", "skin crawls", "breath catches"],
    "anger": ["jaw tightens", "knuckles go white", "neck flushes hot"],
    "sadness": ["throat closes", "eyes sting", "chest caves in"],
    "anxiety": ["gut churns", "hands tremble", "mouth goes dry"],
    "shame": ["face burns", "ears go hot", "shoulders fold inward"],
}

_OWNER = r"(?P<owner>[Hh]e|[Ss]he|[Tt]hey|I|[A-Z][a-z]+)"
_OBJECT_OWNER = r"(?P<owner>him|her|them|me|[A-Z][a-z]+)"


def _telling_patterns():
    patterns = []
    for emotion, adjectives in TELLING_EMOTION_ADJECTIVES.items():
        patterns.append((emotion, re.compile(
            r"\b" + _OWNER + r"\s+(?:feels|felt|is feeling|grows|looks)\s+"
            r"(?:so\s+|very\s+|really\s+|suddenly\s+)?(?:" + "|".join(adjectives) + r")\b"
        )))
    for emotion, nouns in TELLING_EMOTION_NOUNS.items():
        patterns.append((emotion, re.compile(
            r"\b(?:" + "|".join(nouns) + "|" + "|".join(n.capitalize() for n in nouns) + r")\s+"
            r"(?:rises|grips|floods|fills|washes over|builds|surges)\s+(?:in\s+|inside\s+|through\s+)?"
            + _OBJECT_OWNER + r"\b"
        )))
    return patterns


TELLING_EMOTION_PATTERNS = _telling_patterns()

POSSESSIVES = {
    "he": "his", "she": "her", "they": "their", "i": "my",
    "him": "his", "her": "her", "them": "their", "me": "my",
}

# ---------------------------------------------------------------------------
# Character checks
# ---------------------------------------------------------------------------

PROFESSOR_HOBBIES = ["crossword", "gardening", "cooking", "fishing", "chess", "baseball", "poker", "old movies"]
PROFESSOR_IMPERFECTIONS = ["coffee stain", "worn shoes", "messy desk", "chipped mug", "mismatched socks"]
PROFESSOR_ARMOR_CRACKS = [
    r"actually laughs",
    r"admits.*(?:doesn't|does not) know",
    r"forgets.*word",
    r"stumbles",
    r"blushes",
]

NOIR_ONE_LINER_PATTERNS = [
    re.compile(r"^.{5,40}\.$"),
    re.compile(r"^(?:You|I|We|They|He|She|It) (?:don't|won't|can't|shouldn't|couldn't) .{5,30}\.$", _I),
    re.compile(r"^That's .{5,25}\.$", _I),
    re.compile(r"^Some(?:one|thing|times) .{5,25}\.$", _I),
]
