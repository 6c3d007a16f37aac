"""Fixed word and phrase tables used by every analyzer.

Tables are built once at import. Regex tables go through
``compile_pattern`` which returns ``None`` for a pattern that fails to
compile; the failure is logged and kept in ``PATTERN_COMPILE_FAILURES``
so the test suite can assert the built-in tables are clean.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

logger = logging.getLogger("narrative-lens")

PATTERN_COMPILE_FAILURES: list[tuple[str, str]] = []


def compile_pattern(pattern: str, flags: int = 0) -> Optional[re.Pattern[str]]:
    """Compile *pattern*, or record the failure and return ``None``."""
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        logger.warning("Dropping lexicon pattern %r: %s", pattern, e)
        PATTERN_COMPILE_FAILURES.append((pattern, str(e)))
        return None


def compile_weighted(
    table: Iterable[tuple[str, float]], flags: int = 0,
) -> tuple[tuple[re.Pattern[str], float], ...]:
    compiled = []
    for pattern, weight in table:
        regex = compile_pattern(pattern, flags)
        if regex is not None:
            compiled.append((regex, weight))
    return tuple(compiled)


def cue_pattern(words: Iterable[str], whole_word: bool = True) -> Optional[re.Pattern[str]]:
    """Case-insensitive alternation over *words*.

    With ``whole_word=False`` a cue only has to start a word, so a stem
    such as "believe" also matches "believed".
    """
    alternation = "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))
    tail = r"\b" if whole_word else ""
    return compile_pattern(r"\b(?:" + alternation + r")" + tail, re.IGNORECASE)


# ── Prose quality ────────────────────────────────────────────────────────

PASSIVE_IRREGULAR_PARTICIPLES = (
    "known", "seen", "given", "taken", "done", "gone", "made", "found", "kept", "left", "lost",
    "built", "bought", "caught", "felt", "held", "heard", "lent", "paid", "read", "said",
    "sold", "sent", "set", "told", "thought", "understood", "written", "driven", "eaten",
    "thrown", "grown", "broken", "chosen", "spoken", "forgotten", "forgiven", "hidden",
    "shown", "sung", "worn", "born", "put", "cut", "hit", "hurt", "won", "beaten",
    "bound", "fed", "laid", "led", "met",
)

_BE = r'\b(?:am|is|are|was|were|be|been|being)\b'

PASSIVE_VOICE_PATTERNS = tuple(p for p in (
    compile_pattern(_BE + r'\s+\w+ed\b', re.IGNORECASE),
    compile_pattern(_BE + r'\s+being\s+\w+ed\b', re.IGNORECASE),
    compile_pattern(
        _BE + r'\s+(?:' + "|".join(PASSIVE_IRREGULAR_PARTICIPLES) + r')\b', re.IGNORECASE,
    ),
) if p is not None)

ADVERB_EXCEPTIONS = frozenset({
    "family", "only", "lovely", "lonely", "friendly", "silly", "ugly", "early", "daily",
    "weekly", "monthly", "yearly", "holy", "jelly", "belly", "bully", "fly", "rely",
    "supply", "apply", "reply",
})

SENSORY_WORDS = (
    # visual
    "see", "saw", "look", "looked", "bright", "dark", "colorful", "gleaming", "shadowy", "shimmering",
    # auditory
    "hear", "heard", "sound", "loud", "quiet", "whisper", "shout", "echo", "silence", "rumble",
    # tactile
    "feel", "felt", "touch", "rough", "smooth", "soft", "hard", "cold", "warm", "hot",
    # olfactory
    "smell", "smelled", "scent", "fragrant", "musty", "fresh", "acrid", "aromatic",
    # gustatory
    "taste", "tasted", "flavor", "sweet", "sour", "bitter", "salty", "savory", "delicious",
)

SENSORY_PATTERN = compile_pattern(r'\b(?:' + "|".join(SENSORY_WORDS) + r')\w*\b', re.IGNORECASE)

WEAK_VERBS = frozenset({
    "is", "are", "was", "were", "be", "being", "been",
    "have", "has", "had", "having",
    "do", "does", "did", "doing",
    "get", "gets", "got", "getting", "gotten",
    "make", "makes", "made", "making",
    "go", "goes", "went", "going", "gone",
    "come", "comes", "came", "coming",
    "take", "takes", "took", "taking", "taken",
    "give", "gives", "gave", "giving", "given",
    "put", "puts", "putting",
    "seem", "seems", "seemed", "seeming",
    "become", "becomes", "became", "becoming",
})

CLICHES = (
    "at the end of the day", "think outside the box", "bottom line",
    "hit the ground running", "low-hanging fruit", "move the needle",
    "eyes sparkled", "eyes gleamed", "heart raced", "blood ran cold",
    "time stood still", "moment of truth", "breath caught",
    "crystal clear", "clear as day", "cold as ice", "dark as night",
    "quiet as a mouse", "quick as lightning", "strong as an ox",
    "busy as a bee", "light as a feather", "fit as a fiddle",
    "last but not least", "it goes without saying", "needless to say",
    "at this point in time", "in this day and age", "for all intents and purposes",
    "each and every", "first and foremost", "sad but true",
    "only time will tell", "easier said than done", "better late than never",
    "actions speak louder than words", "the tip of the iceberg",
    "a blessing in disguise", "add insult to injury", "beat around the bush",
    # physical reactions
    "heart pounded", "heart sank", "heart skipped", "heart leaped",
    "stomach churned", "stomach dropped", "stomach turned",
    "knees buckled", "knees weak", "jaw dropped", "jaw clenched",
    "fists clenched", "pulse quickened", "palms sweaty",
    "spine tingled", "hair stood on end", "goosebumps",
    "butterflies in stomach", "lump in throat", "face flushed",
    "cheeks burned", "ears burned", "blood boiled",
    # emotional
    "breath away", "swept off feet", "head over heels",
    "love at first sight", "match made in heaven",
    "writing on the wall", "threw caution to the wind",
    "caught between a rock and a hard place",
    "avoid like the plague", "bite the bullet", "break the ice",
    "cutting corners", "give the benefit of the doubt",
    "hit the nail on the head", "in the heat of the moment",
    "jump on the bandwagon", "let the cat out of the bag",
    "piece of cake", "raining cats and dogs", "bite off more than you can chew",
)

FILTER_WORDS = frozenset({
    "saw", "see", "sees", "seeing", "seen",
    "heard", "hear", "hears", "hearing",
    "felt", "feel", "feels", "feeling",
    "noticed", "notice", "notices", "noticing",
    "seemed", "seem", "seems", "seeming",
    "realized", "realize", "realizes", "realizing",
    "thought", "think", "thinks", "thinking",
    "wondered", "wonder", "wonders", "wondering",
    "watched", "watch", "watches", "watching",
    "looked", "look", "looks", "looking",
    "smelled", "smell", "smells", "smelling",
})

# ── Dialogue ─────────────────────────────────────────────────────────────

DIALOGUE_FILLERS = (
    "uh", "um", "well", "like", "you know", "actually",
    "basically", "literally", "honestly", "i mean",
    "sort of", "kind of", "you see", "right",
)

PREDICTABLE_DIALOGUE = (
    "we need to talk", "it's not what it looks like",
    "i can explain", "you wouldn't understand",
    "this isn't over", "we meet again",
    "you have no idea", "trust me", "believe me",
    "i'm fine", "everything's fine", "don't worry about it",
    "it's complicated", "long story", "never mind",
    "forget about it", "what are you doing here",
    "who are you", "what do you want",
)

CONFLICT_WORDS = (
    "but", "no", "never", "don't", "can't", "won't",
    "disagree", "wrong", "impossible", "ridiculous",
    "stupid", "idiot", "fool", "liar", "lie",
    "fight", "argue", "angry", "furious", "hate",
)

DIALOGUE_TAGS = (
    "said", "asked", "replied", "answered", "whispered",
    "shouted", "yelled", "muttered", "murmured", "exclaimed",
    "stated", "remarked", "noted", "added", "continued",
)

FILLER_PATTERN = cue_pattern(DIALOGUE_FILLERS)
CONFLICT_PATTERN = cue_pattern(CONFLICT_WORDS)
DIALOGUE_TAG_PATTERN = cue_pattern(DIALOGUE_TAGS)

QUOTE_CHARS = frozenset('"“”')

# ── Tension ──────────────────────────────────────────────────────────────

TENSION_WORDS = frozenset({
    "danger", "threat", "fear", "scared", "terrified", "panic",
    "urgent", "desperate", "crisis", "disaster", "catastrophe",
    "attack", "fight", "battle", "conflict", "struggle",
    "death", "dying", "killed", "murder", "blood",
    "trapped", "cornered", "helpless", "doomed",
    "explode", "explosion", "crash", "collide",
    "scream", "yell", "shout", "cry",
    "chase", "pursue", "flee", "escape", "run",
})

ACTION_VERBS = frozenset({
    "grabbed", "lunged", "attacked", "struck", "hit",
    "ran", "raced", "sprinted", "dashed", "rushed",
    "jumped", "leaped", "dove", "ducked",
    "threw", "hurled", "smashed", "crashed",
    "fired", "shot", "aimed", "pulled",
})

REVELATION_WORDS = frozenset({
    "realized", "discovered", "understood", "revealed",
    "truth", "secret", "hidden", "concealed",
    "betrayal", "lie", "deception", "trick",
})

INTERNAL_CHANGE_WORDS = frozenset({
    "believed", "understood", "realized", "accepted", "rejected",
    "forgave", "regretted", "doubted", "trusted", "feared",
    "hoped", "despaired", "resolved", "questioned", "embraced",
    "abandoned", "confronted", "acknowledged", "denied",
})

THEMATIC_WORDS = frozenset({
    "meaning", "purpose", "truth", "justice", "love", "loss",
    "identity", "freedom", "power", "sacrifice", "redemption",
    "betrayal", "loyalty", "honor", "duty", "choice",
})

VISUAL_ACTION_WORDS = frozenset({
    "sees", "watches", "looks", "stares", "glances",
    "enters", "exits", "walks", "runs", "stands",
    "grabs", "throws", "pushes", "pulls", "slams",
    "opens", "closes", "turns", "moves", "stops",
})

# ── Character arcs ───────────────────────────────────────────────────────

BELIEF_CUES = (
    "believe", "think", "thought", "realize", "realized", "understand", "know", "trust",
    "faith", "value", "values", "principle", "principles", "convinced", "certain", "sure",
    "feel", "felt", "want", "wanted", "need", "needed", "hope", "hoped", "fear", "feared",
    "swore", "vowed", "promised", "resolved",
)
EVIDENCE_CUES = (
    "because", "shows", "demonstrates", "proves", "revealed", "acted", "chose", "decided",
    "refused",
)
COUNTERPRESSURE_CUES = (
    "but", "however", "challenged", "questioned", "opposed", "confronted", "despite",
    "although", "forced", "pressured",
)
DECISION_CUES = (
    "decided", "chose", "choose", "selected", "agreed", "refused", "accepted", "rejected",
    "committed",
)
OUTCOME_CUES = (
    "resulted", "consequence", "outcome", "happened", "led to", "caused", "as a result",
    "therefore", "thus",
)
EFFECT_CUES = (
    "changed", "shaped", "influenced", "affected", "transformed", "learned", "realized",
    "became",
)

BELIEF_PATTERN = cue_pattern(BELIEF_CUES, whole_word=False)
EVIDENCE_PATTERN = cue_pattern(EVIDENCE_CUES, whole_word=False)
COUNTERPRESSURE_PATTERN = cue_pattern(COUNTERPRESSURE_CUES, whole_word=False)
DECISION_PATTERN = cue_pattern(DECISION_CUES, whole_word=False)
OUTCOME_PATTERN = cue_pattern(OUTCOME_CUES, whole_word=False)
EFFECT_PATTERN = cue_pattern(EFFECT_CUES, whole_word=False)

SENTIMENT_WORDS: dict[str, float] = {
    "happy": 0.7, "joy": 0.8, "love": 0.9, "smile": 0.6,
    "laugh": 0.6, "excited": 0.7, "hope": 0.6, "proud": 0.7,
    "grateful": 0.7, "relieved": 0.6, "calm": 0.5, "peace": 0.7,
    "sad": -0.6, "angry": -0.7, "fear": -0.7, "hate": -0.9,
    "cry": -0.6, "scream": -0.6, "terror": -0.8, "despair": -0.9,
    "rage": -0.8, "bitter": -0.6, "guilt": -0.6, "shame": -0.7,
}

INTENSITY_WORDS = frozenset({
    "violent", "explosive", "intense", "extreme", "desperate",
    "frantic", "wild", "furious", "dramatic",
    "urgent", "critical", "severe", "acute",
})

# ── Format detection ─────────────────────────────────────────────────────

SCREENPLAY_PATTERNS = compile_weighted((
    # scene headings
    (r'(?m)^(INT\.|EXT\.|INT/EXT\.|I/E\.)', 3.0),
    (r'(?m)^(INTERIOR|EXTERIOR)', 2.5),
    (r'(?m)^[A-Z][A-Z\s]+\s*-\s*(DAY|NIGHT|CONTINUOUS|LATER|MORNING|EVENING|DAWN|DUSK)', 3.0),
    # character cues
    (r'(?m)^\s{20,}[A-Z][A-Z\s]+\s*$', 2.0),
    (r"(?m)^[A-Z]{2,}\s*\(V\.O\.\)|\(O\.S\.\)|\(CONT'D\)", 3.0),
    # parentheticals
    (r'(?m)^\s*\([a-z][^)]+\)\s*$', 2.0),
    # transitions
    (r'(?m)^(FADE IN:|FADE OUT\.|FADE TO:|CUT TO:|DISSOLVE TO:|SMASH CUT:|MATCH CUT:)', 3.0),
    # short action lines
    (r'(?m)^[A-Z][^.!?]{10,80}[.!?]\s*$', 0.5),
    (r'\n{2,}', 0.3),
))

NOVEL_PATTERNS = compile_weighted((
    (r'(?i)chapter\s+\d+|chapter\s+[a-z]+', 2.5),
    (r'(?im)^part\s+(one|two|three|four|five|\d+)', 2.0),
    (r'(?m)^[A-Z][^\n]{200,}', 2.0),
    (r'(?i)\b(thought|wondered|realized|felt|believed|remembered|imagined)\b', 1.5),
    (r'(?i)\b(she thought|he thought|I thought)\b', 2.0),
    (r'(?i)\b(said|asked|replied|whispered|shouted|murmured)\b\s*,', 1.5),
    (r'(?i)\b(the\s+\w+\s+was|it\s+was\s+a)\b', 0.5),
    (r'(?i)\b(his|her)\s+(eyes|face|voice|heart|hands)\s+(were|was|seemed)', 1.5),
    (r'(?i)\b(the next morning|hours later|days passed|years ago|that night)\b', 1.5),
))

SCENE_HEADING_PATTERN = compile_pattern(r'(?i)(INT\.|EXT\.|INT/EXT\.)')

# ── Screenplay lines ─────────────────────────────────────────────────────

SLUGLINE_PATTERN = compile_pattern(r'^(INT\.|EXT\.|INT/EXT|EXT/INT|INT\s|EXT\s)')
CUE_CHARSET_PATTERN = compile_pattern(r"^[A-Z0-9 .()'\"-]+$")
TRANSITION_PREFIXES = (
    "CUT TO", "FADE IN", "FADE OUT", "SMASH CUT", "DISSOLVE TO",
    "MATCH CUT", "JUMP CUT", "WIPE TO", "FADE TO", "BACK TO",
)

# ── Chapter markers ──────────────────────────────────────────────────────

_NUMBER_WORDS = (
    "one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve|thirteen|"
    "fourteen|fifteen|sixteen|seventeen|eighteen|nineteen|twenty"
)

CHAPTER_MARKER_PATTERNS = tuple(p for p in (
    compile_pattern(r'^Chapter\s+(?:\d+|' + _NUMBER_WORDS + r')\b', re.IGNORECASE),
    compile_pattern(r'^Ch\.\s*\d+\b', re.IGNORECASE),
    compile_pattern(r'^\d+\.?$'),
    compile_pattern(r'^#+\s*Chapter\b', re.IGNORECASE),
) if p is not None)
