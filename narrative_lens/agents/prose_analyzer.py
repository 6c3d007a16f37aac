"""Prose quality heuristics: passive voice, adverbs, weak verbs, cliches, readability."""

from __future__ import annotations

import logging
from typing import Iterable

from narrative_lens.models import ProseQualityMetrics
from narrative_lens.utils.lexicon import (
    ADVERB_EXCEPTIONS,
    CLICHES,
    FILTER_WORDS,
    PASSIVE_VOICE_PATTERNS,
    SENSORY_PATTERN,
    WEAK_VERBS,
)
from narrative_lens.utils.segmentation import (
    clean_word,
    count_syllables,
    count_words,
    split_sentences,
    split_words,
    std_dev,
)

logger = logging.getLogger("narrative-lens")

MAX_EXAMPLES = 10
_MAX_GRADE = 18


def _tally(words: Iterable[str], accept) -> tuple[int, list[str]]:
    """Count cleaned words passing *accept*; keep the first unique examples."""
    count = 0
    examples: list[str] = []
    for word in words:
        if accept(word):
            count += 1
            if len(examples) < MAX_EXAMPLES and word not in examples:
                examples.append(word)
    return count, examples


# ── Word-level ───────────────────────────────────────────────────────────

def detect_passive_voice(text: str) -> tuple[int, list[str]]:
    """Total matches over all passive patterns, with up to ten examples per pattern."""
    count = 0
    phrases: list[str] = []
    for regex in PASSIVE_VOICE_PATTERNS:
        matches = [m.group(0) for m in regex.finditer(text)]
        count += len(matches)
        for phrase in matches[:MAX_EXAMPLES]:
            phrase = phrase.lower()
            if phrase not in phrases:
                phrases.append(phrase)
    return count, phrases


def detect_adverbs(words: list[str]) -> tuple[int, list[str]]:
    return _tally(
        words,
        lambda w: len(w) > 2 and w.endswith("ly") and w not in ADVERB_EXCEPTIONS,
    )


def detect_weak_verbs(words: list[str]) -> tuple[int, list[str]]:
    return _tally(words, lambda w: w in WEAK_VERBS)


def detect_filter_words(words: list[str]) -> tuple[int, list[str]]:
    return _tally(words, lambda w: w in FILTER_WORDS)


def detect_cliches(text: str) -> tuple[int, list[str]]:
    """Number of distinct cliches present anywhere in the text."""
    lowered = text.lower()
    found = [c for c in CLICHES if c in lowered]
    return len(found), found[:MAX_EXAMPLES]


def count_sensory_words(text: str) -> int:
    if SENSORY_PATTERN is None:
        return 0
    return len(SENSORY_PATTERN.findall(text))


def missing_sensory_detail(sensory_count: int, word_count: int) -> bool:
    """Fewer than one sensory word per fifty words (at least one expected)."""
    return word_count > 0 and sensory_count < max(1, word_count // 50)


# ── Sentence-level ───────────────────────────────────────────────────────

def reading_level(text: str, word_count: int, sentence_count: int) -> str:
    """Flesch-Kincaid grade, clamped to 0-18; ``"--"`` when undefined."""
    if word_count <= 0 or sentence_count <= 0:
        return "--"
    syllables = sum(count_syllables(w) for w in split_words(text))
    grade = 0.39 * (word_count / sentence_count) + 11.8 * (syllables / word_count) - 15.59
    return f"Grade {int(max(0.0, min(float(_MAX_GRADE), grade)))}"


def sentence_variety(text: str) -> tuple[int, list[int]]:
    """Spread of sentence lengths scaled so a deviation of five words scores 100."""
    sentences = split_sentences(text)
    if len(sentences) <= 1:
        return 0, []
    lengths = [count_words(s) for s in sentences]
    score = min(100, int(std_dev([float(n) for n in lengths]) / 5.0 * 100))
    return score, lengths


def analyze_prose(text: str, word_count: int, sentence_count: int) -> ProseQualityMetrics:
    """
    Run all prose heuristics over *text*.

    *word_count* is the manuscript total (which may exceed the analyzed
    text when it was truncated); it drives the sensory threshold and
    the reading level.
    """
    words = [clean_word(w) for w in split_words(text)]

    passive, passive_phrases = detect_passive_voice(text)
    adverbs, adverb_phrases = detect_adverbs(words)
    weak, weak_phrases = detect_weak_verbs(words)
    cliches, cliche_phrases = detect_cliches(text)
    filters, filter_phrases = detect_filter_words(words)
    sensory = count_sensory_words(text)
    variety, lengths = sentence_variety(text)

    logger.debug(
        "Prose: passive=%d adverbs=%d weak=%d cliches=%d filter=%d sensory=%d",
        passive, adverbs, weak, cliches, filters, sensory,
    )

    return ProseQualityMetrics(
        passive_voice_count=passive,
        passive_voice_phrases=passive_phrases,
        adverb_count=adverbs,
        adverb_phrases=adverb_phrases,
        sensory_detail_count=sensory,
        missing_sensory_detail=missing_sensory_detail(sensory, word_count),
        reading_level=reading_level(text, word_count, sentence_count),
        weak_verb_count=weak,
        weak_verb_phrases=weak_phrases,
        cliche_count=cliches,
        cliche_phrases=cliche_phrases,
        filter_word_count=filters,
        filter_word_phrases=filter_phrases,
        sentence_variety_score=variety,
        sentence_lengths=lengths,
    )
