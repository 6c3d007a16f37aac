"""Sliding-window tension curve."""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable

from narrative_lens.models import DocumentFormat, TensionPoint
from narrative_lens.utils.lexicon import (
    ACTION_VERBS,
    INTERNAL_CHANGE_WORDS,
    REVELATION_WORDS,
    TENSION_WORDS,
    VISUAL_ACTION_WORDS,
)
from narrative_lens.utils.segmentation import clean_word, split_words

logger = logging.getLogger("narrative-lens")

WINDOW_WORDS = 100

_TENSION_WEIGHT = 0.3
_ACTION_WEIGHT = 0.2
_REVELATION_WEIGHT = 0.25
_FORMAT_WEIGHT = 0.15
_SATURATION = 3.0


def sample_interval(word_count: int, fmt: DocumentFormat) -> int:
    if fmt == DocumentFormat.screenplay:
        return max(50, min(200, word_count // 20))
    return max(100, min(500, word_count // 10))


def window_tension(words: Iterable[str], fmt: DocumentFormat) -> float:
    """Score a window of cleaned words, saturating at 1.0."""
    bonus_words = VISUAL_ACTION_WORDS if fmt == DocumentFormat.screenplay else INTERNAL_CHANGE_WORDS
    raw = 0.0
    for w in words:
        if w in TENSION_WORDS:
            raw += _TENSION_WEIGHT
        if w in ACTION_VERBS:
            raw += _ACTION_WEIGHT
        if w in REVELATION_WORDS:
            raw += _REVELATION_WEIGHT
        if w in bonus_words:
            raw += _FORMAT_WEIGHT
    return min(1.0, raw / _SATURATION)


def tension_curve(text: str, word_count: int, fmt: DocumentFormat) -> list[TensionPoint]:
    """
    Sample window tension along *text*.

    A sample is taken every ``sample_interval`` words and at the final
    word, so word positions are strictly increasing and the last sample
    sits at position 1.0 when *word_count* matches the text.
    """
    words = split_words(text)
    if not words or word_count <= 0:
        return []

    interval = sample_interval(word_count, fmt)
    window: deque[str] = deque(maxlen=WINDOW_WORDS)
    total = len(words)
    curve = []

    for index, word in enumerate(words, start=1):
        window.append(clean_word(word))
        if index % interval == 0 or index == total:
            curve.append(TensionPoint(
                position=min(1.0, index / word_count),
                tension_level=window_tension(window, fmt),
                word_position=index,
            ))

    logger.debug("Tension curve: %d samples every %d words", len(curve), interval)
    return curve
