"""Text segmentation: words, sentences, paragraphs, syllables, and name matching.

Tokenization is deliberately simple: words are whitespace-delimited
tokens and sentences are the runs between '.', '!' and '?'. Every
count in the results is derived from these two rules, so they must
stay consistent across analyzers.
"""

from __future__ import annotations

import re
import string
from functools import lru_cache

_SENTENCE_DELIMITERS = re.compile(r'[.!?]')
_PUNCTUATION = string.punctuation + "“”‘’«»…—–"


def split_words(text: str) -> list[str]:
    """Split text into whitespace-delimited tokens."""
    return text.split()


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens."""
    return len(text.split())


def clean_word(word: str) -> str:
    """Lowercase a token and strip surrounding punctuation."""
    return word.strip(_PUNCTUATION).lower()


def split_sentences(text: str) -> list[str]:
    """Split text on sentence-ending punctuation, dropping blank pieces.

    Returned sentences are stripped of surrounding whitespace.
    """
    return [s.strip() for s in _SENTENCE_DELIMITERS.split(text) if s.strip()]


def count_sentences(text: str) -> int:
    return len(split_sentences(text))


def split_paragraphs(text: str) -> list[str]:
    """Split text into paragraphs, one per non-blank line."""
    return [line for line in text.splitlines() if line.strip()]


def split_blocks(text: str) -> list[str]:
    """Split text into blank-line separated blocks."""
    return [b for b in text.split("\n\n") if b.strip()]


def count_syllables(word: str) -> int:
    """Rough syllable count heuristic."""
    word = word.lower().strip()
    if not word:
        return 0

    vowels = "aeiouy"
    count = 0
    prev_vowel = False
    for ch in word:
        is_vowel = ch in vowels
        if is_vowel and not prev_vowel:
            count += 1
        prev_vowel = is_vowel

    if word.endswith("e") and count > 1:
        count -= 1
    return max(count, 1)


def contains_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive substring search."""
    return phrase.lower() in text.lower()


@lru_cache(maxsize=512)
def name_pattern(name: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive pattern for a character name."""
    return re.compile(r'(?<!\w)' + re.escape(name.strip()) + r'(?!\w)', re.IGNORECASE)


def count_mentions(name: str, text: str) -> int:
    """Count whole-word, case-insensitive occurrences of *name* in *text*."""
    if not name.strip():
        return 0
    return len(name_pattern(name).findall(text))


def mentions(name: str, text: str) -> bool:
    if not name.strip():
        return False
    return name_pattern(name).search(text) is not None


def mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def variance(values: list[float]) -> float:
    """Population variance; 0 for fewer than two values."""
    if len(values) < 2:
        return 0.0
    m = mean(values)
    return sum((v - m) ** 2 for v in values) / len(values)


def std_dev(values: list[float]) -> float:
    return variance(values) ** 0.5
