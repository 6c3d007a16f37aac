"""Manuscript language detection.

The lexicon tables are English-only; the detected language is reported
with the results so callers can tell when the word-based signals are
meaningless.
"""

from __future__ import annotations

from langdetect import DetectorFactory, LangDetectException, detect_langs

DetectorFactory.seed = 0

# langdetect is slow on full manuscripts and gains nothing past a few pages.
_SAMPLE_CHARS = 5000


def detect_language(text: str, sample_chars: int = _SAMPLE_CHARS) -> tuple[str, float]:
    """
    Detect the dominant language of a manuscript sample.

    Returns:
        (iso_code, probability), e.g. ("en", 0.99).
        ("en", 0.0) when the text is blank or detection fails.
    """
    sample = text[:sample_chars] if text else ""
    if not sample.strip():
        return "en", 0.0

    try:
        candidates = detect_langs(sample)
    except LangDetectException:
        return "en", 0.0

    if not candidates:
        return "en", 0.0
    top = candidates[0]
    return str(top.lang), round(float(top.prob), 4)


def is_english(code: str) -> bool:
    return code == "en"
