"""Novel vs screenplay classification by weighted pattern scoring."""

from __future__ import annotations

import logging

from narrative_lens.models import DocumentFormat
from narrative_lens.utils.lexicon import NOVEL_PATTERNS, SCREENPLAY_PATTERNS
from narrative_lens.utils.segmentation import count_words, split_blocks

logger = logging.getLogger("narrative-lens")

_MIN_CHARS = 500
_CHARS_PER_PAGE = 3000


def _pattern_score(text: str, table) -> float:
    return sum(len(regex.findall(text)) * weight for regex, weight in table)


def _layout_scores(text: str) -> tuple[float, float]:
    """Block length, line length and words-per-page heuristics -> (screenplay, novel)."""
    screenplay = novel = 0.0

    blocks = split_blocks(text)
    if blocks:
        avg_block = sum(len(b) for b in blocks) // len(blocks)
        if avg_block < 150:
            screenplay += 3.0
        elif avg_block > 300:
            novel += 3.0

    lines = [line for line in text.split("\n") if line.strip()]
    if lines:
        avg_line = sum(len(line) for line in lines) // len(lines)
        if avg_line < 60:
            screenplay += 2.0
        elif avg_line > 80:
            novel += 2.0

    pages = max(1, len(text) // _CHARS_PER_PAGE) if blocks else 1
    words_per_page = count_words(text) / pages
    if words_per_page < 220:
        screenplay += 2.0
    elif words_per_page > 240:
        novel += 2.0

    return screenplay, novel


def detect_format(text: str) -> tuple[DocumentFormat, float]:
    """
    Classify *text* as a novel or a screenplay.

    Returns:
        (format, confidence). Short texts and the ambiguous zone
        (screenplay probability between 0.4 and 0.6) return (Novel, 0.5).
    """
    if len(text) <= _MIN_CHARS:
        return DocumentFormat.novel, 0.5

    screenplay_score = _pattern_score(text, SCREENPLAY_PATTERNS)
    novel_score = _pattern_score(text, NOVEL_PATTERNS)

    layout_screenplay, layout_novel = _layout_scores(text)
    screenplay_score += layout_screenplay
    novel_score += layout_novel

    total = screenplay_score + novel_score
    if total <= 0:
        return DocumentFormat.novel, 0.5

    probability = screenplay_score / total
    logger.debug(
        "Format scores: screenplay=%.1f novel=%.1f (p=%.2f)",
        screenplay_score, novel_score, probability,
    )

    if probability > 0.6:
        return DocumentFormat.screenplay, min(1.0, probability)
    if probability < 0.4:
        return DocumentFormat.novel, min(1.0, 1.0 - probability)
    return DocumentFormat.novel, 0.5
