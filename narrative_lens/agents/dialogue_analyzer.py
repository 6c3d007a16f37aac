"""Dialogue extraction and the ten-point dialogue quality rubric."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from narrative_lens.models import DialogueQualityMetrics
from narrative_lens.utils.lexicon import (
    CONFLICT_PATTERN,
    CUE_CHARSET_PATTERN,
    DIALOGUE_TAG_PATTERN,
    FILLER_PATTERN,
    PREDICTABLE_DIALOGUE,
    QUOTE_CHARS,
    SLUGLINE_PATTERN,
    TRANSITION_PREFIXES,
)
from narrative_lens.utils.segmentation import count_words, std_dev

logger = logging.getLogger("narrative-lens")

MAX_PREDICTABLE = 5
MAX_MONOTONY_EXAMPLES = 5
_CUE_MAX_CHARS = 40
_EDGE_PUNCTUATION = ".,;:!?\"'“”‘’()[]-…"


# ── Extraction ───────────────────────────────────────────────────────────

def extract_dialogue(text: str) -> list[str]:
    """Spans between quote characters; any of ``"“”`` opens or closes a span."""
    if not any(q in text for q in QUOTE_CHARS):
        return []

    segments: list[str] = []
    buf: list[str] = []
    inside = False
    for ch in text:
        if ch in QUOTE_CHARS:
            if inside:
                segment = "".join(buf).strip()
                if segment:
                    segments.append(segment)
                buf = []
            inside = not inside
        elif inside:
            buf.append(ch)
    return segments


def is_scene_heading(line: str) -> bool:
    stripped = line.strip().upper()
    return bool(stripped) and SLUGLINE_PATTERN is not None and bool(SLUGLINE_PATTERN.match(stripped))


def is_transition(line: str) -> bool:
    stripped = line.strip().upper()
    if not stripped:
        return False
    return stripped.endswith(":") or stripped.startswith(TRANSITION_PREFIXES)


def is_character_cue(line: str) -> bool:
    """An all-caps short line such as ``JOHN`` or ``MARY (V.O.)``."""
    stripped = line.strip()
    if not stripped or stripped != stripped.upper():
        return False
    if is_scene_heading(stripped) or is_transition(stripped):
        return False
    if len(stripped) > _CUE_MAX_CHARS or ":" in stripped:
        return False
    if not any("A" <= ch <= "Z" for ch in stripped):
        return False
    return CUE_CHARSET_PATTERN is not None and bool(CUE_CHARSET_PATTERN.match(stripped))


def _content_lines(text: str) -> list[str]:
    lines = text.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


def extract_screenplay_dialogue(text: str) -> list[str]:
    """Dialogue blocks: lines after a character cue up to a blank line or the next element."""
    lines = _content_lines(text)
    segments = []
    i = 0
    while i < len(lines):
        if not is_character_cue(lines[i]):
            i += 1
            continue
        i += 1
        block = []
        while i < len(lines):
            stripped = lines[i].strip()
            if not stripped:
                i += 1
                break
            if is_character_cue(stripped) or is_scene_heading(stripped) or is_transition(stripped):
                break
            block.append(stripped)
            i += 1
        combined = " ".join(block).strip()
        if combined:
            segments.append(combined)
    return segments


def screenplay_page_count(text: str, lines_per_page: int = 55) -> int:
    lines = max(1, len(_content_lines(text)))
    return max(1, -(-lines // lines_per_page))


def dialogue_percentage(segments: list[str], word_count: int) -> int:
    if not segments or word_count <= 0:
        return 0
    spoken = sum(count_words(s) for s in segments)
    return int(spoken / word_count * 100)


# ── Rubric ───────────────────────────────────────────────────────────────

def _normalize(segment: str) -> str:
    return segment.lower().strip(_EDGE_PUNCTUATION + " ")


def repeated_lines(segments: list[str]) -> list[str]:
    """Normalized lines spoken more than twice; needs more than five segments."""
    if len(segments) <= 5:
        return []
    counts = Counter(_normalize(s) for s in segments)
    return [line for line, n in counts.items() if n > 2]


def filler_count(segments: list[str]) -> int:
    """Segments containing at least one filler word."""
    if FILLER_PATTERN is None:
        return 0
    return sum(1 for s in segments if FILLER_PATTERN.search(s))


def tag_variety(text: str) -> int:
    if DIALOGUE_TAG_PATTERN is None:
        return 0
    return len({m.lower() for m in DIALOGUE_TAG_PATTERN.findall(text)})


def predictable_phrases(segments: list[str]) -> list[str]:
    found: list[str] = []
    for segment in segments:
        lowered = segment.lower()
        for phrase in PREDICTABLE_DIALOGUE:
            if phrase in lowered and phrase not in found:
                found.append(phrase)
                if len(found) >= MAX_PREDICTABLE:
                    return found
    return found


def exposition_count(segments: list[str]) -> int:
    return sum(1 for s in segments if len(s) > 100 and "?" not in s and "!" not in s)


def has_conflict(segments: list[str]) -> bool:
    if not segments or CONFLICT_PATTERN is None:
        return False
    hits = sum(1 for s in segments if CONFLICT_PATTERN.search(s))
    return hits / len(segments) > 0.2


def has_emotional_range(segments: list[str]) -> bool:
    exclaim = any("!" in s for s in segments)
    question = any("?" in s for s in segments)
    ellipsis = any("..." in s or "…" in s for s in segments)
    return exclaim + question + ellipsis >= 2


def pacing_score(segments: list[str]) -> int:
    if len(segments) <= 1:
        return 0
    return min(100, int(std_dev([float(len(s)) for s in segments]) / 30.0 * 100))


def _shows_growth(segments: list[str]) -> bool:
    n = len(segments)
    if n <= 10:
        return False
    half = n // 2
    return len(set(segments[n - half:])) > len(set(segments[:half]))


def analyze_dialogue(text: str, segments: Optional[list[str]] = None) -> DialogueQualityMetrics:
    """
    Score dialogue against ten binary criteria.

    Args:
        text: Full text, used for tag variety.
        segments: Pre-extracted dialogue; quoted spans of *text* when omitted.

    Returns:
        DialogueQualityMetrics, all zero when there is no dialogue.
    """
    if segments is None:
        segments = extract_dialogue(text)
    if not segments:
        return DialogueQualityMetrics()

    n = len(segments)
    reps = repeated_lines(segments)
    fillers = filler_count(segments)
    tags = tag_variety(text)
    predictable = predictable_phrases(segments)
    exposition = exposition_count(segments)
    conflict = has_conflict(segments)
    pacing = pacing_score(segments)

    criteria = (
        sum(len(s) for s in segments) / n > 50,
        not reps,
        fillers / n < 0.2,
        tags > 5,
        len(predictable) < 3,
        _shows_growth(segments),
        exposition / n < 0.2,
        conflict,
        has_emotional_range(segments),
        pacing > 60,
    )
    points = sum(1 for c in criteria if c)

    logger.debug("Dialogue rubric: %d segments, criteria=%s", n, [int(c) for c in criteria])

    return DialogueQualityMetrics(
        quality_score=points * 100 // len(criteria),
        segment_count=n,
        filler_count=fillers,
        repetition_score=min(100, len(reps) * 100 // n),
        tag_variety=tags,
        monotony_issues=[f'Repeated line: "{line}"' for line in reps[:MAX_MONOTONY_EXAMPLES]],
        predictable_phrases=predictable,
        exposition_count=exposition,
        pacing_score=pacing,
        has_conflict=conflict,
    )
