"""Chapter splitting from outline entries or in-text chapter markers."""

from __future__ import annotations

import bisect
import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from narrative_lens.models import Chapter, OutlineEntry, PageMark
from narrative_lens.utils.lexicon import CHAPTER_MARKER_PATTERNS
from narrative_lens.utils.segmentation import split_words

logger = logging.getLogger("narrative-lens")

_MAX_HEADING_CHAPTERS = 10


def coerce_outline(entries: Optional[Iterable[Any]]) -> list[OutlineEntry]:
    """Accept OutlineEntry objects or plain dicts; malformed entries are dropped."""
    if not entries:
        return []
    out = []
    for e in entries:
        if isinstance(e, OutlineEntry):
            out.append(e)
            continue
        try:
            out.append(OutlineEntry.model_validate(e))
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed outline entry %r: %s", e, exc)
    return out


def coerce_page_mapping(marks: Optional[Iterable[Any]]) -> list[PageMark]:
    """Accept PageMark objects, ``(location, page)`` tuples or dicts; sorted by location."""
    if not marks:
        return []
    out = []
    for m in marks:
        try:
            if isinstance(m, PageMark):
                out.append(m)
            elif isinstance(m, dict):
                out.append(PageMark.model_validate(m))
            else:
                location, page = m
                out.append(PageMark(location=location, page=page))
        except (ValidationError, ValueError, TypeError) as exc:
            logger.warning("Skipping malformed page mark %r: %s", m, exc)
    return sorted(out, key=lambda m: m.location)


def chapters_from_outline(text: str, outline: list[OutlineEntry]) -> Optional[list[Chapter]]:
    """
    Cut *text* at outline entry locations.

    Level 1 entries (chapters) are preferred, then level 0 (parts), then
    the first ten level 2 headings. Returns ``None`` when the outline has
    no usable entries, so the caller can fall back to marker splitting.
    """
    if not outline:
        return None

    chosen = [e for e in outline if e.level == 1]
    if not chosen:
        chosen = [e for e in outline if e.level == 0]
    if not chosen:
        chosen = [e for e in outline if e.level == 2][:_MAX_HEADING_CHAPTERS]
    if not chosen:
        return None

    n = len(text)
    ordered = sorted(chosen, key=lambda e: e.location)
    chapters = []
    for i, entry in enumerate(ordered):
        start = min(max(entry.location, 0), n)
        end = min(max(ordered[i + 1].location, 0), n) if i + 1 < len(ordered) else n
        end = max(start, end)
        chapters.append(Chapter(number=i + 1, text=text[start:end], start_offset=start))
    return chapters


def _is_marker(line: str) -> bool:
    stripped = line.strip()
    return any(p.search(stripped) for p in CHAPTER_MARKER_PATTERNS)


def split_by_markers(text: str) -> list[Chapter]:
    """Split on chapter marker lines; the whole text is one chapter when none are found."""
    starts = [0]
    offset = 0
    for line in text.splitlines(keepends=True):
        if _is_marker(line) and text[starts[-1]:offset].strip():
            starts.append(offset)
        offset += len(line)

    bounds = starts + [len(text)]
    return [
        Chapter(number=i + 1, text=text[bounds[i]:bounds[i + 1]], start_offset=bounds[i])
        for i in range(len(starts))
    ]


def split_chapters(text: str, outline: Optional[Iterable[Any]] = None) -> list[Chapter]:
    """Chapters from the outline when usable, else from in-text markers."""
    from_outline = chapters_from_outline(text, coerce_outline(outline))
    if from_outline is not None:
        logger.debug("Using %d outline chapters", len(from_outline))
        return from_outline
    chapters = split_by_markers(text)
    logger.debug("Split text into %d chapters by markers", len(chapters))
    return chapters


def split_word_sections(text: str, words_per_section: int) -> list[str]:
    """Consecutive sections of *words_per_section* words; the last one may be shorter."""
    words = split_words(text)
    size = max(1, words_per_section)
    return [" ".join(words[i:i + size]) for i in range(0, len(words), size)]


def page_for_location(page_mapping: list[PageMark], location: int) -> int:
    """Page of the last mark at or before *location*; 0 without a mapping."""
    if not page_mapping:
        return 0
    locations = [m.location for m in page_mapping]
    idx = bisect.bisect_right(locations, location) - 1
    if idx < 0:
        return page_mapping[0].page
    return page_mapping[idx].page
