"""Character name resolution, presence, interactions and emotional arcs.

Only canonical names (first-name tokens of character profiles) are ever
analyzed; names are never guessed from the text.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

from narrative_lens.models import (
    ArcType,
    Chapter,
    CharacterArc,
    CharacterInteraction,
    CharacterPresence,
    EmotionalState,
)
from narrative_lens.utils.chapters import split_word_sections
from narrative_lens.utils.lexicon import INTENSITY_WORDS, SENTIMENT_WORDS
from narrative_lens.utils.segmentation import (
    clean_word,
    count_mentions,
    mean,
    mentions,
    split_words,
    variance,
)

logger = logging.getLogger("narrative-lens")


# ── Name resolution ──────────────────────────────────────────────────────

def canonical_names_from_profiles(full_names: Iterable[str]) -> list[str]:
    """First-name token of each profile name, dropping blanks and duplicates."""
    out: list[str] = []
    seen: set[str] = set()
    for full in full_names:
        tokens = (full or "").split()
        if not tokens:
            continue
        first = tokens[0]
        if first.lower() not in seen:
            seen.add(first.lower())
            out.append(first)
    return out


def resolve_character_names(
    canonical: Iterable[str],
    text: str,
    requested: Optional[Iterable[str]] = None,
) -> list[str]:
    """
    Names to analyze: requested names that are canonical and occur in *text*.

    Matching against the canonical list is case-insensitive and the
    canonical spelling is returned. *requested* defaults to the whole
    canonical list. An empty canonical list always resolves to nothing.
    """
    by_key: dict[str, str] = {}
    for name in canonical:
        stripped = (name or "").strip()
        if stripped and stripped.lower() not in by_key:
            by_key[stripped.lower()] = stripped
    if not by_key:
        return []

    wanted = by_key.values() if requested is None else requested
    resolved: list[str] = []
    for name in wanted:
        key = (name or "").strip().lower()
        name = by_key.get(key)
        if name is None or name in resolved:
            continue
        if mentions(name, text):
            resolved.append(name)

    logger.debug("Resolved %d of %d canonical names", len(resolved), len(by_key))
    return resolved


# ── Presence and interactions ────────────────────────────────────────────

def analyze_presence(chapters: list[Chapter], names: list[str]) -> list[CharacterPresence]:
    presence = []
    for name in names:
        counts = {}
        for chapter in chapters:
            n = count_mentions(name, chapter.text)
            if n > 0:
                counts[chapter.number] = n
        presence.append(CharacterPresence(character_name=name, chapter_presence=counts))
    return presence


def analyze_interactions(sections: list[str], names: list[str]) -> list[CharacterInteraction]:
    """
    Pairwise co-appearance over *sections*.

    Pairs that never share a section are omitted; the rest are sorted by
    co-appearance count, most frequent first.
    """
    if not sections:
        return []

    present = {name: [mentions(name, s) for s in sections] for name in names}
    interactions = []
    for i, first in enumerate(names):
        for second in names[i + 1:]:
            shared = [k for k, (a, b) in enumerate(zip(present[first], present[second])) if a and b]
            if not shared:
                continue
            interactions.append(CharacterInteraction(
                character1=first,
                character2=second,
                co_appearances=len(shared),
                sections=shared,
                relationship_strength=len(shared) / len(sections),
            ))

    interactions.sort(key=lambda x: x.co_appearances, reverse=True)
    return interactions


def interaction_sections(text: str, chapters: list[Chapter], section_words: int) -> list[str]:
    """Chapters when the text has several, otherwise fixed word windows."""
    if len(chapters) > 1:
        return [c.text for c in chapters]
    return split_word_sections(text, section_words)


# ── Emotional arcs ───────────────────────────────────────────────────────

_SENTENCE_WITH_END = re.compile(r'[^.!?]+[.!?]*')


def _sentences_naming(text: str, name: str) -> list[str]:
    """Sentences mentioning *name*, terminal punctuation kept."""
    return [s for s in _SENTENCE_WITH_END.findall(text) if mentions(name, s)]


def section_sentiment(text: str, name: str) -> float:
    """Mean signed emotion weight over sentences naming *name*."""
    scores = []
    for sentence in _sentences_naming(text, name):
        for word in split_words(sentence):
            value = SENTIMENT_WORDS.get(clean_word(word))
            if value is not None:
                scores.append(value)
    return mean(scores)


def section_intensity(text: str, name: str) -> float:
    """Intensity words plus exclamation marks per word, scaled by 20 and capped at 1."""
    hits = 0
    words = 0
    for sentence in _sentences_naming(text, name):
        tokens = split_words(sentence)
        words += len(tokens)
        hits += sum(1 for t in tokens if clean_word(t) in INTENSITY_WORDS)
        hits += sentence.count("!")
    return min(1.0, hits / max(1, words) * 20.0)


def classify_arc(journey: list[EmotionalState]) -> ArcType:
    if len(journey) < 3:
        return ArcType.flat
    sentiments = [s.sentiment for s in journey]
    third = len(sentiments) // 3
    change = mean(sentiments[-third:]) - mean(sentiments[:third])
    if abs(change) > 0.4:
        return ArcType.transformational
    if change > 0.2:
        return ArcType.positive
    if change < -0.2:
        return ArcType.negative
    return ArcType.flat


def arc_strength(journey: list[EmotionalState]) -> float:
    if len(journey) < 2:
        return 0.0
    return min(1.0, variance([s.sentiment for s in journey]) * 2.0)


def analyze_emotional_arcs(text: str, names: list[str], section_words: int) -> list[CharacterArc]:
    sections = split_word_sections(text, section_words)
    if not sections:
        return []

    arcs = []
    for name in names:
        journey = []
        presence = []
        for index, section in enumerate(sections):
            n = count_mentions(name, section)
            presence.append(n)
            if n == 0:
                continue
            journey.append(EmotionalState(
                section_index=index,
                sentiment=section_sentiment(section, name),
                intensity=section_intensity(section, name),
                word_position=index * section_words,
            ))
        arcs.append(CharacterArc(
            character_name=name,
            emotional_journey=journey,
            presence_by_section=presence,
            total_mentions=sum(presence),
            arc_type=classify_arc(journey),
            arc_strength=arc_strength(journey),
        ))
    return arcs
