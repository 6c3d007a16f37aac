"""Decision-Belief Loops, belief-shift matrices and decision-consequence chains.

Every extracted field is the first sentence of a chapter that names the
character and contains a cue word from the matching indicator set.
Chapters without a belief (or decision) sentence are skipped, and a
character with no qualifying chapter gets no loop, matrix or chain.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence, TypeVar

from narrative_lens.models import (
    BeliefEntry,
    BeliefShiftMatrix,
    ChainEntry,
    Chapter,
    DecisionBeliefLoop,
    DecisionConsequenceChain,
    LoopEntry,
    PageMark,
)
from narrative_lens.utils.chapters import page_for_location
from narrative_lens.utils.lexicon import (
    BELIEF_PATTERN,
    COUNTERPRESSURE_PATTERN,
    DECISION_PATTERN,
    EFFECT_PATTERN,
    EVIDENCE_PATTERN,
    OUTCOME_PATTERN,
)
from narrative_lens.utils.segmentation import mentions, split_sentences

logger = logging.getLogger("narrative-lens")

T = TypeVar("T")

FALLBACK_BELIEF = "Belief implied by character actions"
FALLBACK_EVIDENCE = "Character's actions reflect this belief"
FALLBACK_COUNTERPRESSURE = "Circumstances test this perspective"
FALLBACK_DECISION = "Choice implied by character actions"
FALLBACK_OUTCOME = "Direct consequences unfold"
FALLBACK_EFFECT = "Character trajectory shifts"


def find_cue_sentence(
    text: str,
    name: str,
    cues: Optional[re.Pattern[str]],
    max_chars: int = 120,
) -> Optional[str]:
    """First sentence naming *name* that contains a cue word, cut to *max_chars*."""
    if cues is None:
        return None
    for sentence in split_sentences(text):
        if mentions(name, sentence) and cues.search(sentence):
            return sentence[:max_chars]
    return None


def chapters_mentioning(chapters: list[Chapter], name: str) -> list[Chapter]:
    return [c for c in chapters if mentions(name, c.text)]


def sample_first_middle_last(items: Sequence[T]) -> list[T]:
    if len(items) <= 3:
        return list(items)
    return [items[0], items[len(items) // 2], items[-1]]


def sample_quartiles(items: Sequence[T]) -> list[T]:
    """Items at the 0, 1/3, 2/3 and last positions, without repeats."""
    n = len(items)
    if n <= 4:
        return list(items)
    indices: list[int] = []
    for i in range(4):
        idx = round(i * (n - 1) / 3)
        if idx not in indices:
            indices.append(idx)
    return [items[i] for i in indices]


# ── Belief-shift matrices ────────────────────────────────────────────────

def build_belief_matrices(
    chapters: list[Chapter],
    names: list[str],
    page_mapping: Optional[list[PageMark]] = None,
    max_chars: int = 120,
) -> list[BeliefShiftMatrix]:
    matrices = []
    for name in names:
        entries = []
        for chapter in sample_first_middle_last(chapters_mentioning(chapters, name)):
            belief = find_cue_sentence(chapter.text, name, BELIEF_PATTERN, max_chars)
            if belief is None:
                continue
            entries.append(BeliefEntry(
                chapter=chapter.number,
                chapter_page=page_for_location(page_mapping or [], chapter.start_offset),
                core_belief=belief,
                evidence=find_cue_sentence(chapter.text, name, EVIDENCE_PATTERN, max_chars)
                or FALLBACK_EVIDENCE,
                counterpressure=find_cue_sentence(chapter.text, name, COUNTERPRESSURE_PATTERN, max_chars)
                or FALLBACK_COUNTERPRESSURE,
            ))
        if entries:
            matrices.append(BeliefShiftMatrix(character_name=name, entries=entries))
    return matrices


# ── Decision-consequence chains ──────────────────────────────────────────

def build_decision_chains(
    chapters: list[Chapter],
    names: list[str],
    page_mapping: Optional[list[PageMark]] = None,
    max_chars: int = 120,
) -> list[DecisionConsequenceChain]:
    chains = []
    for name in names:
        entries = []
        for chapter in sample_quartiles(chapters_mentioning(chapters, name)):
            decision = find_cue_sentence(chapter.text, name, DECISION_PATTERN, max_chars)
            if decision is None:
                continue
            entries.append(ChainEntry(
                chapter=chapter.number,
                chapter_page=page_for_location(page_mapping or [], chapter.start_offset),
                decision=decision,
                immediate_outcome=find_cue_sentence(chapter.text, name, OUTCOME_PATTERN, max_chars)
                or FALLBACK_OUTCOME,
                long_term_effect=find_cue_sentence(chapter.text, name, EFFECT_PATTERN, max_chars)
                or FALLBACK_EFFECT,
            ))
        if entries:
            chains.append(DecisionConsequenceChain(character_name=name, entries=entries))
    return chains


# ── Decision-Belief Loops ────────────────────────────────────────────────

def build_decision_belief_loops(
    chapters: list[Chapter],
    names: list[str],
    max_entries: int = 8,
    max_chars: int = 120,
) -> list[DecisionBeliefLoop]:
    """
    One loop per character over every chapter that names them.

    A chapter contributes an entry when it holds a belief or a decision
    sentence; the remaining fields fall back to generic phrases.
    """
    loops = []
    for name in names:
        entries = []
        for chapter in chapters_mentioning(chapters, name):
            belief = find_cue_sentence(chapter.text, name, BELIEF_PATTERN, max_chars)
            decision = find_cue_sentence(chapter.text, name, DECISION_PATTERN, max_chars)
            if belief is None and decision is None:
                continue
            entries.append(LoopEntry(
                chapter=chapter.number,
                pressure=find_cue_sentence(chapter.text, name, COUNTERPRESSURE_PATTERN, max_chars)
                or FALLBACK_COUNTERPRESSURE,
                belief_in_play=belief or FALLBACK_BELIEF,
                decision=decision or FALLBACK_DECISION,
                outcome=find_cue_sentence(chapter.text, name, OUTCOME_PATTERN, max_chars)
                or FALLBACK_OUTCOME,
                belief_shift=find_cue_sentence(chapter.text, name, EFFECT_PATTERN, max_chars)
                or FALLBACK_EFFECT,
            ))
            if len(entries) >= max_entries:
                break
        if entries:
            loops.append(DecisionBeliefLoop(character_name=name, entries=entries))

    logger.debug("Built %d decision-belief loops", len(loops))
    return loops
