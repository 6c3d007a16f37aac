"""Manuscript analysis engine: runs every analyzer and assembles the results.

Pure and synchronous: no I/O, no shared mutable state, and no exception
for any text input. Empty text yields zeroed results.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from narrative_lens.config import EngineConfig
from narrative_lens.models import AnalysisResults, DocumentFormat
from narrative_lens.agents.arc_extractor import (
    build_belief_matrices,
    build_decision_belief_loops,
    build_decision_chains,
)
from narrative_lens.agents.character_analyzer import (
    analyze_emotional_arcs,
    analyze_interactions,
    analyze_presence,
    interaction_sections,
    resolve_character_names,
)
from narrative_lens.agents.dialogue_analyzer import (
    analyze_dialogue,
    dialogue_percentage,
    extract_dialogue,
    extract_screenplay_dialogue,
    screenplay_page_count,
)
from narrative_lens.agents.format_detector import detect_format
from narrative_lens.agents.plot_detector import analyze_plot
from narrative_lens.agents.prose_analyzer import analyze_prose
from narrative_lens.utils.chapters import coerce_page_mapping, split_chapters
from narrative_lens.utils.language import detect_language, is_english
from narrative_lens.utils.segmentation import count_sentences, count_words, split_paragraphs

logger = logging.getLogger("narrative-lens")

LONG_PARAGRAPH_WORDS = 150


def _paragraph_stats(text: str) -> tuple[int, int, list[int]]:
    """(paragraph count, average words per paragraph, 1-based indices of long paragraphs)."""
    paragraphs = split_paragraphs(text)
    if not paragraphs:
        return 0, 0, []
    lengths = [count_words(p) for p in paragraphs]
    long_ones = [i + 1 for i, n in enumerate(lengths) if n > LONG_PARAGRAPH_WORDS]
    return len(paragraphs), sum(lengths) // len(paragraphs), long_ones


def _page_count(text: str, word_count: int, fmt: DocumentFormat,
                override: Optional[int], config: EngineConfig) -> int:
    if override is not None and override > 0:
        return override
    if fmt == DocumentFormat.screenplay:
        return screenplay_page_count(text, config.screenplay_lines_per_page)
    per_page = max(1, config.words_per_page)
    return max(1, (word_count + per_page - 1) // per_page)


def _dialogue_segments(text: str, fmt: DocumentFormat, config: EngineConfig) -> list[str]:
    if config.use_screenplay_cues and fmt == DocumentFormat.screenplay:
        segments = extract_screenplay_dialogue(text)
        if segments:
            return segments
    return extract_dialogue(text)


def run_manuscript_analysis(
    text: str,
    outline: Optional[Iterable[Any]] = None,
    page_mapping: Optional[Iterable[Any]] = None,
    character_names: Optional[Iterable[str]] = None,
    page_count_override: Optional[int] = None,
    config: Optional[EngineConfig] = None,
) -> AnalysisResults:
    """
    Analyze a manuscript.

    Args:
        text: Manuscript text. Only the first ``max_analysis_chars``
            characters are analyzed; the word count and page estimate
            use the full text.
        outline: Outline entries (OutlineEntry or dicts) used to cut chapters.
        page_mapping: ``(location, page)`` marks used to tag chapter pages.
        character_names: Canonical character names. Nothing else is
            ever analyzed as a character; an empty list disables all
            character sections.
        page_count_override: Page count to report instead of the estimate.
        config: Engine settings; defaults when omitted.

    Returns:
        AnalysisResults
    """
    config = config or EngineConfig()
    text = text or ""

    truncated = len(text) > config.max_analysis_chars
    analysis_text = text[:config.max_analysis_chars] if truncated else text
    if truncated:
        logger.warning(
            "Text truncated from %d to %d characters for analysis",
            len(text), config.max_analysis_chars,
        )

    word_count = count_words(text)
    sentence_count = count_sentences(analysis_text)
    paragraph_count, avg_paragraph, long_paragraphs = _paragraph_stats(analysis_text)

    language, language_conf = detect_language(analysis_text)
    if analysis_text.strip() and not is_english(language):
        logger.warning("Manuscript language is %r; word lists are English-only", language)

    fmt, fmt_conf = detect_format(analysis_text)
    logger.info("Detected format: %s (confidence %.2f)", fmt.value, fmt_conf)

    prose = analyze_prose(analysis_text, word_count, sentence_count)

    segments = _dialogue_segments(analysis_text, fmt, config)
    dialogue = analyze_dialogue(analysis_text, segments)

    plot = analyze_plot(analysis_text, word_count, fmt, fmt_conf)

    # ── Characters ────────────────────────────────────────────────────
    names = resolve_character_names(character_names or [], analysis_text)
    character_sections: dict[str, Any] = {}
    if names:
        chapters = split_chapters(analysis_text, outline)
        marks = coerce_page_mapping(page_mapping)
        sections = interaction_sections(analysis_text, chapters, config.interaction_section_words)
        character_sections = dict(
            character_presence=analyze_presence(chapters, names),
            character_interactions=analyze_interactions(sections, names),
            decision_belief_loops=build_decision_belief_loops(
                chapters, names, config.max_loop_entries, config.max_excerpt_chars,
            ),
            belief_shift_matrices=build_belief_matrices(
                chapters, names, marks, config.max_excerpt_chars,
            ),
            decision_consequence_chains=build_decision_chains(
                chapters, names, marks, config.max_excerpt_chars,
            ),
            character_arcs=analyze_emotional_arcs(analysis_text, names, config.arc_section_words),
        )
        logger.info("Analyzed %d characters across %d chapters", len(names), len(chapters))

    results = AnalysisResults(
        word_count=word_count,
        sentence_count=sentence_count,
        paragraph_count=paragraph_count,
        page_count=_page_count(text, word_count, fmt, page_count_override, config),
        average_paragraph_length=avg_paragraph,
        long_paragraphs=long_paragraphs,
        language=language,
        language_confidence=language_conf,
        analyzed_char_count=len(analysis_text),
        truncated=truncated,
        **prose.model_dump(),
        dialogue_percentage=dialogue_percentage(segments, count_words(analysis_text)),
        dialogue_quality_score=dialogue.quality_score,
        dialogue_segment_count=dialogue.segment_count,
        dialogue_filler_count=dialogue.filler_count,
        dialogue_repetition_score=dialogue.repetition_score,
        dialogue_tag_variety=dialogue.tag_variety,
        dialogue_monotony_issues=dialogue.monotony_issues,
        dialogue_predictable_phrases=dialogue.predictable_phrases,
        dialogue_exposition_count=dialogue.exposition_count,
        dialogue_pacing_score=dialogue.pacing_score,
        has_dialogue_conflict=dialogue.has_conflict,
        plot_analysis=plot,
        **character_sections,
    )

    logger.info(
        "Manuscript analysis complete: %d words, %d sentences, %d paragraphs, "
        "%d pages, %d dialogue segments, structure score %d",
        results.word_count, results.sentence_count, results.paragraph_count,
        results.page_count, results.dialogue_segment_count, plot.structure_score,
    )
    return results
