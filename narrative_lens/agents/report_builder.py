"""Report builder: Markdown and JSON renderings of a manuscript report."""

from __future__ import annotations

import logging

from narrative_lens.models import (
    AnalysisResults,
    DocumentFormat,
    IssueSeverity,
    ManuscriptReport,
    PlotAnalysis,
)

logger = logging.getLogger("narrative-lens")


def _h(level: int, text: str) -> str:
    return "#" * level + " " + text


def _score_bar(score: float, max_score: float = 100.0, bar_length: int = 10) -> str:
    """Simple text-based score bar."""
    filled = max(0, min(bar_length, round(score / max_score * bar_length)))
    return "[" + "=" * filled + "-" * (bar_length - filled) + "]"


def _severity_icon(sev: IssueSeverity) -> str:
    icons = {
        IssueSeverity.minor: "[.]",
        IssueSeverity.moderate: "[!]",
        IssueSeverity.major: "[!!]",
    }
    return icons.get(sev, "[?]")


def _examples(items: list[str]) -> str:
    return ", ".join(f"*{i}*" for i in items) if items else "-"


# ── Sections ─────────────────────────────────────────────────────────────

def _overview(r: AnalysisResults) -> list[str]:
    lines = [_h(2, "Overview"), ""]
    lines.append(f"- **Words:** {r.word_count}, **Sentences:** {r.sentence_count}, "
                 f"**Paragraphs:** {r.paragraph_count}, **Pages:** {r.page_count}")
    lines.append(f"- **Average paragraph:** {r.average_paragraph_length} words")
    if r.long_paragraphs:
        lines.append(f"- **Long paragraphs (>150 words):** "
                     f"{', '.join(str(i) for i in r.long_paragraphs)}")
    lines.append(f"- **Language:** {r.language} ({r.language_confidence:.2f})")
    lines.append(f"- **Reading level:** {r.reading_level}")
    if r.truncated:
        lines.append(f"- **Note:** analysis limited to the first {r.analyzed_char_count} characters")
    lines.append("")
    return lines


def _prose(r: AnalysisResults) -> list[str]:
    lines = [_h(2, "Prose Quality"), ""]
    lines.append("| Signal | Count | Examples |")
    lines.append("|--------|-------|----------|")
    rows = (
        ("Passive voice", r.passive_voice_count, r.passive_voice_phrases),
        ("Adverbs", r.adverb_count, r.adverb_phrases),
        ("Weak verbs", r.weak_verb_count, r.weak_verb_phrases),
        ("Filter words", r.filter_word_count, r.filter_word_phrases),
        ("Cliches", r.cliche_count, r.cliche_phrases),
    )
    for label, count, examples in rows:
        lines.append(f"| {label} | {count} | {_examples(examples)} |")
    lines.append("")
    lines.append(f"- **Sensory words:** {r.sensory_detail_count}"
                 + (" (sparse)" if r.missing_sensory_detail else ""))
    lines.append(f"- **Sentence variety:** {_score_bar(r.sentence_variety_score)} "
                 f"{r.sentence_variety_score}/100")
    lines.append("")
    return lines


def _dialogue(r: AnalysisResults) -> list[str]:
    lines = [_h(2, "Dialogue"), ""]
    if r.dialogue_segment_count == 0:
        lines.append("No dialogue found.")
        lines.append("")
        return lines
    lines.append(f"| Quality | {_score_bar(r.dialogue_quality_score)} {r.dialogue_quality_score}/100 |")
    lines.append("")
    lines.append(f"- **Segments:** {r.dialogue_segment_count} ({r.dialogue_percentage}% of words)")
    lines.append(f"- **Segments with fillers:** {r.dialogue_filler_count}")
    lines.append(f"- **Attribution verbs used:** {r.dialogue_tag_variety}")
    lines.append(f"- **Exposition-heavy lines:** {r.dialogue_exposition_count}")
    lines.append(f"- **Pacing:** {r.dialogue_pacing_score}/100")
    lines.append(f"- **Conflict present:** {'yes' if r.has_dialogue_conflict else 'no'}")
    if r.dialogue_predictable_phrases:
        lines.append(f"- **Predictable phrases:** {_examples(r.dialogue_predictable_phrases)}")
    for issue in r.dialogue_monotony_issues:
        lines.append(f"- {issue}")
    lines.append("")
    return lines


def _structure(plot: PlotAnalysis) -> list[str]:
    lines = [_h(2, "Structure"), ""]
    lines.append(f"**Format:** {plot.document_format.value} "
                 f"(confidence {plot.format_confidence:.2f})  ")
    lines.append(f"**Structure score:** {_score_bar(plot.structure_score)} {plot.structure_score}/100")
    lines.append("")

    if plot.document_format == DocumentFormat.screenplay:
        lines.append(f"- **Visual causality:** {plot.visual_causality_score}/100")
        lines.append(f"- **Scene efficiency:** {plot.scene_efficiency}/100")
        lines.append(f"- **Pacing:** {plot.pacing_score}/100")
        lines.append(f"- **Estimated runtime:** ~{plot.estimated_runtime} min")
    else:
        lines.append(f"- **Internal change:** {plot.internal_change_score}/100")
        lines.append(f"- **Thematic resonance:** {plot.thematic_resonance}/100")
        lines.append(f"- **Narrative momentum:** {plot.narrative_momentum}/100")
    lines.append("")

    if plot.plot_points:
        lines.append(_h(3, "Plot Points"))
        lines.append("")
        lines.append("| Beat | Position | Tension | Note |")
        lines.append("|------|----------|---------|------|")
        for p in plot.plot_points:
            note = p.suggested_improvement or p.description
            lines.append(f"| {p.type} | {p.percentage_position:.0%} | {p.tension_level:.2f} | {note} |")
        lines.append("")

    if plot.missing_points:
        lines.append(f"**Missing beats:** {', '.join(plot.missing_points)}")
        lines.append("")

    if plot.structural_issues:
        lines.append(_h(3, "Structural Issues"))
        lines.append("")
        for issue in plot.structural_issues:
            start, end = issue.affected_range
            lines.append(f"{_severity_icon(issue.severity)} **{issue.category.value}** "
                         f"({start:.0%}-{end:.0%})")
            lines.append(f"  {issue.description}")
            lines.append(f"  *Suggestion:* {issue.suggestion}")
            lines.append("")
    return lines


def _characters(r: AnalysisResults) -> list[str]:
    if not r.character_presence:
        return []
    lines = [_h(2, "Characters"), ""]

    for presence in r.character_presence:
        chapters = ", ".join(f"ch.{c}: {n}" for c, n in sorted(presence.chapter_presence.items()))
        lines.append(f"- **{presence.character_name}:** {chapters or 'not present'}")
    lines.append("")

    if r.character_interactions:
        lines.append(_h(3, "Interactions"))
        lines.append("")
        for x in r.character_interactions:
            lines.append(f"- {x.character1} & {x.character2}: {x.co_appearances} shared sections "
                         f"(strength {x.relationship_strength:.2f})")
        lines.append("")

    for loop in r.decision_belief_loops:
        lines.append(_h(3, f"Decision-Belief Loop: {loop.character_name}"))
        lines.append(f"*{loop.arc_quality.value}*")
        lines.append("")
        for e in loop.entries:
            lines.append(f"**Ch. {e.chapter}**  ")
            lines.append(f"- Pressure: {e.pressure}")
            lines.append(f"- Belief in play: {e.belief_in_play}")
            lines.append(f"- Decision: {e.decision}")
            lines.append(f"- Outcome: {e.outcome}")
            lines.append(f"- Belief shift: {e.belief_shift}")
            lines.append("")

    for matrix in r.belief_shift_matrices:
        lines.append(_h(3, f"Belief Shifts: {matrix.character_name}"))
        lines.append("")
        lines.append("| Chapter | Core belief | Evidence | Counterpressure |")
        lines.append("|---------|-------------|----------|-----------------|")
        for e in matrix.entries:
            lines.append(f"| {e.chapter} | {e.core_belief} | {e.evidence} | {e.counterpressure} |")
        lines.append("")

    for chain in r.decision_consequence_chains:
        lines.append(_h(3, f"Decisions and Consequences: {chain.character_name}"))
        lines.append("")
        lines.append("| Chapter | Decision | Immediate outcome | Long-term effect |")
        lines.append("|---------|----------|-------------------|------------------|")
        for e in chain.entries:
            lines.append(f"| {e.chapter} | {e.decision} | {e.immediate_outcome} | {e.long_term_effect} |")
        lines.append("")

    if r.character_arcs:
        lines.append(_h(3, "Emotional Arcs"))
        lines.append("")
        for arc in r.character_arcs:
            lines.append(f"- **{arc.character_name}:** {arc.arc_type.value} "
                         f"(strength {arc.arc_strength:.2f}, {arc.total_mentions} mentions)")
        lines.append("")
    return lines


def build_markdown_report(report: ManuscriptReport) -> str:
    """Generate a human-readable Markdown report."""
    r = report.results
    lines: list[str] = [_h(1, "Manuscript Analysis Report"), ""]
    lines.append(f"**Characters in input:** {report.input_char_count}  ")
    lines.append(f"**Date:** {report.timestamp}  ")
    if report.character_names:
        lines.append(f"**Cast:** {', '.join(report.character_names)}  ")
    lines.append("")

    lines.extend(_overview(r))
    lines.extend(_prose(r))
    lines.extend(_dialogue(r))
    if r.plot_analysis is not None:
        lines.extend(_structure(r.plot_analysis))
    lines.extend(_characters(r))

    lines.append("---")
    lines.append(f"*Generated by narrative-lens v{report.version} in {report.duration_ms:.0f} ms*")
    return "\n".join(lines)


def build_json_report(report: ManuscriptReport) -> str:
    """Serialize the full report to JSON."""
    return report.model_dump_json(indent=2)
