"""Plot point detection, structural issues and the structure score.

Beats are located on the tension curve: local peaks (and, for novels,
valleys that precede a sharp climb; for screenplays, sharp reversals)
are classified purely by their fractional position. Mandatory beats
that were not found are back-filled at the sample nearest their
expected position, carrying the beat's failure description as the
suggested improvement.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from narrative_lens.agents.format_detector import detect_format
from narrative_lens.agents.tension import tension_curve
from narrative_lens.models import (
    DocumentFormat,
    IssueCategory,
    IssueSeverity,
    PlotAnalysis,
    PlotPoint,
    StructuralIssue,
    TensionPoint,
)
from narrative_lens.utils.lexicon import (
    INTERNAL_CHANGE_WORDS,
    SCENE_HEADING_PATTERN,
    THEMATIC_WORDS,
    VISUAL_ACTION_WORDS,
)
from narrative_lens.utils.segmentation import clean_word, mean, split_words, variance

logger = logging.getLogger("narrative-lens")

SCREENPLAY_PAGES = 120
SCREENPLAY_WORDS_PER_MINUTE = 165
MIN_SAMPLES = 6


@dataclass(frozen=True)
class Beat:
    name: str
    expected_position: float
    band_upper: float
    question: str
    failure: str
    mandatory: bool = False

    @property
    def expected_page(self) -> int:
        return int(self.expected_position * SCREENPLAY_PAGES)


# ── Beat tables ──────────────────────────────────────────────────────────

NOVEL_BEATS = (
    Beat("Opening State", 0.02, 0.05,
         "What worldview and tonal contract does this establish?",
         "Weak or unclear tonal contract with the reader"),
    Beat("Inciting Disruption", 0.12, 0.18,
         "Does this force a choice, not just reveal information?",
         "Late plot ignition or passive discovery", mandatory=True),
    Beat("First Commitment", 0.25, 0.30,
         "Is this a clear turn where the protagonist acts?",
         "Hesitation without commitment"),
    Beat("Progressive Complications", 0.35, 0.45,
         "What changes internally in this span?",
         "Excessive inertia or over-indulgent introspection"),
    Beat("Midpoint Reversal", 0.50, 0.55,
         "Does this change what success looks like?",
         "Thematic diffusion - no redefinition of success", mandatory=True),
    Beat("Escalating Costs", 0.62, 0.70,
         "Does every gain create a new, worse problem?",
         "Moral complexity doesn't increase"),
    Beat("Crisis / Lowest Point", 0.75, 0.82,
         "Is this unfixable by the old belief?",
         "Crisis could be solved by old belief", mandatory=True),
    Beat("Final Choice", 0.85, 0.90,
         "Is there internal reconciliation with belief?",
         "No internal reconciliation"),
    Beat("Climax", 0.92, 0.96,
         "Does meaning crystallize here?",
         "Meaning doesn't crystallize", mandatory=True),
    Beat("Aftermath", 0.98, float("inf"),
         "Does this echo and transform the opening state?",
         "No resonance with opening"),
)

SCREENPLAY_BEATS = (
    Beat("Opening Image", 0.01, 0.05,
         "Is there a visible contradiction or unease?",
         "No visual hook or contradiction", mandatory=True),
    Beat("Inciting Incident", 0.10, 0.15,
         "Is this external, observable, and does it change the situation?",
         "Internal/invisible inciting incident", mandatory=True),
    Beat("Lock In (End Act I)", 0.25, 0.28,
         "Does the protagonist clearly act, not just decide?",
         "Passive protagonist - no clear action", mandatory=True),
    Beat("First Sequence", 0.30, 0.38,
         "Does each scene advance plot, escalate stakes, and end with a turn?",
         "Scenes without visible turns"),
    Beat("Rising Complications", 0.40, 0.48,
         "Does each scene have a visible objective and turn?",
         "Repetitive scenes without escalation"),
    Beat("Midpoint Reversal", 0.50, 0.55,
         "Is this a visible reversal (victory→defeat, safety→danger)?",
         "Midpoint sag - no power shift", mandatory=True),
    Beat("Bad Guys Close In", 0.60, 0.68,
         "Are options visibly narrowing?",
         "Stakes remain static"),
    Beat("All Is Lost", 0.75, 0.78,
         "Is the protagonist situationally trapped or stripped of power?",
         "Protagonist not truly trapped", mandatory=True),
    Beat("Dark Night of Soul", 0.80, 0.83,
         "Is there a moment of reflection before action?",
         "Missing emotional beat"),
    Beat("Third Act Break", 0.85, 0.90,
         "Is there a decisive action under pressure?",
         "Third-act solution not earned visually"),
    Beat("Finale", 0.95, 0.97,
         "Is there clear physical or strategic resolution?",
         "Invisible stakes in resolution", mandatory=True),
    Beat("Closing Image", 0.99, float("inf"),
         "Does this mirror the opening with changed behavior?",
         "No visual bookend", mandatory=True),
)


def beats_for(fmt: DocumentFormat) -> tuple[Beat, ...]:
    return SCREENPLAY_BEATS if fmt == DocumentFormat.screenplay else NOVEL_BEATS


def classify_position(position: float, fmt: DocumentFormat) -> Beat:
    """Beat whose position band contains *position*."""
    beats = beats_for(fmt)
    for beat in beats:
        if position < beat.band_upper:
            return beat
    return beats[-1]


# ── Detection ────────────────────────────────────────────────────────────

def _point(beat: Beat, sample: TensionPoint, fmt: DocumentFormat, description: str,
           improvement: Optional[str] = None) -> PlotPoint:
    return PlotPoint(
        type=beat.name,
        word_position=sample.word_position,
        percentage_position=sample.position,
        tension_level=sample.tension_level,
        description=description,
        analysis_question=beat.question,
        suggested_improvement=improvement,
        is_screenplay_point=fmt == DocumentFormat.screenplay,
    )


def _local_points(curve: list[TensionPoint], fmt: DocumentFormat) -> list[PlotPoint]:
    points = []
    for i in range(1, len(curve) - 1):
        prev, cur, nxt = curve[i - 1].tension_level, curve[i].tension_level, curve[i + 1].tension_level
        beat = classify_position(curve[i].position, fmt)

        if fmt == DocumentFormat.screenplay:
            is_peak = prev < cur > nxt and cur > 0.45
            is_reversal = abs(cur - prev) > 0.3 or abs(nxt - cur) > 0.3
            if is_peak or is_reversal:
                points.append(_point(beat, curve[i], fmt, beat.question))
            continue

        if prev < cur > nxt and cur > 0.4:
            points.append(_point(beat, curve[i], fmt, beat.question))
        if cur < prev and nxt > cur and nxt - cur > 0.25:
            points.append(_point(beat, curve[i], fmt, "Setup before tension increase"))
    return points


def _backfill(points: list[PlotPoint], curve: list[TensionPoint], fmt: DocumentFormat) -> None:
    found = {p.type for p in points}
    for beat in beats_for(fmt):
        if not beat.mandatory or beat.name in found:
            continue
        nearest = min(curve, key=lambda s: abs(s.position - beat.expected_position))
        if fmt == DocumentFormat.screenplay:
            description = f"Expected at ~{beat.expected_page} pages"
        else:
            description = f"Expected {beat.name}"
        points.append(_point(beat, nearest, fmt, description, improvement=beat.failure))


def detect_plot_points(curve: list[TensionPoint], fmt: DocumentFormat) -> list[PlotPoint]:
    """Detected beats plus back-filled mandatory beats, ordered by word position."""
    if len(curve) < MIN_SAMPLES:
        return []
    points = _local_points(curve, fmt)
    _backfill(points, curve, fmt)
    return sorted(points, key=lambda p: p.word_position)


def missing_beats(points: list[PlotPoint], fmt: DocumentFormat) -> list[str]:
    found = {p.type for p in points}
    return [b.name for b in beats_for(fmt) if b.name not in found]


# ── Structural issues ────────────────────────────────────────────────────

def _novel_issues(points: list[PlotPoint], curve: list[TensionPoint]) -> list[StructuralIssue]:
    issues = []

    def inertia(streak: int, start: float, end: float) -> StructuralIssue:
        return StructuralIssue(
            severity=IssueSeverity.major if streak > 10 else IssueSeverity.moderate,
            category=IssueCategory.excessive_inertia,
            description="Extended low-tension passage detected. Beautiful but potentially stagnant.",
            suggestion="Consider adding micro-conflicts, revelations, or thematic tensions "
                       "to maintain reader engagement.",
            affected_range=(start, end),
        )

    streak, start = 0, 0.0
    for sample in curve:
        if sample.tension_level < 0.2:
            if streak == 0:
                start = sample.position
            streak += 1
            continue
        if streak > 5:
            issues.append(inertia(streak, start, sample.position))
        streak = 0
    if streak > 5:
        issues.append(inertia(streak, start, curve[-1].position))

    first = next((p for p in points if p.tension_level > 0.4), None)
    if first is not None and first.percentage_position > 0.2:
        issues.append(StructuralIssue(
            severity=IssueSeverity.major if first.percentage_position > 0.3 else IssueSeverity.moderate,
            category=IssueCategory.late_plot_ignition,
            description=f"Plot ignition appears late at {int(first.percentage_position * 100)}%.",
            suggestion="Consider introducing the inciting disruption earlier to hook readers.",
            affected_range=(0.0, first.percentage_position),
        ))

    midpoint = [s.tension_level for s in curve if 0.45 <= s.position <= 0.55]
    if midpoint and variance(midpoint) < 0.02:
        issues.append(StructuralIssue(
            severity=IssueSeverity.moderate,
            category=IssueCategory.thematic_diffusion,
            description="Midpoint lacks clear reversal or redefinition of success.",
            suggestion="The midpoint should change what victory looks like for the protagonist.",
            affected_range=(0.45, 0.55),
        ))

    return issues


def _screenplay_issues(points: list[PlotPoint], curve: list[TensionPoint],
                       word_count: int) -> list[StructuralIssue]:
    issues = []

    def repetitive(streak: int, start: float, end: float) -> StructuralIssue:
        return StructuralIssue(
            severity=IssueSeverity.major if streak > 6 else IssueSeverity.moderate,
            category=IssueCategory.repetitive_scenes,
            description="Sequence of scenes without visible turns detected.",
            suggestion="Each scene must turn: someone gains or loses leverage. "
                       "Would cutting these scenes break causality?",
            affected_range=(start, end),
        )

    streak, start = 0, 0.0
    for i in range(1, len(curve)):
        if abs(curve[i].tension_level - curve[i - 1].tension_level) < 0.05:
            if streak == 0:
                start = curve[i - 1].position
            streak += 1
            continue
        if streak > 3:
            issues.append(repetitive(streak, start, curve[i].position))
        streak = 0
    if streak > 3:
        issues.append(repetitive(streak, start, curve[-1].position))

    before = [s.tension_level for s in curve if 0.4 <= s.position < 0.5]
    after = [s.tension_level for s in curve if 0.5 <= s.position <= 0.6]
    if before and after and mean(after) < mean(before) * 0.9:
        issues.append(StructuralIssue(
            severity=IssueSeverity.major,
            category=IssueCategory.midpoint_sag,
            description="Tension decreases after midpoint instead of escalating.",
            suggestion="Midpoint should be a visible reversal that raises stakes "
                       "and accelerates toward the climax.",
            affected_range=(0.5, 0.6),
        ))

    if sum(1 for p in points if p.tension_level > 0.5) < 3:
        issues.append(StructuralIssue(
            severity=IssueSeverity.moderate,
            category=IssueCategory.passive_protagonist,
            description="Few high-tension action beats detected.",
            suggestion="Protagonist must make visible choices under pressure. "
                       "Actions reveal character; dialogue alone cannot.",
            affected_range=(0.0, 1.0),
        ))

    minutes = estimate_runtime(word_count)
    if minutes < 85 or minutes > 130:
        issues.append(StructuralIssue(
            severity=IssueSeverity.major if minutes < 70 or minutes > 150 else IssueSeverity.minor,
            category=IssueCategory.pace_problems,
            description=f"Estimated runtime: ~{minutes} minutes. "
                        "Feature films typically run 90-120 minutes.",
            suggestion="Consider expanding sequences or adding subplots." if minutes < 85
                       else "Consider tightening scenes; each must justify its screen time.",
            affected_range=(0.0, 1.0),
        ))

    return issues


def detect_structural_issues(points: list[PlotPoint], curve: list[TensionPoint],
                             fmt: DocumentFormat, word_count: int) -> list[StructuralIssue]:
    if fmt == DocumentFormat.screenplay:
        return _screenplay_issues(points, curve, word_count)
    return _novel_issues(points, curve)


# ── Format metrics ───────────────────────────────────────────────────────

def internal_change_score(words: list[str]) -> int:
    return min(100, sum(1 for w in words if w in INTERNAL_CHANGE_WORDS) * 2)


def thematic_resonance(words: list[str]) -> int:
    counts: dict[str, int] = {}
    for w in words:
        if w in THEMATIC_WORDS:
            counts[w] = counts.get(w, 0) + 1
    recurring = sum(1 for c in counts.values() if c >= 3)
    return min(100, recurring * 15)


def narrative_momentum(curve: list[TensionPoint]) -> int:
    if len(curve) <= 2:
        return 50
    increases = sum(1 for a, b in zip(curve, curve[1:]) if b.tension_level > a.tension_level)
    decreases = len(curve) - 1 - increases
    bonus = 10 if increases and decreases else 0
    return min(100, int(increases / (increases + decreases) * 80) + bonus)


def visual_causality(words: list[str]) -> int:
    actions = sum(1 for w in words if w in VISUAL_ACTION_WORDS)
    words_per_action = len(words) / max(1, actions)
    if words_per_action < 20:
        return 100
    if words_per_action < 50:
        return 80
    if words_per_action < 100:
        return 60
    return 40


def scene_efficiency(text: str, word_count: int) -> int:
    scenes = len(SCENE_HEADING_PATTERN.findall(text)) if SCENE_HEADING_PATTERN else 0
    if scenes == 0:
        return 50
    per_scene = word_count // scenes
    if 100 <= per_scene <= 300:
        return 90
    if per_scene < 100:
        return 60
    if per_scene <= 500:
        return 70
    return 40


def screenplay_pacing(curve: list[TensionPoint]) -> int:
    if len(curve) < MIN_SAMPLES:
        return 50
    score = 50
    act_one = next((s for s in curve if 0.23 <= s.position <= 0.27), None)
    act_two = next((s for s in curve if 0.73 <= s.position <= 0.77), None)
    if act_one is not None and act_one.tension_level > 0.4:
        score += 15
    if act_two is not None and act_two.tension_level > 0.6:
        score += 15
    final = [s.tension_level for s in curve if s.position >= 0.75]
    if final and mean(final) > 0.6:
        score += 20
    return min(100, score)


def estimate_runtime(word_count: int) -> int:
    """Screenplay minutes at roughly one page per minute."""
    return max(1, word_count // SCREENPLAY_WORDS_PER_MINUTE)


_SEVERITY_PENALTY = {
    IssueSeverity.minor: 3,
    IssueSeverity.moderate: 7,
    IssueSeverity.major: 12,
}


def structure_score(points: list[PlotPoint], missing: list[str],
                    issues: list[StructuralIssue], fmt: DocumentFormat) -> int:
    per_missing = 8 if fmt == DocumentFormat.screenplay else 6
    score = 100 - len(missing) * per_missing
    score -= sum(_SEVERITY_PENALTY[i.severity] for i in issues)
    tensions = [p.tension_level for p in points]
    if len(tensions) > 2 and variance(tensions) > 0.05:
        score += 10
    return max(0, min(100, score))


# ── Entry point ──────────────────────────────────────────────────────────

def analyze_plot(
    text: str,
    word_count: int,
    fmt: Optional[DocumentFormat] = None,
    confidence: Optional[float] = None,
) -> PlotAnalysis:
    """
    Full structural analysis of *text*.

    The format is detected when not supplied. Metrics for the other
    format stay at zero.
    """
    if fmt is None:
        fmt, confidence = detect_format(text)
    if confidence is None:
        confidence = 0.5

    curve = tension_curve(text, word_count, fmt)
    points = detect_plot_points(curve, fmt)
    missing = missing_beats(points, fmt)
    issues = detect_structural_issues(points, curve, fmt, word_count)
    words = [clean_word(w) for w in split_words(text)]

    metrics: dict[str, int] = {}
    if fmt == DocumentFormat.screenplay:
        metrics.update(
            visual_causality_score=visual_causality(words),
            scene_efficiency=scene_efficiency(text, word_count),
            pacing_score=screenplay_pacing(curve),
            estimated_runtime=estimate_runtime(word_count),
        )
    else:
        metrics.update(
            internal_change_score=internal_change_score(words),
            thematic_resonance=thematic_resonance(words),
            narrative_momentum=narrative_momentum(curve),
        )

    score = structure_score(points, missing, issues, fmt)
    logger.info(
        "Plot analysis (%s): %d samples, %d plot points, %d missing, %d issues, score %d",
        fmt.value, len(curve), len(points), len(missing), len(issues), score,
    )

    return PlotAnalysis(
        document_format=fmt,
        format_confidence=confidence,
        plot_points=points,
        overall_tension_curve=curve,
        structure_score=score,
        missing_points=missing,
        structural_issues=issues,
        **metrics,
    )
