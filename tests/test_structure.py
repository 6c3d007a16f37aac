"""Tests for format detection, the tension curve and plot structure."""

import pytest

from narrative_lens.agents.format_detector import detect_format
from narrative_lens.agents.plot_detector import (
    NOVEL_BEATS,
    SCREENPLAY_BEATS,
    analyze_plot,
    classify_position,
    detect_plot_points,
    detect_structural_issues,
    estimate_runtime,
    missing_beats,
    narrative_momentum,
    structure_score,
)
from narrative_lens.agents.tension import sample_interval, tension_curve, window_tension
from narrative_lens.models import (
    DocumentFormat,
    IssueCategory,
    IssueSeverity,
    StructuralIssue,
    TensionPoint,
)

NOVEL_PARAGRAPH = (
    "She thought about the long road home, and the memories of her father returned "
    "as the evening light faded over the quiet valley where she had grown up and "
    "learned to read the weather in the clouds. She thought about the long road home, "
    "and the memories of her father returned as the evening light faded over the quiet "
    "valley where she had grown up."
)
NOVEL_TEXT = "Chapter 1\n\n" + "\n\n".join([NOVEL_PARAGRAPH] * 10)

SCREENPLAY_SCENE = (
    "INT. KITCHEN - NIGHT\n\n"
    "John grabs a knife from the drawer.\n\n"
    "                    JOHN\n"
    "          Who's there?\n\n"
    "EXT. STREET - DAY\n\n"
    "Mary runs toward the car.\n\n"
    "CUT TO:\n\n"
)
SCREENPLAY_TEXT = "FADE IN:\n\n" + SCREENPLAY_SCENE * 4


def _novel_with_bursts(total=20000, bursts=((2900, 3000), (17900, 18000))):
    """Neutral filler with blocks of tension words ending on sample boundaries."""
    words = ["the"] * total
    for start, end in bursts:
        for i in range(start, end):
            words[i] = "danger"
    return " ".join(words)


def _curve(levels):
    n = len(levels)
    return [
        TensionPoint(position=(i + 1) / n, tension_level=level, word_position=(i + 1) * 100)
        for i, level in enumerate(levels)
    ]


# ── Format detection ─────────────────────────────────────────────────────

class TestFormatDetection:
    def test_short_text_defaults_to_novel(self):
        assert detect_format("INT. KITCHEN - NIGHT") == (DocumentFormat.novel, 0.5)
        assert detect_format("x" * 500) == (DocumentFormat.novel, 0.5)

    def test_screenplay(self):
        fmt, conf = detect_format(SCREENPLAY_TEXT)
        assert fmt == DocumentFormat.screenplay
        assert 0.6 < conf <= 1.0

    def test_novel(self):
        fmt, conf = detect_format(NOVEL_TEXT)
        assert fmt == DocumentFormat.novel
        assert 0.6 < conf <= 1.0


# ── Tension curve ────────────────────────────────────────────────────────

class TestTensionCurve:
    def test_sample_interval(self):
        assert sample_interval(20000, DocumentFormat.novel) == 500
        assert sample_interval(500, DocumentFormat.novel) == 100
        assert sample_interval(20000, DocumentFormat.screenplay) == 200
        assert sample_interval(100, DocumentFormat.screenplay) == 50

    def test_window_tension_saturates(self):
        assert window_tension(["danger"] * 20, DocumentFormat.novel) == 1.0
        assert window_tension(["calm", "tea"], DocumentFormat.novel) == 0.0
        assert window_tension(["danger"], DocumentFormat.novel) == pytest.approx(0.1)

    def test_format_bonus(self):
        novel = window_tension(["realized"], DocumentFormat.novel)
        screenplay = window_tension(["realized"], DocumentFormat.screenplay)
        assert novel == pytest.approx((0.25 + 0.15) / 3)
        assert screenplay == pytest.approx(0.25 / 3)

    def test_curve_bounds_and_order(self):
        text = " ".join(["word", "fight", "ran"] * 400)
        curve = tension_curve(text, 1200, DocumentFormat.novel)
        assert len(curve) == 10
        offsets = [p.word_position for p in curve]
        assert offsets == sorted(set(offsets))
        assert all(0.0 <= p.tension_level <= 1.0 for p in curve)
        assert all(0.0 <= p.position <= 1.0 for p in curve)
        assert curve[-1].position == 1.0

    def test_final_word_sampled(self):
        curve = tension_curve(" ".join(["word"] * 250), 250, DocumentFormat.novel)
        assert [p.word_position for p in curve] == [100, 200, 250]

    def test_empty(self):
        assert tension_curve("", 0, DocumentFormat.novel) == []


# ── Plot points ──────────────────────────────────────────────────────────

class TestPlotPoints:
    def test_classify_position(self):
        assert classify_position(0.15, DocumentFormat.novel).name == "Inciting Disruption"
        assert classify_position(0.9, DocumentFormat.novel).name == "Climax"
        assert classify_position(1.0, DocumentFormat.novel).name == "Aftermath"
        assert classify_position(0.5, DocumentFormat.screenplay).name == "Midpoint Reversal"

    def test_beat_tables(self):
        assert len(NOVEL_BEATS) == 10
        assert len(SCREENPLAY_BEATS) == 12
        assert SCREENPLAY_BEATS[1].expected_page == 12

    def test_too_few_samples(self):
        assert detect_plot_points(_curve([0.1, 0.9, 0.1]), DocumentFormat.novel) == []

    def test_backfill_mandatory_screenplay_beats(self):
        points = detect_plot_points(_curve([0.1] * 10), DocumentFormat.screenplay)
        mandatory = [b for b in SCREENPLAY_BEATS if b.mandatory]
        assert len(points) == len(mandatory)
        assert all(p.description.startswith("Expected at ~") for p in points)
        assert all(p.suggested_improvement for p in points)
        assert all(p.is_screenplay_point for p in points)
        assert [p.word_position for p in points] == sorted(p.word_position for p in points)

    def test_novel_peak_detected(self):
        points = detect_plot_points(_curve([0.0, 0.0, 0.8, 0.0, 0.0, 0.0, 0.0, 0.0]),
                                    DocumentFormat.novel)
        peak = [p for p in points if p.tension_level == 0.8]
        assert len(peak) == 1
        assert peak[0].suggested_improvement is None

    def test_novel_setup_before_climb(self):
        points = detect_plot_points(_curve([0.3, 0.3, 0.05, 0.4, 0.4, 0.4, 0.4, 0.4, 0.4, 0.4]),
                                    DocumentFormat.novel)
        detected = [p for p in points if p.suggested_improvement is None]
        assert len(detected) == 1
        assert detected[0].description == "Setup before tension increase"
        assert detected[0].word_position == 300
        assert detected[0].tension_level == 0.05

    def test_novel_shallow_dip_ignored(self):
        points = detect_plot_points(_curve([0.3, 0.3, 0.2, 0.4, 0.4, 0.4, 0.4, 0.4, 0.4, 0.4]),
                                    DocumentFormat.novel)
        assert all(p.suggested_improvement for p in points)

    def test_screenplay_reversal_without_peak(self):
        points = detect_plot_points(_curve([0.2, 0.2, 0.2, 0.6, 0.6, 0.6, 0.6, 0.6, 0.6, 0.6]),
                                    DocumentFormat.screenplay)
        detected = [p for p in points if p.suggested_improvement is None]
        assert [p.word_position for p in detected] == [300, 400]
        assert [p.type for p in detected] == ["First Sequence", "Rising Complications"]
        assert all(p.is_screenplay_point for p in detected)

    def test_missing_beats(self):
        points = detect_plot_points(_curve([0.1] * 10), DocumentFormat.novel)
        missing = missing_beats(points, DocumentFormat.novel)
        assert "Climax" not in missing
        assert "Opening State" in missing


# ── Structure score ──────────────────────────────────────────────────────

class TestStructureScore:
    def test_missing_penalties(self):
        assert structure_score([], ["a", "b"], [], DocumentFormat.novel) == 88
        assert structure_score([], ["a", "b"], [], DocumentFormat.screenplay) == 84

    def test_issue_penalties_and_clamp(self):
        issue = StructuralIssue(
            severity=IssueSeverity.major,
            category=IssueCategory.midpoint_sag,
            description="d",
            suggestion="s",
        )
        assert structure_score([], [], [issue], DocumentFormat.novel) == 88
        assert structure_score([], ["x"] * 20, [issue] * 5, DocumentFormat.novel) == 0

    def test_estimate_runtime(self):
        assert estimate_runtime(0) == 1
        assert estimate_runtime(16500) == 100

    def test_momentum(self):
        assert narrative_momentum(_curve([0.1, 0.2])) == 50
        assert narrative_momentum(_curve([0.1, 0.2, 0.3, 0.1])) == 63


# ── Structural issues ────────────────────────────────────────────────────

def _issues(levels, fmt, word_count=16500):
    curve = _curve(levels)
    return detect_structural_issues(detect_plot_points(curve, fmt), curve, fmt, word_count)


def _with_peak(index, n=20, low=0.1, high=0.8):
    levels = [low] * n
    levels[index] = high
    return levels


class TestNovelIssues:
    def test_late_ignition_major(self):
        issues = _issues(_with_peak(9), DocumentFormat.novel)
        assert [i.category for i in issues] == [
            IssueCategory.excessive_inertia,
            IssueCategory.excessive_inertia,
            IssueCategory.late_plot_ignition,
        ]
        late = issues[2]
        assert late.severity == IssueSeverity.major
        assert late.affected_range == (0.0, 0.5)
        assert "50%" in late.description

    def test_late_ignition_moderate(self):
        issues = _issues(_with_peak(4), DocumentFormat.novel)
        late = [i for i in issues if i.category == IssueCategory.late_plot_ignition]
        assert len(late) == 1
        assert late[0].severity == IssueSeverity.moderate

    def test_early_ignition_not_flagged(self):
        issues = _issues(_with_peak(2), DocumentFormat.novel)
        assert IssueCategory.late_plot_ignition not in {i.category for i in issues}

    def test_inertia_ranges(self):
        issues = _issues(_with_peak(9), DocumentFormat.novel)
        assert issues[0].affected_range == (0.05, 0.5)
        assert issues[0].severity == IssueSeverity.moderate
        assert issues[1].affected_range == (0.55, 1.0)

    def test_flat_midpoint_is_thematic_diffusion(self):
        issues = _issues([0.3] * 20, DocumentFormat.novel)
        assert [i.category for i in issues] == [IssueCategory.thematic_diffusion]
        assert issues[0].affected_range == (0.45, 0.55)


_SAG = [0.2, 0.3, 0.2, 0.3, 0.2, 0.3, 0.2, 0.8, 0.8, 0.3,
        0.35, 0.3, 0.2, 0.3, 0.2, 0.3, 0.2, 0.3, 0.2, 0.3]


class TestScreenplayIssues:
    def test_flat_curve(self):
        issues = _issues([0.3] * 20, DocumentFormat.screenplay)
        assert [i.category for i in issues] == [
            IssueCategory.repetitive_scenes,
            IssueCategory.passive_protagonist,
        ]
        assert issues[0].severity == IssueSeverity.major
        assert issues[0].affected_range == (0.05, 1.0)

    def test_short_flat_run_not_repetitive(self):
        levels = [0.2, 0.6] * 10
        levels[5:8] = [0.6, 0.6, 0.6]
        issues = _issues(levels, DocumentFormat.screenplay)
        assert IssueCategory.repetitive_scenes not in {i.category for i in issues}

    def test_midpoint_sag(self):
        issues = _issues(_SAG, DocumentFormat.screenplay)
        sag = [i for i in issues if i.category == IssueCategory.midpoint_sag]
        assert len(sag) == 1
        assert sag[0].severity == IssueSeverity.major
        assert sag[0].affected_range == (0.5, 0.6)

    def test_rising_midpoint_no_sag(self):
        levels = list(_SAG)
        levels[7:12] = [0.3, 0.35, 0.8, 0.8, 0.8]
        issues = _issues(levels, DocumentFormat.screenplay)
        assert IssueCategory.midpoint_sag not in {i.category for i in issues}

    def test_active_protagonist(self):
        levels = [0.1] * 20
        for i in (3, 9, 15):
            levels[i] = 0.9
        issues = _issues(levels, DocumentFormat.screenplay)
        assert IssueCategory.passive_protagonist not in {i.category for i in issues}

    @pytest.mark.parametrize("word_count, severity", [
        (14025, None),
        (21450, None),
        (13860, IssueSeverity.minor),
        (21615, IssueSeverity.minor),
        (11385, IssueSeverity.major),
        (24915, IssueSeverity.major),
    ])
    def test_pacing_bounds(self, word_count, severity):
        issues = _issues([0.3] * 20, DocumentFormat.screenplay, word_count)
        pacing = [i for i in issues if i.category == IssueCategory.pace_problems]
        if severity is None:
            assert pacing == []
        else:
            assert [i.severity for i in pacing] == [severity]

    def test_pacing_suggestion_direction(self):
        short = _issues([0.3] * 20, DocumentFormat.screenplay, 13860)[-1]
        long = _issues([0.3] * 20, DocumentFormat.screenplay, 21615)[-1]
        assert short.suggestion.startswith("Consider expanding")
        assert long.suggestion.startswith("Consider tightening")

    def test_runtime_boundaries(self):
        assert estimate_runtime(14025) == 85
        assert estimate_runtime(21450) == 130


# ── Full plot analysis ───────────────────────────────────────────────────

class TestAnalyzePlot:
    def test_empty_text(self):
        plot = analyze_plot("", 0)
        assert plot.plot_points == []
        assert plot.overall_tension_curve == []
        assert 0 <= plot.structure_score <= 100

    def test_inciting_event_and_climax(self):
        text = _novel_with_bursts()
        plot = analyze_plot(text, 20000, DocumentFormat.novel, 0.9)

        assert "Inciting Disruption" not in plot.missing_points
        assert "Climax" not in plot.missing_points

        inciting = [p for p in plot.plot_points if p.type == "Inciting Disruption"]
        assert inciting[0].percentage_position == pytest.approx(0.15)
        assert inciting[0].suggested_improvement is None
        climax = [p for p in plot.plot_points if p.type == "Climax"]
        assert climax[0].percentage_position == pytest.approx(0.9)

    def test_tension_raises_score(self):
        with_tension = analyze_plot(_novel_with_bursts(), 20000, DocumentFormat.novel, 0.9)
        flat = analyze_plot(_novel_with_bursts(bursts=()), 20000, DocumentFormat.novel, 0.9)
        assert with_tension.structure_score > flat.structure_score

    def test_flat_text_issues(self):
        flat = analyze_plot(_novel_with_bursts(bursts=()), 20000, DocumentFormat.novel, 0.9)
        categories = {i.category for i in flat.structural_issues}
        assert IssueCategory.excessive_inertia in categories
        assert IssueCategory.thematic_diffusion in categories

    def test_positions_bounded(self):
        plot = analyze_plot(_novel_with_bursts(), 20000, DocumentFormat.novel, 0.9)
        assert all(0.0 <= p.percentage_position <= 1.0 for p in plot.plot_points)
        for issue in plot.structural_issues:
            start, end = issue.affected_range
            assert 0.0 <= start <= end <= 1.0

    def test_screenplay_metrics_only(self):
        text = " ".join(["walks"] * 2000)
        plot = analyze_plot(text, 2000, DocumentFormat.screenplay, 0.8)
        assert plot.document_format == DocumentFormat.screenplay
        assert plot.estimated_runtime == 12
        assert plot.visual_causality_score == 100
        assert plot.internal_change_score == 0
        assert plot.narrative_momentum == 0
        assert any(i.category == IssueCategory.pace_problems for i in plot.structural_issues)

    def test_detects_format_when_missing(self):
        plot = analyze_plot(SCREENPLAY_TEXT, len(SCREENPLAY_TEXT.split()))
        assert plot.document_format == DocumentFormat.screenplay
