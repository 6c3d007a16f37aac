"""Pydantic data models for the narrative-lens analysis engine."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ── Enums ────────────────────────────────────────────────────────────────

class DocumentFormat(str, Enum):
    novel = "Novel"
    screenplay = "Screenplay"


class IssueSeverity(str, Enum):
    minor = "minor"
    moderate = "moderate"
    major = "major"


class IssueCategory(str, Enum):
    # Novel
    excessive_inertia = "Excessive Inertia"
    over_indulgent_introspection = "Over-Indulgent Introspection"
    thematic_diffusion = "Thematic Diffusion"
    late_plot_ignition = "Late Plot Ignition"
    cognitive_overload = "Cognitive Overload"
    # Screenplay
    repetitive_scenes = "Repetitive Scenes"
    passive_protagonist = "Passive Protagonist"
    midpoint_sag = "Midpoint Sag"
    invisible_stakes = "Invisible Stakes"
    unearned_resolution = "Unearned Resolution"
    pace_problems = "Pacing Problems"


class ArcQuality(str, Enum):
    insufficient = "Insufficient Data"
    flat = "Flat Arc - Beliefs unchanging"
    developing = "Developing Arc - Some changes"
    evolving = "Evolving Arc - Clear pattern change"


class ArcType(str, Enum):
    positive = "Positive Arc"
    negative = "Negative Arc"
    flat = "Flat Arc"
    transformational = "Transformational"


# ── Inputs from collaborators ────────────────────────────────────────────

class OutlineEntry(_Frozen):
    """A structural marker from the document outline (0=part, 1=chapter, 2=heading)."""
    title: str = ""
    level: int = 1
    location: int = 0
    length: int = 0

    @model_validator(mode="before")
    @classmethod
    def _unpack_range(cls, data):
        # {"range": [location, length]} is the outline collaborator's shape
        if isinstance(data, dict) and "range" in data:
            data = dict(data)
            rng = data.pop("range")
            if not isinstance(rng, (list, tuple)) or len(rng) != 2:
                raise ValueError("range must be a (location, length) pair")
            data.setdefault("location", rng[0])
            data.setdefault("length", rng[1])
        return data


class PageMark(_Frozen):
    location: int
    page: int


class Chapter(_Frozen):
    number: int
    text: str
    start_offset: int = Field(0, description="Character offset of the chapter in the analyzed text")


# ── Plot structure ───────────────────────────────────────────────────────

class TensionPoint(_Frozen):
    position: float = 0.0
    tension_level: float = 0.0
    word_position: int = 0


class PlotPoint(_Frozen):
    type: str
    word_position: int
    percentage_position: float
    tension_level: float
    description: str = ""
    analysis_question: str = ""
    suggested_improvement: Optional[str] = None
    is_screenplay_point: bool = False


class StructuralIssue(_Frozen):
    severity: IssueSeverity
    category: IssueCategory
    description: str
    suggestion: str
    affected_range: tuple[float, float] = (0.0, 1.0)


class PlotAnalysis(_Frozen):
    document_format: DocumentFormat = DocumentFormat.novel
    format_confidence: float = 0.5
    plot_points: list[PlotPoint] = Field(default_factory=list)
    overall_tension_curve: list[TensionPoint] = Field(default_factory=list)
    structure_score: int = 0
    missing_points: list[str] = Field(default_factory=list)
    structural_issues: list[StructuralIssue] = Field(default_factory=list)

    # Novel
    internal_change_score: int = 0
    thematic_resonance: int = 0
    narrative_momentum: int = 0

    # Screenplay
    visual_causality_score: int = 0
    scene_efficiency: int = 0
    pacing_score: int = 0
    estimated_runtime: int = 0


# ── Prose ────────────────────────────────────────────────────────────────

class ProseQualityMetrics(_Frozen):
    passive_voice_count: int = 0
    passive_voice_phrases: list[str] = Field(default_factory=list)
    adverb_count: int = 0
    adverb_phrases: list[str] = Field(default_factory=list)
    sensory_detail_count: int = 0
    missing_sensory_detail: bool = False
    reading_level: str = "--"
    weak_verb_count: int = 0
    weak_verb_phrases: list[str] = Field(default_factory=list)
    cliche_count: int = 0
    cliche_phrases: list[str] = Field(default_factory=list)
    filter_word_count: int = 0
    filter_word_phrases: list[str] = Field(default_factory=list)
    sentence_variety_score: int = 0
    sentence_lengths: list[int] = Field(default_factory=list)


# ── Dialogue ─────────────────────────────────────────────────────────────

class DialogueQualityMetrics(_Frozen):
    quality_score: int = 0
    segment_count: int = 0
    filler_count: int = 0
    repetition_score: int = 0
    tag_variety: int = 0
    monotony_issues: list[str] = Field(default_factory=list)
    predictable_phrases: list[str] = Field(default_factory=list)
    exposition_count: int = 0
    pacing_score: int = 0
    has_conflict: bool = False


# ── Characters ───────────────────────────────────────────────────────────

class LoopEntry(_Frozen):
    chapter: int
    pressure: str = ""
    belief_in_play: str = ""
    decision: str = ""
    outcome: str = ""
    belief_shift: str = ""


class DecisionBeliefLoop(_Frozen):
    character_name: str
    entries: list[LoopEntry] = Field(default_factory=list)

    @computed_field
    @property
    def arc_quality(self) -> ArcQuality:
        if len(self.entries) < 2:
            return ArcQuality.insufficient

        unique_beliefs = {e.belief_in_play.strip().lower() for e in self.entries}
        unique_shifts = {e.belief_shift.strip().lower() for e in self.entries}

        if len(unique_beliefs) == 1 and len(unique_shifts) <= 1:
            return ArcQuality.flat
        if len(unique_beliefs) >= 2 and len(unique_shifts) >= 2:
            return ArcQuality.evolving
        return ArcQuality.developing


class CharacterPresence(_Frozen):
    character_name: str
    chapter_presence: dict[int, int] = Field(
        default_factory=dict, description="Chapter number -> mention count; absent chapters mean zero",
    )


class CharacterInteraction(_Frozen):
    character1: str
    character2: str
    co_appearances: int = 0
    sections: list[int] = Field(default_factory=list)
    relationship_strength: float = 0.0


class BeliefEntry(_Frozen):
    chapter: int
    chapter_page: int = 0
    core_belief: str
    evidence: str
    counterpressure: str


class BeliefShiftMatrix(_Frozen):
    character_name: str
    entries: list[BeliefEntry] = Field(default_factory=list)


class ChainEntry(_Frozen):
    chapter: int
    chapter_page: int = 0
    decision: str
    immediate_outcome: str
    long_term_effect: str


class DecisionConsequenceChain(_Frozen):
    character_name: str
    entries: list[ChainEntry] = Field(default_factory=list)


class EmotionalState(_Frozen):
    section_index: int
    sentiment: float
    intensity: float
    word_position: int


class CharacterArc(_Frozen):
    character_name: str
    emotional_journey: list[EmotionalState] = Field(default_factory=list)
    presence_by_section: list[int] = Field(default_factory=list)
    total_mentions: int = 0
    arc_type: ArcType = ArcType.flat
    arc_strength: float = 0.0


# ── Aggregate result ─────────────────────────────────────────────────────

class AnalysisResults(_Frozen):
    # Counts
    word_count: int = 0
    sentence_count: int = 0
    paragraph_count: int = 0
    page_count: int = 0
    average_paragraph_length: int = 0
    long_paragraphs: list[int] = Field(default_factory=list)
    language: str = "en"
    language_confidence: float = 0.0
    analyzed_char_count: int = 0
    truncated: bool = False

    # Prose quality
    passive_voice_count: int = 0
    passive_voice_phrases: list[str] = Field(default_factory=list)
    adverb_count: int = 0
    adverb_phrases: list[str] = Field(default_factory=list)
    sensory_detail_count: int = 0
    missing_sensory_detail: bool = False
    reading_level: str = "--"
    weak_verb_count: int = 0
    weak_verb_phrases: list[str] = Field(default_factory=list)
    cliche_count: int = 0
    cliche_phrases: list[str] = Field(default_factory=list)
    filter_word_count: int = 0
    filter_word_phrases: list[str] = Field(default_factory=list)
    sentence_variety_score: int = 0
    sentence_lengths: list[int] = Field(default_factory=list)

    # Dialogue quality
    dialogue_percentage: int = 0
    dialogue_quality_score: int = 0
    dialogue_segment_count: int = 0
    dialogue_filler_count: int = 0
    dialogue_repetition_score: int = 0
    dialogue_tag_variety: int = 0
    dialogue_monotony_issues: list[str] = Field(default_factory=list)
    dialogue_predictable_phrases: list[str] = Field(default_factory=list)
    dialogue_exposition_count: int = 0
    dialogue_pacing_score: int = 0
    has_dialogue_conflict: bool = False

    # Structure
    plot_analysis: Optional[PlotAnalysis] = None

    # Characters
    decision_belief_loops: list[DecisionBeliefLoop] = Field(default_factory=list)
    character_interactions: list[CharacterInteraction] = Field(default_factory=list)
    character_presence: list[CharacterPresence] = Field(default_factory=list)
    belief_shift_matrices: list[BeliefShiftMatrix] = Field(default_factory=list)
    decision_consequence_chains: list[DecisionConsequenceChain] = Field(default_factory=list)
    character_arcs: list[CharacterArc] = Field(default_factory=list)


# ── Run report ───────────────────────────────────────────────────────────

class ManuscriptReport(BaseModel):
    version: str = "1.0.0"
    input_text_hash: str = ""
    input_char_count: int = 0
    character_names: list[str] = Field(default_factory=list)
    results: AnalysisResults = Field(default_factory=AnalysisResults)
    timestamp: str = ""
    duration_ms: float = 0.0
