"""Tests for character resolution, presence, interactions and arc extraction."""

import pytest

from narrative_lens.agents.arc_extractor import (
    FALLBACK_COUNTERPRESSURE,
    FALLBACK_DECISION,
    FALLBACK_EFFECT,
    build_belief_matrices,
    build_decision_belief_loops,
    build_decision_chains,
    find_cue_sentence,
    sample_first_middle_last,
    sample_quartiles,
)
from narrative_lens.agents.character_analyzer import (
    analyze_emotional_arcs,
    analyze_interactions,
    analyze_presence,
    canonical_names_from_profiles,
    classify_arc,
    interaction_sections,
    resolve_character_names,
    section_intensity,
    section_sentiment,
)
from narrative_lens.models import ArcQuality, ArcType, Chapter, EmotionalState, PageMark
from narrative_lens.utils.lexicon import BELIEF_PATTERN, DECISION_PATTERN

CHAPTERS = [
    Chapter(number=1, text="John believed the town was safe. He decided to stay.", start_offset=0),
    Chapter(
        number=2,
        text="John feared the river. But John chose to cross it. As a result John lost his boat.",
        start_offset=100,
    ),
    Chapter(number=3, text="Mary sang all night.", start_offset=200),
]


# ── Name resolution ──────────────────────────────────────────────────────

class TestNameResolution:
    def test_canonical_names_from_profiles(self):
        names = canonical_names_from_profiles(["John Reed", "Mary Shaw", "john smith", "", "  "])
        assert names == ["John", "Mary"]

    def test_empty_canonical_list(self):
        assert resolve_character_names([], "John and Mary met.") == []

    def test_only_names_in_text(self):
        assert resolve_character_names(["John", "Mary", "Zed"], "John and MARY met.") == ["John", "Mary"]

    def test_requested_filtered_to_canonical(self):
        resolved = resolve_character_names(["John"], "John ran.", requested=["JOHN", "Bob"])
        assert resolved == ["John"]

    def test_frequent_non_canonical_name_ignored(self):
        text = "Bob. " * 50 + "John waved."
        assert resolve_character_names(["John"], text) == ["John"]


# ── Presence and interactions ────────────────────────────────────────────

class TestPresence:
    def test_presence_sparse(self):
        presence = analyze_presence(CHAPTERS, ["John", "Mary"])
        assert presence[0].chapter_presence == {1: 1, 2: 3}
        assert presence[1].chapter_presence == {3: 1}

    def test_interactions(self):
        sections = ["John and Mary", "John alone", "Mary and John", "Bob"]
        interactions = analyze_interactions(sections, ["John", "Mary", "Bob"])
        assert len(interactions) == 1
        pair = interactions[0]
        assert (pair.character1, pair.character2) == ("John", "Mary")
        assert pair.co_appearances == 2
        assert pair.sections == [0, 2]
        assert pair.relationship_strength == pytest.approx(0.5)

    def test_interactions_sorted(self):
        sections = ["A B C", "A B", "A C", "A B"]
        interactions = analyze_interactions(sections, ["A", "B", "C"])
        counts = [x.co_appearances for x in interactions]
        assert counts == sorted(counts, reverse=True)
        assert all(0.0 <= x.relationship_strength <= 1.0 for x in interactions)

    def test_interaction_sections(self):
        text = " ".join(["word"] * 25)
        single = [Chapter(number=1, text=text)]
        assert len(interaction_sections(text, single, 10)) == 3
        assert interaction_sections(text, CHAPTERS, 10) == [c.text for c in CHAPTERS]


# ── Emotional arcs ───────────────────────────────────────────────────────

class TestEmotionalArcs:
    def test_sentiment(self):
        assert section_sentiment("John was happy. Mary was sad.", "John") == pytest.approx(0.7)
        assert section_sentiment("Mary was sad.", "John") == 0.0

    def test_intensity(self):
        assert section_intensity("John walked home.", "John") == 0.0
        assert section_intensity("John walked home!", "John") > 0.0

    def test_classify_short_journey_flat(self):
        journey = [EmotionalState(section_index=0, sentiment=0.9, intensity=0.0, word_position=0)]
        assert classify_arc(journey) == ArcType.flat

    def test_transformational_arc(self):
        happy = "John was happy and full of joy and love today."
        sad = "John was sad and full of despair and hate today."
        text = " ".join([happy] * 3 + [sad] * 3)
        arcs = analyze_emotional_arcs(text, ["John"], 10)
        arc = arcs[0]
        assert arc.total_mentions == 6
        assert arc.presence_by_section == [1] * 6
        assert [s.word_position for s in arc.emotional_journey] == [0, 10, 20, 30, 40, 50]
        assert arc.arc_type == ArcType.transformational
        assert arc.arc_strength == 1.0

    def test_no_names(self):
        assert analyze_emotional_arcs("John ran.", [], 10) == []


# ── Cue sentences ────────────────────────────────────────────────────────

class TestCueSentences:
    def test_find_cue_sentence(self):
        text = "John believed in luck. Mary decided to stay."
        assert find_cue_sentence(text, "John", BELIEF_PATTERN) == "John believed in luck"
        assert find_cue_sentence(text, "Mary", BELIEF_PATTERN) is None
        assert find_cue_sentence(text, "Mary", DECISION_PATTERN) == "Mary decided to stay"

    def test_excerpt_truncated(self):
        text = "John believed " + "very " * 50 + "much."
        assert len(find_cue_sentence(text, "John", BELIEF_PATTERN, max_chars=40)) == 40

    def test_sampling(self):
        assert sample_first_middle_last(list(range(7))) == [0, 3, 6]
        assert sample_first_middle_last([1, 2]) == [1, 2]
        assert sample_quartiles(list(range(10))) == [0, 3, 6, 9]
        assert sample_quartiles(list(range(5))) == [0, 1, 3, 4]
        assert sample_quartiles([1, 2, 3]) == [1, 2, 3]


# ── Loops, matrices and chains ───────────────────────────────────────────

class TestArcExtraction:
    def test_decision_belief_loop(self):
        loops = build_decision_belief_loops(CHAPTERS, ["John", "Mary"])
        assert len(loops) == 1
        loop = loops[0]
        assert loop.character_name == "John"
        assert [e.chapter for e in loop.entries] == [1, 2]

        first, second = loop.entries
        assert first.belief_in_play == "John believed the town was safe"
        assert first.decision == FALLBACK_DECISION
        assert first.pressure == FALLBACK_COUNTERPRESSURE
        assert second.decision == "But John chose to cross it"
        assert second.outcome == "As a result John lost his boat"
        assert second.belief_shift == FALLBACK_EFFECT
        assert loop.arc_quality == ArcQuality.developing

    def test_loop_entry_cap(self):
        chapters = [Chapter(number=i, text="John believed it.") for i in range(1, 12)]
        loops = build_decision_belief_loops(chapters, ["John"], max_entries=8)
        assert len(loops[0].entries) == 8

    def test_belief_matrix_pages(self):
        marks = [PageMark(location=0, page=1), PageMark(location=90, page=4)]
        matrices = build_belief_matrices(CHAPTERS, ["John"], marks)
        entries = matrices[0].entries
        assert [e.chapter for e in entries] == [1, 2]
        assert [e.chapter_page for e in entries] == [1, 4]
        assert entries[1].counterpressure == "But John chose to cross it"

    def test_decision_chain(self):
        chains = build_decision_chains(CHAPTERS, ["John"])
        entries = chains[0].entries
        assert [e.chapter for e in entries] == [2]
        assert entries[0].immediate_outcome == "As a result John lost his boat"
        assert entries[0].chapter_page == 0

    def test_no_cue_sentences(self):
        chapters = [Chapter(number=1, text="Mary sang all night.")]
        assert build_belief_matrices(chapters, ["Mary"]) == []
        assert build_decision_chains(chapters, ["Mary"]) == []
        assert build_decision_belief_loops(chapters, ["Mary"]) == []

    def test_empty_names(self):
        assert build_decision_belief_loops(CHAPTERS, []) == []
        assert build_belief_matrices(CHAPTERS, []) == []
        assert build_decision_chains(CHAPTERS, []) == []
