"""
Tests for the pipeline driver.

End-to-end scenarios run raw model output through every phase; the
property tests check output invariants over generated candidate lists.
"""

import random

import pytest

from spanlabels import validate_spans
from spanlabels.core.matcher import PositionIndex
from spanlabels.core.pipeline import PipelineStage
from spanlabels.core.taxonomy import VALID_ROLES
from spanlabels.core.types import CandidateSpan, ProcessingOptions, ValidationPolicy

COLORS = [
    "red", "green", "blue", "amber", "violet", "cyan", "magenta", "olive",
    "teal", "coral", "ivory", "indigo", "maroon", "navy", "beige",
]


def color_candidates():
    source = ", ".join(COLORS)
    candidates = []
    for color in COLORS:
        start = source.index(color)
        candidates.append({
            "text": color,
            "role": "subject.appearance",
            "start": start,
            "end": start + len(color),
            "confidence": 0.9,
        })
    return source, candidates


# =============================================================================
# SCENARIOS
# =============================================================================

@pytest.mark.scenario
class TestScenarios:
    """Whole-pipeline behavior on representative model output."""

    def test_wrong_offset_is_corrected(self, fox_text):
        result = validate_spans([{"text": "fox", "role": "subject", "start": 30}], fox_text)

        assert result.ok
        assert result.errors == []
        assert len(result.spans) == 1
        span = result.spans[0]
        assert (span.start, span.end, span.text) == (16, 19, "fox")
        assert span.confidence == 0.7
        assert result.notes == ["span[0] indices auto-adjusted from 30-? to 16-19"]
        assert result.version == "v1"

    def test_overlap_across_families_resolved(self):
        source = "I saw a fox jumps over"
        result = validate_spans([
            {"text": "a fox", "role": "subject", "confidence": 0.8},
            {"text": "fox jumps", "role": "action", "confidence": 0.9},
        ], source)

        assert result.ok
        assert [(s.text, s.role) for s in result.spans] == [("fox jumps", "action")]
        assert any(note.startswith("Overlap between") for note in result.notes)
        assert 'span[0] boundaries refined from "a fox" to "fox"' in result.notes

    def test_overlap_allowed_by_policy(self):
        source = "I saw a fox jumps over"
        result = validate_spans([
            {"text": "a fox", "role": "subject", "confidence": 0.8},
            {"text": "fox jumps", "role": "action", "confidence": 0.9},
        ], source, policy={"allowOverlap": True})

        assert [s.text for s in result.spans] == ["fox", "fox jumps"]

    def test_span_cap(self):
        source, candidates = color_candidates()
        result = validate_spans(candidates, source, options={"max_spans": 10})

        assert result.ok
        assert [s.text for s in result.spans] == COLORS[:10]
        assert result.notes == ["Truncated spans to maxSpans=10; removed 5 spans."]

    def test_header_and_low_confidence_dropped(self, video_prompt):
        result = validate_spans([
            {"text": "Camera", "role": "camera"},
            {"text": "woman", "role": "subject", "confidence": 0.9},
            {"text": "foggy harbor", "role": "environment.location", "confidence": 0.2},
            {"text": "35mm lens", "role": "camera.lens", "confidence": 0.95},
        ], video_prompt)

        assert result.ok
        assert [s.text for s in result.spans] == ["woman", "35mm lens"]
        assert 'Dropped header/label "Camera"' in result.notes
        assert any(note.startswith('Dropped "foggy harbor"') for note in result.notes)

    def test_adjacent_fragments_merged(self):
        source = "shot at golden hour light"
        result = validate_spans([
            {"text": "golden", "role": "lighting.timeOfDay", "confidence": 0.8},
            {"text": "hour light", "role": "lighting", "confidence": 0.9},
        ], source)

        assert [(s.text, s.role) for s in result.spans] == [
            ("golden hour light", "lighting.timeOfDay"),
        ]

    def test_caps_content_kept(self):
        source = "A drone shot over NEW YORK at dusk, filmed in IMAX"
        result = validate_spans([
            {"text": "NEW YORK", "role": "environment.location", "confidence": 0.9},
            {"text": "IMAX", "role": "technical", "confidence": 0.9},
        ], source)

        assert [s.text for s in result.spans] == ["NEW YORK", "IMAX"]
        assert not any(note.startswith("Dropped header") for note in result.notes)

    def test_merge_respects_word_limit(self):
        source = "tall thin old man wearing glasses young smiling woman holding flowers"
        result = validate_spans([
            {"text": "tall thin old man wearing glasses", "role": "subject"},
            {"text": "young smiling woman holding flowers", "role": "subject"},
        ], source)

        assert result.ok
        assert [s.text for s in result.spans] == [
            "tall thin old man wearing glasses",
            "young smiling woman holding flowers",
        ]
        assert not any(note.startswith("Merged") for note in result.notes)

    def test_duplicate_note_names_dropped_span(self, fox_text):
        result = validate_spans([
            {"text": "jumps", "role": "action"},
            {"text": "fox", "role": "subject", "confidence": 0.9},
            {"text": "fox", "role": "subject.identity", "confidence": 0.5},
        ], fox_text)

        assert [(s.text, s.role) for s in result.spans] == [("fox", "subject"), ("jumps", "action")]
        assert 'Ignored duplicate "fox" at 16-19 (kept "fox" at 16-19).' in result.notes
        assert not any("ignored: duplicate" in note for note in result.notes)

    def test_output_sorted_by_position(self, fox_text):
        result = validate_spans([
            {"text": "jumps", "role": "action"},
            {"text": "quick", "role": "subject.appearance"},
        ], fox_text)
        assert [s.text for s in result.spans] == ["quick", "jumps"]


# =============================================================================
# STRICT / LENIENT
# =============================================================================

class TestModes:
    def test_strict_errors_empty_spans(self, fox_text):
        result = validate_spans([
            {"text": "fox", "role": "subject"},
            {"text": "wolf", "role": "subject"},
        ], fox_text)

        assert not result.ok
        assert result.spans == []
        assert result.errors == ['span[1] text "wolf" not found in source']

    def test_lenient_keeps_valid_spans(self, fox_text):
        result = validate_spans([
            {"text": "fox", "role": "subject"},
            {"text": "wolf", "role": "subject"},
        ], fox_text, attempt=2)

        assert result.ok
        assert [s.text for s in result.spans] == ["fox"]
        assert result.notes[0] == "span[1] dropped: text not found in source"

    def test_lenient_is_superset_of_strict(self, fox_text):
        candidates = [
            {"text": "quick", "role": "subject.appearance", "start": 4, "end": 9},
            {"text": "fox", "role": "subject", "start": 16, "end": 19},
        ]
        strict = validate_spans(candidates, fox_text)
        lenient = validate_spans(candidates, fox_text, attempt=3)

        assert strict.ok and lenient.ok
        assert [s.to_dict() for s in strict.spans] == [s.to_dict() for s in lenient.spans]

    def test_non_list_candidates(self, fox_text):
        strict = validate_spans("fox", fox_text)
        assert not strict.ok
        assert strict.errors == ["candidates must be a list, got str"]

        lenient = validate_spans({"text": "fox"}, fox_text, attempt=2)
        assert lenient.ok
        assert lenient.notes == ["candidates must be a list, got dict"]

    def test_none_candidates(self, fox_text):
        result = validate_spans(None, fox_text)
        assert result.ok
        assert result.spans == []

    def test_empty_source(self):
        result = validate_spans([{"text": "fox", "role": "subject"}], "")
        assert not result.ok


# =============================================================================
# INPUTS AND ENVELOPE
# =============================================================================

class TestEnvelope:
    def test_model_meta(self, fox_text):
        result = validate_spans(
            [{"text": "fox", "role": "subject", "start": 16, "end": 19}],
            fox_text,
            meta={"version": "v3", "notes": "model note"},
        )
        assert result.version == "v3"
        assert result.notes == ["model note"]

    def test_blank_meta_version_uses_options(self, fox_text):
        result = validate_spans([], fox_text, options={"template_version": "v9"}, meta={"version": " "})
        assert result.version == "v9"

    def test_stages_recorded(self, fox_text):
        result = validate_spans([], fox_text)
        assert result.stages == list(PipelineStage)

    def test_strict_rejection_stops_early(self, fox_text):
        result = validate_spans(42, fox_text)
        assert result.stages == [PipelineStage.RECEIVED, PipelineStage.DONE]

    def test_typed_policy_and_options(self, fox_text):
        result = validate_spans(
            [CandidateSpan("fox", "subject", 16, 19, 0.4)],
            fox_text,
            policy=ValidationPolicy(default_confidence=0.9),
            options=ProcessingOptions(min_confidence=0.3),
        )
        assert [s.confidence for s in result.spans] == [0.4]

    def test_prebuilt_index(self, fox_text):
        index = PositionIndex(fox_text)
        validate_spans([{"text": "fox", "role": "subject"}], fox_text, index=index)
        assert index.stats.total_requests == 1

    def test_deterministic(self, video_prompt):
        candidates = [
            {"text": "woman", "role": "subject"},
            {"text": "red coat", "role": "subject.wardrobe"},
            {"text": "walking slowly", "role": "action.movement"},
        ]
        first = validate_spans(candidates, video_prompt).to_dict()
        second = validate_spans(candidates, video_prompt).to_dict()
        assert first == second


# =============================================================================
# PROPERTIES
# =============================================================================

def _random_candidates(rng, source, words, count):
    roles = sorted(VALID_ROLES) + ["bogus"]
    candidates = []
    for _ in range(count):
        first = rng.randrange(len(words))
        last = min(len(words), first + rng.randint(1, 3))
        text = " ".join(words[first:last])
        candidate = {"text": text, "role": rng.choice(roles)}
        if rng.random() < 0.5:
            candidate["start"] = rng.randint(0, len(source))
        if rng.random() < 0.7:
            candidate["confidence"] = round(rng.random(), 2)
        candidates.append(candidate)
    return candidates


@pytest.mark.property
class TestOutputInvariants:
    """Lenient output always satisfies the span invariants."""

    @pytest.mark.parametrize("seed", range(25))
    def test_invariants(self, seed, video_prompt):
        rng = random.Random(seed)
        words = video_prompt.split()
        candidates = _random_candidates(rng, video_prompt, words, rng.randint(0, 40))
        options = {"max_spans": rng.randint(1, 30), "min_confidence": 0.4}

        result = validate_spans(candidates, video_prompt, options=options, attempt=2)

        assert result.ok
        assert len(result.spans) <= options["max_spans"]
        for span in result.spans:
            assert video_prompt[span.start:span.end] == span.text
            assert span.role in VALID_ROLES
            assert span.confidence >= 0.4
        for prev, cur in zip(result.spans, result.spans[1:]):
            assert prev.end <= cur.start
