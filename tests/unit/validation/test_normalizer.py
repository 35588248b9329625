"""
Unit tests for the Normalizer (semantic repair pass).
"""

import pytest

from analysis_layer.models.enums import AnalysisFacet, Valence
from analysis_layer.schema.registry import SchemaRegistry
from analysis_layer.validation.normalizer import Normalizer, dominant_valence
from fixtures.scripted import VALID_OUTPUTS, valid_output


def _kinds(corrections):
    return [c.kind for c in corrections]


class TestEnumCoercion:
    """Coercible enums are mapped to declared values, never rejected."""

    def setup_method(self):
        self.normalizer = Normalizer(SchemaRegistry())

    def test_valid_output_is_unchanged(self):
        """Already-normalized output yields no corrections."""
        data = valid_output("impact")
        normalized, corrections = self.normalizer.normalize(AnalysisFacet.IMPACT, data)

        assert corrections == []
        assert normalized == data

    def test_alias_and_case(self):
        """Synonyms and casing are mapped through the alias table."""
        data = valid_output("impact", severity="Moderate")
        data["effects"][0]["severity"] = "SEVERE"

        normalized, corrections = self.normalizer.normalize(AnalysisFacet.IMPACT, data)

        assert normalized["severity"] == "medium"
        assert normalized["effects"][0]["severity"] == "high"
        assert [c.path for c in corrections] == ["root.severity", "root.effects[0].severity"]
        assert set(_kinds(corrections)) == {"enum_coerced"}

    def test_containment_match(self):
        """A declared value contained in the raw text wins, in priority order."""
        data = valid_output("intent")
        data["confidence"]["level"] = "Very High"

        normalized, _ = self.normalizer.normalize(AnalysisFacet.INTENT, data)

        assert normalized["confidence"]["level"] == "high"

    def test_unknown_value_uses_fallback(self):
        data = valid_output("impact", severity="catastrophic")

        normalized, corrections = self.normalizer.normalize(AnalysisFacet.IMPACT, data)

        assert normalized["severity"] == "medium"
        assert corrections[0].describe() == "enum_coerced at root.severity: 'catastrophic' -> 'medium'"

    def test_blank_secondary_becomes_null(self):
        """Blank optional strings are turned into null."""
        normalized, corrections = self.normalizer.normalize(
            AnalysisFacet.INTENT, valid_output("intent", secondary="  ")
        )

        assert normalized["secondary"] is None
        assert _kinds(corrections) == ["blank_to_null"]

    def test_input_is_not_mutated(self):
        data = valid_output("impact", severity="Moderate")
        self.normalizer.normalize(AnalysisFacet.IMPACT, data)
        assert data["severity"] == "Moderate"


class TestToneRepair:
    """Consistency repair between emotions and sentiment."""

    def setup_method(self):
        self.normalizer = Normalizer(SchemaRegistry())

    def test_contradictory_tone_is_repaired(self):
        """Filler dropped, valence aligned, score flipped and label aligned."""
        data = valid_output(
            "tone",
            emotions=[
                {"emotion": "neutral", "intensity": "low", "valence": "neutral"},
                {"emotion": "Frustration", "intensity": "high", "valence": "positive"},
            ],
            sentiment={"label": "positive", "score": 0.6},
        )

        normalized, corrections = self.normalizer.normalize(AnalysisFacet.TONE, data)

        assert _kinds(corrections) == [
            "filler_dropped",
            "valence_aligned",
            "score_flipped",
            "label_aligned",
        ]
        assert normalized["emotions"] == [
            {"emotion": "Frustration", "intensity": "high", "valence": "negative"}
        ]
        assert normalized["sentiment"] == {"label": "negative", "score": -0.6}

    def test_normalization_is_idempotent(self):
        """Normalizing normalized output applies no further corrections."""
        data = valid_output(
            "tone",
            emotions=[{"emotion": "gratitude", "intensity": "Strong", "valence": "neutral"}],
            sentiment={"label": "negative", "score": -0.5},
        )
        once, first = self.normalizer.normalize(AnalysisFacet.TONE, data)
        twice, second = self.normalizer.normalize(AnalysisFacet.TONE, once)

        assert first
        assert second == []
        assert twice == once

    def test_only_filler_emotions_are_kept(self):
        """Filler is only dropped when a substantive emotion remains."""
        data = valid_output(
            "tone",
            emotions=[{"emotion": "neutral", "intensity": "low", "valence": "neutral"}],
            sentiment={"label": "neutral", "score": 0.0},
        )
        normalized, corrections = self.normalizer.normalize(AnalysisFacet.TONE, data)

        assert len(normalized["emotions"]) == 1
        assert corrections == []

    def test_label_follows_score_without_emotional_evidence(self):
        """With no dominant valence, only the label is aligned to the score."""
        data = valid_output(
            "tone",
            emotions=[{"emotion": "curiosity", "intensity": "medium", "valence": "neutral"}],
            sentiment={"label": "positive", "score": -0.3},
        )
        normalized, corrections = self.normalizer.normalize(AnalysisFacet.TONE, data)

        assert _kinds(corrections) == ["label_aligned"]
        assert normalized["sentiment"] == {"label": "negative", "score": -0.3}

    def test_zero_score_label_follows_emotions(self):
        """A neutral score cannot back a label that contradicts strong emotions."""
        data = valid_output(
            "tone",
            emotions=[{"emotion": "anger", "intensity": "high", "valence": "negative"}],
            sentiment={"label": "positive", "score": 0.0},
        )

        normalized, corrections = self.normalizer.normalize(AnalysisFacet.TONE, data)

        assert _kinds(corrections) == ["label_aligned"]
        assert normalized["sentiment"] == {"label": "negative", "score": 0.0}

    def test_zero_score_without_evidence_keeps_label(self):
        data = valid_output(
            "tone",
            emotions=[{"emotion": "curiosity", "intensity": "low", "valence": "neutral"}],
            sentiment={"label": "positive", "score": 0.0},
        )

        normalized, corrections = self.normalizer.normalize(AnalysisFacet.TONE, data)

        assert corrections == []
        assert normalized["sentiment"]["label"] == "positive"


def test_dominant_valence_weights_intensity():
    """One high negative outweighs two low positives."""
    emotions = [
        {"emotion": "joy", "intensity": "low", "valence": "positive"},
        {"emotion": "hope", "intensity": "low", "valence": "positive"},
        {"emotion": "anger", "intensity": "high", "valence": "negative"},
    ]
    assert dominant_valence(emotions) == Valence.NEGATIVE


def test_dominant_valence_tie_is_neutral():
    emotions = [
        {"emotion": "joy", "intensity": "medium", "valence": "positive"},
        {"emotion": "worry", "intensity": "medium", "valence": "negative"},
    ]
    assert dominant_valence(emotions) == Valence.NEUTRAL


REPAIRABLE_OUTPUTS = [
    pytest.param("intent", valid_output("intent", secondary=" "), id="intent-blank-secondary"),
    pytest.param(
        "intent",
        valid_output("intent", confidence={"level": "Very High", "rationale": "Stated directly."}),
        id="intent-confidence-variant",
    ),
    pytest.param(
        "tone",
        valid_output(
            "tone",
            emotions=[
                {"emotion": "none", "intensity": "low", "valence": "neutral"},
                {"emotion": "Frustration", "intensity": "HIGH", "valence": "positive"},
            ],
            sentiment={"label": "Positive", "score": 0.6},
        ),
        id="tone-contradictory",
    ),
    pytest.param(
        "tone",
        valid_output(
            "tone",
            emotions=[{"emotion": "anger", "intensity": "high", "valence": "negative"}],
            sentiment={"label": "positive", "score": 0.0},
        ),
        id="tone-zero-score",
    ),
    pytest.param("impact", valid_output("impact", severity="catastrophic"), id="impact-unknown-severity"),
    pytest.param(
        "alternatives",
        valid_output(
            "alternatives",
            alternatives=[{"badge": "Warmer", "text": "Hi!", "reason": "Friendlier.", "tags": ["warm"]}],
        ),
        id="alternatives-single",
    ),
]


@pytest.mark.parametrize(
    "facet, data",
    [pytest.param(name, output, id=f"{name}-canonical") for name, output in VALID_OUTPUTS.items()]
    + REPAIRABLE_OUTPUTS,
)
def test_normalization_is_idempotent_for_every_facet(facet, data):
    """A second pass over normalized output is a no-op."""
    normalizer = Normalizer(SchemaRegistry())

    once, _ = normalizer.normalize(AnalysisFacet(facet), data)
    twice, second = normalizer.normalize(AnalysisFacet(facet), once)

    assert second == []
    assert twice == once
