"""
Unit tests for Stage 2: JSON Schema validation.
"""

import pytest

from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.schema.registry import SchemaRegistry
from analysis_layer.validation.exceptions import SchemaViolation, ViolationKind
from analysis_layer.validation.stage2_schema import Stage2SchemaValidation, format_path
from fixtures.scripted import valid_output


class TestStage2SchemaValidation:
    """Test suite for facet schema validation."""

    def setup_method(self):
        """Setup test fixtures."""
        registry = SchemaRegistry()
        self.intent = Stage2SchemaValidation(
            registry.validation_schema_for(AnalysisFacet.INTENT), schema_name="intent"
        )
        self.tone = Stage2SchemaValidation(
            registry.validation_schema_for(AnalysisFacet.TONE), schema_name="tone"
        )
        self.impact = Stage2SchemaValidation(
            registry.validation_schema_for(AnalysisFacet.IMPACT), schema_name="impact"
        )

    def _violation(self, stage, data) -> SchemaViolation:
        with pytest.raises(SchemaViolation) as exc_info:
            stage.validate(data)
        return exc_info.value

    def test_valid_output_passes(self):
        """Test that canonical valid outputs pass validation."""
        self.intent.validate(valid_output("intent"))
        self.tone.validate(valid_output("tone"))
        self.impact.validate(valid_output("impact"))

    def test_empty_string_is_min_length(self):
        """An empty required string is a min_length violation at its path."""
        violation = self._violation(self.intent, valid_output("intent", primary=""))

        assert violation.kind == ViolationKind.MIN_LENGTH
        assert violation.reason == "min_length"
        assert violation.offending_path == "root.primary"

    def test_whitespace_string_is_min_length(self):
        """Whitespace-only strings fail the not-blank pattern."""
        violation = self._violation(self.intent, valid_output("intent", primary="   "))

        assert violation.kind == ViolationKind.MIN_LENGTH
        assert violation.offending_path == "root.primary"

    def test_empty_list_is_min_length(self):
        """An empty list where at least one item is required."""
        violation = self._violation(self.intent, valid_output("intent", underlying_needs=[]))

        assert violation.kind == ViolationKind.MIN_LENGTH
        assert violation.offending_path == "root.underlying_needs"

    def test_missing_field_names_the_field(self):
        """The offending path of a required error ends with the missing name."""
        data = valid_output("intent")
        del data["confidence"]
        violation = self._violation(self.intent, data)

        assert violation.kind == ViolationKind.MISSING_FIELD
        assert violation.offending_path == "root.confidence"

    def test_unexpected_field(self):
        """Undeclared keys are rejected."""
        violation = self._violation(self.intent, valid_output("intent", mood="happy"))

        assert violation.kind == ViolationKind.UNEXPECTED_FIELD
        assert violation.offending_path == "root.mood"

    def test_type_mismatch(self):
        violation = self._violation(self.intent, valid_output("intent", underlying_needs="a need"))

        assert violation.kind == ViolationKind.TYPE_MISMATCH
        assert violation.offending_path == "root.underlying_needs"

    def test_score_out_of_range(self):
        """Sentiment score must stay within [-1, 1]."""
        data = valid_output("tone")
        data["sentiment"]["score"] = 1.5
        violation = self._violation(self.tone, data)

        assert violation.kind == ViolationKind.OUT_OF_RANGE
        assert violation.offending_path == "root.sentiment.score"

    def test_nested_empty_string_path(self):
        """Paths into arrays use index notation."""
        data = valid_output("impact")
        data["effects"][0]["description"] = ""
        violation = self._violation(self.impact, data)

        assert violation.offending_path == "root.effects[0].description"
        assert "root.effects[0].description" in violation.details["validation_errors"][0]

    def test_coercible_enum_is_not_rejected(self):
        """Invented enum variants are left to the Normalizer."""
        self.impact.validate(valid_output("impact", severity="moderate"))

    def test_null_secondary_is_allowed(self):
        self.intent.validate(valid_output("intent", secondary=None))

    def test_enum_mismatch_on_plain_enum(self):
        """Non-coercible enums are validated strictly."""
        stage = Stage2SchemaValidation(
            {"type": "object", "properties": {"mode": {"enum": ["a", "b"]}}}
        )
        with pytest.raises(SchemaViolation) as exc_info:
            stage.validate({"mode": "c"})

        assert exc_info.value.kind == ViolationKind.ENUM_MISMATCH
        assert exc_info.value.offending_path == "root.mode"

    def test_errors_lists_all_violations(self):
        data = valid_output("intent", primary="", underlying_needs=[])
        assert len(self.intent.errors(data)) >= 2


def test_format_path():
    """Test path rendering for keys and indexes."""
    assert format_path([]) == "root"
    assert format_path(["emotions", 1, "emotion"]) == "root.emotions[1].emotion"
