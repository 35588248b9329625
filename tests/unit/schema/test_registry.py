"""
Unit tests for the SchemaRegistry and facet declarations.
"""

import json

import pytest

from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.outcomes import Invalid, Valid
from analysis_layer.schema.facets import SCHEMA_VERSION, SEVERITY_ENUM
from analysis_layer.schema.registry import (
    ARRAY,
    OBJECT,
    STRING,
    EnumSpec,
    FieldSpec,
    SchemaRegistry,
    UnknownFacetError,
)
from analysis_layer.validation.exceptions import ViolationKind
from fixtures.scripted import valid_output


def _keys(schema) -> set[str]:
    """All keys used anywhere in a JSON Schema dict."""
    found: set[str] = set()
    if isinstance(schema, dict):
        for key, value in schema.items():
            found.add(key)
            found |= _keys(value)
    elif isinstance(schema, list):
        for item in schema:
            found |= _keys(item)
    return found


class TestSchemaRegistry:
    """Grammar vs validation schema derivation."""

    def setup_method(self):
        self.registry = SchemaRegistry()

    def test_registers_all_four_facets(self):
        assert set(self.registry.facets) == set(AnalysisFacet)

    @pytest.mark.parametrize("facet", list(AnalysisFacet))
    def test_grammar_has_no_semantic_minimums(self, facet):
        """The decoding grammar carries types and enums, not minimums."""
        grammar = self.registry.grammar_for(facet)
        keys = _keys(grammar)

        assert "minLength" not in keys
        assert "minItems" not in keys
        assert "pattern" not in keys
        assert grammar["additionalProperties"] is False
        assert grammar["title"] == facet.value

    @pytest.mark.parametrize("facet", list(AnalysisFacet))
    def test_validation_schema_adds_minimums(self, facet):
        keys = _keys(self.registry.validation_schema_for(facet))
        assert "minLength" in keys
        assert "minItems" in keys

    def test_grammar_keeps_enum_sets(self):
        grammar = self.registry.grammar_for(AnalysisFacet.IMPACT)
        assert grammar["properties"]["severity"]["enum"] == ["none", "low", "medium", "high", "critical"]

    def test_validation_schema_leaves_coercible_enums_open(self):
        """Coercible enums are validated as non-blank strings only."""
        schema = self.registry.validation_schema_for(AnalysisFacet.IMPACT)
        severity = schema["properties"]["severity"]

        assert "enum" not in severity
        assert severity["minLength"] == 1

    def test_secondary_intent_is_optional_and_nullable(self):
        schema = self.registry.validation_schema_for(AnalysisFacet.INTENT)

        assert "secondary" not in schema["required"]
        assert schema["properties"]["secondary"]["type"] == ["string", "null"]

    def test_grammar_is_cached(self):
        assert self.registry.grammar_for(AnalysisFacet.TONE) is self.registry.grammar_for("tone")

    def test_grammar_is_json_serializable(self):
        json.dumps(self.registry.grammar_for(AnalysisFacet.ALTERNATIVES))

    def test_unknown_facet_raises(self):
        with pytest.raises(UnknownFacetError):
            self.registry.schema_for("summary")

    def test_coercible_enum_paths(self):
        paths = self.registry.schema_for(AnalysisFacet.TONE).coercible_enums()
        assert set(paths) == {
            "root.emotions[].intensity",
            "root.emotions[].valence",
            "root.sentiment.label",
        }

    def test_schema_version(self):
        assert self.registry.schema_for(AnalysisFacet.INTENT).version == SCHEMA_VERSION


class TestFacetValidator:
    """Callable validator returning Valid/Invalid."""

    def setup_method(self):
        self.registry = SchemaRegistry()

    def test_valid(self):
        validator = self.registry.validator_for(AnalysisFacet.ALTERNATIVES)
        outcome = validator(valid_output("alternatives"))

        assert isinstance(outcome, Valid)
        assert outcome.is_valid

    def test_invalid_carries_failure(self):
        data = valid_output("alternatives")
        data["alternatives"][0]["badge"] = ""
        outcome = self.registry.validator_for(AnalysisFacet.ALTERNATIVES)(data)

        assert isinstance(outcome, Invalid)
        assert outcome.failure.kind == ViolationKind.MIN_LENGTH
        assert outcome.offending_path == "root.alternatives[0].badge"

    def test_validator_is_cached(self):
        assert self.registry.validator_for(AnalysisFacet.INTENT) is self.registry.validator_for(
            AnalysisFacet.INTENT
        )


class TestEnumSpec:
    """Coercion order: exact, alias, containment, fallback."""

    def test_exact(self):
        assert SEVERITY_ENUM.coerce_value("high") == "high"

    def test_alias(self):
        assert SEVERITY_ENUM.coerce_value(" Minor ") == "low"

    def test_containment_follows_priority(self):
        """'critical' outranks 'high' when both appear."""
        assert SEVERITY_ENUM.coerce_value("high to critical") == "critical"

    def test_fallback(self):
        assert SEVERITY_ENUM.coerce_value("unclear") == "medium"
        assert SEVERITY_ENUM.coerce_value("   ") == "medium"

    def test_rejects_undeclared_alias_target(self):
        with pytest.raises(ValueError):
            EnumSpec(values=("a", "b"), aliases={"x": "c"})

    def test_coercible_needs_fallback(self):
        with pytest.raises(ValueError):
            EnumSpec(values=("a", "b"), coerce=True)


class TestFieldSpec:
    def test_array_needs_items(self):
        with pytest.raises(ValueError):
            FieldSpec(kind=ARRAY)

    def test_object_needs_properties(self):
        with pytest.raises(ValueError):
            FieldSpec(kind=OBJECT)

    def test_strict_string_is_non_blank(self):
        schema = FieldSpec(kind=STRING).to_json_schema(strict=True)
        assert schema == {"type": "string", "minLength": 1, "pattern": r"\S"}

    def test_walk_marks_array_items(self):
        spec = FieldSpec(
            kind=OBJECT,
            properties={"tags": FieldSpec(kind=ARRAY, items=FieldSpec(kind=STRING))},
        )
        assert [path for path, _ in spec.walk()] == ["root", "root.tags", "root.tags[]"]
