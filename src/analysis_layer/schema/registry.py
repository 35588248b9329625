"""
Schema Registry.

Each facet declares its output shape once, as a tree of FieldSpec nodes. Two
JSON Schemas are derived from it:

- the grammar, sent to the model server as the constrained-decoding format.
  It carries declared keys, value types and enum sets only. Decoding engines
  cannot express "at least one item" or "not blank" robustly, so those
  minimums are left out.
- the validation schema, checked with jsonschema after parsing. It adds the
  minimums (non-blank strings, min items, numeric bounds). Enum fields marked
  coercible are validated as plain strings here so the Normalizer can map an
  invented variant to a declared value instead of failing the attempt.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Type

import structlog
from pydantic import BaseModel

from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.outcomes import Invalid, Valid, ValidationOutcome
from analysis_layer.validation.exceptions import SchemaViolation
from analysis_layer.validation.stage2_schema import Stage2SchemaValidation

logger = structlog.get_logger(__name__)

STRING = "string"
NUMBER = "number"
INTEGER = "integer"
BOOLEAN = "boolean"
ARRAY = "array"
OBJECT = "object"

_KINDS = {STRING, NUMBER, INTEGER, BOOLEAN, ARRAY, OBJECT}

# Rejects whitespace-only strings in addition to minLength 1
NOT_BLANK_PATTERN = r"\S"


class UnknownFacetError(KeyError):
    """Requested facet has no registered schema (programmer error, never retried)."""


@dataclass(frozen=True)
class EnumSpec:
    """
    Declared value set for a categorical field.

    Attributes:
        values: Allowed values
        coerce: If True, out-of-set values are repaired by the Normalizer
        priority: Fixed order used for containment matching ("very high" -> "high")
        aliases: Exact synonyms mapped to a declared value ("severe" -> "high")
        fallback: Value used when nothing matches
    """

    values: tuple[str, ...]
    coerce: bool = False
    priority: tuple[str, ...] = ()
    aliases: Mapping[str, str] = field(default_factory=dict, hash=False)
    fallback: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.values:
            raise ValueError("EnumSpec.values must not be empty")
        for value in (*self.priority, *self.aliases.values()):
            if value not in self.values:
                raise ValueError(f"'{value}' is not a declared enum value")
        if self.fallback is not None and self.fallback not in self.values:
            raise ValueError(f"fallback '{self.fallback}' is not a declared enum value")
        if self.coerce and self.fallback is None:
            raise ValueError("coercible enums need a fallback value")

    def coerce_value(self, raw: str) -> str:
        """Map a raw string to a declared value (exact, alias, containment, fallback)."""
        text = raw.strip().lower()
        if text in self.values:
            return text
        if text in self.aliases:
            return self.aliases[text]
        for candidate in self.priority or self.values:
            if candidate in text:
                return candidate
        return self.fallback


@dataclass(frozen=True)
class FieldSpec:
    """
    One node of a facet's declared shape.

    Strings are non-blank unless ``non_empty`` is False. Arrays default to at
    least one item. ``nullable`` fields accept JSON null.
    """

    kind: str
    required: bool = True
    nullable: bool = False
    non_empty: bool = True
    min_items: int = 1
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    enum: Optional[EnumSpec] = None
    items: Optional["FieldSpec"] = None
    properties: Mapping[str, "FieldSpec"] = field(default_factory=dict, hash=False)
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise ValueError(f"Unknown field kind: {self.kind}")
        if self.kind == ARRAY and self.items is None:
            raise ValueError("array fields need an items spec")
        if self.kind == OBJECT and not self.properties:
            raise ValueError("object fields need at least one property")
        if self.enum is not None and self.kind != STRING:
            raise ValueError("enums are only supported on string fields")

    def to_json_schema(self, strict: bool) -> dict:
        """
        Render as JSON Schema.

        Args:
            strict: True for the validation schema (minimums included),
                False for the decoding grammar
        """
        schema: dict[str, Any] = {}
        if self.description:
            schema["description"] = self.description

        schema["type"] = [self.kind, "null"] if self.nullable else self.kind

        if self.kind == STRING:
            if self.enum is not None and not (strict and self.enum.coerce):
                schema["enum"] = list(self.enum.values) + ([None] if self.nullable else [])
            if strict and self.non_empty:
                schema["minLength"] = 1
                schema["pattern"] = NOT_BLANK_PATTERN
        elif self.kind in (NUMBER, INTEGER):
            if strict and self.minimum is not None:
                schema["minimum"] = self.minimum
            if strict and self.maximum is not None:
                schema["maximum"] = self.maximum
        elif self.kind == ARRAY:
            schema["items"] = self.items.to_json_schema(strict)
            if strict and self.min_items:
                schema["minItems"] = self.min_items
        elif self.kind == OBJECT:
            schema["properties"] = {
                name: spec.to_json_schema(strict) for name, spec in self.properties.items()
            }
            schema["required"] = [name for name, spec in self.properties.items() if spec.required]
            schema["additionalProperties"] = False

        return schema

    def walk(self, path: str = "root"):
        """Yield ``(path, spec)`` for this node and all descendants (``[]`` marks array items)."""
        yield path, self
        if self.kind == ARRAY:
            yield from self.items.walk(f"{path}[]")
        elif self.kind == OBJECT:
            for name, spec in self.properties.items():
                yield from spec.walk(f"{path}.{name}")


@dataclass(frozen=True)
class FacetSchema:
    """Declared shape, result model and version for one facet."""

    facet: AnalysisFacet
    root: FieldSpec
    result_model: Type[BaseModel]
    version: str

    def coercible_enums(self) -> dict[str, EnumSpec]:
        """Paths (``root.effects[].severity`` style) of enums the Normalizer repairs."""
        return {
            path: spec.enum
            for path, spec in self.root.walk()
            if spec.enum is not None and spec.enum.coerce
        }


class FacetValidator:
    """Callable structural validator for one facet: ``validator(value) -> ValidationOutcome``."""

    def __init__(self, facet: AnalysisFacet, schema: dict):
        self.facet = facet
        self.schema = schema
        self._stage = Stage2SchemaValidation(schema, schema_name=facet.value)

    def __call__(self, value: Any) -> ValidationOutcome:
        try:
            self._stage.validate(value)
        except SchemaViolation as e:
            return Invalid(e)
        return Valid(value)


class SchemaRegistry:
    """
    Registry of facet schemas.

    Grammars and validators are built once per facet and cached.
    """

    def __init__(self, schemas: Optional[Mapping[AnalysisFacet, FacetSchema]] = None):
        if schemas is None:
            from analysis_layer.schema.facets import FACET_SCHEMAS
            schemas = FACET_SCHEMAS
        self._schemas = dict(schemas)
        self._grammars: dict[AnalysisFacet, dict] = {}
        self._validators: dict[AnalysisFacet, FacetValidator] = {}

    @property
    def facets(self) -> tuple[AnalysisFacet, ...]:
        return tuple(self._schemas)

    def schema_for(self, facet: AnalysisFacet) -> FacetSchema:
        try:
            return self._schemas[AnalysisFacet(facet)]
        except (KeyError, ValueError):
            raise UnknownFacetError(f"No schema registered for facet: {facet}") from None

    def grammar_for(self, facet: AnalysisFacet) -> dict:
        """Constrained-decoding grammar (JSON Schema without semantic minimums)."""
        facet_schema = self.schema_for(facet)
        if facet_schema.facet not in self._grammars:
            grammar = facet_schema.root.to_json_schema(strict=False)
            grammar["title"] = facet_schema.facet.value
            self._grammars[facet_schema.facet] = grammar
        return self._grammars[facet_schema.facet]

    def validation_schema_for(self, facet: AnalysisFacet) -> dict:
        facet_schema = self.schema_for(facet)
        schema = facet_schema.root.to_json_schema(strict=True)
        schema["title"] = facet_schema.facet.value
        return schema

    def validator_for(self, facet: AnalysisFacet) -> Callable[[Any], ValidationOutcome]:
        """Structural validator returning ``Valid``/``Invalid``."""
        facet_schema = self.schema_for(facet)
        if facet_schema.facet not in self._validators:
            self._validators[facet_schema.facet] = FacetValidator(
                facet_schema.facet, self.validation_schema_for(facet_schema.facet)
            )
            logger.debug("Validator built", facet=facet_schema.facet.value, version=facet_schema.version)
        return self._validators[facet_schema.facet]
