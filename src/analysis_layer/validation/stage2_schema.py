"""
Stage 2: JSON Schema validation.

Validate a parsed dict against the facet's full validation schema (the grammar
plus the minimums constrained decoding cannot express). The first, most
relevant error decides the ViolationKind that drives retry feedback.
"""

from typing import Any, Iterable, Sequence, Union

import structlog
from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError as JSONSchemaError, best_match

from .exceptions import SchemaViolation, ViolationKind

logger = structlog.get_logger(__name__)

# jsonschema keyword -> violation category
_KIND_BY_KEYWORD: dict[str, ViolationKind] = {
    "minLength": ViolationKind.MIN_LENGTH,
    "minItems": ViolationKind.MIN_LENGTH,
    "pattern": ViolationKind.MIN_LENGTH,  # only used for "not blank"
    "required": ViolationKind.MISSING_FIELD,
    "type": ViolationKind.TYPE_MISMATCH,
    "enum": ViolationKind.ENUM_MISMATCH,
    "additionalProperties": ViolationKind.UNEXPECTED_FIELD,
    "minimum": ViolationKind.OUT_OF_RANGE,
    "maximum": ViolationKind.OUT_OF_RANGE,
}

MAX_REPORTED_ERRORS = 10


def format_path(parts: Iterable[Union[str, int]], root: str = "root") -> str:
    """Render a jsonschema path deque as ``root.field[0].child``."""
    path = root
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}"
    return path


def _offending_path(error: JSONSchemaError) -> str:
    parts: list[Union[str, int]] = list(error.absolute_path)
    instance = error.instance
    if error.validator == "required" and isinstance(instance, dict):
        missing = [name for name in error.validator_value if name not in instance]
        if missing:
            parts.append(missing[0])
    elif error.validator == "additionalProperties" and isinstance(instance, dict):
        declared = error.schema.get("properties", {})
        extra = sorted(name for name in instance if name not in declared)
        if extra:
            parts.append(extra[0])
    return format_path(parts)


def classify(error: JSONSchemaError) -> ViolationKind:
    return _KIND_BY_KEYWORD.get(str(error.validator), ViolationKind.CONSTRAINT)


class Stage2SchemaValidation:
    """
    Stage 2 validator: validate against a facet JSON Schema.

    Raises SchemaViolation on any violation (hard fail, retried).
    """

    def __init__(self, schema: dict, schema_name: str = "facet"):
        """
        Initialize schema validator.

        Args:
            schema: Full validation schema (Draft 7)
            schema_name: Name used in log events
        """
        Draft7Validator.check_schema(schema)
        self.schema = schema
        self.schema_name = schema_name
        self._validator = Draft7Validator(schema)

    def errors(self, data: Any) -> Sequence[JSONSchemaError]:
        return list(self._validator.iter_errors(data))

    def validate(self, data: Any) -> None:
        """
        Validate data against the schema.

        Raises:
            SchemaViolation: If data doesn't conform to schema
        """
        errors = self.errors(data)
        if not errors:
            logger.debug("Schema validation passed", schema=self.schema_name)
            return

        primary = best_match(errors)
        kind = classify(primary)
        offending = _offending_path(primary)

        error_messages = [
            f"{format_path(error.absolute_path)}: {error.message}"
            for error in errors[:MAX_REPORTED_ERRORS]
        ]

        raise SchemaViolation(
            f"Schema validation failed with {len(errors)} error(s): {primary.message}",
            kind=kind,
            offending_path=offending,
            validation_errors=error_messages,
        )
