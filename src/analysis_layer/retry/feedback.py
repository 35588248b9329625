"""
Corrective feedback for the second attempt.

Maps each failure variant to a specific instruction for the model. Dispatch is
on the exception type (and ViolationKind for schema violations), never on the
message text, and every variant has its own note: a generic "try again" does
not change model behaviour.
"""

from typing import Optional

from analysis_layer.validation.exceptions import (
    GenerationFailure,
    SchemaViolation,
    TruncationDetected,
    UnparseableOutput,
    ViolationKind,
)


def _field(path: Optional[str]) -> str:
    if not path or path == "root":
        return "the response"
    return f'"{path.removeprefix("root.")}"'


_VIOLATION_NOTES = {
    ViolationKind.MIN_LENGTH: (
        "Field {field} was empty. Never return an empty string (\"\") or an empty "
        "list: every text field needs real content and every list needs at least one item."
    ),
    ViolationKind.MISSING_FIELD: (
        "Field {field} was missing. Include every required field of the JSON object."
    ),
    ViolationKind.TYPE_MISMATCH: (
        "Field {field} had the wrong type. Use text for text fields, numbers for "
        "scores and lists where a list is asked for."
    ),
    ViolationKind.ENUM_MISMATCH: (
        "Field {field} used a value that is not allowed. Use only the listed values."
    ),
    ViolationKind.UNEXPECTED_FIELD: (
        "Field {field} is not part of the requested format. Use only the fields listed above."
    ),
    ViolationKind.OUT_OF_RANGE: (
        "Field {field} was outside its allowed range. Scores must be between -1 and 1."
    ),
    ViolationKind.CONSTRAINT: (
        "Field {field} did not match the requested format. Follow the field descriptions exactly."
    ),
}

TRUNCATION_NOTE = (
    "Field {field} was cut off mid-word. Finish every sentence: each text field must "
    "end with complete words and proper punctuation. Keep fields short enough to finish."
)

UNPARSEABLE_NOTE = (
    "The response was not a valid JSON object. Respond with a single JSON object only, "
    "with no text, markdown or code fences around it."
)


def corrective_note_for(failure: GenerationFailure) -> str:
    """
    Corrective instruction for a failed attempt.

    Raises:
        TypeError: For a failure type without a note (keeps the mapping exhaustive)
    """
    field = _field(failure.offending_path)
    if isinstance(failure, SchemaViolation):
        return _VIOLATION_NOTES[failure.kind].format(field=field)
    if isinstance(failure, TruncationDetected):
        return TRUNCATION_NOTE.format(field=field)
    if isinstance(failure, UnparseableOutput):
        return UNPARSEABLE_NOTE
    raise TypeError(f"No corrective feedback for {type(failure).__name__}")
