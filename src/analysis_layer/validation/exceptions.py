"""
Attempt-local failure taxonomy for the generation pipeline.

These exceptions are raised by the parse/validate/truncation stages and caught
by the ConstrainedGenerator, which turns them into ``Invalid`` outcomes. The
RetryController picks its corrective feedback from the exception class (and,
for schema violations, the ViolationKind). They never escape a facet pipeline.
"""

from enum import Enum
from typing import Any, Optional


class ViolationKind(str, Enum):
    """Category of a structural schema violation."""

    MIN_LENGTH = "min_length"  # empty string or too-short array
    MISSING_FIELD = "missing_field"
    TYPE_MISMATCH = "type_mismatch"
    ENUM_MISMATCH = "enum_mismatch"
    UNEXPECTED_FIELD = "unexpected_field"
    OUT_OF_RANGE = "out_of_range"
    CONSTRAINT = "constraint"


class GenerationFailure(Exception):
    """
    Base exception for a failed generation attempt.

    Subclasses form a closed set; the retry feedback mapping covers each one.
    """

    reason_code = "failure"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        offending_path: Optional[str] = None,
    ):
        """
        Initialize generation failure.

        Args:
            message: Human-readable error description
            details: Structured error data for logging/metrics
            offending_path: Dotted path to the field at fault (e.g. "root.emotions[0]")
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.offending_path = offending_path

    @property
    def reason(self) -> str:
        """Short machine-friendly reason (used in logs, metrics and BatchFailed)."""
        return self.reason_code

    def describe(self) -> str:
        if self.offending_path:
            return f"{self.reason}: {self.message} (at {self.offending_path})"
        return f"{self.reason}: {self.message}"

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class UnparseableOutput(GenerationFailure):
    """Neither the strict nor the lenient parse produced a JSON object."""

    reason_code = "unparseable"

    def __init__(self, message: str, raw_content: str | None = None, parse_error: str | None = None):
        details = {}
        if raw_content:
            # First 500 chars only
            details["content_snippet"] = raw_content[:500]
        if parse_error:
            details["parse_error"] = parse_error
        super().__init__(message, details)


class SchemaViolation(GenerationFailure):
    """
    Parsed output does not conform to the facet schema.

    ``kind`` is the category of the first (most relevant) error; the full list
    of formatted errors is kept in ``details["validation_errors"]``.
    """

    def __init__(
        self,
        message: str,
        kind: ViolationKind = ViolationKind.CONSTRAINT,
        offending_path: Optional[str] = None,
        validation_errors: list[str] | None = None,
    ):
        details: dict[str, Any] = {"kind": kind.value}
        if validation_errors:
            details["validation_errors"] = validation_errors
        super().__init__(message, details, offending_path)
        self.kind = kind

    @property
    def reason(self) -> str:
        return self.kind.value


class TruncationDetected(GenerationFailure):
    """A string leaf looks cut off even though the structure is valid."""

    reason_code = "truncated"

    def __init__(self, offending_path: str, snippet: str | None = None):
        details = {}
        if snippet:
            details["tail"] = snippet[-80:]
        super().__init__(f"Output truncated at {offending_path}", details, offending_path)
