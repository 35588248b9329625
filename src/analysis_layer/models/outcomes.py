"""
Validation outcomes and attempt records.

A generation attempt always ends in exactly one ValidationOutcome; it is
never dropped. ``Invalid`` wraps the failure exception so the retry feedback
can dispatch on its type instead of on message text.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from analysis_layer.validation.exceptions import GenerationFailure


@dataclass(frozen=True)
class Valid:
    """Accepted, normalized result for one facet."""

    value: Any
    corrections: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Invalid:
    """Rejected attempt carrying its failure."""

    failure: GenerationFailure

    @property
    def is_valid(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.failure.reason

    @property
    def offending_path(self) -> Optional[str]:
        return self.failure.offending_path


ValidationOutcome = Union[Valid, Invalid]


@dataclass(frozen=True)
class AttemptRecord:
    """
    Observational record of one attempt.

    Owned by the RetryController for the duration of one facet's generation and
    discarded after logging.
    """

    attempt: int
    prompt: str
    raw_output: Optional[str]
    outcome: ValidationOutcome

    def __post_init__(self) -> None:
        if self.attempt not in (1, 2):
            raise ValueError("attempt must be 1 or 2")
