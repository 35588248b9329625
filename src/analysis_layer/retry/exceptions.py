"""
Retry controller exceptions.

FacetExhausted is raised when both attempts of a facet failed. It escapes the
facet pipeline to the BatchOrchestrator, which fails the whole batch.
"""

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from analysis_layer.models.enums import AnalysisFacet
    from analysis_layer.validation.exceptions import GenerationFailure


class FacetExhausted(Exception):
    """
    Raised when a facet failed on every attempt.

    Attributes:
        facet: The facet that failed
        failures: Failure of each attempt, in attempt order
    """

    def __init__(self, facet: "AnalysisFacet", failures: Sequence["GenerationFailure"]) -> None:
        self.facet = facet
        self.failures = tuple(failures)
        super().__init__(
            f"Facet '{facet.value}' failed after {len(self.failures)} attempts: "
            + "; ".join(f"attempt {i}: {f.describe()}" for i, f in enumerate(self.failures, start=1))
        )

    @property
    def reasons(self) -> list[str]:
        """Terminal reason of each attempt, e.g. ``["min_length: ... (at root.primary)", ...]``."""
        return [failure.describe() for failure in self.failures]
