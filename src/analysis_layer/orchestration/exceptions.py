"""
Batch orchestration exceptions.

BatchFailed is the only error the analysis core surfaces to callers.
"""

from typing import Mapping, Sequence

from analysis_layer.models.enums import AnalysisFacet


class BatchFailed(Exception):
    """
    One or more facets failed; no partial result is returned.

    Attributes:
        failures: facet -> terminal reason(s), one per failed attempt (or the
            transport error for that facet)
    """

    def __init__(self, failures: Mapping[AnalysisFacet, Sequence[str]], session_id: str | None = None):
        self.failures = {facet: list(reasons) for facet, reasons in failures.items()}
        self.session_id = session_id
        names = ", ".join(sorted(facet.value for facet in self.failures))
        super().__init__(f"Analysis failed for facet(s): {names}")

    @property
    def failed_facets(self) -> list[AnalysisFacet]:
        return sorted(self.failures, key=lambda facet: facet.value)

    def to_details(self) -> dict[str, list[str]]:
        """JSON-ready ``{facet: [reasons]}`` mapping."""
        return {facet.value: reasons for facet, reasons in sorted(self.failures.items(), key=lambda i: i[0].value)}
