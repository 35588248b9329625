"""
Output data models for the Message Analysis Layer.

These are the final, immutable facet results. They are only built from data
that already passed schema validation, the truncation check and
normalization, so every enum field holds a declared value.
"""

from typing import Optional, Union
from pydantic import BaseModel, Field, ConfigDict, model_validator

from analysis_layer.models.enums import (
    AnalysisFacet,
    ConfidenceLevel,
    Intensity,
    Severity,
    Valence,
)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# === Intent ===


class IntentConfidence(_FrozenModel):
    """How sure the reading of the intent is, and why."""

    level: ConfidenceLevel = Field(..., description="Confidence level")
    rationale: str = Field(..., min_length=1, description="Short justification")


class IntentResult(_FrozenModel):
    """What the sender is trying to achieve."""

    primary: str = Field(..., min_length=1, description="Main intent of the message")
    secondary: Optional[str] = Field(default=None, description="Secondary intent, if any")
    underlying_needs: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Needs or expectations implied but not stated",
    )
    confidence: IntentConfidence


# === Tone ===


class EmotionReading(_FrozenModel):
    """A single emotion detected in the message."""

    emotion: str = Field(..., min_length=1, description="Emotion label (e.g. 'frustration')")
    intensity: Intensity
    valence: Valence


class SentimentReading(_FrozenModel):
    """Overall sentiment; ``score`` in [-1, 1], negative to positive."""

    label: Valence
    score: float = Field(..., ge=-1.0, le=1.0)


class ToneResult(_FrozenModel):
    """How the message sounds."""

    summary: str = Field(..., min_length=1, description="One-sentence tone summary")
    emotions: tuple[EmotionReading, ...] = Field(..., min_length=1)
    sentiment: SentimentReading


# === Impact ===


class ImpactEffect(_FrozenModel):
    """A specific effect the message may have on the recipient."""

    area: str = Field(..., min_length=1, description="Affected area (trust, workload, ...)")
    description: str = Field(..., min_length=1)
    severity: Severity


class ImpactResult(_FrozenModel):
    """How the message is likely to land."""

    recipient_perception: str = Field(..., min_length=1)
    likely_response: str = Field(..., min_length=1)
    severity: Severity
    effects: tuple[ImpactEffect, ...] = Field(..., min_length=1)


# === Alternatives ===


class AlternativePhrasing(_FrozenModel):
    """A rewritten variant of the message."""

    badge: str = Field(..., min_length=1, description="Short label (e.g. 'Warmer')")
    text: str = Field(..., min_length=1, description="The rewritten message")
    reason: str = Field(..., min_length=1, description="Why this phrasing may land better")
    tags: tuple[str, ...] = Field(..., min_length=1)


class AlternativesResult(_FrozenModel):
    """Ordered, non-empty list of rewritten variants."""

    alternatives: tuple[AlternativePhrasing, ...] = Field(..., min_length=1)


ParsedResult = Union[IntentResult, ToneResult, ImpactResult, AlternativesResult]


# === Batch assembly ===


class FacetResult(_FrozenModel):
    """Final result of one facet pipeline."""

    facet: AnalysisFacet
    result: ParsedResult
    resolved_on_attempt: int = Field(..., ge=1, le=2, description="1 = first try, 2 = after retry")
    retry_reasons: tuple[str, ...] = Field(
        default=(),
        description="Reasons of the attempts that failed before success",
    )
    corrections: tuple[str, ...] = Field(
        default=(),
        description="Normalizer repairs applied to the accepted output",
    )

    @property
    def retried(self) -> bool:
        return self.resolved_on_attempt > 1


class BatchResult(_FrozenModel):
    """
    Complete four-facet analysis of one message.

    Construction fails unless every facet is present: partial batches are
    never handed to callers.
    """

    session_id: Optional[str] = None
    facets: dict[AnalysisFacet, FacetResult]
    duration_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _require_all_facets(self) -> "BatchResult":
        missing = [facet.value for facet in AnalysisFacet if facet not in self.facets]
        if missing:
            raise ValueError(f"BatchResult is missing facets: {', '.join(missing)}")
        for facet, entry in self.facets.items():
            if entry.facet != facet:
                raise ValueError(f"FacetResult for {entry.facet.value} stored under {facet.value}")
        return self

    @property
    def intent(self) -> IntentResult:
        return self.facets[AnalysisFacet.INTENT].result

    @property
    def tone(self) -> ToneResult:
        return self.facets[AnalysisFacet.TONE].result

    @property
    def impact(self) -> ImpactResult:
        return self.facets[AnalysisFacet.IMPACT].result

    @property
    def alternatives(self) -> AlternativesResult:
        return self.facets[AnalysisFacet.ALTERNATIVES].result

    @property
    def retries(self) -> int:
        """Number of facets that needed a second attempt."""
        return sum(1 for entry in self.facets.values() if entry.retried)

    def to_payload(self) -> dict:
        """Plain JSON-ready dict keyed by facet name."""
        return {
            "session_id": self.session_id,
            "duration_ms": self.duration_ms,
            "analysis": {
                facet.value: self.facets[facet].result.model_dump(mode="json")
                for facet in AnalysisFacet
            },
            "attempts": {
                facet.value: self.facets[facet].resolved_on_attempt
                for facet in AnalysisFacet
            },
        }
