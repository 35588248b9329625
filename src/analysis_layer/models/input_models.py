"""
Input data models for the Message Analysis Layer.

A GenerationRequest is the immutable unit of work for one facet pipeline:
the message, the optional prior-context blob, the facet and its sampling
parameters.
"""

from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from analysis_layer.models.enums import AnalysisFacet


class SamplingParameters(BaseModel):
    """Sampling settings for one generation call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=1024, ge=1, description="Maximum output tokens")
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0, description="Nucleus sampling")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")


class GenerationRequest(BaseModel):
    """
    Immutable request for a single facet analysis.

    ``context`` is an opaque, already formatted prior-turns blob supplied by the
    session store. It is included in the prompt verbatim and never parsed.
    ``session_id`` is carried for log correlation only.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: str = Field(..., min_length=1, description="Message text to analyze")
    context: Optional[str] = Field(default=None, description="Optional prior-turns text blob")
    facet: AnalysisFacet = Field(..., description="Which analysis to run")
    sampling: SamplingParameters = Field(default_factory=SamplingParameters)
    session_id: Optional[str] = Field(default=None, description="Owning session (logging only)")

    @property
    def has_context(self) -> bool:
        return bool(self.context and self.context.strip())
