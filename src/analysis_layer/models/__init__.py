"""
Pydantic data models for the Message Analysis Layer.

Includes:
- Enums (AnalysisFacet, ConfidenceLevel, Intensity, Valence, Severity)
- Input models (SamplingParameters, GenerationRequest)
- Facet result models (IntentResult, ToneResult, ImpactResult, AlternativesResult)
- Batch models (FacetResult, BatchResult)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
"""

from analysis_layer.models.enums import (
    AnalysisFacet,
    ConfidenceLevel,
    Intensity,
    Valence,
    Severity,
)
from analysis_layer.models.input_models import SamplingParameters, GenerationRequest
from analysis_layer.models.output_models import (
    IntentConfidence,
    IntentResult,
    EmotionReading,
    SentimentReading,
    ToneResult,
    ImpactEffect,
    ImpactResult,
    AlternativePhrasing,
    AlternativesResult,
    ParsedResult,
    FacetResult,
    BatchResult,
)
from analysis_layer.models.llm_models import LLMGenerationRequest, LLMGenerationResponse

__all__ = [
    # Enums
    "AnalysisFacet",
    "ConfidenceLevel",
    "Intensity",
    "Valence",
    "Severity",
    # Input models
    "SamplingParameters",
    "GenerationRequest",
    # Facet results
    "IntentConfidence",
    "IntentResult",
    "EmotionReading",
    "SentimentReading",
    "ToneResult",
    "ImpactEffect",
    "ImpactResult",
    "AlternativePhrasing",
    "AlternativesResult",
    "ParsedResult",
    # Batch
    "FacetResult",
    "BatchResult",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
]
