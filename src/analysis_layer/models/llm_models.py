"""
LLM-specific data models for the request/response cycle.

These models are internal to the LLM layer and describe one raw call against
the inference server. They are separate from the facet result models so the
client implementation can change without touching the analysis pipeline.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Internal request model for one constrained generation call.

    ``format_schema`` is the decoding grammar: a JSON Schema the server uses to
    restrict the token stream to the declared shape.
    """
    model_config = ConfigDict(frozen=True)

    prompt: str = Field(..., description="User prompt for the facet")
    system: Optional[str] = Field(default=None, description="System prompt")
    model: str = Field(..., description="Model name/identifier (e.g., 'qwen3:4b-instruct')")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    max_tokens: int = Field(default=1024, ge=1, le=8192, description="Maximum tokens to generate")
    num_ctx: Optional[int] = Field(default=None, ge=256, description="Context window size")
    format_schema: Optional[Dict[str, Any]] = Field(
        default=None,
        description="JSON Schema grammar for constrained decoding (Ollama format parameter)"
    )
    stream: bool = Field(default=False, description="Whether to stream response (always False here)")
    stop_sequences: Optional[list[str]] = Field(default=None, description="Stop sequences for generation")
    top_p: Optional[float] = Field(default=None, ge=0.0, le=1.0, description="Nucleus sampling parameter")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducibility")


class LLMGenerationResponse(BaseModel):
    """
    Internal response model from one generation call.

    ``content`` is the raw model output. It is consumed by the parse stage and
    never stored on results.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Generated text (expected to be JSON)")
    model_version: str = Field(..., description="Actual model version reported by the server")
    finish_reason: str = Field(
        ...,
        description="Why generation stopped: 'stop', 'length', etc."
    )
    usage_tokens: Optional[int] = Field(default=None, description="Total tokens (prompt + completion)")
    prompt_tokens: Optional[int] = Field(default=None, description="Tokens in prompt")
    completion_tokens: Optional[int] = Field(default=None, description="Tokens in completion")
    latency_ms: int = Field(..., ge=0, description="Generation latency in milliseconds")
    channel_id: Optional[int] = Field(default=None, description="Execution channel that served the call")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )

    @property
    def hit_token_limit(self) -> bool:
        return self.finish_reason == "length"
