"""
LLM client abstraction and implementations.

Components:
- BaseLLMClient / ExecutionChannel: client interface and per-facet channels
- OllamaClient: implementation for the Ollama inference server
- PromptBuilder: renders facet prompts from Jinja2 templates
- text_utils: preview/truncation helpers for prompt content
- exceptions: transport-level errors
"""

from analysis_layer.llm.base_client import BaseLLMClient, ExecutionChannel
from analysis_layer.llm.ollama_client import OllamaChannel, OllamaClient
from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMTimeoutError,
    LLMModelNotAvailableError,
)

__all__ = [
    "BaseLLMClient",
    "ExecutionChannel",
    "OllamaChannel",
    "OllamaClient",
    "PromptBuilder",
    "LLMClientError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMTimeoutError",
    "LLMModelNotAvailableError",
]
