"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import copy
from typing import Any, Dict

import pytest

from analysis_layer.config import Settings
from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.schema.registry import SchemaRegistry
from fixtures.scripted import VALID_OUTPUTS, ScriptedLLMClient


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests with ``model_copy(update=...)``.
    """
    return Settings(
        APP_NAME="Message Analysis Layer (Test)",
        APP_VERSION="0.1.0",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="qwen3:4b-instruct",
        OLLAMA_TIMEOUT=30,
        LLM_CONTEXT_SIZE=4096,
        SESSION_SWEEP_INTERVAL_SECONDS=3600,
        TRANSCRIPT_LOG_ENABLED=False,
        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def valid_outputs() -> Dict[str, Dict[str, Any]]:
    """Canonical valid outputs keyed by facet name (fresh copies)."""
    return copy.deepcopy(VALID_OUTPUTS)


@pytest.fixture
def registry() -> SchemaRegistry:
    return SchemaRegistry()


@pytest.fixture
def prompt_builder() -> PromptBuilder:
    """Prompt builder over the bundled templates."""
    return PromptBuilder(model="qwen3:4b-instruct", context_size=4096)


@pytest.fixture
def scripted_client() -> ScriptedLLMClient:
    """Scripted client returning valid output for every facet."""
    return ScriptedLLMClient()
