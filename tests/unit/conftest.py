"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

import json
from unittest.mock import AsyncMock

import pytest

from analysis_layer.generation.generator import ConstrainedGenerator
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.input_models import GenerationRequest
from fixtures.scripted import VALID_OUTPUTS, make_response


@pytest.fixture
def mock_llm_response():
    """Valid intent output wrapped in an LLMGenerationResponse."""
    return make_response(json.dumps(VALID_OUTPUTS["intent"]))


@pytest.fixture
def mock_channel():
    """Execution channel whose ``generate`` returns queued responses.

    Set ``mock_channel.generate.side_effect`` to a list of LLMGenerationResponse
    (or exceptions) in tests.
    """
    channel = AsyncMock()
    channel.channel_id = 0
    channel.generate = AsyncMock()
    return channel


@pytest.fixture
def generator(registry, prompt_builder) -> ConstrainedGenerator:
    return ConstrainedGenerator(registry, prompt_builder)


@pytest.fixture
def intent_request() -> GenerationRequest:
    return GenerationRequest(
        message="Can you send the document?",
        facet=AnalysisFacet.INTENT,
        session_id="session-1",
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
