"""Integration tests against a running Ollama server.

Run: ollama serve && ollama pull qwen3:4b-instruct
Tests are skipped if Ollama is not reachable.
"""

import json

import pytest

from analysis_layer.generation.generator import ConstrainedGenerator
from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.llm_models import LLMGenerationRequest
from analysis_layer.orchestration.exceptions import BatchFailed
from analysis_layer.orchestration.orchestrator import BatchOrchestrator
from analysis_layer.retry.controller import RetryController
from analysis_layer.schema.registry import SchemaRegistry

pytestmark = pytest.mark.integration


class TestOllamaClient:
    @pytest.mark.asyncio
    async def test_health_and_models(self, real_ollama_client, integration_settings):
        try:
            assert await real_ollama_client.health_check() is True
            assert integration_settings.OLLAMA_MODEL in await real_ollama_client.list_models()
        finally:
            await real_ollama_client.close()

    @pytest.mark.asyncio
    async def test_grammar_constrained_output(self, real_ollama_client, integration_settings):
        """Output produced under the intent grammar parses as a JSON object."""
        registry = SchemaRegistry()
        request = LLMGenerationRequest(
            prompt="What does the sender want? Message: Can you send the document?",
            model=integration_settings.OLLAMA_MODEL,
            temperature=0.0,
            max_tokens=512,
            num_ctx=integration_settings.LLM_CONTEXT_SIZE,
            format_schema=registry.grammar_for(AnalysisFacet.INTENT),
        )
        try:
            async with real_ollama_client.open_channels(1) as (channel,):
                response = await channel.generate(request)
        finally:
            await real_ollama_client.close()

        data = json.loads(response.content)
        assert {"primary", "underlying_needs", "confidence"} <= set(data)
        assert response.channel_id == 0


class TestBatch:
    @pytest.mark.asyncio
    async def test_four_facet_batch(self, real_ollama_client, integration_settings):
        """A plain request resolves on the real model, retries allowed."""
        generator = ConstrainedGenerator(
            SchemaRegistry(),
            PromptBuilder(
                model=integration_settings.OLLAMA_MODEL,
                context_size=integration_settings.LLM_CONTEXT_SIZE,
            ),
        )
        orchestrator = BatchOrchestrator(real_ollama_client, RetryController(generator), integration_settings)

        try:
            batch = await orchestrator.analyze_batch("Can you send the document?")
        except BatchFailed as e:
            pytest.fail(f"Batch failed on the real model: {e.to_details()}")
        finally:
            await real_ollama_client.close()

        assert set(batch.facets) == set(AnalysisFacet)
        assert batch.intent.primary.strip()
        assert len(batch.alternatives.alternatives) >= 1
