"""Unit tests for PromptBuilder."""

import pytest
from jinja2 import UndefinedError

from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.input_models import GenerationRequest, SamplingParameters
from analysis_layer.validation.exceptions import SchemaViolation, TruncationDetected, ViolationKind


def _request(facet: AnalysisFacet, context=None) -> GenerationRequest:
    return GenerationRequest(
        message="Can you send the document?",
        context=context,
        facet=facet,
        sampling=SamplingParameters(temperature=0.3, max_tokens=512, seed=7),
    )


class TestBuildPrompt:
    """Base (attempt 1) prompts per facet."""

    @pytest.mark.parametrize("facet", list(AnalysisFacet))
    def test_message_is_embedded(self, prompt_builder, facet):
        prompt = prompt_builder.build_prompt(_request(facet))
        assert "Can you send the document?" in prompt

    def test_no_context_block_without_context(self, prompt_builder):
        """Without prior turns the prompt is the plain single-message analysis."""
        prompt = prompt_builder.build_prompt(_request(AnalysisFacet.INTENT))
        assert "Conversation so far" not in prompt

    def test_blank_context_is_ignored(self, prompt_builder):
        prompt = prompt_builder.build_prompt(_request(AnalysisFacet.TONE, context="   "))
        assert "Conversation so far" not in prompt

    def test_context_inserted_verbatim(self, prompt_builder):
        context = '1. "Hi there" | intent: greet | tone: warm | impact: none'
        prompt = prompt_builder.build_prompt(_request(AnalysisFacet.IMPACT, context=context))

        assert "Conversation so far" in prompt
        assert context in prompt
        assert prompt.index(context) < prompt.index("Can you send the document?")

    def test_enum_values_listed(self, prompt_builder):
        prompt = prompt_builder.build_prompt(_request(AnalysisFacet.IMPACT))
        assert "none, low, medium, high, critical" in prompt

    def test_alternatives_count(self, prompt_builder):
        prompt = prompt_builder.build_prompt(_request(AnalysisFacet.ALTERNATIVES))
        assert "3 alternative ways" in prompt


class TestSystemPrompt:
    def test_alternatives_variant(self, prompt_builder):
        """The alternatives system prompt forbids empty strings explicitly."""
        system = prompt_builder.build_system_prompt(AnalysisFacet.ALTERNATIVES)
        assert "rewriting messages" in system
        assert "Never return empty strings" in system

    def test_analysis_variant(self, prompt_builder):
        system = prompt_builder.build_system_prompt(AnalysisFacet.TONE)
        assert "rewriting" not in system
        assert "valid, complete JSON" in system


class TestRetryPrompt:
    def test_base_prompt_plus_note(self, prompt_builder):
        base = prompt_builder.build_prompt(_request(AnalysisFacet.INTENT))
        failure = SchemaViolation("empty", ViolationKind.MIN_LENGTH, offending_path="root.primary")

        retry = prompt_builder.build_retry_prompt(base, failure)

        assert retry.startswith(base)
        assert "(min_length at root.primary)" in retry
        assert "Never return an empty string" in retry

    def test_truncation_note(self, prompt_builder):
        failure = TruncationDetected("root.summary", "polite but firm[")
        retry = prompt_builder.build_retry_prompt("BASE", failure)

        assert "truncated at root.summary" in retry
        assert "Finish every sentence" in retry


class TestBuildLLMRequest:
    def test_request_fields(self, prompt_builder):
        request = _request(AnalysisFacet.TONE)
        grammar = {"type": "object", "title": "tone"}

        llm_request = prompt_builder.build_llm_request(request, "PROMPT", grammar)

        assert llm_request.prompt == "PROMPT"
        assert llm_request.model == "qwen3:4b-instruct"
        assert llm_request.temperature == 0.3
        assert llm_request.max_tokens == 512
        assert llm_request.seed == 7
        assert llm_request.num_ctx == 4096
        assert llm_request.format_schema == grammar
        assert llm_request.stream is False
        assert llm_request.system


class TestTemplatesDir:
    def test_custom_templates_dir(self, tmp_path):
        """Templates can be overridden from a directory."""
        for name in ("system", "retry_prompt", "intent", "tone", "impact", "alternatives"):
            (tmp_path / f"{name}.j2").write_text(f"{name}: {{{{ message | default('') }}}}", encoding="utf-8")

        builder = PromptBuilder(templates_dir=tmp_path)
        prompt = builder.build_prompt(_request(AnalysisFacet.TONE))

        assert prompt == "tone: Can you send the document?"

    def test_missing_template_raises(self, tmp_path):
        with pytest.raises(Exception):
            PromptBuilder(templates_dir=tmp_path)

    def test_undefined_variable_is_an_error(self, tmp_path):
        """StrictUndefined surfaces template typos."""
        for name in ("system", "retry_prompt", "intent", "tone", "impact", "alternatives"):
            (tmp_path / f"{name}.j2").write_text("{{ mesage }}", encoding="utf-8")

        builder = PromptBuilder(templates_dir=tmp_path)
        with pytest.raises(UndefinedError):
            builder.build_prompt(_request(AnalysisFacet.INTENT))
