"""
Constrained Generator: one model call under the facet grammar, then checks.

Order of checks, cheapest and most specific first:
1. Strict parse of the constrained output. If it fails but raw output exists,
   one lenient parse is tried; its result is only accepted if it passes the
   same validator on its own.
2. Structural validation (facet validation schema).
3. Recursive truncation check over every string leaf.
4. Normalization, then construction of the frozen result model.

Any failure becomes an ``Invalid`` outcome carrying the failure exception.
Transport errors (LLMClientError) are not content failures and propagate.
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from analysis_layer.llm.base_client import ExecutionChannel
from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.input_models import GenerationRequest
from analysis_layer.models.llm_models import LLMGenerationResponse
from analysis_layer.models.outcomes import Invalid, Valid, ValidationOutcome
from analysis_layer.monitoring.metrics import (
    lenient_parse_total,
    llm_latency_seconds,
    llm_tokens_total,
    validation_failures_total,
)
from analysis_layer.persistence.transcript_log import TranscriptLogger
from analysis_layer.schema.registry import SchemaRegistry
from analysis_layer.validation.exceptions import (
    SchemaViolation,
    TruncationDetected,
    UnparseableOutput,
    ViolationKind,
)
from analysis_layer.validation.normalizer import Normalizer
from analysis_layer.validation.stage1_json_parse import Stage1JSONParse
from analysis_layer.validation.stage2_schema import format_path
from analysis_layer.validation.truncation import find_truncation, leaf_at

logger = structlog.get_logger(__name__)


class ConstrainedGenerator:
    """
    Executes one generation attempt for one facet.

    Stateless between calls; the four facet tasks share one instance.
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        prompt_builder: PromptBuilder,
        normalizer: Optional[Normalizer] = None,
        transcript: Optional[TranscriptLogger] = None,
    ):
        self.registry = registry
        self.prompt_builder = prompt_builder
        self.normalizer = normalizer or Normalizer(registry)
        self.transcript = transcript

    async def generate(
        self,
        request: GenerationRequest,
        channel: ExecutionChannel,
        prompt: Optional[str] = None,
        attempt: int = 1,
    ) -> tuple[ValidationOutcome, Optional[str]]:
        """
        Run one attempt.

        Args:
            request: The facet request
            channel: Execution channel owned by the calling facet task
            prompt: Prompt override (retry prompt); default is the base prompt
            attempt: Attempt number, for logs and transcript only

        Returns:
            Tuple of (outcome, raw model output)

        Raises:
            LLMClientError: On transport/server failures
        """
        facet = request.facet
        prompt = prompt if prompt is not None else self.prompt_builder.build_prompt(request)
        grammar = self.registry.grammar_for(facet)
        llm_request = self.prompt_builder.build_llm_request(request, prompt, grammar)

        if self.transcript and request.session_id:
            await self.transcript.log_request(
                request.session_id,
                facet.value,
                attempt,
                prompt,
                {"temperature": llm_request.temperature, "max_tokens": llm_request.max_tokens},
            )

        response = await channel.generate(llm_request)
        self._observe(facet, response)
        raw_output = response.content

        if self.transcript and request.session_id:
            await self.transcript.log_response(request.session_id, facet.value, attempt, raw_output)

        outcome = self.evaluate(facet, raw_output)

        if isinstance(outcome, Invalid):
            validation_failures_total.labels(facet=facet.value, failure_type=outcome.reason).inc()
            logger.info(
                "Generation attempt rejected",
                facet=facet.value,
                attempt=attempt,
                reason=outcome.reason,
                offending_path=outcome.offending_path,
                finish_reason=response.finish_reason,
                raw_output=raw_output,
            )
            if self.transcript and request.session_id:
                await self.transcript.log_error(
                    request.session_id, facet.value, outcome.failure.describe(), attempt
                )
        else:
            logger.debug(
                "Generation attempt accepted",
                facet=facet.value,
                attempt=attempt,
                corrections=len(outcome.corrections),
            )
        return outcome, raw_output

    def evaluate(self, facet: AnalysisFacet, raw_output: Optional[str]) -> ValidationOutcome:
        """Parse, validate, truncation-check and normalize raw output (no I/O)."""
        facet = AnalysisFacet(facet)
        parser = Stage1JSONParse(facet.value)
        validator = self.registry.validator_for(facet)

        try:
            data = parser.parse(raw_output)
        except UnparseableOutput as strict_error:
            if not raw_output or not raw_output.strip():
                return Invalid(strict_error)
            logger.info(
                "Strict parse failed, trying lenient parse",
                facet=facet.value,
                parse_error=strict_error.details.get("parse_error"),
            )
            try:
                data = parser.parse_lenient(raw_output)
            except UnparseableOutput as lenient_error:
                return Invalid(lenient_error)
            outcome = validator(data)
            lenient_parse_total.labels(
                facet=facet.value, accepted=str(outcome.is_valid).lower()
            ).inc()
        else:
            outcome = validator(data)

        if isinstance(outcome, Invalid):
            return outcome
        return self._accept(facet, data)

    def _accept(self, facet: AnalysisFacet, data: dict) -> ValidationOutcome:
        truncated_at = find_truncation(data)
        if truncated_at:
            return Invalid(TruncationDetected(truncated_at, snippet=str(leaf_at(data, truncated_at))))

        normalized, corrections = self.normalizer.normalize(facet, data)

        result_model = self.registry.schema_for(facet).result_model
        try:
            result = result_model.model_validate(normalized)
        except PydanticValidationError as e:
            errors = e.errors()
            first = errors[0]
            return Invalid(
                SchemaViolation(
                    f"Result model rejected normalized output: {first['msg']}",
                    kind=ViolationKind.CONSTRAINT,
                    offending_path=format_path(first["loc"]),
                    validation_errors=[f"{format_path(err['loc'])}: {err['msg']}" for err in errors[:10]],
                )
            )

        return Valid(result, corrections=tuple(c.describe() for c in corrections))

    @staticmethod
    def _observe(facet: AnalysisFacet, response: LLMGenerationResponse) -> None:
        llm_latency_seconds.labels(facet=facet.value).observe(response.latency_ms / 1000.0)
        if response.prompt_tokens:
            llm_tokens_total.labels(facet=facet.value, kind="prompt").inc(response.prompt_tokens)
        if response.completion_tokens:
            llm_tokens_total.labels(facet=facet.value, kind="completion").inc(response.completion_tokens)
