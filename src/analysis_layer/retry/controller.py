"""
Retry Controller: bounded two-attempt loop per facet.

States: Attempt1 -> {Success, Attempt2} -> {Success, Exhausted}.

Attempt 1 uses the facet's base prompt. Attempt 2 uses the base prompt plus a
corrective note chosen from the attempt-1 failure type. The attempt budget is
a constant, not a setting.
"""

from typing import TYPE_CHECKING

import structlog

from analysis_layer.models.input_models import GenerationRequest
from analysis_layer.models.outcomes import AttemptRecord, Invalid
from analysis_layer.models.output_models import FacetResult
from analysis_layer.monitoring.metrics import facet_exhausted_total, retries_total
from analysis_layer.retry.exceptions import FacetExhausted

if TYPE_CHECKING:
    from analysis_layer.generation.generator import ConstrainedGenerator
    from analysis_layer.llm.base_client import ExecutionChannel

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 2


class RetryController:
    """
    Wraps the ConstrainedGenerator in the two-attempt loop.

    Attempt records live only for the duration of one ``run`` call; they are
    logged and then dropped.
    """

    def __init__(self, generator: "ConstrainedGenerator"):
        self.generator = generator
        self.prompt_builder = generator.prompt_builder

    async def run(self, request: GenerationRequest, channel: "ExecutionChannel") -> FacetResult:
        """
        Generate one facet with at most two attempts.

        Returns:
            FacetResult with the attempt number it resolved on

        Raises:
            FacetExhausted: Both attempts produced Invalid outcomes
            LLMClientError: Transport failure (not retried here)
        """
        facet = request.facet
        log = logger.bind(facet=facet.value, session_id=request.session_id)

        base_prompt = self.prompt_builder.build_prompt(request)
        prompt = base_prompt
        history: list[AttemptRecord] = []

        for attempt in range(1, MAX_ATTEMPTS + 1):
            if attempt > 1:
                prompt = self.prompt_builder.build_retry_prompt(base_prompt, history[-1].outcome.failure)
                log.info(
                    "Retrying facet with corrective feedback",
                    attempt=attempt,
                    previous_reason=history[-1].outcome.reason,
                )

            outcome, raw_output = await self.generator.generate(
                request, channel, prompt=prompt, attempt=attempt
            )
            history.append(AttemptRecord(attempt=attempt, prompt=prompt, raw_output=raw_output, outcome=outcome))

            if isinstance(outcome, Invalid):
                log.warning(
                    "Facet attempt failed",
                    attempt=attempt,
                    max_attempts=MAX_ATTEMPTS,
                    reason=outcome.reason,
                    offending_path=outcome.offending_path,
                )
                continue

            if attempt > 1:
                retries_total.labels(facet=facet.value, success="true").inc()
            log.info("Facet resolved", attempt=attempt, corrections=len(outcome.corrections))
            return FacetResult(
                facet=facet,
                result=outcome.value,
                resolved_on_attempt=attempt,
                retry_reasons=tuple(record.outcome.failure.describe() for record in history[:-1]),
                corrections=outcome.corrections,
            )

        failures = [record.outcome.failure for record in history]
        retries_total.labels(facet=facet.value, success="false").inc()
        facet_exhausted_total.labels(facet=facet.value, reason=failures[-1].reason).inc()
        log.warning(
            "Facet exhausted",
            attempts=len(history),
            reasons=[failure.describe() for failure in failures],
        )
        raise FacetExhausted(facet, failures)
