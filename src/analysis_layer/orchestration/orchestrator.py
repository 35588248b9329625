"""
Batch Orchestrator: fan-out of the four facets, fan-in of their results.

Each facet runs as its own asyncio task on its own execution channel over the
shared model. Facets never see each other's intermediate or final state;
assembly is a pure join once all four tasks have resolved. If any facet fails,
the batch fails as a whole. Other facets are not cancelled: their in-flight
calls finish and their results are discarded.
"""

import asyncio
import time
from typing import Optional

import structlog

from analysis_layer.config import Settings
from analysis_layer.llm.base_client import BaseLLMClient
from analysis_layer.llm.exceptions import LLMClientError
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.models.input_models import GenerationRequest, SamplingParameters
from analysis_layer.models.output_models import BatchResult, FacetResult
from analysis_layer.monitoring.metrics import batch_duration_seconds, batch_results_total
from analysis_layer.orchestration.exceptions import BatchFailed
from analysis_layer.retry.controller import RetryController
from analysis_layer.retry.exceptions import FacetExhausted

logger = structlog.get_logger(__name__)

FACETS: tuple[AnalysisFacet, ...] = tuple(AnalysisFacet)


class BatchOrchestrator:
    """Runs the four facet pipelines concurrently and assembles the result."""

    def __init__(self, client: BaseLLMClient, controller: RetryController, settings: Settings):
        self.client = client
        self.controller = controller
        self.settings = settings

    def sampling_for(self, facet: AnalysisFacet) -> SamplingParameters:
        return SamplingParameters(
            temperature=self.settings.LLM_TEMPERATURE,
            max_tokens=self.settings.max_tokens_for(facet.value),
            top_p=self.settings.LLM_TOP_P,
            seed=self.settings.LLM_SEED,
        )

    def build_requests(
        self,
        message: str,
        context: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> dict[AnalysisFacet, GenerationRequest]:
        return {
            facet: GenerationRequest(
                message=message,
                context=context,
                facet=facet,
                sampling=self.sampling_for(facet),
                session_id=session_id,
            )
            for facet in FACETS
        }

    async def analyze_batch(
        self,
        message: str,
        context: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> BatchResult:
        """
        Analyze one message across all four facets.

        Args:
            message: Message text
            context: Optional opaque prior-turns blob, used verbatim in prompts
            session_id: Owning session, for log correlation only

        Returns:
            BatchResult with all four facets

        Raises:
            BatchFailed: Any facet was exhausted or hit a transport error
        """
        requests = self.build_requests(message, context, session_id)
        log = logger.bind(session_id=session_id)
        log.info("Batch started", message_length=len(message), has_context=bool(context))
        start = time.perf_counter()

        async with self.client.open_channels(len(FACETS)) as channels:
            tasks = [
                asyncio.create_task(
                    self.controller.run(requests[facet], channel),
                    name=f"facet-{facet.value}",
                )
                for facet, channel in zip(FACETS, channels)
            ]
            outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        elapsed = time.perf_counter() - start
        batch_duration_seconds.observe(elapsed)

        results: dict[AnalysisFacet, FacetResult] = {}
        failures: dict[AnalysisFacet, list[str]] = {}
        for facet, outcome in zip(FACETS, outcomes):
            if isinstance(outcome, FacetResult):
                results[facet] = outcome
            elif isinstance(outcome, FacetExhausted):
                failures[facet] = outcome.reasons
            elif isinstance(outcome, LLMClientError):
                failures[facet] = [f"{outcome.reason}: {outcome.message}"]
            elif isinstance(outcome, Exception):
                log.error(
                    "Facet pipeline crashed",
                    facet=facet.value,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                failures[facet] = [f"internal_error: {type(outcome).__name__}"]
            else:
                # CancelledError and other BaseExceptions are not facet failures
                raise outcome

        if failures:
            batch_results_total.labels(outcome="failed").inc()
            log.error(
                "Batch failed",
                failed_facets=sorted(facet.value for facet in failures),
                reasons={facet.value: reasons for facet, reasons in failures.items()},
                duration_ms=int(elapsed * 1000),
            )
            raise BatchFailed(failures, session_id=session_id)

        batch = BatchResult(session_id=session_id, facets=results, duration_ms=int(elapsed * 1000))
        batch_results_total.labels(outcome="success").inc()
        log.info("Batch completed", duration_ms=batch.duration_ms, retries=batch.retries)
        return batch
