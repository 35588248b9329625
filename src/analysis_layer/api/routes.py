"""
HTTP routes for message analysis.

POST /analyze runs the four-facet batch for one message within a session;
the remaining endpoints expose health, facet schemas and session cleanup.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from prometheus_client import Counter

from analysis_layer.api.dependencies import (
    get_app_settings,
    get_llm_client,
    get_orchestrator,
    get_registry,
    get_session_store,
    get_transcript,
)
from analysis_layer.api.models import (
    AnalyzeData,
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    SchemaResponse,
)
from analysis_layer.config import Settings
from analysis_layer.llm.base_client import BaseLLMClient
from analysis_layer.models.enums import AnalysisFacet
from analysis_layer.orchestration.exceptions import BatchFailed
from analysis_layer.orchestration.orchestrator import BatchOrchestrator
from analysis_layer.persistence.session_store import SessionStore
from analysis_layer.persistence.transcript_log import TranscriptLogger
from analysis_layer.schema.registry import SchemaRegistry, UnknownFacetError

logger = structlog.get_logger(__name__)

analyze_requests_total = Counter(
    "analysis_requests_total",
    "Total /analyze requests",
    ["status"],
)

router = APIRouter()


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_200_OK,
    summary="Analyze one message across all four facets",
    responses={
        200: {"description": "All four facets resolved"},
        413: {"description": "Message exceeds the configured maximum length"},
        422: {"description": "Invalid request format"},
        502: {"description": "LLM inference server unreachable"},
        503: {"description": "One or more facets failed both attempts"},
        504: {"description": "LLM inference server timed out"},
    },
)
async def analyze_message(
    request: AnalyzeRequest,
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> AnalyzeResponse:
    """
    Analyze a message, using the session's prior messages as context.

    Unknown or expired session ids silently start a new session; the id in
    the response is the one to send with the next message.
    """
    if len(request.message) > settings.MAX_MESSAGE_LENGTH:
        analyze_requests_total.labels(status="rejected").inc()
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Message exceeds {settings.MAX_MESSAGE_LENGTH} characters",
        )

    session = sessions.get_or_create(request.session_id)
    structlog.contextvars.bind_contextvars(session_id=session.session_id)
    context = sessions.format_context(session.session_id)

    try:
        batch = await orchestrator.analyze_batch(
            request.message, context=context, session_id=session.session_id
        )
    except BatchFailed:
        analyze_requests_total.labels(status="failed").inc()
        raise

    sessions.add_interaction(session.session_id, request.message, batch)
    analyze_requests_total.labels(status="success").inc()

    payload = batch.to_payload()
    return AnalyzeResponse(
        session_id=session.session_id,
        data=AnalyzeData(
            analysis=payload["analysis"],
            attempts=payload["attempts"],
            duration_ms=payload["duration_ms"],
        ),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
)
async def health_check(
    client: BaseLLMClient = Depends(get_llm_client),
    sessions: SessionStore = Depends(get_session_store),
    settings: Settings = Depends(get_app_settings),
) -> HealthResponse:
    """Report model server reachability and session counts."""
    ollama_ok = await client.health_check()
    if not ollama_ok:
        logger.warning("Health check: Ollama unavailable")
    return HealthResponse(
        status="healthy" if ollama_ok else "degraded",
        version=settings.APP_VERSION,
        model=settings.OLLAMA_MODEL,
        services={"ollama": "ok" if ollama_ok else "unavailable"},
        sessions=sessions.stats(),
    )


@router.get(
    "/schema/{facet}",
    response_model=SchemaResponse,
    summary="Grammar and validation schema for one facet",
    responses={404: {"description": "Unknown facet"}},
)
async def facet_schema(
    facet: str,
    registry: SchemaRegistry = Depends(get_registry),
) -> SchemaResponse:
    try:
        facet_key = AnalysisFacet(facet)
    except ValueError:
        raise UnknownFacetError(f"Unknown facet: {facet}") from None

    schema = registry.schema_for(facet_key)
    return SchemaResponse(
        facet=facet_key.value,
        version=schema.version,
        grammar=registry.grammar_for(facet_key),
        validation_schema=registry.validation_schema_for(facet_key),
        coercible_fields=sorted(schema.coercible_enums()),
    )


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Forget a session",
    responses={404: {"description": "Unknown or expired session"}},
)
async def delete_session(
    session_id: str,
    sessions: SessionStore = Depends(get_session_store),
    transcript: Optional[TranscriptLogger] = Depends(get_transcript),
) -> None:
    if transcript is not None:
        transcript.forget(session_id)
    if not sessions.delete(session_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
