"""
FastAPI application entry point for the Message Analysis Layer.
"""

import asyncio
from contextlib import asynccontextmanager, suppress
from functools import partial
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from analysis_layer.api.error_handlers import EXCEPTION_HANDLERS
from analysis_layer.api.middleware import RequestTracingMiddleware
from analysis_layer.api.routes import router
from analysis_layer.config import Settings, settings as default_settings
from analysis_layer.generation.generator import ConstrainedGenerator
from analysis_layer.llm.base_client import BaseLLMClient
from analysis_layer.llm.ollama_client import OllamaClient
from analysis_layer.llm.prompt_builder import PromptBuilder
from analysis_layer.logging_config import configure_logging
from analysis_layer.orchestration.orchestrator import BatchOrchestrator
from analysis_layer.persistence.session_store import SessionStore
from analysis_layer.persistence.transcript_log import TranscriptLogger
from analysis_layer.retry.controller import RetryController
from analysis_layer.schema.registry import SchemaRegistry

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    llm_client: Optional[BaseLLMClient] = None,
) -> FastAPI:
    """
    Build the application.

    Every long-lived component is created inside the lifespan and stored on
    ``app.state``. Passing ``llm_client`` replaces the Ollama client (tests).
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
        logger.info(
            "Application startup",
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
            ollama_base_url=settings.OLLAMA_BASE_URL,
            model=settings.OLLAMA_MODEL,
            context_size=settings.LLM_CONTEXT_SIZE,
        )

        client = llm_client or OllamaClient(
            base_url=settings.OLLAMA_BASE_URL,
            timeout=settings.OLLAMA_TIMEOUT,
            max_retries=settings.OLLAMA_MAX_RETRIES,
        )
        if await client.health_check():
            logger.info("Ollama connection successful")
        else:
            logger.warning("Ollama not reachable at startup", base_url=settings.OLLAMA_BASE_URL)

        registry = SchemaRegistry()
        prompt_builder = PromptBuilder(
            templates_dir=settings.PROMPT_TEMPLATES_DIR,
            model=settings.OLLAMA_MODEL,
            context_size=settings.LLM_CONTEXT_SIZE,
        )
        transcript = (
            TranscriptLogger(settings.TRANSCRIPT_LOG_DIR, settings.OLLAMA_MODEL)
            if settings.TRANSCRIPT_LOG_ENABLED
            else None
        )
        generator = ConstrainedGenerator(registry, prompt_builder, transcript=transcript)
        orchestrator = BatchOrchestrator(client, RetryController(generator), settings)
        sessions = SessionStore(
            ttl_seconds=settings.SESSION_TTL_SECONDS,
            max_interactions=settings.SESSION_MAX_INTERACTIONS,
            preview_chars=settings.CONTEXT_PREVIEW_CHARS,
            on_evict=transcript.forget if transcript else None,
        )

        app.state.settings = settings
        app.state.llm_client = client
        app.state.registry = registry
        app.state.orchestrator = orchestrator
        app.state.session_store = sessions
        app.state.transcript = transcript

        retention = (
            partial(transcript.cleanup_old_logs, settings.TRANSCRIPT_RETENTION_DAYS)
            if transcript
            else None
        )
        sweeper = asyncio.create_task(
            sessions.run_sweeper(settings.SESSION_SWEEP_INTERVAL_SECONDS, after_sweep=retention),
            name="session-sweeper",
        )
        logger.info("Application startup complete")
        try:
            yield
        finally:
            logger.info("Application shutdown")
            sweeper.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper
            sessions.dispose()
            await client.close()
            logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Four-facet message analysis with schema-constrained local LLM generation",
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Request tracing middleware (must be first for request_id in all logs)
    app.add_middleware(RequestTracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for exc_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exc_class, handler)

    app.include_router(router, tags=["analysis"])

    if settings.PROMETHEUS_ENABLED:
        Instrumentator().instrument(app).expose(app)

    @app.get("/")
    async def root():
        """Root endpoint with API documentation links."""
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
            "analyze": "/analyze",
            "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "analysis_layer.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Only for development
    )
