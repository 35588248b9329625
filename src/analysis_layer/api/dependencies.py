"""
FastAPI dependency injection.

Long-lived components (LLM client, orchestrator, session store, registry) are
built once by the application lifespan and kept on ``app.state``; these
dependencies only hand them to routes. Nothing here is a module-level
mutable singleton.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Request

from analysis_layer.config import Settings, settings
from analysis_layer.llm.base_client import BaseLLMClient
from analysis_layer.orchestration.orchestrator import BatchOrchestrator
from analysis_layer.persistence.session_store import SessionStore
from analysis_layer.persistence.transcript_log import TranscriptLogger
from analysis_layer.schema.registry import SchemaRegistry


@lru_cache()
def get_settings() -> Settings:
    return settings


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


def get_llm_client(request: Request) -> BaseLLMClient:
    return request.app.state.llm_client


def get_orchestrator(request: Request) -> BatchOrchestrator:
    return request.app.state.orchestrator


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_registry(request: Request) -> SchemaRegistry:
    return request.app.state.registry


def get_transcript(request: Request) -> Optional[TranscriptLogger]:
    """Transcript logger, or None when transcripts are disabled."""
    return getattr(request.app.state, "transcript", None)
