"""
In-memory session context store.

Keeps a short history of analyzed messages per session so later messages can
be analyzed with conversational context. Process-lifetime only: nothing is
persisted, sessions vanish on restart.

The store is constructed once by the application lifespan and passed
explicitly to whoever needs it (routes via ``app.state``); the analysis core
itself only ever sees the formatted context string.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

import structlog

from analysis_layer.llm.text_utils import preview
from analysis_layer.models.output_models import BatchResult

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Interaction:
    """One analyzed message and a brief summary of its analysis."""

    message: str
    summary: dict[str, str]
    timestamp: float


@dataclass
class Session:
    session_id: str
    created_at: float
    last_activity: float
    interactions: list[Interaction] = field(default_factory=list)


def summarize_batch(batch: BatchResult) -> dict[str, str]:
    """Brief per-facet summary stored with an interaction."""
    return {
        "intent": batch.intent.primary,
        "tone": batch.tone.summary,
        "sentiment": batch.tone.sentiment.label.value,
        "impact": batch.impact.severity.value,
    }


class SessionStore:
    """
    Keyed map of sessions with idle-TTL eviction.

    Expired sessions are evicted lazily on access and in bulk by ``sweep()``,
    which the application runs periodically through ``run_sweeper``.
    """

    def __init__(
        self,
        ttl_seconds: float = 1800,
        max_interactions: int = 10,
        preview_chars: int = 280,
        clock: Callable[[], float] = time.monotonic,
        on_evict: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            ttl_seconds: Idle time after which a session is evicted
            max_interactions: Interactions kept per session (oldest dropped first)
            preview_chars: Max characters per prior message in the context blob
            clock: Monotonic time source (injectable for tests)
            on_evict: Called with the id of every session that expires
        """
        if max_interactions < 1:
            raise ValueError("max_interactions must be >= 1")
        self.ttl_seconds = ttl_seconds
        self.max_interactions = max_interactions
        self.preview_chars = preview_chars
        self._clock = clock
        self.on_evict = on_evict
        self._sessions: dict[str, Session] = {}
        self._evicted_total = 0

    def __len__(self) -> int:
        return len(self._sessions)

    def _expired(self, session: Session, now: float) -> bool:
        return now - session.last_activity > self.ttl_seconds

    def create(self) -> Session:
        now = self._clock()
        session = Session(session_id=str(uuid.uuid4()), created_at=now, last_activity=now)
        self._sessions[session.session_id] = session
        logger.info("Session created", session_id=session.session_id)
        return session

    def get(self, session_id: str) -> Optional[Session]:
        """Return a live session (refreshing its activity time), or None."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        now = self._clock()
        if self._expired(session, now):
            self._evict(session_id)
            return None
        session.last_activity = now
        return session

    def get_or_create(self, session_id: Optional[str]) -> Session:
        """Existing live session, or a fresh one for unknown/expired/missing ids."""
        if session_id:
            session = self.get(session_id)
            if session is not None:
                return session
        return self.create()

    def delete(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Session deleted", session_id=session_id)
        return removed

    def add_interaction(self, session_id: str, message: str, batch: BatchResult) -> bool:
        """Record an analyzed message; False if the session is gone."""
        session = self.get(session_id)
        if session is None:
            return False
        session.interactions.append(
            Interaction(message=message, summary=summarize_batch(batch), timestamp=self._clock())
        )
        overflow = len(session.interactions) - self.max_interactions
        if overflow > 0:
            del session.interactions[:overflow]
        return True

    def interactions(self, session_id: str) -> list[Interaction]:
        session = self.get(session_id)
        return list(session.interactions) if session else []

    def format_context(self, session_id: str) -> Optional[str]:
        """
        Prior turns as one text blob, oldest first, or None without history.

        Each line holds a preview of the message (cut at a sentence boundary)
        and the brief analysis recorded for it.
        """
        history = self.interactions(session_id)
        if not history:
            return None

        lines = ["Previous messages in this conversation (oldest first):"]
        for index, interaction in enumerate(history, start=1):
            summary = interaction.summary
            lines.append(
                f'{index}. "{preview(interaction.message, self.preview_chars)}"'
                f" | intent: {summary.get('intent', '?')}"
                f" | tone: {summary.get('tone', '?')}"
                f" | impact: {summary.get('impact', '?')}"
            )
        return "\n".join(lines)

    def sweep(self) -> int:
        """Evict all expired sessions; returns how many were removed."""
        now = self._clock()
        expired = [sid for sid, session in self._sessions.items() if self._expired(session, now)]
        for session_id in expired:
            self._evict(session_id)
        if expired:
            logger.info("Expired sessions swept", count=len(expired), remaining=len(self._sessions))
        return len(expired)

    async def run_sweeper(
        self,
        interval_seconds: float,
        after_sweep: Optional[Callable[[], Awaitable[Any]]] = None,
    ) -> None:
        """
        Sweep forever every ``interval_seconds`` (cancel the task to stop).

        ``after_sweep`` is awaited after each sweep (transcript retention).
        """
        while True:
            await asyncio.sleep(interval_seconds)
            self.sweep()
            if after_sweep is not None:
                await after_sweep()

    def stats(self) -> dict[str, int]:
        return {
            "active_sessions": len(self._sessions),
            "total_interactions": sum(len(s.interactions) for s in self._sessions.values()),
            "evicted_sessions": self._evicted_total,
        }

    def dispose(self) -> None:
        """Drop every session (shutdown)."""
        count = len(self._sessions)
        self._sessions.clear()
        logger.info("Session store disposed", sessions=count)

    def _evict(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is not None:
            self._evicted_total += 1
            logger.debug("Session expired", session_id=session_id)
            if self.on_evict is not None:
                self.on_evict(session_id)
