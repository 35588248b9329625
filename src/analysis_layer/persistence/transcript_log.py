"""
Per-session transcript log.

Writes every model call of a session (prompt, sampling options, raw output,
attempt errors) to a JSON-lines file for offline debugging of prompts. The
structured service log only carries lengths; full bodies live here.

Best-effort: a failed write is reported on the service log and never fails
the analysis. File I/O runs in a worker thread.

Files untouched for longer than the retention period are deleted by
``cleanup_old_logs``, which the application runs after each session sweep.
"""

import asyncio
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)

MAX_LOGGED_RESPONSE_CHARS = 5000


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TranscriptLogger:
    """
    JSON-lines transcript writer, one file per session.

    File name: ``session-<session_id>-<start timestamp>.jsonl``. The first line
    is a header entry with the model name and session start time.
    """

    def __init__(self, log_dir: str | Path, model_name: str):
        self.log_dir = Path(log_dir)
        self.model_name = model_name
        self._files: dict[str, Path] = {}
        self._lock = asyncio.Lock()

    def path_for(self, session_id: str) -> Optional[Path]:
        return self._files.get(session_id)

    async def log_request(
        self,
        session_id: str,
        facet: str,
        attempt: int,
        prompt: str,
        options: dict[str, Any],
    ) -> None:
        await self._write(session_id, {
            "type": "request",
            "facet": facet,
            "attempt": attempt,
            "prompt": prompt,
            "options": options,
        })

    async def log_response(self, session_id: str, facet: str, attempt: int, response: str) -> None:
        if len(response) > MAX_LOGGED_RESPONSE_CHARS:
            response = response[:MAX_LOGGED_RESPONSE_CHARS] + " ... (truncated)"
        await self._write(session_id, {
            "type": "response",
            "facet": facet,
            "attempt": attempt,
            "response": response,
        })

    async def log_error(self, session_id: str, facet: str, error: str, attempt: Optional[int] = None) -> None:
        await self._write(session_id, {
            "type": "error",
            "facet": facet,
            "attempt": attempt,
            "error": error,
        })

    def forget(self, session_id: str) -> None:
        """Stop tracking a session's file (the file itself is kept)."""
        self._files.pop(session_id, None)

    async def cleanup_old_logs(self, max_age_days: float = 30) -> int:
        """Delete transcript files not modified for ``max_age_days``; returns how many."""
        cutoff = time.time() - max_age_days * 86400
        async with self._lock:
            try:
                removed = await asyncio.to_thread(self._remove_older_than, cutoff)
            except OSError as e:
                logger.warning("Transcript cleanup failed", log_dir=str(self.log_dir), error=str(e))
                return 0
            if removed:
                stale = set(removed)
                self._files = {sid: path for sid, path in self._files.items() if path not in stale}

        if removed:
            logger.info("Old transcripts deleted", count=len(removed), max_age_days=max_age_days)
        return len(removed)

    async def _write(self, session_id: str, entry: dict[str, Any]) -> None:
        entry = {"timestamp": _now(), "model": self.model_name, **entry}
        async with self._lock:
            path = self._files.get(session_id)
            header = None
            if path is None:
                stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
                path = self.log_dir / f"session-{session_id}-{stamp}.jsonl"
                self._files[session_id] = path
                header = {
                    "timestamp": _now(),
                    "type": "session",
                    "session_id": session_id,
                    "model": self.model_name,
                }
            try:
                await asyncio.to_thread(self._append, path, header, entry)
            except OSError as e:
                logger.warning(
                    "Transcript write failed",
                    session_id=session_id,
                    path=str(path),
                    error=str(e),
                )

    def _append(self, path: Path, header: Optional[dict], entry: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            if header is not None:
                f.write(json.dumps(header, ensure_ascii=False) + "\n")
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def _remove_older_than(self, cutoff: float) -> list[Path]:
        if not self.log_dir.is_dir():
            return []
        removed = []
        for path in self.log_dir.glob("session-*.jsonl"):
            if path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                removed.append(path)
        return removed
