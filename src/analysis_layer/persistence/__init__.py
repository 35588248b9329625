"""
Process-lifetime state around the analysis core.

- session_store.py: in-memory sessions supplying the prior-context blob
- transcript_log.py: per-session JSON-lines log of model calls
"""

from analysis_layer.persistence.session_store import Interaction, Session, SessionStore
from analysis_layer.persistence.transcript_log import TranscriptLogger

__all__ = ["Interaction", "Session", "SessionStore", "TranscriptLogger"]
