"""Fan-out/fan-in orchestration of the four facet pipelines."""

from analysis_layer.orchestration.exceptions import BatchFailed
from analysis_layer.orchestration.orchestrator import BatchOrchestrator

__all__ = ["BatchFailed", "BatchOrchestrator"]
