"""Monitoring and metrics instrumentation for the Message Analysis Layer."""

from analysis_layer.monitoring.metrics import (
    batch_duration_seconds,
    batch_results_total,
    facet_exhausted_total,
    lenient_parse_total,
    llm_latency_seconds,
    llm_tokens_total,
    normalization_corrections_total,
    retries_total,
    validation_failures_total,
)

__all__ = [
    "validation_failures_total",
    "lenient_parse_total",
    "normalization_corrections_total",
    "retries_total",
    "facet_exhausted_total",
    "batch_results_total",
    "batch_duration_seconds",
    "llm_latency_seconds",
    "llm_tokens_total",
]
