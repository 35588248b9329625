"""Custom Prometheus metrics for the Message Analysis Layer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- validation_failures_total (high error rate for a facet)
- facet_exhausted_total (any facet failing both attempts)
- batch_results_total{outcome="failed"} (user-visible failures)
"""

from prometheus_client import Counter, Histogram

# === Validation Metrics ===

validation_failures_total = Counter(
    "analysis_validation_failures_total",
    "Total attempt failures by facet and failure type",
    ["facet", "failure_type"],
)
"""
Attempt failures counter by facet and failure type.

Labels:
- facet: intent, tone, impact, alternatives
- failure_type: unparseable, truncated, min_length, missing_field, type_mismatch, ...
"""

lenient_parse_total = Counter(
    "analysis_lenient_parse_total",
    "Lenient fallback parses by facet and acceptance",
    ["facet", "accepted"],
)
"""
Lenient fallback parse counter.

Labels:
- accepted: true (fallback output passed the validator), false (it did not)
"""

normalization_corrections_total = Counter(
    "analysis_normalization_corrections_total",
    "Normalizer repairs applied by facet and correction kind",
    ["facet", "correction"],
)
"""
Normalization corrections (never errors).

Labels:
- correction: enum_coerced, blank_to_null, filler_dropped, valence_aligned, score_flipped, label_aligned
"""

# === Retry Metrics ===

retries_total = Counter(
    "analysis_retries_total",
    "Second attempts by facet and outcome",
    ["facet", "success"],
)
"""
Retry attempts counter by facet and success/failure.

Alert thresholds:
- WARN: retry rate > 10% of facet generations
"""

facet_exhausted_total = Counter(
    "analysis_facet_exhausted_total",
    "Facets that failed both attempts",
    ["facet", "reason"],
)

# === Batch Metrics ===

batch_results_total = Counter(
    "analysis_batch_results_total",
    "Batch outcomes",
    ["outcome"],
)
"""
Labels:
- outcome: success, failed
"""

batch_duration_seconds = Histogram(
    "analysis_batch_duration_seconds",
    "Wall-clock duration of a four-facet batch",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0, 120.0],
)

# === LLM Metrics ===

llm_latency_seconds = Histogram(
    "analysis_llm_latency_seconds",
    "LLM generation latency by facet",
    ["facet"],
    buckets=[0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)
"""
Single generation call latency (one channel, one attempt).

Alert thresholds:
- WARN: p95 > 20s
"""

llm_tokens_total = Counter(
    "analysis_llm_tokens_total",
    "Tokens consumed by facet and kind",
    ["facet", "kind"],
)
"""
Labels:
- kind: prompt, completion
"""
