"""
Validation layers run after each constrained generation call.

- stage1_json_parse.py: strict JSON parse plus lenient fallback
- stage2_schema.py: jsonschema validation mapped to ViolationKind
- truncation.py: recursive truncation heuristics over string leaves
- normalizer.py: enum coercion and tone consistency repair
"""

from .exceptions import (
    GenerationFailure,
    SchemaViolation,
    TruncationDetected,
    UnparseableOutput,
    ViolationKind,
)

__all__ = [
    "GenerationFailure",
    "SchemaViolation",
    "TruncationDetected",
    "UnparseableOutput",
    "ViolationKind",
]
