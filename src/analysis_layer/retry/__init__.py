"""
Bounded retry with failure-specific feedback.

- controller.py: RetryController (two attempts, fixed)
- feedback.py: corrective note per failure variant
- exceptions.py: FacetExhausted
"""

from analysis_layer.retry.controller import MAX_ATTEMPTS, RetryController
from analysis_layer.retry.exceptions import FacetExhausted
from analysis_layer.retry.feedback import corrective_note_for

__all__ = [
    "MAX_ATTEMPTS",
    "RetryController",
    "FacetExhausted",
    "corrective_note_for",
]
