"""Constrained generation: one grammar-constrained model call plus layered checks."""

from analysis_layer.generation.generator import ConstrainedGenerator

__all__ = ["ConstrainedGenerator"]
