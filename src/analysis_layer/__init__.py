"""
Message Analysis Layer.

Turns a free-text-generating local language model into a source of
structured, schema-valid analysis for a single message:
- Intent (primary/secondary intent, underlying needs, confidence)
- Tone (emotions, sentiment)
- Impact (recipient perception, severity, effects)
- Alternatives (rewritten variants with tags)

Architecture: FastAPI surface + Ollama constrained decoding + layered
validation (schema, truncation, normalization) + bounded retry + concurrent
per-facet fan-out.
"""

__version__ = "0.1.0"
