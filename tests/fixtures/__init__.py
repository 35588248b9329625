"""
Test fixtures for the Message Analysis Layer.

- scripted.py: canonical valid facet outputs and an in-memory LLM client
  whose channels replay queued outputs per facet
"""
