"""
Text utilities for prompt content.

Prior messages are shortened before they go into the context blob; cutting at
a sentence boundary keeps the preview readable for the model.
"""

import re

_SENTENCE_END = re.compile(r"[.!?](?=\s|$)")


def truncate_at_sentence_boundary(text: str, max_chars: int) -> str:
    """
    Shorten ``text`` to at most ``max_chars``, preferring a sentence end.

    Falls back to the last word boundary in the final 20% of the window, then
    to a hard cut.

    Examples:
        >>> truncate_at_sentence_boundary("Hello. World. Test.", 15)
        'Hello. World.'
        >>> truncate_at_sentence_boundary("No period here", 10)
        'No period'
    """
    if max_chars <= 0:
        return ""
    if len(text) <= max_chars:
        return text

    window = text[:max_chars]
    ends = [m.end() for m in _SENTENCE_END.finditer(window)]
    if ends:
        return window[:ends[-1]]

    last_space = window.rfind(" ")
    if last_space >= max_chars * 0.8:
        return window[:last_space]
    return window


def preview(text: str, max_chars: int, marker: str = "...") -> str:
    """Single-line preview of ``text``; ``marker`` is appended when shortened."""
    flat = " ".join(text.split())
    short = truncate_at_sentence_boundary(flat, max_chars)
    if len(short) < len(flat):
        return short.rstrip() + marker
    return short
