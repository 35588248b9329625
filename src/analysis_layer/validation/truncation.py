"""
Truncation detection over string leaves.

Constrained decoding keeps the JSON structure valid but says nothing about
whether a field's content is complete. When generation hits the token cap
mid-field, the typical artefact is a word cut off and followed by a stray
bracket or brace ("the sender is express{"). These heuristics are
pattern-based and run on every string leaf of a parsed result.
"""

import re
from typing import Any, Optional

# Letter immediately followed by a bracket/brace at the very end
_CUT_WORD = re.compile(r"[^\W\d_][{\[\]]$")
# Any word character followed by an opening bracket/brace at the very end
_CUT_TOKEN = re.compile(r"\w[{\[]$")


def is_truncated(text: str) -> bool:
    """
    Return True if ``text`` looks cut off.

    Any one rule triggers:
    - a letter followed by ``{``, ``[`` or ``]`` at the end
    - a word character followed by ``{`` or ``[`` at the end
    - more ``{``/``[`` than ``}``/``]`` while ending on an opening character

    Empty or whitespace-only text is not considered truncated (emptiness is
    the validator's concern).
    """
    if not text or not text.strip():
        return False

    trimmed = text.strip()

    if _CUT_WORD.search(trimmed) or _CUT_TOKEN.search(trimmed):
        return True

    unclosed = (
        trimmed.count("{") > trimmed.count("}")
        or trimmed.count("[") > trimmed.count("]")
    )
    return unclosed and trimmed[-1] in "{["


def find_truncation(value: Any, path: str = "root") -> Optional[str]:
    """
    Walk a parsed structure and return the path of the first truncated leaf.

    Dict keys render as ``.key`` and list items as ``[index]``, so a cut-off
    second emotion label is reported as ``root.emotions[1].emotion``.
    Non-string scalars are ignored.
    """
    if isinstance(value, str):
        return path if is_truncated(value) else None
    if isinstance(value, dict):
        for key, child in value.items():
            hit = find_truncation(child, f"{path}.{key}")
            if hit:
                return hit
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            hit = find_truncation(child, f"{path}[{index}]")
            if hit:
                return hit
    return None


def leaf_at(value: Any, path: str) -> Any:
    """Resolve a path produced by :func:`find_truncation` back to its value."""
    tokens = re.findall(r"\.([^.\[]+)|\[(\d+)\]", path[len("root"):])
    current = value
    for key, index in tokens:
        current = current[int(index)] if index else current[key]
    return current
