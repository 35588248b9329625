"""
Stage 1: JSON parse.

Strict parse of the grammar-constrained output, plus a lenient fallback used
once when the strict parse fails but raw output exists. The fallback tolerates
the usual wrappers around an otherwise sound object: markdown code fences,
leading/trailing prose and trailing commas.
"""

import json
import re
from typing import Any, Optional

import structlog

from .exceptions import UnparseableOutput

logger = structlog.get_logger(__name__)

_CODE_FENCE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def first_balanced_object(text: str) -> Optional[str]:
    """
    Return the first balanced ``{...}`` slice of ``text``, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this start; try the next opening brace
        start = text.find("{", start + 1)
    return None


class Stage1JSONParse:
    """
    Stage 1 parser: raw model text to dict.

    Raises UnparseableOutput when no JSON object can be recovered.
    """

    def __init__(self, facet: str = "unknown"):
        self.facet = facet

    def parse(self, content: str) -> dict:
        """
        Strict parse of the constrained output.

        Args:
            content: Raw model output

        Returns:
            Parsed dict

        Raises:
            UnparseableOutput: If content is empty, not JSON, or not an object
        """
        if not content or not content.strip():
            raise UnparseableOutput(
                "Model output is empty or whitespace-only",
                raw_content=content,
                parse_error="Empty content",
            )

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            raise UnparseableOutput(
                f"Failed to parse model output as JSON: {e.msg}",
                raw_content=content,
                parse_error=f"{e.msg} at line {e.lineno} col {e.colno}",
            ) from e

        if not isinstance(parsed, dict):
            raise UnparseableOutput(
                f"Model output is not a JSON object (got {type(parsed).__name__})",
                raw_content=content,
                parse_error=f"Expected dict, got {type(parsed).__name__}",
            )

        logger.debug("Strict parse succeeded", facet=self.facet, keys=len(parsed))
        return parsed

    def parse_lenient(self, content: str) -> dict:
        """
        Tolerant parse used as the single fallback after a strict failure.

        Tries, in order: the content of a code fence, the first balanced
        object, each of those again with trailing commas removed.

        Raises:
            UnparseableOutput: If no candidate yields a JSON object
        """
        if not content or not content.strip():
            raise UnparseableOutput("Model output is empty", raw_content=content)

        candidates: list[str] = []
        fence = _CODE_FENCE.search(content)
        if fence:
            candidates.append(fence.group(1).strip())
        balanced = first_balanced_object(content)
        if balanced:
            candidates.append(balanced)
        candidates.append(content.strip())

        last_error: Optional[str] = None
        for candidate in candidates:
            for text in (candidate, _TRAILING_COMMA.sub(r"\1", candidate)):
                parsed = self._try_load(text)
                if isinstance(parsed, dict):
                    logger.info(
                        "Lenient parse recovered JSON object",
                        facet=self.facet,
                        candidate_length=len(text),
                    )
                    return parsed
                last_error = "no JSON object in candidate"

        raise UnparseableOutput(
            "Neither strict nor lenient parse produced a JSON object",
            raw_content=content,
            parse_error=last_error,
        )

    @staticmethod
    def _try_load(text: str) -> Any:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None
