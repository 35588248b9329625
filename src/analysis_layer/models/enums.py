"""
Enumerations for Message Analysis Layer data models.

AnalysisFacet is a fixed set, never extended at runtime. The value enums are
the declared sets the grammar restricts decoding to; out-of-set values that
slip through a lenient parse are coerced by the Normalizer.
"""

from enum import Enum


class AnalysisFacet(str, Enum):
    """
    The four independent analyses computed per message.

    Determines which schema, grammar, prompt template and normalizer apply.
    """

    INTENT = "intent"
    TONE = "tone"
    IMPACT = "impact"
    ALTERNATIVES = "alternatives"


class ConfidenceLevel(str, Enum):
    """Confidence attached to an intent reading."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Intensity(str, Enum):
    """Strength of a detected emotion."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def get_weight(cls, intensity: "Intensity") -> int:
        """Evidence weight for an emotion (1=low, 2=medium, 3=high)."""
        order = [cls.LOW, cls.MEDIUM, cls.HIGH]
        return order.index(intensity) + 1


class Valence(str, Enum):
    """Emotional direction, shared by emotions and overall sentiment."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Severity(str, Enum):
    """Impact severity, none to critical."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
