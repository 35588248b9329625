"""
Normalizer: semantic repair of structurally valid output.

Runs only after schema validation and the truncation check passed. Repairs are
never errors: each one is recorded as a Correction, logged at info level and
counted, and the outcome stays Valid.

Passes:
1. Enum coercion for every coercible enum declared in the facet schema
   (case/whitespace, alias table, containment in priority order, fallback).
2. Blank optional strings become null.
3. Tone consistency repair:
   - filler emotions ("neutral", "none", ...) are dropped when at least one
     substantive emotion remains
   - emotions found in the lexicon get the lexicon valence
   - the sentiment score's sign follows the dominant emotional evidence
     (weighted by intensity) when the two disagree
   - the sentiment label follows the score's sign, or the dominant emotional
     evidence when the score is zero

Every pass is idempotent, so normalizing normalized output is a no-op.
"""

import copy
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from analysis_layer.models.enums import AnalysisFacet, Intensity, Valence
from analysis_layer.monitoring.metrics import normalization_corrections_total
from analysis_layer.schema.registry import ARRAY, OBJECT, FieldSpec, SchemaRegistry

logger = structlog.get_logger(__name__)

FILLER_EMOTIONS = frozenset(
    {"", "neutral", "none", "n/a", "na", "unknown", "no emotion", "not applicable", "other"}
)

EMOTION_VALENCE: dict[str, Valence] = {
    # negative
    "frustration": Valence.NEGATIVE,
    "annoyance": Valence.NEGATIVE,
    "irritation": Valence.NEGATIVE,
    "anger": Valence.NEGATIVE,
    "impatience": Valence.NEGATIVE,
    "disappointment": Valence.NEGATIVE,
    "resentment": Valence.NEGATIVE,
    "anxiety": Valence.NEGATIVE,
    "worry": Valence.NEGATIVE,
    "stress": Valence.NEGATIVE,
    "fear": Valence.NEGATIVE,
    "sadness": Valence.NEGATIVE,
    "contempt": Valence.NEGATIVE,
    "exasperation": Valence.NEGATIVE,
    "sarcasm": Valence.NEGATIVE,
    "defensiveness": Valence.NEGATIVE,
    # positive
    "gratitude": Valence.POSITIVE,
    "appreciation": Valence.POSITIVE,
    "joy": Valence.POSITIVE,
    "happiness": Valence.POSITIVE,
    "excitement": Valence.POSITIVE,
    "enthusiasm": Valence.POSITIVE,
    "warmth": Valence.POSITIVE,
    "friendliness": Valence.POSITIVE,
    "hope": Valence.POSITIVE,
    "relief": Valence.POSITIVE,
    "pride": Valence.POSITIVE,
    "satisfaction": Valence.POSITIVE,
    "encouragement": Valence.POSITIVE,
    "respect": Valence.POSITIVE,
    # neutral
    "neutral": Valence.NEUTRAL,
    "curiosity": Valence.NEUTRAL,
    "calm": Valence.NEUTRAL,
    "urgency": Valence.NEUTRAL,
}

_SIGN = {Valence.POSITIVE: 1, Valence.NEGATIVE: -1, Valence.NEUTRAL: 0}


@dataclass(frozen=True)
class Correction:
    """One repair applied by the Normalizer."""

    facet: str
    path: str
    kind: str
    before: Any
    after: Any

    def describe(self) -> str:
        return f"{self.kind} at {self.path}: {self.before!r} -> {self.after!r}"


def _emotion_key(label: Any) -> str:
    return str(label or "").strip().lower().rstrip(".!")


def dominant_valence(emotions: list[dict]) -> Valence:
    """Valence with the most intensity-weighted evidence (neutral on a tie)."""
    totals = {Valence.POSITIVE: 0, Valence.NEGATIVE: 0}
    for entry in emotions:
        try:
            valence = Valence(entry.get("valence"))
            weight = Intensity.get_weight(Intensity(entry.get("intensity")))
        except ValueError:
            continue
        if valence in totals:
            totals[valence] += weight
    if totals[Valence.POSITIVE] > totals[Valence.NEGATIVE]:
        return Valence.POSITIVE
    if totals[Valence.NEGATIVE] > totals[Valence.POSITIVE]:
        return Valence.NEGATIVE
    return Valence.NEUTRAL


class Normalizer:
    """Facet-aware semantic repair pass."""

    def __init__(self, registry: SchemaRegistry):
        self.registry = registry

    def normalize(self, facet: AnalysisFacet, data: dict) -> tuple[dict, list[Correction]]:
        """
        Return a repaired deep copy of ``data`` and the corrections applied.

        Args:
            facet: Facet whose schema declares the coercible enums
            data: Output that already passed validation and truncation check
        """
        facet = AnalysisFacet(facet)
        schema = self.registry.schema_for(facet)
        repaired = copy.deepcopy(data)
        corrections: list[Correction] = []

        repaired = self._coerce(facet, schema.root, repaired, "root", corrections)
        if facet == AnalysisFacet.TONE:
            self._repair_tone(facet, repaired, corrections)

        if corrections:
            for correction in corrections:
                normalization_corrections_total.labels(
                    facet=facet.value, correction=correction.kind
                ).inc()
            logger.info(
                "Normalization corrections applied",
                facet=facet.value,
                count=len(corrections),
                corrections=[c.describe() for c in corrections],
            )
        return repaired, corrections

    def _coerce(
        self,
        facet: AnalysisFacet,
        spec: FieldSpec,
        value: Any,
        path: str,
        corrections: list[Correction],
    ) -> Any:
        if spec.kind == OBJECT and isinstance(value, dict):
            for name, child in spec.properties.items():
                if name in value:
                    value[name] = self._coerce(facet, child, value[name], f"{path}.{name}", corrections)
            return value

        if spec.kind == ARRAY and isinstance(value, list):
            return [
                self._coerce(facet, spec.items, item, f"{path}[{index}]", corrections)
                for index, item in enumerate(value)
            ]

        if spec.enum is not None and spec.enum.coerce and isinstance(value, str):
            fixed = spec.enum.coerce_value(value)
            if fixed != value:
                corrections.append(Correction(facet.value, path, "enum_coerced", value, fixed))
            return fixed

        if spec.nullable and isinstance(value, str) and not value.strip():
            corrections.append(Correction(facet.value, path, "blank_to_null", value, None))
            return None

        return value

    def _repair_tone(self, facet: AnalysisFacet, data: dict, corrections: list[Correction]) -> None:
        emotions: list[dict] = data.get("emotions") or []

        substantive = [e for e in emotions if _emotion_key(e.get("emotion")) not in FILLER_EMOTIONS]
        if substantive and len(substantive) < len(emotions):
            dropped = [e.get("emotion") for e in emotions if e not in substantive]
            corrections.append(
                Correction(facet.value, "root.emotions", "filler_dropped", dropped, None)
            )
            emotions = substantive
            data["emotions"] = emotions

        for index, entry in enumerate(emotions):
            expected = EMOTION_VALENCE.get(_emotion_key(entry.get("emotion")))
            if expected is not None and entry.get("valence") != expected.value:
                corrections.append(
                    Correction(
                        facet.value,
                        f"root.emotions[{index}].valence",
                        "valence_aligned",
                        entry.get("valence"),
                        expected.value,
                    )
                )
                entry["valence"] = expected.value

        sentiment: Optional[dict] = data.get("sentiment")
        if not isinstance(sentiment, dict):
            return

        score = sentiment.get("score")
        if isinstance(score, (int, float)):
            dominant = dominant_valence(emotions)
            if score * _SIGN[dominant] < 0:
                corrections.append(
                    Correction(facet.value, "root.sentiment.score", "score_flipped", score, -score)
                )
                score = -score
                sentiment["score"] = score

            label = sentiment.get("label")
            aligned = label
            if label == Valence.POSITIVE.value and score < 0:
                aligned = Valence.NEGATIVE.value
            elif label == Valence.NEGATIVE.value and score > 0:
                aligned = Valence.POSITIVE.value
            elif score == 0 and dominant != Valence.NEUTRAL:
                # A zero score carries no sign; the emotions decide the label
                aligned = dominant.value
            if aligned != label:
                corrections.append(
                    Correction(facet.value, "root.sentiment.label", "label_aligned", label, aligned)
                )
                sentiment["label"] = aligned
