"""
Declared output shapes for the four analysis facets.

Versioned together: bump SCHEMA_VERSION when any shape changes so transcript
logs and /schema responses can be matched to the prompts that produced them.
"""

from analysis_layer.models.enums import (
    AnalysisFacet,
    ConfidenceLevel,
    Intensity,
    Severity,
    Valence,
)
from analysis_layer.models.output_models import (
    AlternativesResult,
    ImpactResult,
    IntentResult,
    ToneResult,
)
from analysis_layer.schema.registry import (
    ARRAY,
    NUMBER,
    OBJECT,
    STRING,
    EnumSpec,
    FacetSchema,
    FieldSpec,
)

SCHEMA_VERSION = "message_analysis_v1"


def _values(enum_cls) -> tuple[str, ...]:
    return tuple(member.value for member in enum_cls)


# === Enum declarations (priority = containment-match order) ===

SEVERITY_ENUM = EnumSpec(
    values=_values(Severity),
    coerce=True,
    priority=("critical", "high", "medium", "low", "none"),
    aliases={
        "moderate": "medium",
        "mid": "medium",
        "severe": "high",
        "serious": "high",
        "significant": "high",
        "major": "high",
        "minor": "low",
        "slight": "low",
        "mild": "low",
        "extreme": "critical",
        "negligible": "none",
        "no impact": "none",
    },
    fallback="medium",
)

CONFIDENCE_ENUM = EnumSpec(
    values=_values(ConfidenceLevel),
    coerce=True,
    priority=("high", "medium", "low"),
    aliases={"moderate": "medium", "certain": "high", "uncertain": "low", "unsure": "low"},
    fallback="medium",
)

INTENSITY_ENUM = EnumSpec(
    values=_values(Intensity),
    coerce=True,
    priority=("high", "medium", "low"),
    aliases={
        "moderate": "medium",
        "strong": "high",
        "intense": "high",
        "very strong": "high",
        "mild": "low",
        "weak": "low",
        "slight": "low",
    },
    fallback="medium",
)

VALENCE_ENUM = EnumSpec(
    values=_values(Valence),
    coerce=True,
    priority=("negative", "positive", "neutral"),
    aliases={
        "mixed": "neutral",
        "neither": "neutral",
        "pos": "positive",
        "neg": "negative",
        "good": "positive",
        "bad": "negative",
    },
    fallback="neutral",
)


def _text(description: str) -> FieldSpec:
    return FieldSpec(kind=STRING, description=description)


def _text_list(description: str) -> FieldSpec:
    return FieldSpec(kind=ARRAY, items=FieldSpec(kind=STRING), description=description)


INTENT_SPEC = FieldSpec(
    kind=OBJECT,
    properties={
        "primary": _text("Main thing the sender wants"),
        "secondary": FieldSpec(
            kind=STRING,
            required=False,
            nullable=True,
            non_empty=False,
            description="Secondary intent, or null",
        ),
        "underlying_needs": _text_list("Needs or expectations implied but not stated"),
        "confidence": FieldSpec(
            kind=OBJECT,
            properties={
                "level": FieldSpec(kind=STRING, enum=CONFIDENCE_ENUM),
                "rationale": _text("Why this reading"),
            },
        ),
    },
)

TONE_SPEC = FieldSpec(
    kind=OBJECT,
    properties={
        "summary": _text("One-sentence description of how the message sounds"),
        "emotions": FieldSpec(
            kind=ARRAY,
            items=FieldSpec(
                kind=OBJECT,
                properties={
                    "emotion": _text("Emotion label, one or two words"),
                    "intensity": FieldSpec(kind=STRING, enum=INTENSITY_ENUM),
                    "valence": FieldSpec(kind=STRING, enum=VALENCE_ENUM),
                },
            ),
        ),
        "sentiment": FieldSpec(
            kind=OBJECT,
            properties={
                "label": FieldSpec(kind=STRING, enum=VALENCE_ENUM),
                "score": FieldSpec(kind=NUMBER, minimum=-1.0, maximum=1.0),
            },
        ),
    },
)

IMPACT_SPEC = FieldSpec(
    kind=OBJECT,
    properties={
        "recipient_perception": _text("How the recipient is likely to read the message"),
        "likely_response": _text("How the recipient is likely to respond"),
        "severity": FieldSpec(kind=STRING, enum=SEVERITY_ENUM),
        "effects": FieldSpec(
            kind=ARRAY,
            items=FieldSpec(
                kind=OBJECT,
                properties={
                    "area": _text("Affected area (trust, workload, relationship, ...)"),
                    "description": _text("What the effect is"),
                    "severity": FieldSpec(kind=STRING, enum=SEVERITY_ENUM),
                },
            ),
        ),
    },
)

ALTERNATIVES_SPEC = FieldSpec(
    kind=OBJECT,
    properties={
        "alternatives": FieldSpec(
            kind=ARRAY,
            items=FieldSpec(
                kind=OBJECT,
                properties={
                    "badge": _text("Two or three word label"),
                    "text": _text("The full rewritten message"),
                    "reason": _text("Why this version may land better"),
                    "tags": _text_list("Short descriptive tags"),
                },
            ),
        ),
    },
)

FACET_SCHEMAS: dict[AnalysisFacet, FacetSchema] = {
    AnalysisFacet.INTENT: FacetSchema(AnalysisFacet.INTENT, INTENT_SPEC, IntentResult, SCHEMA_VERSION),
    AnalysisFacet.TONE: FacetSchema(AnalysisFacet.TONE, TONE_SPEC, ToneResult, SCHEMA_VERSION),
    AnalysisFacet.IMPACT: FacetSchema(AnalysisFacet.IMPACT, IMPACT_SPEC, ImpactResult, SCHEMA_VERSION),
    AnalysisFacet.ALTERNATIVES: FacetSchema(
        AnalysisFacet.ALTERNATIVES, ALTERNATIVES_SPEC, AlternativesResult, SCHEMA_VERSION
    ),
}
