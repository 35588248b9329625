"""
Schema Registry: per-facet declared shapes, decoding grammars and validators.
"""

from analysis_layer.schema.registry import (
    EnumSpec,
    FacetSchema,
    FacetValidator,
    FieldSpec,
    SchemaRegistry,
    UnknownFacetError,
)

__all__ = [
    "EnumSpec",
    "FacetSchema",
    "FacetValidator",
    "FieldSpec",
    "SchemaRegistry",
    "UnknownFacetError",
]
