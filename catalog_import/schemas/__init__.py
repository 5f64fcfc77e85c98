"""Pydantic schemas for importer input."""

from catalog_import.schemas.record import (
    AttributeEntry,
    AttributeOption,
    ColorEntry,
    ProductRecord,
    RecordShape,
    SizeEntry,
    VariantEntry,
)

__all__ = [
    "AttributeEntry",
    "AttributeOption",
    "ColorEntry",
    "ProductRecord",
    "RecordShape",
    "SizeEntry",
    "VariantEntry",
]
