"""Catalog import pipeline."""

from catalog_import.importer.batch import BatchDriver, BatchResult, RecordFailure, load_records
from catalog_import.importer.expander import ExpansionPlan, VariantSpec, expand, materialize
from catalog_import.importer.images import ImageLinker
from catalog_import.importer.resolvers import ReferenceMaps
from catalog_import.importer.uploader import AssetUploader, FileInfo
from catalog_import.importer.upserter import ProductUpserter, UpsertResult

__all__ = [
    "AssetUploader",
    "BatchDriver",
    "BatchResult",
    "ExpansionPlan",
    "FileInfo",
    "ImageLinker",
    "ProductUpserter",
    "RecordFailure",
    "ReferenceMaps",
    "UpsertResult",
    "VariantSpec",
    "expand",
    "load_records",
    "materialize",
]
