"""SQLAlchemy models for the catalog tables touched by the importer."""

from catalog_import.models.admin import Admin
from catalog_import.models.attribute import (
    AttributeType,
    ProductAttribute,
    ProductAttributeValue,
)
from catalog_import.models.base import Base, TimestampMixin, new_id
from catalog_import.models.brand import Brand
from catalog_import.models.category import Category
from catalog_import.models.file import (
    PRODUCT_IMAGE_GALLERY,
    PRODUCT_IMAGE_MAIN,
    FileAsset,
    ProductFile,
)
from catalog_import.models.product import Product, ProductCategory
from catalog_import.models.variant import ProductVariant

__all__ = [
    "AttributeType",
    "Admin",
    "Base",
    "Brand",
    "Category",
    "FileAsset",
    "PRODUCT_IMAGE_GALLERY",
    "PRODUCT_IMAGE_MAIN",
    "Product",
    "ProductAttribute",
    "ProductAttributeValue",
    "ProductCategory",
    "ProductFile",
    "ProductVariant",
    "TimestampMixin",
    "new_id",
]
