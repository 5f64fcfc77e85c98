"""Input schemas for product JSON exported from the upstream catalog.

Records arrive in two shapes: the current one carries raw ``sizes`` and
``colors`` lists, the legacy one an explicit ``variants`` list. Both are
parsed here; the expander turns either into one attributes + variants plan.
"""

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from catalog_import.models.attribute import AttributeType

RecordShape = Literal["matrix", "legacy", "bare"]


def _as_text(value: Any) -> Any:
    """Coerce scalar identifiers (often numeric in exports) to strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class SizeEntry(BaseModel):
    """One size of a product with its own price and availability flags."""

    main: str = Field(description="Size label, e.g. 'M' or '42'")
    available: bool = Field(default=True, description="In stock at the source")
    online: bool = Field(default=True, description="Sold online at the source")
    price: Decimal | None = Field(default=None, description="Size price")
    price_discount: Decimal | None = Field(
        default=None,
        alias="priceDiscount",
        description="Discounted size price, 0 or missing when not on sale",
    )

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("main", mode="before")
    @classmethod
    def coerce_label(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("available", "online", mode="before")
    @classmethod
    def null_flag_is_false(cls, v: Any) -> Any:
        return False if v is None else v

    @property
    def purchasable(self) -> bool:
        """Available at the source and sold online."""
        return self.available and self.online


class ColorEntry(BaseModel):
    """One color of a product."""

    name: str = Field(default="", description="Display name")
    xml_id: str | None = Field(default=None, alias="xmlId", description="Upstream color id")
    hex: str | None = Field(default=None, description="Swatch color, e.g. '#ff0000'")

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> Any:
        return "" if v is None else _as_text(v)

    @field_validator("xml_id", mode="before")
    @classmethod
    def coerce_xml_id(cls, v: Any) -> Any:
        if v is None:
            return v
        return _as_text(v)

    @property
    def is_blank(self) -> bool:
        return not self.name.strip()


class VariantEntry(BaseModel):
    """Explicit variant from the legacy record format."""

    sku: str | None = None
    name: str | None = None
    is_default: bool = Field(default=False, alias="isDefault")
    is_active: bool = Field(default=True, alias="isActive")
    stock: int = 0
    min_stock: int = Field(default=0, alias="minStock")
    price: Decimal | None = None
    sale_price: Decimal | None = Field(default=None, alias="salePrice")
    cost_price: Decimal | None = Field(default=None, alias="costPrice")
    barcode: str | None = None
    weight: Decimal | None = None
    width: Decimal | None = None
    height: Decimal | None = None
    depth: Decimal | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("sku", "barcode", mode="before")
    @classmethod
    def coerce_codes(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("is_default", "is_active", "stock", "min_stock", mode="before")
    @classmethod
    def null_as_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return cls.model_fields[info.field_name].default
        return v


class AttributeOption(BaseModel):
    """One selectable value of an attribute."""

    label: str
    value: str
    metadata: dict[str, Any] | None = None

    model_config = {"extra": "ignore"}

    @field_validator("label", "value", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return _as_text(v)


class AttributeEntry(BaseModel):
    """Attribute definition, explicit in a record or synthesized on import."""

    name: str
    slug: str
    type: AttributeType = "select"
    options: list[AttributeOption] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class ProductRecord(BaseModel):
    """A product as exported by the upstream catalog.

    Only lives for the duration of an import run.
    """

    xml_id: str = Field(alias="xmlId", min_length=1, description="Stable upstream id")
    name: str = Field(min_length=1)
    link: str | None = Field(default=None, description="Product page path, slug source")
    price: Decimal | None = None
    price_discount: Decimal | None = Field(default=None, alias="priceDiscount")
    category_ids: list[str] = Field(default_factory=list, alias="categoryIds")
    brand: str | None = None
    images: list[str] = Field(default_factory=list)
    sizes: list[SizeEntry] = Field(default_factory=list)
    colors: list[ColorEntry] = Field(default_factory=list)
    variants: list[VariantEntry] = Field(default_factory=list)
    attributes: list[AttributeEntry] | None = None

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("xml_id", mode="before")
    @classmethod
    def coerce_xml_id(cls, v: Any) -> Any:
        return _as_text(v)

    @field_validator("category_ids", mode="before")
    @classmethod
    def coerce_category_ids(cls, v: Any) -> Any:
        if v is None:
            return []
        return [_as_text(item) for item in v]

    @field_validator("images", "sizes", "colors", "variants", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("sizes", mode="before")
    @classmethod
    def normalize_sizes(cls, v: Any) -> Any:
        return [{"main": item} if isinstance(item, (str, int, float)) else item for item in v or []]

    @field_validator("colors", mode="before")
    @classmethod
    def normalize_colors(cls, v: Any) -> Any:
        return [{"name": item} if isinstance(item, str) else item for item in v or []]

    @property
    def shape(self) -> RecordShape:
        """Which input format this record uses."""
        if self.sizes:
            return "matrix"
        if self.variants:
            return "legacy"
        return "bare"

    @property
    def sale_price(self) -> Decimal | None:
        """Discounted price, only when actually on sale."""
        if self.price_discount is not None and self.price_discount > 0:
            return self.price_discount
        return None

    @property
    def attribute_slugs(self) -> set[str]:
        """Slugs of attributes given explicitly in the record."""
        return {attr.slug for attr in self.attributes or []}
