"""Product-scoped attributes and their values."""

from typing import Any, Literal

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_import.models.base import Base, JSONType, TimestampMixin, new_id

AttributeType = Literal["select", "color", "text", "number", "boolean"]


class ProductAttribute(Base, TimestampMixin):
    """Attribute definition owned by one product (e.g. Size, Color).

    ``options`` is the ordered list of selectable values, each a dict with
    ``label``, ``value`` and optional ``metadata``.
    """

    __tablename__ = "product_attributes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="select")
    options: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False, default=list)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<ProductAttribute(id={self.id}, slug='{self.slug}')>"


class ProductAttributeValue(Base, TimestampMixin):
    """Binds a product or a variant to a serialized attribute value."""

    __tablename__ = "product_attribute_values"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    attribute_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("product_attributes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    variant_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    value: Mapped[Any] = mapped_column(JSONType, nullable=False)
