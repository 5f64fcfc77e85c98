"""Product model and its category links."""

from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_import.models.base import Base, TimestampMixin, new_id

if TYPE_CHECKING:
    from catalog_import.models.brand import Brand


class Product(Base, TimestampMixin):
    """Storefront product.

    ``xml_id`` is the stable upstream identifier and the idempotency key
    of the importer: re-importing a record updates the same row.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    xml_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    slug: Mapped[str] = mapped_column(String(512), unique=True, nullable=False, index=True)
    base_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sale_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    discount_percent: Mapped[int | None] = mapped_column(Integer, nullable=True)
    brand_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("brands.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    brand: Mapped["Brand | None"] = relationship(
        "Brand",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, xml_id='{self.xml_id}', slug='{self.slug}')>"


class ProductCategory(Base):
    """Many-to-many link between products and categories."""

    __tablename__ = "product_categories"

    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="CASCADE"),
        primary_key=True,
    )
