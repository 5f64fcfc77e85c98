"""Category model - product taxonomy tree."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_import.models.base import Base, TimestampMixin, new_id


class Category(Base, TimestampMixin):
    """Catalog category.

    ``xml_id`` is the identifier used by the upstream catalog export, which
    product records reference in their ``categoryIds`` list.
    """

    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    xml_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, xml_id='{self.xml_id}')>"
