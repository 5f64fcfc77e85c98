"""Stored files and their product links."""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_import.models.base import Base, TimestampMixin, new_id

PRODUCT_IMAGE_MAIN = "main"
PRODUCT_IMAGE_GALLERY = "gallery"


class FileAsset(Base, TimestampMixin):
    """Binary object in storage plus its metadata.

    ``path`` is the object-storage key, not a URL.
    """

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="product_image")
    uploaded_by: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("admins.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<FileAsset(id={self.id}, path='{self.path}')>"


class ProductFile(Base, TimestampMixin):
    """Ordered, typed association between a product and a file."""

    __tablename__ = "product_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("files.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, default=PRODUCT_IMAGE_GALLERY)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    alt: Mapped[str | None] = mapped_column(String(512), nullable=True)

    # Relationships
    file: Mapped[FileAsset] = relationship(
        FileAsset,
        lazy="selectin",
    )
