"""Brand model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_import.models.base import Base, TimestampMixin, new_id


class Brand(Base, TimestampMixin):
    """Product brand, resolved by case-insensitive name during import."""

    __tablename__ = "brands"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Brand(id={self.id}, name='{self.name}')>"
