"""Admin model - uploader identity for imported files."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from catalog_import.models.base import Base, TimestampMixin, new_id


class Admin(Base, TimestampMixin):
    """Back-office administrator.

    The importer only reads this table to find the uploader of seeded files.
    """

    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email='{self.email}')>"
