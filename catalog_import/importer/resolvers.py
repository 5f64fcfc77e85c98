"""Reference resolvers - foreign keys for a whole batch.

Brand and category lookups are loaded once per batch into plain dicts so
the per-record loop never queries them.
"""

from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import.exceptions import UploaderNotFoundError
from catalog_import.infra.logging import get_logger
from catalog_import.models import Admin, Brand, Category

logger = get_logger(__name__)


def normalize_brand_name(name: str) -> str:
    return name.strip().lower()


async def resolve_brands(session: AsyncSession) -> dict[str, str]:
    """Map lowercased brand name to brand id."""
    result = await session.execute(select(Brand.name, Brand.id))
    brands = {normalize_brand_name(name): brand_id for name, brand_id in result.all()}
    logger.info("Brands resolved", count=len(brands))
    return brands


async def resolve_categories(session: AsyncSession) -> dict[str, str]:
    """Map category external id to category id (exact match)."""
    result = await session.execute(
        select(Category.xml_id, Category.id).where(Category.xml_id.is_not(None))
    )
    categories = {xml_id: category_id for xml_id, category_id in result.all()}
    logger.info("Categories resolved", count=len(categories))
    return categories


async def resolve_uploader(session: AsyncSession, email: str) -> str:
    """Find the admin recorded as uploader of imported files.

    Raises:
        UploaderNotFoundError: If no admin has this email
    """
    result = await session.execute(select(Admin.id).where(Admin.email == email))
    admin_id = result.scalar_one_or_none()
    if admin_id is None:
        raise UploaderNotFoundError(email)
    return admin_id


@dataclass
class ReferenceMaps:
    """Lookup tables shared by every record of a batch."""

    brands: dict[str, str] = field(default_factory=dict)
    categories: dict[str, str] = field(default_factory=dict)
    uploader_id: str | None = None

    @classmethod
    async def load(cls, session: AsyncSession, uploader_email: str) -> "ReferenceMaps":
        """Resolve all maps and the uploader identity in one go."""
        return cls(
            brands=await resolve_brands(session),
            categories=await resolve_categories(session),
            uploader_id=await resolve_uploader(session, uploader_email),
        )

    def brand_id(self, name: str | None, xml_id: str | None = None) -> str | None:
        """Resolve a brand name, logging names that match no brand."""
        if not name or not name.strip():
            return None
        brand_id = self.brands.get(normalize_brand_name(name))
        if brand_id is None:
            logger.warning("Brand not found", brand=name, xml_id=xml_id)
        return brand_id

    def category_ids(self, xml_ids: list[str], xml_id: str | None = None) -> list[str]:
        """Resolve category external ids, dropping unknown ones.

        Order is kept and duplicates are removed.
        """
        resolved: list[str] = []
        missing: list[str] = []
        for category_xml_id in xml_ids:
            category_id = self.categories.get(category_xml_id)
            if category_id is None:
                missing.append(category_xml_id)
            elif category_id not in resolved:
                resolved.append(category_id)

        if missing:
            logger.warning("Categories not found", categories=missing, xml_id=xml_id)
        return resolved
