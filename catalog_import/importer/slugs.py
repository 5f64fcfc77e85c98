"""Slug helpers for imported products."""

import re
from dataclasses import dataclass
from urllib.parse import urlparse

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import.models import Product

PRODUCT_PATH_PREFIXES = ("/product/", "product/")


def slugify(value: str | None) -> str:
    """Lowercase ``value`` and join its word runs with dashes.

    Non-latin letters are kept, so Cyrillic names still give usable slugs.
    """
    text = str(value or "").strip().lower()
    text = re.sub(r"[^\w]+", "-", text)
    text = text.replace("_", "-")
    text = re.sub(r"-{2,}", "-", text)
    return text.strip("-")


def derive_slug(link: str | None, fallback: str | None = None) -> str:
    """Derive a product slug from its upstream page link.

    ``/product/nike-air-max/`` becomes ``nike-air-max``. Full URLs are
    reduced to their path first. No collision check is made here, see
    :func:`generate_unique_slug`.

    Args:
        link: Link field of the product record
        fallback: Text slugified when the link yields nothing (product name)

    Returns:
        Slug, possibly empty when both inputs are empty
    """
    slug = (link or "").strip()
    if "://" in slug:
        slug = urlparse(slug).path

    for prefix in PRODUCT_PATH_PREFIXES:
        if slug.startswith(prefix):
            slug = slug[len(prefix):]
            break

    slug = slug.strip("/").replace("/", "-")

    if not slug and fallback:
        slug = slugify(fallback)
    return slug


@dataclass(frozen=True)
class UniqueSlug:
    """Result of a unique slug lookup."""

    slug: str
    is_original: bool
    counter: int | None = None


async def generate_unique_slug(
    session: AsyncSession,
    base_slug: str,
    exclude_id: str | None = None,
) -> UniqueSlug:
    """Return ``base_slug`` if no product uses it, else the first free ``base_slug-N``.

    Args:
        session: Active database session
        base_slug: Wanted slug
        exclude_id: Product whose own slug does not count as taken

    Returns:
        UniqueSlug with the chosen slug and the counter used, if any
    """
    stmt = select(Product.slug).where(
        or_(
            Product.slug == base_slug,
            Product.slug.startswith(f"{base_slug}-", autoescape=True),
        )
    )
    if exclude_id is not None:
        stmt = stmt.where(Product.id != exclude_id)

    result = await session.execute(stmt)
    taken = set(result.scalars().all())

    if base_slug not in taken:
        return UniqueSlug(slug=base_slug, is_original=True)

    counter = 1
    while f"{base_slug}-{counter}" in taken:
        counter += 1

    return UniqueSlug(slug=f"{base_slug}-{counter}", is_original=False, counter=counter)
