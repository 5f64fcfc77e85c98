"""Product upserter - one product record, one transaction.

Products are matched by external id. A known product gets its prices and
slug refreshed and its options regenerated; an unknown one is inserted
together with its category links. Images and options follow in the same
transaction, so a failing record leaves no partial state behind.
"""

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Literal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import.importer.expander import expand, materialize, purge_product_options
from catalog_import.importer.images import ImageLinker, has_linked_images, unlink_images
from catalog_import.importer.resolvers import ReferenceMaps
from catalog_import.importer.slugs import derive_slug, generate_unique_slug
from catalog_import.infra.logging import get_logger
from catalog_import.models import FileAsset, Product, ProductCategory, new_id
from catalog_import.schemas.record import ProductRecord

logger = get_logger(__name__)

ImagePolicy = Literal["skip-if-present", "replace"]


def compute_discount_percent(
    base_price: Decimal | None,
    sale_price: Decimal | None,
) -> int | None:
    """Percent off ``base_price``, halves rounded towards positive infinity.

    A sale price above the base price gives a negative percent: -2.5 becomes -2.

    Returns:
        ``100 - sale/base*100`` rounded, or None without both prices
    """
    if not base_price or not sale_price or base_price <= 0 or sale_price <= 0:
        return None
    percent = Decimal(100) - sale_price / base_price * Decimal(100)
    return int((percent + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of importing one record."""

    product_id: str
    created: bool
    variant_count: int
    attribute_count: int
    image_count: int


async def find_product(session: AsyncSession, xml_id: str) -> Product | None:
    """Look up a product by its external id."""
    result = await session.execute(select(Product).where(Product.xml_id == xml_id))
    return result.scalar_one_or_none()


class ProductUpserter:
    """Create or update products from records."""

    def __init__(
        self,
        image_linker: ImageLinker,
        image_policy: ImagePolicy = "skip-if-present",
        unique_slugs: bool = False,
        available_stock: int | None = None,
    ) -> None:
        """Initialize upserter.

        Args:
            image_linker: Uploads and links product images
            image_policy: ``skip-if-present`` leaves products with linked
                images untouched, ``replace`` relinks them from the record
            unique_slugs: Resolve slug collisions with a numeric suffix
            available_stock: Stock of purchasable variants (settings default)
        """
        self._image_linker = image_linker
        self._image_policy = image_policy
        self._unique_slugs = unique_slugs
        self._available_stock = available_stock

    async def upsert(
        self,
        session: AsyncSession,
        record: ProductRecord,
        refs: ReferenceMaps,
    ) -> UpsertResult:
        """Import one record inside the caller's transaction.

        Args:
            session: Session of the record's transaction
            record: Parsed product record
            refs: Batch-wide brand/category maps and uploader id

        Returns:
            UpsertResult describing what was written
        """
        slug = derive_slug(record.link, fallback=record.name) or record.xml_id
        product = await find_product(session, record.xml_id)
        created = product is None

        if product is None:
            product = await self._insert(session, record, refs, slug)
        else:
            await self._update(session, product, record, slug)

        images = await self._sync_images(session, product, record, refs.uploader_id)

        plan = expand(record, product.id, available_stock=self._available_stock)
        options = await materialize(session, product.id, plan)

        logger.info(
            "Product created" if created else "Product updated",
            product_id=product.id,
            xml_id=record.xml_id,
            slug=product.slug,
            variants=len(options.variants),
            images=len(images),
        )

        return UpsertResult(
            product_id=product.id,
            created=created,
            variant_count=len(options.variants),
            attribute_count=len(options.attributes),
            image_count=len(images),
        )

    async def _insert(
        self,
        session: AsyncSession,
        record: ProductRecord,
        refs: ReferenceMaps,
        slug: str,
    ) -> Product:
        if self._unique_slugs:
            slug = (await generate_unique_slug(session, slug)).slug

        product = Product(
            id=new_id(),
            xml_id=record.xml_id,
            name=record.name,
            slug=slug,
            base_price=record.price,
            sale_price=record.sale_price,
            discount_percent=compute_discount_percent(record.price, record.price_discount),
            brand_id=refs.brand_id(record.brand, xml_id=record.xml_id),
            is_active=True,
            is_featured=False,
        )
        session.add(product)
        await session.flush()

        # Category links are only written on first import
        for category_id in refs.category_ids(record.category_ids, xml_id=record.xml_id):
            session.add(ProductCategory(product_id=product.id, category_id=category_id))

        await session.flush()
        return product

    async def _update(
        self,
        session: AsyncSession,
        product: Product,
        record: ProductRecord,
        slug: str,
    ) -> None:
        await purge_product_options(session, product.id)

        if self._unique_slugs and slug != product.slug:
            slug = (await generate_unique_slug(session, slug, exclude_id=product.id)).slug

        product.base_price = record.price
        product.sale_price = record.sale_price
        product.discount_percent = compute_discount_percent(record.price, record.price_discount)
        product.slug = slug

        await session.flush()

    async def _sync_images(
        self,
        session: AsyncSession,
        product: Product,
        record: ProductRecord,
        uploader_id: str | None,
    ) -> list[FileAsset]:
        if not record.images:
            return []

        replacing = False
        if await has_linked_images(session, product.id):
            if self._image_policy == "skip-if-present":
                logger.debug(
                    "Product already has images, skipping",
                    product_id=product.id,
                    xml_id=record.xml_id,
                )
                return []
            replacing = True

        assets = await self._image_linker.link(
            session,
            product_id=product.id,
            external_id=record.xml_id,
            product_name=record.name,
            image_paths=record.images,
            uploader_id=uploader_id,
        )

        if replacing:
            if assets:
                await unlink_images(session, product.id, keep_file_ids=[a.id for a in assets])
            else:
                logger.warning(
                    "No replacement images linked, keeping existing ones",
                    product_id=product.id,
                    xml_id=record.xml_id,
                )
        return assets
