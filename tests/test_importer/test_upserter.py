"""Tests for the product upserter."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from catalog_import.importer.images import ImageLinker
from catalog_import.importer.upserter import ProductUpserter, compute_discount_percent
from catalog_import.infra.database import transaction
from catalog_import.models import (
    FileAsset,
    Product,
    ProductCategory,
    ProductFile,
    ProductVariant,
)
from catalog_import.schemas.record import ProductRecord


async def _count(session, model, *criteria) -> int:
    stmt = select(func.count()).select_from(model)
    for criterion in criteria:
        stmt = stmt.where(criterion)
    return await session.scalar(stmt)


class TestComputeDiscountPercent:
    """Tests for the derived discount."""

    def test_quarter_off(self):
        assert compute_discount_percent(Decimal("1000"), Decimal("750")) == 25

    def test_positive_half_rounds_up(self):
        assert compute_discount_percent(Decimal("200"), Decimal("199")) == 1
        assert compute_discount_percent(Decimal("1000"), Decimal("995")) == 1

    def test_negative_half_rounds_towards_positive(self):
        assert compute_discount_percent(Decimal("200"), Decimal("205")) == -2
        assert compute_discount_percent(Decimal("200"), Decimal("209")) == -4

    def test_none_without_sale_price(self):
        assert compute_discount_percent(Decimal("1000"), None) is None
        assert compute_discount_percent(Decimal("1000"), Decimal("0")) is None

    def test_none_without_base_price(self):
        assert compute_discount_percent(None, Decimal("750")) is None


class TestProductUpserter:
    """Tests for ProductUpserter.upsert against an in-memory database."""

    @pytest.mark.asyncio
    async def test_insert_creates_product_with_derived_fields(
        self, session_factory, refs, seeded, upserter, make_record
    ):
        record = ProductRecord.model_validate(make_record())

        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, record, refs)

        assert result.created is True
        async with session_factory() as session:
            product = await session.get(Product, result.product_id)
            assert product.xml_id == "100500"
            assert product.slug == "air-max"
            assert product.base_price == Decimal("1000")
            assert product.sale_price == Decimal("750")
            assert product.discount_percent == 25
            assert product.brand_id == seeded["brand"]
            assert product.is_active is True
            assert product.is_featured is False

            links = (
                await session.execute(
                    select(ProductCategory.category_id).where(
                        ProductCategory.product_id == product.id
                    )
                )
            ).scalars().all()
        assert set(links) == {seeded["women"], seeded["shoes"]}

    @pytest.mark.asyncio
    async def test_unknown_brand_and_categories_are_dropped(
        self, session_factory, refs, upserter, make_record
    ):
        record = ProductRecord.model_validate(
            make_record(brand="Unknown", categoryIds=["10", "999"])
        )

        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, record, refs)

        async with session_factory() as session:
            product = await session.get(Product, result.product_id)
            link_count = await _count(
                session, ProductCategory, ProductCategory.product_id == product.id
            )
        assert product.brand_id is None
        assert link_count == 1

    @pytest.mark.asyncio
    async def test_reimport_is_idempotent(self, session_factory, refs, upserter, make_record):
        """Importing the same record twice keeps one product and a fixed variant count."""
        record = ProductRecord.model_validate(make_record())

        for _ in range(2):
            async with transaction(session_factory) as session:
                await upserter.upsert(session, record, refs)

            async with session_factory() as session:
                assert await _count(session, Product, Product.xml_id == "100500") == 1
                # 2 sizes x 2 colors
                assert await _count(session, ProductVariant) == 4

    @pytest.mark.asyncio
    async def test_update_refreshes_prices_and_slug(
        self, session_factory, refs, upserter, make_record
    ):
        first = ProductRecord.model_validate(make_record())
        second = ProductRecord.model_validate(
            make_record(price=2000, priceDiscount=1000, link="/product/air-max-2/", sizes=["XL"], colors=[])
        )

        async with transaction(session_factory) as session:
            created = await upserter.upsert(session, first, refs)
        async with transaction(session_factory) as session:
            updated = await upserter.upsert(session, second, refs)

        assert updated.created is False
        assert updated.product_id == created.product_id

        async with session_factory() as session:
            product = await session.get(Product, created.product_id)
            skus = (await session.execute(select(ProductVariant.sku))).scalars().all()

        assert product.base_price == Decimal("2000")
        assert product.sale_price == Decimal("1000")
        assert product.discount_percent == 50
        assert product.slug == "air-max-2"
        assert skus == ["100500-XL"]

    @pytest.mark.asyncio
    async def test_update_does_not_touch_category_links(
        self, session_factory, refs, upserter, make_record
    ):
        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, ProductRecord.model_validate(make_record()), refs)
        async with transaction(session_factory) as session:
            await upserter.upsert(
                session, ProductRecord.model_validate(make_record(categoryIds=[])), refs
            )

        async with session_factory() as session:
            assert await _count(
                session, ProductCategory, ProductCategory.product_id == result.product_id
            ) == 2

    @pytest.mark.asyncio
    async def test_images_linked_in_order(
        self, session_factory, refs, seeded, upserter, make_record, mock_storage
    ):
        record = ProductRecord.model_validate(make_record())

        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, record, refs)

        assert result.image_count == 2
        assert mock_storage.upload_bytes.call_count == 2

        async with session_factory() as session:
            links = (
                await session.execute(select(ProductFile).order_by(ProductFile.order))
            ).scalars().all()

        assert [(link.type, link.order, link.alt) for link in links] == [
            ("main", 0, "Air Max"),
            ("gallery", 1, "Air Max"),
        ]
        assert links[0].file.path == "products/100500/100500-1.jpg"
        assert links[0].file.mime_type == "image/jpeg"
        assert links[0].file.uploaded_by == seeded["admin"]

    @pytest.mark.asyncio
    async def test_existing_images_are_skipped_on_reimport(
        self, session_factory, refs, upserter, make_record, mock_storage
    ):
        record = ProductRecord.model_validate(make_record())

        async with transaction(session_factory) as session:
            await upserter.upsert(session, record, refs)
        async with transaction(session_factory) as session:
            second = await upserter.upsert(
                session,
                ProductRecord.model_validate(make_record(images=["products/c.png"])),
                refs,
            )

        assert second.image_count == 0
        assert mock_storage.upload_bytes.call_count == 2
        async with session_factory() as session:
            assert await _count(session, FileAsset) == 2

    @pytest.mark.asyncio
    async def test_replace_policy_relinks_images(
        self, session_factory, refs, uploader, make_record
    ):
        upserter = ProductUpserter(ImageLinker(uploader), image_policy="replace")

        async with transaction(session_factory) as session:
            await upserter.upsert(session, ProductRecord.model_validate(make_record()), refs)
        async with transaction(session_factory) as session:
            second = await upserter.upsert(
                session,
                ProductRecord.model_validate(make_record(images=["products/c.png"])),
                refs,
            )

        assert second.image_count == 1
        async with session_factory() as session:
            files = (await session.execute(select(FileAsset))).scalars().all()
            assert await _count(session, ProductFile) == 1

        assert [f.path for f in files] == ["products/100500/100500-1.png"]

    @pytest.mark.asyncio
    async def test_replace_keeps_old_images_when_no_new_upload_succeeds(
        self, session_factory, refs, uploader, make_record
    ):
        upserter = ProductUpserter(ImageLinker(uploader), image_policy="replace")

        async with transaction(session_factory) as session:
            await upserter.upsert(session, ProductRecord.model_validate(make_record()), refs)
        async with transaction(session_factory) as session:
            second = await upserter.upsert(
                session,
                ProductRecord.model_validate(make_record(images=["products/missing.jpg"])),
                refs,
            )

        assert second.image_count == 0
        async with session_factory() as session:
            assert await _count(session, ProductFile) == 2
            assert await _count(session, FileAsset) == 2

    @pytest.mark.asyncio
    async def test_missing_image_still_creates_product(
        self, session_factory, refs, upserter, make_record
    ):
        record = ProductRecord.model_validate(make_record(images=["products/missing.jpg"]))

        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, record, refs)

        assert result.created is True
        assert result.image_count == 0
        async with session_factory() as session:
            assert await _count(session, Product) == 1
            assert await _count(session, FileAsset) == 0

    @pytest.mark.asyncio
    async def test_unique_slugs_suffix_taken_slug(
        self, session_factory, refs, uploader, make_record
    ):
        upserter = ProductUpserter(ImageLinker(uploader), unique_slugs=True)

        async with transaction(session_factory) as session:
            await upserter.upsert(session, ProductRecord.model_validate(make_record(images=[])), refs)
        async with transaction(session_factory) as session:
            result = await upserter.upsert(
                session,
                ProductRecord.model_validate(make_record(xmlId="100600", images=[])),
                refs,
            )

        async with session_factory() as session:
            product = await session.get(Product, result.product_id)
        assert product.slug == "air-max-1"

    @pytest.mark.asyncio
    async def test_slug_falls_back_to_name(self, session_factory, refs, upserter, make_record):
        record = ProductRecord.model_validate(make_record(link=None, name="Кроссовки Air", images=[]))

        async with transaction(session_factory) as session:
            result = await upserter.upsert(session, record, refs)

        async with session_factory() as session:
            product = await session.get(Product, result.product_id)
        assert product.slug == "кроссовки-air"
