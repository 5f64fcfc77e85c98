"""Shared fixtures: in-memory catalog database, storage mock, image files."""

from pathlib import Path
from typing import Any, AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_import.importer.images import ImageLinker
from catalog_import.importer.resolvers import ReferenceMaps
from catalog_import.importer.uploader import AssetUploader
from catalog_import.importer.upserter import ProductUpserter
from catalog_import.infra.database import SessionFactory, create_schema, create_session_factory
from catalog_import.models import Admin, Brand, Category

UPLOADER_EMAIL = "seedadmin@example.com"


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database with the catalog schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> SessionFactory:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def seeded(session_factory: SessionFactory) -> dict[str, str]:
    """Uploader admin, one brand and two categories; returns their ids."""
    async with session_factory() as session:
        admin = Admin(email=UPLOADER_EMAIL, name="Seed Admin")
        brand = Brand(name="Nike", slug="nike")
        women = Category(name="Women", slug="women", xml_id="10")
        shoes = Category(name="Shoes", slug="shoes", xml_id="20")
        session.add_all([admin, brand, women, shoes])
        await session.commit()
        return {
            "admin": admin.id,
            "brand": brand.id,
            "women": women.id,
            "shoes": shoes.id,
        }


@pytest_asyncio.fixture
async def refs(session_factory: SessionFactory, seeded: dict[str, str]) -> ReferenceMaps:
    async with session_factory() as session:
        return await ReferenceMaps.load(session, UPLOADER_EMAIL)


@pytest.fixture
def mock_storage() -> MagicMock:
    """Storage backend that accepts every upload."""
    storage = MagicMock()
    storage.upload_bytes = AsyncMock(
        side_effect=lambda data, key, content_type: f"gs://bucket/{key}"
    )
    return storage


@pytest.fixture
def images_root(tmp_path: Path) -> Path:
    """Images root holding two real JPEGs and one PNG."""
    root = tmp_path / "images"
    (root / "products").mkdir(parents=True)
    Image.new("RGB", (40, 40), color="red").save(root / "products" / "a.jpg", "JPEG")
    Image.new("RGB", (40, 40), color="blue").save(root / "products" / "b.jpg", "JPEG")
    Image.new("RGBA", (20, 20), color="green").save(root / "products" / "c.png", "PNG")
    return root


@pytest.fixture
def uploader(mock_storage: MagicMock, images_root: Path) -> AssetUploader:
    return AssetUploader(mock_storage, images_root)


@pytest.fixture
def upserter(uploader: AssetUploader) -> ProductUpserter:
    return ProductUpserter(ImageLinker(uploader), available_stock=10)


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    """Build raw product JSON as exported by the upstream catalog."""

    def _make(**overrides: Any) -> dict[str, Any]:
        record: dict[str, Any] = {
            "xmlId": "100500",
            "name": "Air Max",
            "link": "/product/air-max/",
            "price": 1000,
            "priceDiscount": 750,
            "categoryIds": ["10", "20"],
            "brand": "NIKE",
            "images": ["products/a.jpg", "products/b.jpg"],
            "sizes": [
                {"main": "S", "available": True, "online": True, "price": 1000, "priceDiscount": 750},
                {"main": "M", "available": True, "online": False, "price": 1100, "priceDiscount": 0},
            ],
            "colors": [
                {"name": "Red", "xmlId": "c-1", "hex": "#ff0000"},
                {"name": "Blue", "xmlId": "c-2"},
            ],
        }
        record.update(overrides)
        return record

    return _make
