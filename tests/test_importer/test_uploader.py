"""Tests for the asset uploader."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from catalog_import.importer.uploader import (
    AssetUploader,
    build_storage_key,
    sniff_image_type,
)


class TestSniffImageType:
    """Tests for content-based type detection."""

    def test_jpeg(self, images_root: Path):
        data = (images_root / "products" / "a.jpg").read_bytes()
        assert sniff_image_type(data) == ("image/jpeg", "jpg")

    def test_png(self, images_root: Path):
        data = (images_root / "products" / "c.png").read_bytes()
        assert sniff_image_type(data) == ("image/png", "png")

    def test_extension_is_ignored(self, images_root: Path, tmp_path: Path):
        """A PNG named .jpg is still a PNG."""
        disguised = tmp_path / "photo.jpg"
        disguised.write_bytes((images_root / "products" / "c.png").read_bytes())

        assert sniff_image_type(disguised.read_bytes()) == ("image/png", "png")

    def test_unknown_content(self):
        assert sniff_image_type(b"definitely not an image") is None


def test_build_storage_key():
    assert build_storage_key("100500", 0, "jpg") == "products/100500/100500-1.jpg"
    assert build_storage_key("100500", 2, "webp") == "products/100500/100500-3.webp"


class TestAssetUploader:
    """Tests for AssetUploader.upload."""

    @pytest.mark.asyncio
    async def test_upload_returns_file_info(self, uploader: AssetUploader, mock_storage, images_root):
        info = await uploader.upload("products/a.jpg", "100500", 0)

        assert info is not None
        assert info.storage_key == "products/100500/100500-1.jpg"
        assert info.mime_type == "image/jpeg"
        assert info.file_name == "100500-1.jpg"
        assert info.byte_size == (images_root / "products" / "a.jpg").stat().st_size
        assert info.file_id

        mock_storage.upload_bytes.assert_awaited_once()
        data, key, content_type = mock_storage.upload_bytes.call_args.args
        assert key == "products/100500/100500-1.jpg"
        assert content_type == "image/jpeg"
        assert len(data) == info.byte_size

    @pytest.mark.asyncio
    async def test_leading_slash_resolves_under_root(self, uploader: AssetUploader):
        info = await uploader.upload("/products/b.jpg", "100500", 1)

        assert info is not None
        assert info.storage_key == "products/100500/100500-2.jpg"

    @pytest.mark.asyncio
    async def test_file_ids_are_fresh(self, uploader: AssetUploader):
        first = await uploader.upload("products/a.jpg", "100500", 0)
        second = await uploader.upload("products/a.jpg", "100500", 0)

        assert first.file_id != second.file_id

    @pytest.mark.asyncio
    async def test_missing_file_returns_none(self, uploader: AssetUploader, mock_storage):
        assert await uploader.upload("products/missing.jpg", "100500", 0) is None
        mock_storage.upload_bytes.assert_not_called()

    @pytest.mark.asyncio
    async def test_unrecognized_file_returns_none(self, uploader: AssetUploader, mock_storage, images_root):
        (images_root / "products" / "notes.jpg").write_text("hello")

        assert await uploader.upload("products/notes.jpg", "100500", 0) is None
        mock_storage.upload_bytes.assert_not_called()

    @pytest.mark.asyncio
    async def test_storage_failure_propagates(self, images_root: Path):
        storage = MagicMock()
        storage.upload_bytes = AsyncMock(side_effect=ConnectionError("bucket unreachable"))
        uploader = AssetUploader(storage, images_root)

        with pytest.raises(ConnectionError):
            await uploader.upload("products/a.jpg", "100500", 0)
