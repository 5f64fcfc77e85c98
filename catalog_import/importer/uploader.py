"""Asset uploader - local product images to object storage.

Images are identified by their content, not by their file extension, and
stored under a deterministic key derived from the product's external id.
"""

import io
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from catalog_import.infra.logging import get_logger
from catalog_import.infra.storage import StorageClient

logger = get_logger(__name__)

# Pillow format name -> file extension used in storage keys
FORMAT_EXTENSIONS = {
    "JPEG": "jpg",
    "PNG": "png",
    "WEBP": "webp",
    "GIF": "gif",
    "BMP": "bmp",
    "TIFF": "tif",
    "AVIF": "avif",
}


@dataclass(frozen=True)
class FileInfo:
    """Metadata of an uploaded asset.

    Attributes:
        file_id: Id for the file row to be created
        storage_key: Object key in the bucket
        byte_size: Size of the uploaded content
        mime_type: Sniffed content type
        file_name: Display name (last key segment)
    """

    file_id: str
    storage_key: str
    byte_size: int
    mime_type: str
    file_name: str


def sniff_image_type(data: bytes) -> tuple[str, str] | None:
    """Detect the MIME type and extension of image bytes.

    Only the header is parsed, the image is not decoded.

    Returns:
        ``(mime_type, extension)`` or None if the content is not a known image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            image_format = img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return None

    if not image_format:
        return None

    mime_type = Image.MIME.get(image_format, f"image/{image_format.lower()}")
    extension = FORMAT_EXTENSIONS.get(image_format, image_format.lower())
    return mime_type, extension


def build_storage_key(external_id: str, index: int, extension: str) -> str:
    """Storage key of the ``index``-th image (0-based) of a product."""
    return f"products/{external_id}/{external_id}-{index + 1}.{extension}"


class AssetUploader:
    """Upload product images from a local images root."""

    def __init__(self, storage: StorageClient, images_root: Path | str) -> None:
        """Initialize uploader.

        Args:
            storage: Object storage backend
            images_root: Directory relative image paths are resolved against
        """
        self._storage = storage
        self._images_root = Path(images_root)

    @property
    def images_root(self) -> Path:
        return self._images_root

    def resolve(self, local_path: str) -> Path:
        """Resolve an image path from a product record."""
        return self._images_root / local_path.lstrip("/\\")

    async def upload(self, local_path: str, external_id: str, index: int) -> FileInfo | None:
        """Upload one image of a product.

        Args:
            local_path: Image path from the product record
            external_id: Product external id (key prefix)
            index: Position of the image in the record (0-based)

        Returns:
            FileInfo, or None when the file is missing or not a recognized image

        Raises:
            Exception: Whatever the storage backend raises on upload failure
        """
        path = self.resolve(local_path)
        if not path.is_file():
            logger.warning(
                "Image file not found, skipping",
                path=str(path),
                xml_id=external_id,
            )
            return None

        data = path.read_bytes()
        sniffed = sniff_image_type(data)
        if sniffed is None:
            logger.warning(
                "Unrecognized image type, skipping",
                path=str(path),
                xml_id=external_id,
            )
            return None

        mime_type, extension = sniffed
        storage_key = build_storage_key(external_id, index, extension)

        start = time.perf_counter()
        await self._storage.upload_bytes(data, storage_key, mime_type)
        duration_ms = int((time.perf_counter() - start) * 1000)

        logger.debug(
            "Image uploaded",
            key=storage_key,
            size=len(data),
            mime_type=mime_type,
            duration_ms=duration_ms,
        )

        return FileInfo(
            file_id=str(uuid.uuid4()),
            storage_key=storage_key,
            byte_size=len(data),
            mime_type=mime_type,
            file_name=storage_key.rsplit("/", 1)[-1],
        )
