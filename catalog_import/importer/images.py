"""Image linker - attaches uploaded images to a product."""

from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_import.importer.uploader import AssetUploader
from catalog_import.infra.logging import get_logger
from catalog_import.models import (
    PRODUCT_IMAGE_GALLERY,
    PRODUCT_IMAGE_MAIN,
    FileAsset,
    ProductFile,
)

logger = get_logger(__name__)

PRODUCT_IMAGE_FILE_TYPE = "product_image"


async def has_linked_images(session: AsyncSession, product_id: str) -> bool:
    """Whether any file is already linked to the product."""
    result = await session.execute(
        select(func.count()).select_from(ProductFile).where(ProductFile.product_id == product_id)
    )
    return result.scalar_one() > 0


async def unlink_images(
    session: AsyncSession,
    product_id: str,
    keep_file_ids: Iterable[str] = (),
) -> int:
    """Remove a product's file links and the file rows behind them.

    Stored objects are left in place; re-uploads overwrite the same keys.

    Args:
        session: Active database session
        product_id: Product whose images are unlinked
        keep_file_ids: Files to leave linked (freshly linked replacements)

    Returns:
        Number of links removed
    """
    stmt = select(ProductFile.file_id).where(ProductFile.product_id == product_id)
    keep = list(keep_file_ids)
    if keep:
        stmt = stmt.where(ProductFile.file_id.not_in(keep))
    result = await session.execute(stmt)
    file_ids = list(result.scalars().all())
    if not file_ids:
        return 0

    await session.execute(
        delete(ProductFile)
        .where(ProductFile.product_id == product_id, ProductFile.file_id.in_(file_ids))
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        delete(FileAsset)
        .where(FileAsset.id.in_(file_ids))
        .execution_options(synchronize_session=False)
    )
    logger.info("Product images unlinked", product_id=product_id, count=len(file_ids))
    return len(file_ids)


class ImageLinker:
    """Upload a product's images and link them in order."""

    def __init__(self, uploader: AssetUploader) -> None:
        self._uploader = uploader

    async def link(
        self,
        session: AsyncSession,
        product_id: str,
        external_id: str,
        product_name: str,
        image_paths: list[str],
        uploader_id: str | None,
    ) -> list[FileAsset]:
        """Upload and link images; the first one becomes the main image.

        A missing, unrecognized or failed image is skipped with a warning
        and never fails the call.

        Args:
            session: Session of the product's transaction
            product_id: Product to link the files to
            external_id: Product external id (storage key prefix)
            product_name: Alt text of the links
            image_paths: Image paths relative to the images root
            uploader_id: Admin recorded as uploader

        Returns:
            File rows created, in image order
        """
        assets: list[FileAsset] = []
        links: list[ProductFile] = []

        for index, image_path in enumerate(image_paths):
            try:
                info = await self._uploader.upload(image_path, external_id, index)
            except Exception as e:
                logger.warning(
                    "Image upload failed, skipping",
                    path=image_path,
                    xml_id=external_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

            if info is None:
                continue

            asset = FileAsset(
                id=info.file_id,
                name=info.file_name,
                mime_type=info.mime_type,
                size=info.byte_size,
                path=info.storage_key,
                type=PRODUCT_IMAGE_FILE_TYPE,
                uploaded_by=uploader_id,
            )
            session.add(asset)
            links.append(
                ProductFile(
                    product_id=product_id,
                    file_id=asset.id,
                    type=PRODUCT_IMAGE_MAIN if index == 0 else PRODUCT_IMAGE_GALLERY,
                    order=index,
                    alt=product_name,
                )
            )
            assets.append(asset)

        await session.flush()
        session.add_all(links)
        await session.flush()

        logger.info(
            "Product images linked",
            product_id=product_id,
            xml_id=external_id,
            linked=len(assets),
            requested=len(image_paths),
        )
        return assets
