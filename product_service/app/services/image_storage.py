"""Product image storage on the local filesystem"""

import asyncio
import time
from pathlib import Path
from typing import Union

from fastapi import UploadFile

from ..utils.logging import setup_product_logging as setup_logging

logger = setup_logging("product_service.images")


class ProductImageStorage:
    """Maps uploaded product images to files in a single uploads directory.

    Files are named ``<product id or fallback token><original extension>``, so
    a product owns at most one image file and a re-upload overwrites it. The
    directory is created once, when the storage is constructed.
    """

    def __init__(self, uploads_dir: Union[str, Path]) -> None:
        self.uploads_dir = Path(uploads_dir).resolve()
        self.uploads_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def fallback_token() -> str:
        """Name used while the product id is not known yet (creation)."""
        return str(int(time.time() * 1000))

    def destination_path(
        self, product_id_or_token: Union[int, str], original_filename: str
    ) -> Path:
        extension = Path(original_filename or "").suffix
        return self.uploads_dir / f"{product_id_or_token}{extension}"

    async def save(self, upload: UploadFile, product_id_or_token: Union[int, str]) -> str:
        """Write the uploaded file and return the path to store on the product"""
        path = self.destination_path(product_id_or_token, upload.filename or "")
        content = await upload.read()

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, path.write_bytes, content)

        logger.info(
            "Product image stored",
            extra={"image_path": str(path), "size_bytes": len(content)},
        )
        return str(path)

    async def dispose(self, image_path: str) -> bool:
        """Remove an image file; failures are logged and never raised"""
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, Path(image_path).unlink)
        except OSError as e:
            logger.warning(
                f"Failed to delete image: {image_path}",
                extra={"image_path": image_path, "error": str(e)},
            )
            return False

        logger.info("Product image deleted", extra={"image_path": image_path})
        return True
