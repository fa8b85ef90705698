"""Product image storage.

A deployment stores images in exactly one mode:

- ``inline_required``: bytes and MIME type live on the product; every
  product must have an image.
- ``inline_optional``: as above, but products may have no image.
- ``filesystem``: bytes are written to the upload directory and the
  product keeps only a reference path served as static content.

Uploads are checked here before anything is persisted.
"""

import mimetypes
import random
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os
import structlog

from textile_catalog.domain.entities import Product
from textile_catalog.domain.exceptions import ImagePolicyError
from textile_catalog.domain.value_objects import ImageUpload, ProductImage
from textile_catalog.infrastructure.config import ImageMode

logger = structlog.get_logger()

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def unique_filename(original: str | None, content_type: str) -> str:
    """Generate a collision-resistant file name for an upload.

    Format: ``<epoch millis>-<random 0..1e9>-<sanitized original name>``.

    Args:
        original: Client file name, if any.
        content_type: MIME type, used for the extension when no name is sent.

    Returns:
        File name without directory components.
    """
    base = Path(original).name if original else ""
    base = _UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    if not base:
        base = "image" + (mimetypes.guess_extension(content_type) or "")
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}-{base}"


@dataclass
class ImageStorage:
    """Applies the deployment's image policy.

    Attributes:
        mode: Storage mode.
        max_bytes: Maximum accepted upload size.
        upload_dir: Directory for filesystem mode.
        url_prefix: URL prefix under which ``upload_dir`` is served.
        placeholder_url: Reference returned for products without an image.
    """

    mode: ImageMode = ImageMode.INLINE_REQUIRED
    max_bytes: int = 5 * 1024 * 1024
    upload_dir: Path = Path("uploads")
    url_prefix: str = "/uploads"
    placeholder_url: str = "/static/placeholder-fabric.png"

    @property
    def required(self) -> bool:
        """Whether every product must carry an image."""
        return self.mode == ImageMode.INLINE_REQUIRED

    def validate(self, upload: ImageUpload | None, creating: bool) -> None:
        """Check an upload against the policy.

        Args:
            upload: Uploaded image, or None when no file was sent.
            creating: True for create, False for update.

        Raises:
            ImagePolicyError: If the image is missing when required, empty,
                too large, or not an image type.
        """
        if upload is None:
            if creating and self.required:
                raise ImagePolicyError("Image required")
            return

        if upload.size == 0:
            raise ImagePolicyError("Uploaded image is empty")

        if upload.size > self.max_bytes:
            raise ImagePolicyError(
                f"Image exceeds maximum allowed size of {self.max_bytes} bytes",
                details={"size": upload.size, "max_bytes": self.max_bytes},
            )

        if not upload.content_type.lower().startswith("image/"):
            raise ImagePolicyError(
                f"Content type '{upload.content_type}' is not an image",
                details={"content_type": upload.content_type},
            )

    async def store(self, upload: ImageUpload) -> dict[str, Any]:
        """Store a validated upload.

        Args:
            upload: Image that passed ``validate``.

        Returns:
            Product attribute changes pointing at the stored image.
        """
        if self.mode == ImageMode.FILESYSTEM:
            await aiofiles.os.makedirs(self.upload_dir, exist_ok=True)
            filename = unique_filename(upload.filename, upload.content_type)
            async with aiofiles.open(self.upload_dir / filename, "wb") as f:
                await f.write(upload.data)
            logger.info("Stored image file", filename=filename, size=upload.size)
            return {"image": None, "image_url": f"{self.url_prefix.rstrip('/')}/{filename}"}

        return {
            "image": ProductImage(data=upload.data, content_type=upload.content_type),
            "image_url": None,
        }

    async def discard(self, image_url: str | None) -> None:
        """Remove a filesystem image that no product references any more.

        Args:
            image_url: Reference path returned by ``store``.
        """
        path = self._path_for(image_url)
        if path is None:
            return
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return
        logger.info("Removed image file", filename=path.name)

    def display_reference(self, product: Product) -> str:
        """Reference a client can display without further lookups.

        Inline images become a data URI; filesystem images expose their
        reference path; products without an image get the placeholder.
        """
        if product.image is not None:
            return product.image.to_data_uri()
        if product.image_url:
            return product.image_url
        return self.placeholder_url

    async def load(self, product: Product) -> ProductImage | None:
        """Raw image bytes for a product, in any mode.

        Returns:
            The image, or None if the product has none (or its file is gone).
        """
        if product.image is not None:
            return product.image

        path = self._path_for(product.image_url)
        if path is None or not await aiofiles.os.path.isfile(path):
            return None

        async with aiofiles.open(path, "rb") as f:
            data = await f.read()
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return ProductImage(data=data, content_type=content_type)

    def _path_for(self, image_url: str | None) -> Path | None:
        prefix = self.url_prefix.rstrip("/") + "/"
        if not image_url or not image_url.startswith(prefix):
            return None
        name = Path(image_url[len(prefix):]).name
        return self.upload_dir / name if name else None
