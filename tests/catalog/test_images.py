"""Tests for product image storage."""

from pathlib import Path

import pytest

from tests.factories import PNG_BYTES, make_image
from textile_catalog.catalog.images import ImageStorage, unique_filename
from textile_catalog.domain.entities import Product
from textile_catalog.domain.exceptions import ImagePolicyError
from textile_catalog.domain.value_objects import ProductImage
from textile_catalog.infrastructure.config import ImageMode


def _product(**overrides) -> Product:
    return Product(name="Poplin", main_category="woven fabrics", sub_category="greige", **overrides)


class TestImagePolicy:
    """Tests for ImageStorage.validate."""

    def test_required_on_create(self) -> None:
        """Inline required mode rejects a create without image."""
        storage = ImageStorage(mode=ImageMode.INLINE_REQUIRED)
        with pytest.raises(ImagePolicyError) as exc_info:
            storage.validate(None, creating=True)
        assert exc_info.value.message == "Image required"
        assert exc_info.value.field == "image"

    def test_not_required_on_update(self) -> None:
        """Updates may omit the image in every mode."""
        ImageStorage(mode=ImageMode.INLINE_REQUIRED).validate(None, creating=False)

    @pytest.mark.parametrize("mode", [ImageMode.INLINE_OPTIONAL, ImageMode.FILESYSTEM])
    def test_optional_modes(self, mode: ImageMode) -> None:
        """Optional modes accept a create without image."""
        ImageStorage(mode=mode).validate(None, creating=True)

    def test_too_large(self) -> None:
        """Uploads above the limit are rejected."""
        storage = ImageStorage(max_bytes=10)
        with pytest.raises(ImagePolicyError) as exc_info:
            storage.validate(make_image(b"x" * 11), creating=True)
        assert exc_info.value.details["max_bytes"] == 10

    def test_at_limit_accepted(self) -> None:
        """An upload exactly at the limit passes."""
        ImageStorage(max_bytes=len(PNG_BYTES)).validate(make_image(), creating=True)

    def test_empty(self) -> None:
        """Empty uploads are rejected."""
        with pytest.raises(ImagePolicyError):
            ImageStorage().validate(make_image(b""), creating=True)

    def test_not_an_image(self) -> None:
        """Non-image content types are rejected."""
        with pytest.raises(ImagePolicyError):
            ImageStorage().validate(make_image(b"%PDF", "application/pdf"), creating=True)


class TestInlineStorage:
    """Tests for inline image modes."""

    @pytest.mark.asyncio
    async def test_store_inline(self) -> None:
        """Inline mode keeps bytes and type on the product."""
        fields = await ImageStorage().store(make_image())
        assert fields["image"] == ProductImage(data=PNG_BYTES, content_type="image/png")
        assert fields["image_url"] is None

    def test_display_reference_is_data_uri(self) -> None:
        """Inline images display as a data URI."""
        product = _product(image=ProductImage(data=b"abc", content_type="image/png"))
        assert ImageStorage().display_reference(product) == "data:image/png;base64,YWJj"

    def test_placeholder_without_image(self) -> None:
        """Products without an image display the placeholder."""
        storage = ImageStorage(mode=ImageMode.INLINE_OPTIONAL, placeholder_url="/static/none.png")
        assert storage.display_reference(_product()) == "/static/none.png"

    @pytest.mark.asyncio
    async def test_load_inline(self) -> None:
        """Loading returns the inline image."""
        image = ProductImage(data=b"abc", content_type="image/jpeg")
        assert await ImageStorage().load(_product(image=image)) == image


class TestFilesystemStorage:
    """Tests for filesystem image mode."""

    @pytest.fixture
    def storage(self, tmp_path: Path) -> ImageStorage:
        """Filesystem storage under a temporary directory."""
        return ImageStorage(mode=ImageMode.FILESYSTEM, upload_dir=tmp_path / "uploads")

    @pytest.mark.asyncio
    async def test_store_writes_file(self, storage: ImageStorage) -> None:
        """Stored files are referenced under the URL prefix."""
        fields = await storage.store(make_image())
        assert fields["image"] is None
        assert fields["image_url"].startswith("/uploads/")
        assert fields["image_url"].endswith("-poplin.png")

        written = list(storage.upload_dir.iterdir())
        assert len(written) == 1
        assert written[0].read_bytes() == PNG_BYTES

    @pytest.mark.asyncio
    async def test_load_reads_file(self, storage: ImageStorage) -> None:
        """Stored files load with a guessed content type."""
        fields = await storage.store(make_image())
        image = await storage.load(_product(image_url=fields["image_url"]))
        assert image is not None
        assert image.data == PNG_BYTES
        assert image.content_type == "image/png"

    @pytest.mark.asyncio
    async def test_discard_removes_file(self, storage: ImageStorage) -> None:
        """Discarding deletes the stored file."""
        fields = await storage.store(make_image())
        await storage.discard(fields["image_url"])
        assert list(storage.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_discard_ignores_foreign_references(self, storage: ImageStorage) -> None:
        """References outside the prefix are left alone."""
        await storage.discard("/static/placeholder-fabric.png")
        await storage.discard(None)

    @pytest.mark.asyncio
    async def test_discard_twice(self, storage: ImageStorage) -> None:
        """Discarding a file that is already gone is a no-op."""
        fields = await storage.store(make_image())
        await storage.discard(fields["image_url"])
        await storage.discard(fields["image_url"])
        assert list(storage.upload_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_missing_file_loads_none(self, storage: ImageStorage) -> None:
        """A reference to a vanished file loads as no image."""
        assert await storage.load(_product(image_url="/uploads/gone.png")) is None

    def test_display_reference_is_path(self, storage: ImageStorage) -> None:
        """Filesystem images display their reference path."""
        assert storage.display_reference(_product(image_url="/uploads/a.png")) == "/uploads/a.png"


class TestUniqueFilename:
    """Tests for unique_filename."""

    def test_format(self) -> None:
        """Names are millis, random number, then the sanitized original."""
        millis, number, rest = unique_filename("my photo.png", "image/png").split("-", 2)
        assert millis.isdigit()
        assert number.isdigit()
        assert rest == "my_photo.png"

    def test_strips_directories(self) -> None:
        """Client paths cannot escape the upload directory."""
        assert "/" not in unique_filename("../../etc/passwd", "image/png")

    def test_fallback_name(self) -> None:
        """Missing names fall back to a generic one with extension."""
        assert unique_filename(None, "image/png").endswith("-image.png")
