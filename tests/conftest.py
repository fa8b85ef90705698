"""Shared fixtures for catalog tests."""

import os

# Must be set before the application settings are imported
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")

import pytest

from tests.factories import PNG_BYTES
from textile_catalog.catalog.images import ImageStorage
from textile_catalog.catalog.repository import InMemoryProductRepository
from textile_catalog.catalog.service import CatalogService
from textile_catalog.infrastructure.config import ImageMode

MAX_IMAGE_BYTES = 1024


@pytest.fixture
def png_bytes() -> bytes:
    """A valid 1x1 PNG."""
    return PNG_BYTES


@pytest.fixture
def repository() -> InMemoryProductRepository:
    """Empty in-memory product store."""
    return InMemoryProductRepository()


@pytest.fixture
def images() -> ImageStorage:
    """Inline storage that requires an image."""
    return ImageStorage(mode=ImageMode.INLINE_REQUIRED, max_bytes=MAX_IMAGE_BYTES)


@pytest.fixture
def service(repository: InMemoryProductRepository, images: ImageStorage) -> CatalogService:
    """Catalog service over the in-memory store, two products per page."""
    return CatalogService(repository=repository, images=images, page_size=2)
