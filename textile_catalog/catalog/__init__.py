"""Product Catalog Service.

Provides product storage backends, the image policy, category-driven
product URLs, and catalog operations for textile products.
"""

from textile_catalog.catalog.images import ImageStorage
from textile_catalog.catalog.models import ProductModel
from textile_catalog.catalog.repository import (
    InMemoryProductRepository,
    ProductRepository,
    SqlProductRepository,
)
from textile_catalog.catalog.service import (
    CatalogService,
    PaginatedResult,
    PaginationParams,
    get_catalog_service,
)
from textile_catalog.catalog.taxonomy import build_product_url

__all__ = [
    # Taxonomy
    "build_product_url",
    # Images
    "ImageStorage",
    # Models
    "ProductModel",
    # Repository
    "InMemoryProductRepository",
    "ProductRepository",
    "SqlProductRepository",
    # Service
    "CatalogService",
    "PaginatedResult",
    "PaginationParams",
    "get_catalog_service",
]
