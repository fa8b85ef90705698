"""Catalog service for product operations.

High-level service that combines repository operations with
business logic for catalog management: validation, image policy,
product URL derivation, and paginated queries.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import structlog

from textile_catalog.catalog.images import ImageStorage
from textile_catalog.catalog.repository import (
    InMemoryProductRepository,
    ProductRepository,
    SqlProductRepository,
)
from textile_catalog.catalog.taxonomy import build_product_url
from textile_catalog.catalog.validation import (
    coerce_in_stock,
    coerce_price,
    resolve_specifications,
    validate_submission,
)
from textile_catalog.domain.entities import Product, ProductSubmission
from textile_catalog.domain.exceptions import (
    MalformedInputError,
    ProductNotFoundError,
    ProductValidationError,
)
from textile_catalog.domain.value_objects import ImageUpload, ProductImage, RawSpecifications
from textile_catalog.infrastructure.config import StoreBackend, settings

T = TypeVar("T")

logger = structlog.get_logger()


@dataclass
class PaginationParams:
    """Pagination parameters.

    Attributes:
        page: Page number (1-indexed).
        page_size: Items per page.
    """

    page: int = 1
    page_size: int = 24

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_more(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages


class CatalogService:
    """Service for catalog operations.

    Works against any ProductRepository backend.

    Example usage:
        service = CatalogService(InMemoryProductRepository(), ImageStorage())
        product = await service.create_product(
            ProductSubmission(name="Poplin", main_category="woven fabrics", sub_category="rfd"),
            image=ImageUpload(data=png, content_type="image/png"),
        )
        page = await service.list_products(page=1)
    """

    def __init__(
        self,
        repository: ProductRepository,
        images: ImageStorage,
        page_size: int = 24,
        fixed_page_size: bool = True,
        max_page_size: int = 100,
    ) -> None:
        """Initialize service.

        Args:
            repository: Product store backend.
            images: Image policy for this deployment.
            page_size: Default page size for listings.
            fixed_page_size: Ignore client page sizes and always use ``page_size``.
            max_page_size: Upper bound for client page sizes.
        """
        self.repository = repository
        self.images = images
        self.page_size = page_size
        self.fixed_page_size = fixed_page_size
        self.max_page_size = max_page_size

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create_product(
        self,
        submission: ProductSubmission,
        image: ImageUpload | None = None,
    ) -> Product:
        """Validate a submission and store a new product.

        Args:
            submission: Client data.
            image: Uploaded image, if any.

        Returns:
            The stored product.

        Raises:
            ProductValidationError: If a field or the image breaks a rule.
            TransientStoreError: If the store is unreachable.
        """
        values = validate_submission(submission, creating=True)
        values["price"] = coerce_price(submission.price)
        if submission.in_stock is not None:
            values["in_stock"] = coerce_in_stock(submission.in_stock)
        values["specifications"] = self._specifications(submission.specifications)
        values["product_url"] = build_product_url(
            values["main_category"],
            values["sub_category"],
            values.get("nested_category"),
        )
        self.images.validate(image, creating=True)

        image_fields = await self.images.store(image) if image is not None else {}
        try:
            product = await self.repository.insert(Product(**values, **image_fields))
        except Exception:
            await self.images.discard(image_fields.get("image_url"))
            raise

        logger.info(
            "Product created",
            product_id=product.id,
            name=product.name,
            main_category=product.main_category,
        )
        return product

    async def update_product(
        self,
        product_id: str,
        submission: ProductSubmission,
        image: ImageUpload | None = None,
    ) -> Product:
        """Apply a partial update.

        Only supplied fields change. The product URL is re-derived from
        the merged category fields as part of the same write, so it always
        matches the stored categories. Without a new image the stored image
        is kept; a replaced image file is removed afterwards.

        Args:
            product_id: Product to update.
            submission: Supplied fields.
            image: Replacement image, if any.

        Returns:
            The updated product.

        Raises:
            ProductNotFoundError: If the product does not exist.
            ProductValidationError: If a supplied field or the image breaks a rule.
            TransientStoreError: If the store is unreachable.
        """
        changes = validate_submission(submission, creating=False)
        if submission.price is not None:
            changes["price"] = coerce_price(submission.price)
        if submission.in_stock is not None:
            changes["in_stock"] = coerce_in_stock(submission.in_stock)
        if submission.specifications is not None:
            changes["specifications"] = self._specifications(submission.specifications)
        self.images.validate(image, creating=False)

        image_fields = await self.images.store(image) if image is not None else {}
        replaced: list[str] = []

        def derive(previous: Product, merged: Product) -> None:
            merged.product_url = build_product_url(
                merged.main_category,
                merged.sub_category,
                merged.nested_category,
            )
            if image_fields and previous.image_url and previous.image_url != merged.image_url:
                replaced.append(previous.image_url)

        try:
            product = await self.repository.update(
                product_id,
                {**changes, **image_fields},
                on_merge=derive,
            )
        except Exception:
            await self.images.discard(image_fields.get("image_url"))
            raise

        for image_url in replaced:
            await self.images.discard(image_url)

        logger.info(
            "Product updated",
            product_id=product_id,
            fields=sorted(changes),
            image_replaced=bool(image_fields),
        )
        return product

    async def delete_product(self, product_id: str) -> Product:
        """Delete a product permanently.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        product = await self.repository.delete(product_id)
        await self.images.discard(product.image_url)
        logger.info("Product deleted", product_id=product_id, name=product.name)
        return product

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_product(self, product_id: str) -> Product:
        """Get product by ID.

        Raises:
            ProductNotFoundError: If the product does not exist.
        """
        return await self.repository.get_by_id(product_id)

    async def list_products(
        self,
        page: int = 1,
        page_size: int | None = None,
    ) -> PaginatedResult[Product]:
        """List products newest first.

        Args:
            page: Page number (1-indexed, values below 1 read as 1).
            page_size: Requested page size; ignored when the page size is fixed.

        Returns:
            Paginated product results.
        """
        pagination = PaginationParams(page=max(page, 1), page_size=self._page_size(page_size))
        products, total = await self.repository.list_all(pagination.page, pagination.limit)

        return PaginatedResult(
            items=products,
            total=total,
            page=pagination.page,
            page_size=pagination.page_size,
        )

    async def products_by_category(self, main_category: str) -> list[Product]:
        """Products whose main category matches exactly.

        Raises:
            ProductValidationError: If the category is blank.
        """
        category = main_category.strip() if main_category else ""
        if not category:
            raise ProductValidationError("Category is required", field="mainCategory")
        return await self.repository.find_by_category(category)

    async def search_products(self, query: str) -> list[Product]:
        """Substring search over name, categories and composition.

        Raises:
            ProductValidationError: If the query is blank.
        """
        needle = query.strip() if query else ""
        if not needle:
            raise ProductValidationError("Search query is required", field="q")
        return await self.repository.search(needle)

    async def get_image(self, product_id: str) -> ProductImage:
        """Raw image bytes and content type of a product.

        Raises:
            ProductNotFoundError: If the product or its image does not exist.
        """
        product = await self.repository.get_by_id(product_id)
        image = await self.images.load(product)
        if image is None:
            raise ProductNotFoundError(product_id, message=f"Product {product_id} has no image")
        return image

    def image_reference(self, product: Product) -> str:
        """Display reference for a product's image."""
        return self.images.display_reference(product)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _page_size(self, requested: int | None) -> int:
        if self.fixed_page_size or requested is None:
            return self.page_size
        return min(max(requested, 1), self.max_page_size)

    def _specifications(self, raw: RawSpecifications | None) -> dict[str, Any]:
        try:
            return resolve_specifications(raw)
        except MalformedInputError as e:
            logger.warning(
                "Malformed specifications, using empty mapping",
                reason=e.details.get("reason"),
            )
            return {}


# ============================================================================
# Service Factory
# ============================================================================


_repository: ProductRepository | None = None


def get_product_repository() -> ProductRepository:
    """Get product repository singleton for the configured backend."""
    global _repository
    if _repository is None:
        if settings.store_backend == StoreBackend.MEMORY:
            _repository = InMemoryProductRepository()
        else:
            from textile_catalog.infrastructure.database import async_session_factory

            _repository = SqlProductRepository(async_session_factory)
    return _repository


def get_image_storage() -> ImageStorage:
    """Image storage configured from settings."""
    return ImageStorage(
        mode=settings.image_mode,
        max_bytes=settings.max_image_bytes,
        upload_dir=settings.upload_dir,
        url_prefix=settings.upload_url_prefix,
        placeholder_url=settings.placeholder_image_url,
    )


def get_catalog_service() -> CatalogService:
    """Get catalog service wired from settings."""
    return CatalogService(
        repository=get_product_repository(),
        images=get_image_storage(),
        page_size=settings.page_size,
        fixed_page_size=settings.fixed_page_size,
        max_page_size=settings.max_page_size,
    )
