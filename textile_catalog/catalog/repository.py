"""Product repositories.

Provides CRUD and query primitives over products with no knowledge of
catalog rules. Two interchangeable backends implement the same
interface: a process-local ordered collection and a SQLAlchemy table.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from textile_catalog.catalog.models import ProductModel, as_utc, product_columns
from textile_catalog.domain.entities import Product
from textile_catalog.domain.exceptions import ProductNotFoundError, TransientStoreError

logger = structlog.get_logger()

# Called with the stored product and the merged result inside the write
MergeHook = Callable[[Product, Product], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Return a timestamp strictly later than ``previous``.

    Args:
        previous: Last recorded modification time.

    Returns:
        Current UTC time, nudged forward when the clock has not moved.
    """
    now = _utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _matches(product: Product, needle: str) -> bool:
    haystacks = (
        product.name,
        product.main_category,
        product.sub_category,
        product.nested_category,
        product.composition,
    )
    return any(needle in value.lower() for value in haystacks if value)


# ============================================================================
# Repository Interface
# ============================================================================


class ProductRepository(ABC):
    """Storage interface for products.

    Implementations assign identity and timestamps, and raise
    ProductNotFoundError for unknown ids and TransientStoreError for
    connectivity faults.
    """

    @abstractmethod
    async def insert(self, product: Product) -> Product:
        """Persist a new product.

        Args:
            product: Product without id or timestamps.

        Returns:
            Stored product with id, created_at and updated_at set.
        """

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Product:
        """Get product by ID.

        Raises:
            ProductNotFoundError: If no product has this id.
        """

    @abstractmethod
    async def list_all(self, page: int = 1, page_size: int = 24) -> tuple[list[Product], int]:
        """List products newest first.

        Args:
            page: Page number (1-indexed).
            page_size: Items per page.

        Returns:
            Tuple of the page's products and the total product count.
        """

    @abstractmethod
    async def find_by_category(self, main_category: str) -> list[Product]:
        """Find products whose main category equals ``main_category``."""

    @abstractmethod
    async def search(self, query: str) -> list[Product]:
        """Case-insensitive substring search across the text fields."""

    @abstractmethod
    async def update(
        self,
        product_id: str,
        changes: Mapping[str, Any],
        on_merge: MergeHook | None = None,
    ) -> Product:
        """Merge ``changes`` into a stored product.

        ``on_merge`` runs atomically with the write, after ``changes`` are
        applied, and may adjust the merged product further (derived
        fields). It sees the stored product as it was just before.

        Raises:
            ProductNotFoundError: If no product has this id.
        """

    @abstractmethod
    async def delete(self, product_id: str) -> Product:
        """Delete a product and return what was stored.

        Raises:
            ProductNotFoundError: If no product has this id.
        """

    @abstractmethod
    async def ping(self) -> None:
        """Check the backing store is reachable.

        Raises:
            TransientStoreError: If it is not.
        """


# ============================================================================
# In-Memory Repository
# ============================================================================


class InMemoryProductRepository(ProductRepository):
    """In-memory repository keyed by id, kept in insertion order.

    Mutations run without awaiting, so each write applies atomically
    with respect to other coroutines on the same loop.
    """

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}

    async def insert(self, product: Product) -> Product:
        """Save a new product."""
        stored = product.copy()
        stored.id = str(uuid4())
        stored.created_at = stored.updated_at = _utcnow()
        self._products[stored.id] = stored
        return stored.copy()

    async def get_by_id(self, product_id: str) -> Product:
        """Get product by ID."""
        return self._get(product_id).copy()

    async def list_all(self, page: int = 1, page_size: int = 24) -> tuple[list[Product], int]:
        """List products with pagination."""
        ordered = self._newest_first(self._products.values())
        start = (page - 1) * page_size
        end = start + page_size
        return [p.copy() for p in ordered[start:end]], len(ordered)

    async def find_by_category(self, main_category: str) -> list[Product]:
        """Find products by exact main category."""
        matching = (p for p in self._products.values() if p.main_category == main_category)
        return [p.copy() for p in self._newest_first(matching)]

    async def search(self, query: str) -> list[Product]:
        """Search products by substring."""
        needle = query.lower()
        matching = (p for p in self._products.values() if _matches(p, needle))
        return [p.copy() for p in self._newest_first(matching)]

    async def update(
        self,
        product_id: str,
        changes: Mapping[str, Any],
        on_merge: MergeHook | None = None,
    ) -> Product:
        """Update product fields."""
        current = self._get(product_id)
        updated = current.copy()
        updated.apply(dict(changes))
        if on_merge is not None:
            on_merge(current.copy(), updated)
        updated.updated_at = next_timestamp(current.updated_at)
        self._products[product_id] = updated
        return updated.copy()

    async def delete(self, product_id: str) -> Product:
        """Delete a product."""
        removed = self._get(product_id)
        del self._products[product_id]
        return removed

    async def ping(self) -> None:
        """Always reachable."""
        return None

    def _get(self, product_id: str) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    @staticmethod
    def _newest_first(products: Any) -> list[Product]:
        # sorted() is stable; reversing insertion order first keeps later
        # inserts ahead of earlier ones that share a timestamp
        return sorted(reversed(list(products)), key=lambda p: p.created_at, reverse=True)


# ============================================================================
# SQL Repository
# ============================================================================


class SqlProductRepository(ProductRepository):
    """Repository backed by the products table.

    Each operation runs in its own session and transaction, so a write
    either fully commits or leaves the row untouched.

    Example usage:
        repo = SqlProductRepository(async_session_factory)
        product = await repo.get_by_id(product_id)
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Async SQLAlchemy session factory.
        """
        self.session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[AsyncSession]:
        """Open a session with a transaction, mapping connectivity faults.

        Args:
            operation: Operation name for logs and errors.

        Yields:
            Session bound to an open transaction.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except (OperationalError, InterfaceError, PoolTimeoutError, TimeoutError) as e:
            logger.warning("Product store unavailable", operation=operation, error=str(e))
            raise TransientStoreError(operation, str(e)) from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.warning("Product store connection lost", operation=operation, error=str(e))
                raise TransientStoreError(operation, str(e)) from e
            raise

    async def insert(self, product: Product) -> Product:
        """Save a new product."""
        now = _utcnow()
        row = ProductModel.from_entity(product)
        row.id = str(uuid4())
        row.created_at = now
        row.updated_at = now

        async with self._transaction("insert") as session:
            session.add(row)
            await session.flush()
            return row.to_entity()

    async def get_by_id(self, product_id: str) -> Product:
        """Get product by ID."""
        async with self._transaction("get_by_id") as session:
            row = await self._load(session, product_id)
            return row.to_entity()

    async def list_all(self, page: int = 1, page_size: int = 24) -> tuple[list[Product], int]:
        """List products with pagination."""
        query = (
            select(ProductModel)
            .order_by(ProductModel.created_at.desc())
            .limit(page_size)
            .offset((page - 1) * page_size)
        )

        async with self._transaction("list_all") as session:
            result = await session.execute(query)
            rows = result.scalars().all()
            total = (await session.execute(select(func.count(ProductModel.id)))).scalar_one()
            return [row.to_entity() for row in rows], total

    async def find_by_category(self, main_category: str) -> list[Product]:
        """Find products by exact main category."""
        query = (
            select(ProductModel)
            .where(ProductModel.main_category == main_category)
            .order_by(ProductModel.created_at.desc())
        )

        async with self._transaction("find_by_category") as session:
            result = await session.execute(query)
            return [row.to_entity() for row in result.scalars().all()]

    async def search(self, query: str) -> list[Product]:
        """Search products by substring."""
        escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{escaped}%"
        statement = (
            select(ProductModel)
            .where(
                or_(
                    ProductModel.name.ilike(pattern, escape="\\"),
                    ProductModel.main_category.ilike(pattern, escape="\\"),
                    ProductModel.sub_category.ilike(pattern, escape="\\"),
                    ProductModel.nested_category.ilike(pattern, escape="\\"),
                    ProductModel.composition.ilike(pattern, escape="\\"),
                )
            )
            .order_by(ProductModel.created_at.desc())
        )

        async with self._transaction("search") as session:
            result = await session.execute(statement)
            return [row.to_entity() for row in result.scalars().all()]

    async def update(
        self,
        product_id: str,
        changes: Mapping[str, Any],
        on_merge: MergeHook | None = None,
    ) -> Product:
        """Update product fields under a row lock."""
        async with self._transaction("update") as session:
            row = await self._load(session, product_id, for_update=True)
            product = row.to_entity()
            product.apply(dict(changes))
            if on_merge is not None:
                on_merge(row.to_entity(), product)
            row.apply(product_columns(product))
            row.updated_at = next_timestamp(row.updated_at)
            await session.flush()
            return row.to_entity()

    async def delete(self, product_id: str) -> Product:
        """Delete a product."""
        async with self._transaction("delete") as session:
            row = await self._load(session, product_id, for_update=True)
            product = row.to_entity()
            await session.delete(row)
            return product

    async def ping(self) -> None:
        """Run a trivial query."""
        async with self._transaction("ping") as session:
            await session.execute(select(1))

    @staticmethod
    async def _load(
        session: AsyncSession,
        product_id: str,
        for_update: bool = False,
    ) -> ProductModel:
        query = select(ProductModel).where(ProductModel.id == product_id)
        if for_update:
            query = query.with_for_update()

        result = await session.execute(query)
        row = result.scalar_one_or_none()
        if row is None:
            raise ProductNotFoundError(product_id)
        return row
