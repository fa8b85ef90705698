"""SQLAlchemy models for product catalog.

Defines the products table for persistent storage. The table is only a
storage shape: field rules live in ``catalog.validation``.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Index, LargeBinary, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from textile_catalog.domain.entities import Product
from textile_catalog.domain.value_objects import ProductImage
from textile_catalog.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps read back from backends without tz support."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProductModel(Base):
    """Stored product row.

    ``specifications`` is kept as a JSON document. Inline images use
    ``image_data``/``image_content_type``; filesystem images use
    ``image_url`` only.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    main_category: Mapped[str] = mapped_column(String(200), nullable=False)
    sub_category: Mapped[str] = mapped_column(String(200), nullable=False)
    nested_category: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    composition: Mapped[str | None] = mapped_column(Text, nullable=True)
    gsm: Mapped[str | None] = mapped_column(String(100), nullable=True)
    width: Mapped[str | None] = mapped_column(String(100), nullable=True)
    count: Mapped[str | None] = mapped_column(String(100), nullable=True)
    construction: Mapped[str | None] = mapped_column(String(200), nullable=True)
    weave: Mapped[str | None] = mapped_column(String(200), nullable=True)
    finish: Mapped[str | None] = mapped_column(String(200), nullable=True)
    specifications: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    image_data: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    image_content_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    product_url: Mapped[str] = mapped_column(String(1000), nullable=False, default="")
    in_stock: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("ix_products_main_category", "main_category"),
        Index("ix_products_created_at", "created_at"),
        Index("ix_products_in_stock", "in_stock"),
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductModel(id={self.id}, name={self.name[:30]}...)>"

    @classmethod
    def from_entity(cls, product: Product) -> "ProductModel":
        """Build a row from a domain product.

        Args:
            product: Product to persist.

        Returns:
            Unsaved model instance.
        """
        row = cls(id=product.id, created_at=product.created_at, updated_at=product.updated_at)
        row.apply(product_columns(product))
        return row

    def apply(self, columns: dict[str, Any]) -> None:
        """Set column values in place."""
        for name, value in columns.items():
            setattr(self, name, value)

    def to_entity(self) -> Product:
        """Convert to a domain product.

        Returns:
            Detached Product.
        """
        image = None
        if self.image_data is not None and self.image_content_type:
            image = ProductImage(data=self.image_data, content_type=self.image_content_type)

        return Product(
            id=self.id,
            name=self.name,
            price=self.price,
            main_category=self.main_category,
            sub_category=self.sub_category,
            nested_category=self.nested_category or "",
            composition=self.composition,
            gsm=self.gsm,
            width=self.width,
            count=self.count,
            construction=self.construction,
            weave=self.weave,
            finish=self.finish,
            specifications=dict(self.specifications or {}),
            image=image,
            image_url=self.image_url,
            product_url=self.product_url,
            in_stock=self.in_stock,
            created_at=as_utc(self.created_at),
            updated_at=as_utc(self.updated_at),
        )


def product_columns(product: Product) -> dict[str, Any]:
    """Column values for every mutable product attribute."""
    return {
        "name": product.name,
        "price": product.price,
        "main_category": product.main_category,
        "sub_category": product.sub_category,
        "nested_category": product.nested_category,
        "composition": product.composition,
        "gsm": product.gsm,
        "width": product.width,
        "count": product.count,
        "construction": product.construction,
        "weave": product.weave,
        "finish": product.finish,
        "specifications": dict(product.specifications),
        "image_data": product.image.data if product.image else None,
        "image_content_type": product.image.content_type if product.image else None,
        "image_url": product.image_url,
        "product_url": product.product_url,
        "in_stock": product.in_stock,
    }
