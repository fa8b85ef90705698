"""Domain entities for the textile catalog.

Entities are domain objects with identity that persists across state changes.
"""

import copy
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any

from textile_catalog.domain.base import Entity
from textile_catalog.domain.value_objects import ProductImage, RawSpecifications


# Descriptive free-text attributes mirrored into ``specifications``.
DESCRIPTIVE_FIELDS = (
    "composition",
    "gsm",
    "width",
    "count",
    "construction",
    "weave",
    "finish",
)


# ============================================================================
# Product Entity
# ============================================================================


@dataclass(eq=False, kw_only=True)
class Product(Entity[str | None]):
    """A textile item in the catalog.

    ``id`` and the timestamps are ``None`` until the product store
    inserts the record. At most one of ``image`` (inline mode) and
    ``image_url`` (filesystem mode) is set.

    Attributes:
        id: Store-assigned identifier.
        name: Display name.
        price: Non-negative price.
        main_category: Top-level taxonomy key.
        sub_category: Second-level taxonomy key.
        nested_category: Third-level qualifier, empty when unused.
        composition: Fibre composition (e.g., "100% cotton").
        gsm: Fabric weight in grams per square metre.
        width: Fabric width.
        count: Yarn count.
        construction: Construction (ends/picks).
        weave: Weave type.
        finish: Finish applied.
        specifications: Structured echo of the descriptive attributes.
        image: Inline image bytes and MIME type.
        image_url: Reference path of a filesystem-stored image.
        product_url: Derived catalog URL.
        in_stock: Availability flag.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
    """

    id: str | None = None
    name: str
    price: float = 0.0
    main_category: str
    sub_category: str
    nested_category: str = ""
    composition: str | None = None
    gsm: str | None = None
    width: str | None = None
    count: str | None = None
    construction: str | None = None
    weave: str | None = None
    finish: str | None = None
    specifications: dict[str, Any] = field(default_factory=dict)
    image: ProductImage | None = None
    image_url: str | None = None
    product_url: str = ""
    in_stock: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def has_image(self) -> bool:
        """Whether any image (inline or referenced) is attached."""
        return self.image is not None or bool(self.image_url)

    def copy(self) -> "Product":
        """Return a detached copy safe to hand to callers."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values["specifications"] = copy.deepcopy(self.specifications)
        return Product(**values)

    def apply(self, changes: dict[str, Any]) -> None:
        """Overwrite the given attributes in place.

        Args:
            changes: Attribute name to new value.

        Raises:
            AttributeError: If a key is not a mutable product attribute.
        """
        for name, value in changes.items():
            if name not in MUTABLE_FIELDS:
                raise AttributeError(f"Product has no mutable attribute '{name}'")
            setattr(self, name, value)


MUTABLE_FIELDS = frozenset(
    f.name for f in fields(Product) if f.name not in ("id", "created_at", "updated_at")
)


# ============================================================================
# Submissions
# ============================================================================


@dataclass
class ProductSubmission:
    """Client-supplied product data for a create or update.

    Every attribute left as ``None`` counts as "not supplied": on create
    it falls back to the default, on update the stored value is kept.
    ``price`` and ``in_stock`` hold the raw client values; coercion
    happens in the catalog service.
    """

    name: str | None = None
    price: Any = None
    main_category: str | None = None
    sub_category: str | None = None
    nested_category: str | None = None
    composition: str | None = None
    gsm: str | None = None
    width: str | None = None
    count: str | None = None
    construction: str | None = None
    weave: str | None = None
    finish: str | None = None
    specifications: RawSpecifications | None = None
    in_stock: Any = None
