"""Domain layer - Entities, value objects, and exceptions.

This module exports the core domain building blocks:

- **Entities**: Objects with identity (Product)
- **Value Objects**: Immutable objects compared by value (ProductImage,
  ImageUpload, raw specifications input)
- **Exceptions**: Catalog errors with machine-readable codes

Example usage:
    from textile_catalog.domain import ProductSubmission, RawSerializedText

    submission = ProductSubmission(
        name="Cotton Poplin",
        price="12.50",
        main_category="woven fabrics",
        sub_category="greige",
        specifications=RawSerializedText('{"gsm": "120"}'),
    )
"""

# Base classes
from textile_catalog.domain.base import Entity, ValueObject

# Entities
from textile_catalog.domain.entities import (
    DESCRIPTIVE_FIELDS,
    Product,
    ProductSubmission,
)

# Exceptions
from textile_catalog.domain.exceptions import (
    CatalogError,
    ImagePolicyError,
    MalformedInputError,
    MissingFieldError,
    ProductNotFoundError,
    ProductValidationError,
    TransientStoreError,
)

# Value Objects
from textile_catalog.domain.value_objects import (
    ImageUpload,
    ProductImage,
    RawSerializedText,
    RawSpecifications,
    RawStructured,
)

__all__ = [
    # Base
    "Entity",
    "ValueObject",
    # Entities
    "DESCRIPTIVE_FIELDS",
    "Product",
    "ProductSubmission",
    # Exceptions
    "CatalogError",
    "ImagePolicyError",
    "MalformedInputError",
    "MissingFieldError",
    "ProductNotFoundError",
    "ProductValidationError",
    "TransientStoreError",
    # Value Objects
    "ImageUpload",
    "ProductImage",
    "RawSerializedText",
    "RawSpecifications",
    "RawStructured",
]
