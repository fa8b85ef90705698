"""API schemas for the textile catalog.

Pydantic models for request/response validation and serialization.
JSON keys are camelCase, matching the form fields clients submit.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: str | None = Field(default=None, description="Field that caused the error")
    message: str = Field(..., description="Error message")


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: list[ErrorDetail] = Field(
        default_factory=list, description="Additional error details"
    )
    request_id: str | None = Field(
        default=None, description="Request ID for correlation"
    )


class PaginationSchema(BaseModel):
    """Pagination metadata for list responses."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(..., description="Current page number")
    page_size: int = Field(..., alias="pageSize", description="Items per page")
    total: int = Field(..., description="Total number of products")
    has_more: bool = Field(..., alias="hasMore", description="Whether there are more pages")


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreateRequest(BaseModel):
    """JSON body for creating or updating a product.

    Multipart forms carry the same field names.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    name: str | None = Field(default=None, max_length=500)
    price: Any = Field(default=None, description="Numeric value or numeric string")
    main_category: str | None = Field(default=None, alias="mainCategory")
    sub_category: str | None = Field(default=None, alias="subCategory")
    nested_category: str | None = Field(default=None, alias="nestedCategory")
    composition: str | None = None
    gsm: str | None = None
    width: str | None = None
    count: str | None = None
    construction: str | None = None
    weave: str | None = None
    finish: str | None = None
    specifications: Any = Field(
        default=None, description="Object, or JSON text encoding an object"
    )
    in_stock: Any = Field(default=None, alias="inStock")


class ProductResponse(BaseModel):
    """A catalog product."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique product identifier")
    name: str = Field(..., description="Product name")
    price: float = Field(..., ge=0, description="Price")
    main_category: str = Field(..., alias="mainCategory")
    sub_category: str = Field(..., alias="subCategory")
    nested_category: str = Field(default="", alias="nestedCategory")
    composition: str | None = None
    gsm: str | None = None
    width: str | None = None
    count: str | None = None
    construction: str | None = None
    weave: str | None = None
    finish: str | None = None
    specifications: dict[str, Any] = Field(default_factory=dict)
    image: str | None = Field(
        default=None,
        description="Data URI (inline images), path (stored files) or placeholder",
    )
    product_url: str = Field(..., alias="productUrl", description="Catalog listing URL")
    in_stock: bool = Field(..., alias="inStock")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class ProductListResponse(BaseModel):
    """Paginated list of products."""

    products: list[ProductResponse] = Field(..., description="Products on this page")
    pagination: PaginationSchema


class ProductCollectionResponse(BaseModel):
    """Unpaginated product results (search and category filters)."""

    products: list[ProductResponse]
    total: int = Field(..., description="Number of products returned")


class ProductDeletedResponse(BaseModel):
    """Response for a deleted product."""

    message: str
    product: ProductResponse


# ============================================================================
# Health Schemas
# ============================================================================


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str
    timestamp: datetime


class ReadinessResponse(BaseModel):
    """Readiness check response schema."""

    status: str
    store: str
