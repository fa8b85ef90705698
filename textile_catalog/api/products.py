"""Product API endpoints.

Provides CRUD, listing, category filtering and search for products:
- GET /api/products - paginated listing, newest first
- GET /api/products/search?q= - substring search
- GET /api/products/category/{main_category} - exact category filter
- GET /api/products/{id} - single product
- GET /api/products/{id}/image - raw image bytes
- POST /api/products - create (multipart form or JSON)
- PUT /api/products/{id} - partial update (multipart form or JSON)
- DELETE /api/products/{id} - delete
"""

import json
import mimetypes
import re
from typing import Annotated, Any

import pydantic
from fastapi import APIRouter, Depends, Query, Request, Response, status
from starlette.datastructures import FormData, UploadFile

from textile_catalog.api.schemas import (
    ErrorResponse,
    PaginationSchema,
    ProductCollectionResponse,
    ProductCreateRequest,
    ProductDeletedResponse,
    ProductListResponse,
    ProductResponse,
)
from textile_catalog.catalog.service import CatalogService, get_catalog_service
from textile_catalog.domain.entities import Product, ProductSubmission
from textile_catalog.domain.exceptions import ProductValidationError
from textile_catalog.domain.value_objects import (
    ImageUpload,
    RawSerializedText,
    RawSpecifications,
    RawStructured,
)
from textile_catalog.infrastructure.config import settings

router = APIRouter(prefix="/api/products", tags=["Products"])

# Form field name to submission attribute
FORM_FIELDS = {
    "name": "name",
    "price": "price",
    "mainCategory": "main_category",
    "subCategory": "sub_category",
    "nestedCategory": "nested_category",
    "composition": "composition",
    "gsm": "gsm",
    "width": "width",
    "count": "count",
    "construction": "construction",
    "weave": "weave",
    "finish": "finish",
    "inStock": "in_stock",
}

_BRACKETED_SPEC = re.compile(r"^specifications\[([^\]]+)\]$")

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


# ============================================================================
# Dependencies
# ============================================================================


def get_service() -> CatalogService:
    """Get catalog service."""
    return get_catalog_service()


CatalogServiceDep = Annotated[CatalogService, Depends(get_service)]


def _form_specifications(form: FormData) -> RawSpecifications | None:
    serialized = form.get("specifications")
    if isinstance(serialized, str):
        return RawSerializedText(serialized)

    bracketed: dict[str, Any] = {}
    for key, value in form.multi_items():
        match = _BRACKETED_SPEC.match(key)
        if match and isinstance(value, str):
            bracketed[match.group(1)] = value
    return RawStructured(bracketed) if bracketed else None


def _json_specifications(value: Any) -> RawSpecifications | None:
    if value is None:
        return None
    if isinstance(value, dict):
        return RawStructured(value)
    if isinstance(value, str):
        return RawSerializedText(value)
    # Anything else decodes to a non-object and falls back to {}
    return RawSerializedText(json.dumps(value))


async def _form_image(form: FormData) -> ImageUpload | None:
    upload = form.get("image")
    if not isinstance(upload, UploadFile):
        return None

    data = await upload.read()
    if not upload.filename and not data:
        # Empty file input submitted by a browser form
        return None

    content_type = upload.content_type or ""
    if content_type in ("", "application/octet-stream") and upload.filename:
        content_type = mimetypes.guess_type(upload.filename)[0] or content_type
    return ImageUpload(
        data=data,
        content_type=content_type or "application/octet-stream",
        filename=upload.filename,
    )


async def read_submission(request: Request) -> tuple[ProductSubmission, ImageUpload | None]:
    """Decode a create/update request body.

    Accepts a JSON object or a multipart/urlencoded form. Forms may carry
    ``specifications`` as JSON text or as ``specifications[key]`` fields,
    and the image as the ``image`` file field.

    Raises:
        ProductValidationError: If the body cannot be decoded.
    """
    content_type = request.headers.get("content-type", "")

    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as e:
            raise ProductValidationError("Request body is not valid JSON") from e
        if not isinstance(payload, dict):
            raise ProductValidationError("Request body must be a JSON object")
        try:
            body = ProductCreateRequest.model_validate(payload)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or None
            raise ProductValidationError(first["msg"], field=field) from e

        values = body.model_dump(exclude={"specifications"})
        return ProductSubmission(
            **values,
            specifications=_json_specifications(body.specifications),
        ), None

    form = await request.form()
    values = {
        attribute: form.get(key)
        for key, attribute in FORM_FIELDS.items()
        if isinstance(form.get(key), str)
    }
    submission = ProductSubmission(**values, specifications=_form_specifications(form))
    return submission, await _form_image(form)


SubmissionDep = Annotated[tuple[ProductSubmission, ImageUpload | None], Depends(read_submission)]


# ============================================================================
# Converters
# ============================================================================


def product_to_response(product: Product, service: CatalogService) -> ProductResponse:
    """Convert Product entity to response schema."""
    return ProductResponse(
        id=product.id,
        name=product.name,
        price=product.price,
        main_category=product.main_category,
        sub_category=product.sub_category,
        nested_category=product.nested_category,
        composition=product.composition,
        gsm=product.gsm,
        width=product.width,
        count=product.count,
        construction=product.construction,
        weave=product.weave,
        finish=product.finish,
        specifications=product.specifications,
        image=service.image_reference(product),
        product_url=product.product_url,
        in_stock=product.in_stock,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


def _collection(products: list[Product], service: CatalogService) -> ProductCollectionResponse:
    return ProductCollectionResponse(
        products=[product_to_response(p, service) for p in products],
        total=len(products),
    )


# ============================================================================
# Endpoints
# ============================================================================


@router.get(
    "",
    response_model=ProductListResponse,
    responses=ERROR_RESPONSES,
    summary="List products",
    description="List products newest first with offset pagination.",
)
async def list_products(
    response: Response,
    service: CatalogServiceDep,
    page: Annotated[int, Query(ge=1, description="Page number (1-based)")] = 1,
    page_size: Annotated[int | None, Query(ge=1, description="Items per page")] = None,
) -> ProductListResponse:
    """List products.

    The page size may be fixed by configuration, in which case the
    requested ``page_size`` is ignored.
    """
    result = await service.list_products(page=page, page_size=page_size)

    response.headers["Cache-Control"] = f"public, max-age={settings.list_cache_max_age}"
    return ProductListResponse(
        products=[product_to_response(p, service) for p in result.items],
        pagination=PaginationSchema(
            page=result.page,
            page_size=result.page_size,
            total=result.total,
            has_more=result.has_more,
        ),
    )


@router.get(
    "/search",
    response_model=ProductCollectionResponse,
    responses=ERROR_RESPONSES,
    summary="Search products",
    description="Case-insensitive substring search over name, categories and composition.",
)
async def search_products(
    service: CatalogServiceDep,
    q: Annotated[str, Query(description="Text to look for")] = "",
) -> ProductCollectionResponse:
    """Search products by substring."""
    products = await service.search_products(q)
    return _collection(products, service)


@router.get(
    "/category/{main_category}",
    response_model=ProductCollectionResponse,
    responses=ERROR_RESPONSES,
    summary="Products in a category",
    description="Products whose main category matches exactly.",
)
async def products_by_category(
    main_category: str,
    service: CatalogServiceDep,
) -> ProductCollectionResponse:
    """Filter products by main category."""
    products = await service.products_by_category(main_category)
    return _collection(products, service)


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}, **ERROR_RESPONSES},
    summary="Get product",
)
async def get_product(
    product_id: str,
    response: Response,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Get a product by ID."""
    product = await service.get_product(product_id)
    response.headers["Cache-Control"] = f"public, max-age={settings.detail_cache_max_age}"
    return product_to_response(product, service)


@router.get(
    "/{product_id}/image",
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
    summary="Get product image",
    description="Raw image bytes with their stored content type.",
)
async def get_product_image(
    product_id: str,
    service: CatalogServiceDep,
) -> Response:
    """Return the product image bytes."""
    image = await service.get_image(product_id)
    return Response(
        content=image.data,
        media_type=image.content_type,
        headers={"Cache-Control": f"public, max-age={settings.detail_cache_max_age}"},
    )


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
    summary="Create product",
    description="Create a product from form fields and an optional image file.",
)
async def create_product(
    submission: SubmissionDep,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Create a product."""
    data, image = submission
    product = await service.create_product(data, image)
    return product_to_response(product, service)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}, **ERROR_RESPONSES},
    summary="Update product",
    description="Replace only the supplied fields; keep the image unless a new one is sent.",
)
async def update_product(
    product_id: str,
    submission: SubmissionDep,
    service: CatalogServiceDep,
) -> ProductResponse:
    """Partially update a product."""
    data, image = submission
    product = await service.update_product(product_id, data, image)
    return product_to_response(product, service)


@router.delete(
    "/{product_id}",
    response_model=ProductDeletedResponse,
    responses={404: {"model": ErrorResponse}, **ERROR_RESPONSES},
    summary="Delete product",
)
async def delete_product(
    product_id: str,
    service: CatalogServiceDep,
) -> ProductDeletedResponse:
    """Delete a product permanently."""
    product = await service.delete_product(product_id)
    return ProductDeletedResponse(
        message="Product deleted successfully",
        product=product_to_response(product, service),
    )
