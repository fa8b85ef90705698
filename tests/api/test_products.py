"""Tests for product endpoints."""

from collections.abc import Iterator
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from textile_catalog.api.products import get_service
from textile_catalog.catalog.images import ImageStorage
from textile_catalog.catalog.repository import InMemoryProductRepository
from textile_catalog.catalog.service import CatalogService
from textile_catalog.domain.exceptions import TransientStoreError
from textile_catalog.infrastructure.config import ImageMode, settings
from textile_catalog.main import app


class UnavailableRepository(InMemoryProductRepository):
    """Store that cannot be reached."""

    async def list_all(self, page: int = 1, page_size: int = 24):
        raise TransientStoreError("list_all", "connection refused")


class BrokenRepository(InMemoryProductRepository):
    """Store with a programming fault."""

    async def search(self, query: str):
        raise RuntimeError("boom")


def _create(client: TestClient, form: dict[str, str], png: bytes) -> dict:
    response = client.post(
        "/api/products",
        data=form,
        files={"image": ("poplin.png", png, "image/png")},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def optional_client() -> Iterator[TestClient]:
    """Client for a deployment where images are optional."""
    service = CatalogService(
        repository=InMemoryProductRepository(),
        images=ImageStorage(mode=ImageMode.INLINE_OPTIONAL, placeholder_url="/static/none.png"),
    )
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCreateProduct:
    """Tests for POST /api/products."""

    def test_create_multipart(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Multipart create returns the stored product."""
        data = _create(client, product_form, png_bytes)

        assert data["id"]
        assert data["name"] == "Cotton Greige Poplin"
        assert data["price"] == 145.0
        assert data["mainCategory"] == "woven fabrics"
        assert data["productUrl"] == (
            "/products?category=woven+fabrics&type=greige&fabricType=cotton"
        )
        assert data["image"].startswith("data:image/png;base64,")
        assert data["inStock"] is True
        assert data["createdAt"] == data["updatedAt"]

    def test_create_with_json_specifications(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Specifications may be sent as JSON text."""
        form = {**product_form, "specifications": '{"weave": "plain"}'}
        data = _create(client, form, png_bytes)
        assert data["specifications"] == {"weave": "plain"}

    def test_create_with_bracketed_specifications(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Specifications may be sent as bracketed form fields."""
        form = {**product_form, "specifications[weave]": "plain", "specifications[gsm]": "110"}
        data = _create(client, form, png_bytes)
        assert data["specifications"] == {"weave": "plain", "gsm": "110"}

    def test_malformed_specifications_still_create(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Undecodable specifications fall back to an empty mapping."""
        form = {**product_form, "specifications": "{broken"}
        data = _create(client, form, png_bytes)
        assert data["specifications"] == {}

    def test_non_numeric_price(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Non-numeric prices are stored as 0."""
        data = _create(client, {**product_form, "price": "abc"}, png_bytes)
        assert data["price"] == 0.0

    def test_missing_image(self, client: TestClient, product_form: dict[str, str]) -> None:
        """Creates without an image are rejected when images are required."""
        response = client.post("/api/products", data=product_form)

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "IMAGE_POLICY_VIOLATION"
        assert data["message"] == "Image required"
        assert data["details"] == [{"field": "image", "message": "Image required"}]
        assert data["request_id"] == response.headers["X-Request-ID"]

    def test_missing_field(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Missing required fields name the client field."""
        form = {k: v for k, v in product_form.items() if k != "mainCategory"}
        response = client.post(
            "/api/products",
            data=form,
            files={"image": ("poplin.png", png_bytes, "image/png")},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "VALIDATION_ERROR"
        assert data["details"][0]["field"] == "mainCategory"

    def test_oversized_image(self, client: TestClient, product_form: dict[str, str]) -> None:
        """Images over the limit are rejected and nothing is stored."""
        response = client.post(
            "/api/products",
            data=product_form,
            files={"image": ("huge.png", b"x" * 4096, "image/png")},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "IMAGE_POLICY_VIOLATION"

        listing = client.get("/api/products").json()
        assert listing["pagination"]["total"] == 0

    def test_create_json_body(self, optional_client: TestClient) -> None:
        """JSON bodies are accepted; images fall back to the placeholder."""
        response = optional_client.post(
            "/api/products",
            json={
                "name": "Twill Drill",
                "price": 180,
                "mainCategory": "fabrics structure",
                "subCategory": "twill",
                "specifications": {"weave": "2/1 twill"},
                "inStock": False,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["productUrl"] == "/products?category=fabrics+structure&subCategory=twill"
        assert data["specifications"] == {"weave": "2/1 twill"}
        assert data["inStock"] is False
        assert data["image"] == "/static/none.png"

    def test_json_numbers_for_text_fields(self, optional_client: TestClient) -> None:
        """Numeric JSON values for descriptive fields are stored as text."""
        response = optional_client.post(
            "/api/products",
            json={
                "name": "Cotton Voile",
                "mainCategory": "woven fabrics",
                "subCategory": "solid",
                "gsm": 120,
                "width": 58,
                "count": 60,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["gsm"] == "120"
        assert data["width"] == "58"
        assert data["count"] == "60"

    def test_invalid_json_body(self, optional_client: TestClient) -> None:
        """A JSON body that is not an object is rejected."""
        response = optional_client.post("/api/products", json=["not", "an", "object"])
        assert response.status_code == 400
        assert response.json()["error_code"] == "VALIDATION_ERROR"


class TestReadProducts:
    """Tests for listing and lookup endpoints."""

    def test_list_products(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Listing is newest first with pagination metadata."""
        for name in ("first", "second", "third"):
            _create(client, {**product_form, "name": name}, png_bytes)

        response = client.get("/api/products")

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == f"public, max-age={settings.list_cache_max_age}"
        data = response.json()
        assert [p["name"] for p in data["products"]] == ["third", "second"]
        assert data["pagination"] == {"page": 1, "pageSize": 2, "total": 3, "hasMore": True}

        last = client.get("/api/products", params={"page": 2}).json()
        assert [p["name"] for p in last["products"]] == ["first"]
        assert last["pagination"]["hasMore"] is False

    def test_invalid_page(self, client: TestClient) -> None:
        """Page numbers below 1 are rejected."""
        response = client.get("/api/products", params={"page": 0})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_get_product(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """A product is fetched by id with a detail cache header."""
        created = _create(client, product_form, png_bytes)

        response = client.get(f"/api/products/{created['id']}")

        assert response.status_code == 200
        assert response.json() == created
        assert response.headers["Cache-Control"] == f"public, max-age={settings.detail_cache_max_age}"

    def test_get_unknown_product(self, client: TestClient) -> None:
        """Unknown ids return 404."""
        response = client.get("/api/products/does-not-exist")

        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "PRODUCT_NOT_FOUND"
        assert data["details"] == []

    def test_get_image(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """The image endpoint returns raw bytes and content type."""
        created = _create(client, product_form, png_bytes)

        response = client.get(f"/api/products/{created['id']}/image")

        assert response.status_code == 200
        assert response.content == png_bytes
        assert response.headers["content-type"] == "image/png"

    def test_by_category(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Category listing matches the main category exactly."""
        _create(client, product_form, png_bytes)
        _create(
            client,
            {**product_form, "name": "Twill", "mainCategory": "fabrics structure", "subCategory": "twill"},
            png_bytes,
        )

        response = client.get("/api/products/category/fabrics structure")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["products"][0]["name"] == "Twill"

    def test_search(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Search matches substrings ignoring case."""
        _create(client, product_form, png_bytes)

        hit = client.get("/api/products/search", params={"q": "POPLIN"}).json()
        miss = client.get("/api/products/search", params={"q": "velvet"}).json()

        assert [p["name"] for p in hit["products"]] == ["Cotton Greige Poplin"]
        assert miss == {"products": [], "total": 0}

    def test_blank_search(self, client: TestClient) -> None:
        """A blank query is rejected."""
        response = client.get("/api/products/search", params={"q": " "})
        assert response.status_code == 400
        assert response.json()["details"] == [{"field": "q", "message": "Search query is required"}]


class TestUpdateProduct:
    """Tests for PUT /api/products/{id}."""

    def test_partial_update_keeps_image(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Only supplied fields change and the image stays."""
        created = _create(client, product_form, png_bytes)

        response = client.put(f"/api/products/{created['id']}", data={"price": "200"})

        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 200.0
        assert data["name"] == created["name"]
        assert data["image"] == created["image"]
        assert datetime.fromisoformat(data["updatedAt"]) > datetime.fromisoformat(created["updatedAt"])

    def test_update_replaces_image(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """A new file replaces the stored image."""
        created = _create(client, product_form, png_bytes)

        response = client.put(
            f"/api/products/{created['id']}",
            files={"image": ("new.gif", b"GIF89a", "image/gif")},
        )

        assert response.status_code == 200
        assert response.json()["image"].startswith("data:image/gif;base64,")

    def test_update_category_recomputes_url(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Changing categories re-derives the product URL."""
        created = _create(client, product_form, png_bytes)

        response = client.put(
            f"/api/products/{created['id']}",
            data={"mainCategory": "fabrics finish", "subCategory": "peach finish"},
        )

        assert response.json()["productUrl"] == (
            "/products?category=fabrics+finish&subCategory=peach+finish"
        )

    def test_update_unknown(self, client: TestClient) -> None:
        """Updating an unknown id returns 404."""
        response = client.put("/api/products/does-not-exist", data={"price": "1"})
        assert response.status_code == 404

    def test_update_negative_price(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Negative prices are rejected."""
        created = _create(client, product_form, png_bytes)
        response = client.put(f"/api/products/{created['id']}", data={"price": "-1"})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "price"


class TestDeleteProduct:
    """Tests for DELETE /api/products/{id}."""

    def test_delete(
        self, client: TestClient, product_form: dict[str, str], png_bytes: bytes
    ) -> None:
        """Deleting returns the removed product."""
        created = _create(client, product_form, png_bytes)

        response = client.delete(f"/api/products/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Product deleted successfully"
        assert data["product"]["id"] == created["id"]
        assert client.get(f"/api/products/{created['id']}").status_code == 404

    def test_delete_unknown(self, client: TestClient) -> None:
        """Deleting an unknown id returns 404."""
        response = client.delete("/api/products/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error_code"] == "PRODUCT_NOT_FOUND"


class TestStoreFailures:
    """Tests for store and internal failures."""

    def test_store_unavailable(self, images: ImageStorage) -> None:
        """Unreachable stores return 503 with a retry hint."""
        service = CatalogService(UnavailableRepository(), images)
        app.dependency_overrides[get_service] = lambda: service
        try:
            response = TestClient(app).get("/api/products")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"
        assert response.json()["error_code"] == "STORE_UNAVAILABLE"

    def test_internal_error(self, images: ImageStorage) -> None:
        """Unexpected faults return a generic 500 envelope."""
        service = CatalogService(BrokenRepository(), images)
        app.dependency_overrides[get_service] = lambda: service
        try:
            client = TestClient(app, raise_server_exceptions=False)
            response = client.get("/api/products/search", params={"q": "poplin"})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        data = response.json()
        assert data["error_code"] == "INTERNAL_ERROR"
        assert data["message"] == "An internal error occurred"
        assert "boom" not in response.text
