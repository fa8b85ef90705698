"""Shared fixtures for API tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from textile_catalog.api.products import get_service
from textile_catalog.catalog.service import CatalogService
from textile_catalog.main import app


@pytest.fixture
def client(service: CatalogService) -> Iterator[TestClient]:
    """Create test client backed by a fresh in-memory catalog."""
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def product_form() -> dict[str, str]:
    """Form fields for a valid product."""
    return {
        "name": "Cotton Greige Poplin",
        "price": "145",
        "mainCategory": "woven fabrics",
        "subCategory": "greige",
        "nestedCategory": "cotton",
        "composition": "100% cotton",
        "gsm": "110",
    }
