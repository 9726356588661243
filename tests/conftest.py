"""Shared fixtures for storefront tests"""

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from storefront.core.context import RequestContext
from storefront.database import CartDatabase, ProductDatabase, cart_db, product_db
from storefront.main import app
from storefront.models.product import Product
from storefront.security.session import get_session_codec

from .factories import USER_ID, build_product


@pytest.fixture(autouse=True)
def reset_stores():
    """Start every test from the default catalog and empty carts"""
    cart_db.reset()
    product_db.reset()
    yield
    cart_db.reset()
    product_db.reset()


@pytest.fixture
def test_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture
def codec():
    return get_session_codec()


@pytest.fixture
def auth_headers(codec):
    return {"Authorization": f"Bearer {codec.issue(USER_ID)}"}


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(user_id=USER_ID)


@pytest.fixture
def carts() -> CartDatabase:
    return CartDatabase()


@pytest.fixture
def products() -> ProductDatabase:
    return ProductDatabase(products={})


@pytest.fixture
def add_product():
    """Factory adding a product to a catalog store"""
    def _add(store: ProductDatabase, product_id: str, stock: int, **kwargs) -> Product:
        return store.add_product(build_product(product_id, stock, **kwargs))
    return _add


@pytest.fixture
def add_line():
    """Factory adding a cart line for the test user"""
    def _add(
        store: CartDatabase,
        product_id: str,
        quantity: int,
        unit_price: float = 10.0,
        variant_id: Optional[str] = None,
        user_id: str = USER_ID,
    ):
        return store.add_line(
            user_id=user_id,
            product_id=product_id,
            variant_id=variant_id,
            product_name=f"Product {product_id}",
            quantity=quantity,
            unit_price=unit_price,
        )
    return _add
