import os
import tempfile

# point the app at a throwaway database before anything imports giftcart.config
_tmpdir = tempfile.mkdtemp(prefix="giftcart-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_tmpdir, "test.db")
os.environ["SCHEDULER_ENABLED"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from giftcart.cache import TTLCache
from giftcart.db import SessionLocal, init_db
from giftcart.main import app
from giftcart.models.product import Product
from giftcart.models.vendor import Vendor


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture(autouse=True)
def fresh_db(clock):
    init_db(reset=True)
    app.state.cart_cache = TTLCache(ttl_seconds=30, clock=clock)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def catalog():
    """
    v1 "acme": p1 (10.00 + 1.50 service, 5 in stock), p2 (variations), a
    pending and an inactive product, one with unparseable variations.
    v2 "bloom": p3.
    """
    s = SessionLocal()
    try:
        s.add_all([
            Vendor(id="v1", slug="acme", business_name="Acme Gifts", logo="acme.png", logo_url="https://cdn.test/acme.png"),
            Vendor(id="v2", slug="bloom", business_name="Bloom Florals", logo_url="https://cdn.test/bloom.png"),
        ])
        s.flush()
        s.add_all([
            Product(id="p1", vendor_id="v1", name="Scented Candle", price=Decimal("10.00"),
                    service_charge=Decimal("1.50"), stock_qty=5, status="approved", active=True,
                    images=["candle.jpg"], product_code="CND-1", weight_kg=Decimal("0.400")),
            Product(id="p2", vendor_id="v1", name="Throw Blanket", price=Decimal("20.00"),
                    service_charge=Decimal("0"), stock_qty=10, status="approved", active=True,
                    variations=[
                        {"id": "red", "label": "Red", "color": "red", "price": 25},
                        {"sku": "BLU-1", "label": "Blue", "color": "blue"},
                        {"label": "Plain"},
                    ]),
            Product(id="p3", vendor_id="v2", name="Rose Bouquet", price=Decimal("5.00"),
                    service_charge=Decimal("0"), stock_qty=3, status="approved", active=True),
            Product(id="p-pending", vendor_id="v1", name="Draft Mug", price=Decimal("4.00"),
                    stock_qty=10, status="pending", active=True),
            Product(id="p-inactive", vendor_id="v1", name="Old Mug", price=Decimal("4.00"),
                    stock_qty=10, status="approved", active=False),
            Product(id="p-garbled", vendor_id="v1", name="Tea Set", price=Decimal("8.00"),
                    stock_qty=10, status="approved", active=True, variations="[{not json"),
        ])
        s.commit()
    finally:
        s.close()


