from datetime import datetime, timedelta, timezone

from giftcart.db import SessionLocal
from giftcart.main import app, expire_job
from giftcart.models.cart import Cart
from giftcart.services.cart_service import CartService

from factories import add_cart, fetch_all


def _age(cart_id, days):
    with SessionLocal() as s:
        cart = s.get(Cart, cart_id)
        cart.updated_at = datetime.now(timezone.utc) - timedelta(days=days)
        s.commit()


def test_idle_carts_marked_abandoned(db, catalog):
    add_cart("idle", guest_id="g1")
    add_cart("fresh", guest_id="g2")
    add_cart("done", guest_id="g3", status="checked_out")
    _age("idle", 40)
    _age("done", 40)

    ids = CartService(db).expire_abandoned(older_than_seconds=30 * 24 * 3600)

    assert ids == ["idle"]
    assert fetch_all(Cart, id="idle")[0].status == "abandoned"
    assert fetch_all(Cart, id="fresh")[0].status == "active"
    assert fetch_all(Cart, id="done")[0].status == "checked_out"


def test_add_after_abandon_starts_new_cart(client, catalog):
    first = client.post("/api/storefront/cart", json={"productId": "p1", "vendorId": "v1", "guestBrowserId": "g1"}).json()
    _age(first["cart"]["id"], 40)
    expire_job(app.state.cart_cache)

    second = client.post("/api/storefront/cart", json={"productId": "p1", "vendorId": "v1", "guestBrowserId": "g1"}).json()

    assert second["cart"]["id"] != first["cart"]["id"]
    assert [it["quantity"] for it in second["items"]] == [1]
    assert len(fetch_all(Cart, guest_browser_id="g1")) == 2
    assert len(fetch_all(Cart, guest_browser_id="g1", status="active")) == 1
