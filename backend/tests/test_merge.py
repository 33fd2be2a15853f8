from decimal import Decimal

from sqlalchemy.exc import OperationalError

from giftcart.models.cart import Cart
from giftcart.models.cart_item import CartItem
from giftcart.services import cart_merge_service as merge
from giftcart.services.cart_merge_service import CartMergeService

from factories import add_cart, add_line, fetch_all, set_line_fields


def _lines(cart_id):
    return {(it.product_id, it.variation_key): it for it in fetch_all(CartItem, cart_id=cart_id)}


def test_noop_without_guest_cart(db, catalog):
    add_cart("host-cart", host_id="h1")
    assert CartMergeService(db).merge_guest_into_host("v1", "h1", "g1") == merge.NOOP


def test_noop_when_an_id_is_missing(db, catalog):
    svc = CartMergeService(db)
    assert svc.merge_guest_into_host(None, "h1", "g1") == merge.NOOP
    assert svc.merge_guest_into_host("v1", None, "g1") == merge.NOOP
    assert svc.merge_guest_into_host("v1", "h1", None) == merge.NOOP


def test_guest_cart_reassigned_when_host_has_none(db, catalog):
    add_cart("guest-cart", guest_id="g1")
    add_line("i1", "guest-cart", quantity=2)

    assert CartMergeService(db).merge_guest_into_host("v1", "h1", "g1") == merge.REASSIGNED

    [cart] = fetch_all(Cart, id="guest-cart")
    assert cart.host_id == "h1"
    assert cart.guest_browser_id is None
    [line] = fetch_all(CartItem, cart_id="guest-cart")
    assert line.id == "i1" and line.quantity == 2


def test_matching_lines_sum_quantities(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", quantity=2, price="11.50")
    add_line("g-p1", "guest-cart", quantity=1, price="12.00")

    assert CartMergeService(db).merge_guest_into_host("v1", "h1", "g1") == merge.MERGED

    lines = _lines("host-cart")
    assert list(lines) == [("p1", "")]
    line = lines[("p1", "")]
    assert line.id == "h-p1"
    assert line.quantity == 3
    # guest unit price times combined quantity
    assert line.total_price == Decimal("36.00")
    assert fetch_all(Cart, id="guest-cart") == []
    assert fetch_all(CartItem, cart_id="guest-cart") == []


def test_unmatched_guest_lines_move_to_host(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", quantity=1)
    add_line("g-red", "guest-cart", product_id="p2", quantity=2, price="25.00", variation_key="red")
    add_line("g-blue", "guest-cart", product_id="p2", quantity=1, price="20.00", variation_key="BLU-1")

    CartMergeService(db).merge_guest_into_host("v1", "h1", "g1")

    lines = _lines("host-cart")
    assert set(lines) == {("p1", ""), ("p2", "red"), ("p2", "BLU-1")}
    assert lines[("p2", "red")].quantity == 2
    assert lines[("p2", "red")].total_price == Decimal("50.00")
    assert lines[("p2", "red")].variation == {"key": "red"}


def test_host_customization_wins(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", registry_item_id="ri-host", wrapping=True, gift_wrap_option_id="gw1")
    add_line("g-p1", "guest-cart", registry_item_id="ri-guest", wrapping=False, gift_wrap_option_id="gw1")
    add_line("h-p3", "host-cart", product_id="p3", price="5.00", registry_item_id=None)
    set_line_fields("h-p3", wrapping=None)
    add_line("g-p3", "guest-cart", product_id="p3", price="5.00", registry_item_id="ri-3", wrapping=True)

    CartMergeService(db).merge_guest_into_host("v1", "h1", "g1")

    lines = _lines("host-cart")
    p1 = lines[("p1", "")]
    assert (p1.registry_item_id, p1.wrapping, p1.gift_wrap_option_id) == ("ri-host", True, "gw1")
    # host values that are unset fall through to the guest's
    p3 = lines[("p3", "")]
    assert (p3.registry_item_id, p3.wrapping) == ("ri-3", True)


def test_different_gift_wrap_folds_into_host_line(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", quantity=1, gift_wrap_option_id="gwA")
    add_line("g-p1", "guest-cart", quantity=2, gift_wrap_option_id="gwB")

    CartMergeService(db).merge_guest_into_host("v1", "h1", "g1")

    [line] = fetch_all(CartItem, cart_id="host-cart")
    assert line.quantity == 3
    assert line.gift_wrap_option_id == "gwA"


def test_second_merge_is_noop(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", quantity=2)
    add_line("g-p1", "guest-cart", quantity=1)

    svc = CartMergeService(db)
    assert svc.merge_guest_into_host("v1", "h1", "g1") == merge.MERGED
    assert svc.merge_guest_into_host("v1", "h1", "g1") == merge.NOOP

    [line] = fetch_all(CartItem, cart_id="host-cart")
    assert line.quantity == 3


def test_failed_merge_leaves_both_carts_untouched(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("h-p1", "host-cart", quantity=2)
    add_line("g-p1", "guest-cart", quantity=1)
    add_line("g-p3", "guest-cart", product_id="p3", price="5.00")

    svc = CartMergeService(db)

    def broken_delete(cart):
        raise OperationalError("DELETE FROM carts", {}, Exception("disk I/O error"))

    svc.carts.delete_cart = broken_delete

    assert svc.merge_guest_into_host("v1", "h1", "g1") == merge.FAILED

    assert [(l.product_id, l.quantity) for l in fetch_all(CartItem, cart_id="host-cart")] == [("p1", 2)]
    assert len(fetch_all(CartItem, cart_id="guest-cart")) == 2
    assert len(fetch_all(Cart, id="guest-cart")) == 1


def test_merge_invalidates_cached_payloads(db, catalog):
    class RecordingCache:
        def __init__(self):
            self.invalidated = []

        def invalidate(self, key):
            self.invalidated.append(key)

    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("g-p1", "guest-cart")
    cache = RecordingCache()

    CartMergeService(db, cache=cache).merge_guest_into_host("v1", "h1", "g1")

    assert sorted(cache.invalidated) == ["guest-cart", "host-cart"]


def test_lookup_failure_is_swallowed(db, catalog):
    add_cart("host-cart", host_id="h1")
    add_cart("guest-cart", guest_id="g1")
    add_line("g-p1", "guest-cart")
    svc = CartMergeService(db)

    def broken_lookup(vendor_id, host_id, guest_id):
        raise RuntimeError("worker thread died")

    svc.locator.find_host_and_guest_carts = broken_lookup

    assert svc.merge_guest_into_host("v1", "h1", "g1") == merge.FAILED
    assert len(fetch_all(CartItem, cart_id="guest-cart")) == 1
    assert fetch_all(CartItem, cart_id="host-cart") == []
