import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from giftcart.models.cart_item import CartItem
from giftcart.repositories.cart_repo import CartRepository
from giftcart.services.cart_locator import CartLocator

log = logging.getLogger("giftcart.merge")

# merge outcomes, returned for logging and tests
NOOP = "noop"
REASSIGNED = "reassigned"
MERGED = "merged"
FAILED = "failed"


def _coalesce(*values):
    for v in values:
        if v is not None:
            return v
    return None


class CartMergeService:
    """
    Folds a guest's storefront cart into the host's cart once the guest signs in.

    The fold is all-or-nothing: item moves and the guest cart deletion share one
    transaction, so a failure leaves both carts as they were and the next
    request retries from scratch. Failures are logged and never raised; the
    read or write that triggered the merge carries on.
    """

    def __init__(self, db: Session, locator: Optional[CartLocator] = None, cache=None):
        self.db = db
        self.cache = cache
        self.carts = CartRepository(db)
        self.locator = locator or CartLocator(db)

    def merge_guest_into_host(self, vendor_id: Optional[str], host_id: Optional[str], guest_id: Optional[str]) -> str:
        if not vendor_id or not host_id or not guest_id:
            return NOOP
        try:
            return self._merge(vendor_id, host_id, guest_id)
        except Exception:
            self.db.rollback()
            log.exception(
                "guest cart merge failed vendor=%s host=%s guest=%s; carts left unchanged",
                vendor_id, host_id, guest_id,
            )
            return FAILED

    def _merge(self, vendor_id: str, host_id: str, guest_id: str) -> str:
        host_cart_id, guest_cart_id = self.locator.find_host_and_guest_carts(vendor_id, host_id, guest_id)

        if not guest_cart_id:
            return NOOP

        if not host_cart_id:
            guest_cart = self.carts.get(guest_cart_id)
            if guest_cart is None:
                return NOOP
            self.carts.reassign_to_host(guest_cart, host_id)
            self.db.commit()
            log.info("guest cart %s reassigned to host %s", guest_cart_id, host_id)
            return REASSIGNED

        if host_cart_id == guest_cart_id:
            return NOOP

        guest_items = (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == guest_cart_id)
            .order_by(CartItem.created_at.asc())
            .all()
        )
        host_items = (
            self.db.query(CartItem).filter(CartItem.cart_id == host_cart_id).all()
        )

        for item in guest_items:
            existing = self._match(host_items, item)
            if existing is not None:
                quantity = (existing.quantity or 0) + (item.quantity or 0)
                unit_price = Decimal(item.price or 0)
                self.carts.update_item(
                    existing,
                    quantity=quantity,
                    total_price=unit_price * quantity,
                    registry_item_id=_coalesce(existing.registry_item_id, item.registry_item_id),
                    wrapping=_coalesce(existing.wrapping, item.wrapping, False),
                    gift_wrap_option_id=_coalesce(existing.gift_wrap_option_id, item.gift_wrap_option_id),
                )
            else:
                quantity = item.quantity or 1
                moved = self.carts.add_item(
                    host_cart_id,
                    item.product_id,
                    quantity,
                    Decimal(item.price or 0),
                    registry_item_id=item.registry_item_id,
                    variation=item.variation,
                    variation_key=item.variation_key,
                    wrapping=_coalesce(item.wrapping, False),
                    gift_wrap_option_id=item.gift_wrap_option_id,
                )
                host_items.append(moved)

        for item in guest_items:
            self.carts.delete_item(item)
        guest_cart = self.carts.get(guest_cart_id)
        if guest_cart is not None:
            self.carts.delete_cart(guest_cart)
        self.db.commit()
        if self.cache is not None:
            self.cache.invalidate(host_cart_id)
            self.cache.invalidate(guest_cart_id)
        log.info(
            "guest cart %s merged into host cart %s (%d lines)",
            guest_cart_id, host_cart_id, len(guest_items),
        )
        return MERGED

    @staticmethod
    def _match(host_items, item: CartItem) -> Optional[CartItem]:
        """
        Same product, variation and gift-wrap option. Failing that, a host line
        with the same product and variation still absorbs the guest line, since
        a cart holds one line per product variation; the host's wrap choice stays.
        """
        same_line = [
            h for h in host_items
            if h.product_id == item.product_id and h.variation_key == item.variation_key
        ]
        for h in same_line:
            if h.gift_wrap_option_id == item.gift_wrap_option_id:
                return h
        return same_line[0] if same_line else None
