import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from giftcart.cache import MISS, TTLCache
from giftcart.config import settings
from giftcart.errors import CartNotFound, CartStoreError, CartValidationError
from giftcart.models.cart import ABANDONED
from giftcart.models.cart_item import NO_VARIATION
from giftcart.repositories.cart_repo import CartRepository
from giftcart.repositories.product_repo import ProductRepository
from giftcart.services.cart_locator import CartLocator, CartScope
from giftcart.services.cart_merge_service import CartMergeService
from giftcart.services.cart_payload import build_payload, empty_payload
from giftcart.services.owner_service import require_cart_owner
from giftcart.services.variations import find_variation, unit_price, variation_snapshot
from giftcart.utils.parsing import parse_quantity, parse_variations

log = logging.getLogger("giftcart.cart")


def _store_message(exc: SQLAlchemyError) -> str:
    return str(getattr(exc, "orig", None) or exc)


class CartService:
    def __init__(self, db: Session, cache: Optional[TTLCache] = None, currency: Optional[str] = None):
        self.db = db
        self.cache = cache
        self.currency = currency or settings.STORE_CURRENCY
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.locator = CartLocator(db)
        self.merger = CartMergeService(db, locator=self.locator, cache=cache)

    # --- read model ---

    def fetch_payload(self, cart_id: str) -> Dict:
        return build_payload(self.cart_repo.list_items(cart_id))

    def cached_payload(self, cart_id: str) -> Dict:
        if self.cache is None:
            return self.fetch_payload(cart_id)
        payload = self.cache.get(cart_id)
        if payload is MISS:
            payload = self.fetch_payload(cart_id)
            self.cache.put(cart_id, payload)
        return payload

    def _invalidate(self, cart_id: Optional[str]):
        if self.cache is not None and cart_id:
            self.cache.invalidate(cart_id)

    def get_cart(
        self,
        host_id: Optional[str],
        guest_browser_id: Optional[str],
        vendor_id: Optional[str] = None,
        vendor_slug: Optional[str] = None,
        registry_id: Optional[str] = None,
    ) -> Dict:
        owner = require_cart_owner(host_id, guest_browser_id)

        if registry_id:
            scope = CartScope(registry_id=registry_id)
        else:
            resolved_vendor_id = self.locator.resolve_vendor_id(vendor_id, vendor_slug)
            if not resolved_vendor_id:
                return empty_payload()
            if owner.host_id and guest_browser_id:
                self.merger.merge_guest_into_host(resolved_vendor_id, owner.host_id, guest_browser_id)
            scope = CartScope(vendor_id=resolved_vendor_id)

        cart = self.locator.find_active_cart(scope, owner)
        if not cart:
            return empty_payload()
        payload = self.cached_payload(cart.id)
        return {"cart": cart.to_dict(), "items": payload["items"], "subtotal": payload["subtotal"]}

    # --- mutations ---

    def add_item(
        self,
        host_id: Optional[str],
        guest_browser_id: Optional[str],
        product_id: Optional[str],
        vendor_id: Optional[str] = None,
        vendor_slug: Optional[str] = None,
        registry_id: Optional[str] = None,
        registry_item_id: Optional[str] = None,
        quantity: Any = 1,
        variation_key: Optional[str] = None,
        variation: Any = None,
    ) -> Dict:
        if not product_id:
            raise CartValidationError("productId is required")
        qty = parse_quantity(quantity, minimum=1, default=1)

        owner = require_cart_owner(host_id, guest_browser_id)

        # registry carts hold several vendors, so the vendor only pins storefront carts
        resolved_vendor_id = self.locator.resolve_vendor_id(vendor_id, vendor_slug)
        if not resolved_vendor_id and not registry_id:
            raise CartNotFound("Vendor not found")

        if not registry_id and owner.host_id and guest_browser_id:
            self.merger.merge_guest_into_host(resolved_vendor_id, owner.host_id, guest_browser_id)

        product = self.product_repo.get_purchasable(
            product_id, vendor_id=None if registry_id else resolved_vendor_id
        )
        if not product:
            raise CartNotFound("Product not available")

        stock = product.stock_qty or 0
        if stock < qty:
            raise CartValidationError(f"Only {stock} items available.")

        variations = parse_variations(product.variations)
        matched = find_variation(variations, variation_key)
        snapshot = variation_snapshot(matched if matched is not None else variation, variation_key)
        price = unit_price(product, matched)
        line_key = variation_key or NO_VARIATION

        scope = CartScope(vendor_id=resolved_vendor_id, registry_id=registry_id)
        try:
            cart = self.locator.find_or_create_active_cart(scope, owner, self.currency)
            self._add_or_increment(cart.id, product_id, line_key, qty, price, snapshot, registry_item_id)
            self.cart_repo.touch(cart)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise CartStoreError(_store_message(e))

        payload = self.fetch_payload(cart.id)
        if self.cache is not None:
            self.cache.put(cart.id, payload)
        return {"cart": cart.to_dict(), "items": payload["items"], "subtotal": payload["subtotal"]}

    def _add_or_increment(self, cart_id, product_id, line_key, qty, price, snapshot, registry_item_id):
        existing = self.cart_repo.find_item(cart_id, product_id, line_key)
        if existing is None:
            try:
                self.cart_repo.add_item(
                    cart_id,
                    product_id,
                    qty,
                    price,
                    registry_item_id=registry_item_id,
                    variation=snapshot,
                    variation_key=line_key,
                )
                self.db.commit()
                return
            except IntegrityError:
                # a concurrent add created the line first; fold into it instead
                self.db.rollback()
                log.info("cart line insert collided cart=%s product=%s key=%r", cart_id, product_id, line_key)
                existing = self.cart_repo.find_item(cart_id, product_id, line_key)
                if existing is None:
                    raise

        next_quantity = existing.quantity + qty
        self.cart_repo.update_item(
            existing,
            quantity=next_quantity,
            price=price,
            total_price=price * next_quantity,
            variation=snapshot,
            registry_item_id=existing.registry_item_id if existing.registry_item_id is not None else registry_item_id,
        )

    def update_item(
        self,
        cart_item_id: Optional[str],
        quantity: Any = 1,
        wrapping: Any = None,
        gift_wrap_option_id: Optional[str] = None,
        gift_wrap_provided: bool = False,
    ) -> Dict:
        """
        Set a line's quantity, 0 removing it. ``gift_wrap_provided`` tells an
        explicit ``giftWrapOptionId: null`` (clear it) apart from an absent one.
        """
        if not cart_item_id:
            raise CartValidationError("cartItemId is required")
        next_quantity = parse_quantity(quantity, minimum=0, default=0)

        item = self.cart_repo.get_item(cart_item_id)
        if not item:
            raise CartNotFound("Cart item not found")
        cart_id = item.cart_id

        try:
            if next_quantity == 0:
                self.cart_repo.delete_item(item)
            else:
                if isinstance(wrapping, bool):
                    next_wrapping = wrapping
                elif gift_wrap_option_id:
                    next_wrapping = True
                else:
                    next_wrapping = item.wrapping
                fields = {
                    "quantity": next_quantity,
                    "total_price": (item.price or 0) * next_quantity,
                    "wrapping": next_wrapping,
                }
                if gift_wrap_provided:
                    fields["gift_wrap_option_id"] = gift_wrap_option_id or None
                self.cart_repo.update_item(item, **fields)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise CartStoreError(_store_message(e))

        self._invalidate(cart_id)
        return {"success": True}

    def delete(self, cart_item_id: Optional[str] = None, cart_id: Optional[str] = None) -> Dict:
        """Remove one line, or every line of a cart. The cart row itself stays."""
        if not cart_item_id and not cart_id:
            raise CartValidationError("Nothing to delete")
        try:
            if cart_item_id:
                cart_id = self.cart_repo.delete_item_by_id(cart_item_id)
            else:
                self.cart_repo.clear_items(cart_id)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise CartStoreError(_store_message(e))

        self._invalidate(cart_id)
        return {"success": True}

    # --- housekeeping ---

    def expire_abandoned(self, older_than_seconds: Optional[int] = None) -> List[str]:
        """
        Mark active carts untouched for longer than the window as abandoned and
        return their ids. An abandoned cart no longer counts as the owner's
        active cart, so the next add starts a fresh one.
        """
        window = older_than_seconds if older_than_seconds is not None else settings.CART_ABANDON_AFTER_SECONDS
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=window)
        stale = self.cart_repo.list_stale_active(cutoff)
        ids = []
        for c in stale:
            c.status = ABANDONED
            ids.append(c.id)
        self.db.commit()
        for cart_id in ids:
            self._invalidate(cart_id)
        return ids
