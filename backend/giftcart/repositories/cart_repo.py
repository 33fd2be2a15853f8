from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from giftcart.models.cart import ACTIVE, Cart
from giftcart.models.cart_item import CartItem
from giftcart.models.product import Product
from giftcart.models.vendor import Vendor  # noqa: F401  (mapper for Product.vendor)


def _utcnow():
    return datetime.now(timezone.utc)


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    # --- carts ---

    def get(self, cart_id: str) -> Optional[Cart]:
        return self.db.get(Cart, cart_id)

    def find_active(
        self,
        vendor_id: Optional[str] = None,
        registry_id: Optional[str] = None,
        host_id: Optional[str] = None,
        guest_id: Optional[str] = None,
    ) -> Optional[Cart]:
        qry = self.db.query(Cart).filter(Cart.status == ACTIVE)
        if registry_id:
            qry = qry.filter(Cart.registry_id == registry_id)
        else:
            qry = qry.filter(Cart.vendor_id == vendor_id)
        if host_id:
            qry = qry.filter(Cart.host_id == host_id)
        else:
            qry = qry.filter(Cart.guest_browser_id == guest_id)
        return qry.first()

    def add_cart(
        self,
        vendor_id: Optional[str],
        registry_id: Optional[str],
        host_id: Optional[str],
        guest_id: Optional[str],
        currency: str,
    ) -> Cart:
        now = _utcnow()
        c = Cart(
            vendor_id=None if registry_id else vendor_id,
            registry_id=registry_id or None,
            host_id=host_id,
            guest_browser_id=guest_id,
            status=ACTIVE,
            currency=currency,
            created_at=now,
            updated_at=now,
        )
        self.db.add(c)
        self.db.flush()
        return c

    def reassign_to_host(self, cart: Cart, host_id: str) -> Cart:
        cart.host_id = host_id
        cart.guest_browser_id = None
        cart.updated_at = _utcnow()
        self.db.flush()
        return cart

    def touch(self, cart: Cart):
        cart.updated_at = _utcnow()
        self.db.flush()

    def delete_cart(self, cart: Cart):
        self.db.delete(cart)
        self.db.flush()

    def list_active_storefront_carts(
        self, host_id: Optional[str] = None, guest_id: Optional[str] = None
    ) -> List[Cart]:
        qry = self.db.query(Cart).filter(Cart.status == ACTIVE, Cart.registry_id.is_(None))
        if host_id:
            qry = qry.filter(Cart.host_id == host_id)
        else:
            qry = qry.filter(Cart.guest_browser_id == guest_id)
        return qry.all()

    def list_stale_active(self, cutoff: datetime) -> List[Cart]:
        return (
            self.db.query(Cart)
            .filter(Cart.status == ACTIVE, Cart.updated_at <= cutoff)
            .all()
        )

    # --- items ---

    def get_item(self, item_id: str) -> Optional[CartItem]:
        return self.db.get(CartItem, item_id)

    def find_item(self, cart_id: str, product_id: str, variation_key: str) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(
                CartItem.cart_id == cart_id,
                CartItem.product_id == product_id,
                CartItem.variation_key == variation_key,
            )
            .first()
        )

    def list_items(self, cart_ids) -> List[CartItem]:
        """Items with product and vendor loaded, oldest first."""
        if isinstance(cart_ids, str):
            cart_ids = [cart_ids]
        if not cart_ids:
            return []
        return (
            self.db.query(CartItem)
            .options(joinedload(CartItem.product).joinedload(Product.vendor))
            .filter(CartItem.cart_id.in_(list(cart_ids)))
            .order_by(CartItem.created_at.asc(), CartItem.id.asc())
            .all()
        )

    def add_item(self, cart_id: str, product_id: str, quantity: int, price, **fields) -> CartItem:
        now = _utcnow()
        it = CartItem(
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
            price=price,
            total_price=price * quantity,
            created_at=now,
            updated_at=now,
            **fields,
        )
        self.db.add(it)
        self.db.flush()
        return it

    def update_item(self, item: CartItem, **fields) -> CartItem:
        for key, value in fields.items():
            setattr(item, key, value)
        item.updated_at = _utcnow()
        self.db.flush()
        return item

    def delete_item(self, item: CartItem):
        self.db.delete(item)
        self.db.flush()

    def delete_item_by_id(self, item_id: str) -> Optional[str]:
        """Delete one line; returns its cart id, or None when nothing matched."""
        it = self.get_item(item_id)
        if not it:
            return None
        cart_id = it.cart_id
        self.delete_item(it)
        return cart_id

    def clear_items(self, cart_id: str) -> int:
        n = (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart_id)
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return n
