import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from giftcart.models.cart import Cart
from giftcart.repositories.cart_repo import CartRepository
from giftcart.repositories.vendor_repo import VendorRepository
from giftcart.services.owner_service import CartOwner

log = logging.getLogger("giftcart.locator")


@dataclass(frozen=True)
class CartScope:
    """A storefront cart is keyed by vendor, a registry cart by registry."""

    vendor_id: Optional[str] = None
    registry_id: Optional[str] = None

    @property
    def is_registry(self) -> bool:
        return bool(self.registry_id)

    def filters(self) -> dict:
        if self.registry_id:
            return {"registry_id": self.registry_id}
        return {"vendor_id": self.vendor_id}


class CartLocator:
    def __init__(self, db: Session):
        self.db = db
        self.carts = CartRepository(db)
        self.vendors = VendorRepository(db)

    def resolve_vendor_id(self, vendor_id: Optional[str], vendor_slug: Optional[str]) -> Optional[str]:
        if vendor_id:
            return vendor_id
        if not vendor_slug:
            return None
        return self.vendors.get_id_by_slug(vendor_slug)

    def find_active_cart(self, scope: CartScope, owner: CartOwner) -> Optional[Cart]:
        return self.carts.find_active(
            host_id=owner.host_id, guest_id=owner.guest_id, **scope.filters()
        )

    def find_or_create_active_cart(self, scope: CartScope, owner: CartOwner, currency: str) -> Cart:
        """
        Return the owner's active cart for the scope, creating it on first use.

        Two requests racing to create the same cart collide on the active-cart
        unique index; the loser rolls back and picks up the winner's row.
        """
        cart = self.find_active_cart(scope, owner)
        if cart:
            return cart
        try:
            cart = self.carts.add_cart(
                vendor_id=scope.vendor_id,
                registry_id=scope.registry_id,
                host_id=owner.host_id,
                guest_id=owner.guest_id,
                currency=currency,
            )
            self.db.commit()
            return cart
        except IntegrityError:
            self.db.rollback()
            log.info("active cart creation collided for %s/%s, reusing existing row", scope, owner)
            cart = self.find_active_cart(scope, owner)
            if cart is None:
                raise
            return cart

    def find_host_and_guest_carts(
        self, vendor_id: str, host_id: str, guest_id: str
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Look up the host's and the guest's active storefront cart ids at the
        same time. Each lookup runs on its own short-lived session; sessions are
        not shared across threads.
        """
        bind = self.db.get_bind()

        def lookup(owner_filter: dict) -> Optional[str]:
            with Session(bind=bind) as s:
                cart = CartRepository(s).find_active(vendor_id=vendor_id, **owner_filter)
                return cart.id if cart else None

        with ThreadPoolExecutor(max_workers=2) as ex:
            host_future = ex.submit(lookup, {"host_id": host_id})
            guest_future = ex.submit(lookup, {"guest_id": guest_id})
            return host_future.result(), guest_future.result()
