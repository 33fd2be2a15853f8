from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from giftcart.repositories.cart_repo import CartRepository
from giftcart.services.owner_service import resolve_cart_owner


class CartSummaryService:
    """Cross-vendor views over an owner's active storefront carts (registry carts excluded)."""

    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)

    def _owner_items(self, host_id: Optional[str], guest_browser_id: Optional[str]):
        owner = resolve_cart_owner(host_id, guest_browser_id)
        if not owner.resolved:
            return []
        carts = self.cart_repo.list_active_storefront_carts(host_id=owner.host_id, guest_id=owner.guest_id)
        return self.cart_repo.list_items([c.id for c in carts])

    def details_by_vendor(self, host_id: Optional[str], guest_browser_id: Optional[str]) -> List[Dict]:
        groups = {}
        for it in self._owner_items(host_id, guest_browser_id):
            product = it.product
            vendor = product.vendor if product else None
            if vendor is None:
                continue
            group = groups.get(vendor.slug)
            if group is None:
                group = groups[vendor.slug] = {
                    "vendor": {
                        "id": vendor.id,
                        "slug": vendor.slug,
                        "name": vendor.business_name,
                        "logo": vendor.logo_url,
                    },
                    "items": [],
                    "subtotal": Decimal("0"),
                }
            images = product.images if isinstance(product.images, list) else []
            total = Decimal(it.total_price or 0)
            group["items"].append(
                {
                    "cartItemId": it.id,
                    "productId": it.product_id,
                    "cartId": it.cart_id,
                    "name": product.name,
                    "image": images[0] if images else None,
                    "price": float(it.price or product.price or 0),
                    "quantity": it.quantity,
                    "totalPrice": float(total),
                    "variation": it.variation,
                    "stock": product.stock_qty,
                    "weight_kg": float(product.weight_kg) if product.weight_kg is not None else None,
                }
            )
            group["subtotal"] += total

        for group in groups.values():
            group["subtotal"] = float(group["subtotal"])
        return list(groups.values())

    def product_ids(self, host_id: Optional[str], guest_browser_id: Optional[str]) -> List[Dict]:
        out = []
        for it in self._owner_items(host_id, guest_browser_id):
            vendor = it.product.vendor if it.product else None
            out.append(
                {
                    "cartItemId": it.id,
                    "productId": it.product_id,
                    "cartId": it.cart_id,
                    "vendorSlug": vendor.slug if vendor else None,
                }
            )
        return out
