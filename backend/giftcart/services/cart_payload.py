from decimal import Decimal
from typing import Dict, List, Optional

from giftcart.models.cart_item import CartItem


def _num(value) -> Optional[float]:
    return float(value) if value is not None else None


def vendor_to_dict(vendor) -> Optional[Dict]:
    if vendor is None:
        return None
    return {
        "id": vendor.id,
        "slug": vendor.slug,
        "business_name": vendor.business_name,
        "logo": vendor.logo,
        "logo_url": vendor.logo_url,
    }


def product_to_dict(product) -> Optional[Dict]:
    if product is None:
        return None
    return {
        "id": product.id,
        "name": product.name,
        "price": _num(product.price),
        "weight_kg": _num(product.weight_kg),
        "service_charge": _num(product.service_charge),
        "stock_qty": product.stock_qty,
        "images": product.images or [],
        "product_code": product.product_code,
        "vendor_id": product.vendor_id,
        "vendor": vendor_to_dict(product.vendor),
    }


def item_to_dict(it: CartItem) -> Dict:
    return {
        "id": it.id,
        "cart_id": it.cart_id,
        "product_id": it.product_id,
        "registry_item_id": it.registry_item_id,
        "quantity": it.quantity,
        "price": _num(it.price),
        "total_price": _num(it.total_price),
        "variation": it.variation,
        "wrapping": it.wrapping,
        "gift_wrap_option_id": it.gift_wrap_option_id,
        "created_at": it.created_at.isoformat() if it.created_at else None,
        "product": product_to_dict(it.product),
    }


def build_payload(items: List[CartItem]) -> Dict:
    """Items plus a subtotal summed from each line's persisted total_price."""
    subtotal = sum((Decimal(it.total_price or 0) for it in items), Decimal("0"))
    return {
        "items": [item_to_dict(it) for it in items],
        "subtotal": float(subtotal),
    }


def empty_payload() -> Dict:
    return {"cart": None, "items": [], "subtotal": 0}
