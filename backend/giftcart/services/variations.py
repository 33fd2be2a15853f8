from decimal import Decimal
from typing import Dict, List, Optional

from giftcart.utils.parsing import parse_number

SNAPSHOT_FIELDS = ("id", "sku", "label", "color", "size", "price")


def variation_key(variation: Dict, index: int) -> str:
    """Stable key of a catalog variation: its id, else its sku, else its position."""
    return str(variation.get("id") or variation.get("sku") or index)


def find_variation(variations: List[Dict], key: Optional[str]) -> Optional[Dict]:
    if not key:
        return None
    for index, variation in enumerate(variations):
        if variation_key(variation, index) == key:
            return variation
    return None


def variation_snapshot(variation, key: Optional[str]) -> Optional[Dict]:
    """Copy the fields a cart line keeps; non-dict input means no variation."""
    if not isinstance(variation, dict):
        return None
    snapshot = {"key": key}
    for field in SNAPSHOT_FIELDS:
        snapshot[field] = variation.get(field)
    return snapshot


def unit_price(product, matched_variation: Optional[Dict]) -> Decimal:
    """
    Price of one unit including the product's service charge.

    Order of preference: catalog variation price, base product price, the
    service charge alone. Only a variation matched in the catalog may set the
    price; a client-supplied variation never does.
    """
    service_charge = parse_number(product.service_charge) or Decimal("0")
    if matched_variation is not None:
        variation_price = parse_number(matched_variation.get("price"))
        if variation_price is not None:
            return variation_price + service_charge
    base_price = parse_number(product.price)
    if base_price is not None:
        return base_price + service_charge
    return service_charge
