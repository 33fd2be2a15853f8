from dataclasses import dataclass
from typing import Optional

from giftcart.errors import OwnerNotResolved


@dataclass(frozen=True)
class CartOwner:
    host_id: Optional[str] = None
    guest_id: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return bool(self.host_id or self.guest_id)


def resolve_cart_owner(host_id: Optional[str], guest_browser_id: Optional[str]) -> CartOwner:
    """A signed-in host always wins over the browser token."""
    if host_id:
        return CartOwner(host_id=host_id, guest_id=None)
    if guest_browser_id:
        return CartOwner(host_id=None, guest_id=guest_browser_id)
    return CartOwner()


def require_cart_owner(host_id: Optional[str], guest_browser_id: Optional[str]) -> CartOwner:
    owner = resolve_cart_owner(host_id, guest_browser_id)
    if not owner.resolved:
        raise OwnerNotResolved()
    return owner
