import logging
from contextlib import contextmanager
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from giftcart.auth import get_current_host_id
from giftcart.cache import TTLCache
from giftcart.db import get_db
from giftcart.errors import CartError
from giftcart.schemas.cart_schema import AddItemIn, DeleteItemIn, UpdateItemIn
from giftcart.services.cart_service import CartService

router = APIRouter(prefix="/api/storefront/cart", tags=["cart"])

log = logging.getLogger("giftcart.api.cart")


def get_cart_cache(request: Request) -> TTLCache:
    return request.app.state.cart_cache


@contextmanager
def _cart_errors(failure_message: str):
    """Domain errors keep their status and message; anything else becomes a bare 500."""
    try:
        yield
    except CartError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except Exception:
        log.exception(failure_message)
        raise HTTPException(status_code=500, detail=failure_message)


@router.get("", summary="Get cart")
def get_cart(
    vendor_id: Optional[str] = Query(None),
    vendor_slug: Optional[str] = Query(None),
    registry_id: Optional[str] = Query(None),
    guest_browser_id: Optional[str] = Query(None),
    host_id: Optional[str] = Depends(get_current_host_id),
    cache: TTLCache = Depends(get_cart_cache),
    db: Session = Depends(get_db),
):
    svc = CartService(db, cache=cache)
    with _cart_errors("Failed to load cart"):
        return svc.get_cart(
            host_id,
            guest_browser_id,
            vendor_id=vendor_id,
            vendor_slug=vendor_slug,
            registry_id=registry_id,
        )


@router.post("", summary="Add item to cart")
def add_item(
    payload: Optional[AddItemIn] = Body(None),
    host_id: Optional[str] = Depends(get_current_host_id),
    cache: TTLCache = Depends(get_cart_cache),
    db: Session = Depends(get_db),
):
    payload = payload or AddItemIn()
    svc = CartService(db, cache=cache)
    with _cart_errors("Failed to update cart"):
        return svc.add_item(
            host_id,
            payload.guest_browser_id,
            payload.product_id,
            vendor_id=payload.vendor_id,
            vendor_slug=payload.vendor_slug,
            registry_id=payload.registry_id,
            registry_item_id=payload.registry_item_id,
            quantity=payload.quantity,
            variation_key=payload.variation_key,
            variation=payload.variation,
        )


@router.patch("", summary="Update cart item")
def update_item(
    payload: Optional[UpdateItemIn] = Body(None),
    cache: TTLCache = Depends(get_cart_cache),
    db: Session = Depends(get_db),
):
    payload = payload or UpdateItemIn()
    svc = CartService(db, cache=cache)
    with _cart_errors("Failed to update cart item"):
        return svc.update_item(
            payload.cart_item_id,
            quantity=payload.quantity,
            wrapping=payload.wrapping,
            gift_wrap_option_id=payload.gift_wrap_option_id,
            gift_wrap_provided=payload.gift_wrap_provided,
        )


@router.delete("", summary="Remove item or clear cart")
def delete_item(
    payload: Optional[DeleteItemIn] = Body(None),
    cache: TTLCache = Depends(get_cart_cache),
    db: Session = Depends(get_db),
):
    payload = payload or DeleteItemIn()
    svc = CartService(db, cache=cache)
    with _cart_errors("Failed to delete cart item"):
        return svc.delete(cart_item_id=payload.cart_item_id, cart_id=payload.cart_id)
