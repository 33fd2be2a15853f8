import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from giftcart.auth import get_current_host_id
from giftcart.db import get_db
from giftcart.services.cart_summary_service import CartSummaryService

router = APIRouter(prefix="/api/shop", tags=["shop"])

log = logging.getLogger("giftcart.api.shop")


# Both views feed header badges and the checkout summary; on failure they
# degrade to an empty list instead of an error page.

@router.get("/cart-details", summary="Active storefront cart lines grouped by vendor")
def cart_details(
    guest_browser_id: Optional[str] = Query(None, alias="guestBrowserId"),
    host_id: Optional[str] = Depends(get_current_host_id),
    db: Session = Depends(get_db),
):
    try:
        return {"vendors": CartSummaryService(db).details_by_vendor(host_id, guest_browser_id)}
    except Exception:
        log.exception("Failed to fetch cart details")
        return {"vendors": []}


@router.get("/cart-product-ids", summary="Product ids in the active storefront carts")
def cart_product_ids(
    guest_browser_id: Optional[str] = Query(None, alias="guestBrowserId"),
    host_id: Optional[str] = Depends(get_current_host_id),
    db: Session = Depends(get_db),
):
    try:
        return {"items": CartSummaryService(db).product_ids(host_id, guest_browser_id)}
    except Exception:
        log.exception("Failed to fetch cart product ids")
        return {"items": []}
