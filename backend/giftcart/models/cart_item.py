from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from giftcart.db import Base

NO_VARIATION = ""


def _utcnow():
    return datetime.now(timezone.utc)


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", "variation_key", name="uq_cart_items_line"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    cart_id = Column(
        String(36), ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    registry_item_id = Column(String(36), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Numeric(12, 2), nullable=False, default=0)  # unit price incl. service charge
    total_price = Column(Numeric(12, 2), nullable=False, default=0)
    variation = Column(JSON, nullable=True)
    # mirrors variation["key"]; empty string when the line has no variation
    variation_key = Column(String(128), nullable=False, default=NO_VARIATION)
    wrapping = Column(Boolean, nullable=True, default=False)
    gift_wrap_option_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")
