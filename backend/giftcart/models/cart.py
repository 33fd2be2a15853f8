from datetime import datetime, timezone
from uuid import uuid4

from giftcart.db import Base
from sqlalchemy import Column, DateTime, Index, String, text
from sqlalchemy.orm import relationship

ACTIVE = "active"
ABANDONED = "abandoned"

_active_only = text("status = 'active'")


def _utcnow():
    return datetime.now(timezone.utc)


class Cart(Base):
    __tablename__ = "carts"
    __table_args__ = (
        # one active cart per (scope, owner)
        Index("uq_carts_active_vendor_host", "vendor_id", "host_id", unique=True,
              sqlite_where=_active_only, postgresql_where=_active_only),
        Index("uq_carts_active_vendor_guest", "vendor_id", "guest_browser_id", unique=True,
              sqlite_where=_active_only, postgresql_where=_active_only),
        Index("uq_carts_active_registry_host", "registry_id", "host_id", unique=True,
              sqlite_where=_active_only, postgresql_where=_active_only),
        Index("uq_carts_active_registry_guest", "registry_id", "guest_browser_id", unique=True,
              sqlite_where=_active_only, postgresql_where=_active_only),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    vendor_id = Column(String(36), nullable=True, index=True)
    registry_id = Column(String(36), nullable=True, index=True)
    host_id = Column(String(64), nullable=True, index=True)
    guest_browser_id = Column(String(128), nullable=True, index=True)
    status = Column(String(32), nullable=False, default=ACTIVE)  # active, abandoned, checked_out
    currency = Column(String(3), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "host_id": self.host_id,
            "guest_browser_id": self.guest_browser_id,
            "registry_id": self.registry_id,
            "status": self.status,
            "currency": self.currency,
        }
