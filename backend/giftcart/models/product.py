from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship
from giftcart.db import Base

class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    vendor_id = Column(String(36), ForeignKey("vendors.id"), nullable=False, index=True)
    name = Column(String(256), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(12, 2), nullable=True)
    service_charge = Column(Numeric(12, 2), nullable=True, default=0)
    stock_qty = Column(Integer, default=0, nullable=False)
    weight_kg = Column(Numeric(10, 3), nullable=True)
    images = Column(JSON, nullable=True)
    product_code = Column(String(64), nullable=True)
    # catalog editors store a list, but older rows hold JSON text
    variations = Column(JSON, nullable=True)
    status = Column(String(32), nullable=False, default="pending")  # pending, approved, rejected
    active = Column(Boolean, default=True, nullable=False)

    vendor = relationship("Vendor")

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"
