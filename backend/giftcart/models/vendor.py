from uuid import uuid4

from sqlalchemy import Column, String
from giftcart.db import Base

class Vendor(Base):
    __tablename__ = "vendors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    slug = Column(String(128), unique=True, index=True, nullable=False)
    business_name = Column(String(256), nullable=False)
    logo = Column(String(512), nullable=True)
    logo_url = Column(String(512), nullable=True)

    def __repr__(self):
        return f"<Vendor slug={self.slug}>"
