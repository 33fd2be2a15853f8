from typing import Optional

from sqlalchemy.orm import Session

from giftcart.models.vendor import Vendor


class VendorRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_id_by_slug(self, slug: str) -> Optional[str]:
        row = self.db.query(Vendor.id).filter(Vendor.slug == slug).first()
        return row[0] if row else None
