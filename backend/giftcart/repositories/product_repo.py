from typing import Optional

from giftcart.models.product import Product
from sqlalchemy.orm import Session


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_purchasable(self, product_id: str, vendor_id: Optional[str] = None) -> Optional[Product]:
        """
        Return the product only when it is approved and active. Storefront carts
        also pin it to the vendor; registry carts accept any vendor.
        """
        qry = self.db.query(Product).filter(
            Product.id == product_id,
            Product.status == "approved",
            Product.active == True,
        )
        if vendor_id:
            qry = qry.filter(Product.vendor_id == vendor_id)
        return qry.first()

    def create_or_update(self, product_id: str, vendor_id: str, name: str, **fields):
        p = self.db.get(Product, product_id)
        if p:
            p.vendor_id = vendor_id
            p.name = name
        else:
            p = Product(id=product_id, vendor_id=vendor_id, name=name)
            self.db.add(p)
        for key, value in fields.items():
            setattr(p, key, value)
        self.db.flush()
        return p
