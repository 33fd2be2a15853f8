#!/usr/bin/env python3
"""
Seed vendors and products from a JSON file so the cart endpoints have
something to sell in local development.

Expected shape:
    {"vendors": [{"id": "...", "slug": "...", "business_name": "...", "logo_url": "...",
                  "products": [{"id": "...", "name": "...", "price": 10.0,
                                "service_charge": 1.5, "stock_qty": 5,
                                "variations": [...], "images": [...]}]}]}

Usage:
    python scripts/seed_catalog.py --file catalog.json
"""
import json
import argparse
import sys
import os
from decimal import Decimal

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from giftcart.db import SessionLocal, init_db
from giftcart.models.vendor import Vendor
from giftcart.repositories.product_repo import ProductRepository

PRODUCT_FIELDS = ("description", "stock_qty", "weight_kg", "images", "product_code", "variations", "status", "active")

def _money(value):
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except Exception:
        return None

def _normalize_product(entry):
    """Return kwargs for ProductRepository.create_or_update; unknown keys are dropped."""
    fields = {k: entry[k] for k in PRODUCT_FIELDS if k in entry}
    fields["price"] = _money(entry.get("price"))
    fields["service_charge"] = _money(entry.get("service_charge")) or Decimal("0")
    fields.setdefault("status", "approved")
    fields.setdefault("active", True)
    try:
        fields["stock_qty"] = int(fields.get("stock_qty") or 0)
    except (TypeError, ValueError):
        fields["stock_qty"] = 0
    return fields

def seed_from_file(path: str):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except Exception as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")

    vendors = data.get("vendors", []) if isinstance(data, dict) else data

    init_db()
    db = SessionLocal()
    repo = ProductRepository(db)
    created = 0
    try:
        for v in vendors:
            vendor = db.get(Vendor, v["id"]) or Vendor(id=v["id"])
            vendor.slug = v.get("slug") or v["id"]
            vendor.business_name = v.get("business_name") or vendor.slug
            vendor.logo = v.get("logo")
            vendor.logo_url = v.get("logo_url")
            db.add(vendor)
            db.flush()
            for p in v.get("products", []):
                if not p.get("id"):
                    continue
                repo.create_or_update(p["id"], vendor.id, p.get("name") or p["id"], **_normalize_product(p))
                created += 1
        db.commit()
        print("Seeded products:", created)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", required=True, help="Path to catalog json")
    args = parser.parse_args()
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    seed_from_file(args.file)
