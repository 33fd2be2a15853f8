import json
import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
OWNER = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Carts ===")
if OWNER:
    cur.execute(
        "SELECT id, vendor_id, registry_id, host_id, guest_browser_id, status, currency, updated_at FROM carts WHERE host_id=? OR guest_browser_id=? ORDER BY updated_at DESC",
        (OWNER, OWNER),
    )
else:
    cur.execute(
        "SELECT id, vendor_id, registry_id, host_id, guest_browser_id, status, currency, updated_at FROM carts ORDER BY updated_at DESC LIMIT 20"
    )
carts = cur.fetchall()
for r in carts:
    print(
        {
            "id": r[0],
            "vendor_id": r[1],
            "registry_id": r[2],
            "host_id": r[3],
            "guest_browser_id": r[4],
            "status": r[5],
            "currency": r[6],
            "updated_at": r[7],
        }
    )

print("\n=== Cart Items ===")
for c in carts:
    cur.execute(
        "SELECT id, product_id, quantity, price, total_price, variation, wrapping, gift_wrap_option_id FROM cart_items WHERE cart_id=? ORDER BY created_at",
        (c[0],),
    )
    for r in cur.fetchall():
        variation = r[5]
        try:
            variation = json.loads(variation) if isinstance(variation, str) else variation
        except Exception:
            pass
        print(c[0], {"id": r[0], "product_id": r[1], "quantity": r[2], "price": r[3], "total_price": r[4], "variation": variation, "wrapping": r[6], "gift_wrap_option_id": r[7]})

print("\n=== Duplicate active carts (should be empty) ===")
cur.execute(
    "SELECT COALESCE(vendor_id, registry_id), COALESCE(host_id, guest_browser_id), COUNT(*) FROM carts WHERE status='active' GROUP BY 1, 2 HAVING COUNT(*) > 1"
)
for r in cur.fetchall():
    print(r)

conn.close()
