import os
import sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import requests
import concurrent.futures
import argparse
from uuid import uuid4

BASE = os.environ.get("GIFTCART_BASE", "http://127.0.0.1:8000")
CART_URL = f"{BASE}/api/storefront/cart"

def add_task(i, payload, headers):
    try:
        r = requests.post(CART_URL, json=payload, headers=headers, timeout=10)
        return (i, r.status_code, r.json() if r.headers.get("content-type", "").startswith("application/json") else r.text)
    except Exception as e:
        return (i, "ERR", str(e))

def run_add_concurrent(workers, product_id, vendor_id, guest_id, host_id, registry_id):
    """
    Fire `workers` identical add-to-cart requests at once. With the active-cart
    and cart-line unique indexes in place every request should land in the
    same cart and the same line, ending with quantity == workers.
    """
    payload = {"productId": product_id, "vendorId": vendor_id, "quantity": 1}
    if guest_id:
        payload["guestBrowserId"] = guest_id
    if registry_id:
        payload["registryId"] = registry_id
    headers = {"X-Host-Id": host_id} if host_id else {}

    print(f"Running add test: workers={workers}, product={product_id}, vendor={vendor_id}, guest={guest_id}, host={host_id}")
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(add_task, i, payload, headers) for i in range(workers)]
        results = [f.result() for f in futures]

    ok = [r for r in results if r[1] == 200]
    for r in results:
        if r[1] != 200:
            print("failed:", r)
    cart_ids = {r[2]["cart"]["id"] for r in ok}
    print("Succeeded:", len(ok), "of", workers)
    print("Distinct cart ids:", cart_ids)

    params = {"vendor_id": vendor_id}
    if guest_id:
        params["guest_browser_id"] = guest_id
    if registry_id:
        params["registry_id"] = registry_id
    final = requests.get(CART_URL, params=params, headers=headers, timeout=10).json()
    lines = [(it["product_id"], it["quantity"]) for it in final.get("items", [])]
    print("Final lines:", lines, "subtotal:", final.get("subtotal"))
    print("(GET may serve a cached payload for up to the cache window)")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Concurrent add-to-cart probe.")
    parser.add_argument("--product", required=True)
    parser.add_argument("--vendor", required=True)
    parser.add_argument("--workers", type=int, default=8)
    parser.add_argument("--guest", default=None, help="guest browser id (random when neither guest nor host given)")
    parser.add_argument("--host", default=None, help="host id sent in X-Host-Id")
    parser.add_argument("--registry", default=None)
    args = parser.parse_args()

    guest = args.guest
    if not guest and not args.host:
        guest = f"probe-{uuid4().hex[:8]}"
    run_add_concurrent(args.workers, args.product, args.vendor, guest, args.host, args.registry)
