"""
Shopper Simulation Script

Runs many concurrent storefront sessions against a running API: each
shopper browses the menu, fills a cart, signs in, checks out and reads
their order history. Useful for exercising the record store under load
and, in development, with MOCK_FAILURE_RATE set.

Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import asyncio
import sys
import random
import time
import argparse
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_SHOPPERS = 50
PASSWORD = "canteen123"

PAYMENT_METHODS = ["upi", "card", "cod"]
VIEWS = ["/api/menu", "/api/offers", "/api/combos"]


# =============================================================================
# SHOPPER SESSION
# =============================================================================

async def load_catalog(client: httpx.AsyncClient) -> list[dict[str, Any]]:
    """Browse a random view plus the unified menu; return every item seen."""
    items: dict[str, dict[str, Any]] = {}

    for path in {"/api/menu", random.choice(VIEWS)}:
        response = await client.get(path)
        response.raise_for_status()
        data = response.json()
        if not data.get("success"):
            continue
        sections = [data["items"]] if "items" in data else [data["veg"], data["egg"], data["non_veg"]]
        for section in sections:
            for item in section:
                items[item["id"]] = item

    return list(items.values())


async def run_shopper(shopper_num: int, base_url: str) -> dict[str, Any]:
    """Run one full shopping session with its own cookie jar."""
    start_time = time.time()
    result: dict[str, Any] = {"shopper_num": shopper_num, "success": False}

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
            catalog = await load_catalog(client)
            if not catalog:
                result["error"] = "Catalog unavailable"
                return result

            for item in random.sample(catalog, k=min(len(catalog), random.randint(1, 4))):
                response = await client.post("/api/cart/items", json={"menu_item_id": item["id"]})
                if response.status_code != 200:
                    continue
                quantity = random.randint(1, 3)
                if quantity > 1:
                    await client.patch(f"/api/cart/items/{item['id']}", json={"quantity": quantity})

            response = await client.post(
                "/auth/sign-in",
                json={"email": f"shopper{shopper_num}@example.com", "password": PASSWORD},
            )
            if response.status_code != 200:
                result["error"] = f"Sign-in failed: {response.text[:100]}"
                return result

            response = await client.post(
                "/api/checkout",
                json={"payment_method": random.choice(PAYMENT_METHODS)},
            )
            data = response.json()
            if response.status_code != 201:
                result["error"] = data.get("error", response.text[:100])
                return result

            history = await client.get("/api/orders")
            order_ids = [order["id"] for order in history.json().get("orders", [])]

            result.update(
                success=True,
                order_id=data["order_id"],
                total=data["total_amount"],
                in_history=data["order_id"] in order_ids,
            )
            return result

    except httpx.HTTPError as e:
        result["error"] = str(e)[:100]
        return result
    finally:
        result["time"] = round(time.time() - start_time, 3)


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(
    num_shoppers: int = TOTAL_SHOPPERS,
    base_url: str = API_BASE_URL,
) -> dict[str, Any]:
    """
    Run the shopper simulation.

    Args:
        num_shoppers: Number of concurrent sessions
        base_url: API base URL
    """
    print("=" * 70)
    print("🛒 SHOPPER SIMULATION - CONCURRENT CHECKOUTS")
    print("=" * 70)
    print(f"📋 Shoppers: {num_shoppers}")
    print(f"🎯 Target: {base_url}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()
    results = await asyncio.gather(*[
        run_shopper(i + 1, base_url) for i in range(num_shoppers)
    ])
    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]
    missing = [r for r in successful if not r.get("in_history")]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Orders placed: {len(successful)}/{num_shoppers}")
    print(f"❌ Failed checkouts: {len(failed)}/{num_shoppers}")
    print(f"🔎 Missing from history: {len(missing)}")
    print(f"⏱️  Total Time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        revenue = sum(r["total"] for r in successful)

        print("\n📈 Performance Metrics:")
        print(f"   Average Session: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   💰 Total Revenue: ₹{revenue:.2f}")

    if failed:
        print("\n⚠️  Failed Session Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Shopper #{f['shopper_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_shoppers,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def preflight(base_url: str = API_BASE_URL) -> bool:
    """Check the API is up before starting the simulation."""
    print("\n🧪 Health Check...")
    async with httpx.AsyncClient(base_url=base_url) as client:
        try:
            response = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Unreachable: {e}")
            return False

    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False

    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Record store: {data.get('record_store')}")
    print(f"   Identity: {data.get('identity_service')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Shopper Simulation Script")
    parser.add_argument("--shoppers", type=int, default=TOTAL_SHOPPERS, help="Number of shoppers")
    parser.add_argument("--url", default=API_BASE_URL, help="API base URL")
    parser.add_argument("--skip-preflight", action="store_true", help="Skip the health check")
    args = parser.parse_args()

    if not args.skip_preflight and not asyncio.run(preflight(args.url)):
        print("\n❌ Pre-flight check failed. Is the API running?")
        sys.exit(1)

    asyncio.run(run_simulation(num_shoppers=args.shoppers, base_url=args.url))
