"""
Rush-Hour Simulation Script

Fires concurrent orders at a running storefront, then walks them through
the kitchen statuses and submits payment confirmations at the same time,
to check that every status change ends up in the timelines.

Run from project root: python scripts/simulate.py

Author: Bro Bro Foods
Version: 1.0.0
"""

import argparse
import asyncio
import os
import random
import sys
import time
from datetime import datetime
from typing import Any, Optional

import httpx
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from storefront.core.config import get_settings

# Configuration
API_BASE_URL = get_settings().app_base_url
TOTAL_ORDERS = 50

PLATE_TYPES = ["half", "full"]
PAID_VIA = ["Google Pay", "PhonePe", "Paytm", "BHIM UPI", "Other UPI App"]
KITCHEN_FLOW = ["accepted", "preparing", "readyToDeliver", "outForDelivery", "delivered"]


def admin_headers() -> dict[str, str]:
    settings = get_settings()
    return {"X-Admin-Fragment": f"#{settings.admin_fragment_key}={settings.admin_token}"}


def generate_order_payload(allow_below_minimum: bool = True) -> dict[str, Any]:
    """Random order; roughly one in ten is below the minimum on purpose."""
    low = 1 if allow_below_minimum and random.random() < 0.1 else get_settings().min_plates_per_order
    return {
        "plate_type": random.choice(PLATE_TYPES),
        "quantity": random.randint(low, 6),
    }


def generate_utr() -> str:
    return str(random.randint(10**11, 10**12 - 1))


# =============================================================================
# CUSTOMER SIDE
# =============================================================================

async def send_order(client: httpx.AsyncClient, order_num: int) -> dict[str, Any]:
    """Place one order."""
    payload = generate_order_payload()
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    except httpx.HTTPError as e:
        return {
            "order_num": order_num,
            "success": False,
            "error": str(e)[:100],
            "time": round(time.time() - start_time, 3),
        }

    elapsed = round(time.time() - start_time, 3)
    if response.status_code == 201:
        data = response.json()
        return {
            "order_num": order_num,
            "success": True,
            "order_id": data["order"]["id"],
            "total": data["checkout"]["grand_total"],
            "time": elapsed,
        }

    return {
        "order_num": order_num,
        "success": False,
        "rejected": response.status_code == 400,
        "error": response.text[:100],
        "time": elapsed,
    }


async def submit_utr(client: httpx.AsyncClient, order_id: int) -> bool:
    response = await client.post(
        f"{API_BASE_URL}/api/orders/{order_id}/payment-confirmation",
        json={"utr": generate_utr(), "paid_via": random.choice(PAID_VIA)},
        timeout=30.0,
    )
    return response.status_code == 200


# =============================================================================
# KITCHEN SIDE
# =============================================================================

async def walk_statuses(client: httpx.AsyncClient, order_id: int) -> int:
    """Move an order through the kitchen flow; returns how many updates stuck."""
    applied = 0
    flow = KITCHEN_FLOW if random.random() > 0.1 else ["accepted", "cancelled"]

    for status in flow:
        response = await client.patch(
            f"{API_BASE_URL}/api/admin/orders/{order_id}/status",
            json={"status": status, "changed_by": "Kitchen"},
            headers=admin_headers(),
            timeout=30.0,
        )
        if response.status_code == 200:
            applied += 1
        await asyncio.sleep(random.uniform(0, 0.05))

    return applied


async def check_timeline(client: httpx.AsyncClient, order_id: int, expected_updates: int) -> bool:
    """Seed event plus one event per applied update, in time order."""
    response = await client.get(
        f"{API_BASE_URL}/api/admin/orders/{order_id}/timeline",
        headers=admin_headers(),
    )
    if response.status_code != 200:
        return False

    events = response.json()["events"]
    times = [e["changed_at"] for e in events]
    return len(events) == expected_updates + 1 and times == sorted(times)


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS) -> dict[str, Any]:
    """
    Run the rush-hour simulation.

    Args:
        num_orders: Number of orders to fire concurrently
    """
    print("=" * 70)
    print("🔥 RUSH-HOUR SIMULATION - CONCURRENT ORDERS")
    print("=" * 70)
    print(f"📋 Total Orders: {num_orders}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        print("\n🚀 Firing orders...\n")
        results = await asyncio.gather(*[send_order(client, i + 1) for i in range(num_orders)])

        placed = [r for r in results if r["success"]]
        order_ids = [r["order_id"] for r in placed]

        print("👨‍🍳 Kitchen updates and UTR submissions in parallel...\n")
        updates, payments = await asyncio.gather(
            asyncio.gather(*[walk_statuses(client, oid) for oid in order_ids]),
            asyncio.gather(*[submit_utr(client, oid) for oid in order_ids]),
        )

        timelines_ok = await asyncio.gather(*[
            check_timeline(client, oid, applied) for oid, applied in zip(order_ids, updates)
        ])

        summary_response = await client.get(
            f"{API_BASE_URL}/api/admin/orders",
            headers=admin_headers(),
        )

    total_time = round(time.time() - start_time, 2)

    rejected = [r for r in results if r.get("rejected")]
    failed = [r for r in results if not r["success"] and not r.get("rejected")]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Placed Orders: {len(placed)}/{num_orders}")
    print(f"🚫 Rejected (below minimum): {len(rejected)}")
    print(f"❌ Failed Orders: {len(failed)}")
    print(f"💳 UTRs Accepted: {sum(payments)}/{len(order_ids)}")
    print(f"🧾 Timelines Consistent: {sum(timelines_ok)}/{len(order_ids)}")
    print(f"⏱️  Total Time: {total_time}s")

    if placed:
        avg_time = round(sum(r["time"] for r in placed) / len(placed), 3)
        print(f"\n📈 Performance Metrics:")
        print(f"   Average Response: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in placed)}s")
        print(f"   Slowest: {max(r['time'] for r in placed)}s")
        print(f"   💰 Order Value: ₹{sum(r['total'] for r in placed)}")

    if summary_response.status_code == 200:
        summary = summary_response.json()["summary"]
        print(f"\n🗂️  Admin Summary: {summary['total_orders']} orders, "
              f"{summary['paid_orders']} paid, ₹{summary['total_revenue']} revenue")
    else:
        print(f"\n⚠️  Admin list unavailable: {summary_response.text[:100]}")

    if failed:
        print(f"\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_orders,
        "placed": len(placed),
        "rejected": len(rejected),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def test_single_flows() -> bool:
    """Test individual flows before the simulation."""
    print("\n" + "=" * 70)
    print("🧪 TESTING INDIVIDUAL FLOWS")
    print("=" * 70)

    async with httpx.AsyncClient() as client:
        print("\n1️⃣ Health Check...")
        response = await client.get(f"{API_BASE_URL}/health")
        if response.status_code != 200:
            print(f"   ❌ Failed: {response.text}")
            return False
        data = response.json()
        print(f"   ✅ Status: {data.get('status')}")
        print(f"   Storage: {data.get('storage')}")

        print("\n2️⃣ Minimum Order Rule...")
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json={"plate_type": "half", "quantity": 1},
        )
        if response.status_code == 400:
            print(f"   ✅ Rejected: {response.json().get('detail')}")
        else:
            print(f"   ❌ Expected 400, got {response.status_code}")
            return False

        print("\n3️⃣ Single Order...")
        response = await client.post(
            f"{API_BASE_URL}/api/orders",
            json=generate_order_payload(allow_below_minimum=False),
        )
        order_id: Optional[int] = None
        if response.status_code == 201:
            data = response.json()
            order_id = data["order"]["id"]
            print(f"   ✅ Order #{order_id} created")
            print(f"   Grand Total: ₹{data['checkout']['grand_total']}")
        else:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False

        print("\n4️⃣ Admin Gate...")
        response = await client.get(f"{API_BASE_URL}/api/admin/orders/{order_id}")
        if response.status_code == 403:
            print("   ✅ Refused without token")
        else:
            print(f"   ❌ Expected 403, got {response.status_code}")
            return False

        response = await client.get(
            f"{API_BASE_URL}/api/admin/orders/{order_id}",
            headers=admin_headers(),
        )
        if response.status_code == 200:
            print("   ✅ Allowed with token")
        else:
            print(f"   ❌ Failed: {response.text[:100]}")
            return False

    print("\n" + "=" * 70)
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Rush-Hour Simulation Script")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--base-url", default=API_BASE_URL, help="Storefront base URL")
    parser.add_argument("--skip-tests", action="store_true", help="Skip individual tests")
    args = parser.parse_args()

    API_BASE_URL = args.base_url.rstrip("/")

    if not args.skip_tests:
        success = asyncio.run(test_single_flows())
        if not success:
            print("\n❌ Pre-flight tests failed. Fix issues before running simulation.")
            sys.exit(1)

        print("\n✅ Pre-flight tests passed!")

    asyncio.run(run_simulation(args.orders))
