"""
Notification Fan-out Simulation

Opens many order-status streams against a running server, pushes orders
through the status workflow and checks every listener saw every update.
Run from project root: python scripts/simulate.py
"""

import argparse
import asyncio
import json
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

# Configuration
API_BASE_URL = "http://localhost:8001"
TOTAL_ORDERS = 20
LISTENERS_PER_ORDER = 3

WORKFLOW = ["being_prepared", "prepared", "ready_for_pickup", "delivered"]

FIRST_NAMES = ["Asha", "Ravi", "Meera", "Arjun", "Kavya", "Rohan", "Isha", "Vikram"]
MENU_ITEMS = [
    {"name": "Margherita", "price": 249.0},
    {"name": "Farmhouse", "price": 399.0},
    {"name": "Garlic Bread", "price": 99.0},
    {"name": "Cold Coffee", "price": 129.0},
]


def generate_order_payload() -> dict[str, Any]:
    """Random takeaway order."""
    items = []
    for item in random.sample(MENU_ITEMS, random.randint(1, 3)):
        items.append({**item, "quantity": random.randint(1, 3)})
    return {
        "customerName": random.choice(FIRST_NAMES),
        "contactNumber": f"9{random.randint(100000000, 999999999)}",
        "orderType": "takeaway",
        "items": items,
    }


# =============================================================================
# LISTENERS
# =============================================================================

async def listen(
    client: httpx.AsyncClient,
    params: dict[str, str],
    received: list[dict],
    ready: asyncio.Event,
) -> None:
    """Read one notification stream until cancelled."""
    async with client.stream(
        "GET",
        f"{API_BASE_URL}/api/orders/notifications",
        params=params,
        timeout=None,
    ) as response:
        async for line in response.aiter_lines():
            if not line.startswith("data:"):
                continue
            event = json.loads(line[len("data:"):])
            if event.get("type") == "connected":
                ready.set()
            else:
                received.append(event)


async def run_order(client: httpx.AsyncClient, order_num: int, listeners: int) -> dict[str, Any]:
    """Create one order, attach listeners and walk it through the workflow."""
    payload = generate_order_payload()
    response = await client.post(f"{API_BASE_URL}/api/orders", json=payload, timeout=30.0)
    if response.status_code != 200:
        return {"order_num": order_num, "success": False, "error": response.text[:100]}

    data = response.json()
    order_id = data["orderId"]

    inboxes: list[list[dict]] = []
    tasks = []
    ready_events = []
    for i in range(listeners):
        inbox: list[dict] = []
        ready = asyncio.Event()
        # Alternate between the two ways a client can subscribe
        params = {"contact": payload["contactNumber"]} if i % 2 else {"orderId": order_id}
        inboxes.append(inbox)
        ready_events.append(ready)
        tasks.append(asyncio.create_task(listen(client, params, inbox, ready)))

    await asyncio.wait_for(asyncio.gather(*(e.wait() for e in ready_events)), timeout=10)

    start_time = time.time()
    for status in WORKFLOW:
        await client.put(f"{API_BASE_URL}/api/orders/{order_id}", json={"status": status})
    await asyncio.sleep(0.5)
    elapsed = round(time.time() - start_time, 3)

    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)

    complete = all([e["status"] for e in inbox] == WORKFLOW for inbox in inboxes)
    return {
        "order_num": order_num,
        "success": complete,
        "daily_order_id": data["dailyOrderId"],
        "time": elapsed,
        "error": None if complete else "missing updates",
    }


# =============================================================================
# MAIN SIMULATION RUNNER
# =============================================================================

async def run_simulation(num_orders: int = TOTAL_ORDERS, listeners: int = LISTENERS_PER_ORDER) -> dict[str, Any]:
    print("=" * 70)
    print("📡 NOTIFICATION FAN-OUT SIMULATION")
    print("=" * 70)
    print(f"📋 Orders: {num_orders}")
    print(f"👥 Listeners per order: {listeners}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    limits = httpx.Limits(max_connections=num_orders * (listeners + 1))
    async with httpx.AsyncClient(limits=limits) as client:
        health = await client.get(f"{API_BASE_URL}/health")
        print(f"\n🩺 Health: {health.json().get('status')}")

        start_time = time.time()
        results = await asyncio.gather(*(run_order(client, i + 1, listeners) for i in range(num_orders)))
        total_time = round(time.time() - start_time, 2)

        stats = (await client.get(f"{API_BASE_URL}/api/notifications/stats")).json()

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)
    print(f"\n✅ Complete: {len(successful)}/{num_orders}")
    print(f"❌ Incomplete: {len(failed)}/{num_orders}")
    print(f"⏱️  Total Time: {total_time}s")
    print(f"🔌 Streams still open: {stats.get('totalSubscribers')}")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\n📈 Average workflow time: {avg_time}s")

    if failed:
        print("\n⚠️  Failed Order Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Order #{f['order_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)
    return {
        "total": num_orders,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Notification Fan-out Simulation")
    parser.add_argument("--orders", type=int, default=TOTAL_ORDERS, help="Number of orders")
    parser.add_argument("--listeners", type=int, default=LISTENERS_PER_ORDER, help="Streams per order")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url
    outcome = asyncio.run(run_simulation(num_orders=args.orders, listeners=args.listeners))
    sys.exit(0 if outcome["failed"] == 0 else 1)
