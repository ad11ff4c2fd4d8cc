"""
Chat Load Simulation Script

Drives many concurrent chat sessions through the full ordering flow to
check that sessions stay isolated under load.
Run from project root: python scripts/simulate.py

Each simulated customer:
    1. Opens a session (empty input returns the main menu)
    2. Adds 1-4 random menu items
    3. Checks out with 99
    4. With payments enabled, follows the payment link to the callback
    5. Confirms with 98 that exactly one order was recorded

Author: Your Name
Version: 2.0.0
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
API_BASE_URL = "http://localhost:4000"
TOTAL_SESSIONS = 50

MENU_IDS = ["10", "20", "30", "40", "50"]
PAYMENT_LINK_PREFIX = "Complete your payment here: "


async def send(client: httpx.AsyncClient, text: str) -> list[str]:
    """Send one chat command on the client's session."""
    response = await client.post("/chat", json={"input": text})
    response.raise_for_status()
    return response.json()["reply"]


# =============================================================================
# SESSION SIMULATION
# =============================================================================

async def run_session(session_num: int) -> dict[str, Any]:
    """Walk one customer through a complete order."""
    start_time = time.time()
    items = [random.choice(MENU_IDS) for _ in range(random.randint(1, 4))]
    result: dict[str, Any] = {"session_num": session_num, "items": len(items)}

    # One client per session so each keeps its own cookie jar
    async with httpx.AsyncClient(base_url=API_BASE_URL, timeout=30.0) as client:
        try:
            await send(client, "")
            for item_id in items:
                await send(client, item_id)

            reply = await send(client, "99")
            links = [line for line in reply if line.startswith(PAYMENT_LINK_PREFIX)]

            if links:
                result["mode"] = "paid"
                callback = await client.get(links[0][len(PAYMENT_LINK_PREFIX):])
                if callback.status_code != 200:
                    raise RuntimeError(f"callback returned {callback.status_code}")
            elif reply and reply[0].startswith("✅"):
                result["mode"] = "direct"
            else:
                raise RuntimeError(reply[0] if reply else "empty reply")

            history = await send(client, "98")
            if len(history) != 1 or not history[0].startswith("Order 1:"):
                raise RuntimeError(f"unexpected history: {history}")

            result["success"] = True

        except (httpx.HTTPError, RuntimeError) as e:
            result["success"] = False
            result["error"] = str(e)[:100]

    result["time"] = round(time.time() - start_time, 3)
    return result


async def run_simulation(num_sessions: int = TOTAL_SESSIONS) -> dict[str, Any]:
    """
    Run concurrent chat sessions and report the outcome.

    Args:
        num_sessions: Number of customers to simulate

    Returns:
        Summary with per-session results
    """
    print("=" * 70)
    print("🔥 CHAT SIMULATION - CONCURRENT SESSIONS")
    print("=" * 70)
    print(f"📋 Sessions: {num_sessions}")
    print(f"🎯 Target: {API_BASE_URL}")
    print(f"⏰ Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    print("\n🚀 Starting sessions...\n")
    tasks = [run_session(i + 1) for i in range(num_sessions)]
    results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("📊 SIMULATION RESULTS")
    print("=" * 70)

    print(f"\n✅ Completed Sessions: {len(successful)}/{num_sessions}")
    print(f"❌ Failed Sessions: {len(failed)}/{num_sessions}")
    print(f"⏱️  Total Time: {total_time}s")

    paid = len([r for r in successful if r.get("mode") == "paid"])
    if paid:
        print(f"\n💳 Settled through payment callback: {paid}")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print("\n📈 Performance Metrics:")
        print(f"   Average Session: {avg_time}s")
        print(f"   Fastest: {min(r['time'] for r in successful)}s")
        print(f"   Slowest: {max(r['time'] for r in successful)}s")
        print(f"   Items ordered: {sum(r['items'] for r in successful)}")

    if failed:
        print("\n⚠️  Failed Session Details (showing first 5):")
        for f in failed[:5]:
            print(f"   Session #{f['session_num']}: {f.get('error', 'Unknown error')}")

    print("=" * 70)

    return {
        "total": num_sessions,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


async def check_health() -> bool:
    """Pre-flight check against /health."""
    print("\n1️⃣ Health Check...")
    async with httpx.AsyncClient(base_url=API_BASE_URL) as client:
        try:
            response = await client.get("/health")
        except httpx.HTTPError as e:
            print(f"   ❌ Failed: {e}")
            return False

    if response.status_code != 200:
        print(f"   ❌ Failed: {response.text}")
        return False

    data = response.json()
    print(f"   ✅ Status: {data.get('status')}")
    print(f"   Payment gateway: {data.get('payment_gateway')}")
    print(f"   Live sessions: {data.get('sessions')}")
    return True


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Chat Load Simulation Script")
    parser.add_argument("--sessions", type=int, default=TOTAL_SESSIONS, help="Number of sessions")
    parser.add_argument("--url", default=API_BASE_URL, help="Base URL of the running bot")
    parser.add_argument("--skip-health", action="store_true", help="Skip the pre-flight health check")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")

    if not args.skip_health and not asyncio.run(check_health()):
        print("\n❌ Pre-flight check failed. Is the server running?")
        sys.exit(1)

    summary = asyncio.run(run_simulation(args.sessions))
    sys.exit(0 if summary["failed"] == 0 else 1)
