"""
Lunch Rush Simulation Script

Opens many ordering sessions at once against a running server and walks
each one through the full flow: add a dish, type the fields, submit.
Run from project root: python scripts/simulate.py

Version: 1.0.0
"""

import argparse
import asyncio
import random
import sys
import time
from datetime import datetime
from typing import Any

import httpx

# Windows event loop fix
if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

API_BASE_URL = "http://localhost:8001"
TOTAL_SESSIONS = 50

FIRST_NAMES = ["João", "Maria", "José", "Ana", "Antônio", "Luíza", "Carlos", "Fernanda", "Paulo", "Márcia"]
LAST_NAMES = ["Silva", "Santos", "Oliveira", "Souza", "Conceição", "Pereira", "Gonçalves", "Araújo"]
NOTES = ["", "Sem cebola, por favor.", "Pouco sal!", "Retiro às 12h", "Sem pimenta"]


def generate_random_submitter() -> dict[str, str]:
    """Generate random customer fields that pass validation."""
    return {
        "name": f"{random.choice(FIRST_NAMES)} {random.choice(LAST_NAMES)}",
        "registration": f"{random.randint(0, 9999):04d}",
        "notes": random.choice(NOTES),
    }


async def fetch_optional_dishes(client: httpx.AsyncClient) -> list[str]:
    """Ids of every optional dish on the weekly menu."""
    response = await client.get(f"{API_BASE_URL}/api/menu", timeout=30.0)
    response.raise_for_status()
    return [
        dish["id"]
        for day in response.json()["days"]
        for dish in day["optional"]
    ]


async def run_session(
    client: httpx.AsyncClient,
    session_num: int,
    dish_ids: list[str],
) -> dict[str, Any]:
    """Drive one customer from an empty session to a submitted order."""
    start_time = time.time()

    try:
        response = await client.post(f"{API_BASE_URL}/api/sessions", timeout=30.0)
        response.raise_for_status()
        session_id = response.json()["session_id"]

        for dish_id in random.sample(dish_ids, k=random.randint(1, min(2, len(dish_ids)))):
            await client.post(
                f"{API_BASE_URL}/api/sessions/{session_id}/cart",
                json={"item_id": dish_id},
                timeout=30.0,
            )

        await client.patch(
            f"{API_BASE_URL}/api/sessions/{session_id}/submitter",
            json=generate_random_submitter(),
            timeout=30.0,
        )

        response = await client.post(
            f"{API_BASE_URL}/api/sessions/{session_id}/orders",
            timeout=30.0,
        )
        elapsed = round(time.time() - start_time, 3)
        data = response.json()

        # Leave the page
        await client.delete(f"{API_BASE_URL}/api/sessions/{session_id}", timeout=30.0)

        return {
            "session_num": session_num,
            "success": data.get("success", False),
            "order_id": data.get("order_id"),
            "state": data.get("state"),
            "error": None if data.get("success") else data.get("notice", {}).get("message"),
            "time": elapsed,
        }
    except httpx.HTTPError as e:
        elapsed = round(time.time() - start_time, 3)
        return {
            "session_num": session_num,
            "success": False,
            "state": "http_error",
            "error": str(e)[:100],
            "time": elapsed,
        }


async def run_simulation(num_sessions: int = TOTAL_SESSIONS) -> dict[str, Any]:
    """
    Run the lunch rush simulation.

    Args:
        num_sessions: Number of concurrent customers
    """
    print("=" * 70)
    print("LUNCH RUSH SIMULATION")
    print("=" * 70)
    print(f"Sessions: {num_sessions}")
    print(f"Target: {API_BASE_URL}")
    print(f"Started: {datetime.now().strftime('%H:%M:%S')}")
    print("=" * 70)

    start_time = time.time()

    async with httpx.AsyncClient() as client:
        status = (await client.get(f"{API_BASE_URL}/api/status")).json()
        if not status.get("is_open"):
            print(
                f"\nOrdering is closed "
                f"({status.get('opening_time')} - {status.get('closing_time')}), "
                f"submissions will be refused."
            )

        dish_ids = await fetch_optional_dishes(client)
        if not dish_ids:
            print("\nNo optional dishes on the menu, nothing to order.")
            return {"total": num_sessions, "successful": 0, "failed": num_sessions, "results": []}

        tasks = [run_session(client, i + 1, dish_ids) for i in range(num_sessions)]
        results = await asyncio.gather(*tasks)

    total_time = round(time.time() - start_time, 2)

    successful = [r for r in results if r["success"]]
    failed = [r for r in results if not r["success"]]

    print("\n" + "=" * 70)
    print("SIMULATION RESULTS")
    print("=" * 70)
    print(f"\nCommitted orders: {len(successful)}/{num_sessions}")
    print(f"Failed sessions: {len(failed)}/{num_sessions}")
    print(f"Total time: {total_time}s")

    if successful:
        avg_time = round(sum(r["time"] for r in successful) / len(successful), 3)
        print(f"\nAverage session: {avg_time}s")
        print(f"Fastest: {min(r['time'] for r in successful)}s")
        print(f"Slowest: {max(r['time'] for r in successful)}s")

    if failed:
        print("\nFailed session details (showing first 5):")
        for f in failed[:5]:
            print(f"   Session #{f['session_num']} [{f.get('state')}]: {f.get('error')}")

    print("\n" + "=" * 70)
    print("Next: run python scripts/verify.py once the Celery worker is idle")
    print("=" * 70)

    return {
        "total": num_sessions,
        "successful": len(successful),
        "failed": len(failed),
        "total_time": total_time,
        "results": results,
    }


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Lunch Rush Simulation Script")
    parser.add_argument("--sessions", type=int, default=TOTAL_SESSIONS, help="Number of customers")
    parser.add_argument("--url", default=API_BASE_URL, help="Server base URL")
    args = parser.parse_args()

    API_BASE_URL = args.url.rstrip("/")
    asyncio.run(run_simulation(args.sessions))
