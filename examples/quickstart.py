#!/usr/bin/env python3
"""
HouseSync Quickstart — check a running server and read its live state.

Run with: python examples/quickstart.py

Requires: pip install httpx
Server must be running: housesync serve  (http://localhost:8000)
"""

import sys

import httpx

BASE = "http://localhost:8000/api/v1"


def main():
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Health check ──────────────────────────────────────────────
    print("Checking server health...")
    try:
        resp = client.get("/health")
    except httpx.ConnectError:
        print(f"Server not reachable at {BASE}")
        print("Start it with:  housesync serve")
        sys.exit(1)
    health = resp.json()
    print(f"  Status:  {health['status']}")
    print(f"  Redis:   {health['redis']}")
    print(f"  Backend: {health['backend']}")

    # ── Realtime status ───────────────────────────────────────────
    print("\n1. Realtime connection...")
    status = client.get("/realtime/status").json()
    print(f"   {status['label']}  ({status['active_subscriptions']} channel(s))")
    if status["is_demo"]:
        print("   Demo mode: data is loaded once, no live updates")

    # ── Leaderboard ───────────────────────────────────────────────
    print("\n2. Leaderboard...")
    board = client.get("/leaderboard").json()
    for rank, house in enumerate(board["houses"], start=1):
        print(f"   {rank}. {house['name']:20s} {house['total_points']:>6}")
    if board["stale"]:
        print(f"   (may be out of date: {board['last_error']})")

    print("\nDone. Try: housesync emit houses UPDATE --new '{\"id\": \"h3\", \"total_points\": 999}'")


if __name__ == "__main__":
    main()
