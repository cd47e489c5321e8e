#!/usr/bin/env python3
"""
Live leaderboard in-process — the sync layer without the API server.

Builds the runtime, starts a HousePointsSynchronizer, then publishes a
points change on the Redis change stream and prints the re-sorted list.

Run with: python examples/live_points.py
Requires: Redis at HOUSESYNC_REDIS_URL (default redis://localhost:6379/0)
"""

import asyncio

from housesync.log_config import configure_logging
from housesync.notifications import LogNotificationPublisher
from housesync.realtime.redis_backend import publish_change
from housesync.runtime import build_runtime
from housesync.sync import HousePointsSynchronizer


def show(sync: HousePointsSynchronizer) -> None:
    for house in sync.houses:
        marker = " *" if house["id"] == sync.animating_id else ""
        print(f"  {house['name']:20s} {house['total_points']:>6}{marker}")


async def main():
    configure_logging("WARNING")
    runtime = await build_runtime()
    if runtime.manager.is_demo:
        print("Demo mode: no live channel, the list will not change.")

    async with HousePointsSynchronizer(
        runtime.manager, runtime.data, notifier=LogNotificationPublisher()
    ) as sync:
        print("Initial leaderboard:")
        show(sync)

        last = sync.houses[-1]
        print(f"\nGiving {last['name']} 100 points...")
        if runtime.redis_available:
            await publish_change(
                runtime.redis,
                "houses",
                "UPDATE",
                new={**last, "total_points": last["total_points"] + 100},
                old={"id": last["id"], "total_points": last["total_points"]},
                schema=runtime.settings.schema_name,
            )
        await asyncio.sleep(0.5)

        print("\nAfter update:")
        show(sync)

    await runtime.aclose()


if __name__ == "__main__":
    asyncio.run(main())
