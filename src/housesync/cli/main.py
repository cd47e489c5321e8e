"""HouseSync CLI — probe the backend, watch live lists, emit test changes.

Usage:
    housesync status                              # Backend, Redis and demo-mode probe
    housesync watch chores --player-id p1         # Live chore list for one player
    housesync watch houses                        # Live leaderboard
    housesync emit houses UPDATE --new '{"id": "h1", "total_points": 300}'
    housesync leaderboard                         # Ask a running server
    housesync serve                               # Run the API with uvicorn
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from housesync import __version__
from housesync.config import settings
from housesync.log_config import configure_logging
from housesync.notifications import NotificationPublisher
from housesync.realtime.events import EventKind
from housesync.realtime.redis_backend import connect_redis, publish_change
from housesync.runtime import Runtime, build_runtime
from housesync.sync import (
    ChoresSynchronizer,
    EventsSynchronizer,
    HousePointsSynchronizer,
    WellnessSynchronizer,
)
from housesync.sync.alerts import classify
from housesync.sync.base import DomainSynchronizer

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("HOUSESYNC_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at a running HouseSync server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        # Already inside an event loop (e.g. test runner): run in a thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _json_option(value: Optional[str], name: str) -> Optional[dict]:
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint=name)
    if not isinstance(parsed, dict):
        raise click.BadParameter("must be a JSON object", param_hint=name)
    return parsed


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    # Header
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    # Rows
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    """Map status strings to click colors."""
    colors = {
        "connected": "green",
        "reconnecting": "yellow",
        "disconnected": "red",
        "pending": "white",
        "in_progress": "yellow",
        "completed": "green",
        "high": "red",
        "medium": "yellow",
        "low": "green",
    }
    return colors.get(status, "white")


class EchoNotificationPublisher(NotificationPublisher):
    """Prints notifications inline with the watched list."""

    def publish(self, message: str, category: str) -> None:
        click.secho(f"  [{category}] {message}", fg="cyan")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="housesync")
@click.option("--log-level", default=None, help="Override HOUSESYNC_LOG_LEVEL")
def main(log_level: Optional[str]):
    """HouseSync — real-time chores, events, points and wellness."""
    configure_logging(log_level or settings.log_level, settings.log_json)


# ---------------------------------------------------------------------------
# housesync status
# ---------------------------------------------------------------------------


@main.command()
def status():
    """Probe the backend and Redis, and report whether demo mode is on."""
    _run(_status_impl())


async def _status_impl():
    runtime = await build_runtime(settings)
    try:
        click.secho("HouseSync status", bold=True)
        click.echo()
        configured = runtime.settings.backend_configured
        click.echo(f"  Backend:     {runtime.settings.backend_url or '(not configured)'}")
        if configured:
            healthy = runtime.connection_healthy
            click.echo(
                "  Reachable:   "
                + click.style("yes" if healthy else "no", fg="green" if healthy else "red")
            )
        redis_str = click.style(
            "ok" if runtime.redis_available else "unavailable",
            fg="green" if runtime.redis_available else "red",
        )
        click.echo(f"  Redis:       {redis_str}")
        demo_str = click.style("on" if runtime.manager.is_demo else "off",
                               fg="yellow" if runtime.manager.is_demo else "green")
        click.echo(f"  Demo mode:   {demo_str}")
    finally:
        await runtime.aclose()


# ---------------------------------------------------------------------------
# housesync watch
# ---------------------------------------------------------------------------

_COLUMNS = {
    "chores": [
        ("ID", "id", 8),
        ("Status", "status", 12),
        ("Assigned", "assigned_to", 10),
        ("Deadline", "deadline", 20),
        ("Title", "title", 40),
    ],
    "events": [
        ("ID", "id", 8),
        ("Start", "start_time", 20),
        ("Type", "event_type", 12),
        ("Title", "title", 40),
    ],
    "houses": [
        ("ID", "id", 8),
        ("House", "name", 24),
        ("Points", "total_points", 8),
    ],
    "wellness": [
        ("ID", "id", 8),
        ("Player", "player_name", 24),
        ("Date", "date", 12),
        ("Mood", "mood", 10),
        ("Alert", "alert", 8),
    ],
}


def _build_synchronizer(
    domain: str,
    runtime: Runtime,
    player_id: Optional[str],
    limit: Optional[int],
    notifier: NotificationPublisher,
) -> DomainSynchronizer:
    common = {"notifier": notifier}
    if domain == "chores":
        return ChoresSynchronizer(runtime.manager, runtime.data, player_id=player_id, **common)
    if domain == "events":
        return EventsSynchronizer(runtime.manager, runtime.data, player_id=player_id, **common)
    if domain == "houses":
        return HousePointsSynchronizer(runtime.manager, runtime.data, **common)
    return WellnessSynchronizer(runtime.manager, runtime.data, limit=limit, **common)


def _rows(domain: str, sync: DomainSynchronizer) -> list[dict]:
    if domain != "wellness":
        return sync.items
    return [
        {
            **log,
            "player_name": sync.player_name(log.get("player_id")),
            "alert": classify(log).level,
        }
        for log in sync.items
    ]


@main.command()
@click.argument("domain", type=click.Choice(sorted(_COLUMNS)))
@click.option("--player-id", "-p", help="Scope chores/events to one player")
@click.option("--limit", "-l", type=int, default=None, help="Wellness list size")
@click.option("--duration", "-d", type=float, default=None,
              help="Stop after N seconds (default: run until interrupted)")
def watch(domain: str, player_id: Optional[str], limit: Optional[int],
          duration: Optional[float]):
    """Keep one list in sync and reprint it on every change.

    DOMAIN is one of chores, events, houses, wellness.
    """
    try:
        _run(_watch_impl(domain, player_id, limit, duration))
    except KeyboardInterrupt:
        click.echo()


async def _watch_impl(domain: str, player_id: Optional[str], limit: Optional[int],
                      duration: Optional[float]):
    runtime = await build_runtime(settings)
    sync = _build_synchronizer(domain, runtime, player_id, limit, EchoNotificationPublisher())
    printed = {"items": None}

    def render(s: DomainSynchronizer) -> None:
        # flags and loading toggles notify too; only reprint when the list changed
        if s.loading or s.items is printed["items"]:
            return
        printed["items"] = s.items
        click.echo()
        state = s.connection_state.value
        click.secho(
            f"{domain} ({len(s.items)})  "
            + click.style(s.connection_state.label, fg=_status_color(state))
            + ("  [demo]" if s.is_demo else "")
            + ("  [stale]" if s.stale else ""),
            bold=True,
        )
        _print_table(_rows(domain, s), _COLUMNS[domain])

    sync.add_listener(render)
    stop = asyncio.Event()
    try:
        await sync.start()
        if sync.stale and not sync.items:
            click.secho(f"Could not load {domain}: {sync.last_error}", fg="red", err=True)
        try:
            await asyncio.wait_for(stop.wait(), timeout=duration)
        except asyncio.TimeoutError:
            pass
    finally:
        await sync.stop()
        await runtime.aclose()


# ---------------------------------------------------------------------------
# housesync emit
# ---------------------------------------------------------------------------


@main.command()
@click.argument("table")
@click.argument("event_type", type=click.Choice([k.value for k in EventKind], case_sensitive=False))
@click.option("--new", "new_json", help="New row as a JSON object")
@click.option("--old", "old_json", help="Old row as a JSON object")
@click.option("--schema", default=None, help="Schema name (default: HOUSESYNC_SCHEMA_NAME)")
def emit(table: str, event_type: str, new_json: Optional[str], old_json: Optional[str],
         schema: Optional[str]):
    """Publish a row change to the Redis change stream.

    Handy for driving `housesync watch` without a database.
    """
    new = _json_option(new_json, "--new")
    old = _json_option(old_json, "--old")
    if event_type.upper() != EventKind.DELETE.value and not new:
        raise click.BadParameter("required for INSERT and UPDATE", param_hint="--new")
    _run(_emit_impl(table, event_type.upper(), new, old, schema or settings.schema_name))


async def _emit_impl(table: str, event_type: str, new: Optional[dict], old: Optional[dict],
                     schema: str):
    redis = connect_redis(settings.redis_url)
    try:
        receivers = await publish_change(redis, table, event_type, new, old, schema=schema)
    finally:
        await redis.aclose()
    click.secho(f"{event_type} {schema}.{table} → {receivers} listener(s)", fg="green")


# ---------------------------------------------------------------------------
# housesync leaderboard
# ---------------------------------------------------------------------------


@main.command()
def leaderboard():
    """Show the leaderboard of a running server (HOUSESYNC_API_URL)."""
    _run(_leaderboard_impl())


async def _leaderboard_impl():
    async with _client() as c:
        try:
            r = await c.get("/api/v1/leaderboard")
        except httpx.HTTPError as e:
            click.secho(f"Could not reach {_api_url()}: {e}", fg="red", err=True)
            sys.exit(1)
        r.raise_for_status()
        board = r.json()

    if board.get("stale"):
        click.secho("Leaderboard may be out of date.", fg="yellow")
    if not board["houses"]:
        click.echo("No houses found.")
        return
    _print_table(board["houses"], _COLUMNS["houses"])


# ---------------------------------------------------------------------------
# housesync serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: HOUSESYNC_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: HOUSESYNC_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the status API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "housesync.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
