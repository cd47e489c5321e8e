"""Domain synchronizer base — cached list + initial load + live merges.

Learn: Every synchronizer follows the same state machine:

    initial (loading=True) ──load()──▶ ready (loading=False, items=fetched)
    ready ──push event──▶ ready (items merged in place, loading untouched)

load() is authoritative and replaces the list wholesale; push events are
cheap local merges that the next load() supersedes. A load() racing a
push event is last-writer-wins on `items`.

Fetch failures never raise out of load(): the error is logged, the
previous list is kept, and `stale` / `last_error` say the data may be old.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Coroutine, Optional

import structlog

from housesync.data.service import DataService
from housesync.notifications import NotificationPublisher, NullNotificationPublisher
from housesync.realtime.binder import SubscriptionBinder
from housesync.realtime.events import ConnectionState
from housesync.realtime.manager import ConnectionManager

logger = structlog.get_logger()


# ─── Record helpers ─────────────────────────────────────────


def find_index(items: list[dict], row_id: Any) -> Optional[int]:
    for i, item in enumerate(items):
        if item.get("id") == row_id:
            return i
    return None


def patch_record(items: list[dict], record: dict) -> list[dict]:
    """Merge `record` into the row with the same id; unknown ids are ignored."""
    return [{**item, **record} if item.get("id") == record.get("id") else item for item in items]


def upsert_record(items: list[dict], record: dict) -> list[dict]:
    """Merge into the row with the same id, or append when it is not cached yet."""
    if find_index(items, record.get("id")) is None:
        return [*items, dict(record)]
    return patch_record(items, record)


def remove_record(items: list[dict], row_id: Any) -> list[dict]:
    return [item for item in items if item.get("id") != row_id]


# ─── Transient flags ────────────────────────────────────────


class TransientFlag:
    """A value that resets to None `duration_ms` after it was last set.

    The reset runs as an explicit asyncio task owned by the synchronizer
    and is cancelled on teardown, so nothing fires after stop().
    """

    def __init__(self, duration_ms: int, on_change: Optional[Callable[[], None]] = None):
        self.duration_ms = duration_ms
        self.value: Any = None
        self._on_change = on_change
        self._task: Optional[asyncio.Task] = None

    def set(self, value: Any) -> None:
        if self._task is not None:
            self._task.cancel()
        self.value = value
        self._task = asyncio.get_running_loop().create_task(self._expire())
        self._changed()

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self.value = None

    async def _expire(self) -> None:
        await asyncio.sleep(self.duration_ms / 1000)
        self._task = None
        self.value = None
        self._changed()

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()


# ─── Synchronizer ───────────────────────────────────────────


class DomainSynchronizer(ABC):
    """Keeps one cached list in sync with a backend table."""

    name = "sync"

    def __init__(
        self,
        manager: ConnectionManager,
        data: DataService,
        *,
        notifier: Optional[NotificationPublisher] = None,
        show_notifications: bool = True,
    ):
        self._manager = manager
        self._data = data
        self._notifier = notifier or NullNotificationPublisher()
        self.show_notifications = show_notifications

        self.items: list[dict] = []
        self.loading = True
        self.last_update: Optional[datetime] = None
        self.stale = False
        self.last_error: Optional[Exception] = None

        self._binders: list[SubscriptionBinder] = []
        self._flags: list[TransientFlag] = []
        self._tasks: set[asyncio.Task] = set()
        self._listeners: list[Callable[["DomainSynchronizer"], None]] = []
        self._started = False

    @abstractmethod
    async def fetch(self) -> list[dict]:
        """Authoritative fetch of the full list."""

    # ─── Lifecycle ──────────────────────────────────────────

    async def start(self) -> None:
        """Initial load, then bind live updates."""
        if self._started:
            return
        self._started = True
        await self.load()
        for binder in self._binders:
            await binder.start()
        logger.info("sync.started", synchronizer=self.name, items=len(self.items))

    async def stop(self) -> None:
        """Tear down channels and timers and evict the cached list."""
        for binder in self._binders:
            await binder.stop()
        for flag in self._flags:
            flag.cancel()

        tasks = list(self._tasks)
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self.items = []
        self._started = False
        logger.info("sync.stopped", synchronizer=self.name)

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    async def load(self, *, background: bool = False) -> None:
        """Replace the cached list with a fresh fetch.

        Background reloads (triggered by push events) leave `loading` alone.
        """
        if not background:
            self.loading = True
            self._notify()
        try:
            items = await self.fetch()
        except Exception as e:
            logger.exception("sync.load_failed", synchronizer=self.name)
            self.stale = True
            self.last_error = e
        else:
            self.items = items
            self.stale = False
            self.last_error = None
            self.last_update = datetime.now(timezone.utc)
        finally:
            self.loading = False
            self._notify()

    # ─── State access ───────────────────────────────────────

    @property
    def connection_state(self) -> ConnectionState:
        return self._manager.connection_state.value

    @property
    def is_demo(self) -> bool:
        return self._manager.is_demo

    def add_listener(self, listener: Callable[["DomainSynchronizer"], None]) -> Callable[[], None]:
        """Call `listener(self)` after every state change. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def snapshot(self) -> dict:
        return {
            "items": list(self.items),
            "loading": self.loading,
            "stale": self.stale,
            "last_error": str(self.last_error) if self.last_error else None,
            "last_update": self.last_update,
        }

    # ─── Helpers for subclasses ─────────────────────────────

    def _bind(self, channel_name: str, table: str, **options) -> SubscriptionBinder:
        binder = SubscriptionBinder(self._manager, channel_name, table, **options)
        self._binders.append(binder)
        return binder

    def _flag(self, duration_ms: int) -> TransientFlag:
        flag = TransientFlag(duration_ms, on_change=self._notify)
        self._flags.append(flag)
        return flag

    def _spawn_reload(self) -> None:
        """Re-fetch in the background without blocking event delivery."""
        self._spawn(self.load(background=True))

    def _spawn(self, coro: Coroutine) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _publish(self, message: str, category: str) -> None:
        if self.show_notifications:
            self._notifier.publish(message, category)

    def _touch(self) -> None:
        self.last_update = datetime.now(timezone.utc)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("sync.listener_failed", synchronizer=self.name)
