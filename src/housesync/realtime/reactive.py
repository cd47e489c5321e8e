"""A value that tells its watchers when it changes."""

from typing import Callable, Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class ReactiveValue(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._watchers: list[Callable[[T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        """Store a new value; watchers only hear about actual changes."""
        if value == self._value:
            return
        self._value = value
        for watcher in list(self._watchers):
            try:
                watcher(value)
            except Exception:
                logger.exception("reactive.watcher_failed")

    def watch(self, watcher: Callable[[T], None]) -> Callable[[], None]:
        """Register a watcher. Returns a function that removes it."""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def __repr__(self) -> str:
        return f"ReactiveValue({self._value!r})"
