"""
Query cache shared by the client contexts.

Entries are keyed (usually by request path) and carry tags. Concurrent
``fetch`` calls for the same key share one loader call. ``invalidate(tag)``
drops every entry with the tag and fences loads already in flight, so a
response that was requested before the invalidation is handed to its waiters
but never stored.
"""
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from .errors import is_retryable

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("value", "tags")

    def __init__(self, value: Any, tags: frozenset):
        self.value = value
        self.tags = tags


class _Load:
    __slots__ = ("tags", "done", "value", "error", "stale")

    def __init__(self, tags: frozenset):
        self.tags = tags
        self.done = threading.Event()
        self.value = None
        self.error: Optional[BaseException] = None
        self.stale = False


class QueryCache:
    def __init__(self, retry: int = 1):
        self.retry = retry
        self._lock = threading.Lock()
        self._entries: Dict[str, _Entry] = {}
        self._loads: Dict[str, _Load] = {}

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            return default if entry is None else entry.value

    def set(self, key: str, value: Any, tags: Iterable[str] = ()) -> None:
        with self._lock:
            self._entries[key] = _Entry(value, frozenset(tags))

    def fetch(self, key: str, loader: Callable[[], Any], tags: Iterable[str] = ()) -> Any:
        """Return the cached value for ``key``, loading it at most once."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                return entry.value
            load = self._loads.get(key)
            owner = load is None
            if owner:
                load = self._loads[key] = _Load(frozenset(tags))

        if not owner:
            load.done.wait()
            if load.error is not None:
                raise load.error
            return load.value

        try:
            load.value = self._run(key, loader)
        except Exception as e:
            load.error = e
            raise
        else:
            with self._lock:
                if not load.stale:
                    self._entries[key] = _Entry(load.value, load.tags)
            return load.value
        finally:
            with self._lock:
                if self._loads.get(key) is load:
                    del self._loads[key]
            load.done.set()

    def _run(self, key: str, loader: Callable[[], Any]) -> Any:
        attempt = 0
        while True:
            try:
                return loader()
            except Exception as e:
                if attempt >= self.retry or not is_retryable(e):
                    raise
                attempt += 1
                logger.info("Retrying %s after %s", key, e)

    def invalidate(self, tag: str) -> int:
        """Drop every entry tagged ``tag``; returns how many were dropped."""
        with self._lock:
            dropped = [k for k, e in self._entries.items() if tag in e.tags]
            for key in dropped:
                del self._entries[key]
            for key, load in list(self._loads.items()):
                if tag in load.tags:
                    load.stale = True
                    del self._loads[key]
        return len(dropped)

    def invalidate_key(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
            load = self._loads.pop(key, None)
            if load is not None:
                load.stale = True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            for load in self._loads.values():
                load.stale = True
            self._loads.clear()
