"""Cache entries and the per-loader cache table."""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lazyloader.config import LoaderConfig
from lazyloader.errors import LoadError


if TYPE_CHECKING:
    from lazyloader.loading.proxy import LazyProxy


@dataclass
class CacheEntry:
    """State of one (config, module name) combination.

    `name`, `origin_name`, `base` and `config` are fixed when the entry is
    created and never recomputed. `loaded` is set after the first fetch
    whether or not it succeeded; a failed fetch leaves `error` set instead of
    `resource`.
    """

    name: str
    origin_name: str
    base: str
    config: LoaderConfig
    loaded: bool = False
    resource: Any = None
    error: LoadError | None = None
    proxy: "LazyProxy | None" = None


class CacheTable:
    """Mapping of cache key to entry, with a lock per key for single-flight loads."""

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}
        self._key_locks: dict[str, threading.RLock] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> CacheEntry | None:
        return self._entries.get(key)

    def get_or_create(self, key: str, factory: Callable[[], CacheEntry]) -> CacheEntry:
        """Return the entry at `key`, creating it with `factory` if absent."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = factory()
                self._entries[key] = entry
            return entry

    def pop(self, key: str) -> CacheEntry | None:
        with self._lock:
            self._key_locks.pop(key, None)
            return self._entries.pop(key, None)

    def pop_matching(self, key_prefix: str | None) -> list[tuple[str, CacheEntry]]:
        """Remove and return every entry whose key starts with `key_prefix`.

        None matches every entry.
        """
        with self._lock:
            matched = [
                (key, entry)
                for key, entry in self._entries.items()
                if key_prefix is None or key.startswith(key_prefix)
            ]
            for key, _ in matched:
                del self._entries[key]
                self._key_locks.pop(key, None)
        return matched

    def key_lock(self, key: str) -> threading.RLock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = self._key_locks[key] = threading.RLock()
            return lock

    def items(self) -> list[tuple[str, CacheEntry]]:
        with self._lock:
            return list(self._entries.items())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
