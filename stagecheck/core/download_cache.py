"""Get-or-compute-once cache for downloaded staging repositories.

The first caller for a key installs a pending ``Future`` and runs the
computation outside the lock. Concurrent callers for the same key wait on
that future. A failed computation is delivered to every waiter and the key
is dropped, so a later call starts over.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class DownloadCache(Generic[K, V]):
    """Thread-safe at-most-once value cache; entries are never evicted."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[K, Future[V]] = {}

    def get_or_compute(self, key: K, compute: Callable[[], V]) -> V:
        """Return the value for *key*, running *compute* only if absent.

        Exceptions raised by *compute* propagate to the caller that ran it
        and to every caller waiting on the same key.
        """
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future

        if not owner:
            logger.debug("Waiting for cached entry %s", key)
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                self._entries.pop(key, None)
            future.set_exception(exc)
            raise
        future.set_result(value)
        return value

    def get(self, key: K) -> V | None:
        """Return a completed, successful entry or ``None``."""
        with self._lock:
            future = self._entries.get(key)
        if future is None or not future.done() or future.exception() is not None:
            return None
        return future.result()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
