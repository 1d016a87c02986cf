"""
Bounded blocking queue shared by producer threads and the dispatch worker.

- ``put`` blocks while the queue is full (backpressure, never drop)
- ``get`` blocks while the queue is empty
- ``close`` wakes everybody: further ``put`` calls fail, ``get`` keeps handing
  out what is left and raises ``QueueClosedError`` once empty

A ``deque`` guarded by a single ``threading.Condition`` keeps FIFO order across
any number of producers.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, TypeVar

from .errors import QueueClosedError

T = TypeVar("T")


class BoundedQueue(Generic[T]):
    """Fixed-capacity FIFO queue with blocking put/get."""

    def __init__(self, capacity: int) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = capacity
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def qsize(self) -> int:
        return len(self._items)

    def empty(self) -> bool:
        return not self._items

    def full(self) -> bool:
        return len(self._items) >= self._capacity

    def put(self, item: T) -> bool:
        """Append ``item``, waiting for space if needed.

        Returns True if the call had to wait for space.

        Raises:
            QueueClosedError: If the queue is (or becomes) closed.
        """
        waited = False
        with self._cond:
            while len(self._items) >= self._capacity and not self._closed:
                waited = True
                self._cond.wait()
            if self._closed:
                raise QueueClosedError("queue is closed")
            self._items.append(item)
            self._cond.notify_all()
        return waited

    def try_put(self, item: T) -> bool:
        """Append ``item`` only if there is room right now."""
        with self._cond:
            if self._closed or len(self._items) >= self._capacity:
                return False
            self._items.append(item)
            self._cond.notify_all()
        return True

    def get(self, timeout: float | None = None) -> T:
        """Remove and return the oldest item, waiting while empty.

        Raises:
            QueueClosedError: If the queue is closed and drained.
            TimeoutError: If ``timeout`` elapses with nothing to return.
        """
        with self._cond:
            if not self._cond.wait_for(
                lambda: self._items or self._closed, timeout=timeout
            ):
                raise TimeoutError("no item available")
            if not self._items:
                raise QueueClosedError("queue is closed")
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def reopen(self) -> None:
        with self._cond:
            self._closed = False
            self._cond.notify_all()
