"""Single-producer, single-consumer closable stream of tail lines."""
from __future__ import annotations

import queue
import threading
import time
from collections import deque
from typing import Deque, Generic, Iterator, Optional, TypeVar

from .lifecycle import Lifecycle

T = TypeVar("T")


class LineStream(Generic[T]):
    """A deque guarded by a condition, closed exactly once by its producer.

    ``put`` applies back-pressure when ``maxsize`` is reached but gives up as
    soon as the producer's lifecycle is stopping, so a consumer that walks
    away never keeps the producer alive.
    """

    def __init__(self, maxsize: int = 0) -> None:
        self.maxsize = maxsize
        self._items: Deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False

    def put(self, item: T, lifecycle: Lifecycle) -> bool:
        """Append ``item``; False (and nothing appended) once stopping or closed."""
        lifecycle.add_stop_callback(self.wake)
        try:
            with self._cond:
                while (
                    self.maxsize > 0
                    and len(self._items) >= self.maxsize
                    and not self._closed
                    and not lifecycle.stopping
                ):
                    self._cond.wait()
                if self._closed or lifecycle.stopping:
                    return False
                self._items.append(item)
                self._cond.notify_all()
                return True
        finally:
            lifecycle.remove_stop_callback(self.wake)

    def wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def close(self) -> bool:
        """Mark the end of the stream; True only for the call that closed it."""
        with self._cond:
            if self._closed:
                return False
            self._closed = True
            self._cond.notify_all()
            return True

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def get(self, timeout: Optional[float] = None) -> Optional[T]:
        """Next item, or None once closed and drained.

        Raises ``queue.Empty`` if ``timeout`` elapses first.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._closed:
                    return None
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise queue.Empty
                self._cond.wait(remaining)
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


__all__ = ["LineStream"]
