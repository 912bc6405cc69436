"""Change notifier handed from a file watcher to the tail driver."""
from __future__ import annotations

import enum
import threading
from typing import Callable, List, Optional

from ..lifecycle import Lifecycle


class ChangeKind(enum.Enum):
    MODIFIED = "modified"
    TRUNCATED = "truncated"
    DELETED = "deleted"


class FileChanges:
    """Coalescing carrier of modified/truncated signals, closed on deletion.

    Producers never block: repeated signals of one kind collapse into a single
    pending flag, because the reader only needs to know that it should look at
    the file again. Closing is itself the deletion signal; a watcher that
    fails closes the carrier with ``error`` set.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._modified = False
        self._truncated = False
        self._closed = False
        self._error: Optional[BaseException] = None
        self._cancelled = threading.Event()
        self._cleanups: List[Callable[[], None]] = []

    # producer side

    def notify_modified(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._modified = True
            self._cond.notify_all()

    def notify_truncated(self) -> None:
        with self._cond:
            if self._closed:
                return
            self._truncated = True
            self._cond.notify_all()

    def notify_deleted(self) -> None:
        self.close()

    def close(self, error: Optional[BaseException] = None) -> None:
        with self._cond:
            if error is not None and self._error is None and not self._closed:
                self._error = error
            self._closed = True
            self._cond.notify_all()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def wait_cancelled(self, timeout: Optional[float] = None) -> bool:
        return self._cancelled.wait(timeout)

    def on_cancel(self, cleanup: Callable[[], None]) -> None:
        """Register how to tear the producing task down; run by :meth:`cancel`."""
        self._cleanups.append(cleanup)

    # consumer side

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def error(self) -> Optional[BaseException]:
        with self._cond:
            return self._error

    def wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def wait(self, lifecycle: Lifecycle) -> Optional[ChangeKind]:
        """Block for the next signal; None when the lifecycle is stopping.

        Pending truncation is reported before modification, and both before
        the closing DELETED so that nothing written before a rotation is
        skipped.
        """
        lifecycle.add_stop_callback(self.wake)
        try:
            with self._cond:
                while True:
                    if lifecycle.stopping:
                        return None
                    if self._truncated:
                        self._truncated = False
                        self._modified = False
                        return ChangeKind.TRUNCATED
                    if self._modified:
                        self._modified = False
                        return ChangeKind.MODIFIED
                    if self._closed:
                        return ChangeKind.DELETED
                    self._cond.wait()
        finally:
            lifecycle.remove_stop_callback(self.wake)

    def cancel(self) -> None:
        """Stop the producing task and wait until it has exited."""
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        self.close()
        cleanups, self._cleanups = self._cleanups, []
        for cleanup in cleanups:
            cleanup()


__all__ = ["ChangeKind", "FileChanges"]
