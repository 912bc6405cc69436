"""Stat-polling file watcher.

Works everywhere (network filesystems, containers without inotify) at the
cost of one ``os.stat`` per interval and up to one interval of latency.
"""
from __future__ import annotations

import os
import threading
from typing import Optional

from ..config import DEFAULT_POLL_INTERVAL
from ..errors import Dying, WatcherError
from ..lifecycle import Lifecycle
from ..logutil import get_logger
from .changes import FileChanges

logger = get_logger()


class PollingFileWatcher:
    def __init__(self, filename: str, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.filename = filename
        self.interval = interval
        self.size = 0

    def block_until_exists(self, lifecycle: Lifecycle) -> None:
        while True:
            try:
                os.stat(self.filename)
                return
            except FileNotFoundError:
                pass
            if lifecycle.wait_stopping(self.interval):
                raise Dying()

    def change_events(self, lifecycle: Lifecycle, origin: os.stat_result) -> FileChanges:
        changes = FileChanges()
        self.size = origin.st_size
        thread = threading.Thread(
            target=self._poll,
            args=(lifecycle, changes, origin),
            name=f"tailwatch-poll:{self.filename}",
            daemon=True,
        )
        changes.on_cancel(thread.join)
        thread.start()
        logger.debug("polling %s every %.3fs", self.filename, self.interval)
        return changes

    def _poll(self, lifecycle: Lifecycle, changes: FileChanges, origin: os.stat_result) -> None:
        prev_size = self.size
        # None forces one "modified" on the first wake so that writes racing the
        # origin snapshot are still picked up.
        prev_mtime: Optional[int] = None
        try:
            while not changes.wait_cancelled(self.interval):
                if lifecycle.stopping:
                    return
                try:
                    st = os.stat(self.filename)
                except FileNotFoundError:
                    changes.notify_deleted()
                    return

                # Renamed away and replaced by a new file?
                if not os.path.samestat(origin, st):
                    changes.notify_deleted()
                    return

                self.size = st.st_size
                if self.size < prev_size:
                    prev_size = self.size
                    changes.notify_truncated()
                    continue
                prev_size = self.size

                if st.st_mtime_ns != prev_mtime:
                    prev_mtime = st.st_mtime_ns
                    changes.notify_modified()
        except OSError as exc:
            logger.error("polling %s failed: %s", self.filename, exc)
            err = WatcherError(f"Failed to stat {self.filename}: {exc}")
            err.__cause__ = exc
            changes.close(err)
        finally:
            changes.close()


__all__ = ["PollingFileWatcher"]
