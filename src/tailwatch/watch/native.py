"""File watcher driven by OS change notification (inotify, FSEvents, kqueue,
ReadDirectoryChangesW) through the watchdog library.

The parent directory is watched rather than the file itself: deletion and
rename are only reported at directory granularity by several back-ends, and
the directory watch keeps working when the file is replaced under the same
name. Truncation is not reported as such and is inferred from the size.
"""
from __future__ import annotations

import os
import threading
from typing import Optional, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..config import DEFAULT_POLL_INTERVAL
from ..errors import Dying, WatcherError
from ..lifecycle import Lifecycle
from ..logutil import get_logger
from .changes import FileChanges

logger = get_logger()

_CHANGE_EVENTS = {"modified", "created", "deleted", "moved"}


def _event_paths(event: FileSystemEvent) -> Tuple[str, str]:
    src = os.path.abspath(os.fsdecode(event.src_path))
    dest = getattr(event, "dest_path", "") or ""
    if dest:
        dest = os.path.abspath(os.fsdecode(dest))
    return src, dest


class _CreationHandler(FileSystemEventHandler):
    def __init__(self, path: str, appeared: threading.Event) -> None:
        super().__init__()
        self.path = path
        self.appeared = appeared

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        src, dest = _event_paths(event)
        if (event.event_type == "created" and src == self.path) or (
            event.event_type == "moved" and dest == self.path
        ):
            self.appeared.set()


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, path: str, changes: FileChanges, origin: os.stat_result) -> None:
        super().__init__()
        self.path = path
        self.changes = changes
        self.origin = origin
        self.size = origin.st_size
        # inspect() runs on the observer thread and once on the arming thread
        self._lock = threading.Lock()

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        src, dest = _event_paths(event)
        if self.path not in (src, dest):
            return
        if event.event_type in ("deleted", "moved") and src == self.path:
            self.changes.notify_deleted()
            return
        self.inspect()

    def inspect(self) -> None:
        """Translate the current state of the path into one signal."""
        with self._lock:
            self._inspect()

    def _inspect(self) -> None:
        try:
            st = os.stat(self.path)
        except FileNotFoundError:
            self.changes.notify_deleted()
            return
        except OSError as exc:
            logger.error("stat of %s failed: %s", self.path, exc)
            err = WatcherError(f"Failed to stat {self.path}: {exc}")
            err.__cause__ = exc
            self.changes.close(err)
            return
        if not os.path.samestat(self.origin, st):
            self.changes.notify_deleted()
            return
        if st.st_size < self.size:
            self.size = st.st_size
            self.changes.notify_truncated()
            return
        self.size = st.st_size
        self.changes.notify_modified()


def _shutdown(observer: Observer) -> None:
    observer.stop()
    observer.join()


class NativeFileWatcher:
    def __init__(self, filename: str, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        self.filename = filename
        self.path = os.path.abspath(filename)
        self.directory = os.path.dirname(self.path)
        # Only used as a safety-net re-check while waiting for creation.
        self.interval = interval

    def _start_observer(self, handler: FileSystemEventHandler) -> Observer:
        observer = Observer()
        observer.daemon = True
        try:
            observer.schedule(handler, self.directory, recursive=False)
            observer.start()
        except OSError as exc:
            raise WatcherError(f"Unable to watch {self.directory}: {exc}") from exc
        return observer

    def block_until_exists(self, lifecycle: Lifecycle) -> None:
        appeared = threading.Event()
        lifecycle.add_stop_callback(appeared.set)
        observer: Optional[Observer] = None
        try:
            while True:
                if lifecycle.stopping:
                    raise Dying()
                # The parent directory may itself not exist yet.
                if observer is None and os.path.isdir(self.directory):
                    observer = self._start_observer(_CreationHandler(self.path, appeared))
                try:
                    os.stat(self.path)
                    return
                except FileNotFoundError:
                    pass
                appeared.wait(self.interval)
                appeared.clear()
        finally:
            lifecycle.remove_stop_callback(appeared.set)
            if observer is not None:
                _shutdown(observer)

    def change_events(self, lifecycle: Lifecycle, origin: os.stat_result) -> FileChanges:
        changes = FileChanges()
        handler = _ChangeHandler(self.path, changes, origin)
        try:
            observer = self._start_observer(handler)
        except WatcherError as exc:
            logger.error("%s", exc)
            changes.close(exc)
            return changes
        changes.on_cancel(lambda: _shutdown(observer))
        logger.debug("watching %s for changes", self.path)
        # Catch anything that happened between the reader's EOF and the watch.
        handler.inspect()
        return changes


__all__ = ["NativeFileWatcher"]
