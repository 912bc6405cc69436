"""File change detection strategies used by the tail engine."""
from __future__ import annotations

from .base import FileWatcher
from .changes import ChangeKind, FileChanges
from .native import NativeFileWatcher
from .polling import PollingFileWatcher


def new_watcher(filename: str, poll: bool, interval: float) -> FileWatcher:
    if poll:
        return PollingFileWatcher(filename, interval)
    return NativeFileWatcher(filename, interval)


__all__ = [
    "ChangeKind",
    "FileChanges",
    "FileWatcher",
    "NativeFileWatcher",
    "PollingFileWatcher",
    "new_watcher",
]
