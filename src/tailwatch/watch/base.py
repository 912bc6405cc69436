from __future__ import annotations

import os
from typing import Protocol

from ..lifecycle import Lifecycle
from .changes import FileChanges


class FileWatcher(Protocol):  # pragma: no cover - simple protocol
    """Detects changes to one path on behalf of a tail driver."""

    def block_until_exists(self, lifecycle: Lifecycle) -> None:
        """Return once the path exists; raise ``Dying`` if stopped first."""
        ...

    def change_events(self, lifecycle: Lifecycle, origin: os.stat_result) -> FileChanges:
        """Start watching the file identified by ``origin`` (an fstat of the open handle)."""
        ...


__all__ = ["FileWatcher"]
