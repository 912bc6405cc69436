"""Follow a file like ``tail -f`` / ``tail -F`` and deliver its lines on a stream.

A :class:`Tail` owns one driver thread, one open file handle at a time and,
while waiting at end of file, one watcher task. Lines are read as raw bytes
so that offsets stay exact; text is decoded per line.
"""
from __future__ import annotations

import dataclasses
import os
import queue
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import BinaryIO, Iterator, List, Optional

from .config import TailConfig
from .errors import Dying, TailError
from .lifecycle import Lifecycle
from .logutil import get_logger
from .stream import LineStream
from .watch import ChangeKind, FileChanges, FileWatcher, new_watcher

logger = get_logger()


@dataclass(frozen=True)
class Line:
    text: str
    time: datetime


def partition_string(s: str, chunk_size: int) -> List[str]:
    """Split ``s`` into consecutive chunks of ``chunk_size``; the last may be shorter."""
    if chunk_size <= 0:
        raise ValueError(f"invalid chunk_size {chunk_size!r}")
    return [s[i:i + chunk_size] for i in range(0, len(s), chunk_size)]


class Tail:
    """A running tail session. Create with :func:`tail_file`.

    Consume ``lines`` until it is exhausted, then call :meth:`wait` to learn
    why the session ended (None for a clean finish or stop).
    """

    def __init__(self, filename: str, config: TailConfig, watcher: Optional[FileWatcher] = None) -> None:
        self.filename = filename
        self.config = config
        self.lines: LineStream[Line] = LineStream(config.buffer_size)
        self.watcher = watcher or new_watcher(filename, config.poll, config.poll_interval)
        self._lifecycle = Lifecycle()
        self._file: Optional[BinaryIO] = None
        self._partial = b""
        self._changes: Optional[FileChanges] = None
        # Set once the watcher reported deletion; the old handle is read to EOF first.
        self._deleted = False
        self._thread: Optional[threading.Thread] = None

    def _start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=f"tailwatch:{self.filename}", daemon=True)
        self._thread.start()

    # public API

    def stop(self) -> Optional[BaseException]:
        """Request a stop and block until the driver thread has exited."""
        self._lifecycle.request_stop()
        return self.wait()

    def wait(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Block until the session ends; return its terminal error, if any."""
        return self._lifecycle.join(timeout)

    @property
    def err(self) -> Optional[BaseException]:
        return self._lifecycle.err

    @property
    def done(self) -> bool:
        return self._lifecycle.done

    def __iter__(self) -> Iterator[Line]:
        return iter(self.lines)

    def __enter__(self) -> "Tail":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"Tail({self.filename!r}, done={self.done})"

    # driver thread

    def _run(self) -> None:
        try:
            self._tail_sync()
        except Exception as exc:  # noqa: BLE001 - recorded and surfaced by wait()
            self._lifecycle.request_stop(exc)
        finally:
            self._close()
            self._lifecycle.mark_done()

    def _close(self) -> None:
        if self._changes is not None:
            self._changes.cancel()
            self._changes = None
        self.lines.close()
        if self._file is not None:
            self._file.close()
            self._file = None

    def _reopen(self) -> bool:
        """Open the file, waiting for it to appear; False if stopped meanwhile."""
        if self._file is not None:
            self._file.close()
            self._file = None
        while True:
            try:
                self._file = open(self.filename, "rb")
                return True
            except FileNotFoundError:
                if not self.config.follow:
                    raise
            except OSError as exc:
                raise TailError(f"Unable to open file {self.filename}: {exc}") from exc
            logger.info("Waiting for %s to appear...", self.filename)
            try:
                self.watcher.block_until_exists(self._lifecycle)
            except Dying:
                return False
            except (OSError, TailError) as exc:
                raise TailError(f"Failed to detect creation of {self.filename}: {exc}") from exc

    def _tail_sync(self) -> None:
        if self._file is None and not self._reopen():
            return

        # Only the first open seeks; a reopened file is new content read from 0.
        offset, whence = self.config.seek_target()
        try:
            self._file.seek(offset, whence)
        except OSError as exc:
            raise TailError(f"Seek error on {self.filename}: {exc}") from exc

        while not self._lifecycle.stopping:
            try:
                raw = self._file.readline()
            except OSError as exc:
                raise TailError(f"Error reading {self.filename}: {exc}") from exc

            if raw.endswith(b"\n"):
                raw, self._partial = self._partial + raw, b""
                if not self._send(raw):
                    return
                continue

            # End of file, possibly in the middle of a line still being written.
            self._partial += raw
            if not self._wait_for_changes():
                return

    def _wait_for_changes(self) -> bool:
        """Block at end of file; True to keep reading, False to finish."""
        if self._deleted:
            return self._finish_deleted()
        if self._changes is None:
            if not self.config.follow:
                self._flush_partial()
                return False
            self._changes = self.watcher.change_events(self._lifecycle, os.fstat(self._file.fileno()))

        event = self._changes.wait(self._lifecycle)
        if event is None:
            return False
        if event is ChangeKind.TRUNCATED:
            self._rewind()
            return True
        if event is ChangeKind.MODIFIED:
            if os.fstat(self._file.fileno()).st_size < self._file.tell():
                self._rewind()
            return True

        changes, self._changes = self._changes, None
        changes.cancel()
        if changes.error is not None:
            raise changes.error
        # An unlinked or renamed file stays readable through our handle.
        self._deleted = True
        return True

    def _finish_deleted(self) -> bool:
        self._deleted = False
        if not self._flush_partial():
            return False
        if not self.config.reopen:
            logger.info("Finishing because file has been moved/deleted: %s", self.filename)
            return False
        logger.info("Re-opening moved/deleted/truncated file %s ...", self.filename)
        if not self._reopen():
            return False
        logger.info("Successfully reopened %s", self.filename)
        return True

    def _rewind(self) -> None:
        logger.debug("%s was truncated; reading from the start", self.filename)
        self._file.seek(0)
        self._partial = b""

    def _flush_partial(self) -> bool:
        if not self._partial:
            return True
        raw, self._partial = self._partial, b""
        return self._send(raw)

    def _send(self, raw: bytes) -> bool:
        if raw.endswith(b"\r\n"):
            raw = raw[:-2]
        elif raw.endswith(b"\n"):
            raw = raw[:-1]
        text = raw.decode(self.config.encoding, self.config.errors)
        now = datetime.now(timezone.utc)
        size = self.config.max_line_size
        parts = partition_string(text, size) if size > 0 and len(text) > size else [text]
        for part in parts:
            if not self.lines.put(Line(part, now), self._lifecycle):
                return False
        return True


def tail_file(filename: str, config: Optional[TailConfig] = None, **overrides: object) -> Tail:
    """Start tailing ``filename`` and return the running session.

    Keyword ``overrides`` replace fields of ``config`` (or of the default
    TailConfig). Raises InvalidConfigError for contradictory settings and
    FileNotFoundError when ``must_exist`` is set and the file is absent;
    otherwise returns immediately with the driver thread running.
    """
    config = config or TailConfig()
    if overrides:
        config = dataclasses.replace(config, **overrides)
    config.validate()
    t = Tail(filename, config)
    if config.must_exist:
        t._file = open(filename, "rb")
    t._start()
    return t


def tail(
    path: str,
    config: Optional[TailConfig] = None,
    stop_event: Optional[threading.Event] = None,
    **overrides: object,
) -> Iterator[str]:
    """Generator front end over :func:`tail_file` yielding line texts.

    Behavior:
    - Defaults to following from the end of file (like `tail -f`); pass a
      config or overrides such as ``reopen=True`` or ``location=-1``.
    - Closing the generator, or setting ``stop_event``, stops the session.
    - A terminal error of the session is raised once all lines were yielded.
    """
    config = config or TailConfig(follow=True)
    t = tail_file(path, config, **overrides)
    try:
        while stop_event is None or not stop_event.is_set():
            try:
                line = t.lines.get(timeout=t.config.poll_interval if stop_event is not None else None)
            except queue.Empty:
                continue
            if line is None:
                break
            yield line.text
    finally:
        err = t.stop()
    if err is not None:
        raise err


__all__ = ["Line", "Tail", "partition_string", "tail", "tail_file"]
