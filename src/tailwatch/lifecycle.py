"""Cooperative stop/join handle shared by a driver thread and its helpers.

One owner thread calls :meth:`Lifecycle.mark_done` on every exit path; any
thread may call :meth:`Lifecycle.request_stop`. Threads that block on their
own primitives (conditions, observers) register a wake-up callback so that a
stop request interrupts them immediately instead of after a timeout.
"""
from __future__ import annotations

import threading
from typing import Callable, List, Optional


class Lifecycle:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dying = threading.Event()
        self._dead = threading.Event()
        self._err: Optional[BaseException] = None
        self._callbacks: List[Callable[[], None]] = []

    def request_stop(self, err: Optional[BaseException] = None) -> None:
        """Ask the owner to stop, optionally recording why.

        Idempotent and non-blocking. The first non-None error wins; errors
        reported after the owner finished are ignored.
        """
        with self._lock:
            if err is not None and self._err is None and not self._dead.is_set():
                self._err = err
            if self._dying.is_set():
                return
            self._dying.set()
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb()

    @property
    def stopping(self) -> bool:
        return self._dying.is_set()

    def wait_stopping(self, timeout: Optional[float] = None) -> bool:
        """Sleep up to ``timeout`` seconds; True if a stop was requested."""
        return self._dying.wait(timeout)

    def add_stop_callback(self, cb: Callable[[], None]) -> None:
        with self._lock:
            if not self._dying.is_set():
                self._callbacks.append(cb)
                return
        cb()

    def remove_stop_callback(self, cb: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(cb)
            except ValueError:
                pass

    def mark_done(self) -> None:
        with self._lock:
            self._dying.set()
            self._dead.set()
            self._callbacks.clear()

    @property
    def done(self) -> bool:
        return self._dead.is_set()

    @property
    def err(self) -> Optional[BaseException]:
        with self._lock:
            return self._err

    def join(self, timeout: Optional[float] = None) -> Optional[BaseException]:
        """Block until :meth:`mark_done`; return the recorded error, if any."""
        if not self._dead.wait(timeout):
            raise TimeoutError("lifecycle owner did not finish in time")
        return self.err


__all__ = ["Lifecycle"]
