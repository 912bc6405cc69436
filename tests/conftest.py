import queue
import time

import pytest


def _read_lines(t, n, timeout=2.0):
    """Collect up to n line texts from a Tail, stopping early if the stream closes."""
    out = []
    deadline = time.time() + timeout
    while len(out) < n:
        remaining = deadline - time.time()
        if remaining <= 0:
            break
        try:
            line = t.lines.get(timeout=remaining)
        except queue.Empty:
            break
        if line is None:
            break
        out.append(line.text)
    return out


def _drain(t, timeout=2.0):
    """Read until the stream closes; fail if it stays open past the timeout."""
    out = []
    deadline = time.time() + timeout
    while True:
        remaining = deadline - time.time()
        assert remaining > 0, f"stream still open; got {out}"
        try:
            line = t.lines.get(timeout=remaining)
        except queue.Empty:
            continue
        if line is None:
            return out
        out.append(line.text)


@pytest.fixture
def read_lines():
    return _read_lines


@pytest.fixture
def drain():
    return _drain
