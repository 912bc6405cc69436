"""Package metadata and public API for tailwatch.

The version is read from importlib.metadata so that an editable install or
wheel always reports the version declared in pyproject.toml, with a
hardcoded fallback for direct source usage without installation.
"""

from __future__ import annotations

from importlib import metadata as _metadata

from .config import DEFAULT_POLL_INTERVAL, TailConfig
from .errors import Dying, InvalidConfigError, TailError, WatcherError
from .tail import Line, Tail, tail, tail_file

__all__ = [
	"__version__",
	"DEFAULT_POLL_INTERVAL",
	"Dying",
	"InvalidConfigError",
	"Line",
	"Tail",
	"TailConfig",
	"TailError",
	"WatcherError",
	"tail",
	"tail_file",
]

_FALLBACK_VERSION = "0.1.0"  # MUST match pyproject.toml [project].version

try:  # pragma: no cover - success path covered indirectly via CLI test
	__version__ = _metadata.version("tailwatch")  # type: ignore[assignment]
except _metadata.PackageNotFoundError:  # pragma: no cover - metadata missing
	__version__ = _FALLBACK_VERSION
