class TailError(Exception):
    """Base class for failures that end a tail session."""


class InvalidConfigError(TailError, ValueError):
    """Raised before any thread starts when a TailConfig is self-contradictory."""


class WatcherError(TailError):
    """Unexpected stat or notification failure inside a file watcher."""


class Dying(TailError):
    """A blocking wait was abandoned because the session was asked to stop."""

    def __init__(self, message: str = "tail session is dying") -> None:
        super().__init__(message)


__all__ = ["TailError", "InvalidConfigError", "WatcherError", "Dying"]
