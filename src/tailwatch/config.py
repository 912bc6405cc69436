from dataclasses import dataclass

from .errors import InvalidConfigError

# Seconds between stat calls of the polling watcher; also the retry interval
# while waiting for a missing file to appear.
DEFAULT_POLL_INTERVAL = 0.25


@dataclass(frozen=True)
class TailConfig:
    # Start position: >0 absolute byte offset, 0 end of file, -N byte offset N-1
    location: int = 0
    # Keep reading past end of file (tail -f)
    follow: bool = False
    # Follow a newly created file after deletion/rotation (tail -F); needs follow
    reopen: bool = False
    # Fail synchronously if the file does not exist at start
    must_exist: bool = False
    # Use the stat-polling watcher instead of OS change notification
    poll: bool = False
    # Split longer lines into fragments of this many characters (0 disables)
    max_line_size: int = 0
    poll_interval: float = DEFAULT_POLL_INTERVAL
    # Output stream capacity; 0 means unbounded
    buffer_size: int = 1024
    # Decoding of raw line bytes; surrogateescape keeps undecodable bytes recoverable
    encoding: str = "utf-8"
    errors: str = "surrogateescape"

    def validate(self) -> None:
        if self.reopen and not self.follow:
            raise InvalidConfigError("cannot set reopen without follow")
        if self.poll_interval <= 0:
            raise InvalidConfigError(f"poll_interval must be positive, got {self.poll_interval!r}")
        if self.buffer_size < 0:
            raise InvalidConfigError(f"buffer_size must be >= 0, got {self.buffer_size!r}")

    def seek_target(self) -> tuple[int, int]:
        """Return the (offset, whence) pair for the first open of the file."""
        if self.location > 0:
            return self.location, 0
        if self.location < 0:
            return -self.location - 1, 0
        return 0, 2


__all__ = ["TailConfig", "DEFAULT_POLL_INTERVAL"]
