import argparse
import signal
import sys
import threading
from typing import List, Optional

from rich.console import Console
from rich.text import Text

from . import __version__
from .config import DEFAULT_POLL_INTERVAL, TailConfig
from .errors import InvalidConfigError
from .logutil import set_verbosity
from .tail import Tail, tail_file

ConsoleType = Optional[Console]

_print_lock = threading.Lock()


def _maybe_console(args: argparse.Namespace) -> ConsoleType:
    if getattr(args, "no_color", False):
        return None
    return Console(stderr=True, highlight=False)


def _report_error(console: ConsoleType, filename: str, exc: BaseException) -> None:
    with _print_lock:
        if console is not None:
            console.print(Text.assemble((f"{filename}: ", "bold red"), str(exc)))
        else:
            print(f"{filename}: {exc}", file=sys.stderr, flush=True)


def args_to_config(args: argparse.Namespace) -> TailConfig:
    return TailConfig(
        location=args.lines,
        follow=args.follow or args.reopen,
        reopen=args.reopen,
        must_exist=args.must_exist,
        poll=args.poll,
        max_line_size=args.max_line_size,
        poll_interval=args.poll_interval,
    )


def print_lines(t: Tail, console: ConsoleType, failures: List[str]) -> None:
    """Print every line of one session; record its file in ``failures`` if it ended with an error."""
    for line in t.lines:
        with _print_lock:
            sys.stdout.write(line.text + "\n")
            sys.stdout.flush()
    err = t.wait()
    if err is not None:
        _report_error(console, t.filename, err)
        failures.append(t.filename)


def cmd_tail(args: argparse.Namespace) -> int:
    console = _maybe_console(args)
    if not args.files:
        print("need one or more files as arguments")
        return 1
    try:
        config = args_to_config(args)
        config.validate()
    except InvalidConfigError as exc:
        print(f"[tailwatch] {exc}", file=sys.stderr)
        return 2

    sessions: List[Tail] = []
    failures: List[str] = []
    workers: List[threading.Thread] = []

    # Install SIGTERM handler so external terminate() triggers a clean stop
    _old_sigterm = None
    def _sigterm_handler(signum, frame):  # pragma: no cover - exercised indirectly
        raise KeyboardInterrupt
    try:
        _old_sigterm = signal.signal(signal.SIGTERM, _sigterm_handler)
    except ValueError:  # pragma: no cover - not on the main thread
        _old_sigterm = None

    try:
        # Sessions are created here so that an interrupt always sees every one of them.
        for filename in args.files:
            try:
                t = tail_file(filename, config)
            except OSError as exc:
                _report_error(console, filename, exc)
                failures.append(filename)
                continue
            sessions.append(t)
            w = threading.Thread(target=print_lines, args=(t, console, failures), daemon=True)
            workers.append(w)
            w.start()
        for w in workers:
            # Short joins keep the main thread responsive to Ctrl-C.
            while w.is_alive():
                w.join(timeout=0.2)
    except KeyboardInterrupt:
        print("[tailwatch] stopping (Ctrl-C)", file=sys.stderr)
        for t in list(sessions):
            t.stop()
        for w in workers:
            w.join(timeout=1.0)
    finally:
        if _old_sigterm is not None:
            signal.signal(signal.SIGTERM, _old_sigterm)
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tailwatch", description="Follow files like tail -f / tail -F.")
    parser.add_argument(
        "--version",
        action="version",
        version=f"tailwatch {__version__}",
        help="Show version and exit",
    )
    parser.add_argument("files", nargs="*", help="Files to tail (each one concurrently)")
    parser.add_argument(
        "-n",
        "--lines",
        type=int,
        default=0,
        metavar="OFFSET",
        help="Start at byte OFFSET; 0 starts at end of file, -N starts at byte N-1 (so -1 is the start)",
    )
    parser.add_argument("-f", dest="follow", action="store_true", help="Wait for additional data to be appended to the file")
    parser.add_argument("-F", dest="reopen", action="store_true", help="Follow, and track file rename/rotation (implies -f)")
    parser.add_argument("-p", dest="poll", action="store_true", help="Use polling instead of OS change notification")
    parser.add_argument("--must-exist", action="store_true", help="Fail immediately if a file does not exist")
    parser.add_argument("--max-line-size", type=int, default=0, help="Split lines longer than this many characters")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between checks when polling or waiting for a file (default {DEFAULT_POLL_INTERVAL})",
    )
    parser.add_argument("--no-color", action="store_true", help="Disable colorized error output")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Log engine events (-vv for debug)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    set_verbosity(args.verbose)
    return cmd_tail(args)


if __name__ == "__main__":
    sys.exit(main())
