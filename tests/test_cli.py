import re
import subprocess
import sys
import time
from pathlib import Path


def run_cli(args, **kwargs):
    return subprocess.run(
        [sys.executable, "-m", "tailwatch.cli", *args], capture_output=True, text=True, timeout=20, **kwargs
    )


def test_cli_version_matches_package():
    proc = run_cli(["--version"])
    assert proc.returncode == 0
    out = (proc.stdout + proc.stderr).strip()
    m = re.match(r"tailwatch\s+(\d+\.\d+\.\d+)", out)
    assert m, f"Unexpected version output: {out}"
    import tailwatch
    assert m.group(1) == tailwatch.__version__


def test_cli_requires_files():
    proc = run_cli([])
    assert proc.returncode == 1
    assert "need one or more files" in proc.stdout


def test_cli_prints_whole_file(tmp_path):
    p = tmp_path / "app.log"
    p.write_text("hello\nworld\n")
    proc = run_cli(["-n", "-1", str(p)])
    assert proc.returncode == 0, proc.stderr
    assert proc.stdout.splitlines() == ["hello", "world"]


def test_cli_max_line_size(tmp_path):
    p = tmp_path / "app.log"
    p.write_text("hello\n")
    proc = run_cli(["-n", "-1", "--max-line-size", "3", str(p)])
    assert proc.stdout.splitlines() == ["hel", "lo"]


def test_cli_error_does_not_affect_siblings(tmp_path):
    good = tmp_path / "good.log"
    good.write_text("fine\n")
    missing = tmp_path / "missing.log"
    proc = run_cli(["--no-color", "--must-exist", "-n", "-1", str(missing), str(good)])
    assert proc.returncode == 1
    assert proc.stdout.splitlines() == ["fine"]
    assert "missing.log" in proc.stderr
    assert "\x1b[" not in proc.stderr


def test_cli_follow_until_terminated(tmp_path):
    p = tmp_path / "app.log"
    p.write_text("first\n")
    proc = subprocess.Popen(
        [sys.executable, "-m", "tailwatch.cli", "-F", "-p", "--poll-interval", "0.01", "-n", "-1", str(p)],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
    )
    try:
        assert proc.stdout.readline().rstrip("\n") == "first"
        with p.open("a") as h:
            h.write("second\n")
        assert proc.stdout.readline().rstrip("\n") == "second"
    finally:
        time.sleep(0.05)
        proc.terminate()
        out, err = proc.communicate(timeout=10)
    assert proc.returncode == 0, err
    assert "stopping" in err


def test_interrupt_while_starting_stops_started_sessions(tmp_path, monkeypatch, capsys):
    from tailwatch import cli

    first = tmp_path / "first.log"
    first.write_text("one\n")
    second = tmp_path / "second.log"
    second.write_text("two\n")
    started = []
    real_tail_file = cli.tail_file

    def start(filename, config):
        # Ctrl-C arrives while the second file is being opened
        if started:
            raise KeyboardInterrupt
        t = real_tail_file(filename, config)
        started.append(t)
        return t

    monkeypatch.setattr(cli, "tail_file", start)
    rc = cli.main(["-f", "-p", "--poll-interval", "0.01", "--no-color", str(first), str(second)])
    assert rc == 0
    assert len(started) == 1
    assert started[0].done
    assert "stopping" in capsys.readouterr().err
