import os
import time

import pytest

from tailwatch import tail_file

STRATEGIES = [
    pytest.param(True, id="polling"),
    pytest.param(False, id="native"),
]


@pytest.mark.parametrize("poll", STRATEGIES)
def test_reopen_after_delete_and_rename(tmp_path, read_lines, poll):
    p = tmp_path / "test.txt"
    p.write_text("hello\nworld\n")
    t = tail_file(str(p), follow=True, reopen=True, poll=poll, location=-1, poll_interval=0.005)
    try:
        assert read_lines(t, 2) == ["hello", "world"]

        # deletion must trigger reopen
        time.sleep(0.1)
        p.unlink()
        time.sleep(0.1)
        p.write_text("more\ndata\n")
        assert read_lines(t, 2) == ["more", "data"]

        if os.name != "nt":
            # rename must trigger reopen
            time.sleep(0.1)
            os.rename(p, tmp_path / "test.txt.rotated")
            time.sleep(0.1)
            p.write_text("endofworld\n")
            assert read_lines(t, 1) == ["endofworld"]
        assert not t.lines.closed
    finally:
        assert t.stop() is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_reopen_delivers_unterminated_line_of_old_file(tmp_path, read_lines, poll):
    p = tmp_path / "test.txt"
    p.write_text("start\nendofworld")
    t = tail_file(str(p), follow=True, reopen=True, poll=poll, location=-1, poll_interval=0.005)
    try:
        assert read_lines(t, 1) == ["start"]
        time.sleep(0.1)
        p.unlink()
        assert read_lines(t, 1) == ["endofworld"]
        p.write_text("next\n")
        assert read_lines(t, 1) == ["next"]
    finally:
        assert t.stop() is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_reseek_after_truncation(tmp_path, read_lines, drain, poll):
    p = tmp_path / "test.txt"
    p.write_text("a really long string goes here\nhello\nworld\n")
    t = tail_file(str(p), follow=True, reopen=False, poll=poll, location=-1, poll_interval=0.005)
    assert read_lines(t, 3) == ["a really long string goes here", "hello", "world"]

    # truncate now
    time.sleep(0.1)
    with p.open("w") as h:
        h.write("h311o\nw0r1d\nendofworld\n")
    assert read_lines(t, 3) == ["h311o", "w0r1d", "endofworld"]

    time.sleep(0.1)
    p.unlink()
    assert drain(t) == []
    assert t.wait(timeout=2.0) is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_follow_appends_in_order(tmp_path, read_lines, poll):
    p = tmp_path / "test.txt"
    p.write_text("")
    t = tail_file(str(p), follow=True, poll=poll, location=-1, poll_interval=0.005)
    expected = [f"line {i}" for i in range(200)]
    with p.open("a") as h:
        for i, text in enumerate(expected):
            h.write(text + "\n")
            if i % 50 == 0:
                h.flush()
                time.sleep(0.01)
    assert read_lines(t, len(expected), timeout=5.0) == expected
    assert t.stop() is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_waits_for_file_to_appear(tmp_path, read_lines, poll):
    p = tmp_path / "later.txt"
    t = tail_file(str(p), follow=True, poll=poll, location=-1, poll_interval=0.005)
    time.sleep(0.1)
    assert not t.done
    p.write_text("arrived\n")
    assert read_lines(t, 1) == ["arrived"]
    assert t.stop() is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_waits_for_missing_parent_directory(tmp_path, read_lines, poll):
    d = tmp_path / "logs"
    p = d / "app.log"
    t = tail_file(str(p), follow=True, poll=poll, location=-1, poll_interval=0.005)
    time.sleep(0.05)
    d.mkdir()
    time.sleep(0.05)
    p.write_text("boot\n")
    assert read_lines(t, 1) == ["boot"]
    assert t.stop() is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_data_written_just_before_unlink_is_delivered(tmp_path, read_lines, drain, poll):
    p = tmp_path / "test.txt"
    p.write_text("start\nendof")
    t = tail_file(str(p), follow=True, poll=poll, location=-1, poll_interval=0.2)
    assert read_lines(t, 1) == ["start"]
    # Let the watcher arm and report its first change before the burst
    time.sleep(0.3)
    with p.open("a") as h:
        h.write("world\nlast\n")
    p.unlink()
    assert drain(t) == ["endofworld", "last"]
    assert t.wait(timeout=2.0) is None


@pytest.mark.parametrize("poll", STRATEGIES)
def test_data_written_just_before_rotation_is_delivered(tmp_path, read_lines, poll):
    if os.name == "nt":
        pytest.skip("renaming an open file is not portable")
    p = tmp_path / "test.txt"
    p.write_text("a\n")
    t = tail_file(str(p), follow=True, reopen=True, poll=poll, location=-1, poll_interval=0.2)
    try:
        assert read_lines(t, 1) == ["a"]
        time.sleep(0.3)
        with p.open("a") as h:
            h.write("b\n")
        os.rename(p, tmp_path / "test.txt.1")
        p.write_text("c\n")
        assert read_lines(t, 2) == ["b", "c"]
    finally:
        assert t.stop() is None
